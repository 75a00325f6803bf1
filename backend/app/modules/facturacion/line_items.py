from typing import List

from app.models.comprobante import LineItem
from app.models.models import Template
from app.utils.number_utils import safe_float

DEFAULT_ALICUOTA = 21.0
DEFAULT_DESCRIPCION = "Servicio"


def _template_alicuota(template: Template) -> float:
    if template.alicuota is None:
        return DEFAULT_ALICUOTA
    return safe_float(template.alicuota)


def expand_line_items(template: Template) -> List[LineItem]:
    """
    Normaliza los datos de facturación de un template en líneas explícitas.

    Si el template trae `items`, cada ítem se convierte en una línea (los
    campos faltantes heredan del template). Si no, se sintetiza una única
    línea a partir de los campos legacy cantidad/monto/alicuota/concepto.
    Nunca devuelve una lista vacía.
    """
    alicuota = _template_alicuota(template)
    descripcion_default = template.concepto or DEFAULT_DESCRIPCION

    if template.items:
        return [
            LineItem(
                cantidad=safe_float(it.cantidad) or 1,
                precio_unitario_sin_iva=safe_float(it.precio) or safe_float(it.precio_unitario_sin_iva),
                alicuota=safe_float(it.alicuota) if it.alicuota is not None else alicuota,
                descripcion=it.descripcion or descripcion_default,
            )
            for it in template.items
        ]

    return [
        LineItem(
            cantidad=safe_float(template.cantidad) or 1,
            precio_unitario_sin_iva=safe_float(template.monto) or safe_float(template.precio),
            alicuota=alicuota,
            descripcion=descripcion_default,
        )
    ]
