"""
Cálculo de totales de una Factura A a partir de sus líneas.

Reglas:
    - Cada línea aporta su subtotal redondeado (precio * cantidad).
    - Alícuota 0 => importe exento; caso contrario neto gravado + IVA de la línea.
    - La bonificación se descuenta sólo del neto gravado (nunca del exento).
      El IVA queda calculado sobre el subtotal previo a la bonificación.
    - Las percepciones con importe <= 0 se descartan.
    - impuestos_internos e importe_no_gravado viajan siempre en 0.
"""
from typing import Iterable, Optional

from app.core.exceptions import InvalidComputationError
from app.models.comprobante import LineItem, PercepcionAplicada, TaxBreakdown
from app.models.models import Percepcion
from app.modules.facturacion.rounding import round2
from app.utils.number_utils import safe_float


def compute_tax_breakdown(
    items: Iterable[LineItem],
    bonificacion_porcentaje: Optional[float] = 0,
    percepciones: Optional[Iterable[Percepcion]] = None,
) -> TaxBreakdown:
    """
    Agrega las líneas en neto gravado, exento, IVA, bonificación y percepciones.

    Raises:
        InvalidComputationError: si el total resultante es <= 0.
    """
    importe_neto_gravado = 0.0
    importe_exento = 0.0
    importe_no_gravado = 0.0
    importe_iva = 0.0
    impuestos_internos = 0.0

    for it in items:
        linea_subtotal = round2(it.precio_unitario_sin_iva * it.cantidad)
        if it.alicuota == 0:
            importe_exento += linea_subtotal
        else:
            importe_neto_gravado += linea_subtotal
            importe_iva += round2(linea_subtotal * it.alicuota / 100)

    bonificacion_val = round2(importe_neto_gravado * safe_float(bonificacion_porcentaje) / 100)
    importe_neto_gravado = round2(importe_neto_gravado - bonificacion_val)

    percepciones_total = 0.0
    aplicadas = []
    for p in percepciones or []:
        importe = round2(p.importe)
        if importe > 0:
            percepciones_total += importe
            aplicadas.append(PercepcionAplicada(
                tipo=p.tipo or "PER",
                descripcion=p.descripcion or p.tipo or "Percepción",
                importe=importe,
            ))

    importe_exento = round2(importe_exento)
    importe_no_gravado = round2(importe_no_gravado)
    importe_iva = round2(importe_iva)
    impuestos_internos = round2(impuestos_internos)
    percepciones_total = round2(percepciones_total)

    total = round2(
        importe_neto_gravado + importe_exento + importe_no_gravado
        + importe_iva + impuestos_internos + percepciones_total
    )

    if total <= 0:
        raise InvalidComputationError(
            "El total calculado es 0. Revise precios/cantidades del template.",
            details={"total": total},
        )

    return TaxBreakdown(
        importe_neto_gravado=importe_neto_gravado,
        importe_exento=importe_exento,
        importe_no_gravado=importe_no_gravado,
        importe_iva=importe_iva,
        impuestos_internos=impuestos_internos,
        bonificacion_val=bonificacion_val,
        percepciones_total=percepciones_total,
        total=total,
        percepciones=aplicadas,
    )
