"""
Serialización del comprobante al formato de TusFacturas (facturacion/nuevo).

No calcula nada: recibe los totales ya resueltos y los vuelca campo a campo.
Contrato del proveedor:
    - Fechas DD/MM/YYYY.
    - Importes como string con 2 decimales.
    - `percepciones` se omite por completo si no hay ninguna.
"""
from datetime import date
from typing import Any, Dict, List, Mapping, Sequence

from app.models.comprobante import LineItem, TaxBreakdown
from app.models.models import Cliente, Template
from app.modules.facturacion.rounding import format_amount
from app.utils.date_utils import format_date
from app.utils.number_utils import number_to_str

DOMICILIO_DEFAULT = "Ciudad Autónoma de Buenos Aires"
PROVINCIA_DEFAULT = "1"
CONDICION_IVA_DEFAULT = "RI"
RUBRO_DEFAULT = "Servicios Profesionales"
RUBRO_GRUPO_CONTABLE_DEFAULT = "servicios"


def build_cliente_block(cliente: Cliente, condicion_pago: str) -> Dict[str, str]:
    email = cliente.email or ""
    return {
        "documento_tipo": "CUIT",
        "documento_nro": cliente.documento,
        "razon_social": cliente.nombre,
        "email": email,
        "domicilio": cliente.domicilio or DOMICILIO_DEFAULT,
        "provincia": cliente.provincia or PROVINCIA_DEFAULT,
        "envia_por_mail": "S" if email else "N",
        "condicion_iva": cliente.condicion_iva or CONDICION_IVA_DEFAULT,
        "condicion_pago": condicion_pago,
    }


def build_detalle(items: Sequence[LineItem]) -> List[Dict[str, Any]]:
    return [
        {
            "cantidad": number_to_str(it.cantidad),
            "afecta_stock": "N",
            "bonificacion_porcentaje": "0",
            "producto": {
                "descripcion": it.descripcion,
                "unidad_bulto": "1",
                "lista_precios": "SERVICIOS",
                "codigo": "",
                "precio_unitario_sin_iva": format_amount(it.precio_unitario_sin_iva),
                "alicuota": number_to_str(it.alicuota),
                "unidad_medida": "7",
                "actualiza_precio": "N",
                "rg5329": "N",
            },
            "leyenda": "",
        }
        for it in items
    ]


def build_invoice_payload(
    credentials: Mapping[str, str],
    cliente: Cliente,
    template: Template,
    items: Sequence[LineItem],
    breakdown: TaxBreakdown,
    fecha: date,
    vencimiento: date,
    condicion_pago: str,
    punto_venta: str,
) -> Dict[str, Any]:
    """Arma el documento completo de alta de Factura A."""
    fecha_str = format_date(fecha)

    comprobante: Dict[str, Any] = {
        "fecha": fecha_str,
        "vencimiento": format_date(vencimiento),
        "tipo": "FACTURA A",
        "operacion": "V",
        "punto_venta": str(punto_venta),
        "moneda": "PES",
        "cotizacion": "1",
        "idioma": "1",
        "periodo_facturado_desde": fecha_str,
        "periodo_facturado_hasta": fecha_str,
        "rubro": template.rubro or RUBRO_DEFAULT,
        "rubro_grupo_contable": template.rubro_grupo_contable or RUBRO_GRUPO_CONTABLE_DEFAULT,
        "detalle": build_detalle(items),
        "bonificacion": format_amount(breakdown.bonificacion_val),
        "importe_neto_gravado": format_amount(breakdown.importe_neto_gravado),
        "importe_exento": format_amount(breakdown.importe_exento),
        "importe_no_gravado": format_amount(breakdown.importe_no_gravado),
        "importe_iva": format_amount(breakdown.importe_iva),
        "impuestos_internos": format_amount(breakdown.impuestos_internos),
    }
    if breakdown.percepciones:
        comprobante["percepciones"] = [
            {
                "tipo": p.tipo,
                "descripcion": p.descripcion,
                "importe": format_amount(p.importe),
            }
            for p in breakdown.percepciones
        ]
    comprobante["total"] = format_amount(breakdown.total)
    comprobante["leyenda_gral"] = template.leyenda_gral or ""

    return {
        **credentials,
        "cliente": build_cliente_block(cliente, condicion_pago),
        "comprobante": comprobante,
    }
