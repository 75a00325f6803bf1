from datetime import date, timedelta
from typing import Optional

from app.models.models import Cliente, Template
from app.utils.number_utils import parse_leading_int

CONDICION_PAGO_CONTADO = "0"


def resolve_condicion_pago(template: Template, cliente: Optional[Cliente]) -> str:
    """Prioridad: template, luego cliente, luego contado ("0")."""
    if template.condicion_pago is not None:
        return template.condicion_pago
    if cliente is not None and cliente.condicion_pago is not None:
        return cliente.condicion_pago
    return CONDICION_PAGO_CONTADO


def calcular_vencimiento(fecha: date, condicion_pago) -> date:
    """
    Vencimiento = fecha + N días, con N el entero inicial de la condición de pago.
    Códigos no numéricos o <= 0 se tratan como contado (vence el mismo día).
    """
    dias = parse_leading_int(condicion_pago)
    if dias is None or dias <= 0:
        return fecha
    return fecha + timedelta(days=dias)
