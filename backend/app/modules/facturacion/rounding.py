"""
Redondeo monetario canónico a 2 decimales.

Se aplica en cada punto donde se combinan importes (subtotal de línea,
IVA por línea, bonificación, percepciones, total) para que el error de
punto flotante no se acumule en comprobantes multi-línea.
"""
import math
from decimal import Decimal, ROUND_HALF_UP, InvalidOperation

from app.utils.number_utils import safe_float

_CENT = Decimal("0.01")


def round2(value) -> float:
    """Redondea a 2 decimales (mitad alejándose de cero). None/NaN/no numérico -> 0."""
    number = safe_float(value)
    if not math.isfinite(number):
        return 0.0
    try:
        rounded = Decimal(repr(number)).quantize(_CENT, rounding=ROUND_HALF_UP)
    except InvalidOperation:
        return 0.0
    result = float(rounded)
    return 0.0 if result == 0 else result


def format_amount(value) -> str:
    """Importe como string con exactamente 2 decimales ("242.00")."""
    return f"{round2(value):.2f}"
