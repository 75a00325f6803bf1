import math
import re
from typing import Optional

_LEADING_INT = re.compile(r"^\s*([+-]?\d+)")


def safe_float(value, default=0.0) -> float:
    try:
        if value is None or isinstance(value, bool):
            return default
        if isinstance(value, (int, float)):
            result = float(value)
        else:
            s = str(value).strip()
            if not s:
                return default
            result = float(s.replace(' ', ''))
        if math.isnan(result):
            return default
        return result
    except (TypeError, ValueError):
        return default


def number_to_str(value) -> str:
    """Representa un número sin decimales espurios: 2.0 -> "2", 10.5 -> "10.5"."""
    if isinstance(value, bool):
        return str(value).lower()
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def parse_leading_int(value) -> Optional[int]:
    """
    Interpreta el entero inicial de un texto ("30", "30 días", " 15.5").
    Devuelve None si no hay dígitos al comienzo.
    """
    if value is None:
        return None
    match = _LEADING_INT.match(number_to_str(value))
    if not match:
        return None
    return int(match.group(1))


def optional_float(value) -> Optional[float]:
    """Como safe_float, pero vacío o no numérico -> None (el campo queda sin informar)."""
    result = safe_float(value, default=None)
    return None if result is None or math.isinf(result) else result


def optional_int(value) -> Optional[int]:
    result = optional_float(value)
    if result is None or not result.is_integer():
        return None
    return int(result)
