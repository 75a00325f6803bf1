"""
Patrón Result para manejo estandarizado de resultados y errores.

Uso:
    from app.core.result import success, failure, Result

    def replace_templates(templates) -> Result[int]:
        try:
            self._write(templates)
            return success(len(templates))
        except StorageError as e:
            return failure(str(e), code=ErrorCodes.STORAGE_ERROR)

    # Consumir resultado
    result = repo.replace_templates(templates)
    if result.is_failure():
        logger.warning(f"No se pudo guardar: {result.error} (code={result.code})")
"""
from dataclasses import dataclass, field
from typing import Generic, TypeVar, Union, Optional

T = TypeVar('T')


@dataclass
class Success(Generic[T]):
    """Representa un resultado exitoso con un valor."""
    value: T

    def is_success(self) -> bool:
        return True

    def is_failure(self) -> bool:
        return False


@dataclass
class Failure:
    """Representa un resultado fallido con información de error."""
    error: str
    code: str = "UNKNOWN"
    details: Optional[dict] = field(default_factory=dict)

    def is_success(self) -> bool:
        return False

    def is_failure(self) -> bool:
        return True


Result = Union[Success[T], Failure]


# ============ Helper Functions ============

def success(value: T) -> Success[T]:
    """Crea un resultado exitoso."""
    return Success(value)


def failure(error: str, code: str = "UNKNOWN", details: dict = None) -> Failure:
    """Crea un resultado fallido."""
    return Failure(error=error, code=code, details=details or {})


# ============ Common Error Codes ============

class ErrorCodes:
    """Códigos de error estandarizados."""
    UNKNOWN = "UNKNOWN"
    NOT_CONFIGURED = "NOT_CONFIGURED"
    STORAGE_ERROR = "STORAGE_ERROR"
