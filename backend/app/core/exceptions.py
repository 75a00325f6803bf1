"""
Excepciones base estandarizadas para el servicio de facturación.

Jerarquía:
    FacturacionError (base)
    ├── ValidationError
    │   ├── ClientNotFoundError
    │   └── InvalidComputationError
    ├── ProviderError
    ├── TransportError
    ├── StorageError
    └── BatchInProgressError
"""
from typing import Optional, Dict, Any


class FacturacionError(Exception):
    """
    Base exception para todos los errores del servicio.

    Attributes:
        message: Mensaje descriptivo del error.
        code: Código único para identificar el tipo de error.
        details: Información adicional para debugging.
    """
    code: str = "FACTURACION_ERROR"

    def __init__(
        self,
        message: str,
        details: Optional[Dict[str, Any]] = None,
        cause: Optional[Exception] = None
    ):
        self.message = message
        self.details = details or {}
        self.cause = cause
        super().__init__(message)

    def to_dict(self) -> Dict[str, Any]:
        """Serializa el error a diccionario para respuestas API."""
        return {
            "error": self.message,
            "code": self.code,
            "details": self.details
        }


# ============ Validation Errors ============

class ValidationError(FacturacionError):
    """Errores detectados antes de contactar al proveedor. Nunca se reintentan."""
    code = "VALIDATION_ERROR"


class ClientNotFoundError(ValidationError):
    """El template referencia un cliente inexistente."""
    code = "CLIENT_NOT_FOUND"


class InvalidComputationError(ValidationError):
    """El total calculado es <= 0 (template mal configurado)."""
    code = "INVALID_COMPUTATION"


# ============ Provider Errors ============

class ProviderError(FacturacionError):
    """TusFacturas respondió con error = 'S'."""
    code = "PROVIDER_ERROR"


class TransportError(FacturacionError):
    """Falla de red, timeout o respuesta HTTP no 2xx."""
    code = "TRANSPORT_ERROR"


# ============ Storage Errors ============

class StorageError(FacturacionError):
    """Errores de persistencia (JSONBin, MongoDB)."""
    code = "STORAGE_ERROR"


# ============ Batch Errors ============

class BatchInProgressError(FacturacionError):
    """Ya hay un lote de envío en curso."""
    code = "BATCH_IN_PROGRESS"
