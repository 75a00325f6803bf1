# Core module - utilities and base classes
from .result import success, failure, Success, Failure, Result, ErrorCodes
from .exceptions import (
    FacturacionError, ValidationError, ClientNotFoundError, InvalidComputationError,
    ProviderError, TransportError, StorageError, BatchInProgressError
)
from .retry import storage_retry

__all__ = [
    # Result
    'success', 'failure', 'Success', 'Failure', 'Result', 'ErrorCodes',
    # Exceptions
    'FacturacionError', 'ValidationError', 'ClientNotFoundError', 'InvalidComputationError',
    'ProviderError', 'TransportError', 'StorageError', 'BatchInProgressError',
    # Retry
    'storage_retry',
]
