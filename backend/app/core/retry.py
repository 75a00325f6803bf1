"""
Decoradores de retry con backoff exponencial usando tenacity.

Uso:
    from app.core.retry import storage_retry

    class JsonBinClient:
        @storage_retry
        def read_bin(self, bin_id: str):
            # Esta llamada se reintentará automáticamente
            return self._client.get(...)

El envío de comprobantes a TusFacturas NO se reintenta: el proveedor
numera los comprobantes y un reintento ciego podría duplicar una factura.
"""
import logging

import httpx
from tenacity import (
    retry,
    stop_after_attempt,
    wait_exponential,
    retry_if_exception_type,
    before_sleep_log,
)

logger = logging.getLogger(__name__)


# ============ Storage Retry ============

storage_retry = retry(
    stop=stop_after_attempt(3),
    wait=wait_exponential(multiplier=0.5, min=0.5, max=5),
    retry=retry_if_exception_type((
        TimeoutError,
        ConnectionError,
        httpx.TransportError,
    )),
    before_sleep=before_sleep_log(logger, logging.WARNING),
    reraise=True
)
"""
Decorador para operaciones de storage (JSONBin).
- 3 intentos máximo
- Backoff exponencial rápido: 0.5s → 5s
- Reintenta en: TimeoutError, ConnectionError, errores de transporte httpx
"""
