import httpx
import logging
from typing import Dict, Any, Optional

from app.config.settings import settings
from app.config.timeouts import TUSFACTURAS_SUBMIT_TIMEOUT, TUSFACTURAS_QUERY_TIMEOUT
from app.core.exceptions import ProviderError, TransportError
from app.models.comprobante import ProviderResponse

logger = logging.getLogger(__name__)


def _structured_error(response: httpx.Response) -> Optional[str]:
    """Primer mensaje de `errores` si la respuesta fallida trae un cuerpo JSON del proveedor."""
    try:
        body = response.json()
    except ValueError:
        return None
    if not isinstance(body, dict):
        return None
    errores = body.get("errores")
    if isinstance(errores, list) and errores:
        return str(errores[0])
    if isinstance(errores, str) and errores:
        return errores
    return None


class TusFacturasService:
    def __init__(
        self,
        api_key: Optional[str] = None,
        api_token: Optional[str] = None,
        user_token: Optional[str] = None,
        base_url: Optional[str] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.api_key = (api_key if api_key is not None else settings.TUSFACTURAS_API_KEY).strip()
        self.api_token = (api_token if api_token is not None else settings.TUSFACTURAS_API_TOKEN).strip()
        self.user_token = (user_token if user_token is not None else settings.TUSFACTURAS_USER_TOKEN).strip()
        self.base_url = (base_url or settings.TUSFACTURAS_BASE_URL).rstrip('/')
        self._transport = transport

        if not self.api_key or not self.api_token or not self.user_token:
            logger.warning("TusFacturas credentials are not set or empty. Invoice submission will fail.")

    def credentials(self) -> Dict[str, str]:
        """Bloque de credenciales que TusFacturas exige en cada request."""
        return {
            "apikey": self.api_key,
            "apitoken": self.api_token,
            "usertoken": self.user_token,
        }

    async def _post(self, endpoint: str, data: Dict[str, Any], timeout: float) -> Dict[str, Any]:
        """
        POST JSON a TusFacturas.

        Raises:
            TransportError: timeout, falla de red o HTTP no 2xx sin errores estructurados.
            ProviderError: HTTP no 2xx con `errores` en el cuerpo.
        """
        url = f"{self.base_url}/{endpoint}"

        async with httpx.AsyncClient(timeout=timeout, transport=self._transport) as client:
            try:
                response = await client.post(url, json=data)
                response.raise_for_status()
                return response.json()
            except httpx.HTTPStatusError as e:
                detail = _structured_error(e.response)
                logger.error(f"HTTP Error interacting with TusFacturas ({endpoint}): {e.response.text}")
                if detail:
                    raise ProviderError(detail, details={"status_code": e.response.status_code}, cause=e)
                raise TransportError(str(e), details={"status_code": e.response.status_code}, cause=e)
            except httpx.TimeoutException as e:
                logger.error(f"Timeout interacting with TusFacturas ({endpoint}): {e}")
                raise TransportError(f"Timeout after {timeout:.0f}s: {e}", cause=e)
            except httpx.HTTPError as e:
                logger.error(f"Error interacting with TusFacturas ({endpoint}): {e}")
                raise TransportError(str(e) or e.__class__.__name__, cause=e)
            except ValueError as e:
                logger.error(f"Invalid JSON from TusFacturas ({endpoint}): {e}")
                raise TransportError(f"Respuesta inválida de TusFacturas: {e}", cause=e)

    async def submit_invoice(self, payload: Dict[str, Any]) -> ProviderResponse:
        """
        Da de alta un comprobante.
        endpoint: facturacion/nuevo

        Raises:
            ProviderError: la respuesta trae error = 'S' (se expone el primer mensaje).
            TransportError: ver `_post`.
        """
        data = await self._post("facturacion/nuevo", payload, timeout=TUSFACTURAS_SUBMIT_TIMEOUT)
        if not isinstance(data, dict):
            raise TransportError("Respuesta inválida de TusFacturas", details={"raw": data})

        result = ProviderResponse.model_validate(data)
        if result.has_error:
            logger.error(f"TusFacturas API Error (facturacion/nuevo): {result.errores}")
            raise ProviderError(result.first_error, details={"errores": result.errores})
        return result

    async def search_invoices(self, fecha_desde: str, fecha_hasta: str) -> Dict[str, Any]:
        """
        Busca comprobantes emitidos en un rango (DD/MM/YYYY). Se usa como test de conexión.
        endpoint: facturacion/buscar
        """
        payload = {
            **self.credentials(),
            "fecha_desde": fecha_desde,
            "fecha_hasta": fecha_hasta,
        }
        return await self._post("facturacion/buscar", payload, timeout=TUSFACTURAS_QUERY_TIMEOUT)
