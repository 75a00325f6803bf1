"""
Envío secuencial de un lote de templates a TusFacturas.

Cada template recorre: pending -> built -> submitted -> accepted | rejected.
    - pending -> rejected: cliente inexistente (no se contacta al proveedor).
    - built -> rejected: total <= 0 (no se contacta al proveedor).
    - submitted -> accepted/rejected: según la respuesta de TusFacturas.

Los templates se procesan estrictamente de a uno, con una pausa fija después
de cada envío al proveedor (rate limit). Cualquier excepción queda contenida
en el template que la produjo: el lote siempre devuelve exactamente un
SubmissionResult por template, en el mismo orden de entrada.
"""
import asyncio
import logging
from datetime import date
from typing import AsyncIterator, Awaitable, Callable, List, Optional, Sequence

from app.config.settings import settings
from app.config.timeouts import SUBMISSION_PACING_DELAY
from app.core.exceptions import ClientNotFoundError, FacturacionError
from app.models.comprobante import SubmissionResult, SubmissionState
from app.models.models import Template
from app.modules.facturacion.due_date import calcular_vencimiento, resolve_condicion_pago
from app.modules.facturacion.line_items import expand_line_items
from app.modules.facturacion.payload_builder import build_invoice_payload
from app.modules.facturacion.tax_breakdown import compute_tax_breakdown
from app.repositories.base import ClienteRepository
from app.services.tusfacturas_service import TusFacturasService
from app.utils.date_utils import today_local

logger = logging.getLogger(__name__)


class BatchSubmitter:
    def __init__(
        self,
        clientes: ClienteRepository,
        provider: TusFacturasService,
        punto_venta: Optional[str] = None,
        pacing_delay: float = SUBMISSION_PACING_DELAY,
        today: Callable[[], date] = today_local,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        heartbeat: Optional[Callable[[], object]] = None,
    ):
        self.clientes = clientes
        self.provider = provider
        self.punto_venta = punto_venta or settings.PUNTO_VENTA
        self.pacing_delay = pacing_delay
        self._today = today
        self._sleep = sleep
        self._heartbeat = heartbeat

    async def iter_submissions(self, templates: Sequence[Template]) -> AsyncIterator[SubmissionResult]:
        """
        Procesa los templates de a uno y va entregando cada resultado apenas
        está listo. Cortar la iteración no deshace los envíos ya aceptados.
        `heartbeat` se invoca antes de cada template (renovación del lock de lote).
        """
        for template in templates:
            if self._heartbeat:
                self._heartbeat()
            result, contacted = await self._process_template(template)
            yield result
            if contacted and self.pacing_delay > 0:
                await self._sleep(self.pacing_delay)

    async def submit_batch(self, templates: Sequence[Template]) -> List[SubmissionResult]:
        logger.info(f"🚀 Enviando {len(templates)} facturas (Factura A)")
        return [result async for result in self.iter_submissions(templates)]

    async def _process_template(self, template: Template):
        """Devuelve (resultado, se_contacto_al_proveedor)."""
        estado = SubmissionState.PENDING
        cliente = None
        try:
            cliente = self.clientes.get_cliente(template.cliente_id)
            if cliente is None:
                raise ClientNotFoundError(
                    f"Cliente ID {template.cliente_id} no encontrado",
                    details={"clienteId": template.cliente_id},
                )

            logger.info(f"🧾 Preparando factura para: {cliente.nombre} - CUIT: {cliente.documento}")
            estado = SubmissionState.BUILT

            fecha = self._today()
            condicion_pago = resolve_condicion_pago(template, cliente)
            items = expand_line_items(template)
            breakdown = compute_tax_breakdown(items, template.bonificacion_porcentaje, template.percepciones)
            payload = build_invoice_payload(
                credentials=self.provider.credentials(),
                cliente=cliente,
                template=template,
                items=items,
                breakdown=breakdown,
                fecha=fecha,
                vencimiento=calcular_vencimiento(fecha, condicion_pago),
                condicion_pago=condicion_pago,
                punto_venta=self.punto_venta,
            )

            logger.info(
                f"   📤 Request a TusFacturas: {cliente.nombre} ({cliente.documento}) "
                f"envía mail: {payload['cliente']['envia_por_mail']} total: ${payload['comprobante']['total']}"
            )
            estado = SubmissionState.SUBMITTED
            response = await self.provider.submit_invoice(payload)

            logger.info(f"   ✅ Factura {response.numero} emitida (CAE {response.cae})")
            return SubmissionResult(
                template_id=template.id,
                success=True,
                estado=SubmissionState.ACCEPTED,
                cliente=cliente.nombre,
                factura_numero=response.numero,
                cae=response.cae,
                vencimiento_cae=response.vencimiento_cae,
                pdf_url=response.pdf_url,
            ), True

        except FacturacionError as e:
            logger.error(f"   ❌ Error al enviar factura (template {template.id}, {estado.value}): {e.message}")
            return self._rejected(template, cliente, e.message, e.code), estado == SubmissionState.SUBMITTED
        except Exception as e:
            logger.exception(f"   ❌ Error inesperado en template {template.id} ({estado.value}): {e}")
            return self._rejected(template, cliente, str(e) or e.__class__.__name__, "UNKNOWN"), estado == SubmissionState.SUBMITTED

    @staticmethod
    def _rejected(template: Template, cliente, error: str, code: str) -> SubmissionResult:
        return SubmissionResult(
            template_id=template.id,
            success=False,
            estado=SubmissionState.REJECTED,
            cliente=cliente.nombre if cliente else None,
            error=error,
            error_code=code,
        )
