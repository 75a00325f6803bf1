"""
Job de envío de facturas para los templates seleccionados.

1. Toma el lock de lote (un solo envío en curso a la vez).
2. Resuelve la selección: los templates recibidos o, si no vienen, los
   guardados, filtrando `selected`.
3. Toma una foto de los clientes y envía las facturas de a una.
4. Reconciliación: desmarca los facturados y guarda la colección una vez.
   Si esa escritura falla se informa como advertencia; las facturas ya
   emitidas en TusFacturas siguen siendo válidas.
"""
import asyncio
import logging
from datetime import date
from typing import Awaitable, Callable, List, Optional

from app.config.settings import settings
from app.config.timeouts import SUBMISSION_PACING_DELAY
from app.models.comprobante import BatchReport
from app.models.models import Template
from app.modules.facturacion.batch_lock import BATCH_LOCK, BatchLock
from app.modules.facturacion.batch_submitter import BatchSubmitter
from app.modules.facturacion.reconciler import apply_results
from app.repositories.base import ClienteRepository, TemplateRepository
from app.repositories.memory_repository import MemoryClienteRepository
from app.services.tusfacturas_service import TusFacturasService
from app.utils.date_utils import today_local

logger = logging.getLogger(__name__)


class FacturacionBatchJob:
    def __init__(
        self,
        clientes_repo: ClienteRepository,
        templates_repo: TemplateRepository,
        provider: TusFacturasService,
        lock: BatchLock = BATCH_LOCK,
        punto_venta: Optional[str] = None,
        pacing_delay: float = SUBMISSION_PACING_DELAY,
        today: Callable[[], date] = today_local,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self.clientes_repo = clientes_repo
        self.templates_repo = templates_repo
        self.provider = provider
        self.lock = lock
        self.punto_venta = punto_venta or settings.PUNTO_VENTA
        self.pacing_delay = pacing_delay
        self._today = today
        self._sleep = sleep

    def _select(self, templates: Optional[List[Template]]) -> List[Template]:
        source = templates if templates is not None else self.templates_repo.list_templates()
        return [t for t in source if t.selected]

    async def run(self, templates: Optional[List[Template]] = None) -> BatchReport:
        """
        Ejecuta el lote completo.

        Raises:
            BatchInProgressError: si ya hay otro lote en curso.
        """
        with self.lock.hold():
            seleccionados = self._select(templates)
            logger.info("=" * 60)
            logger.info(f"🔄 Lote de facturación: {len(seleccionados)} template(s) seleccionados")
            logger.info("=" * 60)

            submitter = BatchSubmitter(
                clientes=MemoryClienteRepository(self.clientes_repo.list_clientes()),
                provider=self.provider,
                punto_venta=self.punto_venta,
                pacing_delay=self.pacing_delay,
                today=self._today,
                sleep=self._sleep,
                heartbeat=self.lock.refresh,
            )
            results = await submitter.submit_batch(seleccionados)

            advertencias: List[str] = []
            try:
                persisted = apply_results(self.templates_repo, results)
                if persisted.is_failure():
                    advertencias.append(f"No se pudo persistir el estado de los templates: {persisted.error}")
            except Exception as e:
                logger.error(f"❌ Error reconciliando templates: {e}")
                advertencias.append(f"No se pudo persistir el estado de los templates: {e}")

            report = BatchReport.from_results(results, advertencias)
            logger.info(f"✅ Resultado: {report.exitosas} exitosas | {report.fallidas} fallidas")
            return report
