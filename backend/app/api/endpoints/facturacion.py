from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from typing import List, Optional
from pydantic import BaseModel
import logging

from app.api.deps import get_batch_job, get_tusfacturas_service
from app.core.exceptions import BatchInProgressError, FacturacionError
from app.models.models import Template
from app.modules.facturacion.batch_job import FacturacionBatchJob
from app.services.tusfacturas_service import TusFacturasService
from app.utils.date_utils import format_date, today_local

logger = logging.getLogger(__name__)

router = APIRouter()


class EnviarFacturasRequest(BaseModel):
    templates: Optional[List[Template]] = None


@router.post("/enviar-facturas")
async def enviar_facturas(
    request: EnviarFacturasRequest,
    job: FacturacionBatchJob = Depends(get_batch_job),
):
    """
    Emite una Factura A por cada template seleccionado.

    Siempre responde 200 con el detalle por template; el éxito de cada
    factura se consulta en `detalles[].success`.
    """
    try:
        report = await job.run(request.templates)
        return report.to_response()
    except BatchInProgressError as e:
        logger.warning(f"⏭️ {e.message}")
        return JSONResponse(status_code=409, content={"success": False, **e.to_dict()})
    except Exception as e:
        logger.error(f"💥 ERROR CRÍTICO EN ENVIOS: {e}")
        return JSONResponse(status_code=500, content={"success": False, "error": str(e)})


@router.get("/test")
async def test_conexion(provider: TusFacturasService = Depends(get_tusfacturas_service)):
    """Verifica credenciales y conectividad con TusFacturas."""
    hoy = format_date(today_local())
    try:
        data = await provider.search_invoices(hoy, hoy)
        logger.info("🔍 Test API OK")
        return {"success": True, "mensaje": "Conexión exitosa con TusFacturas", "api": data}
    except FacturacionError as e:
        logger.error(f"❌ Error de conexión test: {e.message}")
        return JSONResponse(status_code=500, content={"success": False, "error": e.message, "detail": e.details})
