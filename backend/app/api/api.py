from fastapi import FastAPI, Depends, Request
from fastapi.responses import JSONResponse
from fastapi.middleware.cors import CORSMiddleware
from starlette.exceptions import HTTPException as StarletteHTTPException
import logging
from datetime import datetime

from app.config.settings import settings
from app.api.deps import get_clientes_repo, get_templates_repo
from app.api.endpoints import clientes, templates, facturacion
from app.core.redis_client import close_redis_client
from app.repositories.base import ClienteRepository, TemplateRepository

# Configurar logging
logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    handlers=[logging.StreamHandler()]
)

logger = logging.getLogger(__name__)

# Crear la aplicación FastAPI
app = FastAPI(
    title="Facturación Recurrente API",
    description="Emisión de Facturas A en TusFacturas a partir de templates de facturación recurrente",
    version="1.0.0"
)

# Configurar CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(clientes.router, prefix="/api/clientes", tags=["Clientes"])
app.include_router(templates.router, prefix="/api/templates", tags=["Templates"])
app.include_router(facturacion.router, prefix="/api", tags=["Facturación"])


@app.on_event("startup")
def cargar_datos_iniciales():
    """Carga clientes y templates al iniciar para detectar problemas de persistencia temprano."""
    logger.info("🔄 Cargando datos iniciales...")
    try:
        n_clientes = len(get_clientes_repo().list_clientes())
        n_templates = len(get_templates_repo().list_templates())
        logger.info(f"📊 Datos cargados: {n_clientes} clientes, {n_templates} templates")
    except Exception as e:
        logger.error(f"❌ Error en carga inicial: {e}")
        logger.warning("⚠️  El servidor arrancará sin datos precargados")


@app.on_event("shutdown")
def cerrar_conexiones():
    close_redis_client()


@app.get("/")
def root(
    clientes_repo: ClienteRepository = Depends(get_clientes_repo),
    templates_repo: TemplateRepository = Depends(get_templates_repo),
):
    try:
        n_clientes = len(clientes_repo.list_clientes())
        n_templates = len(templates_repo.list_templates())
    except Exception as e:
        logger.warning(f"No se pudieron contar clientes/templates: {e}")
        n_clientes = n_templates = None
    return {
        "message": f"TusFacturas API - {settings.EMISOR_NOMBRE}".rstrip(" -"),
        "status": "OK",
        "timestamp": datetime.now().isoformat(),
        "cuit": settings.EMISOR_CUIT,
        "pdv": settings.PUNTO_VENTA.zfill(5),
        "clientes_locales": n_clientes,
        "templates_guardados": n_templates,
        "persistencia": settings.STORAGE_BACKEND,
    }


@app.get("/health")
async def health_check():
    """
    Health check endpoint for container health checks.

    Returns:
        dict: Simple health status.
    """
    return {
        "status": "OK",
        "timestamp": datetime.now().isoformat(),
        "jsonbin": "configurado" if settings.jsonbin_enabled else "no configurado",
    }


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    if exc.status_code == 404:
        return JSONResponse(status_code=404, content={"error": "Endpoint no encontrado", "path": request.url.path})
    return JSONResponse(status_code=exc.status_code, content={"success": False, "error": exc.detail})


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.error(f"🚨 Error no manejado: {exc}")
    return JSONResponse(status_code=500, content={"error": "Error interno del servidor", "message": str(exc)})
