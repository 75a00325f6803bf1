from fastapi import APIRouter, Depends, HTTPException
from typing import List
from pydantic import BaseModel, Field
import logging

from app.api.deps import get_clientes_repo
from app.models.models import Cliente, NuevoCliente
from app.repositories.base import ClienteRepository

logger = logging.getLogger(__name__)

router = APIRouter()


class AgregarClienteRequest(BaseModel):
    cliente: NuevoCliente


class GuardarClientesRequest(BaseModel):
    clientes: List[Cliente] = Field(default_factory=list)


@router.get("")
def list_clientes(repo: ClienteRepository = Depends(get_clientes_repo)):
    """Devuelve todos los clientes (refrescados desde la persistencia)."""
    try:
        clientes = repo.list_clientes()
        logger.info(f"📋 Devolviendo {len(clientes)} clientes")
        return [c.model_dump(exclude_none=True) for c in clientes]
    except Exception as e:
        logger.error(f"Error obteniendo clientes: {e}")
        return []


@router.post("/agregar")
def agregar_cliente(request: AgregarClienteRequest, repo: ClienteRepository = Depends(get_clientes_repo)):
    """Alta manual de un cliente. Si el CUIT ya existe devuelve el existente."""
    try:
        cliente, creado = repo.add_cliente(request.cliente)
    except Exception as e:
        logger.error(f"Error agregando cliente: {e}")
        raise HTTPException(status_code=500, detail=str(e))

    payload = cliente.model_dump(exclude_none=True)
    if not creado:
        return {"success": True, "message": "Cliente ya existe", "cliente": payload}

    logger.info(f"➕ Cliente agregado: {cliente.nombre} ({cliente.documento})")
    logger.info(f"   📧 Email: {cliente.email or '(sin email)'}")
    return {"success": True, "cliente": payload}


@router.post("/guardar")
def guardar_clientes(request: GuardarClientesRequest, repo: ClienteRepository = Depends(get_clientes_repo)):
    """Reemplaza la colección completa de clientes."""
    result = repo.replace_clientes(request.clientes)
    logger.info(f"💾 {len(request.clientes)} clientes guardados")
    return {"success": True, "total": len(request.clientes), "persistido": result.is_success()}
