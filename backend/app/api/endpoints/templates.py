from fastapi import APIRouter, Depends
from typing import List
from pydantic import BaseModel, Field
import logging

from app.api.deps import get_templates_repo
from app.models.models import Template
from app.repositories.base import TemplateRepository

logger = logging.getLogger(__name__)

router = APIRouter()


class GuardarTemplatesRequest(BaseModel):
    templates: List[Template] = Field(default_factory=list)


@router.get("")
def list_templates(repo: TemplateRepository = Depends(get_templates_repo)):
    try:
        templates = repo.list_templates()
        logger.info(f"📊 Devolviendo {len(templates)} templates")
        return [t.to_storage() for t in templates]
    except Exception as e:
        logger.error(f"Error obteniendo templates: {e}")
        return []


@router.post("/guardar")
def guardar_templates(request: GuardarTemplatesRequest, repo: TemplateRepository = Depends(get_templates_repo)):
    """Reemplaza la colección completa de templates (alta, edición y selección)."""
    result = repo.replace_templates(request.templates)
    logger.info(f"💾 {len(request.templates)} templates guardados")
    return {"success": True, "total": len(request.templates), "persistido": result.is_success()}
