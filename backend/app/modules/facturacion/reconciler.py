import logging
from typing import Iterable, List, Set

from app.core.result import Result, success
from app.models.comprobante import SubmissionResult
from app.models.models import Template
from app.repositories.base import TemplateRepository

logger = logging.getLogger(__name__)


def facturados(results: Iterable[SubmissionResult]) -> Set[int]:
    return {r.template_id for r in results if r.success}


def reconcile_templates(templates: Iterable[Template], results: Iterable[SubmissionResult]) -> List[Template]:
    """
    Desmarca (`selected = False`) los templates facturados con éxito para que
    un nuevo envío sobre la misma selección no los repita. Los fallidos o sin
    resultado quedan como estaban, listos para reintentar.
    """
    ids = facturados(results)
    return [
        t.model_copy(update={"selected": False}) if t.id in ids else t
        for t in templates
    ]


def apply_results(repo: TemplateRepository, results: List[SubmissionResult]) -> Result:
    """
    Persiste la reconciliación con una única escritura sobre la colección
    guardada (releída en el momento, no la foto tomada al iniciar el lote).
    No escribe nada si no hubo facturas exitosas.
    """
    ids = facturados(results)
    if not ids:
        return success(0)

    result = repo.clear_selection(ids)
    if result.is_failure():
        logger.warning(f"⚠️ Facturas emitidas pero no se pudo persistir la selección: {result.error}")
    return result
