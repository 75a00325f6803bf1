from functools import lru_cache
from typing import Tuple

from fastapi import Depends

from app.modules.facturacion.batch_job import FacturacionBatchJob
from app.repositories.base import ClienteRepository, TemplateRepository
from app.repositories.factory import build_repositories
from app.services.tusfacturas_service import TusFacturasService


@lru_cache
def _get_repositories() -> Tuple[ClienteRepository, TemplateRepository]:
    return build_repositories()


def get_clientes_repo() -> ClienteRepository:
    return _get_repositories()[0]


def get_templates_repo() -> TemplateRepository:
    return _get_repositories()[1]


@lru_cache
def get_tusfacturas_service() -> TusFacturasService:
    return TusFacturasService()


def get_batch_job(
    clientes_repo: ClienteRepository = Depends(get_clientes_repo),
    templates_repo: TemplateRepository = Depends(get_templates_repo),
    provider: TusFacturasService = Depends(get_tusfacturas_service),
) -> FacturacionBatchJob:
    return FacturacionBatchJob(clientes_repo, templates_repo, provider)
