from __future__ import annotations
from typing import Iterable, List, Optional

from app.core.result import Result, success
from app.models.models import Cliente, Template
from app.repositories.base import ClienteRepository, TemplateRepository


class MemoryClienteRepository(ClienteRepository):
    """Clientes en memoria del proceso (se pierden al reiniciar)."""

    def __init__(self, clientes: Optional[Iterable[Cliente]] = None):
        self._clientes: List[Cliente] = list(clientes or [])

    def list_clientes(self) -> List[Cliente]:
        return list(self._clientes)

    def replace_clientes(self, clientes: List[Cliente]) -> Result:
        self._clientes = list(clientes)
        return success(len(self._clientes))


class MemoryTemplateRepository(TemplateRepository):
    def __init__(self, templates: Optional[Iterable[Template]] = None):
        self._templates: List[Template] = list(templates or [])

    def list_templates(self) -> List[Template]:
        return [t.model_copy(deep=True) for t in self._templates]

    def replace_templates(self, templates: List[Template]) -> Result:
        self._templates = [t.model_copy(deep=True) for t in templates]
        return success(len(self._templates))
