from __future__ import annotations
import logging
from abc import ABC, abstractmethod
from typing import Any, Callable, Iterable, List, Optional, Set, Tuple, TypeVar

from pydantic import BaseModel, ValidationError as PydanticValidationError

from app.core.result import Result
from app.models.models import Cliente, NuevoCliente, Template
from app.utils.number_utils import optional_int

logger = logging.getLogger(__name__)

M = TypeVar("M", bound=BaseModel)

# Registro crudo que no pasó la validación, con su posición original.
Unparsed = Tuple[int, Any]


def parse_records(raw_records: Any, parse: Callable[[dict], M], tipo: str) -> Tuple[List[M], List[Unparsed]]:
    """
    Valida una colección cruda. Los registros inválidos no se descartan: se
    devuelven aparte para volver a escribirlos tal cual en el próximo guardado.
    """
    if not isinstance(raw_records, list):
        if raw_records is not None:
            logger.warning(f"⚠️  Datos de {tipo} no son array, inicializando vacío")
        return [], []

    registros: List[M] = []
    invalidos: List[Unparsed] = []
    for idx, raw in enumerate(raw_records):
        try:
            registros.append(parse(raw))
        except (PydanticValidationError, TypeError) as e:
            logger.warning(f"⚠️  {tipo} #{idx} inválido, se conserva sin cambios: {e}")
            invalidos.append((idx, raw))
    return registros, invalidos


def merge_unparsed(dumped: List[dict], invalidos: Iterable[Unparsed]) -> List[dict]:
    """Reinserta los registros inválidos en su posición original."""
    merged = list(dumped)
    for idx, raw in invalidos:
        merged.insert(min(idx, len(merged)), raw)
    return merged


def unparsed_ids(invalidos: Iterable[Unparsed]) -> Set[int]:
    ids = set()
    for _, raw in invalidos:
        if isinstance(raw, dict) and optional_int(raw.get("id")) is not None:
            ids.add(optional_int(raw.get("id")))
    return ids


def clear_selected_records(raw_records: List[Any], template_ids: Iterable[int]) -> Tuple[List[Any], int]:
    """
    Desmarca `selected` directamente sobre los registros crudos. El resto de
    cada registro (y los registros que no validan) queda intacto.
    """
    ids = set(template_ids)
    cambiados = 0
    resultado = []
    for raw in raw_records:
        if isinstance(raw, dict) and raw.get("selected") and optional_int(raw.get("id")) in ids:
            raw = {**raw, "selected": False}
            cambiados += 1
        resultado.append(raw)
    return resultado, cambiados


class ClienteRepository(ABC):
    @abstractmethod
    def list_clientes(self) -> List[Cliente]:
        ...

    @abstractmethod
    def replace_clientes(self, clientes: List[Cliente]) -> Result:
        ...

    def _clientes_for_update(self) -> Tuple[List[Cliente], Set[int]]:
        """
        Lectura previa a una escritura: (clientes válidos, ids ocupados por
        registros que no validan). Los backends remotos la hacen sin cache.
        """
        return self.list_clientes(), set()

    def get_cliente(self, cliente_id: Optional[int]) -> Optional[Cliente]:
        if cliente_id is None:
            return None
        for c in self.list_clientes():
            if c.id == cliente_id:
                return c
        return None

    def add_cliente(self, nuevo: NuevoCliente) -> Tuple[Cliente, bool]:
        """
        Alta manual. Devuelve (cliente, creado). Si ya existe un cliente con el
        mismo documento se devuelve ése sin modificar nada.

        Raises:
            StorageError: si no se pudo leer la colección actual.
        """
        clientes, ids_reservados = self._clientes_for_update()
        documento = (nuevo.documento or "").replace("-", "")

        existente = next((c for c in clientes if c.documento == documento), None)
        if existente:
            return existente, False

        cliente = Cliente(
            id=max({c.id for c in clientes} | ids_reservados, default=0) + 1,
            nombre=nuevo.nombre,
            documento=documento,
            email=nuevo.email or "",
            domicilio=nuevo.domicilio,
            provincia=nuevo.provincia,
            condicion_iva=nuevo.condicion_iva,
            condicion_pago=nuevo.condicion_pago,
            tipo_documento="CUIT",
            origen="manual",
        )
        self.replace_clientes([*clientes, cliente])
        return cliente, True


class TemplateRepository(ABC):
    @abstractmethod
    def list_templates(self) -> List[Template]:
        ...

    @abstractmethod
    def replace_templates(self, templates: List[Template]) -> Result:
        """Reemplaza la colección completa en una única escritura."""
        ...

    def clear_selection(self, template_ids: Iterable[int]) -> Result:
        """Desmarca los templates indicados y guarda la colección una vez."""
        ids = set(template_ids)
        actualizados = [
            t.model_copy(update={"selected": False}) if t.id in ids else t
            for t in self.list_templates()
        ]
        return self.replace_templates(actualizados)
