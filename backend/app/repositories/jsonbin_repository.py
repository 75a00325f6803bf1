"""
Persistencia en JSONBin.io: cada colección (clientes, templates) vive en su
propio bin como un array JSON. Se mantiene una copia en memoria que se usa
para listar cuando JSONBin no está configurado o no responde.

Las escrituras nunca parten de esa copia: siempre releen el bin, y los
registros que no validan se vuelven a escribir tal cual.
"""
from __future__ import annotations
import logging
from typing import Any, Callable, Generic, Iterable, List, Optional, Set, Tuple

import httpx

from app.config.settings import settings
from app.config.timeouts import JSONBIN_TIMEOUT
from app.core.exceptions import StorageError
from app.core.result import ErrorCodes, Result, failure, success
from app.core.retry import storage_retry
from app.models.models import Cliente, Template
from app.repositories.base import (
    M,
    ClienteRepository,
    TemplateRepository,
    Unparsed,
    clear_selected_records,
    merge_unparsed,
    parse_records,
    unparsed_ids,
)

logger = logging.getLogger(__name__)


class JsonBinClient:
    def __init__(
        self,
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        self.api_key = api_key if api_key is not None else settings.JSONBIN_API_KEY
        self.base_url = (base_url or settings.JSONBIN_BASE_URL).rstrip("/")
        self._transport = transport

    def _headers(self) -> dict:
        return {
            "Content-Type": "application/json",
            "X-Master-Key": self.api_key,
        }

    def _client(self) -> httpx.Client:
        return httpx.Client(timeout=JSONBIN_TIMEOUT, headers=self._headers(), transport=self._transport)

    @storage_retry
    def read_bin(self, bin_id: str) -> Any:
        with self._client() as client:
            response = client.get(f"{self.base_url}/b/{bin_id}/latest")
            response.raise_for_status()
            body = response.json()
            return body.get("record") if isinstance(body, dict) else None

    @storage_retry
    def write_bin(self, bin_id: str, records: List[dict]) -> None:
        with self._client() as client:
            response = client.put(f"{self.base_url}/b/{bin_id}", json=records)
            response.raise_for_status()


class _JsonBinCollection(Generic[M]):
    """Colección respaldada por un bin con fallback a memoria para lecturas."""

    def __init__(
        self,
        client: JsonBinClient,
        bin_id: str,
        tipo: str,
        parse: Callable[[dict], M],
        dump: Callable[[M], dict],
    ):
        self.client = client
        self.bin_id = bin_id
        self.tipo = tipo
        self._parse = parse
        self._dump = dump
        self._cache: List[M] = []
        self._invalidos: List[Unparsed] = []

    @property
    def configured(self) -> bool:
        return bool(self.client.api_key and self.bin_id)

    def _read(self) -> Tuple[List[M], List[Unparsed], Any]:
        """
        Lee el bin sin fallback.

        Raises:
            StorageError: si JSONBin no responde o devuelve error.
        """
        try:
            datos = self.client.read_bin(self.bin_id)
        except (httpx.HTTPError, ValueError) as e:
            raise StorageError(f"Error leyendo {self.tipo} de JSONBin: {e}", cause=e)

        registros, invalidos = parse_records(datos, self._parse, self.tipo)
        self._cache = registros
        self._invalidos = invalidos
        return registros, invalidos, datos

    def _write(self, records: List[Any]) -> Result:
        try:
            logger.info(f"💾 Guardando {self.tipo} en JSONBin ({len(records)} registros)...")
            self.client.write_bin(self.bin_id, records)
        except httpx.HTTPError as e:
            error = StorageError(f"Error guardando {self.tipo} en JSONBin: {e}", cause=e)
            logger.error(f"❌ {error.message}")
            return failure(error.message, code=ErrorCodes.STORAGE_ERROR)

        logger.info(f"✅ {self.tipo} guardados en JSONBin")
        return success(len(records))

    def load(self) -> List[M]:
        if not self.configured:
            logger.warning(f"⚠️  JSONBin no configurado para {self.tipo}, usando memoria local")
            return list(self._cache)

        try:
            logger.info(f"📥 Cargando {self.tipo} desde JSONBin...")
            registros, _, _ = self._read()
        except StorageError as e:
            logger.error(f"❌ {e.message}")
            return list(self._cache)

        logger.info(f"✅ {self.tipo} cargados: {len(registros)} registros")
        return list(registros)

    def load_for_update(self) -> Tuple[List[M], List[Unparsed]]:
        """Como load(), pero un error de lectura se propaga en vez de devolver la cache."""
        if not self.configured:
            return list(self._cache), list(self._invalidos)
        registros, invalidos, _ = self._read()
        return registros, invalidos

    def save(self, registros: List[M]) -> Result:
        if not self.configured:
            self._cache = list(registros)
            logger.warning(f"⚠️  JSONBin no configurado para {self.tipo}, guardando solo en memoria")
            return failure(f"JSONBin no configurado para {self.tipo}", code=ErrorCodes.NOT_CONFIGURED)

        try:
            _, invalidos, _ = self._read()
        except StorageError as e:
            logger.error(f"❌ {e.message}. No se guarda para no pisar datos.")
            return failure(e.message, code=ErrorCodes.STORAGE_ERROR)

        result = self._write(merge_unparsed([self._dump(r) for r in registros], invalidos))
        if result.is_success():
            self._cache = list(registros)
        return result

    def update_records(self, update: Callable[[List[Any]], Tuple[List[Any], int]]) -> Result:
        """
        Aplica `update` sobre los registros crudos recién leídos del bin y
        escribe sólo si cambió algo. Devuelve la cantidad de registros cambiados.
        """
        try:
            _, _, datos = self._read()
        except StorageError as e:
            logger.error(f"❌ {e.message}. No se actualiza para no pisar datos.")
            return failure(e.message, code=ErrorCodes.STORAGE_ERROR)

        if not isinstance(datos, list):
            return success(0)

        nuevos, cambiados = update(datos)
        if not cambiados:
            return success(0)

        result = self._write(nuevos)
        if result.is_failure():
            return result
        self._cache, self._invalidos = parse_records(nuevos, self._parse, self.tipo)
        return success(cambiados)


class JsonBinClienteRepository(ClienteRepository):
    def __init__(self, client: Optional[JsonBinClient] = None, bin_id: Optional[str] = None):
        self._collection = _JsonBinCollection(
            client or JsonBinClient(),
            bin_id if bin_id is not None else settings.JSONBIN_CLIENTES_BIN_ID,
            "clientes",
            parse=Cliente.model_validate,
            dump=lambda c: c.model_dump(exclude_none=True),
        )

    def list_clientes(self) -> List[Cliente]:
        return self._collection.load()

    def _clientes_for_update(self) -> Tuple[List[Cliente], Set[int]]:
        registros, invalidos = self._collection.load_for_update()
        return registros, unparsed_ids(invalidos)

    def replace_clientes(self, clientes: List[Cliente]) -> Result:
        return self._collection.save(clientes)


class JsonBinTemplateRepository(TemplateRepository):
    def __init__(self, client: Optional[JsonBinClient] = None, bin_id: Optional[str] = None):
        self._collection = _JsonBinCollection(
            client or JsonBinClient(),
            bin_id if bin_id is not None else settings.JSONBIN_TEMPLATES_BIN_ID,
            "templates",
            parse=Template.model_validate,
            dump=Template.to_storage,
        )

    def list_templates(self) -> List[Template]:
        return [t.model_copy(deep=True) for t in self._collection.load()]

    def replace_templates(self, templates: List[Template]) -> Result:
        return self._collection.save(templates)

    def clear_selection(self, template_ids: Iterable[int]) -> Result:
        if not self._collection.configured:
            return super().clear_selection(template_ids)
        ids = set(template_ids)
        return self._collection.update_records(lambda datos: clear_selected_records(datos, ids))
