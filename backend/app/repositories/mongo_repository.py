"""
Persistencia en MongoDB. Cada colección lógica se guarda como un único
documento `{_id: <nombre>, records: [...]}` para que reemplazarla completa
sea una sola escritura atómica.

Como en JSONBin, los registros que no validan contra el modelo se conservan
tal cual en cada escritura.
"""
from __future__ import annotations
import logging
from datetime import datetime
from typing import Any, Callable, Iterable, List, Optional, Set, Tuple

from pymongo import MongoClient
from pymongo.errors import PyMongoError

from app.config.settings import settings
from app.core.exceptions import StorageError
from app.core.result import ErrorCodes, Result, failure, success
from app.models.models import Cliente, Template
from app.repositories.base import (
    ClienteRepository,
    TemplateRepository,
    clear_selected_records,
    merge_unparsed,
    parse_records,
    unparsed_ids,
)

logger = logging.getLogger(__name__)


class MongoStore:
    def __init__(self, conn_str: Optional[str] = None, db_name: Optional[str] = None, client: Optional[MongoClient] = None):
        self.conn_str = conn_str or settings.MONGODB_URL
        self.db_name = db_name or settings.MONGODB_DATABASE
        self._client: Optional[MongoClient] = client

    def _get_db(self):
        if not self._client:
            self._client = MongoClient(self.conn_str, serverSelectionTimeoutMS=10000)
        return self._client[self.db_name]

    @property
    def collection(self):
        return self._get_db().colecciones

    def read(self, name: str) -> List[Any]:
        """
        Raises:
            StorageError: si MongoDB no responde.
        """
        try:
            doc = self.collection.find_one({"_id": name})
        except PyMongoError as e:
            raise StorageError(f"Error leyendo {name} de MongoDB: {e}", cause=e)
        records = (doc or {}).get("records")
        return records if isinstance(records, list) else []

    def write(self, name: str, records: List[Any]) -> Result:
        try:
            self.collection.replace_one(
                {"_id": name},
                {"_id": name, "records": records, "updated_at": datetime.utcnow()},
                upsert=True,
            )
            logger.info(f"✅ {name} guardados en MongoDB ({len(records)} registros)")
            return success(len(records))
        except PyMongoError as e:
            logger.error(f"❌ Error guardando {name} en MongoDB: {e}")
            return failure(str(e), code=ErrorCodes.STORAGE_ERROR)

    def replace_parsed(self, name: str, dumped: List[dict], parse: Callable[[dict], Any]) -> Result:
        """Reemplaza la colección conservando los registros guardados que no validan."""
        try:
            _, invalidos = parse_records(self.read(name), parse, name)
        except StorageError as e:
            logger.error(f"❌ {e.message}. No se guarda para no pisar datos.")
            return failure(e.message, code=ErrorCodes.STORAGE_ERROR)
        return self.write(name, merge_unparsed(dumped, invalidos))

    def update_records(self, name: str, update: Callable[[List[Any]], Tuple[List[Any], int]]) -> Result:
        try:
            records = self.read(name)
        except StorageError as e:
            logger.error(f"❌ {e.message}. No se actualiza para no pisar datos.")
            return failure(e.message, code=ErrorCodes.STORAGE_ERROR)

        nuevos, cambiados = update(records)
        if not cambiados:
            return success(0)
        result = self.write(name, nuevos)
        return success(cambiados) if result.is_success() else result


class MongoClienteRepository(ClienteRepository):
    def __init__(self, store: Optional[MongoStore] = None):
        self.store = store or MongoStore()

    def list_clientes(self) -> List[Cliente]:
        registros, _ = parse_records(self.store.read("clientes"), Cliente.model_validate, "clientes")
        return registros

    def _clientes_for_update(self) -> Tuple[List[Cliente], Set[int]]:
        registros, invalidos = parse_records(self.store.read("clientes"), Cliente.model_validate, "clientes")
        return registros, unparsed_ids(invalidos)

    def replace_clientes(self, clientes: List[Cliente]) -> Result:
        return self.store.replace_parsed(
            "clientes", [c.model_dump(exclude_none=True) for c in clientes], Cliente.model_validate
        )


class MongoTemplateRepository(TemplateRepository):
    def __init__(self, store: Optional[MongoStore] = None):
        self.store = store or MongoStore()

    def list_templates(self) -> List[Template]:
        registros, _ = parse_records(self.store.read("templates"), Template.model_validate, "templates")
        return registros

    def replace_templates(self, templates: List[Template]) -> Result:
        return self.store.replace_parsed("templates", [t.to_storage() for t in templates], Template.model_validate)

    def clear_selection(self, template_ids: Iterable[int]) -> Result:
        ids = set(template_ids)
        return self.store.update_records("templates", lambda records: clear_selected_records(records, ids))
