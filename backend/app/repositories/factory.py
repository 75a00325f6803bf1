import logging
from typing import Tuple

from app.config.settings import Settings, settings as default_settings
from app.repositories.base import ClienteRepository, TemplateRepository

logger = logging.getLogger(__name__)


def build_repositories(settings: Settings = default_settings) -> Tuple[ClienteRepository, TemplateRepository]:
    """Instancia los repositorios según STORAGE_BACKEND (memory | jsonbin | mongo)."""
    backend = (settings.STORAGE_BACKEND or "memory").lower()

    if backend == "mongo":
        from app.repositories.mongo_repository import MongoClienteRepository, MongoTemplateRepository, MongoStore
        store = MongoStore(settings.MONGODB_URL, settings.MONGODB_DATABASE)
        logger.info("☁️  Persistencia: MongoDB")
        return MongoClienteRepository(store), MongoTemplateRepository(store)

    if backend == "jsonbin":
        from app.repositories.jsonbin_repository import JsonBinClient, JsonBinClienteRepository, JsonBinTemplateRepository
        client = JsonBinClient(settings.JSONBIN_API_KEY, settings.JSONBIN_BASE_URL)
        logger.info("☁️  Persistencia: JSONBin.io" if settings.jsonbin_enabled else "☁️  Persistencia: memoria local (JSONBin sin API key)")
        return (
            JsonBinClienteRepository(client, settings.JSONBIN_CLIENTES_BIN_ID),
            JsonBinTemplateRepository(client, settings.JSONBIN_TEMPLATES_BIN_ID),
        )

    if backend != "memory":
        logger.warning(f"STORAGE_BACKEND desconocido '{backend}', usando memoria")

    from app.repositories.memory_repository import MemoryClienteRepository, MemoryTemplateRepository
    logger.info("☁️  Persistencia: memoria local")
    return MemoryClienteRepository(), MemoryTemplateRepository()
