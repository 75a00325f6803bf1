import os
from typing import List
from pydantic_settings import BaseSettings
from dotenv import load_dotenv

# Cargar variables de entorno desde el archivo .env
load_dotenv(encoding="utf-8")

class Settings(BaseSettings):
    # App
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")
    TIMEZONE: str = os.getenv("TIMEZONE", "America/Argentina/Buenos_Aires")
    EMISOR_NOMBRE: str = os.getenv("EMISOR_NOMBRE", "")
    EMISOR_CUIT: str = os.getenv("EMISOR_CUIT", "")

    # API
    API_HOST: str = os.getenv("API_HOST", "0.0.0.0")
    API_PORT: int = int(os.getenv("PORT", os.getenv("API_PORT", 3001)))
    CORS_ORIGINS: str = os.getenv("CORS_ORIGINS", "http://localhost:3000")

    # TusFacturas
    TUSFACTURAS_BASE_URL: str = os.getenv("TUSFACTURAS_BASE_URL", "https://www.tusfacturas.app/app/api/v2")
    TUSFACTURAS_API_KEY: str = os.getenv("TUSFACTURAS_API_KEY", os.getenv("API_KEY", ""))
    TUSFACTURAS_API_TOKEN: str = os.getenv("TUSFACTURAS_API_TOKEN", "")
    TUSFACTURAS_USER_TOKEN: str = os.getenv("TUSFACTURAS_USER_TOKEN", os.getenv("USER_TOKEN", ""))
    PUNTO_VENTA: str = os.getenv("PUNTO_VENTA", "6")

    # Persistencia: memory | jsonbin | mongo
    STORAGE_BACKEND: str = os.getenv("STORAGE_BACKEND", "jsonbin")

    # JSONBin.io
    JSONBIN_BASE_URL: str = os.getenv("JSONBIN_BASE_URL", "https://api.jsonbin.io/v3")
    JSONBIN_API_KEY: str = os.getenv("JSONBIN_API_KEY", "")
    JSONBIN_CLIENTES_BIN_ID: str = os.getenv("JSONBIN_CLIENTES_BIN_ID", "")
    JSONBIN_TEMPLATES_BIN_ID: str = os.getenv("JSONBIN_TEMPLATES_BIN_ID", "")

    # MongoDB
    MONGODB_URL: str = os.getenv("MONGODB_URL", "mongodb://localhost:27017")
    MONGODB_DATABASE: str = os.getenv("MONGODB_DATABASE", "facturacion")

    # Redis (lock de lote)
    BATCH_LOCK_USE_REDIS: bool = os.getenv("BATCH_LOCK_USE_REDIS", "false").lower() in ("1", "true", "yes")
    REDIS_HOST: str = os.getenv("REDIS_HOST", "localhost")
    REDIS_PORT: int = int(os.getenv("REDIS_PORT", 6379))
    REDIS_PASSWORD: str = os.getenv("REDIS_PASSWORD", "")
    REDIS_DB: int = int(os.getenv("REDIS_DB", 0))
    REDIS_SSL: bool = os.getenv("REDIS_SSL", "false").lower() in ("1", "true", "yes")

    model_config = {
        "env_file": ".env",
        "extra": "ignore"  # Ignorar campos adicionales en lugar de lanzar un error
    }

    @property
    def cors_origins_list(self) -> List[str]:
        return [o.strip() for o in self.CORS_ORIGINS.split(",") if o.strip()]

    @property
    def jsonbin_enabled(self) -> bool:
        return bool(self.JSONBIN_API_KEY)

settings = Settings()
