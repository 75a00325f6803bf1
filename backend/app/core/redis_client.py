"""
Redis Client Singleton

Proporciona una conexión compartida a Redis. Se usa únicamente para el
lock distribuido del lote de envío de facturas.
"""
import logging
from typing import Optional
import redis

from app.config.settings import settings

logger = logging.getLogger(__name__)

_redis_client: Optional[redis.Redis] = None


def get_redis_client() -> redis.Redis:
    """
    Obtiene una instancia singleton del cliente Redis (respuestas decodificadas).

    Returns:
        redis.Redis: Cliente Redis conectado.
    """
    global _redis_client

    if _redis_client is None:
        try:
            client = redis.Redis(
                host=settings.REDIS_HOST,
                port=settings.REDIS_PORT,
                password=settings.REDIS_PASSWORD or None,
                ssl=settings.REDIS_SSL,
                db=settings.REDIS_DB,
                decode_responses=True,
                socket_connect_timeout=5,
                socket_timeout=5,
                retry_on_timeout=True
            )
            client.ping()
            logger.info(f"✅ Conexión Redis establecida: {settings.REDIS_HOST}:{settings.REDIS_PORT}")
            _redis_client = client
        except redis.ConnectionError as e:
            logger.error(f"❌ Error conectando a Redis: {e}")
            raise

    return _redis_client


def close_redis_client() -> None:
    """Cierra la conexión Redis si existe."""
    global _redis_client

    if _redis_client is not None:
        try:
            _redis_client.close()
            logger.info("🔌 Conexión Redis cerrada")
        except Exception as e:
            logger.warning(f"Error cerrando Redis: {e}")
        finally:
            _redis_client = None
