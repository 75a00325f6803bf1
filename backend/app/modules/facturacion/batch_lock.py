"""
Lock de lote de envío.

Garantiza que haya a lo sumo un lote de facturas en curso sobre la misma
colección de templates. Con BATCH_LOCK_USE_REDIS=true se usa un lock de
Redis (SET NX + TTL) para cubrir múltiples réplicas; si Redis no está
disponible cae a un threading.Lock local (válido para una sola instancia).

El lock no bloquea: si está tomado, `acquire()` devuelve False al instante.
En Redis cada toma guarda un token propio: el TTL se renueva con `refresh()`
antes de cada template y `release()` sólo borra la clave si el token sigue
siendo el nuestro.
"""
from __future__ import annotations

import logging
import threading
import uuid
from contextlib import contextmanager
from typing import Iterator, Optional

from app.config.settings import settings
from app.config.timeouts import BATCH_LOCK_TTL_SECONDS
from app.core.exceptions import BatchInProgressError

logger = logging.getLogger(__name__)

# Borra / renueva la clave sólo si todavía contiene nuestro token.
RELEASE_SCRIPT = """
if redis.call("get", KEYS[1]) == ARGV[1] then
    return redis.call("del", KEYS[1])
end
return 0
"""

REFRESH_SCRIPT = """
if redis.call("get", KEYS[1]) == ARGV[1] then
    return redis.call("expire", KEYS[1], ARGV[2])
end
return 0
"""


class BatchLock:
    REDIS_KEY = "facturacion:batch_lock"

    def __init__(self, use_redis: bool = False, redis_client=None, ttl_seconds: int = BATCH_LOCK_TTL_SECONDS) -> None:
        self._redis = None
        self._local_lock = threading.Lock()
        self._use_redis = False
        self._token: Optional[str] = None
        self.ttl_seconds = ttl_seconds
        if redis_client is not None:
            self._redis = redis_client
            self._use_redis = True
        elif use_redis:
            self._init_redis()

    def _init_redis(self) -> None:
        try:
            from app.core.redis_client import get_redis_client
            self._redis = get_redis_client()
            self._use_redis = True
            logger.info("✅ BatchLock: usando Redis distributed lock")
        except Exception as e:
            logger.warning(f"⚠️ BatchLock: Redis no disponible, usando threading.Lock local: {e}")
            self._use_redis = False

    def acquire(self) -> bool:
        if self._use_redis and self._redis:
            token = uuid.uuid4().hex
            try:
                acquired = bool(self._redis.set(self.REDIS_KEY, token, nx=True, ex=self.ttl_seconds))
            except Exception as e:
                logger.warning(f"⚠️ Redis lock error, cayendo a lock local: {e}")
                self._use_redis = False
            else:
                if acquired:
                    self._token = token
                return acquired
        return self._local_lock.acquire(blocking=False)

    def refresh(self) -> bool:
        """Renueva el TTL del lock en Redis. Devuelve False si el lock ya no es nuestro."""
        if not (self._use_redis and self._redis and self._token):
            return True
        try:
            vigente = bool(self._redis.eval(REFRESH_SCRIPT, 1, self.REDIS_KEY, self._token, self.ttl_seconds))
        except Exception as e:
            logger.warning(f"⚠️ No se pudo renovar el lock en Redis: {e}")
            return False
        if not vigente:
            logger.warning("⚠️ El lock de lote expiró o fue tomado por otro proceso")
        return vigente

    def release(self) -> None:
        if self._use_redis and self._redis:
            token, self._token = self._token, None
            if token is None:
                return
            try:
                if not self._redis.eval(RELEASE_SCRIPT, 1, self.REDIS_KEY, token):
                    logger.warning("⚠️ El lock de lote ya no era nuestro al liberarlo")
                return
            except Exception as e:
                logger.warning(f"⚠️ Error liberando lock en Redis: {e}")
        if self._local_lock.locked():
            self._local_lock.release()

    def locked(self) -> bool:
        if self._use_redis and self._redis:
            try:
                return bool(self._redis.exists(self.REDIS_KEY))
            except Exception:
                return False
        return self._local_lock.locked()

    @contextmanager
    def hold(self) -> Iterator[None]:
        """Context manager: lanza BatchInProgressError si otro lote está en curso."""
        if not self.acquire():
            raise BatchInProgressError("Ya hay un envío de facturas en curso. Intente nuevamente en unos minutos.")
        try:
            yield
        finally:
            self.release()


BATCH_LOCK = BatchLock(use_redis=settings.BATCH_LOCK_USE_REDIS)
