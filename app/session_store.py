import logging
import time

import redis.asyncio as redis

from app.config import settings

logger = logging.getLogger(__name__)

KEY_PREFIX = "assistant:session:"


class SessionStore:
    """
    Registry of live conversational sessions, keyed by the session handle
    the caller passes on every message.

    Backed by Redis (one key per handle, expiring after ``SESSION_TTL``
    idle seconds) when a connection is available.  Without Redis, or when
    a Redis call fails, the handles live in a process-local map with the
    same expiry, so the API keeps working on a single instance.
    """

    def __init__(self, ttl: int | None = None) -> None:
        self._redis: redis.Redis | None = None
        self._local: dict[str, float] = {}
        self.ttl = ttl if ttl is not None else settings.SESSION_TTL
        self._clock = time.monotonic

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def connect(self) -> None:
        """Open the connection pool.  Called once at application startup."""
        self._redis = redis.from_url(
            settings.REDIS_URL,
            decode_responses=True,
            socket_connect_timeout=2,
            socket_timeout=2,
        )
        try:
            await self._redis.ping()
            logger.info("Redis connected: %s", settings.REDIS_URL)
        except Exception as exc:  # pragma: no cover
            logger.warning("Redis ping failed — using in-process sessions: %s", exc)
            await self._redis.aclose()
            self._redis = None

    async def disconnect(self) -> None:
        """Close the connection pool.  Called once at application shutdown."""
        if self._redis:
            await self._redis.aclose()
            self._redis = None

    # ------------------------------------------------------------------
    # Session handles
    # ------------------------------------------------------------------

    async def register(self, session_id: str) -> None:
        self._sweep()
        if self._redis:
            try:
                await self._redis.set(KEY_PREFIX + session_id, "1", ex=self.ttl)
                return
            except Exception as exc:
                logger.warning("Session SET failed for %r: %s", session_id, exc)
        self._local[session_id] = self._clock() + self.ttl

    async def exists(self, session_id: str) -> bool:
        # A handle registered during a Redis outage lives only in the local
        # map, so a Redis miss still falls through to it.
        if self._redis:
            try:
                if await self._redis.exists(KEY_PREFIX + session_id):
                    return True
            except Exception as exc:
                logger.warning("Session EXISTS failed for %r: %s", session_id, exc)
        return self._local_alive(session_id)

    async def touch(self, session_id: str) -> None:
        """Restart the idle timer of a live session."""
        if self._redis:
            try:
                if await self._redis.expire(KEY_PREFIX + session_id, self.ttl):
                    return
            except Exception as exc:
                logger.warning("Session EXPIRE failed for %r: %s", session_id, exc)
        if self._local_alive(session_id):
            self._local[session_id] = self._clock() + self.ttl

    async def discard(self, session_id: str) -> None:
        if self._redis:
            try:
                await self._redis.delete(KEY_PREFIX + session_id)
            except Exception as exc:
                logger.warning("Session DELETE failed for %r: %s", session_id, exc)
        self._local.pop(session_id, None)

    # ------------------------------------------------------------------
    # Local map
    # ------------------------------------------------------------------

    def _local_alive(self, session_id: str) -> bool:
        expires_at = self._local.get(session_id)
        if expires_at is None:
            return False
        if expires_at <= self._clock():
            del self._local[session_id]
            return False
        return True

    def _sweep(self) -> None:
        """Drop every expired handle from the local map."""
        now = self._clock()
        self._local = {key: expires_at for key, expires_at in self._local.items() if expires_at > now}


# Module-level singleton shared across all request handlers.
sessions = SessionStore()
