import logging
import threading
import time
from dataclasses import dataclass
from typing import Any, Callable, Protocol

from redis.asyncio import Redis
from redis.asyncio.cluster import RedisCluster
from redis.exceptions import RedisError

from cgn_otp.services.exceptions import TransportError

from .config import Settings

logger = logging.getLogger(__name__)

REDIS_DEFAULT_PORT = 6379
REDIS_DEFAULT_TLS_PORT = 6380


class KeyValueStore(Protocol):
    async def get(self, key: str) -> str | None:
        ...

    async def set_with_expiry(self, key: str, value: str, ttl_seconds: int) -> bool:
        ...

    async def delete(self, key: str) -> bool:
        ...

    async def exists(self, key: str) -> bool:
        ...


def single_string_reply(reply: Any) -> bool:
    """Parse a Redis simple string reply (``SET`` answers ``OK``)."""

    return reply is True or reply in ("OK", b"OK")


def integer_reply(reply: Any, expected: int | None = None) -> bool:
    """Parse a Redis integer reply, optionally requiring an exact value."""

    if expected is not None and reply != expected:
        return False
    return isinstance(reply, int) and not isinstance(reply, bool)


def falsy_response_to_error(response: bool, error: Exception) -> bool:
    if not response:
        raise error
    return True


def _as_text(reply: Any) -> str | None:
    if reply is None:
        return None
    if isinstance(reply, bytes):
        return reply.decode("utf-8")
    return str(reply)


class RedisKeyValueStore:
    def __init__(self, client: Redis | RedisCluster):
        self.client = client

    async def get(self, key: str) -> str | None:
        try:
            reply = await self.client.get(key)
        except (RedisError, OSError) as exc:
            raise TransportError(f"Cannot get key {key}: {exc}") from exc
        return _as_text(reply)

    async def set_with_expiry(self, key: str, value: str, ttl_seconds: int) -> bool:
        try:
            reply = await self.client.set(key, value, ex=ttl_seconds)
        except (RedisError, OSError) as exc:
            raise TransportError(f"Cannot set key {key}: {exc}") from exc
        return falsy_response_to_error(
            single_string_reply(reply),
            TransportError(f"Unexpected reply while setting key {key}: {reply!r}"),
        )

    async def delete(self, key: str) -> bool:
        try:
            reply = await self.client.delete(key)
        except (RedisError, OSError) as exc:
            raise TransportError(f"Cannot delete key {key}: {exc}") from exc
        return integer_reply(reply, 1)

    async def exists(self, key: str) -> bool:
        try:
            reply = await self.client.exists(key)
        except (RedisError, OSError) as exc:
            raise TransportError(f"Cannot check key {key}: {exc}") from exc
        return integer_reply(reply) and reply > 0

    async def close(self) -> None:
        await self.client.aclose()


@dataclass
class _InMemoryEntry:
    value: str
    expires_at: float


class InMemoryKeyValueStore:
    """Process-local store with lazy TTL expiry, for tests and dry runs."""

    def __init__(self, clock: Callable[[], float] = time.time) -> None:
        self._data: dict[str, _InMemoryEntry] = {}
        self._lock = threading.Lock()
        self._clock = clock

    def _live_entry(self, key: str) -> _InMemoryEntry | None:
        entry = self._data.get(key)
        if not entry:
            return None
        if entry.expires_at <= self._clock():
            self._data.pop(key, None)
            return None
        return entry

    def ttl(self, key: str) -> float | None:
        with self._lock:
            entry = self._live_entry(key)
            if entry is None:
                return None
            return entry.expires_at - self._clock()

    async def get(self, key: str) -> str | None:
        with self._lock:
            entry = self._live_entry(key)
            return entry.value if entry else None

    async def set_with_expiry(self, key: str, value: str, ttl_seconds: int) -> bool:
        if ttl_seconds < 0:
            raise TransportError(f"Invalid expire time for key {key}: {ttl_seconds}")
        with self._lock:
            self._data[key] = _InMemoryEntry(value=value, expires_at=self._clock() + ttl_seconds)
        return True

    async def delete(self, key: str) -> bool:
        with self._lock:
            entry = self._live_entry(key)
            self._data.pop(key, None)
            return entry is not None

    async def exists(self, key: str) -> bool:
        with self._lock:
            return self._live_entry(key) is not None

    async def close(self) -> None:
        with self._lock:
            self._data.clear()


def create_redis_client(settings: Settings) -> Redis | RedisCluster:
    url = settings.REDIS_URL
    if "://" in url:
        options: dict[str, Any] = {"decode_responses": True}
        if settings.REDIS_PASSWORD:
            options["password"] = settings.REDIS_PASSWORD
        if settings.REDIS_CLUSTER_ENABLED:
            return RedisCluster.from_url(url, **options)
        return Redis.from_url(url, **options)

    default_port = REDIS_DEFAULT_TLS_PORT if settings.REDIS_TLS_ENABLED else REDIS_DEFAULT_PORT
    options = {
        "host": url,
        "port": settings.REDIS_PORT or default_port,
        "password": settings.REDIS_PASSWORD,
        "ssl": settings.REDIS_TLS_ENABLED,
        "decode_responses": True,
    }
    if settings.REDIS_CLUSTER_ENABLED:
        return RedisCluster(**options)
    return Redis(**options)


def create_store(settings: Settings, *, in_memory: bool = False) -> RedisKeyValueStore | InMemoryKeyValueStore:
    if in_memory:
        logger.info("Using in-memory key-value store.")
        return InMemoryKeyValueStore()
    client = create_redis_client(settings)
    logger.info(
        "Using Redis key-value store (cluster=%s, tls=%s).",
        settings.REDIS_CLUSTER_ENABLED,
        settings.REDIS_TLS_ENABLED,
    )
    return RedisKeyValueStore(client)
