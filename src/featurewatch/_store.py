"""Key-value store access.

The store is the single source of truth and synchronization point; nothing in
featurewatch caches store data in-process.
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Mapping
from typing import Protocol, TypeVar

from redis.asyncio import Redis
from redis.exceptions import RedisError

from featurewatch.config import WatchConfig
from featurewatch.exceptions import StoreError

_logger = logging.getLogger(__name__)

T = TypeVar("T")


class KeyValueStore(Protocol):
    """Structural store interface used by the repositories.

    Having a protocol here makes it easy to pass in-memory test doubles while
    keeping the production implementation (`RedisKeyValueStore`) concrete.
    All values are strings.
    """

    async def get(self, key: str) -> str | None: ...

    async def set(self, key: str, value: str) -> None: ...

    async def getdel(self, key: str) -> str | None: ...

    async def delete(self, *keys: str) -> int: ...

    async def exists(self, key: str) -> bool: ...

    async def hget(self, key: str, field: str) -> str | None: ...

    async def hgetall(self, key: str) -> dict[str, str]: ...

    async def hset(self, key: str, mapping: Mapping[str, str]) -> None: ...

    async def hsetnx(self, key: str, field: str, value: str) -> bool: ...

    async def sadd(self, key: str, *members: str) -> int: ...

    async def srem(self, key: str, *members: str) -> int: ...

    async def smembers(self, key: str) -> set[str]: ...


class RedisKeyValueStore:
    """`KeyValueStore` backed by a ``redis.asyncio`` client.

    Every command failure is re-raised as :class:`StoreError`; no retries are
    attempted here.
    """

    def __init__(self, client: Redis) -> None:
        self._client = client

    @classmethod
    def from_config(cls, config: WatchConfig) -> RedisKeyValueStore:
        client = Redis.from_url(
            config.redis_url,
            decode_responses=True,
            socket_timeout=config.store_timeout,
            socket_connect_timeout=config.store_timeout,
        )
        return cls(client)

    @property
    def client(self) -> Redis:
        return self._client

    async def aclose(self) -> None:
        await self._client.aclose()

    async def _run(self, command: str, key: str, awaitable: Awaitable[T]) -> T:
        _logger.debug("%s %s", command, key)
        try:
            return await awaitable
        except RedisError as exc:
            raise StoreError(f"{command} {key} failed: {exc}", key=key) from exc

    async def get(self, key: str) -> str | None:
        return await self._run("GET", key, self._client.get(key))

    async def set(self, key: str, value: str) -> None:
        await self._run("SET", key, self._client.set(key, value))

    async def getdel(self, key: str) -> str | None:
        return await self._run("GETDEL", key, self._client.getdel(key))

    async def delete(self, *keys: str) -> int:
        if not keys:
            return 0
        return int(await self._run("DEL", " ".join(keys), self._client.delete(*keys)))

    async def exists(self, key: str) -> bool:
        return bool(await self._run("EXISTS", key, self._client.exists(key)))

    async def hget(self, key: str, field: str) -> str | None:
        return await self._run("HGET", key, self._client.hget(key, field))

    async def hgetall(self, key: str) -> dict[str, str]:
        return dict(await self._run("HGETALL", key, self._client.hgetall(key)))

    async def hset(self, key: str, mapping: Mapping[str, str]) -> None:
        await self._run("HSET", key, self._client.hset(key, mapping=dict(mapping)))

    async def hsetnx(self, key: str, field: str, value: str) -> bool:
        return bool(await self._run("HSETNX", key, self._client.hsetnx(key, field, value)))

    async def sadd(self, key: str, *members: str) -> int:
        if not members:
            return 0
        return int(await self._run("SADD", key, self._client.sadd(key, *members)))

    async def srem(self, key: str, *members: str) -> int:
        if not members:
            return 0
        return int(await self._run("SREM", key, self._client.srem(key, *members)))

    async def smembers(self, key: str) -> set[str]:
        return set(await self._run("SMEMBERS", key, self._client.smembers(key)))
