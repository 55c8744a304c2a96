"""In-process test doubles for the store and the push transport."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field

from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import ec

from featurewatch._crypto.webpush import urlsafe_b64encode
from featurewatch.exceptions import DeliveryError, StoreError


@dataclass
class FakeKeyValueStore:
    """In-memory stand-in for the Redis-backed store (same empty-collection semantics)."""

    strings: dict[str, str] = field(default_factory=dict)
    hashes: dict[str, dict[str, str]] = field(default_factory=dict)
    sets: dict[str, set[str]] = field(default_factory=dict)
    unavailable: bool = False

    def _check(self, key: str) -> None:
        if self.unavailable:
            raise StoreError(f"store unavailable for {key}", key=key)

    async def get(self, key: str) -> str | None:
        self._check(key)
        return self.strings.get(key)

    async def set(self, key: str, value: str) -> None:
        self._check(key)
        self.strings[key] = value

    async def getdel(self, key: str) -> str | None:
        self._check(key)
        return self.strings.pop(key, None)

    async def delete(self, *keys: str) -> int:
        removed = 0
        for key in keys:
            self._check(key)
            for bucket in (self.strings, self.hashes, self.sets):
                if key in bucket:
                    del bucket[key]
                    removed += 1
        return removed

    async def exists(self, key: str) -> bool:
        self._check(key)
        return key in self.strings or key in self.hashes or key in self.sets

    async def hget(self, key: str, field: str) -> str | None:
        self._check(key)
        return self.hashes.get(key, {}).get(field)

    async def hgetall(self, key: str) -> dict[str, str]:
        self._check(key)
        return dict(self.hashes.get(key, {}))

    async def hset(self, key: str, mapping: Mapping[str, str]) -> None:
        self._check(key)
        self.hashes.setdefault(key, {}).update(mapping)

    async def hsetnx(self, key: str, field: str, value: str) -> bool:
        self._check(key)
        bucket = self.hashes.setdefault(key, {})
        if field in bucket:
            return False
        bucket[field] = value
        return True

    async def sadd(self, key: str, *members: str) -> int:
        self._check(key)
        if not members:
            return 0
        bucket = self.sets.setdefault(key, set())
        before = len(bucket)
        bucket.update(members)
        return len(bucket) - before

    async def srem(self, key: str, *members: str) -> int:
        self._check(key)
        bucket = self.sets.get(key)
        if not bucket:
            return 0
        before = len(bucket)
        bucket.difference_update(members)
        if not bucket:
            del self.sets[key]
        return before - len(bucket)

    async def smembers(self, key: str) -> set[str]:
        self._check(key)
        return set(self.sets.get(key, set()))


@dataclass
class PostedRequest:
    endpoint: str
    body: bytes
    headers: dict[str, str]


@dataclass
class RecordingTransport:
    """Push transport double that records every POST.

    Endpoints listed in ``failures`` answer with that HTTP status, which the
    real transport turns into a `DeliveryError`.
    """

    requests: list[PostedRequest] = field(default_factory=list)
    failures: dict[str, int] = field(default_factory=dict)

    async def post(
        self,
        endpoint: str,
        *,
        body: bytes = b"",
        headers: Mapping[str, str] | None = None,
    ) -> int:
        self.requests.append(PostedRequest(endpoint=endpoint, body=body, headers=dict(headers or {})))
        status = self.failures.get(endpoint)
        if status is not None:
            raise DeliveryError(f"HTTP {status} from {endpoint}", status_code=status, endpoint=endpoint)
        return 201

    def posts_to(self, endpoint: str) -> list[PostedRequest]:
        return [r for r in self.requests if r.endpoint == endpoint]


@dataclass(frozen=True)
class Subscriber:
    private_key: ec.EllipticCurvePrivateKey
    auth_bytes: bytes

    @property
    def public_bytes(self) -> bytes:
        return self.private_key.public_key().public_bytes(
            serialization.Encoding.X962,
            serialization.PublicFormat.UncompressedPoint,
        )

    @property
    def key(self) -> str:
        return urlsafe_b64encode(self.public_bytes)

    @property
    def auth(self) -> str:
        return urlsafe_b64encode(self.auth_bytes)


