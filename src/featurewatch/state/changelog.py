"""Append-only changelog keyed by creation time."""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import UTC, datetime

from featurewatch._constants import CHANGELOG_KEY
from featurewatch._store import KeyValueStore
from featurewatch.models.feature import ChangelogEntry

_logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(UTC)


def timestamp_key(moment: datetime) -> str:
    """ISO-8601 UTC key with millisecond precision, e.g. ``2026-01-01T10:00:00.000Z``."""
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=UTC)
    text = moment.astimezone(UTC).isoformat(timespec="milliseconds")
    return text.replace("+00:00", "Z")


class ChangelogStore:
    """Hash of changelog entries, one field per append.

    Two appends landing on the same millisecond get distinct fields: the later
    one is suffixed with ``#1``, ``#2``, ... Fields are written with
    set-if-absent, so an existing entry is never overwritten.
    """

    def __init__(
        self,
        store: KeyValueStore,
        *,
        key: str = CHANGELOG_KEY,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._store = store
        self._key = key
        self._clock = clock

    async def append(self, entry: ChangelogEntry) -> str | None:
        """Write *entry*; return the field it was stored under, or ``None`` if empty."""
        if entry.is_empty:
            return None

        base = timestamp_key(self._clock())
        value = entry.model_dump_json()
        field = base
        suffix = 0
        while not await self._store.hsetnx(self._key, field, value):
            suffix += 1
            field = f"{base}#{suffix}"

        _logger.info(
            "Changelog %s: %d started, %d updated",
            field,
            len(entry.started),
            len(entry.updated),
        )
        return field

    async def read_all(self) -> dict[str, ChangelogEntry]:
        """Every stored entry by key. Sort the keys if order matters."""
        raw = await self._store.hgetall(self._key)
        return {field: ChangelogEntry.model_validate_json(value) for field, value in raw.items()}
