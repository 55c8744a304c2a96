"""Store-backed repository for the latest known snapshot of every feature."""

from __future__ import annotations

import copy
import json
import logging
from collections.abc import Iterable, Mapping
from typing import Any

from featurewatch._constants import NON_DIFFED_FIELDS, RESERVED_FIELDS, STATUS_KEY
from featurewatch._store import KeyValueStore
from featurewatch.models.feature import DiffResult, FeatureRecord, FieldChange, record_slug

_logger = logging.getLogger(__name__)


def _strip_reserved(record: Mapping[str, Any]) -> FeatureRecord:
    return {key: copy.deepcopy(value) for key, value in record.items() if key not in RESERVED_FIELDS}


def _as_stored(value: Any) -> Any:
    """*value* as it reads back from the snapshot blob (tuples become lists, and so on)."""
    return json.loads(json.dumps(value))


def diff_records(previous: Mapping[str, Any] | None, incoming: Mapping[str, Any]) -> DiffResult:
    """Compare *incoming* with its persisted version.

    Only fields present in *incoming* are compared; fields that disappeared are
    not reported. Incoming values are compared in their stored JSON form.
    """
    if previous is None:
        return DiffResult(just_started=True)

    updated: dict[str, FieldChange] = {}
    for name, value in incoming.items():
        if name in NON_DIFFED_FIELDS:
            continue
        before = previous.get(name)
        if name not in previous or before != _as_stored(value):
            updated[name] = FieldChange(from_=before, to=value)
    return DiffResult(just_started=False, updated=updated)


class StatusStore:
    """Latest persisted record per feature slug, held as one JSON blob.

    Nothing is cached between calls; every operation reads the store.
    """

    def __init__(self, store: KeyValueStore, *, key: str = STATUS_KEY) -> None:
        self._store = store
        self._key = key

    async def snapshot(self) -> dict[str, FeatureRecord]:
        """Return the whole persisted snapshot (empty when nothing was saved yet)."""
        raw = await self._store.get(self._key)
        if not raw:
            return {}
        data = json.loads(raw)
        if not isinstance(data, dict):
            raise ValueError(f"{self._key} does not hold a JSON object")
        return data

    async def slugs(self) -> set[str]:
        return set(await self.snapshot())

    async def diff(self, record: Mapping[str, Any]) -> DiffResult:
        """Classify *record* against the persisted snapshot. Never persists."""
        snapshot = await self.snapshot()
        return diff_records(snapshot.get(record_slug(record)), record)

    async def diff_many(self, records: Iterable[Mapping[str, Any]]) -> list[DiffResult]:
        """`diff` for a batch, reading the snapshot once."""
        snapshot = await self.snapshot()
        return [diff_records(snapshot.get(record_slug(record)), record) for record in records]

    async def commit(self, records: Iterable[Mapping[str, Any]]) -> None:
        """Upsert each record under its slug and write the snapshot back as one unit.

        Features absent from *records* keep their persisted entry.
        """
        snapshot = await self.snapshot()
        count = 0
        for record in records:
            snapshot[record_slug(record)] = _strip_reserved(record)
            count += 1
        await self._store.set(self._key, json.dumps(snapshot, separators=(",", ":")))
        _logger.debug("Committed %d records (%d features tracked)", count, len(snapshot))
