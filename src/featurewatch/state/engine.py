"""Change detection over feature snapshots."""

from __future__ import annotations

import logging
from collections.abc import Sequence

from featurewatch.models.feature import ChangelogEntry, FeatureRecord
from featurewatch.state.changelog import ChangelogStore
from featurewatch.state.status import StatusStore

_logger = logging.getLogger(__name__)


class ChangeDetectionEngine:
    """Classify incoming records, then persist them and log what changed.

    Usage::

        records = await engine.check_for_new_data(records)
        records = await engine.save_data(records)
    """

    def __init__(self, status: StatusStore, changelog: ChangelogStore) -> None:
        self._status = status
        self._changelog = changelog

    async def check_for_new_data(self, records: Sequence[FeatureRecord]) -> Sequence[FeatureRecord]:
        """Write ``updated``/``justStarted`` into each record and return them.

        Pure classification: nothing is persisted, so repeated calls are safe.
        """
        results = await self._status.diff_many(records)
        for record, result in zip(records, results, strict=True):
            result.apply_to(record)
        return records

    async def save_data(self, records: Sequence[FeatureRecord]) -> Sequence[FeatureRecord]:
        """Persist classified records and append one changelog entry for the batch.

        Returns *records* unchanged so the batch can be handed to dispatch.
        """
        await self._status.commit(records)
        entry = ChangelogEntry.from_records(records)
        key = await self._changelog.append(entry)
        if key is None:
            _logger.debug("Batch of %d records had no changes to log", len(records))
        return records
