"""Turn a saved batch into push notifications."""

from __future__ import annotations

import asyncio
from collections.abc import Iterable

from featurewatch.models.dispatch import DispatchReport
from featurewatch.models.feature import FeatureRecord, has_updates, is_just_started, record_slug
from featurewatch.notifications.dispatcher import PushDispatcher


class DispatchCoordinator:
    def __init__(self, dispatcher: PushDispatcher) -> None:
        self._dispatcher = dispatcher

    async def notify(self, records: Iterable[FeatureRecord]) -> list[DispatchReport]:
        """Dispatch for every started or updated record; skip the rest.

        Returns one report per dispatched feature, empty if nothing needed
        notifying (in which case no outbound call is made). Every dispatch
        settles before a store failure from any of them is raised.
        """
        jobs = []
        for record in records:
            if is_just_started(record):
                jobs.append(self._dispatcher.send_notifications(record_slug(record), record, True))
            elif has_updates(record):
                jobs.append(self._dispatcher.send_notifications(record_slug(record), record, False))
        if not jobs:
            return []
        outcomes = await asyncio.gather(*jobs, return_exceptions=True)
        reports: list[DispatchReport] = []
        for outcome in outcomes:
            if isinstance(outcome, BaseException):
                raise outcome
            reports.append(outcome)
        return reports
