"""High-level async facade wiring the state and notification layers."""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping, Sequence
from typing import Any

import aiohttp

from featurewatch._store import KeyValueStore, RedisKeyValueStore
from featurewatch._transport import HttpPushTransport, PushTransport
from featurewatch.config import WatchConfig
from featurewatch.exceptions import FeatureWatchError
from featurewatch.models.dispatch import DispatchReport
from featurewatch.models.feature import ChangelogEntry, FeatureRecord
from featurewatch.notifications.coordinator import DispatchCoordinator
from featurewatch.notifications.dispatcher import PushDispatcher
from featurewatch.notifications.registry import NotificationRegistry
from featurewatch.state.changelog import ChangelogStore
from featurewatch.state.engine import ChangeDetectionEngine
from featurewatch.state.status import StatusStore

_logger = logging.getLogger(__name__)


class _Components:
    """Everything built on top of one store and one transport."""

    def __init__(self, config: WatchConfig, store: KeyValueStore, transport: PushTransport) -> None:
        self.status = StatusStore(store)
        self.changelog = ChangelogStore(store)
        self.engine = ChangeDetectionEngine(self.status, self.changelog)
        self.registry = NotificationRegistry(store, transport, self.status, config)
        self.dispatcher = PushDispatcher(self.registry, store, transport, config)
        self.coordinator = DispatchCoordinator(self.dispatcher)


class FeatureWatch:
    """Async entry point for ingestion jobs and the HTTP front end.

    Usage::

        async with FeatureWatch(WatchConfig.from_env()) as watch:
            await watch.process_batch(records)

    A store or transport passed in is used as-is and left open on exit;
    anything created here is closed on exit.
    """

    def __init__(
        self,
        config: WatchConfig | None = None,
        *,
        store: KeyValueStore | None = None,
        transport: PushTransport | None = None,
        session: aiohttp.ClientSession | None = None,
    ) -> None:
        self._config = config or WatchConfig()
        self._store = store
        self._transport = transport
        self._http_session = session
        self._owned_store: RedisKeyValueStore | None = None
        self._owned_session: aiohttp.ClientSession | None = None
        self._components: _Components | None = None

    # ------------------------------------------------------------------
    # Context manager lifecycle
    # ------------------------------------------------------------------

    async def __aenter__(self) -> FeatureWatch:
        store = self._store
        if store is None:
            self._owned_store = RedisKeyValueStore.from_config(self._config)
            store = self._owned_store

        transport = self._transport
        if transport is None:
            session = self._http_session
            if session is None:
                self._owned_session = aiohttp.ClientSession()
                session = self._owned_session
            transport = HttpPushTransport(self._config, session)

        self._components = _Components(self._config, store, transport)
        return self

    async def __aexit__(self, *exc: Any) -> None:
        self._components = None
        if self._owned_session is not None:
            await self._owned_session.close()
            self._owned_session = None
        if self._owned_store is not None:
            await self._owned_store.aclose()
            self._owned_store = None

    def _require(self) -> _Components:
        if self._components is None:
            raise FeatureWatchError("FeatureWatch not started. Use 'async with FeatureWatch(...) as watch:'")
        return self._components

    @property
    def config(self) -> WatchConfig:
        return self._config

    @property
    def engine(self) -> ChangeDetectionEngine:
        return self._require().engine

    @property
    def registry(self) -> NotificationRegistry:
        return self._require().registry

    @property
    def dispatcher(self) -> PushDispatcher:
        return self._require().dispatcher

    # ------------------------------------------------------------------
    # Ingestion
    # ------------------------------------------------------------------

    async def process_batch(self, records: Sequence[FeatureRecord]) -> Sequence[FeatureRecord]:
        """Classify, persist, log and notify one snapshot batch."""
        components = self._require()
        records = await components.engine.check_for_new_data(records)
        records = await components.engine.save_data(records)
        reports = await components.coordinator.notify(records)
        _logger.info("Processed batch of %d records, %d notifications", len(records), len(reports))
        return records

    async def changelog(self) -> dict[str, ChangelogEntry]:
        return await self._require().changelog.read_all()

    # ------------------------------------------------------------------
    # Registry / dispatch pass-through
    # ------------------------------------------------------------------

    async def register(
        self,
        device_id: str,
        features: str | Iterable[str] | None,
        endpoint: str | None = None,
        key: str | None = None,
        auth_secret: str | None = None,
    ) -> list[str]:
        return await self._require().registry.register(device_id, features, endpoint, key, auth_secret)

    async def unregister(self, device_id: str, features: str | Iterable[str] | None = None) -> None:
        await self._require().registry.unregister(device_id, features)

    async def update_device(
        self,
        device_id: str,
        endpoint: str | None,
        key: str | None = None,
        auth_secret: str | None = None,
    ) -> None:
        await self._require().registry.update_device(device_id, endpoint, key, auth_secret)

    async def get_registered_features(self, device_id: str) -> list[str]:
        return await self._require().registry.get_registered_features(device_id)

    async def send_notifications(
        self,
        feature: str,
        payload: Mapping[str, Any] | None,
        is_new: bool = False,
    ) -> DispatchReport:
        return await self._require().dispatcher.send_notifications(feature, payload, is_new)

    async def get_payload(self, device_id: str) -> Any | None:
        return await self._require().dispatcher.get_payload(device_id)
