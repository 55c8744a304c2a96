from __future__ import annotations

import pytest
from cryptography.hazmat.primitives.asymmetric import ec

from featurewatch.config import WatchConfig
from featurewatch.notifications.coordinator import DispatchCoordinator
from featurewatch.notifications.dispatcher import PushDispatcher
from featurewatch.notifications.registry import NotificationRegistry
from featurewatch.state.changelog import ChangelogStore
from featurewatch.state.engine import ChangeDetectionEngine
from featurewatch.state.status import StatusStore
from tests.fakes import FakeKeyValueStore, RecordingTransport, Subscriber


@pytest.fixture
def subscriber() -> Subscriber:
    return Subscriber(private_key=ec.generate_private_key(ec.SECP256R1()), auth_bytes=bytes(range(16)))


@pytest.fixture
def config() -> WatchConfig:
    return WatchConfig()


@pytest.fixture
def store() -> FakeKeyValueStore:
    return FakeKeyValueStore()


@pytest.fixture
def transport() -> RecordingTransport:
    return RecordingTransport()


@pytest.fixture
def status(store: FakeKeyValueStore) -> StatusStore:
    return StatusStore(store)


@pytest.fixture
def changelog(store: FakeKeyValueStore) -> ChangelogStore:
    return ChangelogStore(store)


@pytest.fixture
def engine(status: StatusStore, changelog: ChangelogStore) -> ChangeDetectionEngine:
    return ChangeDetectionEngine(status, changelog)


@pytest.fixture
def registry(
    store: FakeKeyValueStore,
    transport: RecordingTransport,
    status: StatusStore,
    config: WatchConfig,
) -> NotificationRegistry:
    return NotificationRegistry(store, transport, status, config)


@pytest.fixture
def dispatcher(
    registry: NotificationRegistry,
    store: FakeKeyValueStore,
    transport: RecordingTransport,
    config: WatchConfig,
) -> PushDispatcher:
    return PushDispatcher(registry, store, transport, config)


@pytest.fixture
def coordinator(dispatcher: PushDispatcher) -> DispatchCoordinator:
    return DispatchCoordinator(dispatcher)
