from __future__ import annotations

import json

import pytest

from featurewatch import FeatureWatch
from featurewatch.exceptions import FeatureWatchError
from tests.fakes import FakeKeyValueStore, RecordingTransport

ENDPOINT = "https://localhost:5005/"


@pytest.mark.asyncio
async def test_requires_context_manager() -> None:
    watch = FeatureWatch(store=FakeKeyValueStore(), transport=RecordingTransport())

    with pytest.raises(FeatureWatchError, match="not started"):
        await watch.process_batch([])


@pytest.mark.asyncio
async def test_process_batch_end_to_end(store: FakeKeyValueStore, transport: RecordingTransport) -> None:
    async with FeatureWatch(store=store, transport=transport) as watch:
        await watch.register("someId", "all", ENDPOINT)
        transport.requests.clear()

        first = await watch.process_batch([{"slug": "feature", "status": "proposed"}])
        assert first[0]["justStarted"] is True
        assert len(transport.requests) == 1

        second = await watch.process_batch([{"slug": "feature", "status": "proposed"}])
        assert second[0]["justStarted"] is False
        assert second[0]["updated"] == {}
        assert len(transport.requests) == 1

        third = await watch.process_batch([{"slug": "feature", "status": "shipped"}])
        assert third[0]["updated"] == {"status": {"from": "proposed", "to": "shipped"}}
        assert len(transport.requests) == 2

        changelog = await watch.changelog()

    assert len(changelog) == 2
    assert json.loads(store.strings["status"])["feature"] == {"slug": "feature", "status": "shipped"}


@pytest.mark.asyncio
async def test_exit_leaves_injected_dependencies_usable(
    store: FakeKeyValueStore,
    transport: RecordingTransport,
) -> None:
    async with FeatureWatch(store=store, transport=transport) as watch:
        await watch.register("someId", "feature", ENDPOINT)

    with pytest.raises(FeatureWatchError):
        await watch.get_registered_features("someId")

    async with FeatureWatch(store=store, transport=transport) as watch:
        assert await watch.get_registered_features("someId") == ["feature"]
