from __future__ import annotations

import json
from datetime import UTC, datetime, timedelta, timezone

import pytest

from featurewatch.models.feature import ChangelogEntry
from featurewatch.state.changelog import ChangelogStore, timestamp_key
from tests.fakes import FakeKeyValueStore


def _dt() -> datetime:
    return datetime(2026, 1, 1, 10, 0, 0, 123456, tzinfo=UTC)


def test_timestamp_key_is_iso_utc_with_milliseconds() -> None:
    assert timestamp_key(_dt()) == "2026-01-01T10:00:00.123Z"
    local = _dt().astimezone(timezone(timedelta(hours=2)))
    assert timestamp_key(local) == "2026-01-01T10:00:00.123Z"


@pytest.mark.asyncio
async def test_empty_entry_is_not_written(store: FakeKeyValueStore, changelog: ChangelogStore) -> None:
    assert await changelog.append(ChangelogEntry()) is None
    assert "changelog" not in store.hashes


@pytest.mark.asyncio
async def test_entry_is_stored_under_its_timestamp(store: FakeKeyValueStore) -> None:
    changelog = ChangelogStore(store, clock=_dt)
    entry = ChangelogEntry(started=[{"slug": "feature", "justStarted": True}])

    key = await changelog.append(entry)

    assert key == "2026-01-01T10:00:00.123Z"
    stored = json.loads(store.hashes["changelog"][key])
    assert stored["started"][0]["slug"] == "feature"
    assert stored["updated"] == {}


@pytest.mark.asyncio
async def test_same_instant_appends_get_distinct_keys(store: FakeKeyValueStore) -> None:
    changelog = ChangelogStore(store, clock=_dt)
    first = ChangelogEntry(started=[{"slug": "one"}])
    second = ChangelogEntry(started=[{"slug": "two"}])
    third = ChangelogEntry(started=[{"slug": "three"}])

    keys = [await changelog.append(entry) for entry in (first, second, third)]

    assert keys == ["2026-01-01T10:00:00.123Z", "2026-01-01T10:00:00.123Z#1", "2026-01-01T10:00:00.123Z#2"]
    entries = await changelog.read_all()
    assert entries[keys[0]] == first
    assert entries[keys[1]] == second
    assert entries[keys[2]] == third


@pytest.mark.asyncio
async def test_read_all_returns_every_entry(changelog: ChangelogStore) -> None:
    await changelog.append(ChangelogEntry(started=[{"slug": "one"}]))
    await changelog.append(ChangelogEntry(updated={"one": {"slug": "one", "updated": {"a": {"from": 1, "to": 2}}}}))

    entries = await changelog.read_all()

    assert len(entries) == 2
    assert all(isinstance(entry, ChangelogEntry) for entry in entries.values())
