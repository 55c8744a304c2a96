"""Feature snapshot, diff and changelog models.

Feature records themselves stay plain ``dict`` objects: apart from ``slug`` their
fields are opaque to featurewatch. Only the values computed about them are
modelled here.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from featurewatch._constants import JUST_STARTED_FIELD, SLUG_FIELD, UPDATED_FIELD

FeatureRecord = dict[str, Any]


def record_slug(record: Mapping[str, Any]) -> str:
    """Return the identifying slug of a feature record."""
    slug = record.get(SLUG_FIELD)
    if not isinstance(slug, str) or not slug.strip():
        raise ValueError(f"feature record has no usable slug: {slug!r}")
    return slug


def is_just_started(record: Mapping[str, Any]) -> bool:
    return bool(record.get(JUST_STARTED_FIELD))


def has_updates(record: Mapping[str, Any]) -> bool:
    """Whether a classified record changed and was not just started."""
    return bool(record.get(UPDATED_FIELD)) and not is_just_started(record)


class FieldChange(BaseModel):
    """Old and new value of one changed field.

    ``from`` is ``None`` when the field was not present in the persisted record.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    from_: Any = Field(default=None, alias="from")
    to: Any = None


class DiffResult(BaseModel):
    """Outcome of comparing an incoming record with its persisted version."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    just_started: bool = Field(default=False, alias="justStarted")
    updated: dict[str, FieldChange] = Field(default_factory=dict)

    def apply_to(self, record: FeatureRecord) -> FeatureRecord:
        """Write the reserved ``updated``/``justStarted`` fields into *record*."""
        record[UPDATED_FIELD] = {name: change.model_dump(by_alias=True) for name, change in self.updated.items()}
        record[JUST_STARTED_FIELD] = self.just_started
        return record


class ChangelogEntry(BaseModel):
    """Everything that started or changed in one batch. Never mutated once written."""

    model_config = ConfigDict(frozen=True)

    started: list[FeatureRecord] = Field(default_factory=list)
    updated: dict[str, FeatureRecord] = Field(default_factory=dict)

    @property
    def is_empty(self) -> bool:
        return not self.started and not self.updated

    @classmethod
    def from_records(cls, records: Iterable[FeatureRecord]) -> ChangelogEntry:
        """Build the entry for a classified batch.

        A just-started record only ever lands in ``started``.
        """
        started: list[FeatureRecord] = []
        updated: dict[str, FeatureRecord] = {}
        for record in records:
            if is_just_started(record):
                started.append(record)
            elif has_updates(record):
                updated[record_slug(record)] = record
        return cls(started=started, updated=updated)
