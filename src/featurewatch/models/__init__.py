"""Pydantic models for featurewatch."""

from featurewatch.models.device import Device
from featurewatch.models.dispatch import DeliveryResult, DeliveryStatus, DispatchReport, PushProtocol
from featurewatch.models.feature import (
    ChangelogEntry,
    DiffResult,
    FeatureRecord,
    FieldChange,
    has_updates,
    is_just_started,
    record_slug,
)

__all__ = [
    "ChangelogEntry",
    "DeliveryResult",
    "DeliveryStatus",
    "Device",
    "DiffResult",
    "DispatchReport",
    "FeatureRecord",
    "FieldChange",
    "PushProtocol",
    "has_updates",
    "is_just_started",
    "record_slug",
]
