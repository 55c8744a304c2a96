"""Push dispatch outcome models."""

from __future__ import annotations

from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field


class DeliveryStatus(StrEnum):
    DELIVERED = "delivered"
    SKIPPED = "skipped"
    FAILED = "failed"


class PushProtocol(StrEnum):
    LEGACY = "legacy"
    """Store-and-fetch: empty push, payload parked for a later fetch."""
    ENCRYPTED = "encrypted"
    """Payload-bearing: encrypted body in the push request."""
    WAKE = "wake"
    """Empty push to a standard endpoint (no payload or no key material)."""


class DeliveryResult(BaseModel):
    """Outcome of one device's delivery within a dispatch."""

    model_config = ConfigDict(frozen=True)

    device_id: str
    status: DeliveryStatus
    protocol: PushProtocol | None = None
    status_code: int | None = None
    error: str | None = None


class DispatchReport(BaseModel):
    """Per-call aggregate of a `send_notifications` fan-out."""

    model_config = ConfigDict(frozen=True)

    feature: str
    is_new: bool = False
    results: list[DeliveryResult] = Field(default_factory=list)

    def _with_status(self, status: DeliveryStatus) -> list[str]:
        return sorted(r.device_id for r in self.results if r.status == status)

    @property
    def delivered(self) -> list[str]:
        return self._with_status(DeliveryStatus.DELIVERED)

    @property
    def skipped(self) -> list[str]:
        return self._with_status(DeliveryStatus.SKIPPED)

    @property
    def failed(self) -> list[str]:
        return self._with_status(DeliveryStatus.FAILED)
