"""Custom exception hierarchy for featurewatch."""

from __future__ import annotations


class FeatureWatchError(Exception):
    """Base exception for all featurewatch errors."""


class ConfigError(FeatureWatchError):
    """Invalid or missing configuration."""


class ValidationError(FeatureWatchError):
    """Caller supplied insufficient input (missing endpoint, empty features)."""


class NotFoundError(FeatureWatchError):
    """Operation targets a device with no registration state."""

    def __init__(self, message: str = "Not Found", *, device_id: str = "") -> None:
        self.device_id = device_id
        super().__init__(message)


class DeliveryError(FeatureWatchError):
    """A single push or confirmation POST failed (non-2xx or transport error).

    Delivery failures are isolated to the device being dispatched to and are
    never raised out of a notification batch.
    """

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        endpoint: str = "",
    ) -> None:
        self.status_code = status_code
        self.endpoint = endpoint
        super().__init__(message)


class PushCryptoError(DeliveryError):
    """Payload encryption failed for a device (unusable key material)."""


class StoreError(FeatureWatchError):
    """The key-value store is unreachable or rejected a command."""

    def __init__(self, message: str, *, key: str = "") -> None:
        self.key = key
        super().__init__(message)
