"""Push subscriber device model."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class Device(BaseModel):
    """Connection details of a subscriber device."""

    model_config = ConfigDict(
        frozen=True,
        extra="ignore",
        populate_by_name=True,
        str_strip_whitespace=True,
    )

    id: str
    endpoint: str
    """URL the push protocol delivers to."""

    key: str = ""
    """Subscriber P-256 public key (URL-safe base64), empty when unknown."""

    auth_secret: str = Field(default="", alias="authSecret")
    """Shared auth secret (URL-safe base64), empty when unknown."""

    @property
    def has_encryption_keys(self) -> bool:
        """Whether a payload can be encrypted for this device."""
        return bool(self.key and self.auth_secret)

    def connection_hash(self) -> dict[str, str]:
        """Field mapping stored under ``device-<id>``."""
        return {"endpoint": self.endpoint, "key": self.key, "authSecret": self.auth_secret}
