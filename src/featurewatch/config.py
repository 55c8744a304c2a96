"""Runtime configuration for featurewatch."""

from __future__ import annotations

import dataclasses
import os
from collections.abc import Callable
from typing import Any, TypeVar

from featurewatch._constants import DEFAULT_PUSH_TTL, LEGACY_ENDPOINT_PREFIX
from featurewatch.exceptions import ConfigError

T = TypeVar("T")


def _parse_env(name: str, raw: str, parser: Callable[[str], T]) -> T:
    try:
        return parser(raw.strip())
    except ValueError as exc:
        raise ConfigError(f"{name} must be a valid {parser.__name__}, got {raw!r}") from exc


@dataclasses.dataclass(frozen=True)
class WatchConfig:
    """Service configuration.

    Parameters
    ----------
    redis_url : str
        Connection URL of the key-value store.
    store_timeout : float
        Socket timeout in seconds for store commands.
    request_timeout : float
        Total timeout in seconds for one outbound push or confirmation POST.
    legacy_endpoint_prefix : str
        Endpoints starting with this prefix use the store-and-fetch protocol:
        the payload is parked in the store and the push request carries no body.
    legacy_api_key : str or None
        Server key sent as ``Authorization: key=...`` to legacy endpoints.
    push_ttl : int
        ``TTL`` header (seconds) for payload-bearing pushes.
    max_concurrent_deliveries : int
        Upper bound on in-flight device deliveries within one dispatch.
    web_host : str
        Bind address of the HTTP front end.
    web_port : int
        Bind port of the HTTP front end.
    """

    redis_url: str = "redis://localhost:6379/0"
    store_timeout: float = 5.0
    request_timeout: float = 10.0
    legacy_endpoint_prefix: str = LEGACY_ENDPOINT_PREFIX
    legacy_api_key: str | None = None
    push_ttl: int = DEFAULT_PUSH_TTL
    max_concurrent_deliveries: int = 32
    web_host: str = "0.0.0.0"  # noqa: S104
    web_port: int = 8080

    def __post_init__(self) -> None:
        if self.max_concurrent_deliveries < 1:
            raise ConfigError("max_concurrent_deliveries must be at least 1")
        if self.push_ttl < 0:
            raise ConfigError("push_ttl must not be negative")

    @classmethod
    def from_env(cls, **overrides: Any) -> WatchConfig:
        """Create configuration from ``FEATUREWATCH_*`` environment variables.

        Explicit keyword arguments override environment values.
        """
        env = os.environ

        _ENV_STR_MAP = {
            "FEATUREWATCH_REDIS_URL": "redis_url",
            "FEATUREWATCH_LEGACY_ENDPOINT_PREFIX": "legacy_endpoint_prefix",
            "FEATUREWATCH_LEGACY_API_KEY": "legacy_api_key",
            "FEATUREWATCH_WEB_HOST": "web_host",
        }
        _ENV_NUMERIC_MAP: dict[str, tuple[str, Callable[[str], Any]]] = {
            "FEATUREWATCH_STORE_TIMEOUT": ("store_timeout", float),
            "FEATUREWATCH_REQUEST_TIMEOUT": ("request_timeout", float),
            "FEATUREWATCH_PUSH_TTL": ("push_ttl", int),
            "FEATUREWATCH_MAX_CONCURRENT_DELIVERIES": ("max_concurrent_deliveries", int),
            "FEATUREWATCH_WEB_PORT": ("web_port", int),
        }

        config_kwargs: dict[str, Any] = {}
        for env_key, field_name in _ENV_STR_MAP.items():
            val = env.get(env_key)
            if val is not None and field_name not in overrides:
                config_kwargs[field_name] = val

        for env_key, (field_name, parser) in _ENV_NUMERIC_MAP.items():
            val = env.get(env_key)
            if val is not None and field_name not in overrides:
                config_kwargs[field_name] = _parse_env(env_key, val, parser)

        config_kwargs.update(overrides)

        return cls(**config_kwargs)
