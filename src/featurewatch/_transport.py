"""Outbound HTTP transport for push deliveries and registration confirmations."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Protocol

import aiohttp

from featurewatch._constants import USER_AGENT
from featurewatch.config import WatchConfig
from featurewatch.exceptions import DeliveryError

_logger = logging.getLogger(__name__)


class PushTransport(Protocol):
    """Structural transport interface used by the registry and dispatcher.

    Having a protocol here makes it easy to pass test doubles while keeping the
    production implementation (`HttpPushTransport`) concrete.
    """

    async def post(
        self,
        endpoint: str,
        *,
        body: bytes = b"",
        headers: Mapping[str, str] | None = None,
    ) -> int:
        """POST *body* to *endpoint*; return the 2xx status or raise `DeliveryError`."""
        ...


def is_legacy_endpoint(endpoint: str, prefix: str) -> bool:
    """Whether *endpoint* belongs to the store-and-fetch push relay."""
    return bool(prefix) and endpoint.startswith(prefix)


def empty_push_headers(endpoint: str, config: WatchConfig) -> dict[str, str]:
    """Headers for a body-less push. Standard push services reject one without ``TTL``."""
    if is_legacy_endpoint(endpoint, config.legacy_endpoint_prefix):
        return {}
    return {"ttl": str(config.push_ttl)}


class HttpPushTransport:
    """aiohttp-based `PushTransport`.

    Legacy endpoints receive the configured server key as an ``Authorization``
    header.
    """

    def __init__(self, config: WatchConfig, http_session: aiohttp.ClientSession) -> None:
        self._config = config
        self._http = http_session
        self._timeout = aiohttp.ClientTimeout(total=config.request_timeout)

    def _build_headers(self, endpoint: str, extra: Mapping[str, str] | None) -> dict[str, str]:
        headers: dict[str, str] = {"user-agent": USER_AGENT}
        if extra:
            headers.update(extra)
        if self._config.legacy_api_key and is_legacy_endpoint(endpoint, self._config.legacy_endpoint_prefix):
            headers["authorization"] = f"key={self._config.legacy_api_key}"
        return headers

    async def post(
        self,
        endpoint: str,
        *,
        body: bytes = b"",
        headers: Mapping[str, str] | None = None,
    ) -> int:
        request_headers = self._build_headers(endpoint, headers)

        _logger.debug("POST %s (%d bytes)", endpoint, len(body))

        try:
            async with self._http.post(
                endpoint,
                data=body,
                headers=request_headers,
                timeout=self._timeout,
            ) as resp:
                if not 200 <= resp.status < 300:
                    text = await resp.text()
                    raise DeliveryError(
                        f"HTTP {resp.status} from {endpoint}: {text[:200]}",
                        status_code=resp.status,
                        endpoint=endpoint,
                    )
                return resp.status
        except DeliveryError:
            raise
        except (aiohttp.ClientError, TimeoutError) as exc:
            raise DeliveryError(
                f"Request to {endpoint} failed: {exc!r}",
                endpoint=endpoint,
            ) from exc
