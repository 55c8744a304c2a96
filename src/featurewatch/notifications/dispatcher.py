"""Push fan-out to registered devices."""

from __future__ import annotations

import asyncio
import json
import logging
from collections.abc import Mapping
from typing import Any

from featurewatch._constants import ALL_FEATURES, NEW_FEATURES, payload_key
from featurewatch._crypto.webpush import encrypt_payload
from featurewatch._store import KeyValueStore
from featurewatch._transport import PushTransport, empty_push_headers, is_legacy_endpoint
from featurewatch.config import WatchConfig
from featurewatch.exceptions import DeliveryError
from featurewatch.models.dispatch import DeliveryResult, DeliveryStatus, DispatchReport, PushProtocol
from featurewatch.notifications.registry import NotificationRegistry

_logger = logging.getLogger(__name__)


class PushDispatcher:
    """Deliver one message per target device, choosing the protocol by endpoint.

    Every device is an independent task: one failing or slow device neither
    cancels nor fails the others. Delivery failures end up in the returned
    `DispatchReport`; store failures propagate.
    """

    def __init__(
        self,
        registry: NotificationRegistry,
        store: KeyValueStore,
        transport: PushTransport,
        config: WatchConfig,
    ) -> None:
        self._registry = registry
        self._store = store
        self._transport = transport
        self._config = config

    async def resolve_targets(self, feature: str, include_new: bool) -> set[str]:
        """Devices registered to *feature* or ``all``, plus ``new`` when *include_new*."""
        buckets = [feature, ALL_FEATURES]
        if include_new:
            buckets.append(NEW_FEATURES)
        targets: set[str] = set()
        for slug in buckets:
            targets |= await self._registry.devices_for(slug)
        return targets

    async def send_notifications(
        self,
        feature: str,
        payload: Mapping[str, Any] | None,
        is_new: bool,
    ) -> DispatchReport:
        targets = sorted(await self.resolve_targets(feature, is_new))
        if not targets:
            _logger.debug("No devices to notify about %s", feature)
            return DispatchReport(feature=feature, is_new=is_new)

        body = json.dumps(payload, separators=(",", ":")) if payload else ""
        limit = asyncio.Semaphore(self._config.max_concurrent_deliveries)

        async def _limited(device_id: str) -> DeliveryResult:
            async with limit:
                return await self._deliver(device_id, body)

        outcomes = await asyncio.gather(*(_limited(device_id) for device_id in targets), return_exceptions=True)

        results: list[DeliveryResult] = []
        for device_id, outcome in zip(targets, outcomes, strict=True):
            if isinstance(outcome, DeliveryError):
                _logger.warning("Push about %s to device %s failed: %s", feature, device_id, outcome)
                results.append(
                    DeliveryResult(
                        device_id=device_id,
                        status=DeliveryStatus.FAILED,
                        status_code=outcome.status_code,
                        error=str(outcome),
                    )
                )
            elif isinstance(outcome, BaseException):
                raise outcome
            else:
                results.append(outcome)

        report = DispatchReport(feature=feature, is_new=is_new, results=results)
        _logger.info(
            "Notified about %s: %d delivered, %d skipped, %d failed",
            feature,
            len(report.delivered),
            len(report.skipped),
            len(report.failed),
        )
        return report

    async def _deliver(self, device_id: str, body: str) -> DeliveryResult:
        device = await self._registry.get_device(device_id)
        if device is None:
            _logger.warning("Device %s has memberships but no connection hash; skipping", device_id)
            return DeliveryResult(device_id=device_id, status=DeliveryStatus.SKIPPED)

        if is_legacy_endpoint(device.endpoint, self._config.legacy_endpoint_prefix):
            if body:
                await self._store.set(payload_key(device_id), body)
            headers = empty_push_headers(device.endpoint, self._config)
            status = await self._transport.post(device.endpoint, headers=headers)
            protocol = PushProtocol.LEGACY
        elif body and device.has_encryption_keys:
            encrypted = encrypt_payload(body.encode("utf-8"), device.key, device.auth_secret)
            status = await self._transport.post(
                device.endpoint,
                body=encrypted.body,
                headers=encrypted.headers(self._config.push_ttl),
            )
            protocol = PushProtocol.ENCRYPTED
        else:
            headers = empty_push_headers(device.endpoint, self._config)
            status = await self._transport.post(device.endpoint, headers=headers)
            protocol = PushProtocol.WAKE

        return DeliveryResult(
            device_id=device_id,
            status=DeliveryStatus.DELIVERED,
            protocol=protocol,
            status_code=status,
        )

    async def get_payload(self, device_id: str) -> Any | None:
        """Hand out the pending payload of a legacy device at most once."""
        raw = await self._store.getdel(payload_key(device_id))
        if raw is None:
            return None
        return json.loads(raw)
