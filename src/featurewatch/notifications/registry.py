"""Device to feature registrations.

Edges are stored in both directions, ``<slug>-notifications`` (device ids) and
``<device id>-notifications`` (slugs), and are always updated together. Each
set command is atomic on its own; a whole registration is not, and a partial
update is healed by the next idempotent register/unregister of the device.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable

from featurewatch._constants import (
    ALL_FEATURES,
    device_features_key,
    device_key,
    feature_devices_key,
)
from featurewatch._redact import redact_for_log
from featurewatch._store import KeyValueStore
from featurewatch._transport import PushTransport, empty_push_headers
from featurewatch.config import WatchConfig
from featurewatch.exceptions import DeliveryError, NotFoundError, ValidationError
from featurewatch.models.device import Device
from featurewatch.notifications.subscriptions import (
    MembershipPlan,
    normalize_features,
    parse_subscription,
    plan_registration,
    plan_unregistration,
)
from featurewatch.state.status import StatusStore

_logger = logging.getLogger(__name__)


def _require_device_id(device_id: str) -> str:
    if not isinstance(device_id, str) or not device_id.strip():
        raise ValidationError("No device id provided")
    return device_id


def _optional_text(name: str, value: object) -> str:
    """Stripped string value of an optional connection field, empty when absent."""
    if value is None:
        return ""
    if not isinstance(value, str):
        raise ValidationError(f"{name} must be a string")
    return value.strip()


class NotificationRegistry:
    """Owns device connection hashes and device/feature membership."""

    def __init__(
        self,
        store: KeyValueStore,
        transport: PushTransport,
        status: StatusStore,
        config: WatchConfig,
    ) -> None:
        self._store = store
        self._transport = transport
        self._status = status
        self._config = config

    # ------------------------------------------------------------------
    # Lookups
    # ------------------------------------------------------------------

    async def get_device(self, device_id: str) -> Device | None:
        """Connection details of a device, or ``None`` if it has no endpoint stored."""
        raw = await self._store.hgetall(device_key(device_id))
        if not raw.get("endpoint"):
            return None
        return Device.model_validate({**raw, "id": device_id})

    async def devices_for(self, slug: str) -> set[str]:
        return await self._store.smembers(feature_devices_key(slug))

    async def _memberships(self, device_id: str) -> frozenset[str]:
        return frozenset(await self._store.smembers(device_features_key(device_id)))

    async def _is_registered(self, device_id: str) -> bool:
        if await self._store.exists(device_key(device_id)):
            return True
        return bool(await self._memberships(device_id))

    async def get_registered_features(self, device_id: str) -> list[str]:
        """Slugs the device is registered to.

        Raises
        ------
        NotFoundError
            If the device is unknown or registered to nothing.
        """
        features = await self._memberships(device_id)
        if not features:
            raise NotFoundError(device_id=device_id)
        return sorted(features)

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    async def _apply(self, device_id: str, plan: MembershipPlan) -> None:
        removed = sorted(plan.remove)
        added = sorted(plan.add)
        for slug in removed:
            await self._store.srem(feature_devices_key(slug), device_id)
        await self._store.srem(device_features_key(device_id), *removed)
        for slug in added:
            await self._store.sadd(feature_devices_key(slug), device_id)
        await self._store.sadd(device_features_key(device_id), *added)

    async def _confirm(self, device: Device) -> None:
        """Empty POST to a freshly stored endpoint. Failure does not block registration."""
        try:
            await self._transport.post(device.endpoint, headers=empty_push_headers(device.endpoint, self._config))
        except DeliveryError as exc:
            _logger.warning("Confirmation push to device %s failed: %s", device.id, exc)

    async def register(
        self,
        device_id: str,
        features: str | Iterable[str] | None,
        endpoint: str | None = None,
        key: str | None = None,
        auth_secret: str | None = None,
    ) -> list[str]:
        """Register a device to one or more features.

        Parameters
        ----------
        device_id : str
            Device identifier chosen by the client.
        features : str or iterable of str
            Slugs to register to. Including ``all`` drops every other edge of
            the device and registers it to ``all`` only.
        endpoint : str, optional
            Push endpoint. Required on first registration; when given, the
            connection hash is overwritten and a confirmation push is sent.
        key, auth_secret : str, optional
            Subscriber key material for encrypted payloads.

        Returns
        -------
        list of str
            The device's full feature set after the operation.

        Raises
        ------
        ValidationError
            No endpoint given or stored, no features given, or a field has
            the wrong type.
        """
        _require_device_id(device_id)
        endpoint = _optional_text("endpoint", endpoint)
        key = _optional_text("key", key)
        auth_secret = _optional_text("authSecret", auth_secret)
        if not endpoint and not await self._store.hget(device_key(device_id), "endpoint"):
            raise ValidationError("No endpoint provided")
        requested = parse_subscription(features)

        if endpoint:
            device = Device(id=device_id, endpoint=endpoint, key=key, auth_secret=auth_secret)
            await self._store.hset(device_key(device_id), device.connection_hash())
            _logger.debug("Stored device %s", redact_for_log(device.connection_hash()))
            await self._confirm(device)

        plan = plan_registration(await self._memberships(device_id), requested)
        await self._apply(device_id, plan)

        features_now = sorted(await self._memberships(device_id))
        _logger.info("Device %s registered to %s", device_id, features_now)
        return features_now

    async def unregister(self, device_id: str, features: str | Iterable[str] | None = None) -> None:
        """Remove registrations of a device.

        With ``features=None`` every edge and the connection hash are deleted.
        Otherwise only the listed edges go; the connection hash is kept even if
        no feature remains.

        Raises
        ------
        NotFoundError
            If the device has no registration at all.
        """
        if not await self._is_registered(device_id):
            raise NotFoundError(device_id=device_id)

        current = await self._memberships(device_id)

        if features is None:
            await self._apply(device_id, MembershipPlan(remove=current))
            await self._store.delete(device_features_key(device_id), device_key(device_id))
            _logger.info("Device %s fully unregistered", device_id)
            return

        known: Iterable[str] = ()
        if ALL_FEATURES in current:
            known = await self._status.slugs()
        plan = plan_unregistration(current, normalize_features(features), known)
        await self._apply(device_id, plan)
        _logger.info("Device %s unregistered from %s", device_id, sorted(plan.remove))

    async def update_device(
        self,
        device_id: str,
        endpoint: str | None,
        key: str | None = None,
        auth_secret: str | None = None,
    ) -> None:
        """Overwrite the connection hash. Omitted ``key``/``auth_secret`` are cleared.

        Raises
        ------
        NotFoundError
            If the device has no registration.
        ValidationError
            If no endpoint is given.
        """
        if not await self._is_registered(device_id):
            raise NotFoundError(device_id=device_id)
        endpoint = _optional_text("endpoint", endpoint)
        if not endpoint:
            raise ValidationError("No endpoint provided")

        device = Device(
            id=device_id,
            endpoint=endpoint,
            key=_optional_text("key", key),
            auth_secret=_optional_text("authSecret", auth_secret),
        )
        await self._store.hset(device_key(device_id), device.connection_hash())
        _logger.debug("Updated device %s", redact_for_log(device.connection_hash()))
