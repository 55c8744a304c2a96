"""Subscription variants and membership planning.

A registration request is either for every feature (`AllFeatures`) or for an
explicit set of slugs (`SelectedFeatures`). Planning turns a request plus the
device's current membership into the set edges to add and remove; applying
the plan to the store is the registry's job.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field

from featurewatch._constants import ALL_FEATURES, NEW_FEATURES
from featurewatch.exceptions import ValidationError


@dataclass(frozen=True)
class AllFeatures:
    """Receive every notification. Replaces all other edges of the device."""

    @property
    def slugs(self) -> frozenset[str]:
        return frozenset({ALL_FEATURES})


@dataclass(frozen=True)
class SelectedFeatures:
    slugs: frozenset[str]


Subscription = AllFeatures | SelectedFeatures


@dataclass(frozen=True)
class MembershipPlan:
    add: frozenset[str] = field(default_factory=frozenset)
    remove: frozenset[str] = field(default_factory=frozenset)


def normalize_features(features: str | Iterable[str] | None) -> list[str]:
    """Turn a single slug, a list of slugs or ``None`` into a de-duplicated list."""
    if features is None:
        return []
    if isinstance(features, str):
        features = [features]
    elif not isinstance(features, Iterable) or isinstance(features, Mapping):
        raise ValidationError("features must be a slug or a list of slugs")
    result: list[str] = []
    for slug in features:
        if not isinstance(slug, str):
            raise ValidationError(f"Feature slugs must be strings, got {slug!r}")
        text = slug.strip()
        if text and text not in result:
            result.append(text)
    return result


def parse_subscription(features: str | Iterable[str] | None) -> Subscription:
    slugs = normalize_features(features)
    if not slugs:
        raise ValidationError("No features provided")
    if ALL_FEATURES in slugs:
        return AllFeatures()
    return SelectedFeatures(frozenset(slugs))


def plan_registration(current: frozenset[str], requested: Subscription) -> MembershipPlan:
    """Edges to change when a device registers to *requested*.

    Only a request for ``all`` is exclusive; registering other slugs while
    already subscribed to ``all`` just adds them.
    """
    if isinstance(requested, AllFeatures):
        return MembershipPlan(add=requested.slugs, remove=current - requested.slugs)
    return MembershipPlan(add=requested.slugs)


def plan_unregistration(
    current: frozenset[str],
    requested: Iterable[str],
    known_features: Iterable[str],
) -> MembershipPlan:
    """Edges to change when a device unregisters from *requested*.

    Removing a real feature from an ``all`` subscription turns ``all`` into
    explicit edges for every known feature plus ``new``, minus the removed ones.
    """
    removed = frozenset(requested)
    if ALL_FEATURES in current and removed and ALL_FEATURES not in removed:
        expanded = (frozenset(known_features) | {NEW_FEATURES}) - removed - {ALL_FEATURES}
        return MembershipPlan(add=expanded, remove=removed | {ALL_FEATURES})
    return MembershipPlan(remove=removed)
