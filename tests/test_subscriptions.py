from __future__ import annotations

import pytest

from featurewatch.exceptions import ValidationError
from featurewatch.notifications.subscriptions import (
    AllFeatures,
    SelectedFeatures,
    normalize_features,
    parse_subscription,
    plan_registration,
    plan_unregistration,
)


def test_normalize_features_accepts_single_slug_and_dedupes() -> None:
    assert normalize_features("feature") == ["feature"]
    assert normalize_features(["a", "b", "a", " ", ""]) == ["a", "b"]
    assert normalize_features(None) == []


def test_parse_subscription_variants() -> None:
    assert parse_subscription(["feature", "all", "another"]) == AllFeatures()
    assert parse_subscription(["feature", "new"]) == SelectedFeatures(frozenset({"feature", "new"}))

    with pytest.raises(ValidationError, match="No features provided"):
        parse_subscription([])


def test_registering_all_replaces_every_other_edge() -> None:
    plan = plan_registration(frozenset({"a", "b", "new"}), AllFeatures())
    assert plan.add == {"all"}
    assert plan.remove == {"a", "b", "new"}


def test_registering_selected_features_keeps_all() -> None:
    plan = plan_registration(frozenset({"all"}), SelectedFeatures(frozenset({"a"})))
    assert plan.add == {"a"}
    assert plan.remove == frozenset()


def test_unregistering_all_only_removes_all() -> None:
    plan = plan_unregistration(frozenset({"all"}), ["all"], ["a", "b"])
    assert plan.add == frozenset()
    assert plan.remove == {"all"}


def test_unregistering_a_feature_from_all_expands_the_subscription() -> None:
    plan = plan_unregistration(frozenset({"all"}), ["b"], ["a", "b", "c"])
    assert plan.add == {"a", "c", "new"}
    assert plan.remove == {"all", "b"}


def test_unregistering_selected_features() -> None:
    plan = plan_unregistration(frozenset({"a", "b"}), ["a"], ["a", "b"])
    assert plan.add == frozenset()
    assert plan.remove == {"a"}
