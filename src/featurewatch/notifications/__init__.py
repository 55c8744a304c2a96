"""Notification registry and push dispatch."""

from featurewatch.notifications.coordinator import DispatchCoordinator
from featurewatch.notifications.dispatcher import PushDispatcher
from featurewatch.notifications.registry import NotificationRegistry
from featurewatch.notifications.subscriptions import AllFeatures, SelectedFeatures, Subscription

__all__ = [
    "AllFeatures",
    "DispatchCoordinator",
    "NotificationRegistry",
    "PushDispatcher",
    "SelectedFeatures",
    "Subscription",
]
