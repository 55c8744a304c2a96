"""featurewatch - track feature status changes and fan them out as web push."""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("featurewatch")
except PackageNotFoundError:
    __version__ = "0+local"
from featurewatch.config import WatchConfig
from featurewatch.exceptions import (
    ConfigError,
    DeliveryError,
    FeatureWatchError,
    NotFoundError,
    PushCryptoError,
    StoreError,
    ValidationError,
)
from featurewatch.models import (
    ChangelogEntry,
    DeliveryResult,
    DeliveryStatus,
    Device,
    DiffResult,
    DispatchReport,
    FeatureRecord,
    FieldChange,
    PushProtocol,
)
from featurewatch.notifications import DispatchCoordinator, NotificationRegistry, PushDispatcher
from featurewatch.state import ChangeDetectionEngine, ChangelogStore, StatusStore
from featurewatch.watcher import FeatureWatch

__all__ = [
    "__version__",
    "ChangeDetectionEngine",
    "ChangelogEntry",
    "ChangelogStore",
    "ConfigError",
    "DeliveryError",
    "DeliveryResult",
    "DeliveryStatus",
    "Device",
    "DiffResult",
    "DispatchCoordinator",
    "DispatchReport",
    "FeatureRecord",
    "FeatureWatch",
    "FeatureWatchError",
    "FieldChange",
    "NotFoundError",
    "NotificationRegistry",
    "PushCryptoError",
    "PushDispatcher",
    "StatusStore",
    "StoreError",
    "ValidationError",
    "WatchConfig",
]
