"""Internal constants shared across the library."""

USER_AGENT = "featurewatch/0.1"

# ------------------------------------------------------------------
# Feature record fields
# ------------------------------------------------------------------

SLUG_FIELD = "slug"
UPDATED_FIELD = "updated"
JUST_STARTED_FIELD = "justStarted"
RESERVED_FIELDS: frozenset[str] = frozenset({UPDATED_FIELD, JUST_STARTED_FIELD})
NON_DIFFED_FIELDS: frozenset[str] = RESERVED_FIELDS | {SLUG_FIELD}

# ------------------------------------------------------------------
# Pseudo-features
# ------------------------------------------------------------------

ALL_FEATURES = "all"
NEW_FEATURES = "new"

# ------------------------------------------------------------------
# Store layout
# ------------------------------------------------------------------

STATUS_KEY = "status"
CHANGELOG_KEY = "changelog"


def device_key(device_id: str) -> str:
    """Connection hash of a device (``endpoint``, ``key``, ``authSecret``)."""
    return f"device-{device_id}"


def feature_devices_key(slug: str) -> str:
    """Set of device ids registered to a feature."""
    return f"{slug}-notifications"


def device_features_key(device_id: str) -> str:
    """Set of feature slugs a device is registered to."""
    return f"{device_id}-notifications"


def payload_key(device_id: str) -> str:
    """Pending payload awaiting a legacy-protocol fetch."""
    return f"{device_id}-payload"


# ------------------------------------------------------------------
# Push delivery
# ------------------------------------------------------------------

LEGACY_ENDPOINT_PREFIX = "https://android.googleapis.com/gcm/send"
DEFAULT_PUSH_TTL = 4 * 7 * 24 * 3600
