"""State layer.

Store-backed repositories for the latest feature snapshot and the changelog,
plus the engine that classifies incoming batches against them.
"""

from featurewatch.state.changelog import ChangelogStore
from featurewatch.state.engine import ChangeDetectionEngine
from featurewatch.state.status import StatusStore

__all__ = ["ChangeDetectionEngine", "ChangelogStore", "StatusStore"]
