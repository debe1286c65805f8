"""Article sync core.

Components, leaves first:
  hashing   — deterministic content fingerprint
  versions  — append-only snapshot archive with bounded retention
  status    — sync lifecycle state, error slot and version counter
  conflict  — divergence detection and local/remote resolution
  service   — ArticleSyncService facade sharing one per-article lock registry
"""

from articlesync.sync.conflict import ConflictCheckResult, ConflictDetector, ConflictResolution
from articlesync.sync.hashing import compute_content_hash, content_changed, verify_content_hash
from articlesync.sync.locks import KeyedLock
from articlesync.sync.service import ArticleSyncService
from articlesync.sync.status import SYNC_TRANSITIONS, SyncStatusTracker, is_valid_transition
from articlesync.sync.versions import VersionStore

__all__ = [
    "ArticleSyncService",
    "ConflictCheckResult",
    "ConflictDetector",
    "ConflictResolution",
    "KeyedLock",
    "SYNC_TRANSITIONS",
    "SyncStatusTracker",
    "VersionStore",
    "compute_content_hash",
    "content_changed",
    "is_valid_transition",
    "verify_content_hash",
]
