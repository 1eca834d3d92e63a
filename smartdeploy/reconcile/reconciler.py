"""
Debounced reconciliation of a config draft against the persisted record.
"""

import logging
import threading
from typing import Any, Callable, Dict, Optional

from ..store import DeploymentRecordStore, RecordStoreError
from .projection import persistable_projection, serialize
from .scheduler import Debouncer

logger = logging.getLogger(__name__)

DEFAULT_DELAY = 0.5


class ConfigReconciler:
    """
    Sends a merge patch for a draft at most once per debounce window, and only
    when its persistable projection differs from the last one sent.

    The reconciler never owns the draft; it keeps a reference to the latest
    one it was handed and its own comparison snapshot.
    """

    def __init__(self, store: DeploymentRecordStore, delay: float = DEFAULT_DELAY,
                 record_id: Optional[str] = None,
                 timer_factory: Callable[..., threading.Timer] = threading.Timer):
        self.store = store
        self.record_id = record_id
        self._draft: Optional[Dict[str, Any]] = None
        self._snapshot: Optional[str] = None
        self._lock = threading.Lock()
        self._debouncer = Debouncer(delay, self.reconcile, timer_factory=timer_factory)

    @property
    def snapshot(self) -> Optional[str]:
        return self._snapshot

    @property
    def pending(self) -> bool:
        return self._debouncer.pending

    def prime(self, record: Dict[str, Any]) -> None:
        """Seed the snapshot from the record as currently persisted."""
        with self._lock:
            self._snapshot = serialize(persistable_projection(record))
            if not self.record_id and record.get("id"):
                self.record_id = record["id"]

    def on_draft_change(self, draft: Dict[str, Any]) -> None:
        """Call on every draft mutation; restarts the debounce window."""
        self._draft = draft
        self._debouncer.trigger()

    def flush(self) -> None:
        """Reconcile a pending change immediately."""
        self._debouncer.flush()

    def close(self) -> None:
        self._debouncer.cancel()

    def reconcile(self) -> Optional[Dict[str, Any]]:
        """
        Compare the latest draft with the snapshot and emit a patch if it changed.

        Returns:
            Dict: the emitted patch, or None when nothing was sent
        """
        with self._lock:
            draft = self._draft
            if draft is None:
                return None

            record_id = self.record_id or draft.get("id")
            if not record_id:
                logger.debug("No deployment record yet; skipping reconciliation")
                return None

            projection = persistable_projection(draft)
            serialized = serialize(projection)
            if serialized == self._snapshot:
                return None

            # Snapshot moves on emission, not on acknowledgement
            self._snapshot = serialized
            try:
                self.store.merge_patch(record_id, projection)
            except RecordStoreError as e:
                logger.error(f"Failed to save deployment {record_id}: {e}")
                return None

        logger.info(f"Saved changes to deployment {record_id}")
        return projection
