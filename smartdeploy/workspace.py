"""
A deployment workspace: one session, the record it deploys and the reconciler
that saves edits to that record.
"""

import logging
from typing import Any, Dict, Optional, Union

from .config import Settings
from .reconcile import ConfigReconciler
from .selector import ProjectMetadata, TargetDecision, classify
from .session import (
    DeploySession, DeploymentOutcome, SessionStatus, WebSocketTransport, history_entry,
    record_after_deploy,
)
from .store import DeploymentRecordStore, HttpRecordStore, RecordStoreError

logger = logging.getLogger(__name__)

BOOKKEEPING_FIELDS = ("first_deployment", "last_deployment", "revision")


class Workspace:
    """Wires scan results, edits and deployments of a single record together."""

    def __init__(self, session: DeploySession, reconciler: ConfigReconciler,
                 store: Optional[DeploymentRecordStore] = None):
        self.session = session
        self.reconciler = reconciler
        self.store = store or reconciler.store
        self.draft: Optional[Dict[str, Any]] = None
        self.decision: Optional[TargetDecision] = None
        self.deployable = True
        session.on_complete = self._on_complete

    @classmethod
    def from_settings(cls, settings: Settings, service_name: Optional[str] = None,
                      record_id: Optional[str] = None) -> "Workspace":
        store = HttpRecordStore(settings.api_url, token=settings.token, timeout=settings.http_timeout)
        session = DeploySession(WebSocketTransport(settings.ws_url), service_name=service_name)
        reconciler = ConfigReconciler(store, delay=settings.debounce_seconds, record_id=record_id)
        return cls(session, reconciler, store)

    def load(self, record: Dict[str, Any]) -> None:
        """Start editing a persisted record; its current state is the baseline."""
        self.draft = record
        self.reconciler.prime(record)

    def edit(self, changes: Dict[str, Any]) -> Dict[str, Any]:
        if self.draft is None:
            self.draft = {}
        self.draft.update(changes)
        self.reconciler.on_draft_change(self.draft)
        return self.draft

    def apply_scan(self, metadata: Union[ProjectMetadata, Dict[str, Any]]) -> Optional[TargetDecision]:
        """Classify scan output and copy the decision into the draft."""
        self.decision = classify(metadata)
        self.deployable = self.decision is not None
        if self.decision is not None:
            self.edit(self.decision.to_record_fields())
        return self.decision

    @property
    def can_deploy(self) -> bool:
        return self.draft is not None and self.deployable and self.session.status != SessionStatus.RUNNING

    def deploy(self, token: str) -> bool:
        if not self.can_deploy:
            logger.warning("Deployment not submitted: no deployable config or a deployment is already running")
            return False
        return self.session.submit(self.draft, token)

    def _on_complete(self, outcome: DeploymentOutcome) -> None:
        config = self.session.active_config
        if outcome.success and config is not None:
            stamped = record_after_deploy(config, previous=config)
            for key in BOOKKEEPING_FIELDS:
                config[key] = stamped[key]
            self.reconciler.on_draft_change(config)

        record_id = self.reconciler.record_id or (config or {}).get("id")
        if not record_id:
            return
        try:
            self.store.add_history(record_id, history_entry(outcome))
        except RecordStoreError as e:
            logger.error(f"Failed to record deployment history for {record_id}: {e}")

    def close(self) -> None:
        self.reconciler.flush()
        self.reconciler.close()
        self.session.close()
