"""
What a finished deployment hands to the persistence layer.
"""

import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from .steps import Step

# Never stored in a record or history snapshot
BINARY_FIELDS = {"dockerfile", "dockerfileInfo", "dockerfileContent"}


@dataclass
class DeploymentOutcome:
    """Result of one deployment attempt, captured when deploy_complete arrives."""
    success: bool
    config: Optional[Dict[str, Any]]
    steps: List[Step] = field(default_factory=list)
    error: Optional[str] = None
    deploy_url: Optional[str] = None
    started_at: Optional[datetime] = None
    finished_at: Optional[datetime] = None

    @property
    def duration_ms(self) -> Optional[int]:
        if self.started_at is None or self.finished_at is None:
            return None
        return int((self.finished_at - self.started_at).total_seconds() * 1000)


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def config_snapshot(config: Optional[Dict[str, Any]]) -> Dict[str, Any]:
    return {k: v for k, v in (config or {}).items() if k not in BINARY_FIELDS}


def record_after_deploy(config: Dict[str, Any], previous: Optional[Dict[str, Any]] = None,
                        now: Optional[str] = None) -> Dict[str, Any]:
    """
    Stamp deployment bookkeeping onto a config after a successful deploy.

    Args:
        config: the in-flight config, already patched by deploy_complete
        previous: the record as persisted before this deploy, if any
        now: ISO timestamp to use; current UTC time when omitted

    Returns:
        Dict: the record to merge into storage
    """
    now = now or _now_iso()
    previous = previous or {}
    record = config_snapshot(config)
    record["first_deployment"] = previous.get("first_deployment") or now
    record["last_deployment"] = now
    record["revision"] = previous["revision"] + 1 if previous.get("revision") else 1
    return record


def history_entry(outcome: DeploymentOutcome, now: Optional[str] = None) -> Dict[str, Any]:
    """Deployment history entry for one attempt, success or failure."""
    config = outcome.config or {}
    entry = {
        "id": uuid.uuid4().hex,
        "deploymentId": config.get("id"),
        "timestamp": now or _now_iso(),
        "success": outcome.success,
        "steps": [step.to_dict() for step in outcome.steps],
        "configSnapshot": config_snapshot(config),
    }
    if outcome.deploy_url:
        entry["deployUrl"] = outcome.deploy_url
    if outcome.error:
        entry["error"] = outcome.error
    if config.get("commitSha"):
        entry["commitSha"] = config["commitSha"]
    if config.get("branch"):
        entry["branch"] = config["branch"]
    if outcome.duration_ms is not None:
        entry["durationMs"] = outcome.duration_ms
    return entry
