"""
Session status model exposed for rendering.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional

CONNECTION_LOST_MESSAGE = "Connection lost - deployment may have failed"


class SessionStatus(Enum):
    """Coarse deployment status of a session."""
    NOT_STARTED = "not_started"
    RUNNING = "running"
    SUCCESS = "success"
    ERROR = "error"

    @property
    def is_terminal(self) -> bool:
        return self in (SessionStatus.SUCCESS, SessionStatus.ERROR)


class ConnectionState(Enum):
    """Connectivity of the underlying transport, independent of deployment status."""
    CONNECTING = "connecting"
    OPEN = "open"
    CLOSED = "closed"
    ERROR = "error"


STATUS_MESSAGES = {
    SessionStatus.NOT_STARTED: "No deployment started",
    SessionStatus.RUNNING: "Deployment in progress",
    SessionStatus.SUCCESS: "Deployment successful",
    SessionStatus.ERROR: "Deployment failed",
}


@dataclass
class SessionSnapshot:
    """Point-in-time copy of a session for consumers."""
    status: SessionStatus
    connection: ConnectionState
    error: Optional[str] = None
    steps: List[Dict[str, Any]] = field(default_factory=list)
    live_logs: List[Dict[str, Any]] = field(default_factory=list)
    deploy_url: Optional[str] = None

    @property
    def message(self) -> str:
        base_message = STATUS_MESSAGES[self.status]
        if self.status == SessionStatus.ERROR and self.error:
            return f"{base_message}: {self.error}"
        return base_message

    def to_dict(self) -> Dict[str, Any]:
        return {
            "status": self.status.value,
            "error": self.error,
            "message": self.message,
            "connection": self.connection.value,
            "steps": self.steps,
            "liveLogs": self.live_logs,
            "deployUrl": self.deploy_url,
        }
