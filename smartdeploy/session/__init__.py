"""
Deployment session protocol client.

Tracks a remote deployment streamed over one persistent connection and exposes
the resulting progress model for rendering.
"""

from .client import DeploySession
from .frames import parse_frame, deploy_frame, service_logs_frame
from .outcome import DeploymentOutcome, history_entry, record_after_deploy
from .status import CONNECTION_LOST_MESSAGE, ConnectionState, SessionSnapshot, SessionStatus
from .steps import DEFAULT_STEPS, Step, StepRegistry, StepStatus
from .transport import Transport, TransportError, TransportHandlers, WebSocketTransport

__all__ = [
    "DeploySession",
    "parse_frame",
    "deploy_frame",
    "service_logs_frame",
    "DeploymentOutcome",
    "history_entry",
    "record_after_deploy",
    "CONNECTION_LOST_MESSAGE",
    "ConnectionState",
    "SessionSnapshot",
    "SessionStatus",
    "DEFAULT_STEPS",
    "Step",
    "StepRegistry",
    "StepStatus",
    "Transport",
    "TransportError",
    "TransportHandlers",
    "WebSocketTransport",
]
