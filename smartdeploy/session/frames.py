"""
Wire frames exchanged with the deploy worker.

Every frame is a JSON object {"type": ..., "payload": ...}. Inbound frames are
validated into one model per type; anything else maps onto UnknownFrame,
InvalidFrame or MalformedFrame so callers can handle every case explicitly.
"""

import json
from typing import Annotated, Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, ValidationError, field_validator


def _step_id(value):
    # Some workers number their steps
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return str(value)
    return value


class LogEntry(BaseModel):
    model_config = ConfigDict(extra="allow")

    timestamp: Optional[str] = None
    message: Optional[str] = None

    @field_validator("timestamp", mode="before")
    @classmethod
    def _stringify_timestamp(cls, value):
        if value is None or isinstance(value, str):
            return value
        return str(value)


class InitialLogsPayload(BaseModel):
    logs: List[LogEntry] = Field(default_factory=list)


class StreamLogsPayload(BaseModel):
    log: LogEntry


class DeployLogsPayload(BaseModel):
    id: str
    msg: str

    @field_validator("id", mode="before")
    @classmethod
    def _stringify_id(cls, value):
        return _step_id(value)


class StepEntry(BaseModel):
    id: str
    label: Optional[str] = None

    @field_validator("id", mode="before")
    @classmethod
    def _stringify_id(cls, value):
        return _step_id(value)


class DeployCompletePayload(BaseModel):
    # Provider-specific blocks (ec2, ecs, amplify, ...) ride along as extras
    model_config = ConfigDict(extra="allow")

    success: bool
    error: Optional[str] = None
    deployUrl: Optional[str] = None
    deploymentTarget: Optional[str] = None

    def provider_fields(self) -> Dict[str, Any]:
        return dict(self.model_extra or {})


class InitialLogsFrame(BaseModel):
    type: Literal["initial_logs"]
    payload: InitialLogsPayload


class StreamLogsFrame(BaseModel):
    type: Literal["stream_logs"]
    payload: StreamLogsPayload


class DeployLogsFrame(BaseModel):
    type: Literal["deploy_logs"]
    payload: DeployLogsPayload


class DeployStepsFrame(BaseModel):
    type: Literal["deploy_steps"]
    payload: List[StepEntry]

    @field_validator("payload", mode="before")
    @classmethod
    def _unwrap_steps(cls, value):
        # Workers send either the bare list or {"steps": [...]}
        if isinstance(value, dict) and "steps" in value:
            return value["steps"]
        return value


class DeployCompleteFrame(BaseModel):
    type: Literal["deploy_complete"]
    payload: DeployCompletePayload


class UnknownFrame(BaseModel):
    """Well-formed frame whose type this client does not handle."""
    type: Optional[str] = None
    payload: Any = None


class InvalidFrame(BaseModel):
    """Known frame type whose payload failed validation."""
    type: str
    reason: str
    raw: Any = None


class MalformedFrame(BaseModel):
    """Frame that is not structured data at all; the text is a failure signal."""
    text: str


KnownFrame = Annotated[
    Union[InitialLogsFrame, StreamLogsFrame, DeployLogsFrame, DeployStepsFrame, DeployCompleteFrame],
    Field(discriminator="type"),
]

InboundFrame = Union[
    InitialLogsFrame, StreamLogsFrame, DeployLogsFrame, DeployStepsFrame, DeployCompleteFrame,
    UnknownFrame, InvalidFrame, MalformedFrame,
]

KNOWN_TYPES = {"initial_logs", "stream_logs", "deploy_logs", "deploy_steps", "deploy_complete"}

_known_adapter = TypeAdapter(KnownFrame)


def parse_frame(raw: Union[str, bytes]) -> InboundFrame:
    """Parse one inbound frame. Never raises."""
    if isinstance(raw, bytes):
        raw = raw.decode("utf-8", errors="replace")

    try:
        data = json.loads(raw)
    except (TypeError, ValueError):
        return MalformedFrame(text=str(raw).strip())

    if not isinstance(data, dict):
        return MalformedFrame(text=data if isinstance(data, str) else str(raw).strip())

    frame_type = data.get("type")
    if not isinstance(frame_type, str) or frame_type not in KNOWN_TYPES:
        return UnknownFrame(type=frame_type if isinstance(frame_type, str) else None, payload=data.get("payload"))

    try:
        return _known_adapter.validate_python(data)
    except ValidationError as e:
        return InvalidFrame(type=frame_type, reason=str(e), raw=data.get("payload"))


def deploy_frame(deploy_config: Dict[str, Any], token: str) -> str:
    return json.dumps({"type": "deploy", "payload": {"deployConfig": deploy_config, "token": token}})


def service_logs_frame(service_name: str) -> str:
    return json.dumps({"type": "service_logs", "payload": {"serviceName": service_name}})
