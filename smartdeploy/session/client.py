"""
Deployment session: one connection to the deploy worker and the progress model
built from the frames it streams back.
"""

import logging
import re
from datetime import datetime, timezone
from typing import Any, Callable, Dict, Iterable, List, Optional, Tuple

from .artifacts import wire_config
from .frames import (
    DeployCompleteFrame, DeployLogsFrame, DeployStepsFrame, InboundFrame, InitialLogsFrame,
    InvalidFrame, MalformedFrame, StreamLogsFrame, UnknownFrame, deploy_frame, parse_frame,
    service_logs_frame,
)
from .outcome import DeploymentOutcome
from .status import CONNECTION_LOST_MESSAGE, ConnectionState, SessionSnapshot, SessionStatus
from .steps import StepRegistry
from .transport import Transport, TransportError, TransportHandlers

logger = logging.getLogger(__name__)

SERVICE_URL_MARKER = "Service URL"
URL_PATTERN = re.compile(r"https://[^\s]+")


class DeploySession:
    """
    State machine for one logical deployment-monitoring connection.

    All inbound frames arrive on the transport's single dispatcher thread, in
    order. Failures are recorded on the session (status, error) rather than
    raised, so consumers can render them directly.
    """

    def __init__(self, transport: Transport, service_name: Optional[str] = None,
                 step_template: Optional[Iterable[Tuple[str, str]]] = None,
                 on_change: Optional[Callable[["DeploySession"], None]] = None,
                 on_complete: Optional[Callable[[DeploymentOutcome], None]] = None):
        self.transport = transport
        self.service_name = service_name
        self.on_change = on_change
        self.on_complete = on_complete

        self.steps = StepRegistry(step_template)
        self.status = SessionStatus.NOT_STARTED
        self.error: Optional[str] = None
        self.connection = ConnectionState.CLOSED
        self.live_logs: List[Dict[str, Any]] = []
        self.deploy_url: Optional[str] = None

        # The config in flight; patched in place when the deploy completes
        self.active_config: Optional[Dict[str, Any]] = None
        self.was_deploying = False
        self._started_at: Optional[datetime] = None

    # Lifecycle

    def open(self) -> None:
        self.connection = ConnectionState.CONNECTING
        self.transport.connect(TransportHandlers(
            on_open=self._on_open,
            on_message=self.handle_message,
            on_error=self._on_error,
            on_close=self._on_close,
        ))

    def close(self) -> None:
        self.transport.close()

    def __enter__(self) -> "DeploySession":
        self.open()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    # Outbound

    def submit(self, config: Dict[str, Any], token: str) -> bool:
        """
        Start a deployment of config.

        Resets the step registry and sends a single deploy frame. Submitting
        while another deployment is running is the caller's responsibility to
        prevent; logs from both pipelines would land in one registry.

        Returns:
            bool: True if the deploy frame was handed to the transport
        """
        if self.status == SessionStatus.RUNNING:
            logger.warning("Submitting a deployment while another is still running")

        self.steps.reset()
        self.status = SessionStatus.RUNNING
        self.error = None
        self.deploy_url = None
        self.active_config = config
        self.was_deploying = True
        self._started_at = datetime.now(timezone.utc)

        try:
            frame = deploy_frame(wire_config(config), token)
        except (OSError, TypeError, ValueError) as e:
            self._fail(f"Could not prepare deployment: {e}")
            return False

        if not self._send(frame):
            self._fail("Not connected to the deploy server")
            return False

        logger.info(f"Submitted deployment for {config.get('service_name') or config.get('id')}")
        self._changed()
        return True

    def subscribe(self, service_name: Optional[str] = None) -> bool:
        """Ask the worker to stream live service logs for service_name."""
        name = service_name or self.service_name
        if not name:
            raise ValueError("service name required to subscribe to live logs")
        self.service_name = name
        return self._send(service_logs_frame(name))

    def _send(self, text: str) -> bool:
        try:
            self.transport.send(text)
            return True
        except TransportError as e:
            logger.error(f"Could not send frame: {e}")
            return False

    # Inbound

    def handle_message(self, raw: str) -> None:
        self.apply(parse_frame(raw))

    def apply(self, frame: InboundFrame) -> None:
        if isinstance(frame, InitialLogsFrame):
            self.live_logs.extend(entry.model_dump() for entry in frame.payload.logs)
        elif isinstance(frame, StreamLogsFrame):
            self.live_logs.append(frame.payload.log.model_dump())
        elif isinstance(frame, DeployLogsFrame):
            self._apply_deploy_log(frame.payload.id, frame.payload.msg)
        elif isinstance(frame, DeployStepsFrame):
            self.steps.merge((entry.id, entry.label) for entry in frame.payload)
        elif isinstance(frame, DeployCompleteFrame):
            self._apply_complete(frame)
        elif isinstance(frame, MalformedFrame):
            logger.error(f"Worker sent a plain-text failure: {frame.text}")
            self.status = SessionStatus.ERROR
            self.error = frame.text or "Malformed frame from deploy server"
        elif isinstance(frame, InvalidFrame):
            logger.warning(f"Dropping {frame.type} frame with invalid payload: {frame.reason}")
            return
        elif isinstance(frame, UnknownFrame):
            logger.debug(f"Ignoring frame of unknown type {frame.type!r}")
            return
        self._changed()

    def _apply_deploy_log(self, step_id: str, msg: str) -> None:
        step, created = self.steps.append_log(step_id, msg)
        if created:
            logger.info(f"Log for unknown step {step_id!r}; added it to the registry")
        # Unknown step ids always put the session back in Running
        if created or self.status == SessionStatus.NOT_STARTED:
            self.status = SessionStatus.RUNNING

        if SERVICE_URL_MARKER in msg:
            match = URL_PATTERN.search(msg)
            if match:
                self.deploy_url = match.group(0)
                logger.info(f"Deployment URL reported: {self.deploy_url}")

    def _apply_complete(self, frame: DeployCompleteFrame) -> None:
        payload = frame.payload
        config = self.active_config

        if payload.success:
            self.status = SessionStatus.SUCCESS
            self.error = None
            self.deploy_url = payload.deployUrl or self.deploy_url
            if config is not None:
                if self.deploy_url:
                    config["deployUrl"] = self.deploy_url
                config["status"] = "running"
                if payload.deploymentTarget:
                    config["deploymentTarget"] = payload.deploymentTarget
                config.update(payload.provider_fields())
            logger.info(f"Deployment succeeded: {self.deploy_url or 'no URL reported'}")
        else:
            self.status = SessionStatus.ERROR
            self.error = payload.error or "Deployment failed"
            logger.info(f"Deployment failed: {self.error}")

        self.was_deploying = False
        outcome = DeploymentOutcome(
            success=payload.success,
            config=dict(config) if config is not None else None,
            steps=self.steps.copy_steps(),
            error=self.error,
            deploy_url=self.deploy_url if payload.success else None,
            started_at=self._started_at,
            finished_at=datetime.now(timezone.utc),
        )
        self._notify(self.on_complete, outcome)

    # Transport events

    def _on_open(self) -> None:
        self.connection = ConnectionState.OPEN
        if self.service_name:
            self.subscribe(self.service_name)
        self._changed()

    def _on_error(self, error: Exception) -> None:
        self.connection = ConnectionState.ERROR
        self._transport_failed()

    def _on_close(self) -> None:
        if self.connection != ConnectionState.ERROR:
            self.connection = ConnectionState.CLOSED
        self._transport_failed()

    def _transport_failed(self) -> None:
        if self.was_deploying:
            logger.error("Transport failed while a deployment was in flight")
            self.status = SessionStatus.ERROR
            self.error = CONNECTION_LOST_MESSAGE
            self.was_deploying = False
        self._changed()

    # Helpers

    def _fail(self, message: str) -> None:
        logger.error(message)
        self.status = SessionStatus.ERROR
        self.error = message
        self.was_deploying = False
        self._changed()

    def _changed(self) -> None:
        self._notify(self.on_change, self)

    def _notify(self, callback: Optional[Callable], arg: Any) -> None:
        if callback is None:
            return
        try:
            callback(arg)
        except Exception:
            # Never propagates into the transport dispatcher
            logger.exception("Session callback failed")

    def snapshot(self) -> SessionSnapshot:
        return SessionSnapshot(
            status=self.status,
            connection=self.connection,
            error=self.error,
            steps=self.steps.to_list(),
            live_logs=list(self.live_logs),
            deploy_url=self.deploy_url,
        )
