import json
from typing import Any, Dict, List, Optional

import pytest

from smartdeploy.session import Transport, TransportError, TransportHandlers
from smartdeploy.store import DeploymentRecordStore, RecordStoreError


class FakeTransport(Transport):
    """In-memory transport; tests drive the handlers directly."""

    def __init__(self):
        self.handlers: Optional[TransportHandlers] = None
        self.sent: List[Dict[str, Any]] = []
        self._open = False

    def connect(self, handlers: TransportHandlers) -> None:
        self.handlers = handlers

    def accept(self) -> None:
        self._open = True
        self.handlers.on_open()

    def send(self, text: str) -> None:
        if not self._open:
            raise TransportError("socket not open")
        self.sent.append(json.loads(text))

    def close(self) -> None:
        self._open = False

    @property
    def is_open(self) -> bool:
        return self._open

    def deliver(self, type_: str, payload: Any) -> None:
        self.handlers.on_message(json.dumps({"type": type_, "payload": payload}))

    def deliver_raw(self, text: str) -> None:
        self.handlers.on_message(text)

    def drop(self) -> None:
        self._open = False
        self.handlers.on_close()


class ManualTimer:
    """threading.Timer stand-in that only fires when told to."""

    def __init__(self, delay, function, args=None):
        self.delay = delay
        self.function = function
        self.args = args or []
        self.daemon = False
        self.started = False
        self.cancelled = False

    def start(self):
        self.started = True

    def cancel(self):
        self.cancelled = True

    def fire(self):
        if not self.cancelled:
            self.function(*self.args)


class TimerFactory:
    def __init__(self):
        self.timers: List[ManualTimer] = []

    def __call__(self, delay, function, args=None):
        timer = ManualTimer(delay, function, args=args)
        self.timers.append(timer)
        return timer

    @property
    def latest(self) -> ManualTimer:
        return self.timers[-1]


class MemoryStore(DeploymentRecordStore):
    def __init__(self, fail: bool = False):
        self.records: Dict[str, Dict[str, Any]] = {}
        self.patches: List[Dict[str, Any]] = []
        self.history: List[Dict[str, Any]] = []
        self.fail = fail

    def get(self, record_id):
        return self.records.get(record_id)

    def merge_patch(self, record_id, patch):
        if self.fail:
            raise RecordStoreError("store unavailable")
        self.patches.append(dict(patch))
        self.records.setdefault(record_id, {}).update(patch)
        return self.records[record_id]

    def add_history(self, record_id, entry):
        if self.fail:
            raise RecordStoreError("store unavailable")
        self.history.append(entry)


@pytest.fixture
def transport():
    return FakeTransport()


@pytest.fixture
def timers():
    return TimerFactory()


@pytest.fixture
def store():
    return MemoryStore()
