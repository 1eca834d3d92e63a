"""
Transport handles for the deploy worker connection.
"""

import logging
import threading
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Callable, Optional

import websocket

logger = logging.getLogger(__name__)


class TransportError(Exception):
    """Raised when a frame cannot be handed to the transport."""


@dataclass
class TransportHandlers:
    """Callbacks a transport invokes, always from a single dispatcher thread."""
    on_open: Callable[[], None]
    on_message: Callable[[str], None]
    on_error: Callable[[Exception], None]
    on_close: Callable[[], None]


class Transport(ABC):
    """One persistent bidirectional connection."""

    @abstractmethod
    def connect(self, handlers: TransportHandlers) -> None:
        """Start connecting; handlers fire as the connection progresses."""
        pass

    @abstractmethod
    def send(self, text: str) -> None:
        """Send one text frame. Raises TransportError when not open."""
        pass

    @abstractmethod
    def close(self) -> None:
        pass

    @property
    @abstractmethod
    def is_open(self) -> bool:
        pass


class WebSocketTransport(Transport):
    """websocket-client app running its dispatcher loop on a daemon thread."""

    def __init__(self, url: str, header: Optional[list] = None, ping_interval: int = 0):
        self.url = url
        self.header = header
        self.ping_interval = ping_interval
        self._app: Optional[websocket.WebSocketApp] = None
        self._thread: Optional[threading.Thread] = None
        self._open = threading.Event()

    def connect(self, handlers: TransportHandlers) -> None:
        if self._app is not None:
            raise ValueError("transport already connected; open a new session instead")

        def on_open(ws):
            self._open.set()
            logger.info(f"Connected to {self.url}")
            handlers.on_open()

        def on_message(ws, message):
            handlers.on_message(message)

        def on_error(ws, error):
            logger.warning(f"WebSocket error on {self.url}: {error}")
            handlers.on_error(error)

        def on_close(ws, close_status_code, close_msg):
            self._open.clear()
            logger.info(f"Connection to {self.url} closed ({close_status_code}): {close_msg}")
            handlers.on_close()

        self._app = websocket.WebSocketApp(
            self.url,
            header=self.header,
            on_open=on_open,
            on_message=on_message,
            on_error=on_error,
            on_close=on_close,
        )
        self._thread = threading.Thread(
            target=self._app.run_forever,
            kwargs={"ping_interval": self.ping_interval},
            daemon=True,
        )
        self._thread.start()

    def wait_open(self, timeout: Optional[float] = None) -> bool:
        return self._open.wait(timeout)

    def send(self, text: str) -> None:
        if self._app is None or not self._open.is_set():
            raise TransportError("socket not open")
        try:
            self._app.send(text)
        except websocket.WebSocketException as e:
            raise TransportError(str(e)) from e

    def close(self) -> None:
        if self._app is not None:
            self._app.close()
        if self._thread is not None and self._thread is not threading.current_thread():
            self._thread.join(timeout=5)

    @property
    def is_open(self) -> bool:
        return self._open.is_set()
