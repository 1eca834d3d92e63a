"""
Tests for the websocket-client backed transport.
"""

import json
from unittest.mock import Mock, patch

import pytest
import websocket

from smartdeploy.session import (
    ConnectionState, DeploySession, TransportError, WebSocketTransport,
)


def connect(transport, handlers):
    """Connect with a patched WebSocketApp; returns (app, callback kwargs, constructor call)."""
    with patch("websocket.WebSocketApp") as app_cls:
        transport.connect(handlers)
    transport._thread.join(timeout=1)
    return app_cls.return_value, app_cls.call_args.kwargs, app_cls.call_args


class TestWebSocketTransport:
    """Callback adaptation and send semantics."""

    def test_connect_builds_app_and_runs_dispatcher(self):
        transport = WebSocketTransport("ws://worker:4001", header=["Authorization: Bearer t"], ping_interval=20)
        app, kwargs, call = connect(transport, Mock())

        assert call.args == ("ws://worker:4001",)
        assert kwargs["header"] == ["Authorization: Bearer t"]
        app.run_forever.assert_called_once_with(ping_interval=20)
        assert not transport.is_open

    def test_callbacks_reach_handlers(self):
        handlers = Mock()
        transport = WebSocketTransport("ws://worker")
        app, kwargs, _ = connect(transport, handlers)

        kwargs["on_open"](app)
        assert transport.is_open
        assert transport.wait_open(timeout=0)
        handlers.on_open.assert_called_once_with()

        kwargs["on_message"](app, "hello")
        handlers.on_message.assert_called_once_with("hello")

        error = ConnectionResetError("reset")
        kwargs["on_error"](app, error)
        handlers.on_error.assert_called_once_with(error)

        kwargs["on_close"](app, 1006, "abnormal closure")
        assert not transport.is_open
        handlers.on_close.assert_called_once_with()

    def test_send_before_open_raises(self):
        transport = WebSocketTransport("ws://worker")
        with pytest.raises(TransportError):
            transport.send("{}")

        app, kwargs, _ = connect(transport, Mock())
        with pytest.raises(TransportError):
            transport.send("{}")
        app.send.assert_not_called()

    def test_send_when_open(self):
        transport = WebSocketTransport("ws://worker")
        app, kwargs, _ = connect(transport, Mock())
        kwargs["on_open"](app)

        transport.send('{"type": "deploy"}')
        app.send.assert_called_once_with('{"type": "deploy"}')

    def test_socket_failure_on_send_raises(self):
        transport = WebSocketTransport("ws://worker")
        app, kwargs, _ = connect(transport, Mock())
        kwargs["on_open"](app)
        app.send.side_effect = websocket.WebSocketConnectionClosedException("gone")

        with pytest.raises(TransportError, match="gone"):
            transport.send("{}")

    def test_second_connect_rejected(self):
        transport = WebSocketTransport("ws://worker")
        connect(transport, Mock())
        with pytest.raises(ValueError):
            transport.connect(Mock())

    def test_close(self):
        transport = WebSocketTransport("ws://worker")
        app, _, _ = connect(transport, Mock())
        transport.close()
        app.close.assert_called_once_with()


class TestSessionOverWebSocket:
    """A session driven through the real transport adapter."""

    def test_open_message_and_close(self):
        transport = WebSocketTransport("ws://worker")
        session = DeploySession(transport, service_name="api")
        with patch("websocket.WebSocketApp") as app_cls:
            session.open()
        transport._thread.join(timeout=1)
        app = app_cls.return_value
        callbacks = app_cls.call_args.kwargs

        assert session.connection == ConnectionState.CONNECTING
        callbacks["on_open"](app)
        assert session.connection == ConnectionState.OPEN
        subscribe = json.loads(app.send.call_args[0][0])
        assert subscribe == {"type": "service_logs", "payload": {"serviceName": "api"}}

        assert session.submit({"id": "d1"}, "tok")
        frame = json.dumps({"type": "deploy_logs", "payload": {"id": "auth", "msg": "✅ Authenticated"}})
        callbacks["on_message"](app, frame)
        assert session.steps.get("auth").logs == ["✅ Authenticated"]

        callbacks["on_close"](app, None, None)
        assert session.connection == ConnectionState.CLOSED
        assert session.error == "Connection lost - deployment may have failed"
