"""
End-to-end tests of a workspace: scan, edit, deploy and persistence together.
"""

import pytest

from smartdeploy.config import Settings
from smartdeploy.reconcile import ConfigReconciler
from smartdeploy.session import DeploySession, SessionStatus, WebSocketTransport
from smartdeploy.workspace import Workspace


@pytest.fixture
def workspace(transport, store, timers):
    session = DeploySession(transport)
    reconciler = ConfigReconciler(store, timer_factory=timers)
    ws = Workspace(session, reconciler)
    session.open()
    transport.accept()
    ws.load({"id": "d1", "service_name": "api", "status": "draft", "branch": "main"})
    return ws


class TestWorkspace:
    """Wiring between classifier, session and reconciler."""

    def test_scan_copies_decision_into_draft(self, workspace, store, timers):
        decision = workspace.apply_scan({"language": "python", "framework": "flask", "run_cmd": "gunicorn app:app"})

        assert decision.target == "elastic-beanstalk"
        assert workspace.draft["deploymentTarget"] == "elastic-beanstalk"
        assert workspace.can_deploy

        timers.latest.fire()
        assert store.patches[0]["deploymentTarget"] == "elastic-beanstalk"
        assert store.patches[0]["deployment_target_reason"] == decision.reason

    def test_undeployable_scan_blocks_deploy(self, workspace, transport):
        assert workspace.apply_scan({"is_library": True, "language": "python"}) is None
        assert not workspace.can_deploy
        assert not workspace.deploy("tok")
        assert transport.sent == []

    def test_deploy_blocked_while_running(self, workspace, transport):
        assert workspace.deploy("tok")
        assert not workspace.can_deploy
        assert not workspace.deploy("tok")
        assert len(transport.sent) == 1

    def test_successful_deploy_is_persisted(self, workspace, transport, store, timers):
        workspace.deploy("tok")
        transport.deliver("deploy_logs", {"id": "deploy", "msg": "✅ Deployed"})
        transport.deliver("deploy_complete", {
            "success": True,
            "deployUrl": "https://api.example.com",
            "deploymentTarget": "ecs",
        })

        assert workspace.session.status == SessionStatus.SUCCESS
        # The patched config differs from the primed record, so a save is scheduled
        assert workspace.reconciler.pending
        timers.latest.fire()

        patch = store.patches[-1]
        assert patch["id"] == "d1"
        assert patch["deployUrl"] == "https://api.example.com"
        assert patch["status"] == "running"
        assert patch["deploymentTarget"] == "ecs"
        assert patch["revision"] == 1
        assert patch["first_deployment"] == patch["last_deployment"]

        assert len(store.history) == 1
        assert store.history[0]["success"] is True
        assert store.history[0]["deployUrl"] == "https://api.example.com"

    def test_failed_deploy_records_history_only(self, workspace, transport, store, timers):
        workspace.deploy("tok")
        transport.deliver("deploy_complete", {"success": False, "error": "Build failed"})

        assert not workspace.reconciler.pending
        assert store.patches == []
        assert store.history[0]["error"] == "Build failed"

    def test_history_failure_does_not_break_session(self, workspace, transport, store, caplog):
        workspace.deploy("tok")
        store.fail = True
        transport.deliver("deploy_complete", {"success": False})

        assert workspace.session.status == SessionStatus.ERROR
        assert "Failed to record deployment history for d1" in caplog.text

    def test_close_flushes_pending_edits(self, workspace, store):
        workspace.edit({"branch": "dev"})
        workspace.close()
        assert store.patches[-1]["branch"] == "dev"
        assert not workspace.reconciler.pending


def test_from_settings_wires_real_collaborators():
    settings = Settings(ws_url="ws://worker:4001", api_url="http://dash.local", token="tok", debounce_ms=250)
    ws = Workspace.from_settings(settings, service_name="api", record_id="d1")

    assert isinstance(ws.session.transport, WebSocketTransport)
    assert ws.session.transport.url == "ws://worker:4001"
    assert ws.session.service_name == "api"
    assert ws.reconciler.record_id == "d1"
    assert ws.store.base_url == "http://dash.local"
    assert ws.store.http.headers["Authorization"] == "Bearer tok"
