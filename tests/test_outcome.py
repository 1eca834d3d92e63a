from datetime import datetime, timedelta, timezone

from smartdeploy.session import DeploymentOutcome, history_entry, record_after_deploy
from smartdeploy.session.steps import Step, StepStatus


def test_first_deploy_stamps_bookkeeping():
    record = record_after_deploy({"id": "d1", "dockerfileContent": "FROM x"}, now="2026-01-01T00:00:00+00:00")
    assert record["first_deployment"] == "2026-01-01T00:00:00+00:00"
    assert record["last_deployment"] == "2026-01-01T00:00:00+00:00"
    assert record["revision"] == 1
    assert "dockerfileContent" not in record


def test_redeploy_bumps_revision_and_keeps_first_deployment():
    previous = {"id": "d1", "first_deployment": "2025-06-01T00:00:00+00:00", "revision": 3}
    record = record_after_deploy({"id": "d1"}, previous=previous, now="2026-01-01T00:00:00+00:00")
    assert record["first_deployment"] == "2025-06-01T00:00:00+00:00"
    assert record["last_deployment"] == "2026-01-01T00:00:00+00:00"
    assert record["revision"] == 4


def test_history_entry_for_failure():
    started = datetime(2026, 1, 1, tzinfo=timezone.utc)
    outcome = DeploymentOutcome(
        success=False,
        config={"id": "d1", "branch": "main", "commitSha": "abc123", "dockerfileInfo": {"content": "data:"}},
        steps=[Step(id="docker", label="Docker", logs=["❌ failed"], status=StepStatus.ERROR)],
        error="Build failed",
        started_at=started,
        finished_at=started + timedelta(seconds=90),
    )

    entry = history_entry(outcome, now="2026-01-01T00:01:30+00:00")

    assert entry["deploymentId"] == "d1"
    assert entry["success"] is False
    assert entry["error"] == "Build failed"
    assert entry["commitSha"] == "abc123"
    assert entry["branch"] == "main"
    assert entry["durationMs"] == 90000
    assert entry["steps"][0]["status"] == "error"
    assert "dockerfileInfo" not in entry["configSnapshot"]
    assert "deployUrl" not in entry
    assert entry["id"]


def test_history_entry_without_timing():
    outcome = DeploymentOutcome(success=True, config=None, deploy_url="https://x.example.com")
    entry = history_entry(outcome)
    assert entry["deployUrl"] == "https://x.example.com"
    assert entry["deploymentId"] is None
    assert "durationMs" not in entry
