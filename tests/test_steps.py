"""
Tests for the deployment step registry.
"""

from smartdeploy.session.steps import DEFAULT_STEPS, StepRegistry, StepStatus, derive_status


class TestDeriveStatus:
    """Status transitions driven by log lines."""

    def test_first_log_moves_pending_to_in_progress(self):
        assert derive_status(StepStatus.PENDING, "Cloning...") == StepStatus.IN_PROGRESS

    def test_markers_finish_a_step(self):
        assert derive_status(StepStatus.IN_PROGRESS, "✅ Image pushed") == StepStatus.SUCCESS
        assert derive_status(StepStatus.PENDING, "❌ Build failed") == StepStatus.ERROR

    def test_terminal_states_never_move(self):
        assert derive_status(StepStatus.SUCCESS, "❌ late failure") == StepStatus.SUCCESS
        assert derive_status(StepStatus.ERROR, "✅ late success") == StepStatus.ERROR
        assert derive_status(StepStatus.ERROR, "more output") == StepStatus.ERROR


class TestStepRegistry:
    """Ordering, synthesis and merge behaviour."""

    def test_starts_from_template(self):
        registry = StepRegistry()
        assert registry.ids() == [step_id for step_id, _ in DEFAULT_STEPS]
        assert all(step.status == StepStatus.PENDING for step in registry)

    def test_append_log_updates_status(self):
        registry = StepRegistry()
        registry.append_log("clone", "Cloning repo")
        registry.append_log("clone", "✅ Cloned")
        step = registry.get("clone")
        assert step.logs == ["Cloning repo", "✅ Cloned"]
        assert step.status == StepStatus.SUCCESS

    def test_unknown_step_is_synthesized_at_the_end(self):
        registry = StepRegistry()
        step, created = registry.append_log("migrate", "Running migrations")
        assert created
        assert registry.ids()[-1] == "migrate"
        assert step.label == "migrate"
        assert step.status == StepStatus.IN_PROGRESS

        _, created = registry.append_log("migrate", "done")
        assert not created

    def test_merge_keeps_logged_steps_missing_from_list(self):
        registry = StepRegistry()
        registry.append_log("auth", "✅ Authenticated")

        registry.merge([("clone", "📦 Clone"), ("build", "🏗️ Build")])

        assert registry.ids() == ["auth", "clone", "build"]
        assert registry.get("auth").logs == ["✅ Authenticated"]
        assert registry.get("auth").status == StepStatus.SUCCESS
        assert registry.get("clone").label == "📦 Clone"
        assert registry.get("build").status == StepStatus.PENDING
        assert "docker" not in registry

    def test_merge_preserves_existing_logs_and_position(self):
        registry = StepRegistry([("a", "A"), ("b", "B")])
        registry.append_log("b", "working")

        registry.merge([("b", "Bee"), ("a", "Ay")])

        assert registry.ids() == ["a", "b"]
        assert registry.get("b").logs == ["working"]
        assert registry.get("b").label == "Bee"
        assert registry.get("b").status == StepStatus.IN_PROGRESS

    def test_reset_discards_progress(self):
        registry = StepRegistry([("a", "A")])
        registry.append_log("x", "orphan")
        registry.append_log("a", "❌ failed")

        registry.reset()

        assert registry.ids() == ["a"]
        assert registry.get("a").logs == []
        assert registry.get("a").status == StepStatus.PENDING

    def test_copy_steps_is_detached(self):
        registry = StepRegistry([("a", "A")])
        registry.append_log("a", "one")
        copies = registry.copy_steps()
        registry.append_log("a", "two")
        assert copies[0].logs == ["one"]

    def test_to_list_shape(self):
        registry = StepRegistry([("a", "A")])
        assert registry.to_list() == [{"id": "a", "label": "A", "logs": [], "status": "pending"}]
