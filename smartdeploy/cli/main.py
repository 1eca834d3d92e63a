"""Main CLI entrypoint for SmartDeploy."""

import json
import logging
import sys
import threading
from pathlib import Path
from typing import Any, Dict

import click
import yaml

from ..config import Settings
from ..selector import classify, eb_solution_stack, ProjectMetadata
from ..session import ConnectionState, DeploySession, SessionStatus, WebSocketTransport
from ..workspace import Workspace


@click.group()
@click.option('--log-level', default=None, help='Override SMARTDEPLOY_LOG_LEVEL')
@click.pass_context
def main(ctx, log_level):
    """SmartDeploy - deployment orchestration client."""
    settings = Settings.from_env()
    if log_level:
        settings.log_level = log_level.upper()
    logging.basicConfig(level=settings.log_level, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    ctx.ensure_object(dict)
    ctx.obj['settings'] = settings


def _json_output(data: Dict[str, Any]) -> None:
    """Output data as JSON."""
    click.echo(json.dumps(data, indent=None))


def _load_document(path: str) -> Dict[str, Any]:
    """Read a YAML or JSON mapping from path."""
    with open(Path(path)) as f:
        data = yaml.safe_load(f)
    if not isinstance(data, dict):
        raise click.BadParameter(f"{path} does not contain a mapping")
    return data


class _ProgressPrinter:
    """Prints step logs and live logs as they arrive, each line once."""

    def __init__(self, output_json: bool):
        self.output_json = output_json
        self.seen: Dict[str, int] = {}
        self.seen_live = 0
        self.done = threading.Event()

    def __call__(self, session: DeploySession) -> None:
        for step in session.steps:
            start = self.seen.get(step.id, 0)
            for msg in step.logs[start:]:
                if self.output_json:
                    _json_output({'step': step.id, 'msg': msg, 'status': step.status.value})
                else:
                    click.echo(f"[{step.label}] {msg}")
            self.seen[step.id] = len(step.logs)

        for entry in session.live_logs[self.seen_live:]:
            if self.output_json:
                _json_output(entry)
            else:
                click.echo(f"{entry.get('timestamp') or ''} {entry.get('message') or ''}".strip())
        self.seen_live = len(session.live_logs)

        if session.status.is_terminal:
            self.done.set()


@main.command('classify')
@click.argument('metadata_file')
@click.option('--json', 'output_json', is_flag=True, help='Output machine-readable JSON')
def classify_cmd(metadata_file, output_json):
    """Pick a deployment target for scanned project metadata."""
    try:
        metadata = ProjectMetadata.from_dict(_load_document(metadata_file))
    except (OSError, ValueError, yaml.YAMLError) as e:
        if output_json:
            _json_output({'error': str(e)})
        else:
            click.echo(f"❌ Could not read metadata: {e}")
        sys.exit(2)

    decision = classify(metadata)
    if decision is None:
        if output_json:
            _json_output({'deployable': False})
        else:
            click.echo("🚫 Not deployable: no runnable service or no compatible target")
        sys.exit(1)

    if output_json:
        _json_output({'deployable': True, **decision.to_dict()})
        return

    click.echo(f"🎯 Target: {click.style(decision.target, fg='green')}")
    click.echo(f"Reason: {decision.reason}")
    stack = eb_solution_stack(metadata.normalized_language or "") if decision.target == "elastic-beanstalk" else None
    if stack:
        click.echo(f"Solution stack: {stack}")
    for warning in decision.warnings:
        click.echo(f"⚠️  {warning}")


@main.command('deploy')
@click.argument('config_file')
@click.option('--token', help='Deploy credentials (defaults to SMARTDEPLOY_TOKEN)')
@click.option('--scan', 'metadata_file', help='Scan metadata used to pick the target first')
@click.option('--save', is_flag=True, help='Save the outcome to the deployment record')
@click.option('--timeout', default=1800, type=int, help='Seconds to wait for completion')
@click.option('--json', 'output_json', is_flag=True, help='Output machine-readable JSON')
@click.pass_context
def deploy_cmd(ctx, config_file, token, metadata_file, save, timeout, output_json):
    """Deploy a service config and stream its progress."""
    settings: Settings = ctx.obj['settings']
    token = token or settings.token
    if not token:
        click.echo("❌ No credentials: pass --token or set SMARTDEPLOY_TOKEN")
        sys.exit(2)

    config = _load_document(config_file)
    printer = _ProgressPrinter(output_json)

    if save:
        workspace = Workspace.from_settings(settings, record_id=config.get('id'))
        workspace.load(config)
        session = workspace.session
    else:
        workspace = None
        session = DeploySession(WebSocketTransport(settings.ws_url))
    session.on_change = printer

    if metadata_file:
        metadata = _load_document(metadata_file)
        decision = workspace.apply_scan(metadata) if workspace else classify(metadata)
        if decision is None:
            click.echo("🚫 Not deployable: no runnable service or no compatible target")
            sys.exit(1)
        if not workspace:
            config.update(decision.to_record_fields())
        if not output_json:
            click.echo(f"🎯 Target: {decision.target} ({decision.reason})")

    session.open()
    if not session.transport.wait_open(timeout=10):
        click.echo(f"❌ Could not connect to {settings.ws_url}")
        session.close()
        sys.exit(1)

    if workspace:
        submitted = workspace.deploy(token)
    else:
        submitted = session.submit(config, token)

    try:
        if submitted:
            printer.done.wait(timeout)
    except KeyboardInterrupt:
        click.echo("\n👋 Stopped waiting; the deployment may still be running")
    finally:
        if workspace:
            workspace.close()
        else:
            session.close()

    snapshot = session.snapshot()
    if output_json:
        _json_output(snapshot.to_dict())
    elif snapshot.status == SessionStatus.SUCCESS:
        click.echo(f"✅ {snapshot.message}")
        if snapshot.deploy_url:
            click.echo(f"🌐 URL: {click.style(snapshot.deploy_url, fg='blue', underline=True)}")
    else:
        click.echo(f"❌ {snapshot.message}")
    sys.exit(0 if snapshot.status == SessionStatus.SUCCESS else 1)


@main.command('watch')
@click.argument('service_name')
@click.option('--json', 'output_json', is_flag=True, help='Output machine-readable JSON')
@click.pass_context
def watch_cmd(ctx, service_name, output_json):
    """Tail live logs of a deployed service."""
    settings: Settings = ctx.obj['settings']
    printer = _ProgressPrinter(output_json)
    closed = threading.Event()

    def on_change(session: DeploySession) -> None:
        printer(session)
        if session.connection in (ConnectionState.CLOSED, ConnectionState.ERROR):
            closed.set()

    session = DeploySession(WebSocketTransport(settings.ws_url), service_name=service_name, on_change=on_change)
    session.open()
    try:
        closed.wait()
    except KeyboardInterrupt:
        click.echo("\n👋 Stopped following logs")
    finally:
        session.close()


if __name__ == '__main__':
    main()
