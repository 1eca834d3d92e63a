"""
Inline embedding of build artifacts carried by a deployment config.
"""

import base64
import logging
from pathlib import Path
from typing import Any, Dict, Tuple, Union

from ..reconcile.projection import normalize_env_vars

logger = logging.getLogger(__name__)

DOCKERFILE_MIME = "application/octet-stream"


def _read_artifact(source: Union[str, Path, bytes, Dict[str, Any]]) -> Tuple[str, str, bytes]:
    """Return (name, mime type, raw bytes) for a dockerfile reference."""
    if isinstance(source, bytes):
        return "Dockerfile", DOCKERFILE_MIME, source
    if isinstance(source, dict):
        content = source.get("content", b"")
        if isinstance(content, str):
            content = content.encode("utf-8")
        return source.get("name", "Dockerfile"), source.get("type") or DOCKERFILE_MIME, content
    path = Path(source)
    with open(path, "rb") as f:
        return path.name, DOCKERFILE_MIME, f.read()


def to_data_url(raw: bytes, mime: str) -> str:
    return f"data:{mime};base64,{base64.b64encode(raw).decode('ascii')}"


def embed_dockerfile(config: Dict[str, Any]) -> Dict[str, Any]:
    """
    Build the wire copy of a deployment config.

    When the config uses a custom Dockerfile, the file is attached as
    dockerfileInfo (base64 data URL) plus dockerfileContent (text). The raw
    "dockerfile" reference never goes on the wire.

    Args:
        config: deployment config; not modified

    Returns:
        Dict: JSON-ready copy of the config

    Raises:
        OSError: If the referenced Dockerfile cannot be read
    """
    wire = {k: v for k, v in config.items() if k != "dockerfile"}
    source = config.get("dockerfile")
    if source is None or not config.get("use_custom_dockerfile"):
        return wire

    name, mime, raw = _read_artifact(source)
    wire["dockerfileInfo"] = {"name": name, "type": mime, "content": to_data_url(raw, mime)}
    wire["dockerfileContent"] = raw.decode("utf-8", errors="replace")
    logger.debug(f"Embedded custom Dockerfile {name} ({len(raw)} bytes)")
    return wire


def wire_config(config: Dict[str, Any]) -> Dict[str, Any]:
    """Deployment config as sent to the worker: env vars in stored form, artifacts embedded."""
    wire = embed_dockerfile(config)
    if isinstance(wire.get("env_vars"), str):
        wire["env_vars"] = normalize_env_vars(wire["env_vars"])
    return wire
