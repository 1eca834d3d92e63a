"""
Runtime settings for the SmartDeploy client.
"""

import os
from dataclasses import dataclass
from typing import Optional


DEFAULT_WS_URL = "ws://localhost:4001"
DEFAULT_API_URL = "http://localhost:3000"
DEFAULT_DEBOUNCE_MS = 500


def _int_env(name: str, default: int) -> int:
    raw = os.environ.get(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got {raw!r}")


@dataclass
class Settings:
    """Client settings, normally read from SMARTDEPLOY_* environment variables."""
    ws_url: str = DEFAULT_WS_URL
    api_url: str = DEFAULT_API_URL
    token: Optional[str] = None
    debounce_ms: int = DEFAULT_DEBOUNCE_MS
    log_level: str = "INFO"
    http_timeout: int = 10

    @property
    def debounce_seconds(self) -> float:
        return self.debounce_ms / 1000.0

    @classmethod
    def from_env(cls) -> "Settings":
        """
        Build settings from the environment.

        Returns:
            Settings: populated settings, defaults where a variable is unset

        Raises:
            ValueError: If a numeric variable cannot be parsed
        """
        return cls(
            ws_url=os.environ.get("SMARTDEPLOY_WS_URL", DEFAULT_WS_URL),
            api_url=os.environ.get("SMARTDEPLOY_API_URL", DEFAULT_API_URL).rstrip("/"),
            token=os.environ.get("SMARTDEPLOY_TOKEN") or None,
            debounce_ms=_int_env("SMARTDEPLOY_DEBOUNCE_MS", DEFAULT_DEBOUNCE_MS),
            log_level=os.environ.get("SMARTDEPLOY_LOG_LEVEL", "INFO").upper(),
            http_timeout=_int_env("SMARTDEPLOY_HTTP_TIMEOUT", 10),
        )
