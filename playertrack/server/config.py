"""Server configuration loaded from the environment."""

from __future__ import annotations

import os
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Any, Mapping

from playertrack.players.registry import IDENTITY_MODES

ENV_PREFIX = "PLAYERTRACK_"
_LOG_LEVELS = {"CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG"}
_TRUE_VALUES = {"1", "true", "yes", "on"}
_FALSE_VALUES = {"0", "false", "no", "off"}


@dataclass(frozen=True)
class ServerConfig:
    """Settings for the HTTP service and the registry behind it."""

    host: str = "0.0.0.0"
    port: int = 8000
    static_dir: Path | None = Path("dist")
    identity_mode: str = "name"
    issue_credentials: bool = True
    log_level: str = "INFO"

    def __post_init__(self) -> None:
        """Validate config fields."""
        if not isinstance(self.host, str) or not self.host:
            raise ValueError("host must be a non-empty string")
        if not (0 < self.port < 65536):
            raise ValueError(f"Invalid port: {self.port}")
        if self.identity_mode not in IDENTITY_MODES:
            raise ValueError(f"Invalid identity mode: {self.identity_mode}")
        level = self.log_level.upper()
        if level not in _LOG_LEVELS:
            raise ValueError(f"Invalid log level: {self.log_level}")
        object.__setattr__(self, "log_level", level)

    def with_overrides(self, **overrides: Any) -> "ServerConfig":
        """Return a copy with the non-None overrides applied."""
        changes = {key: value for key, value in overrides.items() if value is not None}
        return replace(self, **changes)

    def to_env(self) -> dict[str, str]:
        """Return the ``PLAYERTRACK_*`` variables that reproduce this config."""
        return {
            ENV_PREFIX + "HOST": self.host,
            ENV_PREFIX + "PORT": str(self.port),
            ENV_PREFIX + "STATIC_DIR": "" if self.static_dir is None else str(self.static_dir),
            ENV_PREFIX + "IDENTITY_MODE": self.identity_mode,
            ENV_PREFIX + "ISSUE_CREDENTIALS": "true" if self.issue_credentials else "false",
            ENV_PREFIX + "LOG_LEVEL": self.log_level,
        }

    @staticmethod
    def from_env(environ: Mapping[str, str] | None = None) -> "ServerConfig":
        """Create a ServerConfig from ``PLAYERTRACK_*`` variables."""
        env = os.environ if environ is None else environ
        defaults = ServerConfig()

        def lookup(name: str) -> str | None:
            return env.get(ENV_PREFIX + name)

        port_value = lookup("PORT")
        try:
            port = int(port_value) if port_value else defaults.port
        except ValueError as exc:
            raise ValueError(f"{ENV_PREFIX}PORT must be an integer") from exc

        static_value = lookup("STATIC_DIR")
        if static_value is None:
            static_dir = defaults.static_dir
        else:
            static_dir = Path(static_value) if static_value else None

        return ServerConfig(
            host=lookup("HOST") or defaults.host,
            port=port,
            static_dir=static_dir,
            identity_mode=lookup("IDENTITY_MODE") or defaults.identity_mode,
            issue_credentials=_parse_bool(
                lookup("ISSUE_CREDENTIALS"), defaults.issue_credentials
            ),
            log_level=lookup("LOG_LEVEL") or defaults.log_level,
        )


def _parse_bool(value: str | None, default: bool) -> bool:
    """Parse a boolean environment flag."""
    if value is None or not value.strip():
        return default
    lowered = value.strip().lower()
    if lowered in _TRUE_VALUES:
        return True
    if lowered in _FALSE_VALUES:
        return False
    raise ValueError(f"Invalid boolean value: {value}")
