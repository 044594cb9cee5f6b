"""Console configuration: YAML file plus environment overrides.

Searches for ``garage-console.yaml`` in the current directory and parent
directories, then applies ``GARAGE_CONSOLE_*`` environment variables on top.
The result is an immutable ``ConsoleConfig`` built once at startup and
validated before any component is constructed.
"""

from __future__ import annotations

import logging
import os
import secrets
from collections.abc import Mapping
from dataclasses import dataclass, fields, replace
from pathlib import Path
from typing import Any

import yaml

CONFIG_FILENAME = "garage-console.yaml"
ENV_PREFIX = "GARAGE_CONSOLE_"

LOG_LEVELS = ("critical", "error", "warning", "info", "debug")
_FALSY = ("0", "false", "no", "off", "none", "")


class ConfigError(ValueError):
    """Raised when the configuration cannot be used to start the console."""

    def __init__(self, problems: list[str]) -> None:
        self.problems = problems
        super().__init__("Invalid configuration: " + "; ".join(problems))


@dataclass(frozen=True)
class ConsoleConfig:
    """Settings for the console BFF.

    Every field can be overridden with an environment variable prefixed
    with ``GARAGE_CONSOLE_`` (e.g. ``GARAGE_CONSOLE_PORT=9000``).
    """

    encryption_key: str = ""
    jwt_secret: str = ""
    admin_password: str = ""
    host: str = "127.0.0.1"
    port: int = 3001
    db_path: str = "./garage-console.db"
    log_level: str = "info"
    access_log: bool = True
    proxy_timeout: float = 30.0
    session_ttl: int = 24 * 3600
    dev_mode: bool = False
    config_path: str | None = None

    @property
    def encryption_key_bytes(self) -> bytes:
        return self.encryption_key.encode("utf-8")

    def validate(self) -> ConsoleConfig:
        """Check every field, raising ``ConfigError`` listing all problems."""
        problems: list[str] = []

        for name in ("jwt_secret", "admin_password", "encryption_key"):
            if not getattr(self, name).strip():
                problems.append(f"{ENV_PREFIX}{name.upper()} is required")

        key_len = len(self.encryption_key_bytes)
        if self.encryption_key.strip() and key_len != 32:
            problems.append(
                f"{ENV_PREFIX}ENCRYPTION_KEY must be exactly 32 bytes (got {key_len})"
            )
        if self.port <= 0:
            problems.append(f"{ENV_PREFIX}PORT must be a positive integer")
        if self.log_level.lower() not in LOG_LEVELS:
            problems.append(
                f"{ENV_PREFIX}LOG_LEVEL must be one of: {', '.join(sorted(LOG_LEVELS))}"
            )
        if self.proxy_timeout <= 0:
            problems.append(f"{ENV_PREFIX}PROXY_TIMEOUT must be positive")
        if self.session_ttl <= 0:
            problems.append(f"{ENV_PREFIX}SESSION_TTL must be positive")

        if problems:
            raise ConfigError(problems)
        return self

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> ConsoleConfig:
        """Build a config from loosely typed values (YAML or env strings)."""
        kwargs: dict[str, Any] = {}
        problems: list[str] = []
        for fld in fields(cls):
            if fld.name not in data or data[fld.name] is None:
                continue
            try:
                kwargs[fld.name] = _coerce(fld.type, data[fld.name])
            except ValueError:
                problems.append(f"{fld.name} has an invalid value: {data[fld.name]!r}")
        if problems:
            raise ConfigError(problems)
        return cls(**kwargs)


def _coerce(type_name: Any, value: Any) -> Any:
    if type_name == "int":
        return int(value)
    if type_name == "float":
        return float(value)
    if type_name == "bool":
        if isinstance(value, bool):
            return value
        return str(value).strip().lower() not in _FALSY
    return str(value)


def find_config(start: Path | None = None) -> Path | None:
    """Walk from *start* (default ``cwd()``) up to the filesystem root.

    Returns the first ``garage-console.yaml`` found, or ``None``.
    """
    current = (start or Path.cwd()).resolve()
    while True:
        candidate = current / CONFIG_FILENAME
        if candidate.is_file():
            return candidate
        parent = current.parent
        if parent == current:
            return None
        current = parent


def load_config(
    path: str | Path | None = None,
    *,
    environ: Mapping[str, str] | None = None,
    auto_discover: bool = True,
) -> ConsoleConfig:
    """Load and validate the console configuration.

    Resolution order, lowest precedence first:

    1. Dataclass defaults.
    2. Explicit *path* (error if missing), else an auto-discovered file.
    3. ``GARAGE_CONSOLE_*`` environment variables.

    Raises:
        ConfigError: If the merged configuration is unusable.
    """
    config_path: Path | None = None
    if path is not None:
        config_path = Path(path).resolve()
        if not config_path.is_file():
            msg = f"Config file not found: {config_path}"
            raise FileNotFoundError(msg)
    elif auto_discover:
        config_path = find_config()

    data: dict[str, Any] = {}
    if config_path is not None:
        data.update(_read_yaml(config_path))

    env = os.environ if environ is None else environ
    for fld in fields(ConsoleConfig):
        val = env.get(f"{ENV_PREFIX}{fld.name.upper()}")
        if val is not None:
            data[fld.name] = val

    config = ConsoleConfig.from_mapping(data)
    if config_path is not None:
        config = replace(config, config_path=str(config_path))
        if not Path(config.db_path).is_absolute():
            config = replace(
                config, db_path=str((config_path.parent / config.db_path).resolve())
            )
    return config.validate()


def _read_yaml(config_path: Path) -> dict[str, Any]:
    text = config_path.read_text(encoding="utf-8")
    data = yaml.safe_load(text) or {}
    if not isinstance(data, dict):
        msg = f"Expected a YAML mapping in {config_path}, got {type(data).__name__}"
        raise ConfigError([msg])
    return data


def generate_encryption_key() -> str:
    """Generate a random 32-character key (32 bytes once UTF-8 encoded)."""
    return secrets.token_urlsafe(24)


def generate_signing_secret() -> str:
    """Generate a 256-bit hex signing secret (64 hex characters)."""
    return secrets.token_hex(32)


def configure_logging(level: str = "info") -> None:
    """Route console loggers to stderr at *level*."""
    logging.basicConfig(
        level=level.upper(),
        format="%(asctime)s %(levelname)-8s %(name)s: %(message)s",
    )
