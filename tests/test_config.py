"""Tests for console configuration loading and validation."""

from __future__ import annotations

from pathlib import Path

import pytest

from garage_console.config import (
    ConfigError,
    ConsoleConfig,
    find_config,
    generate_encryption_key,
    generate_signing_secret,
    load_config,
)

VALID_ENV = {
    "GARAGE_CONSOLE_JWT_SECRET": "test-jwt-secret",
    "GARAGE_CONSOLE_ADMIN_PASSWORD": "test-admin-password",
    "GARAGE_CONSOLE_ENCRYPTION_KEY": "01234567890123456789012345678901",
}


def _load(env: dict[str, str], **kwargs) -> ConsoleConfig:
    return load_config(environ=env, auto_discover=False, **kwargs)


# --- Key generation ---


class TestGenerateKeys:
    def test_encryption_key_is_32_bytes(self) -> None:
        key = generate_encryption_key()
        assert len(key.encode("utf-8")) == 32

    def test_encryption_key_unique(self) -> None:
        keys = {generate_encryption_key() for _ in range(20)}
        assert len(keys) == 20

    def test_generated_key_passes_validation(self) -> None:
        env = {**VALID_ENV, "GARAGE_CONSOLE_ENCRYPTION_KEY": generate_encryption_key()}
        _load(env)

    def test_signing_secret_is_64_hex_chars(self) -> None:
        secret = generate_signing_secret()
        assert len(secret) == 64
        assert all(c in "0123456789abcdef" for c in secret)


# --- Environment ---


class TestFromEnv:
    def test_valid_env(self) -> None:
        cfg = _load(VALID_ENV)
        assert cfg.jwt_secret == "test-jwt-secret"
        assert cfg.encryption_key_bytes == b"01234567890123456789012345678901"
        assert cfg.port == 3001
        assert cfg.proxy_timeout == 30.0
        assert cfg.session_ttl == 86400

    @pytest.mark.parametrize("missing", sorted(VALID_ENV))
    def test_missing_required_var(self, missing: str) -> None:
        env = {k: v for k, v in VALID_ENV.items() if k != missing}
        with pytest.raises(ConfigError, match=missing):
            _load(env)

    def test_blank_secret_rejected(self) -> None:
        env = {**VALID_ENV, "GARAGE_CONSOLE_JWT_SECRET": "   "}
        with pytest.raises(ConfigError, match="JWT_SECRET"):
            _load(env)

    @pytest.mark.parametrize(
        "key",
        ["short", "0123456789012345678901234567890", "012345678901234567890123456789012"],
    )
    def test_encryption_key_wrong_length(self, key: str) -> None:
        env = {**VALID_ENV, "GARAGE_CONSOLE_ENCRYPTION_KEY": key}
        with pytest.raises(ConfigError, match="exactly 32 bytes"):
            _load(env)

    def test_multibyte_key_counted_in_bytes(self) -> None:
        # 31 characters, 32 bytes: accepted; 32 characters, 33 bytes: rejected.
        _load({**VALID_ENV, "GARAGE_CONSOLE_ENCRYPTION_KEY": "é" + "a" * 30})
        with pytest.raises(ConfigError):
            _load({**VALID_ENV, "GARAGE_CONSOLE_ENCRYPTION_KEY": "é" + "a" * 31})

    def test_typed_overrides(self) -> None:
        env = {
            **VALID_ENV,
            "GARAGE_CONSOLE_PORT": "9000",
            "GARAGE_CONSOLE_PROXY_TIMEOUT": "2.5",
            "GARAGE_CONSOLE_ACCESS_LOG": "off",
            "GARAGE_CONSOLE_DEV_MODE": "true",
        }
        cfg = _load(env)
        assert cfg.port == 9000
        assert cfg.proxy_timeout == 2.5
        assert cfg.access_log is False
        assert cfg.dev_mode is True

    def test_non_numeric_port(self) -> None:
        with pytest.raises(ConfigError, match="port"):
            _load({**VALID_ENV, "GARAGE_CONSOLE_PORT": "abc"})

    def test_non_positive_port(self) -> None:
        with pytest.raises(ConfigError, match="PORT"):
            _load({**VALID_ENV, "GARAGE_CONSOLE_PORT": "0"})

    def test_bad_log_level(self) -> None:
        with pytest.raises(ConfigError, match="LOG_LEVEL"):
            _load({**VALID_ENV, "GARAGE_CONSOLE_LOG_LEVEL": "chatty"})

    def test_all_problems_reported(self) -> None:
        with pytest.raises(ConfigError) as excinfo:
            _load({})
        assert len(excinfo.value.problems) == 3

    def test_config_is_frozen(self) -> None:
        cfg = _load(VALID_ENV)
        with pytest.raises(AttributeError):
            cfg.port = 1  # type: ignore[misc]


# --- YAML file ---


class TestConfigFile:
    def test_finds_in_parent(self, tmp_path: Path) -> None:
        cfg = tmp_path / "garage-console.yaml"
        cfg.write_text("port: 4000\n", encoding="utf-8")
        child = tmp_path / "sub" / "deep"
        child.mkdir(parents=True)
        assert find_config(child) == cfg

    def test_returns_none_when_missing(self, tmp_path: Path) -> None:
        assert find_config(tmp_path) is None

    def test_file_values_and_env_precedence(self, tmp_path: Path) -> None:
        cfg_file = tmp_path / "garage-console.yaml"
        cfg_file.write_text(
            "port: 4000\n"
            "jwt_secret: from-file\n"
            "admin_password: file-password\n"
            "encryption_key: abcdefghijklmnopqrstuvwxyz012345\n"
            "db_path: data/console.db\n",
            encoding="utf-8",
        )
        cfg = load_config(
            cfg_file, environ={"GARAGE_CONSOLE_JWT_SECRET": "from-env"}
        )
        assert cfg.port == 4000
        assert cfg.jwt_secret == "from-env"
        assert cfg.admin_password == "file-password"
        assert cfg.config_path == str(cfg_file.resolve())
        assert cfg.db_path == str((tmp_path / "data" / "console.db").resolve())

    def test_explicit_missing_file(self, tmp_path: Path) -> None:
        with pytest.raises(FileNotFoundError):
            load_config(tmp_path / "nope.yaml", environ=VALID_ENV)

    def test_non_mapping_yaml(self, tmp_path: Path) -> None:
        cfg_file = tmp_path / "garage-console.yaml"
        cfg_file.write_text("- just\n- a list\n", encoding="utf-8")
        with pytest.raises(ConfigError, match="YAML mapping"):
            load_config(cfg_file, environ=VALID_ENV)
