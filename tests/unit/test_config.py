"""Tests for crazzle_e2ee.config — E2EESettings."""
from __future__ import annotations

from pathlib import Path

import pytest
from pydantic import ValidationError

from crazzle_e2ee.config import (
    DECRYPTION_FAILED_PLACEHOLDER,
    MISSING_KEY_PLACEHOLDER,
    E2EESettings,
)


class TestDefaults:
    def test_paths_under_home(self) -> None:
        settings = E2EESettings()
        assert settings.key_store_dir == Path("~/.crazzle/keys").expanduser()
        assert settings.directory_file == Path("~/.crazzle/directory.json").expanduser()
        assert settings.audit_log is None
        assert settings.log_level is None

    def test_placeholders(self) -> None:
        settings = E2EESettings()
        assert settings.decrypt_failed_placeholder == DECRYPTION_FAILED_PLACEHOLDER
        assert settings.missing_key_placeholder == MISSING_KEY_PLACEHOLDER
        assert DECRYPTION_FAILED_PLACEHOLDER == "🔓 Entschlüsselung fehlgeschlagen"


class TestFromEnv:
    def test_reads_crazzle_variables(self, tmp_path: Path) -> None:
        env = {
            "CRAZZLE_KEY_STORE_DIR": str(tmp_path / "keys"),
            "CRAZZLE_DIRECTORY_FILE": str(tmp_path / "dir.json"),
            "CRAZZLE_AUDIT_LOG": str(tmp_path / "audit.jsonl"),
            "CRAZZLE_LOG_LEVEL": "debug",
        }
        settings = E2EESettings.from_env(env)
        assert settings.key_store_dir == tmp_path / "keys"
        assert settings.directory_file == tmp_path / "dir.json"
        assert settings.audit_log == tmp_path / "audit.jsonl"
        assert settings.log_level == "DEBUG"

    def test_empty_variables_ignored(self) -> None:
        settings = E2EESettings.from_env({"CRAZZLE_AUDIT_LOG": ""})
        assert settings.audit_log is None

    def test_overrides_win(self, tmp_path: Path) -> None:
        env = {"CRAZZLE_KEY_STORE_DIR": str(tmp_path / "env")}
        settings = E2EESettings.from_env(env, key_store_dir=str(tmp_path / "cli"))
        assert settings.key_store_dir == tmp_path / "cli"

    def test_none_overrides_fall_through(self, tmp_path: Path) -> None:
        env = {"CRAZZLE_KEY_STORE_DIR": str(tmp_path / "env")}
        settings = E2EESettings.from_env(env, key_store_dir=None)
        assert settings.key_store_dir == tmp_path / "env"

    def test_reads_process_environment(
        self, monkeypatch: pytest.MonkeyPatch, tmp_path: Path
    ) -> None:
        monkeypatch.setenv("CRAZZLE_DIRECTORY_FILE", str(tmp_path / "env.json"))
        assert E2EESettings.from_env().directory_file == tmp_path / "env.json"

    def test_invalid_log_level(self) -> None:
        with pytest.raises(ValidationError):
            E2EESettings.from_env({"CRAZZLE_LOG_LEVEL": "chatty"})
