"""Runtime configuration for the crypto core and its CLI.

Values come from constructor arguments, or from ``CRAZZLE_*`` environment
variables via :meth:`E2EESettings.from_env`. CLI options override both.
"""
from __future__ import annotations

import os
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, Field, field_validator

_DEFAULT_HOME = Path("~/.crazzle").expanduser()

_ENV_FIELDS: dict[str, str] = {
    "CRAZZLE_KEY_STORE_DIR": "key_store_dir",
    "CRAZZLE_DIRECTORY_FILE": "directory_file",
    "CRAZZLE_AUDIT_LOG": "audit_log",
    "CRAZZLE_LOG_LEVEL": "log_level",
}

_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")

DECRYPTION_FAILED_PLACEHOLDER: str = "🔓 Entschlüsselung fehlgeschlagen"
MISSING_KEY_PLACEHOLDER: str = "🔒 Nachricht auf diesem Gerät nicht entschlüsselbar"


class E2EESettings(BaseModel):
    """Settings for local key storage, the profile directory and auditing."""

    key_store_dir: Path = Field(default_factory=lambda: _DEFAULT_HOME / "keys")
    directory_file: Path = Field(default_factory=lambda: _DEFAULT_HOME / "directory.json")
    audit_log: Optional[Path] = None
    decrypt_failed_placeholder: str = DECRYPTION_FAILED_PLACEHOLDER
    missing_key_placeholder: str = MISSING_KEY_PLACEHOLDER
    log_level: Optional[str] = None

    @field_validator("log_level")
    @classmethod
    def _check_log_level(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return None
        upper = value.upper()
        if upper not in _LOG_LEVELS:
            raise ValueError(f"log_level must be one of {', '.join(_LOG_LEVELS)}, got {value!r}")
        return upper

    @classmethod
    def from_env(cls, environ: dict[str, str] | None = None, **overrides: object) -> "E2EESettings":
        """Build settings from ``CRAZZLE_*`` variables, then apply *overrides*.

        Overrides whose value is None are ignored, so unset CLI options fall
        through to the environment.
        """
        env = os.environ if environ is None else environ
        values: dict[str, object] = {
            field_name: env[var] for var, field_name in _ENV_FIELDS.items() if env.get(var)
        }
        values.update({k: v for k, v in overrides.items() if v is not None})
        return cls(**values)


__all__ = ["DECRYPTION_FAILED_PLACEHOLDER", "E2EESettings", "MISSING_KEY_PLACEHOLDER"]
