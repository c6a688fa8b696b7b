"""Local private-key storage — abstract interface and implementations.

KeyStore defines the storage contract: exactly one serialized private key
(JWK JSON text) per identity, keyed by identity id. InMemoryKeyStore keeps
entries in a dict; FilesystemKeyStore persists one ``.jwk.json`` file per
identity under a configurable base directory.

Implementations may also expose coroutine methods; callers await the
results when they are awaitable.
"""
from __future__ import annotations

import os
import threading
from abc import ABC, abstractmethod
from pathlib import Path

from crazzle_e2ee import codec

_FILE_SUFFIX: str = ".jwk.json"


class KeyStore(ABC):
    """Abstract base class for local private-key storage backends."""

    @abstractmethod
    def get(self, identity_id: str) -> str | None:
        """Return the serialized private key for *identity_id*, or None."""

    @abstractmethod
    def put(self, identity_id: str, serialized_key: str) -> None:
        """Store *serialized_key* for *identity_id*, replacing any earlier entry."""

    @abstractmethod
    def delete(self, identity_id: str) -> None:
        """Remove the private key for *identity_id*.

        Raises
        ------
        KeyError
            If no key is stored for the given identity.
        """

    @abstractmethod
    def list_identities(self) -> list[str]:
        """Return a sorted list of identities holding a private key."""

    def exists(self, identity_id: str) -> bool:
        """Return True if a private key is stored for *identity_id*."""
        return self.get(identity_id) is not None


class InMemoryKeyStore(KeyStore):
    """Process-local key store. Contents are lost when the process exits."""

    def __init__(self) -> None:
        self._entries: dict[str, str] = {}
        self._lock = threading.Lock()

    def get(self, identity_id: str) -> str | None:
        with self._lock:
            return self._entries.get(identity_id)

    def put(self, identity_id: str, serialized_key: str) -> None:
        with self._lock:
            self._entries[identity_id] = serialized_key

    def delete(self, identity_id: str) -> None:
        with self._lock:
            if identity_id not in self._entries:
                raise KeyError(f"No private key stored for identity_id={identity_id!r}")
            del self._entries[identity_id]

    def list_identities(self) -> list[str]:
        with self._lock:
            return sorted(self._entries)


class FilesystemKeyStore(KeyStore):
    """Filesystem-backed key store.

    Each identity's private key is written to
    ``<base_dir>/<base64url(identity)>.jwk.json``
    with owner-only permissions where the platform supports them.

    Parameters
    ----------
    base_dir:
        Root directory for key files. Created if missing.
    """

    def __init__(self, base_dir: Path) -> None:
        self._base_dir = base_dir
        self._base_dir.mkdir(parents=True, exist_ok=True)
        self._lock = threading.Lock()

    # ------------------------------------------------------------------
    # KeyStore interface
    # ------------------------------------------------------------------

    def get(self, identity_id: str) -> str | None:
        path = self._key_path(identity_id)
        if not path.exists():
            return None
        return path.read_text(encoding="utf-8")

    def put(self, identity_id: str, serialized_key: str) -> None:
        """Write the key to a temporary file and atomically replace the old one."""
        path = self._key_path(identity_id)
        tmp_path = path.with_name(path.name + ".tmp")
        with self._lock:
            tmp_path.write_text(serialized_key, encoding="utf-8")
            try:
                os.chmod(tmp_path, 0o600)
            except OSError:
                pass  # not supported on every filesystem
            os.replace(tmp_path, path)

    def delete(self, identity_id: str) -> None:
        path = self._key_path(identity_id)
        with self._lock:
            if not path.exists():
                raise KeyError(f"No private key stored for identity_id={identity_id!r}")
            path.unlink()

    def list_identities(self) -> list[str]:
        """Return sorted identity ids with stored key files."""
        return sorted(
            codec.decode_urlsafe(p.name[: -len(_FILE_SUFFIX)]).decode("utf-8")
            for p in self._base_dir.iterdir()
            if p.is_file() and p.name.endswith(_FILE_SUFFIX)
        )

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    def _key_path(self, identity_id: str) -> Path:
        """Return the file path for a given identity_id.

        The id is base64url-encoded so distinct identities never share a file.
        """
        safe_name = codec.encode_urlsafe(identity_id.encode("utf-8"))
        return self._base_dir / f"{safe_name}{_FILE_SUFFIX}"


__all__ = ["FilesystemKeyStore", "InMemoryKeyStore", "KeyStore"]
