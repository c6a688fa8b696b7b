"""Public-key directory — the profile store seen from the crypto core.

Each identity publishes its public key as a plain text ``publicKey`` field
on its user profile. There is no versioning: one active key per identity.
Profiles with an empty ``publicKey`` exist (accounts created before key
generation) and cannot be messaged securely.

PublicKeyDirectory defines the contract. InMemoryDirectory is a dict;
JsonFileDirectory persists all profiles as one JSON object keyed by id,
mirroring the ``users`` collection layout.
"""
from __future__ import annotations

import json
import threading
from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path


@dataclass
class UserProfile:
    """The subset of a user profile record the crypto core reads and writes.

    Parameters
    ----------
    id:
        The identity id (auth uid).
    name:
        Display name.
    public_key:
        Base64 SPKI text, or ``""`` when the user has no published key.
    """

    id: str
    name: str = ""
    public_key: str = ""

    @property
    def can_receive_encrypted(self) -> bool:
        return self.public_key != ""

    def to_dict(self) -> dict[str, str]:
        """Serialize using the profile document's field names."""
        return {"id": self.id, "name": self.name, "publicKey": self.public_key}

    @classmethod
    def from_dict(cls, data: dict[str, object]) -> "UserProfile":
        """Build a profile from a stored record.

        Raises
        ------
        ValueError
            If the record is not an object or has no string ``id``.
        """
        if not isinstance(data, dict):
            raise ValueError(f"Profile record must be an object, got {type(data).__name__}")
        if not isinstance(data.get("id"), str) or not data["id"]:
            raise ValueError("Profile record has no 'id'")
        return cls(
            id=str(data["id"]),
            name=str(data.get("name", "")),
            public_key=str(data.get("publicKey", "") or ""),
        )


class PublicKeyDirectory(ABC):
    """Abstract profile store for published public keys."""

    @abstractmethod
    def get_profile(self, identity_id: str) -> UserProfile | None:
        """Return the profile for *identity_id*, or None if unknown."""

    @abstractmethod
    def save_profile(self, profile: UserProfile) -> None:
        """Create or replace a profile."""

    @abstractmethod
    def list_profiles(self) -> list[UserProfile]:
        """Return all profiles sorted by id."""

    def publish(self, identity_id: str, public_key: str, name: str | None = None) -> UserProfile:
        """Set the ``publicKey`` field of *identity_id*'s profile, creating it if needed."""
        profile = self.get_profile(identity_id) or UserProfile(id=identity_id)
        profile.public_key = public_key
        if name is not None:
            profile.name = name
        self.save_profile(profile)
        return profile

    def lookup(self, identity_id: str) -> str | None:
        """Return the published key text, ``""`` if unset, or None if the identity is unknown."""
        profile = self.get_profile(identity_id)
        return None if profile is None else profile.public_key

    def securable_contacts(self, exclude_id: str | None = None) -> list[UserProfile]:
        """Return profiles with a published key, excluding *exclude_id*."""
        return [
            p
            for p in self.list_profiles()
            if p.can_receive_encrypted and p.id != exclude_id
        ]


class InMemoryDirectory(PublicKeyDirectory):
    """Process-local directory."""

    def __init__(self) -> None:
        self._profiles: dict[str, UserProfile] = {}
        self._lock = threading.Lock()

    def get_profile(self, identity_id: str) -> UserProfile | None:
        with self._lock:
            profile = self._profiles.get(identity_id)
            return None if profile is None else UserProfile(**vars(profile))

    def save_profile(self, profile: UserProfile) -> None:
        with self._lock:
            self._profiles[profile.id] = UserProfile(**vars(profile))

    def list_profiles(self) -> list[UserProfile]:
        with self._lock:
            return [UserProfile(**vars(self._profiles[k])) for k in sorted(self._profiles)]


class JsonFileDirectory(PublicKeyDirectory):
    """Directory persisted as a single JSON file.

    The file is read on every access and rewritten on every save, so
    several processes (e.g. successive CLI invocations) see each other's
    writes.

    Parameters
    ----------
    path:
        The JSON file. Created on first save; parent directories are
        created automatically.
    """

    def __init__(self, path: Path) -> None:
        self._path = path
        self._lock = threading.Lock()

    @property
    def path(self) -> Path:
        return self._path

    def get_profile(self, identity_id: str) -> UserProfile | None:
        with self._lock:
            data = self._read()
        entry = data.get(identity_id)
        return None if entry is None else UserProfile.from_dict(entry)

    def save_profile(self, profile: UserProfile) -> None:
        with self._lock:
            data = self._read()
            data[profile.id] = profile.to_dict()
            self._path.parent.mkdir(parents=True, exist_ok=True)
            self._path.write_text(json.dumps(data, indent=2, sort_keys=True), encoding="utf-8")

    def list_profiles(self) -> list[UserProfile]:
        with self._lock:
            data = self._read()
        return [UserProfile.from_dict(data[k]) for k in sorted(data)]

    def _read(self) -> dict[str, dict[str, object]]:
        """Load the profile map.

        Raises
        ------
        ValueError
            If the file exists but is not a JSON object.
        """
        if not self._path.exists():
            return {}
        content = self._path.read_text(encoding="utf-8").strip()
        if not content:
            return {}
        try:
            data = json.loads(content)
        except json.JSONDecodeError as exc:
            raise ValueError(f"Directory file {self._path} is not valid JSON: {exc}") from exc
        if not isinstance(data, dict):
            raise ValueError(f"Directory file {self._path} must contain a JSON object")
        return data


__all__ = ["InMemoryDirectory", "JsonFileDirectory", "PublicKeyDirectory", "UserProfile"]
