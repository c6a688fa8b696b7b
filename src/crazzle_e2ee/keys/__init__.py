"""Per-identity key pairs and their local storage."""
from __future__ import annotations

from crazzle_e2ee.keys.manager import GeneratedKeyPair, KeyPairManager, PrivateKeyHandle
from crazzle_e2ee.keys.store import FilesystemKeyStore, InMemoryKeyStore, KeyStore

__all__ = [
    "FilesystemKeyStore",
    "GeneratedKeyPair",
    "InMemoryKeyStore",
    "KeyPairManager",
    "KeyStore",
    "PrivateKeyHandle",
]
