"""crazzle-e2ee — end-to-end encryption core for the Crazzle messenger.

Public API
----------
The stable public surface is everything exported from this module.
Anything inside submodules not re-exported here is considered private
and may change without notice.

Example
-------
>>> import crazzle_e2ee
>>> crazzle_e2ee.__version__
'0.1.0'

Quick start
-----------
::

    import asyncio
    from crazzle_e2ee import SecureMessenger

    async def main() -> None:
        messenger = SecureMessenger()
        await messenger.register_identity("alice")
        await messenger.register_identity("bob")
        token = await messenger.encrypt_for("alice", "bob", "hello")
        print(await messenger.decrypt_from("bob", "alice", token))  # hello

    asyncio.run(main())

Limitations
-----------
Key pairs are long-lived and never rotated, and the pairwise key is
re-derived from them on every call. There is no forward secrecy: a leaked
private key exposes every past and future message of that identity.
"""
from __future__ import annotations

__version__: str = "0.1.0"

from crazzle_e2ee import codec

# ------------------------------------------------------------------
# Errors
# ------------------------------------------------------------------
from crazzle_e2ee.errors import (
    CryptoUnavailable,
    DecryptionFailed,
    E2EEError,
    InvalidPublicKey,
    MissingLocalPrivateKey,
)

# ------------------------------------------------------------------
# Providers
# ------------------------------------------------------------------
from crazzle_e2ee.providers import (
    AeadCipherProvider,
    AesGcmCipher,
    KeyAgreementProvider,
    P256KeyAgreement,
    RandomSource,
    SystemRandomSource,
)

# ------------------------------------------------------------------
# Keys
# ------------------------------------------------------------------
from crazzle_e2ee.keys.manager import GeneratedKeyPair, KeyPairManager, PrivateKeyHandle
from crazzle_e2ee.keys.store import FilesystemKeyStore, InMemoryKeyStore, KeyStore

# ------------------------------------------------------------------
# Cipher
# ------------------------------------------------------------------
from crazzle_e2ee.cipher.derive import SharedSecretDeriver, SymmetricKey
from crazzle_e2ee.cipher.message import MessageCipher
from crazzle_e2ee.cipher.payload import EncryptedPayload

# ------------------------------------------------------------------
# Directory, verification, messenger
# ------------------------------------------------------------------
from crazzle_e2ee.audit import AuditEvent, CryptoAuditLogger
from crazzle_e2ee.config import E2EESettings
from crazzle_e2ee.directory import (
    InMemoryDirectory,
    JsonFileDirectory,
    PublicKeyDirectory,
    UserProfile,
)
from crazzle_e2ee.messenger import MessageType, SealedMessage, SecureMessenger
from crazzle_e2ee.verification import KeyFingerprint, fingerprint, safety_number

__all__ = [
    # version
    "__version__",
    "codec",
    # errors
    "CryptoUnavailable",
    "DecryptionFailed",
    "E2EEError",
    "InvalidPublicKey",
    "MissingLocalPrivateKey",
    # providers
    "AeadCipherProvider",
    "AesGcmCipher",
    "KeyAgreementProvider",
    "P256KeyAgreement",
    "RandomSource",
    "SystemRandomSource",
    # keys
    "FilesystemKeyStore",
    "GeneratedKeyPair",
    "InMemoryKeyStore",
    "KeyPairManager",
    "KeyStore",
    "PrivateKeyHandle",
    # cipher
    "EncryptedPayload",
    "MessageCipher",
    "SharedSecretDeriver",
    "SymmetricKey",
    # audit / config
    "AuditEvent",
    "CryptoAuditLogger",
    "E2EESettings",
    # directory
    "InMemoryDirectory",
    "JsonFileDirectory",
    "PublicKeyDirectory",
    "UserProfile",
    # messenger
    "MessageType",
    "SealedMessage",
    "SecureMessenger",
    # verification
    "KeyFingerprint",
    "fingerprint",
    "safety_number",
]
