"""Shared-key derivation and authenticated message encryption."""
from __future__ import annotations

from crazzle_e2ee.cipher.derive import AES_KEY_LENGTH, SharedSecretDeriver, SymmetricKey
from crazzle_e2ee.cipher.message import MessageCipher
from crazzle_e2ee.cipher.payload import NONCE_LENGTH, TAG_LENGTH, EncryptedPayload

__all__ = [
    "AES_KEY_LENGTH",
    "EncryptedPayload",
    "MessageCipher",
    "NONCE_LENGTH",
    "SharedSecretDeriver",
    "SymmetricKey",
    "TAG_LENGTH",
]
