"""Error taxonomy for the end-to-end encryption core.

Every public operation either returns its result or raises one of the
four kinds below. Platform exceptions from ``cryptography``, ``binascii``
or ``json`` are always chained onto one of these, never re-raised raw.
"""
from __future__ import annotations


class E2EEError(Exception):
    """Base class for all end-to-end encryption errors."""


class CryptoUnavailable(E2EEError):
    """Raised when the cryptographic provider is missing or refuses to operate.

    Fatal for key generation: callers must abort account creation rather
    than continue without a key pair.
    """

    def __init__(self, reason: str = "") -> None:
        self.reason = reason
        message = "Cryptographic provider unavailable"
        super().__init__(f"{message}: {reason}" if reason else message)


class InvalidPublicKey(E2EEError):
    """Raised when a counterpart's published key is malformed or on the wrong curve.

    The conversation cannot be secured; sending must be blocked.
    """

    def __init__(self, reason: str, identity_id: str | None = None) -> None:
        self.reason = reason
        self.identity_id = identity_id
        if identity_id is not None:
            super().__init__(f"Invalid public key for identity {identity_id!r}: {reason}")
        else:
            super().__init__(f"Invalid public key: {reason}")


class DecryptionFailed(E2EEError):
    """Raised when a ciphertext token is malformed or fails authentication."""

    def __init__(self, reason: str = "authentication failed") -> None:
        self.reason = reason
        super().__init__(f"Decryption failed: {reason}")


class MissingLocalPrivateKey(E2EEError):
    """Raised when this device holds no private key for an identity.

    Under the no-rotation design this is permanent: ciphertext exchanged
    under the lost key can no longer be decrypted.
    """

    def __init__(self, identity_id: str) -> None:
        self.identity_id = identity_id
        super().__init__(
            f"No local private key for identity {identity_id!r}. "
            "Historical messages for this identity cannot be decrypted."
        )


__all__ = [
    "CryptoUnavailable",
    "DecryptionFailed",
    "E2EEError",
    "InvalidPublicKey",
    "MissingLocalPrivateKey",
]
