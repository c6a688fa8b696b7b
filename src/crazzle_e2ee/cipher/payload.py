"""EncryptedPayload — wire form of one encrypted message.

Layout: ``nonce (12 bytes) || AES-GCM ciphertext || tag (16 bytes)``,
standard-base64 encoded into a single text token for the message's
``content`` field.
"""
from __future__ import annotations

from dataclasses import dataclass

from crazzle_e2ee import codec
from crazzle_e2ee.errors import DecryptionFailed

NONCE_LENGTH: int = 12
TAG_LENGTH: int = 16


@dataclass(frozen=True)
class EncryptedPayload:
    """Nonce and authenticated ciphertext of a single message.

    Parameters
    ----------
    nonce:
        The per-message random nonce.
    ciphertext:
        Ciphertext with the integrity tag appended.
    """

    nonce: bytes
    ciphertext: bytes

    def to_bytes(self) -> bytes:
        return self.nonce + self.ciphertext

    def to_token(self) -> str:
        """Return the text token stored as the message content."""
        return codec.encode(self.to_bytes())

    @classmethod
    def from_token(
        cls,
        token: str,
        nonce_length: int = NONCE_LENGTH,
        tag_length: int = TAG_LENGTH,
    ) -> "EncryptedPayload":
        """Parse a text token.

        Raises
        ------
        DecryptionFailed
            If the token is not base64 or too short to hold a nonce and tag.
        """
        if not isinstance(token, str):
            raise DecryptionFailed(f"token must be text, got {type(token).__name__}")
        try:
            raw = codec.decode(token)
        except ValueError as exc:
            raise DecryptionFailed("token is not valid base64") from exc
        if len(raw) < nonce_length + tag_length:
            raise DecryptionFailed(
                f"token is {len(raw)} bytes, shorter than nonce and tag "
                f"({nonce_length + tag_length} bytes)"
            )
        return cls(nonce=raw[:nonce_length], ciphertext=raw[nonce_length:])


__all__ = ["EncryptedPayload", "NONCE_LENGTH", "TAG_LENGTH"]
