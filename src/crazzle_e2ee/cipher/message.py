"""MessageCipher — AES-GCM encryption of message text under a derived key.

Each call draws a fresh nonce from the injected random source, so
encrypting the same text twice under the same key yields different
tokens. Decryption failures of every kind (bad encoding, truncation, tag
mismatch, invalid UTF-8) surface as :class:`DecryptionFailed` so the
caller can render a placeholder instead of garbage.
"""
from __future__ import annotations

import asyncio

from crazzle_e2ee.cipher.derive import SymmetricKey
from crazzle_e2ee.cipher.payload import EncryptedPayload
from crazzle_e2ee.errors import CryptoUnavailable, DecryptionFailed, E2EEError
from crazzle_e2ee.providers import (
    AeadCipherProvider,
    AesGcmCipher,
    RandomSource,
    SystemRandomSource,
)


class MessageCipher:
    """Encrypt and decrypt message text.

    Parameters
    ----------
    aead:
        Authenticated cipher. Defaults to AES-256-GCM.
    random_source:
        Nonce source. Defaults to the operating system CSPRNG.
    """

    def __init__(
        self,
        aead: AeadCipherProvider | None = None,
        random_source: RandomSource | None = None,
    ) -> None:
        self._aead: AeadCipherProvider = aead or AesGcmCipher()
        self._random: RandomSource = random_source or SystemRandomSource()

    async def encrypt(self, key: SymmetricKey, plaintext: str) -> str:
        """Encrypt *plaintext* and return the ciphertext token.

        Raises
        ------
        TypeError
            If *plaintext* is not a string.
        ValueError
            If *plaintext* cannot be encoded as UTF-8 (lone surrogates).
        CryptoUnavailable
            If the random source or cipher fails. Sending must be blocked.
        """
        if not isinstance(plaintext, str):
            raise TypeError(f"plaintext must be str, got {type(plaintext).__name__}")
        try:
            data = plaintext.encode("utf-8")
        except UnicodeEncodeError as exc:
            raise ValueError("plaintext is not encodable as UTF-8") from exc
        return await asyncio.to_thread(self._encrypt_sync, key, data)

    async def decrypt(self, key: SymmetricKey, token: str) -> str:
        """Decrypt a token produced by :meth:`encrypt`.

        Raises
        ------
        DecryptionFailed
            If the token is malformed, truncated, was produced under a
            different key, has been modified, or does not hold UTF-8 text.
        """
        payload = EncryptedPayload.from_token(
            token, nonce_length=self._aead.nonce_length, tag_length=self._aead.tag_length
        )
        return await asyncio.to_thread(self._decrypt_sync, key, payload)

    def _encrypt_sync(self, key: SymmetricKey, data: bytes) -> str:
        try:
            nonce = self._random.random_bytes(self._aead.nonce_length)
            if len(nonce) != self._aead.nonce_length:
                raise CryptoUnavailable(
                    f"random source returned {len(nonce)} bytes, "
                    f"expected {self._aead.nonce_length}"
                )
            ciphertext = self._aead.seal(key._material, nonce, data)
        except E2EEError:
            raise
        except (ValueError, TypeError, OverflowError, OSError) as exc:
            raise CryptoUnavailable(f"encryption failed: {exc}") from exc
        return EncryptedPayload(nonce=nonce, ciphertext=ciphertext).to_token()

    def _decrypt_sync(self, key: SymmetricKey, payload: EncryptedPayload) -> str:
        try:
            data = self._aead.open(key._material, payload.nonce, payload.ciphertext)
        except DecryptionFailed:
            raise
        except (ValueError, TypeError, OverflowError) as exc:
            raise DecryptionFailed(str(exc)) from exc
        try:
            return data.decode("utf-8")
        except UnicodeDecodeError as exc:
            raise DecryptionFailed("decrypted payload is not valid UTF-8") from exc


__all__ = ["MessageCipher"]
