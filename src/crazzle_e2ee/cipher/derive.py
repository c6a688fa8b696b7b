"""SharedSecretDeriver — pairwise AES-256 keys from ECDH.

``derive(A_private, B_public)`` and ``derive(B_private, A_public)`` produce
the same key, so both parties of a conversation reconstruct it
independently. The 32-byte ECDH x-coordinate is used directly as the
AES-256-GCM key, which is what a WebCrypto
``deriveKey({name: "ECDH"}, ..., {name: "AES-GCM", length: 256})`` call
does; ciphertext therefore stays interchangeable with browser clients.

Keys are derived on every call and never cached. Because both inputs are
long-lived, the key for a pair of identities is the same for the lifetime
of their key pairs: there is no forward secrecy.
"""
from __future__ import annotations

import asyncio

from crazzle_e2ee import codec
from crazzle_e2ee.errors import E2EEError, InvalidPublicKey
from crazzle_e2ee.keys.manager import KeyPairManager, PrivateKeyHandle
from crazzle_e2ee.providers import KeyAgreementProvider

AES_KEY_LENGTH: int = 32


class SymmetricKey:
    """A derived AES-256 key.

    Non-extractable keys refuse :meth:`export`; only the cipher in this
    package reads the material. Extractable keys exist for verification
    in tests.
    """

    __slots__ = ("_material", "_extractable")

    def __init__(self, material: bytes, extractable: bool = False) -> None:
        if len(material) != AES_KEY_LENGTH:
            raise ValueError(
                f"symmetric key must be {AES_KEY_LENGTH} bytes, got {len(material)}"
            )
        self._material = material
        self._extractable = extractable

    @property
    def extractable(self) -> bool:
        return self._extractable

    def export(self) -> bytes:
        """Return the raw key bytes.

        Raises
        ------
        PermissionError
            If the key was derived as non-extractable.
        """
        if not self._extractable:
            raise PermissionError("symmetric key is not extractable")
        return self._material

    def __repr__(self) -> str:
        return f"SymmetricKey(extractable={self._extractable})"


class SharedSecretDeriver:
    """Derive per-pair symmetric keys.

    Parameters
    ----------
    key_manager:
        Manager used by :meth:`derive_for` to load the local private key.
        Its provider is reused unless *provider* is given.
    provider:
        Key agreement provider for public-key import and ECDH.
    extractable:
        Derive keys whose raw bytes can be exported. Off by default.
    """

    def __init__(
        self,
        key_manager: KeyPairManager | None = None,
        provider: KeyAgreementProvider | None = None,
        extractable: bool = False,
    ) -> None:
        self._key_manager = key_manager if key_manager is not None else KeyPairManager()
        self._provider = provider or self._key_manager.provider
        self._extractable = extractable

    async def derive(
        self,
        private_key: PrivateKeyHandle,
        counterpart_public_key: str,
    ) -> SymmetricKey:
        """Combine a local private key with a counterpart's published key.

        Parameters
        ----------
        private_key:
            Handle to the local identity's private key.
        counterpart_public_key:
            Base64 SPKI text from the counterpart's profile.

        Raises
        ------
        InvalidPublicKey
            If the text is empty, not base64, not an EC SPKI key, on another
            curve, or otherwise unusable for key agreement.
        """
        return await asyncio.to_thread(self._derive_sync, private_key, counterpart_public_key)

    async def derive_for(self, identity_id: str, counterpart_public_key: str) -> SymmetricKey:
        """Load *identity_id*'s private key from the key store and derive.

        Raises
        ------
        MissingLocalPrivateKey
            If this device holds no private key for the identity.
        InvalidPublicKey
            As for :meth:`derive`.
        """
        handle = await self._key_manager.load_private_key(identity_id)
        return await self.derive(handle, counterpart_public_key)

    def _derive_sync(self, private_key: PrivateKeyHandle, counterpart_public_key: str) -> SymmetricKey:
        if not counterpart_public_key:
            raise InvalidPublicKey("public key is empty")
        try:
            spki = codec.decode(counterpart_public_key)
            public_key = self._provider.load_public_key(spki)
            secret = self._provider.exchange(private_key.key, public_key)
        except E2EEError:
            raise
        except (ValueError, TypeError) as exc:
            raise InvalidPublicKey(str(exc)) from exc

        if len(secret) < AES_KEY_LENGTH:
            raise InvalidPublicKey(
                f"shared secret too short ({len(secret)} bytes) for an AES-256 key"
            )
        return SymmetricKey(secret[:AES_KEY_LENGTH], extractable=self._extractable)


__all__ = ["AES_KEY_LENGTH", "SharedSecretDeriver", "SymmetricKey"]
