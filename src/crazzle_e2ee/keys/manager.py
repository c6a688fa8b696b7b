"""KeyPairManager — one long-lived P-256 key pair per identity.

Generation exports the public half as base64 SubjectPublicKeyInfo text for
publication on the identity's profile, and persists the private half as JWK
text in the injected :class:`~crazzle_e2ee.keys.store.KeyStore`, namespaced
by identity id.

There is no rotation: calling :meth:`KeyPairManager.generate` again for the
same identity overwrites the stored private key, after which ciphertext
exchanged under the old key can no longer be decrypted on this device.
Callers must not run concurrent ``generate`` calls for one identity.
"""
from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field

from cryptography.hazmat.primitives.asymmetric import ec

from crazzle_e2ee import codec
from crazzle_e2ee._aio import maybe_await
from crazzle_e2ee.audit import CryptoAuditLogger
from crazzle_e2ee.errors import CryptoUnavailable, E2EEError, MissingLocalPrivateKey
from crazzle_e2ee.keys.store import InMemoryKeyStore, KeyStore
from crazzle_e2ee.providers import KeyAgreementProvider, P256KeyAgreement
from crazzle_e2ee.verification import fingerprint

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PrivateKeyHandle:
    """Opaque reference to an identity's private key.

    The key object is excluded from ``repr`` so handles can be logged safely.

    Parameters
    ----------
    identity_id:
        The identity owning this key.
    key:
        The underlying EC private key.
    """

    identity_id: str
    key: ec.EllipticCurvePrivateKey = field(repr=False, compare=False)


@dataclass(frozen=True)
class GeneratedKeyPair:
    """Result of :meth:`KeyPairManager.generate`.

    Parameters
    ----------
    identity_id:
        The identity the pair belongs to.
    public_key:
        Base64 SPKI text, ready to be written to the identity's profile.
    private_key:
        Handle to the private half, already persisted locally.
    """

    identity_id: str
    public_key: str
    private_key: PrivateKeyHandle


class KeyPairManager:
    """Generate, persist and load per-identity key pairs.

    Parameters
    ----------
    key_store:
        Local private-key storage. Defaults to an in-memory store.
    provider:
        Key agreement provider. Defaults to :class:`P256KeyAgreement`.
    audit:
        Optional audit logger receiving generation events.

    Example
    -------
    ::

        manager = KeyPairManager(FilesystemKeyStore(Path("~/.crazzle/keys").expanduser()))
        pair = asyncio.run(manager.generate("uid-123"))
        profile["publicKey"] = pair.public_key
    """

    def __init__(
        self,
        key_store: KeyStore | None = None,
        provider: KeyAgreementProvider | None = None,
        audit: CryptoAuditLogger | None = None,
    ) -> None:
        self._store = key_store if key_store is not None else InMemoryKeyStore()
        self._provider: KeyAgreementProvider = provider or P256KeyAgreement()
        self._audit = audit

    @property
    def key_store(self) -> KeyStore:
        return self._store

    @property
    def provider(self) -> KeyAgreementProvider:
        return self._provider

    # ------------------------------------------------------------------
    # Generation
    # ------------------------------------------------------------------

    async def generate(self, identity_id: str) -> GeneratedKeyPair:
        """Create and persist a new key pair for *identity_id*.

        Any previously stored private key for the identity is replaced.

        Returns
        -------
        GeneratedKeyPair
            The publishable public key text and a handle to the private key.

        Raises
        ------
        ValueError
            If *identity_id* is empty.
        CryptoUnavailable
            If the provider cannot generate or serialize keys, or the key
            store rejects the write. Account creation must be aborted.
        """
        if not identity_id:
            raise ValueError("identity_id must be a non-empty string")

        private_key, public_der, serialized = await asyncio.to_thread(self._create_key_material)
        public_key = codec.encode(public_der)

        try:
            overwritten = await maybe_await(self._store.get(identity_id)) is not None
        except ValueError:
            # Undecodable entry; regenerating replaces it.
            overwritten = True
        except OSError as exc:
            raise CryptoUnavailable(f"could not read key store: {exc}") from exc
        try:
            await maybe_await(self._store.put(identity_id, serialized))
        except OSError as exc:
            raise CryptoUnavailable(f"could not persist private key: {exc}") from exc

        key_fingerprint = fingerprint(public_key)
        if overwritten:
            logger.warning(
                "Overwrote existing key pair for identity %r (fingerprint %s)",
                identity_id,
                key_fingerprint.short(),
            )
        else:
            logger.info(
                "Generated key pair for identity %r (fingerprint %s)",
                identity_id,
                key_fingerprint.short(),
            )
        if self._audit is not None:
            self._audit.log_key_generated(identity_id, overwritten, key_fingerprint.hex)

        return GeneratedKeyPair(
            identity_id=identity_id,
            public_key=public_key,
            private_key=PrivateKeyHandle(identity_id=identity_id, key=private_key),
        )

    def _create_key_material(self) -> tuple[ec.EllipticCurvePrivateKey, bytes, str]:
        try:
            private_key = self._provider.generate_private_key()
            public_der = self._provider.export_public_key(private_key)
            serialized = self._provider.export_private_key(private_key)
        except E2EEError:
            raise
        except (ValueError, TypeError, OSError) as exc:
            raise CryptoUnavailable(str(exc)) from exc
        return private_key, public_der, serialized

    # ------------------------------------------------------------------
    # Loading
    # ------------------------------------------------------------------

    async def load_private_key(self, identity_id: str) -> PrivateKeyHandle:
        """Load the stored private key for *identity_id*.

        Raises
        ------
        MissingLocalPrivateKey
            If no key is stored, or the stored entry cannot be parsed.
        """
        try:
            serialized = await maybe_await(self._store.get(identity_id))
        except (OSError, ValueError) as exc:
            logger.error("Stored private key for identity %r is unreadable: %s", identity_id, exc)
            raise MissingLocalPrivateKey(identity_id) from exc
        if serialized is None:
            raise MissingLocalPrivateKey(identity_id)
        try:
            key = await asyncio.to_thread(self._provider.import_private_key, serialized)
        except ValueError as exc:
            logger.error("Stored private key for identity %r is unreadable: %s", identity_id, exc)
            raise MissingLocalPrivateKey(identity_id) from exc
        return PrivateKeyHandle(identity_id=identity_id, key=key)

    async def public_key(self, identity_id: str) -> str:
        """Re-export the publishable public key text for *identity_id*.

        Raises
        ------
        MissingLocalPrivateKey
            If no usable private key is stored.
        """
        handle = await self.load_private_key(identity_id)
        return codec.encode(self._provider.export_public_key(handle.key))

    async def has_key_pair(self, identity_id: str) -> bool:
        """Return True if a private key entry is stored for *identity_id*.

        An entry that exists but cannot be decoded still counts, so callers
        refusing to overwrite keys also refuse to overwrite it.

        Raises
        ------
        CryptoUnavailable
            If the key store cannot be read.
        """
        try:
            return await maybe_await(self._store.get(identity_id)) is not None
        except ValueError:
            return True
        except OSError as exc:
            raise CryptoUnavailable(f"could not read key store: {exc}") from exc

    async def discard(self, identity_id: str) -> None:
        """Remove the stored private key for *identity_id*, if any.

        Raises
        ------
        CryptoUnavailable
            If the key store cannot delete the entry.
        """
        try:
            await maybe_await(self._store.delete(identity_id))
        except KeyError:
            return
        except OSError as exc:
            raise CryptoUnavailable(f"could not remove private key: {exc}") from exc
        logger.info("Discarded private key for identity %r", identity_id)


__all__ = ["GeneratedKeyPair", "KeyPairManager", "PrivateKeyHandle"]
