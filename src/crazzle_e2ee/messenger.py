"""SecureMessenger — the chat layer's entry point into the crypto core.

Composes key management, the public-key directory, shared-key derivation
and the message cipher into the calls a chat client makes:

* :meth:`SecureMessenger.register_identity` at sign-up,
* :meth:`SecureMessenger.encrypt_for` / :meth:`SecureMessenger.seal` when
  sending,
* :meth:`SecureMessenger.decrypt_from` / :meth:`SecureMessenger.render`
  when displaying.

Policy
------
* Only ``text`` messages are encrypted. Audio and other media messages
  reference object-storage URLs that are stored in plaintext; :meth:`seal`
  passes them through with ``encrypted=False``.
* Encryption failures propagate and block sending. There is no plaintext
  fallback.
* Decryption failures degrade per message: :meth:`render` returns a
  placeholder string instead of raising.
* Keys are static and derived per call: there is no forward secrecy and no
  ratcheting. Compromise of either long-term private key exposes every
  message exchanged between the pair.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum

from crazzle_e2ee.audit import CryptoAuditLogger
from crazzle_e2ee.cipher.derive import SharedSecretDeriver
from crazzle_e2ee.cipher.message import MessageCipher
from crazzle_e2ee.config import (
    DECRYPTION_FAILED_PLACEHOLDER,
    MISSING_KEY_PLACEHOLDER,
    E2EESettings,
)
from crazzle_e2ee.directory import InMemoryDirectory, JsonFileDirectory, PublicKeyDirectory
from crazzle_e2ee.errors import (
    CryptoUnavailable,
    DecryptionFailed,
    E2EEError,
    InvalidPublicKey,
    MissingLocalPrivateKey,
)
from crazzle_e2ee.keys.manager import GeneratedKeyPair, KeyPairManager
from crazzle_e2ee.keys.store import FilesystemKeyStore
from crazzle_e2ee.verification import fingerprint

logger = logging.getLogger(__name__)


class MessageType(str, Enum):
    """Message kinds known to the chat layer."""

    TEXT = "text"
    AUDIO = "audio"


@dataclass(frozen=True)
class SealedMessage:
    """Message content ready to be persisted by the chat layer.

    Parameters
    ----------
    sender_id:
        Identity that sent the message.
    recipient_id:
        Identity the message is addressed to.
    message_type:
        The message kind.
    content:
        Ciphertext token for encrypted messages, otherwise the original
        content (e.g. a media URL).
    encrypted:
        Whether ``content`` is a ciphertext token.
    """

    sender_id: str
    recipient_id: str
    message_type: MessageType
    content: str
    encrypted: bool

    def to_dict(self) -> dict[str, object]:
        return {
            "senderId": self.sender_id,
            "recipientId": self.recipient_id,
            "type": self.message_type.value,
            "content": self.content,
            "encrypted": self.encrypted,
        }


class SecureMessenger:
    """End-to-end encryption façade for one device.

    Parameters
    ----------
    key_manager:
        Local key pair manager. Defaults to an in-memory key store.
    directory:
        Public-key directory. Defaults to an in-memory directory.
    cipher:
        Message cipher. Defaults to AES-256-GCM with system randomness.
    deriver:
        Shared-key deriver. Defaults to one bound to *key_manager*.
    audit:
        Optional audit logger.
    decryption_failed_placeholder:
        Text shown for messages that fail to decrypt.
    missing_key_placeholder:
        Text shown when this device has no private key for the local identity.
    """

    def __init__(
        self,
        key_manager: KeyPairManager | None = None,
        directory: PublicKeyDirectory | None = None,
        cipher: MessageCipher | None = None,
        deriver: SharedSecretDeriver | None = None,
        audit: CryptoAuditLogger | None = None,
        decryption_failed_placeholder: str = DECRYPTION_FAILED_PLACEHOLDER,
        missing_key_placeholder: str = MISSING_KEY_PLACEHOLDER,
    ) -> None:
        self._keys = key_manager if key_manager is not None else KeyPairManager(audit=audit)
        self._directory = directory if directory is not None else InMemoryDirectory()
        self._cipher = cipher or MessageCipher()
        self._deriver = deriver or SharedSecretDeriver(key_manager=self._keys)
        self._audit = audit
        self._decryption_failed_placeholder = decryption_failed_placeholder
        self._missing_key_placeholder = missing_key_placeholder

    @classmethod
    def from_settings(cls, settings: E2EESettings) -> "SecureMessenger":
        """Build a messenger backed by the stores named in *settings*."""
        audit = CryptoAuditLogger(settings.audit_log) if settings.audit_log else None
        key_manager = KeyPairManager(FilesystemKeyStore(settings.key_store_dir), audit=audit)
        return cls(
            key_manager=key_manager,
            directory=JsonFileDirectory(settings.directory_file),
            audit=audit,
            decryption_failed_placeholder=settings.decrypt_failed_placeholder,
            missing_key_placeholder=settings.missing_key_placeholder,
        )

    @property
    def key_manager(self) -> KeyPairManager:
        return self._keys

    @property
    def directory(self) -> PublicKeyDirectory:
        return self._directory

    # ------------------------------------------------------------------
    # Identity lifecycle
    # ------------------------------------------------------------------

    async def register_identity(self, identity_id: str, name: str | None = None) -> GeneratedKeyPair:
        """Generate a key pair for *identity_id* and publish its public key.

        Raises
        ------
        CryptoUnavailable
            If key generation or publication fails. The new private key is
            discarded and account creation must be aborted.
        """
        pair = await self._keys.generate(identity_id)
        try:
            self._directory.publish(identity_id, pair.public_key, name=name)
        except (OSError, ValueError) as exc:
            logger.error("Could not publish public key for identity %r: %s", identity_id, exc)
            await self._keys.discard(identity_id)
            raise CryptoUnavailable(f"could not publish public key: {exc}") from exc
        if self._audit is not None:
            self._audit.log_public_key_published(identity_id, fingerprint(pair.public_key).hex)
        return pair

    # ------------------------------------------------------------------
    # Sending
    # ------------------------------------------------------------------

    async def encrypt_for(self, sender_id: str, recipient_id: str, plaintext: str) -> str:
        """Encrypt *plaintext* from *sender_id* to *recipient_id*.

        Raises
        ------
        InvalidPublicKey
            If the recipient has no usable published key.
        MissingLocalPrivateKey
            If this device holds no private key for *sender_id*.
        CryptoUnavailable
            If the cipher fails.
        """
        try:
            public_key = self._counterpart_key(recipient_id)
            key = await self._deriver.derive_for(sender_id, public_key)
            token = await self._cipher.encrypt(key, plaintext)
        except E2EEError as exc:
            logger.warning(
                "Blocked sending from %r to %r: %s", sender_id, recipient_id, type(exc).__name__
            )
            if self._audit is not None:
                self._audit.log_encryption(sender_id, recipient_id, success=False, reason=type(exc).__name__)
            raise
        if self._audit is not None:
            self._audit.log_encryption(sender_id, recipient_id, success=True)
        return token

    async def seal(
        self,
        sender_id: str,
        recipient_id: str,
        content: str,
        message_type: MessageType | str = MessageType.TEXT,
    ) -> SealedMessage:
        """Prepare message content for storage, encrypting text messages only."""
        kind = MessageType(message_type)
        if kind is MessageType.TEXT:
            token = await self.encrypt_for(sender_id, recipient_id, content)
            return SealedMessage(sender_id, recipient_id, kind, token, encrypted=True)
        return SealedMessage(sender_id, recipient_id, kind, content, encrypted=False)

    # ------------------------------------------------------------------
    # Receiving
    # ------------------------------------------------------------------

    async def decrypt_from(self, local_id: str, counterpart_id: str, token: str) -> str:
        """Decrypt a token exchanged between *local_id* and *counterpart_id*.

        Works for both received messages and the local identity's own sent
        messages, since the pair key is symmetric.

        Raises
        ------
        DecryptionFailed
            If the token is malformed or fails authentication.
        InvalidPublicKey
            If the counterpart has no usable published key.
        MissingLocalPrivateKey
            If this device holds no private key for *local_id*.
        """
        try:
            public_key = self._counterpart_key(counterpart_id)
            key = await self._deriver.derive_for(local_id, public_key)
            return await self._cipher.decrypt(key, token)
        except E2EEError as exc:
            logger.warning(
                "Could not decrypt message between %r and %r: %s",
                local_id,
                counterpart_id,
                exc,
            )
            if self._audit is not None:
                self._audit.log_decryption_failure(local_id, counterpart_id, type(exc).__name__)
            raise

    async def render(self, local_id: str, counterpart_id: str, token: str) -> str:
        """Return the plaintext, or a placeholder if it cannot be decrypted."""
        try:
            return await self.decrypt_from(local_id, counterpart_id, token)
        except MissingLocalPrivateKey:
            return self._missing_key_placeholder
        except (DecryptionFailed, InvalidPublicKey):
            return self._decryption_failed_placeholder

    async def open(self, local_id: str, message: SealedMessage) -> str:
        """Return displayable content for a stored message."""
        if not message.encrypted:
            return message.content
        counterpart_id = message.recipient_id if message.sender_id == local_id else message.sender_id
        return await self.render(local_id, counterpart_id, message.content)

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    def _counterpart_key(self, identity_id: str) -> str:
        try:
            public_key = self._directory.lookup(identity_id)
        except (OSError, ValueError) as exc:
            raise InvalidPublicKey(f"profile store unreadable: {exc}", identity_id=identity_id) from exc
        if public_key is None:
            raise InvalidPublicKey("identity is unknown", identity_id=identity_id)
        if not public_key:
            raise InvalidPublicKey("identity has not published a key", identity_id=identity_id)
        return public_key


__all__ = [
    "DECRYPTION_FAILED_PLACEHOLDER",
    "MISSING_KEY_PLACEHOLDER",
    "MessageType",
    "SealedMessage",
    "SecureMessenger",
]
