"""Injected cryptographic capabilities.

The core never reaches for a global crypto API. Key generation, key
agreement, AEAD and randomness are supplied through three small
interfaces so tests can substitute doubles:

``RandomSource``
    Cryptographically secure random bytes (nonces).
``KeyAgreementProvider``
    EC key pair generation, public-key import/export and ECDH.
``AeadCipherProvider``
    Authenticated encryption with a fixed nonce and tag size.

The defaults are thin wrappers around the ``cryptography`` package:
P-256 ECDH and AES-256-GCM, the same primitives a browser WebCrypto client
uses, so key material and ciphertext are interchangeable with it.
"""
from __future__ import annotations

import secrets
from typing import Protocol, runtime_checkable

from cryptography.exceptions import InvalidTag, UnsupportedAlgorithm
from cryptography.hazmat.primitives.asymmetric import ec
from cryptography.hazmat.primitives.ciphers.aead import AESGCM
from cryptography.hazmat.primitives.serialization import (
    Encoding,
    PublicFormat,
    load_der_public_key,
)

from crazzle_e2ee import jwk
from crazzle_e2ee.errors import CryptoUnavailable, DecryptionFailed

# ---------------------------------------------------------------------------
# Interfaces
# ---------------------------------------------------------------------------


@runtime_checkable
class RandomSource(Protocol):
    def random_bytes(self, length: int) -> bytes: ...


@runtime_checkable
class KeyAgreementProvider(Protocol):
    curve_name: str

    def generate_private_key(self) -> ec.EllipticCurvePrivateKey: ...

    def export_public_key(self, private_key: ec.EllipticCurvePrivateKey) -> bytes: ...

    def load_public_key(self, spki_der: bytes) -> ec.EllipticCurvePublicKey: ...

    def exchange(
        self,
        private_key: ec.EllipticCurvePrivateKey,
        public_key: ec.EllipticCurvePublicKey,
    ) -> bytes: ...

    def export_private_key(self, private_key: ec.EllipticCurvePrivateKey) -> str: ...

    def import_private_key(self, serialized: str) -> ec.EllipticCurvePrivateKey: ...


@runtime_checkable
class AeadCipherProvider(Protocol):
    nonce_length: int
    tag_length: int
    key_length: int

    def seal(self, key: bytes, nonce: bytes, plaintext: bytes) -> bytes: ...

    def open(self, key: bytes, nonce: bytes, ciphertext: bytes) -> bytes: ...


# ---------------------------------------------------------------------------
# Defaults
# ---------------------------------------------------------------------------


class SystemRandomSource:
    """Random bytes from the operating system CSPRNG."""

    def random_bytes(self, length: int) -> bytes:
        if length < 0:
            raise ValueError(f"length must be non-negative, got {length}")
        try:
            return secrets.token_bytes(length)
        except OSError as exc:
            raise CryptoUnavailable(f"system random source failed: {exc}") from exc


class P256KeyAgreement:
    """ECDH over NIST P-256 (secp256r1).

    Public keys are exchanged as DER SubjectPublicKeyInfo; private keys are
    serialized as JWK JSON text (see :mod:`crazzle_e2ee.jwk`).
    """

    curve_name: str = "secp256r1"

    def generate_private_key(self) -> ec.EllipticCurvePrivateKey:
        try:
            return ec.generate_private_key(ec.SECP256R1())
        except UnsupportedAlgorithm as exc:
            raise CryptoUnavailable(f"P-256 is not supported by this backend: {exc}") from exc

    def export_public_key(self, private_key: ec.EllipticCurvePrivateKey) -> bytes:
        return private_key.public_key().public_bytes(
            Encoding.DER, PublicFormat.SubjectPublicKeyInfo
        )

    def load_public_key(self, spki_der: bytes) -> ec.EllipticCurvePublicKey:
        """Parse a DER SubjectPublicKeyInfo blob into a P-256 public key.

        Raises
        ------
        ValueError
            If the blob is not SPKI, not an EC key, or not on P-256.
        """
        try:
            public_key = load_der_public_key(spki_der)
        except UnsupportedAlgorithm as exc:
            raise ValueError(f"unsupported key algorithm: {exc}") from exc
        if not isinstance(public_key, ec.EllipticCurvePublicKey):
            raise ValueError(f"expected an EC public key, got {type(public_key).__name__}")
        if public_key.curve.name != self.curve_name:
            raise ValueError(
                f"expected curve {self.curve_name}, got {public_key.curve.name}"
            )
        return public_key

    def exchange(
        self,
        private_key: ec.EllipticCurvePrivateKey,
        public_key: ec.EllipticCurvePublicKey,
    ) -> bytes:
        return private_key.exchange(ec.ECDH(), public_key)

    def export_private_key(self, private_key: ec.EllipticCurvePrivateKey) -> str:
        return jwk.dumps(jwk.private_key_to_jwk(private_key))

    def import_private_key(self, serialized: str) -> ec.EllipticCurvePrivateKey:
        return jwk.private_key_from_jwk(jwk.loads(serialized))


class AesGcmCipher:
    """AES-256-GCM with a 12-byte nonce and a 16-byte tag."""

    nonce_length: int = 12
    tag_length: int = 16
    key_length: int = 32

    def seal(self, key: bytes, nonce: bytes, plaintext: bytes) -> bytes:
        return AESGCM(key).encrypt(nonce, plaintext, None)

    def open(self, key: bytes, nonce: bytes, ciphertext: bytes) -> bytes:
        try:
            return AESGCM(key).decrypt(nonce, ciphertext, None)
        except InvalidTag as exc:
            raise DecryptionFailed("authentication tag mismatch") from exc


__all__ = [
    "AeadCipherProvider",
    "AesGcmCipher",
    "KeyAgreementProvider",
    "P256KeyAgreement",
    "RandomSource",
    "SystemRandomSource",
]
