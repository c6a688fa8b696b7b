"""Tests for crazzle_e2ee.cipher — MessageCipher and EncryptedPayload."""
from __future__ import annotations

import asyncio

import pytest
from cryptography.hazmat.primitives.ciphers.aead import AESGCM

from crazzle_e2ee import codec
from crazzle_e2ee.cipher.derive import AES_KEY_LENGTH, SymmetricKey
from crazzle_e2ee.cipher.message import MessageCipher
from crazzle_e2ee.cipher.payload import NONCE_LENGTH, TAG_LENGTH, EncryptedPayload
from crazzle_e2ee.errors import CryptoUnavailable, DecryptionFailed
from crazzle_e2ee.providers import AesGcmCipher


# ---------------------------------------------------------------------------
# Fixtures and doubles
# ---------------------------------------------------------------------------


@pytest.fixture()
def key() -> SymmetricKey:
    return SymmetricKey(bytes(range(AES_KEY_LENGTH)), extractable=True)


@pytest.fixture()
def other_key() -> SymmetricKey:
    return SymmetricKey(b"\x55" * AES_KEY_LENGTH)


@pytest.fixture()
def cipher() -> MessageCipher:
    return MessageCipher()


class FixedRandom:
    def __init__(self, value: bytes) -> None:
        self.value = value

    def random_bytes(self, length: int) -> bytes:
        return self.value


class FailingAead(AesGcmCipher):
    def seal(self, key: bytes, nonce: bytes, plaintext: bytes) -> bytes:
        raise ValueError("backend refused")


def _encrypt(cipher: MessageCipher, key: SymmetricKey, text: str) -> str:
    return asyncio.run(cipher.encrypt(key, text))


def _decrypt(cipher: MessageCipher, key: SymmetricKey, token: str) -> str:
    return asyncio.run(cipher.decrypt(key, token))


# ---------------------------------------------------------------------------
# Round trip
# ---------------------------------------------------------------------------


class TestRoundTrip:
    @pytest.mark.parametrize(
        "plaintext",
        ["", "hello", "a\x00b", "Grüße 👋 你好", "x" * 10_000],
    )
    def test_decrypt_restores_plaintext(
        self, cipher: MessageCipher, key: SymmetricKey, plaintext: str
    ) -> None:
        assert _decrypt(cipher, key, _encrypt(cipher, key, plaintext)) == plaintext

    def test_token_layout(self, cipher: MessageCipher, key: SymmetricKey) -> None:
        raw = codec.decode(_encrypt(cipher, key, "hello"))
        assert len(raw) == NONCE_LENGTH + len(b"hello") + TAG_LENGTH

    def test_hello_token_has_no_padding(self, cipher: MessageCipher, key: SymmetricKey) -> None:
        token = _encrypt(cipher, key, "hello")
        assert len(token) == 44
        assert not token.endswith("=")

    def test_same_plaintext_gives_different_tokens(
        self, cipher: MessageCipher, key: SymmetricKey
    ) -> None:
        first = _encrypt(cipher, key, "hello")
        second = _encrypt(cipher, key, "hello")
        assert first != second
        assert codec.decode(first)[:NONCE_LENGTH] != codec.decode(second)[:NONCE_LENGTH]
        assert _decrypt(cipher, key, first) == _decrypt(cipher, key, second) == "hello"

    def test_interoperates_with_plain_aes_gcm(self, cipher: MessageCipher, key: SymmetricKey) -> None:
        raw = codec.decode(_encrypt(cipher, key, "hello"))
        plain = AESGCM(key.export()).decrypt(raw[:NONCE_LENGTH], raw[NONCE_LENGTH:], None)
        assert plain == b"hello"

    def test_concurrent_encryptions(self, cipher: MessageCipher, key: SymmetricKey) -> None:
        async def run() -> list[str]:
            tokens = await asyncio.gather(*(cipher.encrypt(key, f"msg {i}") for i in range(20)))
            return list(await asyncio.gather(*(cipher.decrypt(key, t) for t in tokens)))

        assert asyncio.run(run()) == [f"msg {i}" for i in range(20)]


# ---------------------------------------------------------------------------
# Tampering and malformed tokens
# ---------------------------------------------------------------------------


class TestDecryptionFailures:
    def test_every_flipped_byte_is_detected(self, cipher: MessageCipher, key: SymmetricKey) -> None:
        raw = bytearray(codec.decode(_encrypt(cipher, key, "hello")))
        for index in range(len(raw)):
            tampered = bytearray(raw)
            tampered[index] ^= 0x01
            with pytest.raises(DecryptionFailed):
                _decrypt(cipher, key, codec.encode(bytes(tampered)))

    def test_every_changed_character_is_detected_for_unaligned_payload(
        self, cipher: MessageCipher, key: SymmetricKey
    ) -> None:
        # 12 + 4 + 16 = 32 bytes, so the last data character carries unused bits.
        token = _encrypt(cipher, key, "hell")
        assert token.endswith("=") and not token.endswith("==")
        alphabet = "ABCDEFGHIJKLMNOPQRSTUVWXYZabcdefghijklmnopqrstuvwxyz0123456789+/"
        for index, char in enumerate(token.rstrip("=")):
            replacement = alphabet[(alphabet.index(char) + 1) % 64]
            with pytest.raises(DecryptionFailed):
                _decrypt(cipher, key, token[:index] + replacement + token[index + 1 :])

    def test_changed_last_character(self, cipher: MessageCipher, key: SymmetricKey) -> None:
        token = _encrypt(cipher, key, "hello")
        replacement = "A" if token[-1] != "A" else "B"
        with pytest.raises(DecryptionFailed):
            _decrypt(cipher, key, token[:-1] + replacement)

    def test_wrong_key(
        self, cipher: MessageCipher, key: SymmetricKey, other_key: SymmetricKey
    ) -> None:
        token = _encrypt(cipher, key, "hello")
        with pytest.raises(DecryptionFailed):
            _decrypt(cipher, other_key, token)

    @pytest.mark.parametrize(
        "token",
        ["", "not base64!!", codec.encode(b"\x00" * (NONCE_LENGTH + TAG_LENGTH - 1))],
    )
    def test_malformed_tokens(self, cipher: MessageCipher, key: SymmetricKey, token: str) -> None:
        with pytest.raises(DecryptionFailed):
            _decrypt(cipher, key, token)

    def test_truncated_token(self, cipher: MessageCipher, key: SymmetricKey) -> None:
        raw = codec.decode(_encrypt(cipher, key, "hello world"))
        with pytest.raises(DecryptionFailed):
            _decrypt(cipher, key, codec.encode(raw[:-4]))

    def test_non_utf8_plaintext(self, cipher: MessageCipher, key: SymmetricKey) -> None:
        nonce = b"\x07" * NONCE_LENGTH
        sealed = AESGCM(key.export()).encrypt(nonce, b"\xff\xfe\xfd", None)
        token = EncryptedPayload(nonce=nonce, ciphertext=sealed).to_token()
        with pytest.raises(DecryptionFailed):
            _decrypt(cipher, key, token)

    def test_non_text_token(self, cipher: MessageCipher, key: SymmetricKey) -> None:
        with pytest.raises(DecryptionFailed):
            asyncio.run(cipher.decrypt(key, b"bytes"))  # type: ignore[arg-type]


# ---------------------------------------------------------------------------
# Encryption failures and injected providers
# ---------------------------------------------------------------------------


class TestEncryptionFailures:
    def test_non_string_plaintext(self, cipher: MessageCipher, key: SymmetricKey) -> None:
        with pytest.raises(TypeError):
            asyncio.run(cipher.encrypt(key, b"bytes"))  # type: ignore[arg-type]

    def test_lone_surrogate(self, cipher: MessageCipher, key: SymmetricKey) -> None:
        with pytest.raises(ValueError):
            _encrypt(cipher, key, "bad \ud800")

    def test_injected_random_source_supplies_nonce(self, key: SymmetricKey) -> None:
        nonce = b"\x01" * NONCE_LENGTH
        cipher = MessageCipher(random_source=FixedRandom(nonce))
        token = _encrypt(cipher, key, "hello")
        assert codec.decode(token)[:NONCE_LENGTH] == nonce
        assert _decrypt(cipher, key, token) == "hello"

    def test_short_nonce_blocks_encryption(self, key: SymmetricKey) -> None:
        cipher = MessageCipher(random_source=FixedRandom(b"\x01" * 4))
        with pytest.raises(CryptoUnavailable):
            _encrypt(cipher, key, "hello")

    def test_cipher_failure_blocks_encryption(self, key: SymmetricKey) -> None:
        cipher = MessageCipher(aead=FailingAead())
        with pytest.raises(CryptoUnavailable):
            _encrypt(cipher, key, "hello")


class TestEncryptedPayload:
    def test_from_token_splits_nonce(self) -> None:
        raw = bytes(range(40))
        payload = EncryptedPayload.from_token(codec.encode(raw))
        assert payload.nonce == raw[:NONCE_LENGTH]
        assert payload.ciphertext == raw[NONCE_LENGTH:]
        assert payload.to_bytes() == raw

    def test_minimum_length_accepted(self) -> None:
        raw = b"\x00" * (NONCE_LENGTH + TAG_LENGTH)
        assert EncryptedPayload.from_token(codec.encode(raw)).to_bytes() == raw
