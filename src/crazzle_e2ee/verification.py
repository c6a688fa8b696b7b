"""Public-key fingerprints for out-of-band identity verification.

Two renderings are offered:

* :func:`fingerprint` — a per-key digest, SHA-256 over the DER
  SubjectPublicKeyInfo, shown as 16 groups of 4 hex digits.
* :func:`safety_number` — a per-conversation digest over both parties'
  keys in sorted order, shown as 12 groups of 5 decimal digits. Both
  parties compute the same value, so they can compare it in person or over
  a trusted channel.

Only published (public) key text is consumed here.
"""
from __future__ import annotations

import hashlib
import hmac
from dataclasses import dataclass

from crazzle_e2ee import codec
from crazzle_e2ee.errors import InvalidPublicKey

_FINGERPRINT_GROUP: int = 4
_SAFETY_GROUPS: int = 12
_SAFETY_GROUP_DIGITS: int = 5


@dataclass(frozen=True)
class KeyFingerprint:
    """SHA-256 digest of a public key's SPKI encoding.

    Parameters
    ----------
    digest:
        The 32-byte SHA-256 digest.
    """

    digest: bytes

    @property
    def hex(self) -> str:
        return self.digest.hex().upper()

    @property
    def groups(self) -> list[str]:
        value = self.hex
        return [value[i : i + _FINGERPRINT_GROUP] for i in range(0, len(value), _FINGERPRINT_GROUP)]

    def short(self) -> str:
        """First four groups, for compact log lines and tables."""
        return " ".join(self.groups[:4])

    def matches(self, other: "KeyFingerprint | str") -> bool:
        """Constant-time comparison against another fingerprint or its rendering."""
        if isinstance(other, KeyFingerprint):
            return hmac.compare_digest(self.digest, other.digest)
        normalized = "".join(other.split()).upper()
        return hmac.compare_digest(self.hex.encode("ascii"), normalized.encode("ascii", "replace"))

    def __str__(self) -> str:
        return " ".join(self.groups)


def _spki_bytes(public_key_text: str) -> bytes:
    if not public_key_text:
        raise InvalidPublicKey("public key is empty")
    try:
        return codec.decode(public_key_text)
    except ValueError as exc:
        raise InvalidPublicKey(str(exc)) from exc


def fingerprint(public_key_text: str) -> KeyFingerprint:
    """Return the fingerprint of a published public key.

    Raises
    ------
    InvalidPublicKey
        If the text is empty or not valid base64.
    """
    return KeyFingerprint(digest=hashlib.sha256(_spki_bytes(public_key_text)).digest())


def safety_number(public_key_a: str, public_key_b: str) -> str:
    """Return the symmetric safety number for a pair of published keys.

    The result does not depend on argument order.

    Raises
    ------
    InvalidPublicKey
        If either key is empty or not valid base64.
    """
    first, second = sorted([_spki_bytes(public_key_a), _spki_bytes(public_key_b)])
    digest = hashlib.sha512(first + second).digest()
    groups: list[str] = []
    for index in range(_SAFETY_GROUPS):
        chunk = digest[index * 5 : index * 5 + 5]
        groups.append(f"{int.from_bytes(chunk, 'big') % 10**_SAFETY_GROUP_DIGITS:05d}")
    return " ".join(groups)


__all__ = ["KeyFingerprint", "fingerprint", "safety_number"]
