"""Binary ⇄ text codec for keys and ciphertext.

Keys and ciphertext travel through text-typed document fields, so every
byte string crossing the core boundary is rendered as one contiguous
standard-base64 token: padded, no line breaks, no whitespace.

JSON Web Key members use the unpadded URL-safe alphabet instead
(RFC 7518 §6.2), provided here as :func:`encode_urlsafe` /
:func:`decode_urlsafe`.
"""
from __future__ import annotations

import base64
import binascii


def encode(data: bytes) -> str:
    """Encode *data* as a single standard-base64 token.

    Parameters
    ----------
    data:
        Arbitrary bytes, including the empty string.

    Returns
    -------
    str
        ASCII base64 text with ``=`` padding and no line breaks.
    """
    return base64.b64encode(data).decode("ascii")


def decode(text: str) -> bytes:
    """Decode a standard-base64 token produced by :func:`encode`.

    Parameters
    ----------
    text:
        The base64 token.

    Returns
    -------
    bytes
        The decoded bytes.

    Raises
    ------
    ValueError
        If *text* contains characters outside the base64 alphabet, is not
        ASCII, is incorrectly padded, or is not the canonical encoding of
        its bytes (non-zero unused bits in the last character).
    """
    try:
        raw = base64.b64decode(text.encode("ascii"), validate=True)
    except (UnicodeEncodeError, binascii.Error) as exc:
        raise ValueError(f"Invalid base64 token: {exc}") from exc
    if encode(raw) != text:
        raise ValueError("Invalid base64 token: non-canonical encoding")
    return raw


def encode_urlsafe(data: bytes) -> str:
    """Encode *data* as unpadded base64url (JWK member encoding)."""
    return base64.urlsafe_b64encode(data).rstrip(b"=").decode("ascii")


def decode_urlsafe(text: str) -> bytes:
    """Decode unpadded base64url text.

    Raises
    ------
    ValueError
        If *text* is not valid base64url.
    """
    if "+" in text or "/" in text or "=" in text:
        raise ValueError("Invalid base64url value: unexpected '+', '/' or '=' character")
    padding = "=" * (-len(text) % 4)
    try:
        raw = (text + padding).encode("ascii")
        # urlsafe_b64decode has no strict mode; validate in the standard alphabet.
        data = base64.b64decode(raw.replace(b"-", b"+").replace(b"_", b"/"), validate=True)
    except (UnicodeEncodeError, binascii.Error) as exc:
        raise ValueError(f"Invalid base64url value: {exc}") from exc
    if encode_urlsafe(data) != text:
        raise ValueError("Invalid base64url value: non-canonical encoding")
    return data


__all__ = ["decode", "decode_urlsafe", "encode", "encode_urlsafe"]
