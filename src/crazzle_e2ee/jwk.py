"""JSON Web Key serialization for EC P-256 private keys.

The private half of an identity's key pair is stored locally as JWK text,
in the same shape a browser's WebCrypto ``exportKey('jwk', ...)`` produces
for an ECDH key::

    {"kty": "EC", "crv": "P-256", "x": "...", "y": "...", "d": "...",
     "ext": true, "key_ops": ["deriveKey", "deriveBits"]}

Coordinates and the private scalar are 32-byte big-endian integers encoded
as unpadded base64url (RFC 7518 §6.2).
"""
from __future__ import annotations

import json

from cryptography.hazmat.primitives.asymmetric import ec

from crazzle_e2ee import codec

_CURVE_NAME: str = "P-256"
_COORDINATE_SIZE: int = 32
_KEY_OPS: list[str] = ["deriveKey", "deriveBits"]


def private_key_to_jwk(private_key: ec.EllipticCurvePrivateKey) -> dict[str, object]:
    """Export an EC P-256 private key as a JWK dictionary.

    Raises
    ------
    ValueError
        If the key is not on the P-256 curve.
    """
    if not isinstance(private_key.curve, ec.SECP256R1):
        raise ValueError(f"Only P-256 keys can be exported, got {private_key.curve.name}")
    numbers = private_key.private_numbers()
    public = numbers.public_numbers
    return {
        "kty": "EC",
        "crv": _CURVE_NAME,
        "x": codec.encode_urlsafe(public.x.to_bytes(_COORDINATE_SIZE, "big")),
        "y": codec.encode_urlsafe(public.y.to_bytes(_COORDINATE_SIZE, "big")),
        "d": codec.encode_urlsafe(numbers.private_value.to_bytes(_COORDINATE_SIZE, "big")),
        "ext": True,
        "key_ops": list(_KEY_OPS),
    }


def private_key_from_jwk(jwk: dict[str, object]) -> ec.EllipticCurvePrivateKey:
    """Rebuild an EC P-256 private key from a JWK dictionary.

    The public coordinates are recomputed from ``d`` and must match the
    stored ``x``/``y`` members.

    Raises
    ------
    ValueError
        If the JWK is not an EC P-256 private key or is internally
        inconsistent.
    """
    if jwk.get("kty") != "EC" or jwk.get("crv") != _CURVE_NAME:
        raise ValueError(
            f"Expected an EC {_CURVE_NAME} JWK, got kty={jwk.get('kty')!r} crv={jwk.get('crv')!r}"
        )
    members: dict[str, int] = {}
    for name in ("x", "y", "d"):
        value = jwk.get(name)
        if not isinstance(value, str):
            raise ValueError(f"JWK member {name!r} is missing or not a string")
        raw = codec.decode_urlsafe(value)
        if len(raw) != _COORDINATE_SIZE:
            raise ValueError(
                f"JWK member {name!r} must decode to {_COORDINATE_SIZE} bytes, got {len(raw)}"
            )
        members[name] = int.from_bytes(raw, "big")

    private_key = ec.derive_private_key(members["d"], ec.SECP256R1())
    public = private_key.public_key().public_numbers()
    if public.x != members["x"] or public.y != members["y"]:
        raise ValueError("JWK public coordinates do not match the private scalar")
    return private_key


def dumps(jwk: dict[str, object]) -> str:
    """Serialize a JWK dictionary to compact JSON text."""
    return json.dumps(jwk, separators=(",", ":"), sort_keys=True)


def loads(text: str) -> dict[str, object]:
    """Parse JWK JSON text.

    Raises
    ------
    ValueError
        If *text* is not a JSON object.
    """
    try:
        data = json.loads(text)
    except json.JSONDecodeError as exc:
        raise ValueError(f"Stored key is not valid JSON: {exc}") from exc
    if not isinstance(data, dict):
        raise ValueError("Stored key must be a JSON object")
    return data


__all__ = ["dumps", "loads", "private_key_from_jwk", "private_key_to_jwk"]
