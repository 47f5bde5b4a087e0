"""Ed25519 signature verification for wallet sign-in.

Wallet SDKs hand over public keys and signatures in whatever shape they
happen to use: ``0x``-prefixed hex, bare hex, base64, base64url, or a raw
byte array serialised as a JSON list. Everything is normalised to bytes by
:func:`decode_key_material` before verification, and any decoding problem
simply makes :func:`verify` return ``False``.
"""

from __future__ import annotations

import base64
import binascii
import re
from dataclasses import dataclass
from typing import Any

from cryptography.exceptions import InvalidSignature
from cryptography.hazmat.primitives.asymmetric.ed25519 import Ed25519PublicKey

PUBKEY_LENGTH_BYTES = 32
SIGNATURE_LENGTH_BYTES = 64

_HEX_RE = re.compile(r"^[0-9a-fA-F]+$")


@dataclass(frozen=True)
class DecodedBytes:
    """Successfully decoded key material."""

    value: bytes
    encoding: str


@dataclass(frozen=True)
class DecodeError:
    """Reason the input could not be turned into bytes."""

    reason: str


DecodeResult = DecodedBytes | DecodeError


def _decode_hex(text: str) -> bytes:
    if text[:2] in ("0x", "0X"):
        text = text[2:]
    if not text or not _HEX_RE.match(text):
        raise ValueError("not hex")
    if len(text) % 2:
        text = "0" + text
    return bytes.fromhex(text)


def _decode_base64(text: str) -> bytes:
    normalised = text.replace("-", "+").replace("_", "/")
    normalised += "=" * (-len(normalised) % 4)
    try:
        return base64.b64decode(normalised, validate=True)
    except (binascii.Error, ValueError) as err:
        raise ValueError(f"invalid base64: {err}") from err


def decode_key_material(value: Any) -> DecodeResult:
    """Normalise a public key or signature to raw bytes.

    Never raises; failures come back as :class:`DecodeError`.
    """
    if value is None:
        return DecodeError("empty")
    if isinstance(value, (bytes, bytearray, memoryview)):
        return DecodedBytes(bytes(value), "bytes")
    if isinstance(value, (list, tuple)):
        if not all(isinstance(item, int) and not isinstance(item, bool) for item in value):
            return DecodeError("byte array must contain integers")
        try:
            return DecodedBytes(bytes(value), "array")
        except ValueError:
            return DecodeError("byte array values must be in range 0..255")
    if isinstance(value, str):
        text = value.strip()
        if not text:
            return DecodeError("empty")
        if text[:2] in ("0x", "0X") or _HEX_RE.match(text):
            try:
                return DecodedBytes(_decode_hex(text), "hex")
            except ValueError:
                # A 0x prefix followed by non-hex can still be valid base64.
                pass
        try:
            return DecodedBytes(_decode_base64(text), "base64")
        except ValueError as err:
            return DecodeError(str(err))
    return DecodeError(f"unsupported type {type(value).__name__}")


def verify(public_key: Any, signature: Any, message: str) -> bool:
    """Verify an Ed25519 signature over the exact UTF-8 bytes of ``message``.

    Args:
        public_key: 32-byte Ed25519 key in any accepted encoding.
        signature: 64-byte signature in any accepted encoding.
        message: The literal text the wallet signed. No prefix or hashing is
            added here.

    Returns:
        True only if both inputs decode to the right sizes and the signature
        checks out; False otherwise.
    """
    decoded_key = decode_key_material(public_key)
    decoded_sig = decode_key_material(signature)
    if not isinstance(decoded_key, DecodedBytes) or not isinstance(decoded_sig, DecodedBytes):
        return False
    if len(decoded_key.value) != PUBKEY_LENGTH_BYTES:
        return False
    if len(decoded_sig.value) != SIGNATURE_LENGTH_BYTES:
        return False
    if not isinstance(message, str):
        return False

    try:
        pubkey = Ed25519PublicKey.from_public_bytes(decoded_key.value)
        pubkey.verify(decoded_sig.value, message.encode("utf-8"))
        return True
    except (InvalidSignature, ValueError):
        return False


def normalize_public_key(public_key: Any) -> str | None:
    """Return a canonical ``0x``-hex rendering of a public key, if decodable."""
    decoded = decode_key_material(public_key)
    if not isinstance(decoded, DecodedBytes) or len(decoded.value) != PUBKEY_LENGTH_BYTES:
        return None
    return "0x" + decoded.value.hex()
