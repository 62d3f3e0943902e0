"""Payload decryption and signature verification for Lark callbacks.

Encrypted event bodies have the form ``{"encrypt": base64(iv + AES-256-CBC(json))}``
where the AES key is SHA-256 of the configured encryption key and the
plaintext is PKCS#7 padded.

Signed card callbacks carry ``X-Lark-Signature``, the lowercase hex SHA-1 of
``timestamp + nonce + verification_token + body``.
"""

from __future__ import annotations

import base64
import binascii
import hashlib
import hmac
import os

from Crypto.Cipher import AES

from ..core.exceptions import DecodeError, MalformedCiphertext, PaddingError

BLOCK_SIZE = AES.block_size


def derive_key(secret: str) -> bytes:
    """Derive the 256-bit AES key from the shared encryption key."""
    return hashlib.sha256(secret.encode("utf-8")).digest()


def _pkcs7_pad(data: bytes) -> bytes:
    pad = BLOCK_SIZE - len(data) % BLOCK_SIZE
    return data + bytes([pad]) * pad


def _pkcs7_unpad(data: bytes) -> bytes:
    if not data:
        raise PaddingError("empty plaintext")
    pad = data[-1]
    if pad == 0 or pad > BLOCK_SIZE or pad > len(data):
        raise PaddingError(f"invalid padding length {pad}")
    return data[:-pad]


def decrypt(secret: str, ciphertext_b64: str) -> bytes:
    """Decrypt an ``encrypt`` field.

    Args:
        secret: Event encryption key configured in the developer console.
        ciphertext_b64: Standard base64 of IV followed by the ciphertext.

    Returns:
        The plaintext bytes (normally a JSON document).

    Raises:
        DecodeError: Input is not valid base64.
        MalformedCiphertext: Ciphertext after the IV is empty or not block aligned.
        PaddingError: The pad length byte is out of bounds.
    """
    try:
        raw = base64.b64decode(ciphertext_b64, validate=True)
    except (binascii.Error, ValueError) as exc:
        raise DecodeError(f"invalid base64 payload: {exc}") from exc

    iv, ciphertext = raw[:BLOCK_SIZE], raw[BLOCK_SIZE:]
    if len(iv) < BLOCK_SIZE or not ciphertext or len(ciphertext) % BLOCK_SIZE:
        raise MalformedCiphertext(
            f"ciphertext length {len(ciphertext)} is not a positive multiple of {BLOCK_SIZE}"
        )

    cipher = AES.new(derive_key(secret), AES.MODE_CBC, iv)
    return _pkcs7_unpad(cipher.decrypt(ciphertext))


def encrypt(secret: str, plaintext: bytes | str, iv: bytes | None = None) -> str:
    """Encrypt a payload the way the platform does.

    Args:
        secret: Event encryption key.
        plaintext: Payload to encrypt.
        iv: 16-byte IV; random when omitted.

    Returns:
        Standard base64 of IV followed by the ciphertext.
    """
    if isinstance(plaintext, str):
        plaintext = plaintext.encode("utf-8")
    if iv is None:
        iv = os.urandom(BLOCK_SIZE)
    if len(iv) != BLOCK_SIZE:
        raise ValueError(f"iv must be {BLOCK_SIZE} bytes")
    cipher = AES.new(derive_key(secret), AES.MODE_CBC, iv)
    return base64.b64encode(iv + cipher.encrypt(_pkcs7_pad(plaintext))).decode("ascii")


def compute_signature(timestamp: str, nonce: str, token: str, body: bytes) -> str:
    """Compute the card callback signature."""
    message = (timestamp + nonce + token).encode("utf-8") + body
    return hashlib.sha1(message).hexdigest()


def verify_signature(
    timestamp: str,
    nonce: str,
    token: str,
    body: bytes,
    signature: str,
) -> bool:
    """Check a card callback signature in constant time."""
    expected = compute_signature(timestamp, nonce, token, body)
    return hmac.compare_digest(expected.encode("ascii"), (signature or "").encode("utf-8"))
