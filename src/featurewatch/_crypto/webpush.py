"""Web Push payload encryption (``aesgcm`` content encoding).

Message encryption follows the ``aesgcm`` scheme of the Web Push encryption
draft: an ephemeral P-256 sender key is agreed with the subscriber's public
key, the shared secret is mixed with the subscriber's auth secret through
HKDF-SHA256, and a single AES-128-GCM record carries the payload.
"""

from __future__ import annotations

import base64
import os
import struct
from dataclasses import dataclass

from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import ec
from cryptography.hazmat.primitives.ciphers.aead import AESGCM
from cryptography.hazmat.primitives.kdf.hkdf import HKDF

from featurewatch.exceptions import PushCryptoError

CONTENT_ENCODING = "aesgcm"
SALT_LENGTH = 16

_AUTH_INFO = b"Content-Encoding: auth\x00"
_CEK_INFO = b"Content-Encoding: aesgcm\x00"
_NONCE_INFO = b"Content-Encoding: nonce\x00"
_CURVE_LABEL = b"P-256\x00"


def urlsafe_b64decode(value: str) -> bytes:
    """Decode unpadded URL-safe base64."""
    text = value.strip()
    return base64.urlsafe_b64decode(text + "=" * (-len(text) % 4))


def urlsafe_b64encode(data: bytes) -> str:
    """Encode to URL-safe base64 without padding."""
    return base64.urlsafe_b64encode(data).rstrip(b"=").decode("ascii")


def _hkdf(*, salt: bytes, ikm: bytes, info: bytes, length: int) -> bytes:
    return HKDF(algorithm=hashes.SHA256(), length=length, salt=salt, info=info).derive(ikm)


def _public_bytes(key: ec.EllipticCurvePublicKey) -> bytes:
    return key.public_bytes(serialization.Encoding.X962, serialization.PublicFormat.UncompressedPoint)


def _key_context(receiver_public: bytes, sender_public: bytes) -> bytes:
    return (
        _CURVE_LABEL
        + struct.pack("!H", len(receiver_public))
        + receiver_public
        + struct.pack("!H", len(sender_public))
        + sender_public
    )


@dataclass(frozen=True)
class EncryptedPayload:
    """Ciphertext plus the parameters the receiver needs to decrypt it."""

    body: bytes
    salt: bytes
    sender_public_key: bytes

    def headers(self, ttl: int) -> dict[str, str]:
        """HTTP headers required by the payload-bearing push protocol."""
        return {
            "content-type": "application/octet-stream",
            "content-encoding": CONTENT_ENCODING,
            "encryption": f"salt={urlsafe_b64encode(self.salt)}",
            "crypto-key": f"dh={urlsafe_b64encode(self.sender_public_key)}",
            "ttl": str(ttl),
        }


def derive_content_keys(
    *,
    shared_secret: bytes,
    auth_secret: bytes,
    salt: bytes,
    receiver_public: bytes,
    sender_public: bytes,
) -> tuple[bytes, bytes]:
    """Return ``(content_encryption_key, nonce)`` for one message.

    Both sides of the exchange derive the same pair, so this is shared by
    encryption and by anyone verifying a message.
    """
    prk = _hkdf(salt=auth_secret, ikm=shared_secret, info=_AUTH_INFO, length=32)
    context = _key_context(receiver_public, sender_public)
    cek = _hkdf(salt=salt, ikm=prk, info=_CEK_INFO + context, length=16)
    nonce = _hkdf(salt=salt, ikm=prk, info=_NONCE_INFO + context, length=12)
    return cek, nonce


def encrypt_payload(
    plaintext: bytes,
    receiver_key: str,
    auth_secret: str,
    *,
    sender_key: ec.EllipticCurvePrivateKey | None = None,
    salt: bytes | None = None,
) -> EncryptedPayload:
    """Encrypt *plaintext* for a subscriber.

    Parameters
    ----------
    plaintext : bytes
        Message body (at most one 4 KiB record).
    receiver_key : str
        Subscriber's uncompressed P-256 public key, URL-safe base64.
    auth_secret : str
        Subscriber's 16-byte auth secret, URL-safe base64.
    sender_key : EllipticCurvePrivateKey, optional
        Ephemeral sender key; a fresh one is generated when omitted.
    salt : bytes, optional
        16 random bytes; generated when omitted.

    Raises
    ------
    PushCryptoError
        If the key material cannot be decoded or the encryption fails.
    """
    try:
        receiver_public = urlsafe_b64decode(receiver_key)
        auth = urlsafe_b64decode(auth_secret)
        receiver = ec.EllipticCurvePublicKey.from_encoded_point(ec.SECP256R1(), receiver_public)
    except (ValueError, TypeError) as exc:
        raise PushCryptoError(f"Invalid subscriber key material: {exc}") from exc

    if sender_key is None:
        sender_key = ec.generate_private_key(ec.SECP256R1())
    if salt is None:
        salt = os.urandom(SALT_LENGTH)
    if len(salt) != SALT_LENGTH:
        raise PushCryptoError(f"salt must be {SALT_LENGTH} bytes (got {len(salt)})")

    try:
        sender_public = _public_bytes(sender_key.public_key())
        shared_secret = sender_key.exchange(ec.ECDH(), receiver)
        cek, nonce = derive_content_keys(
            shared_secret=shared_secret,
            auth_secret=auth,
            salt=salt,
            receiver_public=receiver_public,
            sender_public=sender_public,
        )
        # Two-byte padding length prefix, no padding.
        body = AESGCM(cek).encrypt(nonce, b"\x00\x00" + plaintext, None)
    except (ValueError, TypeError) as exc:
        raise PushCryptoError(f"Payload encryption failed: {exc}") from exc

    return EncryptedPayload(body=body, salt=salt, sender_public_key=sender_public)
