"""Cryptographic primitives for push payload delivery."""

from __future__ import annotations

from featurewatch._crypto.webpush import (
    CONTENT_ENCODING,
    EncryptedPayload,
    derive_content_keys,
    encrypt_payload,
    urlsafe_b64decode,
    urlsafe_b64encode,
)

__all__ = [
    "CONTENT_ENCODING",
    "EncryptedPayload",
    "derive_content_keys",
    "encrypt_payload",
    "urlsafe_b64decode",
    "urlsafe_b64encode",
]
