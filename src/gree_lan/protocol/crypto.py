"""AES envelope encryption for both protocol versions.

Version 1 is AES-128-ECB with PKCS#7 padding; version 2 is AES-128-GCM with a
fixed nonce and associated data. Both produce base64 text for the ``pack``
field. Handshake traffic (before ``bindok``) uses the well-known generic key
of the active version.
"""

from __future__ import annotations

import base64
import binascii
import json
from collections.abc import Mapping
from enum import IntEnum
from typing import Any, Protocol

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives import padding
from cryptography.hazmat.primitives.ciphers import Cipher, algorithms, modes
from cryptography.hazmat.primitives.ciphers.aead import AESGCM

from gree_lan.const import GCM_AAD, GCM_NONCE, GENERIC_KEY_V1, GENERIC_KEY_V2
from gree_lan.protocol.exceptions import DecodeError

__all__ = [
    "CryptoProvider",
    "EncryptionVersion",
    "GreeCipher",
]

AES_BLOCK_BITS = 128
GCM_TAG_LENGTH = 16


class EncryptionVersion(IntEnum):
    """Envelope encryption scheme negotiated for a session."""

    V1 = 1
    V2 = 2


class CryptoProvider(Protocol):
    """Encrypt/decrypt primitives the packet codec depends on."""

    def encrypt_v1(self, payload: Mapping[str, Any], key: str | None = None) -> str:
        """Encrypt a payload, returning the base64 pack."""
        ...

    def decrypt_v1(self, pack: str, key: str | None = None) -> dict[str, Any]:
        """Decrypt a base64 pack into a payload."""
        ...

    def encrypt_v2(self, payload: Mapping[str, Any], key: str | None = None) -> tuple[str, str]:
        """Encrypt a payload, returning (pack, tag)."""
        ...

    def decrypt_v2(self, pack: str, tag: str, key: str | None = None) -> dict[str, Any]:
        """Decrypt and authenticate a base64 pack into a payload."""
        ...


def _key_bytes(key: str) -> bytes:
    return key.encode("utf-8")


def _b64decode(text: str, reason: str) -> bytes:
    try:
        return base64.b64decode(text, validate=True)
    except (binascii.Error, ValueError) as e:
        raise DecodeError(reason, text) from e


def _serialize(payload: Mapping[str, Any]) -> bytes:
    return json.dumps(payload, separators=(",", ":")).encode("utf-8")


def _deserialize(plaintext: bytes) -> dict[str, Any]:
    try:
        decoded = json.loads(plaintext.decode("utf-8"))
    except (UnicodeDecodeError, json.JSONDecodeError) as e:
        raise DecodeError("invalid_plaintext", plaintext) from e
    if not isinstance(decoded, dict):
        raise DecodeError("plaintext_not_object", plaintext)
    return decoded


class GreeCipher:
    """Stateless implementation of :class:`CryptoProvider`.

    A ``key`` of None selects the generic key of the matching version.
    """

    def encrypt_v1(self, payload: Mapping[str, Any], key: str | None = None) -> str:
        """Encrypt with AES-ECB and return the base64 pack."""
        padder = padding.PKCS7(AES_BLOCK_BITS).padder()
        padded = padder.update(_serialize(payload)) + padder.finalize()
        encryptor = Cipher(algorithms.AES(_key_bytes(key or GENERIC_KEY_V1)), modes.ECB()).encryptor()
        ciphertext = encryptor.update(padded) + encryptor.finalize()
        return base64.b64encode(ciphertext).decode("ascii")

    def decrypt_v1(self, pack: str, key: str | None = None) -> dict[str, Any]:
        """Decrypt an AES-ECB base64 pack.

        Raises:
            DecodeError: On bad base64, padding or plaintext

        """
        ciphertext = _b64decode(pack, "invalid_base64")
        try:
            decryptor = Cipher(algorithms.AES(_key_bytes(key or GENERIC_KEY_V1)), modes.ECB()).decryptor()
            padded = decryptor.update(ciphertext) + decryptor.finalize()
            unpadder = padding.PKCS7(AES_BLOCK_BITS).unpadder()
            plaintext = unpadder.update(padded) + unpadder.finalize()
        except ValueError as e:
            # wrong key, truncated block, or bad padding all surface here
            raise DecodeError("invalid_padding", ciphertext) from e
        return _deserialize(plaintext)

    def encrypt_v2(self, payload: Mapping[str, Any], key: str | None = None) -> tuple[str, str]:
        """Encrypt with AES-GCM and return (pack, tag) as base64."""
        aes = AESGCM(_key_bytes(key or GENERIC_KEY_V2))
        sealed = aes.encrypt(GCM_NONCE, _serialize(payload), GCM_AAD)
        ciphertext, tag = sealed[:-GCM_TAG_LENGTH], sealed[-GCM_TAG_LENGTH:]
        return base64.b64encode(ciphertext).decode("ascii"), base64.b64encode(tag).decode("ascii")

    def decrypt_v2(self, pack: str, tag: str, key: str | None = None) -> dict[str, Any]:
        """Decrypt and authenticate an AES-GCM base64 pack.

        Raises:
            DecodeError: On bad base64, tag mismatch or plaintext

        """
        ciphertext = _b64decode(pack, "invalid_base64")
        tag_bytes = _b64decode(tag, "invalid_tag_encoding")
        if len(tag_bytes) != GCM_TAG_LENGTH:
            raise DecodeError("invalid_tag_length", tag_bytes)
        try:
            aes = AESGCM(_key_bytes(key or GENERIC_KEY_V2))
            plaintext = aes.decrypt(GCM_NONCE, ciphertext + tag_bytes, GCM_AAD)
        except InvalidTag as e:
            raise DecodeError("auth_failed", ciphertext) from e
        except ValueError as e:
            raise DecodeError("invalid_key", ciphertext) from e
        return _deserialize(plaintext)
