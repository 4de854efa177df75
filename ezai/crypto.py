"""AES-256-GCM encryption and client secret hashing."""

from __future__ import annotations

import binascii
import hashlib
import hmac
import os
import secrets

import bcrypt
from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives.ciphers.aead import AESGCM

_ISSUED_PREFIX = "ezs_"
NONCE_SIZE = 12
BCRYPT_COST = 10
_HEX_DIGITS = frozenset("0123456789abcdefABCDEF")


class CryptoError(Exception):
    """Raised when a key, ciphertext or secret cannot be processed."""


class Encryptor:
    """Encrypts and decrypts with AES-256-GCM; output is nonce + ciphertext."""

    def __init__(self, hex_key: str) -> None:
        try:
            key = binascii.unhexlify(hex_key)
        except (binascii.Error, ValueError) as exc:
            raise CryptoError(f"failed to decode encryption key: {exc}") from exc
        if len(key) != 32:
            raise CryptoError(
                f"encryption key must be 32 bytes (64 hex chars), got {len(key)} bytes"
            )
        self._aead = AESGCM(key)

    def encrypt(self, plaintext: bytes) -> bytes:
        nonce = os.urandom(NONCE_SIZE)
        return nonce + self._aead.encrypt(nonce, bytes(plaintext), None)

    def decrypt(self, ciphertext: bytes) -> bytes:
        if len(ciphertext) < NONCE_SIZE:
            raise CryptoError("ciphertext is too short")
        nonce, body = ciphertext[:NONCE_SIZE], ciphertext[NONCE_SIZE:]
        try:
            return self._aead.decrypt(nonce, bytes(body), None)
        except InvalidTag as exc:
            raise CryptoError("decryption failed") from exc


def generate_key() -> str:
    """Return a random 256-bit key as 64 hex characters."""
    return secrets.token_hex(32)


def generate_client_secret() -> str:
    """Return a new client secret: the prefix followed by 64 hex characters."""
    return _ISSUED_PREFIX + secrets.token_hex(32)


def hash_secret(secret: str) -> str:
    """Hash a secret with bcrypt."""
    try:
        return bcrypt.hashpw(secret.encode(), bcrypt.gensalt(BCRYPT_COST)).decode()
    except ValueError as exc:
        raise CryptoError(f"failed to hash secret: {exc}") from exc


def _is_hex(text: str) -> bool:
    return bool(text) and all(c in _HEX_DIGITS for c in text)


def compare_secret_hash(secret: str, stored_hash: str) -> bool:
    """Check a secret against a bcrypt hash or a legacy SHA-256 hex digest."""
    if len(stored_hash) == 64 and _is_hex(stored_hash):
        legacy = hashlib.sha256(secret.encode()).hexdigest()
        return hmac.compare_digest(legacy.encode(), stored_hash.encode())
    try:
        return bcrypt.checkpw(secret.encode(), stored_hash.encode())
    except ValueError:
        return False