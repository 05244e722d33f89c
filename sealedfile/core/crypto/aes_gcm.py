"""
AES-256-GCM Authenticated Encryption
====================================

Symmetric layer of the keyring backend. Used three ways:
    - encrypting the payload under a per-write content key
    - wrapping the content key for each recipient
    - sealing secret keys under a passphrase-derived key

Security Properties:
    - 256-bit key
    - 96-bit random nonce per operation (NIST SP 800-38D)
    - 128-bit authentication tag, verified before plaintext is released
"""

from __future__ import annotations

import secrets
from dataclasses import dataclass
from typing import Final, Optional

from cryptography.hazmat.primitives.ciphers.aead import AESGCM

AES_KEY_SIZE: Final[int] = 32  # 256 bits
AES_NONCE_SIZE: Final[int] = 12  # 96 bits
AES_TAG_SIZE: Final[int] = 16  # 128 bits


@dataclass(frozen=True, slots=True)
class AesGcmResult:
    """
    Result of AES-GCM encryption.

    Attributes:
        ciphertext: Encrypted data with appended authentication tag
        nonce: Nonce used for this encryption (stored alongside ciphertext)
    """

    ciphertext: bytes
    nonce: bytes

    def __repr__(self) -> str:
        return f"AesGcmResult(ciphertext_len={len(self.ciphertext)})"


class AesGcmCipher:
    """
    AES-256-GCM with a caller-supplied key and a fresh random nonce.

    Usage:
        cipher = AesGcmCipher()
        key = cipher.generate_key()
        result = cipher.encrypt(plaintext, key, aad=b"header")
        plaintext = cipher.decrypt(result.ciphertext, result.nonce, key, aad=b"header")

    decrypt() raises cryptography.exceptions.InvalidTag when the key, nonce,
    AAD or ciphertext do not match.
    """

    __slots__ = ()

    @staticmethod
    def generate_key() -> bytes:
        """Generate a random AES-256 key."""
        return secrets.token_bytes(AES_KEY_SIZE)

    @staticmethod
    def generate_nonce() -> bytes:
        """Generate a random 96-bit nonce."""
        return secrets.token_bytes(AES_NONCE_SIZE)

    def encrypt(
        self,
        plaintext: bytes,
        key: bytes,
        aad: Optional[bytes] = None,
    ) -> AesGcmResult:
        """
        Encrypt plaintext (may be empty) under key.

        Raises:
            ValueError: If key is the wrong size
        """
        if len(key) != AES_KEY_SIZE:
            raise ValueError(f"Key must be exactly {AES_KEY_SIZE} bytes")

        nonce = self.generate_nonce()
        ciphertext = AESGCM(key).encrypt(nonce, plaintext, aad)

        return AesGcmResult(ciphertext=ciphertext, nonce=nonce)

    def decrypt(
        self,
        ciphertext: bytes,
        nonce: bytes,
        key: bytes,
        aad: Optional[bytes] = None,
    ) -> bytes:
        """
        Decrypt and verify ciphertext.

        Raises:
            ValueError: If parameters are malformed
            cryptography.exceptions.InvalidTag: If authentication fails
        """
        if len(key) != AES_KEY_SIZE:
            raise ValueError(f"Key must be exactly {AES_KEY_SIZE} bytes")
        if len(nonce) != AES_NONCE_SIZE:
            raise ValueError(f"Nonce must be exactly {AES_NONCE_SIZE} bytes")
        if len(ciphertext) < AES_TAG_SIZE:
            raise ValueError("Ciphertext too short (missing authentication tag)")

        return AESGCM(key).decrypt(nonce, ciphertext, aad)
