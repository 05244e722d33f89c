"""
SealedFile Cryptographic Backend
================================

Key-based encryption consumed by encrypted streams.

Architecture:
    1. X25519: per-recipient key agreement (ephemeral sender key)
    2. HKDF-SHA256: wrap key derivation
    3. AES-256-GCM: payload encryption, key wrapping, key sealing
    4. Argon2id: passphrase protection of secret keys

WARNING: This module handles sensitive cryptographic material.
"""

from sealedfile.core.crypto.aes_gcm import AesGcmCipher
from sealedfile.core.crypto.backend import EncryptionBackend, KeyringBackend
from sealedfile.core.crypto.keyring import (
    PublicKey,
    SecretKey,
    PublicKeyring,
    SecretKeyring,
    generate_keypair,
)
from sealedfile.core.crypto.package import EncryptedPackage

__all__ = [
    "AesGcmCipher",
    "EncryptionBackend",
    "KeyringBackend",
    "PublicKey",
    "SecretKey",
    "PublicKeyring",
    "SecretKeyring",
    "generate_keypair",
    "EncryptedPackage",
]
