"""
Key Derivation Functions
========================

Implements:
    - Argon2id for turning a passphrase into a key-sealing key
    - HKDF for deriving per-recipient wrap keys from an X25519 exchange
"""

from __future__ import annotations

from typing import Final

from argon2.low_level import Type, hash_secret_raw
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.kdf.hkdf import HKDF

from sealedfile.core.config import KdfConfig

SEALING_KEY_LENGTH: Final[int] = 32


def derive_key_argon2(
    passphrase: str,
    salt: bytes,
    params: KdfConfig,
    length: int = SEALING_KEY_LENGTH,
) -> bytes:
    """
    Derive a key from a passphrase using Argon2id.

    Args:
        passphrase: User passphrase
        salt: Random salt stored next to the sealed key
        params: Cost parameters (stored with the key, so decrypt uses the same)
        length: Output key length

    Returns:
        Derived key bytes
    """
    return hash_secret_raw(
        secret=passphrase.encode("utf-8"),
        salt=salt,
        time_cost=params.time_cost,
        memory_cost=params.memory_cost,
        parallelism=params.parallelism,
        hash_len=length,
        type=Type.ID,
    )


def expand_key_hkdf(
    key_material: bytes,
    length: int,
    info: bytes = b"",
    salt: bytes | None = None,
) -> bytes:
    """
    Expand key material using HKDF-SHA256.

    Args:
        key_material: Input key material (an X25519 shared secret)
        length: Output length
        info: Context binding (both public keys)
        salt: Optional salt
    """
    hkdf = HKDF(
        algorithm=hashes.SHA256(),
        length=length,
        salt=salt,
        info=info,
    )
    return hkdf.derive(key_material)
