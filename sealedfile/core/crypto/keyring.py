"""
Keyrings
========

On-disk stores of X25519 key material, addressed by path.

    - Public keyring: recipients' public keys (used to encrypt)
    - Secret keyring: our own keys, each private key sealed with
      AES-256-GCM under an Argon2id key derived from the passphrase
      (used to decrypt)

Both are JSON documents:

    {"version": 1, "keys": [{"key_id": "...", "uid": "...", "public_key": "<b64>", ...}]}

Secret entries additionally carry salt, nonce, sealed_key and the
Argon2id cost parameters they were sealed with.

Security Notes:
    - Raw private keys never touch disk
    - Keyring files are written with 0o600 permissions
    - A wrong passphrase fails authentication; it never yields a key
"""

from __future__ import annotations

import hashlib
import json
import os
import secrets
from base64 import b64decode, b64encode
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Final, Iterable, Iterator, Optional

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives.asymmetric.x25519 import X25519PrivateKey
from cryptography.hazmat.primitives.serialization import (
    Encoding,
    NoEncryption,
    PrivateFormat,
    PublicFormat,
)

from sealedfile.core.config import KdfConfig, SealedConfig
from sealedfile.core.crypto.aes_gcm import AesGcmCipher
from sealedfile.core.crypto.kdf import derive_key_argon2
from sealedfile.core.errors import BackendDecryptError, KeyringError

KEYRING_VERSION: Final[int] = 1
KEY_ID_SIZE: Final[int] = 8  # bytes, hex encoded in keyrings
X25519_KEY_SIZE: Final[int] = 32


def compute_key_id(public_key: bytes) -> str:
    """Key id: first 8 bytes of SHA-256 over the raw public key, hex encoded."""
    return hashlib.sha256(public_key).digest()[:KEY_ID_SIZE].hex()


@dataclass(frozen=True, slots=True)
class PublicKey:
    """A recipient's public key."""

    key_id: str
    uid: str
    public_key: bytes

    def matches(self, identifier: str) -> bool:
        """True if identifier names this key by key id or user id."""
        ident = identifier.strip()
        if ident.lower().removeprefix("0x") == self.key_id:
            return True
        return ident.lower() == self.uid.lower()

    def to_dict(self) -> dict[str, Any]:
        return {
            "key_id": self.key_id,
            "uid": self.uid,
            "public_key": b64encode(self.public_key).decode(),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "PublicKey":
        public_key = b64decode(data["public_key"])
        if compute_key_id(public_key) != data["key_id"]:
            raise ValueError(f"Key id does not match public key: {data['key_id']}")
        return cls(key_id=data["key_id"], uid=data["uid"], public_key=public_key)


@dataclass(frozen=True, slots=True)
class SecretKey:
    """
    One of our keys, with the private half sealed under a passphrase.

    Call unseal() with the passphrase to get a usable X25519 private key.
    """

    key_id: str
    uid: str
    public_key: bytes
    salt: bytes
    nonce: bytes
    sealed_key: bytes
    kdf: KdfConfig

    @property
    def public(self) -> PublicKey:
        return PublicKey(key_id=self.key_id, uid=self.uid, public_key=self.public_key)

    def matches(self, identifier: str) -> bool:
        return self.public.matches(identifier)

    def unseal(self, passphrase: str) -> X25519PrivateKey:
        """
        Recover the private key.

        Raises:
            BackendDecryptError: If the passphrase is wrong or the entry is corrupt
        """
        sealing_key = derive_key_argon2(passphrase, self.salt, self.kdf)
        try:
            raw = AesGcmCipher().decrypt(
                self.sealed_key,
                self.nonce,
                sealing_key,
                aad=self.key_id.encode(),
            )
        except (InvalidTag, ValueError) as e:
            raise BackendDecryptError(
                f"Bad passphrase for secret key {self.key_id}"
            ) from e
        return X25519PrivateKey.from_private_bytes(raw)

    def to_dict(self) -> dict[str, Any]:
        return {
            "key_id": self.key_id,
            "uid": self.uid,
            "public_key": b64encode(self.public_key).decode(),
            "salt": b64encode(self.salt).decode(),
            "nonce": b64encode(self.nonce).decode(),
            "sealed_key": b64encode(self.sealed_key).decode(),
            "time_cost": self.kdf.time_cost,
            "memory_cost": self.kdf.memory_cost,
            "parallelism": self.kdf.parallelism,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "SecretKey":
        salt = b64decode(data["salt"])
        public_key = b64decode(data["public_key"])
        if compute_key_id(public_key) != data["key_id"]:
            raise ValueError(f"Key id does not match public key: {data['key_id']}")
        return cls(
            key_id=data["key_id"],
            uid=data["uid"],
            public_key=public_key,
            salt=salt,
            nonce=b64decode(data["nonce"]),
            sealed_key=b64decode(data["sealed_key"]),
            kdf=KdfConfig(
                time_cost=data["time_cost"],
                memory_cost=data["memory_cost"],
                parallelism=data["parallelism"],
                salt_length=len(salt),
            ),
        )

    def __repr__(self) -> str:
        """Safe representation without sealed material."""
        return f"SecretKey(key_id={self.key_id!r}, uid={self.uid!r})"


def generate_keypair(
    uid: str,
    passphrase: str,
    kdf: Optional[KdfConfig] = None,
) -> SecretKey:
    """
    Generate a new X25519 keypair sealed under passphrase.

    Args:
        uid: User id recipients are addressed by (e.g. "alice@example.com")
        passphrase: Passphrase needed later to decrypt
        kdf: Argon2id cost parameters (defaults to the configured SealedConfig.kdf)

    Returns:
        SecretKey; its .public goes into the senders' public keyrings
    """
    kdf = kdf or SealedConfig.get_instance().kdf
    private = X25519PrivateKey.generate()
    raw_private = private.private_bytes(Encoding.Raw, PrivateFormat.Raw, NoEncryption())
    raw_public = private.public_key().public_bytes(Encoding.Raw, PublicFormat.Raw)
    key_id = compute_key_id(raw_public)

    salt = secrets.token_bytes(kdf.salt_length)
    sealing_key = derive_key_argon2(passphrase, salt, kdf)
    sealed = AesGcmCipher().encrypt(raw_private, sealing_key, aad=key_id.encode())

    return SecretKey(
        key_id=key_id,
        uid=uid,
        public_key=raw_public,
        salt=salt,
        nonce=sealed.nonce,
        sealed_key=sealed.ciphertext,
        kdf=kdf,
    )


class _Keyring:
    """Common load/save/lookup for both keyring kinds."""

    _entry_type: type = PublicKey
    _kind: str = "public"

    def __init__(self, keys: Iterable[Any] = ()) -> None:
        self._keys: dict[str, Any] = {}
        for key in keys:
            self.add(key)

    def add(self, key: Any) -> None:
        """Add or replace a key (keyed by key id)."""
        if not isinstance(key, self._entry_type):
            raise TypeError(f"{self._kind} keyring only holds {self._entry_type.__name__}")
        self._keys[key.key_id] = key

    def get(self, key_id: str) -> Optional[Any]:
        return self._keys.get(key_id)

    def find(self, identifier: str) -> Optional[Any]:
        """Look a key up by key id or user id."""
        for key in self._keys.values():
            if key.matches(identifier):
                return key
        return None

    def __iter__(self) -> Iterator[Any]:
        return iter(self._keys.values())

    def __len__(self) -> int:
        return len(self._keys)

    def __contains__(self, key_id: object) -> bool:
        return key_id in self._keys

    def to_json(self) -> str:
        return json.dumps({
            "version": KEYRING_VERSION,
            "keys": [key.to_dict() for key in self._keys.values()],
        }, indent=2)

    @classmethod
    def from_json(cls, json_str: str):
        """
        Parse a keyring document.

        Raises:
            KeyringError: If the document is malformed
        """
        try:
            data = json.loads(json_str)
            if data.get("version") != KEYRING_VERSION:
                raise KeyringError(f"Unsupported keyring version: {data.get('version')}")
            return cls(cls._entry_type.from_dict(entry) for entry in data["keys"])
        except KeyringError:
            raise
        except (ValueError, KeyError, TypeError, AttributeError) as e:
            raise KeyringError(f"Malformed {cls._kind} keyring: {e}") from e

    @classmethod
    def load(cls, path: Path | str):
        """
        Load a keyring from disk.

        Raises:
            KeyringError: If the file is unreadable or malformed
        """
        path = Path(path)
        try:
            text = path.read_text(encoding="utf-8")
        except OSError as e:
            raise KeyringError(f"Cannot read {cls._kind} keyring {path}: {e.strerror or e}") from e
        return cls.from_json(text)

    def save(self, path: Path | str) -> None:
        """Write the keyring to disk with owner-only permissions."""
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        fd = os.open(path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, 0o600)
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(self.to_json())


class PublicKeyring(_Keyring):
    """Public keys of recipients, consulted when encrypting."""

    _entry_type = PublicKey
    _kind = "public"


class SecretKeyring(_Keyring):
    """Our own passphrase-sealed keys, consulted when decrypting."""

    _entry_type = SecretKey
    _kind = "secret"

    def export_public(self) -> PublicKeyring:
        """Public halves of every secret key, for distribution to senders."""
        return PublicKeyring(key.public for key in self)
