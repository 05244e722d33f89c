"""
Encryption Backends
===================

The adapter talks to key-based encryption through four opaque operations:

    init_decrypt_context(keyring_path, passphrase)
    decrypt(ciphertext, passphrase) -> plaintext
    init_encrypt_context(keyring_path, recipients)
    encrypt(plaintext) -> ciphertext

Keyring paths are passed in on every init call; a backend never reads
them from process-wide state.

KeyringBackend is the default implementation:

Encryption Flow:
    plaintext
        ↓ AES-256-GCM (random content key, AAD = package preamble)
    payload
    content key
        ↓ per recipient: X25519(ephemeral, recipient) → HKDF → AES-256-GCM
    stanzas
        → EncryptedPackage bytes

Decryption Flow:
    EncryptedPackage bytes
        ↓ find stanza for a key in the secret keyring
        ↓ unseal secret key (Argon2id(passphrase) → AES-256-GCM)
        ↓ X25519 → HKDF → unwrap content key
        ↓ AES-256-GCM decrypt payload (verify integrity)
    plaintext

WARNING:
    - init_* calls mutate the backend instance; one backend must not be
      shared between threads without external locking
    - Any failure = complete rejection (fail-closed)
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Final, Optional, Sequence

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives.asymmetric.x25519 import (
    X25519PrivateKey,
    X25519PublicKey,
)
from cryptography.hazmat.primitives.serialization import Encoding, PublicFormat

from sealedfile.core.crypto.aes_gcm import AES_KEY_SIZE, AesGcmCipher
from sealedfile.core.crypto.kdf import expand_key_hkdf
from sealedfile.core.crypto.keyring import PublicKey, PublicKeyring, SecretKeyring
from sealedfile.core.crypto.package import (
    EncryptedPackage,
    RecipientStanza,
    build_preamble,
)
from sealedfile.core.errors import BackendDecryptError, BackendError, KeyringError

_WRAP_INFO: Final[bytes] = b"sealedfile-x25519-wrap-v1"


class EncryptionBackend(ABC):
    """Opaque key-based encryption service consumed by encrypted streams."""

    @abstractmethod
    def init_decrypt_context(self, keyring_path: Path, passphrase: str) -> None:
        """Prepare to decrypt with the secret keyring at keyring_path."""
        ...

    @abstractmethod
    def decrypt(self, ciphertext: bytes, passphrase: str) -> bytes:
        """Decrypt a whole ciphertext. Raises BackendError on failure."""
        ...

    @abstractmethod
    def init_encrypt_context(self, keyring_path: Path, recipients: Sequence[str]) -> None:
        """Prepare to encrypt for recipients found in the public keyring."""
        ...

    @abstractmethod
    def encrypt(self, plaintext: bytes) -> bytes:
        """Encrypt a whole plaintext. Raises BackendError on failure."""
        ...


class KeyringBackend(EncryptionBackend):
    """
    X25519 + AES-256-GCM backend over JSON keyrings.

    Usage:
        backend = KeyringBackend()
        backend.init_encrypt_context(pubring, ["alice@example.com"])
        ciphertext = backend.encrypt(b"data")

        backend.init_decrypt_context(secring, passphrase)
        plaintext = backend.decrypt(ciphertext, passphrase)
    """

    __slots__ = ("_aes", "_secret_keyring", "_recipient_keys", "_log")

    def __init__(self) -> None:
        self._aes = AesGcmCipher()
        self._secret_keyring: Optional[SecretKeyring] = None
        self._recipient_keys: Optional[tuple[PublicKey, ...]] = None
        self._log = logging.getLogger("sealedfile.backend")

    def init_decrypt_context(self, keyring_path: Path, passphrase: str) -> None:
        # The passphrase is only checked when a key is unsealed in decrypt()
        self._secret_keyring = SecretKeyring.load(keyring_path)
        self._log.debug("Loaded secret keyring with %d key(s)", len(self._secret_keyring))

    def init_encrypt_context(self, keyring_path: Path, recipients: Sequence[str]) -> None:
        if not recipients:
            raise KeyringError("No recipients given")

        keyring = PublicKeyring.load(keyring_path)
        resolved: dict[str, PublicKey] = {}
        for recipient in recipients:
            key = keyring.find(recipient)
            if key is None:
                raise KeyringError(f"No public key for recipient {recipient!r}")
            resolved.setdefault(key.key_id, key)

        self._recipient_keys = tuple(resolved.values())
        self._log.debug("Encrypting for %d recipient key(s)", len(self._recipient_keys))

    def encrypt(self, plaintext: bytes) -> bytes:
        if self._recipient_keys is None:
            raise BackendError("Encrypt context not initialized")

        content_key = self._aes.generate_key()
        stanzas = tuple(self._wrap(content_key, key) for key in self._recipient_keys)
        payload = self._aes.encrypt(bytes(plaintext), content_key, aad=build_preamble(stanzas))

        return EncryptedPackage(
            stanzas=stanzas,
            payload_nonce=payload.nonce,
            payload=payload.ciphertext,
        ).to_bytes()

    def decrypt(self, ciphertext: bytes, passphrase: str) -> bytes:
        if self._secret_keyring is None:
            raise BackendError("Decrypt context not initialized")

        try:
            package = EncryptedPackage.from_bytes(ciphertext)
        except ValueError as e:
            raise BackendDecryptError(f"Malformed ciphertext: {e}") from e

        candidates = [
            (stanza, self._secret_keyring.get(stanza.key_id))
            for stanza in package.stanzas
            if stanza.key_id in self._secret_keyring
        ]
        if not candidates:
            raise BackendDecryptError("No secret key for any recipient of this message")

        last_error: Optional[BackendDecryptError] = None
        for stanza, secret_key in candidates:
            try:
                private = secret_key.unseal(passphrase)
                content_key = self._unwrap(stanza, private, secret_key.public_key)
            except BackendDecryptError as e:
                last_error = e
                continue

            try:
                return self._aes.decrypt(
                    package.payload,
                    package.payload_nonce,
                    content_key,
                    aad=package.preamble(),
                )
            except (InvalidTag, ValueError) as e:
                raise BackendDecryptError("Ciphertext integrity check failed") from e

        if last_error is not None:
            raise last_error
        raise BackendDecryptError("No usable secret key for this message")

    @staticmethod
    def _wrap_key(shared_secret: bytes, ephemeral_public: bytes, recipient_public: bytes) -> bytes:
        return expand_key_hkdf(
            shared_secret,
            length=AES_KEY_SIZE,
            info=_WRAP_INFO + ephemeral_public + recipient_public,
        )

    def _wrap(self, content_key: bytes, recipient: PublicKey) -> RecipientStanza:
        ephemeral = X25519PrivateKey.generate()
        ephemeral_public = ephemeral.public_key().public_bytes(Encoding.Raw, PublicFormat.Raw)
        try:
            shared = ephemeral.exchange(X25519PublicKey.from_public_bytes(recipient.public_key))
        except ValueError as e:
            raise KeyringError(f"Unusable public key {recipient.key_id}") from e

        wrapped = self._aes.encrypt(
            content_key,
            self._wrap_key(shared, ephemeral_public, recipient.public_key),
            aad=bytes.fromhex(recipient.key_id),
        )
        return RecipientStanza(
            key_id=recipient.key_id,
            ephemeral_public=ephemeral_public,
            wrap_nonce=wrapped.nonce,
            wrapped_key=wrapped.ciphertext,
        )

    def _unwrap(
        self,
        stanza: RecipientStanza,
        private: X25519PrivateKey,
        recipient_public: bytes,
    ) -> bytes:
        try:
            shared = private.exchange(X25519PublicKey.from_public_bytes(stanza.ephemeral_public))
            return self._aes.decrypt(
                stanza.wrapped_key,
                stanza.wrap_nonce,
                self._wrap_key(shared, stanza.ephemeral_public, recipient_public),
                aad=bytes.fromhex(stanza.key_id),
            )
        except (InvalidTag, ValueError) as e:
            raise BackendDecryptError(f"Cannot unwrap content key for {stanza.key_id}") from e
