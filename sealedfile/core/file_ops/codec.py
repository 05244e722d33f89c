"""
Backend glue shared by the concrete encrypted streams.

Holds the passphrase (decrypt only), the recipients (encrypt only), the
keyring locations and the backend, and turns backend failures into
DecryptError / EncryptError.
"""

from __future__ import annotations

import logging
from typing import Iterable, Optional

from sealedfile.core.config import KeyringConfig, SealedConfig
from sealedfile.core.crypto.backend import EncryptionBackend, KeyringBackend
from sealedfile.core.errors import BackendError, DecryptError, EncryptError
from sealedfile.core.stream import EncryptedReadWriter


def _as_bytes(data: object) -> bytes:
    """Copy a bytes-like object; anything else (int, str, ...) is a TypeError."""
    try:
        with memoryview(data) as view:  # type: ignore[arg-type]
            return view.tobytes()
    except TypeError:
        raise TypeError(
            f"a bytes-like object is required, not '{type(data).__name__}'"
        ) from None


class BackendCodec(EncryptedReadWriter):
    """
    Base for encrypted streams that delegate to an EncryptionBackend.

    The same value serves both directions: a writer still records a
    passphrase it never uses, and a reader records recipients it never
    uses.
    """

    def __init__(
        self,
        passphrase: str,
        recipients: Iterable[str] = (),
        *,
        keyring: Optional[KeyringConfig] = None,
        backend: Optional[EncryptionBackend] = None,
    ) -> None:
        self._passphrase = passphrase
        self._recipients = tuple(recipients)
        self._keyring = keyring or SealedConfig.get_instance().keyring
        # One backend per stream unless the caller shares one explicitly
        self._backend = backend or KeyringBackend()
        self._log = logging.getLogger("sealedfile.stream")

    @property
    def recipients(self) -> tuple[str, ...]:
        return self._recipients

    @property
    def keyring(self) -> KeyringConfig:
        return self._keyring

    def decrypt(self, ciphertext: bytes) -> bytes:
        """
        Decrypt a whole ciphertext with the stored passphrase.

        Raises:
            TypeError: ciphertext is not bytes-like
            DecryptError: Backend failure (message carried over)
        """
        ciphertext = _as_bytes(ciphertext)
        try:
            self._backend.init_decrypt_context(self._keyring.secret_keyring, self._passphrase)
            return self._backend.decrypt(ciphertext, self._passphrase)
        except BackendError as e:
            self._log.warning("Decryption failed: %s", e)
            raise DecryptError(str(e), cause=e) from e

    def encrypt(self, plaintext: bytes) -> bytes:
        """
        Encrypt a whole plaintext for the stored recipients.

        Raises:
            TypeError: plaintext is not bytes-like
            EncryptError: Backend failure, or the backend returned nothing
        """
        plaintext = _as_bytes(plaintext)
        try:
            self._backend.init_encrypt_context(self._keyring.public_keyring, self._recipients)
            ciphertext = self._backend.encrypt(plaintext)
        except BackendError as e:
            self._log.warning("Encryption failed: %s", e)
            raise EncryptError(str(e), cause=e) from e

        if not isinstance(ciphertext, (bytes, bytearray)) or not ciphertext:
            raise EncryptError("Backend produced no ciphertext")
        return bytes(ciphertext)
