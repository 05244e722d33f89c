"""
In-memory encrypted stream.

Same contract as EncryptedFile, but the ciphertext lives in a bytes
buffer instead of a file. Useful for keeping sealed blobs in a database
column or passing them over a socket.
"""

from __future__ import annotations

from typing import Iterable, Optional

from sealedfile.core.config import KeyringConfig
from sealedfile.core.crypto.backend import EncryptionBackend
from sealedfile.core.file_ops.codec import BackendCodec


class MemoryEncryptedStream(BackendCodec):
    """
    Encrypted stream over an in-memory ciphertext buffer.

    write() replaces the buffer with the ciphertext of its input;
    read() decrypts the whole buffer.
    """

    def __init__(
        self,
        passphrase: str,
        recipients: Iterable[str] = (),
        ciphertext: bytes = b"",
        *,
        keyring: Optional[KeyringConfig] = None,
        backend: Optional[EncryptionBackend] = None,
    ) -> None:
        super().__init__(passphrase, recipients, keyring=keyring, backend=backend)
        self._ciphertext = bytes(ciphertext)

    def getvalue(self) -> bytes:
        """Current ciphertext."""
        return self._ciphertext

    def read(self, size: int = -1) -> bytes:
        if size is not None and size >= 0:
            raise ValueError("MemoryEncryptedStream only supports reading the whole buffer")
        if not self._ciphertext:
            return b""
        return self.decrypt(self._ciphertext)

    def write(self, data: bytes) -> int:
        self._ciphertext = self.encrypt(data)
        return len(self._ciphertext)

    def __repr__(self) -> str:
        return f"MemoryEncryptedStream(ciphertext_len={len(self._ciphertext)}, recipients={len(self._recipients)})"
