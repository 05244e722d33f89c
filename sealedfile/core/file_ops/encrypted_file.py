"""
Encrypted File
==============

A file whose on-disk bytes are always ciphertext and whose caller-facing
bytes are always plaintext.

Read Flow:
    1. fstat the handle for a size hint (discarded if unavailable or huge)
    2. Drain the stream into a buffer pre-sized to hint + MIN_READ,
       growing as needed but never past the configured maximum
    3. Decrypt the whole buffer in one backend call
    4. Return plaintext (empty file = empty plaintext)

Write Flow:
    1. Encrypt the whole input for the recipients in one backend call
    2. Write the ciphertext in one call

Usage:
    with open_file("notes.sealed", "wb", passphrase, ["alice@example.com"],
                   keyring=config.keyring) as f:
        f.write(b"secret notes")

    with open_file("notes.sealed", "rb", passphrase, (), keyring=config.keyring) as f:
        plaintext = f.read_all()

Nothing here is thread-safe; one EncryptedFile owns its handle exclusively.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import BinaryIO, Final, Iterable, Optional

from sealedfile.core.config import (
    DEFAULT_MIN_READ,
    BufferConfig,
    KeyringConfig,
    SealedConfig,
)
from sealedfile.core.crypto.backend import EncryptionBackend
from sealedfile.core.errors import OpenError, OversizeError, ReadError, WriteError
from sealedfile.core.file_ops.codec import BackendCodec

FILE_PERMISSIONS: Final[int] = 0o600

_MODE_FLAGS: Final[dict[str, int]] = {
    "r": os.O_RDONLY,
    "w": os.O_WRONLY | os.O_CREAT | os.O_TRUNC,
    "a": os.O_WRONLY | os.O_CREAT | os.O_APPEND,
    "x": os.O_WRONLY | os.O_CREAT | os.O_EXCL,
}
_ACCESS_MASK: Final[int] = os.O_RDONLY | os.O_WRONLY | os.O_RDWR


def _parse_mode(mode: str | int) -> tuple[int, str]:
    """
    Translate an open mode into (os.open flags, os.fdopen mode).

    Accepts binary mode strings ("rb", "wb", "ab", "xb", "r+b", ...; the
    "b" is optional) or raw os.O_* flags.
    """
    if isinstance(mode, int):
        access = mode & _ACCESS_MASK
        append = bool(mode & os.O_APPEND)
        if access == os.O_RDWR:
            fdopen_mode = "a+b" if append else "r+b"
        elif access == os.O_WRONLY:
            fdopen_mode = "ab" if append else "wb"
        else:
            fdopen_mode = "rb"
        return mode | getattr(os, "O_BINARY", 0), fdopen_mode

    chars = mode.replace("b", "")
    if not chars or chars[0] not in _MODE_FLAGS or chars[1:] not in ("", "+"):
        raise ValueError(f"Invalid mode: {mode!r}")

    flags = _MODE_FLAGS[chars[0]]
    if chars.endswith("+"):
        flags = (flags & ~_ACCESS_MASK) | os.O_RDWR

    return flags | getattr(os, "O_BINARY", 0), f"{chars}b"


def read_all(
    stream: BinaryIO,
    capacity: int,
    max_size: int,
    min_read: int = DEFAULT_MIN_READ,
) -> bytes:
    """
    Read stream until EOF into a buffer allocated with the given capacity.

    The buffer doubles when less than min_read bytes are free, but is
    never grown past max_size + 1 bytes; reading that extra byte means the
    stream is too large.

    Args:
        stream: Binary stream supporting readinto()
        capacity: Initial buffer size (a size hint plus min_read)
        max_size: Largest accepted stream length
        min_read: Minimum free space before each read

    Returns:
        Everything read (EOF is not an error)

    Raises:
        OversizeError: The stream holds more than max_size bytes
        ReadError: The stream failed before EOF
    """
    limit = max_size + 1
    try:
        buf = bytearray(max(0, min(capacity, limit)))
    except MemoryError as e:
        raise OversizeError(max_size) from e
    used = 0

    while True:
        if len(buf) - used < min_read and len(buf) < limit:
            new_len = min(max(2 * len(buf), used + min_read), limit)
            try:
                buf.extend(bytes(new_len - len(buf)))
            except MemoryError as e:
                raise OversizeError(max_size) from e

        try:
            with memoryview(buf) as view:
                n = stream.readinto(view[used:])
        except OSError as e:
            raise ReadError(f"Read failed after {used} bytes: {e}", cause=e) from e

        if n is None:
            raise ReadError(f"Stream would block after {used} bytes")
        if n == 0:
            break

        used += n
        if used > max_size:
            raise OversizeError(max_size)

    del buf[used:]
    return bytes(buf)


class EncryptedFile(BackendCodec):
    """
    Buffered encrypted file.

    Lifecycle: construct (no I/O) → open() → read_all()/write() → close().
    close() on an adapter that is not open raises ValueError.

    Attributes:
        path: Backing file path (fixed at construction)
        recipients: Recipient ids used when writing
    """

    def __init__(
        self,
        path: str | os.PathLike[str],
        passphrase: str,
        recipients: Iterable[str] = (),
        *,
        keyring: Optional[KeyringConfig] = None,
        buffers: Optional[BufferConfig] = None,
        backend: Optional[EncryptionBackend] = None,
    ) -> None:
        super().__init__(passphrase, recipients, keyring=keyring, backend=backend)
        self._path = os.fspath(path)
        self._buffers = buffers or SealedConfig.get_instance().buffers
        self._file: Optional[BinaryIO] = None
        self._log = logging.getLogger("sealedfile.file")

    @property
    def path(self) -> str:
        return self._path

    @property
    def closed(self) -> bool:
        return self._file is None

    def open(self, mode: str | int = "rb") -> "EncryptedFile":
        """
        Open the backing file with owner-only permissions.

        Returns:
            self, now bound to the handle

        Raises:
            OpenError: The file could not be opened (cause is the OSError)
            ValueError: Invalid mode, or already open
        """
        if self._file is not None:
            raise ValueError(f"EncryptedFile already open: {self._path}")

        flags, fdopen_mode = _parse_mode(mode)
        try:
            fd = os.open(self._path, flags, FILE_PERMISSIONS)
        except OSError as e:
            raise OpenError(f"Cannot open {self._path}: {e.strerror or e}", cause=e) from e

        try:
            self._file = os.fdopen(fd, fdopen_mode)
        except OSError as e:
            os.close(fd)
            raise OpenError(f"Cannot open {self._path}: {e.strerror or e}", cause=e) from e

        self._log.debug("Opened %s (%s)", self._path, fdopen_mode)
        return self

    def close(self) -> None:
        """
        Release the backing handle.

        Raises:
            ValueError: Not open
            OSError: The underlying close failed
        """
        if self._file is None:
            raise ValueError(f"EncryptedFile is not open: {self._path}")
        handle, self._file = self._file, None
        handle.close()
        self._log.debug("Closed %s", self._path)

    def _handle(self) -> BinaryIO:
        if self._file is None:
            raise ValueError("I/O operation on unopened or closed EncryptedFile")
        return self._file

    def _size_hint(self, handle: BinaryIO) -> int:
        try:
            size = os.fstat(handle.fileno()).st_size
        except (OSError, ValueError, AttributeError):
            return 0

        if size >= self._buffers.size_hint_ceiling:
            self._log.warning("Ignoring size hint of %d bytes for %s", size, self._path)
            return 0
        return size

    def read_all(self) -> bytes:
        """
        Read the rest of the file and decrypt it as one unit.

        Returns:
            Plaintext (b"" for an empty file)

        Raises:
            ReadError: The backing read failed
            OversizeError: The file exceeds the maximum buffer size
            DecryptError: The backend could not decrypt it
        """
        handle = self._handle()
        hint = self._size_hint(handle)

        ciphertext = read_all(
            handle,
            hint + self._buffers.min_read,
            self._buffers.max_buffer_size,
            self._buffers.min_read,
        )
        self._log.debug("Read %d ciphertext bytes from %s (hint %d)", len(ciphertext), self._path, hint)

        if not ciphertext:
            return b""
        return self.decrypt(ciphertext)

    def read(self, size: int = -1) -> bytes:
        """Whole-file read; ciphertext cannot be decrypted piecewise."""
        if size is not None and size >= 0:
            raise ValueError("EncryptedFile only supports reading the whole file")
        return self.read_all()

    def write(self, data: bytes) -> int:
        """
        Encrypt data as one unit and write the ciphertext.

        Returns:
            Number of ciphertext bytes written

        Raises:
            TypeError: data is not bytes-like (nothing written)
            EncryptError: The backend could not encrypt (nothing written)
            WriteError: The backing write failed (output may be partial)
        """
        handle = self._handle()
        ciphertext = self.encrypt(data)

        try:
            written = handle.write(ciphertext)
            handle.flush()
        except OSError as e:
            raise WriteError(f"Write to {self._path} failed: {e}", cause=e) from e

        self._log.debug("Wrote %d ciphertext bytes to %s", written, self._path)
        return written

    def __enter__(self) -> "EncryptedFile":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        if self._file is not None:
            self.close()

    def __repr__(self) -> str:
        """Safe representation without the passphrase."""
        state = "closed" if self._file is None else "open"
        return f"EncryptedFile(path={self._path!r}, recipients={len(self._recipients)}, {state})"


def open_file(
    path: str | Path,
    mode: str | int,
    passphrase: str,
    recipients: Iterable[str] = (),
    *,
    keyring: Optional[KeyringConfig] = None,
    buffers: Optional[BufferConfig] = None,
    backend: Optional[EncryptionBackend] = None,
) -> EncryptedFile:
    """
    Open path and return an EncryptedFile bound to it.

    Passphrase and recipients are recorded whatever the mode.

    Raises:
        OpenError: The file could not be opened
    """
    encrypted = EncryptedFile(
        path,
        passphrase,
        recipients,
        keyring=keyring,
        buffers=buffers,
        backend=backend,
    )
    return encrypted.open(mode)
