"""
Encrypted Stream Contract
=========================

Capability types for streams whose stored bytes are ciphertext and whose
caller-facing bytes are plaintext. They impose no storage, algorithm or
state machine; a file, an in-memory buffer or a test fake may implement
them.

    EncryptedReader      read() + decrypt(ciphertext) -> plaintext
    EncryptedWriter      write() + encrypt(plaintext) -> ciphertext
    EncryptedReadWriter  both

Failures are raised as sealedfile.core.errors types, never returned.
"""

from __future__ import annotations

from abc import ABC, abstractmethod


class EncryptedReader(ABC):
    """A byte-readable stream with an explicit decrypt step."""

    @abstractmethod
    def read(self, size: int = -1) -> bytes:
        """Read plaintext from the stream."""
        ...

    @abstractmethod
    def decrypt(self, ciphertext: bytes) -> bytes:
        """Decrypt ciphertext. Raises DecryptError on failure."""
        ...


class EncryptedWriter(ABC):
    """A byte-writable stream with an explicit encrypt step."""

    @abstractmethod
    def write(self, data: bytes) -> int:
        """Write plaintext to the stream; returns bytes stored."""
        ...

    @abstractmethod
    def encrypt(self, plaintext: bytes) -> bytes:
        """Encrypt plaintext. Raises EncryptError on failure."""
        ...


class EncryptedReadWriter(EncryptedReader, EncryptedWriter):
    """Both directions."""
