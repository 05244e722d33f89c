"""
Error Taxonomy
==============

Every failure surfaced by an encrypted stream is one of the types below.
The underlying cause (an OSError, a backend error) is kept both as
``cause`` and as the chained ``__cause__``.

Nothing is retried: open/read/write/close failures on a local file and
backend failures are all treated as final.
"""

from __future__ import annotations

from typing import Optional


class SealedFileError(Exception):
    """Base class for all encrypted stream errors."""

    def __init__(self, message: str, cause: Optional[BaseException] = None) -> None:
        super().__init__(message)
        self.cause = cause


class OpenError(SealedFileError):
    """The backing file could not be opened (not found, permission denied, ...)."""


class ReadError(SealedFileError):
    """The backing stream failed before end-of-stream. No partial data is returned."""


class OversizeError(SealedFileError):
    """
    The read buffer would grow past its configured maximum.

    No partial data is returned.
    """

    def __init__(self, limit: int) -> None:
        super().__init__(f"Encrypted stream exceeds maximum buffer size of {limit} bytes")
        self.limit = limit


class DecryptError(SealedFileError):
    """
    The backend rejected the ciphertext.

    Wrong passphrase, corrupt data, missing secret key or an unreadable
    keyring all end up here. No partial plaintext is returned.
    """


class EncryptError(SealedFileError):
    """The backend failed to encrypt. Nothing was written to the backing stream."""


class WriteError(SealedFileError):
    """
    The backing stream failed while writing ciphertext.

    Some of the ciphertext may already be on disk; there is no
    all-or-nothing guarantee.
    """


# Backend-side errors. The adapter converts these into DecryptError /
# EncryptError; they are only seen by code talking to a backend directly.


class BackendError(Exception):
    """Raised by an EncryptionBackend when an operation fails."""


class KeyringError(BackendError):
    """A keyring is missing, malformed, or lacks the requested key."""


class BackendDecryptError(BackendError):
    """The ciphertext could not be decrypted with the available keys."""
