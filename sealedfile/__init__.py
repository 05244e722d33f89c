"""
SealedFile - Encrypted-at-rest Files
====================================

Files whose on-disk bytes are always ciphertext and whose in-memory bytes
are always plaintext.

Security Notice:
- Passphrases are never written to disk or logged
- Whole-file encryption; any failure rejects the whole operation
- Keyring locations are passed explicitly, never read from global state
"""

from sealedfile.core.config import SealedConfig
from sealedfile.core.errors import (
    SealedFileError,
    OpenError,
    ReadError,
    OversizeError,
    DecryptError,
    EncryptError,
    WriteError,
)
from sealedfile.core.file_ops import EncryptedFile, MemoryEncryptedStream, open_file
from sealedfile.core.logging import get_secure_logger
from sealedfile.core.stream import EncryptedReader, EncryptedWriter, EncryptedReadWriter

__version__ = "0.1.0"

__all__ = [
    "SealedConfig",
    "get_secure_logger",
    "EncryptedReader",
    "EncryptedWriter",
    "EncryptedReadWriter",
    "EncryptedFile",
    "MemoryEncryptedStream",
    "open_file",
    "SealedFileError",
    "OpenError",
    "ReadError",
    "OversizeError",
    "DecryptError",
    "EncryptError",
    "WriteError",
    "__version__",
]
