"""
SealedFile File Operations Module
=================================

Concrete encrypted streams.

Components:
- encrypted_file.py: File-backed stream (buffered read-all, whole-file write)
- memory.py: In-memory stream
- codec.py: Backend glue shared by both
"""

from sealedfile.core.file_ops.encrypted_file import (
    EncryptedFile,
    open_file,
    read_all,
)
from sealedfile.core.file_ops.memory import MemoryEncryptedStream

__all__ = [
    "EncryptedFile",
    "open_file",
    "read_all",
    "MemoryEncryptedStream",
]
