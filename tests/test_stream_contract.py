"""Tests for the encrypted stream capability types and the memory stream."""

from __future__ import annotations

import pytest

from sealedfile.core.errors import DecryptError, EncryptError
from sealedfile.core.file_ops import EncryptedFile, MemoryEncryptedStream
from sealedfile.core.stream import EncryptedReader, EncryptedReadWriter, EncryptedWriter
from tests.conftest import ALICE, ALICE_PASSPHRASE, BOB


class XorStream(EncryptedReadWriter):
    """Toy implementation: the contract says nothing about the algorithm."""

    def __init__(self, key: int) -> None:
        self._key = key
        self._stored = b""

    def decrypt(self, ciphertext: bytes) -> bytes:
        return bytes(b ^ self._key for b in ciphertext)

    def encrypt(self, plaintext: bytes) -> bytes:
        return bytes(b ^ self._key for b in plaintext)

    def read(self, size: int = -1) -> bytes:
        return self.decrypt(self._stored)

    def write(self, data: bytes) -> int:
        self._stored = self.encrypt(data)
        return len(self._stored)


def test_contract_types_are_abstract():
    for cls in (EncryptedReader, EncryptedWriter, EncryptedReadWriter):
        with pytest.raises(TypeError):
            cls()


def test_read_writer_composes_both():
    assert issubclass(EncryptedReadWriter, EncryptedReader)
    assert issubclass(EncryptedReadWriter, EncryptedWriter)


def test_concrete_streams_implement_contract(tmp_path, keyring):
    assert isinstance(EncryptedFile(tmp_path / "f", "pw", keyring=keyring), EncryptedReadWriter)
    assert isinstance(MemoryEncryptedStream("pw", keyring=keyring), EncryptedReadWriter)


def test_toy_implementation_is_substitutable():
    stream = XorStream(0x5A)
    stream.write(b"payload")
    assert stream.read() == b"payload"


def test_memory_stream_roundtrip(keyring):
    writer = MemoryEncryptedStream(ALICE_PASSPHRASE, [ALICE], keyring=keyring)
    written = writer.write(b"in memory")
    assert written == len(writer.getvalue())
    assert writer.getvalue() != b"in memory"

    reader = MemoryEncryptedStream(ALICE_PASSPHRASE, ciphertext=writer.getvalue(), keyring=keyring)
    assert reader.read() == b"in memory"


def test_memory_stream_empty_reads_empty(keyring):
    assert MemoryEncryptedStream(ALICE_PASSPHRASE, keyring=keyring).read() == b""


def test_memory_stream_wrong_passphrase(keyring):
    writer = MemoryEncryptedStream(ALICE_PASSPHRASE, [ALICE], keyring=keyring)
    writer.write(b"data")
    reader = MemoryEncryptedStream("wrong", ciphertext=writer.getvalue(), keyring=keyring)
    with pytest.raises(DecryptError):
        reader.read()


def test_memory_stream_unknown_recipient(keyring):
    stream = MemoryEncryptedStream(ALICE_PASSPHRASE, ["nobody"], keyring=keyring)
    with pytest.raises(EncryptError):
        stream.write(b"data")
    assert stream.getvalue() == b""


def test_encrypt_decrypt_without_file_io(tmp_path, keyring):
    encrypted = EncryptedFile(tmp_path / "unused", ALICE_PASSPHRASE, [ALICE, BOB], keyring=keyring)
    ciphertext = encrypted.encrypt(b"direct")
    assert encrypted.decrypt(ciphertext) == b"direct"
    assert not (tmp_path / "unused").exists()


def test_memory_stream_rejects_non_bytes(keyring):
    stream = MemoryEncryptedStream(ALICE_PASSPHRASE, [ALICE], keyring=keyring)
    with pytest.raises(TypeError):
        stream.encrypt(3)
    with pytest.raises(TypeError):
        stream.decrypt("ciphertext")
