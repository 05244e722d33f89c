"""
Encrypted Package Format
========================

Binary container produced by the keyring backend. One package holds one
payload encrypted under a random content key, plus one stanza per
recipient carrying that content key wrapped for the recipient.

Format (little-endian):
    MAGIC (4) | VERSION (1) | STANZA_COUNT (2) |
    STANZA * STANZA_COUNT |
    PAYLOAD_NONCE (12) | PAYLOAD_LEN (4) | PAYLOAD

Stanza:
    KEY_ID (8) | EPHEMERAL_PUBLIC (32) | WRAP_NONCE (12) |
    WRAPPED_LEN (2) | WRAPPED_KEY

Everything before PAYLOAD_NONCE (the preamble) is authenticated as AAD
of the payload, so stanzas cannot be swapped between packages.
"""

from __future__ import annotations

import struct
from dataclasses import dataclass
from typing import Final, Sequence

from sealedfile.core.crypto.aes_gcm import AES_NONCE_SIZE
from sealedfile.core.crypto.keyring import KEY_ID_SIZE, X25519_KEY_SIZE

MAGIC_BYTES: Final[bytes] = b"SLDF"
PACKAGE_VERSION: Final[int] = 1
MAX_STANZAS: Final[int] = 0xFFFF


@dataclass(frozen=True, slots=True)
class RecipientStanza:
    """The content key, wrapped for one recipient."""

    key_id: str
    ephemeral_public: bytes
    wrap_nonce: bytes
    wrapped_key: bytes

    def to_bytes(self) -> bytes:
        return b"".join([
            bytes.fromhex(self.key_id),
            self.ephemeral_public,
            self.wrap_nonce,
            struct.pack("<H", len(self.wrapped_key)),
            self.wrapped_key,
        ])


def build_preamble(stanzas: Sequence[RecipientStanza]) -> bytes:
    """Serialize the authenticated part of a package."""
    if len(stanzas) > MAX_STANZAS:
        raise ValueError(f"Too many recipients: {len(stanzas)}")
    parts = [
        MAGIC_BYTES,
        struct.pack("<B", PACKAGE_VERSION),
        struct.pack("<H", len(stanzas)),
    ]
    parts.extend(stanza.to_bytes() for stanza in stanzas)
    return b"".join(parts)


class _Reader:
    """Bounds-checked cursor over package bytes."""

    __slots__ = ("_data", "offset")

    def __init__(self, data: bytes) -> None:
        self._data = data
        self.offset = 0

    def take(self, size: int) -> bytes:
        end = self.offset + size
        if end > len(self._data):
            raise ValueError("Package truncated")
        chunk = self._data[self.offset:end]
        self.offset = end
        return chunk

    def unpack(self, fmt: str) -> int:
        return struct.unpack(fmt, self.take(struct.calcsize(fmt)))[0]


@dataclass(frozen=True, slots=True)
class EncryptedPackage:
    """Parsed form of the backend's ciphertext."""

    stanzas: tuple[RecipientStanza, ...]
    payload_nonce: bytes
    payload: bytes
    version: int = PACKAGE_VERSION

    def preamble(self) -> bytes:
        return build_preamble(self.stanzas)

    def to_bytes(self) -> bytes:
        return b"".join([
            self.preamble(),
            self.payload_nonce,
            struct.pack("<I", len(self.payload)),
            self.payload,
        ])

    @classmethod
    def from_bytes(cls, data: bytes) -> "EncryptedPackage":
        """
        Parse package bytes.

        Raises:
            ValueError: If data is not a well-formed package
        """
        reader = _Reader(bytes(data))

        if reader.take(len(MAGIC_BYTES)) != MAGIC_BYTES:
            raise ValueError("Invalid package: bad magic bytes")

        version = reader.unpack("<B")
        if version != PACKAGE_VERSION:
            raise ValueError(f"Unsupported package version: {version}")

        count = reader.unpack("<H")
        stanzas = []
        for _ in range(count):
            key_id = reader.take(KEY_ID_SIZE).hex()
            ephemeral_public = reader.take(X25519_KEY_SIZE)
            wrap_nonce = reader.take(AES_NONCE_SIZE)
            wrapped_len = reader.unpack("<H")
            stanzas.append(RecipientStanza(
                key_id=key_id,
                ephemeral_public=ephemeral_public,
                wrap_nonce=wrap_nonce,
                wrapped_key=reader.take(wrapped_len),
            ))

        payload_nonce = reader.take(AES_NONCE_SIZE)
        payload_len = reader.unpack("<I")
        payload = reader.take(payload_len)

        if reader.offset != len(data):
            raise ValueError("Trailing data after package")

        return cls(
            stanzas=tuple(stanzas),
            payload_nonce=payload_nonce,
            payload=payload,
            version=version,
        )

    def __repr__(self) -> str:
        return f"EncryptedPackage(v{self.version}, recipients={len(self.stanzas)}, payload_len={len(self.payload)})"
