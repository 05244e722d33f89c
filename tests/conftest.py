"""Shared fixtures: cheap Argon2 keys and on-disk keyrings."""

from __future__ import annotations

from pathlib import Path
from typing import Callable, Iterable, Optional

import pytest

from sealedfile.core.config import BufferConfig, KdfConfig, KeyringConfig, SealedConfig
from sealedfile.core.crypto.keyring import (
    PublicKeyring,
    SecretKey,
    SecretKeyring,
    generate_keypair,
)
from sealedfile.core.file_ops import EncryptedFile

# Argon2 minimums keep the suite fast; production defaults are in KdfConfig()
FAST_KDF = KdfConfig(time_cost=1, memory_cost=1024, parallelism=1)

ALICE = "alice@example.com"
ALICE_PASSPHRASE = "correct horse battery staple"
BOB = "bob@example.com"
BOB_PASSPHRASE = "tr0ub4dor&3"


@pytest.fixture(autouse=True)
def _fresh_config():
    SealedConfig.reset_instance()
    yield
    SealedConfig.reset_instance()


@pytest.fixture(scope="session")
def alice_key() -> SecretKey:
    return generate_keypair(ALICE, ALICE_PASSPHRASE, FAST_KDF)


@pytest.fixture(scope="session")
def bob_key() -> SecretKey:
    return generate_keypair(BOB, BOB_PASSPHRASE, FAST_KDF)


@pytest.fixture
def keyring(tmp_path: Path, alice_key: SecretKey, bob_key: SecretKey) -> KeyringConfig:
    """Alice's secret keyring; a public keyring holding Alice and Bob."""
    secring = tmp_path / "keys" / "secring.json"
    pubring = tmp_path / "keys" / "pubring.json"
    SecretKeyring([alice_key]).save(secring)
    PublicKeyring([alice_key.public, bob_key.public]).save(pubring)
    return KeyringConfig(secret_keyring=secring, public_keyring=pubring)


@pytest.fixture
def make_file(tmp_path: Path, keyring: KeyringConfig) -> Callable[..., EncryptedFile]:
    def factory(
        name: str = "data.sealed",
        passphrase: str = ALICE_PASSPHRASE,
        recipients: Iterable[str] = (ALICE,),
        buffers: Optional[BufferConfig] = None,
        **kwargs,
    ) -> EncryptedFile:
        return EncryptedFile(
            tmp_path / name,
            passphrase,
            recipients,
            keyring=kwargs.pop("keyring", keyring),
            buffers=buffers or BufferConfig(),
            **kwargs,
        )

    return factory
