"""Tests for keyring storage and key sealing."""

from __future__ import annotations

import json
import stat
import sys

import pytest

from sealedfile.core.config import SealedConfig
from sealedfile.core.crypto.keyring import (
    PublicKeyring,
    SecretKeyring,
    compute_key_id,
    generate_keypair,
)
from sealedfile.core.errors import BackendDecryptError, KeyringError
from tests.conftest import ALICE, ALICE_PASSPHRASE, FAST_KDF


def test_secret_keyring_save_load(tmp_path, alice_key):
    path = tmp_path / "secring.json"
    SecretKeyring([alice_key]).save(path)

    loaded = SecretKeyring.load(path)
    assert alice_key.key_id in loaded
    assert loaded.get(alice_key.key_id) == alice_key


@pytest.mark.skipif(sys.platform == "win32", reason="POSIX permission bits")
def test_keyring_file_is_owner_only(tmp_path, alice_key):
    path = tmp_path / "secring.json"
    SecretKeyring([alice_key]).save(path)
    assert stat.S_IMODE(path.stat().st_mode) & 0o077 == 0


def test_secret_keyring_never_stores_raw_private_key(tmp_path, alice_key):
    path = tmp_path / "secring.json"
    SecretKeyring([alice_key]).save(path)
    entry = json.loads(path.read_text())["keys"][0]
    assert set(entry) >= {"sealed_key", "salt", "nonce"}
    assert "private_key" not in entry


def test_unseal(alice_key):
    private = alice_key.unseal(ALICE_PASSPHRASE)
    assert private is not None
    with pytest.raises(BackendDecryptError):
        alice_key.unseal("wrong")


def test_find_by_uid_or_key_id(alice_key, bob_key):
    ring = PublicKeyring([alice_key.public, bob_key.public])
    assert ring.find(ALICE.upper()) == alice_key.public
    assert ring.find(alice_key.key_id) == alice_key.public
    assert ring.find(f"0x{bob_key.key_id.upper()}") == bob_key.public
    assert ring.find("nobody") is None


def test_export_public(alice_key):
    exported = SecretKeyring([alice_key]).export_public()
    assert list(exported) == [alice_key.public]
    assert compute_key_id(alice_key.public_key) == alice_key.key_id


def test_wrong_entry_type_rejected(alice_key):
    with pytest.raises(TypeError):
        PublicKeyring([alice_key])


def test_missing_keyring(tmp_path):
    with pytest.raises(KeyringError, match="Cannot read"):
        PublicKeyring.load(tmp_path / "absent.json")


@pytest.mark.parametrize(
    "document",
    [
        "not json",
        "[]",
        json.dumps({"version": 2, "keys": []}),
        json.dumps({"version": 1, "keys": [{"key_id": "00"}]}),
    ],
    ids=["garbage", "list", "version", "incomplete"],
)
def test_malformed_keyring(document):
    with pytest.raises(KeyringError):
        PublicKeyring.from_json(document)


def test_key_id_mismatch_rejected(alice_key, bob_key):
    entry = alice_key.public.to_dict()
    entry["key_id"] = bob_key.key_id
    with pytest.raises(KeyringError, match="does not match"):
        PublicKeyring.from_json(json.dumps({"version": 1, "keys": [entry]}))


def test_generate_keypair_uses_configured_kdf(monkeypatch):
    monkeypatch.setenv("SEALEDFILE_KDF__TIME_COST", "1")
    monkeypatch.setenv("SEALEDFILE_KDF__MEMORY_COST", "1024")
    monkeypatch.setenv("SEALEDFILE_KDF__PARALLELISM", "1")
    SealedConfig.reset_instance()

    key = generate_keypair("carol@example.com", "pw")
    assert (key.kdf.time_cost, key.kdf.memory_cost, key.kdf.parallelism) == (1, 1024, 1)
    assert key.unseal("pw") is not None


def test_generate_keypair_explicit_kdf_wins(monkeypatch):
    monkeypatch.setenv("SEALEDFILE_KDF__TIME_COST", "2")
    SealedConfig.reset_instance()

    key = generate_keypair("carol@example.com", "pw", FAST_KDF)
    assert key.kdf.time_cost == 1
