"""Tests for configuration loading and validation."""

from __future__ import annotations

from pathlib import Path

import pytest

from sealedfile.core.config import (
    DEFAULT_MIN_READ,
    DEFAULT_SIZE_HINT_CEILING,
    BufferConfig,
    KdfConfig,
    KeyringConfig,
    LoggingConfig,
    SealedConfig,
)


def test_defaults():
    config = SealedConfig()
    assert config.buffers.min_read == DEFAULT_MIN_READ == 512
    assert config.buffers.size_hint_ceiling == DEFAULT_SIZE_HINT_CEILING == 1_000_000_000
    assert config.keyring.secret_keyring.name == "secring.json"
    assert config.keyring.public_keyring.name == "pubring.json"


def test_keyring_paths_accept_strings():
    config = KeyringConfig(secret_keyring="/tmp/s.json", public_keyring="/tmp/p.json")
    assert config.secret_keyring == Path("/tmp/s.json")


@pytest.mark.parametrize(
    "kwargs",
    [
        {"min_read": 0},
        {"size_hint_ceiling": 0},
        {"min_read": 1024, "max_buffer_size": 512},
    ],
)
def test_buffer_validation(kwargs):
    with pytest.raises(ValueError):
        BufferConfig(**kwargs)


@pytest.mark.parametrize(
    "kwargs",
    [
        {"time_cost": 0},
        {"parallelism": 0},
        {"memory_cost": 4, "parallelism": 1},
        {"salt_length": 4},
    ],
)
def test_kdf_validation(kwargs):
    with pytest.raises(ValueError):
        KdfConfig(**kwargs)


def test_invalid_log_level():
    with pytest.raises(ValueError):
        LoggingConfig(level="LOUD")


def test_env_overrides(monkeypatch, tmp_path):
    monkeypatch.setenv("SEALEDFILE_KEYRING__SECRET_KEYRING", str(tmp_path / "s.json"))
    monkeypatch.setenv("SEALEDFILE_BUFFERS__MAX_BUFFER_SIZE", "65536")
    monkeypatch.setenv("SEALEDFILE_KDF__TIME_COST", "2")
    monkeypatch.setenv("SEALEDFILE_LOGGING__LEVEL", "DEBUG")

    config = SealedConfig.load()
    assert config.keyring.secret_keyring == tmp_path / "s.json"
    assert config.buffers.max_buffer_size == 65536
    assert config.kdf.time_cost == 2
    assert config.logging.level == "DEBUG"


def test_sensitive_env_keys_ignored(monkeypatch):
    monkeypatch.setenv("SEALEDFILE_PASSPHRASE", "hunter2")
    overrides = SealedConfig._parse_env_overrides("SEALEDFILE")
    assert "passphrase" not in overrides


def test_immutable():
    config = SealedConfig()
    with pytest.raises(AttributeError):
        config.buffers = BufferConfig()


def test_singleton_reset():
    first = SealedConfig.get_instance()
    assert SealedConfig.get_instance() is first
    SealedConfig.reset_instance()
    assert SealedConfig.get_instance() is not first
