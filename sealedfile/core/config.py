"""
Secure Configuration Module
===========================

Provides immutable, environment-aware configuration for encrypted files.

Security Features:
- Immutable configuration after initialization
- Environment variable override support
- No secrets in default values (passphrases are never configuration)
- Keyring locations passed explicitly, never read from ambient state
- OS-aware path handling
"""

from __future__ import annotations

import hashlib
import os
import platform
from dataclasses import dataclass, field
from pathlib import Path
from typing import Final, Any, Optional


# Security Constants
_SENSITIVE_KEYS: Final[frozenset[str]] = frozenset({
    "password", "passphrase", "secret", "key", "token",
    "private", "credential", "auth", "salt"
})

# Keyring locations are paths, not secrets, even though their names match above
_ALLOWED_KEYS: Final[frozenset[str]] = frozenset({
    "keyring.secret_keyring", "keyring.public_keyring",
})

# Argon2 lower bounds (RFC 9106)
_ARGON2_MIN_TIME_COST: Final[int] = 1
_ARGON2_MIN_SALT_LENGTH: Final[int] = 8

DEFAULT_MIN_READ: Final[int] = 512
DEFAULT_SIZE_HINT_CEILING: Final[int] = 1_000_000_000
DEFAULT_MAX_BUFFER_SIZE: Final[int] = 4 * 1024 * 1024 * 1024  # 4 GiB


def _is_sensitive_key(key: str) -> bool:
    """Check if a configuration key might contain sensitive data."""
    if key in _ALLOWED_KEYS:
        return False
    key_lower = key.lower()
    return any(sensitive in key_lower for sensitive in _SENSITIVE_KEYS)


def _get_default_config_dir() -> Path:
    """Get OS-appropriate default config directory."""
    system = platform.system().lower()

    if system == "windows":
        base = Path(os.environ.get("LOCALAPPDATA", Path.home() / "AppData" / "Local"))
    elif system == "darwin":
        base = Path.home() / "Library" / "Preferences"
    else:  # Linux and others
        base = Path(os.environ.get("XDG_CONFIG_HOME", Path.home() / ".config"))

    return base / "SealedFile"


def _default_secret_keyring() -> Path:
    return _get_default_config_dir() / "secring.json"


def _default_public_keyring() -> Path:
    return _get_default_config_dir() / "pubring.json"


@dataclass(frozen=True, slots=True)
class KeyringConfig:
    """
    Locations of the key material used by the encryption backend.

    The secret keyring is consulted on reads (decryption), the public
    keyring on writes (encryption).
    """

    secret_keyring: Path = field(default_factory=_default_secret_keyring)
    public_keyring: Path = field(default_factory=_default_public_keyring)

    def __post_init__(self) -> None:
        # Accept plain strings, store Paths
        object.__setattr__(self, "secret_keyring", Path(self.secret_keyring))
        object.__setattr__(self, "public_keyring", Path(self.public_keyring))


@dataclass(frozen=True, slots=True)
class BufferConfig:
    """
    Read buffer sizing.

    Attributes:
        min_read: Minimum free space kept in the buffer before each read
        size_hint_ceiling: File sizes at or above this are not trusted as hints
        max_buffer_size: Hard limit on bytes accumulated by a single read_all
    """

    min_read: int = DEFAULT_MIN_READ
    size_hint_ceiling: int = DEFAULT_SIZE_HINT_CEILING
    max_buffer_size: int = DEFAULT_MAX_BUFFER_SIZE

    def __post_init__(self) -> None:
        """Validate buffer settings."""
        if self.min_read <= 0:
            raise ValueError("min_read must be positive")
        if self.size_hint_ceiling <= 0:
            raise ValueError("size_hint_ceiling must be positive")
        if self.max_buffer_size < self.min_read:
            raise ValueError("max_buffer_size must be at least min_read")


@dataclass(frozen=True, slots=True)
class KdfConfig:
    """Argon2id parameters used to seal secret keys under a passphrase."""

    time_cost: int = 3
    memory_cost: int = 65536  # KiB (64 MB)
    parallelism: int = 4
    salt_length: int = 16

    def __post_init__(self) -> None:
        """Validate KDF settings."""
        if self.time_cost < _ARGON2_MIN_TIME_COST:
            raise ValueError("time_cost must be at least 1")
        if self.parallelism < 1:
            raise ValueError("parallelism must be at least 1")
        if self.memory_cost < 8 * self.parallelism:
            raise ValueError("memory_cost must be at least 8 KiB per lane")
        if self.salt_length < _ARGON2_MIN_SALT_LENGTH:
            raise ValueError("salt_length must be at least 8 bytes")


@dataclass(frozen=True, slots=True)
class LoggingConfig:
    """Immutable logging configuration."""

    level: str = "INFO"
    log_dir: Optional[Path] = None
    max_file_size_bytes: int = 10 * 1024 * 1024  # 10 MB
    backup_count: int = 5
    enable_console: bool = True
    enable_file: bool = False

    def __post_init__(self) -> None:
        """Validate logging settings."""
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        if self.level.upper() not in valid_levels:
            raise ValueError(f"Invalid log level: {self.level}")


class SealedConfig:
    """
    Centralized, immutable configuration with environment override support.

    Usage:
        config = SealedConfig.load()
        secring = config.keyring.secret_keyring
        limit = config.buffers.max_buffer_size

    Nothing in here is global to the encryption backend: callers hand
    ``config.keyring`` and ``config.buffers`` to each EncryptedFile.
    """

    __slots__ = ("_keyring", "_buffers", "_kdf", "_logging", "_frozen", "_config_hash")

    _instance: Optional[SealedConfig] = None

    def __init__(
        self,
        keyring: Optional[KeyringConfig] = None,
        buffers: Optional[BufferConfig] = None,
        kdf: Optional[KdfConfig] = None,
        logging: Optional[LoggingConfig] = None,
    ) -> None:
        """Initialize configuration. Use SealedConfig.load() for standard initialization."""
        object.__setattr__(self, "_frozen", False)
        object.__setattr__(self, "_keyring", keyring or KeyringConfig())
        object.__setattr__(self, "_buffers", buffers or BufferConfig())
        object.__setattr__(self, "_kdf", kdf or KdfConfig())
        object.__setattr__(self, "_logging", logging or LoggingConfig())
        object.__setattr__(self, "_config_hash", self._compute_hash())
        object.__setattr__(self, "_frozen", True)

    def _compute_hash(self) -> str:
        """Compute a hash of the configuration for integrity checking."""
        config_str = f"{self._keyring}|{self._buffers}|{self._kdf}|{self._logging}"
        return hashlib.sha256(config_str.encode()).hexdigest()[:16]

    @property
    def keyring(self) -> KeyringConfig:
        """Get keyring locations."""
        return self._keyring

    @property
    def buffers(self) -> BufferConfig:
        """Get read buffer configuration."""
        return self._buffers

    @property
    def kdf(self) -> KdfConfig:
        """Get key sealing parameters."""
        return self._kdf

    @property
    def logging(self) -> LoggingConfig:
        """Get logging configuration."""
        return self._logging

    @property
    def config_hash(self) -> str:
        """Get configuration integrity hash."""
        return self._config_hash

    @classmethod
    def load(cls, env_prefix: str = "SEALEDFILE") -> SealedConfig:
        """
        Load configuration with environment variable overrides.

        Environment variables use the given prefix and double underscores
        for nested values.

        Examples:
            SEALEDFILE_KEYRING__SECRET_KEYRING=/home/me/.sealed/secring.json
            SEALEDFILE_BUFFERS__MAX_BUFFER_SIZE=1048576
            SEALEDFILE_LOGGING__LEVEL=DEBUG

        Args:
            env_prefix: Prefix for environment variables (default: SEALEDFILE)

        Returns:
            Configured SealedConfig instance
        """
        env_overrides = cls._parse_env_overrides(env_prefix)

        keyring_kwargs: dict[str, Any] = {}
        for name in ("secret_keyring", "public_keyring"):
            if f"keyring.{name}" in env_overrides:
                keyring_kwargs[name] = Path(env_overrides[f"keyring.{name}"])

        buffer_kwargs: dict[str, Any] = {}
        for name in ("min_read", "size_hint_ceiling", "max_buffer_size"):
            if f"buffers.{name}" in env_overrides:
                buffer_kwargs[name] = int(env_overrides[f"buffers.{name}"])

        kdf_kwargs: dict[str, Any] = {}
        for name in ("time_cost", "memory_cost", "parallelism"):
            if f"kdf.{name}" in env_overrides:
                kdf_kwargs[name] = int(env_overrides[f"kdf.{name}"])

        logging_kwargs: dict[str, Any] = {}
        if "logging.level" in env_overrides:
            logging_kwargs["level"] = env_overrides["logging.level"]
        if "logging.log_dir" in env_overrides:
            logging_kwargs["log_dir"] = Path(env_overrides["logging.log_dir"])
        if "logging.enable_console" in env_overrides:
            logging_kwargs["enable_console"] = env_overrides["logging.enable_console"].lower() == "true"
        if "logging.enable_file" in env_overrides:
            logging_kwargs["enable_file"] = env_overrides["logging.enable_file"].lower() == "true"

        return cls(
            keyring=KeyringConfig(**keyring_kwargs) if keyring_kwargs else None,
            buffers=BufferConfig(**buffer_kwargs) if buffer_kwargs else None,
            kdf=KdfConfig(**kdf_kwargs) if kdf_kwargs else None,
            logging=LoggingConfig(**logging_kwargs) if logging_kwargs else None,
        )

    @staticmethod
    def _parse_env_overrides(prefix: str) -> dict[str, str]:
        """Parse environment variables with the given prefix."""
        overrides: dict[str, str] = {}
        prefix_upper = f"{prefix.upper()}_"

        for key, value in os.environ.items():
            if key.startswith(prefix_upper):
                # SEALEDFILE_SECTION__KEY -> section.key
                config_key = key[len(prefix_upper):].lower().replace("__", ".")

                # SECURITY: Skip sensitive keys from environment
                if _is_sensitive_key(config_key):
                    continue

                overrides[config_key] = value

        return overrides

    @classmethod
    def get_instance(cls) -> SealedConfig:
        """Get or create the singleton configuration instance."""
        if cls._instance is None:
            cls._instance = cls.load()
        return cls._instance

    @classmethod
    def reset_instance(cls) -> None:
        """Reset the singleton instance. Use only for testing."""
        cls._instance = None

    def __repr__(self) -> str:
        """Safe string representation without sensitive data."""
        return f"SealedConfig(hash={self._config_hash})"

    def __setattr__(self, name: str, value: Any) -> None:
        """Prevent modification after initialization."""
        if hasattr(self, "_frozen") and self._frozen:
            raise AttributeError("SealedConfig is immutable after initialization")
        super().__setattr__(name, value)
