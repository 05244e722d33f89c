"""
Core module - Contains configuration, logging, errors and the stream contract.
"""

from sealedfile.core.config import SealedConfig
from sealedfile.core.logging import get_secure_logger, SecureLogFilter

__all__ = ["SealedConfig", "get_secure_logger", "SecureLogFilter"]
