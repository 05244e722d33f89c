"""Tests for secret-redacting logging."""

from __future__ import annotations

import logging

from sealedfile.core.config import LoggingConfig
from sealedfile.core.logging import SecureLogFilter, configure_logging, get_secure_logger


def _record(msg: str, *args) -> logging.LogRecord:
    return logging.LogRecord("sealedfile.test", logging.INFO, __file__, 1, msg, args, None)


def test_passphrase_redacted_in_message():
    record = _record("unlocking with passphrase=hunter2")
    SecureLogFilter().filter(record)
    assert "hunter2" not in record.getMessage()
    assert "[REDACTED]" in record.getMessage()


def test_key_material_redacted_in_args():
    blob = "A" * 64
    record = _record("sealed key %s", blob)
    SecureLogFilter().filter(record)
    assert blob not in record.getMessage()


def test_ordinary_messages_untouched():
    record = _record("Read %d ciphertext bytes from %s", 42, "notes.sealed")
    SecureLogFilter().filter(record)
    assert record.getMessage() == "Read 42 ciphertext bytes from notes.sealed"


def test_file_logging(tmp_path):
    logger = get_secure_logger(
        "sealedfile.test_file_logging",
        log_dir=tmp_path,
        enable_console=False,
    )
    logger.info("password=swordfish")
    for handler in logger.handlers:
        handler.flush()

    text = (tmp_path / "sealedfile_test_file_logging.log").read_text()
    assert "swordfish" not in text


def test_configure_logging_from_config():
    logger = configure_logging(LoggingConfig(level="WARNING", enable_console=True), name="sealedfile.test_cfg")
    assert logger.level == logging.WARNING
    assert logger.handlers


def test_long_paths_not_mistaken_for_key_material():
    path = "/tmp/" + "a" * 30 + "/" + "b" * 30 + "/data.sealed"
    record = _record("Opened %s (%s)", path, "wb")
    SecureLogFilter().filter(record)
    assert record.getMessage() == f"Opened {path} (wb)"


def test_relative_path_with_long_segments_untouched():
    path = "keys/" + "x" * 48 + "/secring.json"
    record = _record("Loading %s", path)
    SecureLogFilter().filter(record)
    assert record.getMessage() == f"Loading {path}"
