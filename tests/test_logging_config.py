"""Tests for logging setup and credential masking."""

import logging

from common.logging_config import CredentialMaskingFilter, setup_logging


def _record(msg, args=None):
    return logging.LogRecord("gateway", logging.INFO, __file__, 1, msg, args, None)


def test_masks_uri_password():
    record = _record("Connecting to mongodb://admin:hunter2@db:27017/files")
    CredentialMaskingFilter().filter(record)
    assert "hunter2" not in record.getMessage()
    assert "mongodb://admin:***MASKED***@db" in record.getMessage()


def test_masks_password_and_secret_arguments():
    record = _record("settings %s %s", ("password=hunter2", "secret: s3cr3t"))
    CredentialMaskingFilter().filter(record)
    message = record.getMessage()
    assert "hunter2" not in message
    assert "s3cr3t" not in message


def test_plain_messages_untouched():
    record = _record("Stored 3 chunks for file %s", ("abc",))
    assert CredentialMaskingFilter().filter(record) is True
    assert record.getMessage() == "Stored 3 chunks for file abc"


def test_setup_logging_is_idempotent():
    logger = setup_logging("gridvault-test", "DEBUG")
    again = setup_logging("gridvault-test", "WARNING")

    assert logger is again
    assert len(logger.handlers) == 1
    assert logger.level == logging.WARNING
    assert logger.propagate is False
