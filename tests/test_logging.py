"""Tests for logging helpers"""
import logging

from cartsession.logging import get_logger, sanitize_id_for_logging


def test_get_logger_is_cached():
    logger = get_logger("cartsession.test")

    assert logger is get_logger("cartsession.test")
    assert isinstance(logger, logging.Logger)


def test_sanitize_truncates_tokens():
    assert sanitize_id_for_logging("eyJhbGciOiJIUzI1NiJ9.payload") == "eyJhbGci"
    assert sanitize_id_for_logging("short") == "short"


def test_sanitize_empty_values():
    assert sanitize_id_for_logging(None) == "N/A"
    assert sanitize_id_for_logging("") == "N/A"


def test_sanitize_escapes_line_breaks():
    assert sanitize_id_for_logging("ab\ncd") == "ab\\ncd"
    assert "\n" not in sanitize_id_for_logging("x\r\nFAKE LOG LINE")
