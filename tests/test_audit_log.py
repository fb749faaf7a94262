"""Tests for logging configuration and structured audit events."""

import io
import logging

import pytest

from keyloader.core.audit_log import (
    configure_logging,
    log_key_event,
    verbosity_to_level,
)


@pytest.mark.parametrize("verbosity,level", [
    (-1, logging.ERROR),
    (0, logging.WARNING),
    (1, logging.INFO),
    (2, logging.DEBUG),
    (5, logging.DEBUG),
])
def test_verbosity_to_level(verbosity, level):
    assert verbosity_to_level(verbosity) == level


class TestConfigureLogging:
    def test_renders_package_records(self):
        stream = io.StringIO()
        configure_logging(1, stream=stream)
        logging.getLogger("keyloader.keys.merge").info("merged %d keys", 3)
        output = stream.getvalue()
        assert "merged 3 keys" in output
        assert "keyloader.keys.merge" in output

    def test_level_filters(self):
        stream = io.StringIO()
        assert configure_logging(0, stream=stream) == logging.WARNING
        logging.getLogger("keyloader.loader").info("hidden")
        logging.getLogger("keyloader.loader").warning("shown")
        output = stream.getvalue()
        assert "hidden" not in output
        assert "shown" in output

    def test_reconfigure_does_not_stack_handlers(self):
        first = io.StringIO()
        second = io.StringIO()
        configure_logging(0, stream=first)
        configure_logging(0, stream=second)
        logging.getLogger("keyloader").warning("once")
        assert first.getvalue() == ""
        assert second.getvalue().count("once") == 1

    def test_audit_event_rendered(self):
        stream = io.StringIO()
        configure_logging(1, stream=stream)
        log_key_event("authorized_keys_written", path="/tmp/ak", added=["SHA256:abc"])
        output = stream.getvalue()
        assert "authorized_keys_written" in output
        assert "SHA256:abc" in output

    def test_debug_event_hidden_at_info(self):
        stream = io.StringIO()
        configure_logging(1, stream=stream)
        log_key_event("keys_fetched", level=logging.DEBUG, lines=2)
        assert "keys_fetched" not in stream.getvalue()
