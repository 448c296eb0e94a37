"""
Unit Tests for Logging Module

Tests logger configuration, request context, processors and logging utilities.
"""

from unittest.mock import MagicMock

import pytest

from bookshare.core.logging.logger import (
    add_log_level_name,
    add_request_id,
    clear_request_id,
    get_logger,
    get_request_id,
    log_stage,
    redact_pii,
    set_request_id,
    setup_logging,
)


@pytest.mark.unit
class TestLoggerCreation:
    def test_get_logger_returns_logger_instance(self):
        logger = get_logger(__name__)

        assert logger is not None
        assert hasattr(logger, "info")

    @pytest.mark.parametrize("log_format", ["json", "console"])
    def test_setup_logging_accepts_both_formats(self, log_format):
        setup_logging(log_level="DEBUG", log_format=log_format)

        get_logger("setup-test").info("configured", stage="L.0")


@pytest.mark.unit
class TestRequestContext:
    def test_set_and_get_request_id(self):
        set_request_id("req-123")
        try:
            assert get_request_id() == "req-123"
        finally:
            clear_request_id()

    def test_clear_request_id(self):
        set_request_id("req-123")
        clear_request_id()

        assert get_request_id() is None

    def test_request_id_processor_injects_id(self):
        set_request_id("req-abc")
        try:
            event = add_request_id(None, "info", {"event": "hello"})
        finally:
            clear_request_id()

        assert event["request_id"] == "req-abc"

    def test_request_id_processor_without_context(self):
        clear_request_id()

        event = add_request_id(None, "info", {"event": "hello"})

        assert "request_id" not in event


@pytest.mark.unit
class TestProcessors:
    def test_redact_pii_masks_emails(self):
        event = redact_pii(
            None,
            "info",
            {"event": "Synced ada@example.com", "email": "bob.smith+x@mail.co.uk", "count": 3},
        )

        assert event["event"] == "Synced [EMAIL]"
        assert event["email"] == "[EMAIL]"
        assert event["count"] == 3

    def test_log_level_is_upper_cased(self):
        assert add_log_level_name(None, "info", {"level": "warning"})["level"] == "WARNING"


@pytest.mark.unit
class TestLogStage:
    def test_log_stage_dispatches_on_level(self):
        logger = MagicMock()

        log_stage(logger, "2.1", "External cache hit", level="debug", cache_key="books:1:12")

        logger.debug.assert_called_once_with(
            "External cache hit", stage="2.1", cache_key="books:1:12"
        )

    def test_log_stage_defaults_to_info(self):
        logger = MagicMock()

        log_stage(logger, "3", "Listing page loaded")

        logger.info.assert_called_once_with("Listing page loaded", stage="3")
