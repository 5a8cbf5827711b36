"""Tests for the structlog setup and connection context helpers."""

import logging
from unittest.mock import Mock

import pytest

from chatroom.exceptions import LoggedException
from chatroom.structured_logging.enhanced_logging_config import (
    get_logger,
    log_exception_once,
    reset_logging_state,
    setup_enhanced_logging,
)
from chatroom.structured_logging.logging_context import (
    bind_connection_context,
    bind_username,
    clear_all_context,
    clear_connection_context,
    get_current_context,
)
from chatroom.structured_logging.logging_file_setup import detect_environment, remove_managed_handlers


@pytest.fixture(autouse=True)
def _clean_context():
    clear_all_context()
    yield
    clear_all_context()


class TestConnectionContext:
    def test_bind_drops_none_values(self):
        bind_connection_context("conn-1", remote_address="10.0.0.1")

        assert get_current_context() == {"connection_id": "conn-1", "remote_address": "10.0.0.1"}

    def test_bind_username_after_claim(self):
        bind_connection_context("conn-1")
        bind_username("alice")

        assert get_current_context()["username"] == "alice"

    def test_clear_connection_context_keeps_other_keys(self):
        bind_connection_context("conn-1", remote_address="10.0.0.1", username="alice", request_id="r-1")

        clear_connection_context()

        assert get_current_context() == {"request_id": "r-1"}


class TestLogExceptionOnce:
    def test_logs_and_marks(self):
        bound = Mock()
        exc = LoggedException("boom")

        log_exception_once(bound, "error", "Something failed", exc=exc)

        bound.error.assert_called_once()
        assert exc.already_logged is True

    def test_skips_already_logged(self):
        bound = Mock()
        exc = LoggedException("boom", already_logged=True)

        log_exception_once(bound, "error", "Something failed", exc=exc)

        bound.error.assert_not_called()

    def test_plain_exception_gets_flag(self):
        bound = Mock()
        exc = RuntimeError("plain")

        log_exception_once(bound, "warning", "Something failed", exc=exc)
        log_exception_once(bound, "warning", "Something failed", exc=exc)

        bound.warning.assert_called_once()
        kwargs = bound.warning.call_args.kwargs
        assert kwargs["error_type"] == "RuntimeError"
        assert kwargs["error"] == "plain"


class TestSetup:
    def test_detect_environment_under_pytest(self):
        assert detect_environment() == "unit_test"

    def test_setup_is_idempotent(self):
        reset_logging_state()
        config = {"logging": {"environment": "unit_test", "level": "INFO", "disable_logging": True}}
        try:
            setup_enhanced_logging(config)
            handlers_after_first = list(logging.getLogger().handlers)
            setup_enhanced_logging(config)

            assert logging.getLogger().handlers == handlers_after_first
            assert logging.getLogger("uvicorn").propagate is True
            get_logger("chatroom.test").info("logging works")
        finally:
            remove_managed_handlers()
            reset_logging_state()
