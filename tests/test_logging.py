"""Tests for structured logging setup."""

import logging
from pathlib import Path

from ps_annotator.utils.logging import (
    ApiKeyRedactingFilter,
    redact_api_keys,
    setup_logging,
)


class TestSetupLogging:
    """Tests for the setup_logging function."""

    def test_returns_logger(self) -> None:
        logger = setup_logging()
        assert isinstance(logger, logging.Logger)
        assert logger.name == "ps_annotator"

    def test_default_level_is_info(self) -> None:
        logger = setup_logging()
        assert logger.level == logging.INFO

    def test_custom_level(self) -> None:
        logger = setup_logging(level="DEBUG")
        assert logger.level == logging.DEBUG

    def test_unknown_level_falls_back_to_info(self) -> None:
        logger = setup_logging(level="CHATTY")
        assert logger.level == logging.INFO

    def test_console_handler_present(self) -> None:
        logger = setup_logging()
        handler_types = [type(h) for h in logger.handlers]
        assert logging.StreamHandler in handler_types

    def test_file_handler_when_path_given(self, tmp_path: Path) -> None:
        logger = setup_logging(log_file=str(tmp_path / "test.log"))
        handler_types = [type(h) for h in logger.handlers]
        assert logging.FileHandler in handler_types

    def test_no_file_handler_by_default(self) -> None:
        logger = setup_logging()
        handler_types = [type(h) for h in logger.handlers]
        assert logging.FileHandler not in handler_types

    def test_clears_existing_handlers(self) -> None:
        logger = setup_logging()
        initial_count = len(logger.handlers)
        logger = setup_logging()
        assert len(logger.handlers) == initial_count

    def test_module_loggers_propagate(self, tmp_path: Path) -> None:
        log_file = tmp_path / "test.log"
        setup_logging(level="INFO", log_file=str(log_file))
        logging.getLogger("ps_annotator.generators.annotator").info("child message")
        for handler in logging.getLogger("ps_annotator").handlers:
            handler.flush()
        assert "child message" in log_file.read_text()


FAKE_KEY = "AIza" + "B" * 35


class TestApiKeyRedaction:
    """Tests for masking Gemini API keys in log output."""

    def test_redact_api_keys(self) -> None:
        text = f"403 Client Error for url: https://x/?key={FAKE_KEY}"
        expected = "403 Client Error for url: https://x/?key=AIza***"
        assert redact_api_keys(text) == expected

    def test_text_without_key_unchanged(self) -> None:
        assert redact_api_keys("nothing secret here") == "nothing secret here"

    def test_key_in_argument_is_masked_in_file(self, tmp_path: Path) -> None:
        log_file = tmp_path / "test.log"
        setup_logging(log_file=str(log_file))
        logging.getLogger("ps_annotator.generators.llm_client").error(
            "API call failed: %s", f"bad key {FAKE_KEY}"
        )
        for handler in logging.getLogger("ps_annotator").handlers:
            handler.flush()
        content = log_file.read_text()
        assert FAKE_KEY not in content
        assert "API call failed: bad key AIza***" in content

    def test_every_handler_has_filter(self, tmp_path: Path) -> None:
        logger = setup_logging(log_file=str(tmp_path / "test.log"))
        for handler in logger.handlers:
            assert any(isinstance(f, ApiKeyRedactingFilter) for f in handler.filters)

    def test_filter_keeps_record(self) -> None:
        record = logging.LogRecord(
            "ps_annotator", logging.INFO, __file__, 1, "plain %s", ("text",), None
        )
        assert ApiKeyRedactingFilter().filter(record) is True
        assert record.getMessage() == "plain text"
