"""Tests for logging setup, structured records and the verbosity mapping."""

from __future__ import annotations

import json
import logging
import sys

import pytest
from rich.logging import RichHandler

pytestmark = [pytest.mark.unit]

from torrentize.cli.verbosity import VerbosityLevel, VerbosityManager
from torrentize.models import ObservabilityConfig
from torrentize.utils.exceptions import FileSystemError, TorrentizeError
from torrentize.utils.logging_config import (
    ROOT_LOGGER,
    LoggingContext,
    StructuredFormatter,
    get_logger,
    log_exception,
    setup_logging,
)


class TestSetupLogging:
    def test_rich_console_handler(self):
        setup_logging(ObservabilityConfig(log_level="INFO"))

        logger = logging.getLogger(ROOT_LOGGER)
        assert logger.level == logging.INFO
        assert logger.propagate is False
        assert any(isinstance(h, RichHandler) for h in logger.handlers)

    def test_level_override(self):
        setup_logging(ObservabilityConfig(), level=logging.DEBUG)
        assert logging.getLogger(ROOT_LOGGER).level == logging.DEBUG

    def test_structured_log_file(self, tmp_path):
        log_file = tmp_path / "logs" / "torrentize.log"
        setup_logging(
            ObservabilityConfig(
                log_level="DEBUG", log_file=str(log_file), structured_logging=True
            )
        )

        get_logger("core.metainfo").info("built %s", "x.torrent", extra={"pieces": 3})
        for handler in logging.getLogger(ROOT_LOGGER).handlers:
            handler.flush()

        record = json.loads(log_file.read_text().splitlines()[-1])
        assert record["message"] == "built x.torrent"
        assert record["logger"] == "torrentize.core.metainfo"
        assert record["pieces"] == 3

    def test_plain_log_file(self, tmp_path):
        log_file = tmp_path / "plain.log"
        setup_logging(ObservabilityConfig(log_level="INFO", log_file=str(log_file)))

        get_logger(__name__).warning("disk is slow")
        for handler in logging.getLogger(ROOT_LOGGER).handlers:
            handler.flush()

        assert "WARNING" in log_file.read_text()
        assert "disk is slow" in log_file.read_text()


class TestStructuredFormatter:
    def test_exception_is_included(self):
        try:
            raise ValueError("boom")
        except ValueError:
            record = logging.LogRecord(
                "torrentize.test", logging.ERROR, __file__, 1, "failed", (), sys.exc_info()
            )
        entry = json.loads(StructuredFormatter().format(record))
        assert entry["level"] == "ERROR"
        assert "ValueError: boom" in entry["exception"]


class TestHelpers:
    def test_get_logger_namespaces(self):
        assert get_logger("x").name == "torrentize.x"
        assert get_logger("torrentize.core").name == "torrentize.core"
        assert get_logger("torrentize").name == "torrentize"

    def test_logging_context_records_duration(self, caplog):
        with caplog.at_level(logging.DEBUG, logger=ROOT_LOGGER):
            with LoggingContext("unit_op", source="src") as ctx:
                pass
        assert ctx.duration >= 0
        assert "Starting unit_op" in caplog.text
        assert "Completed unit_op" in caplog.text

    def test_logging_context_does_not_swallow(self, caplog):
        with caplog.at_level(logging.DEBUG, logger=ROOT_LOGGER):
            with pytest.raises(FileSystemError):
                with LoggingContext("failing_op"):
                    raise FileSystemError("nope")
        assert "Failed failing_op" in caplog.text

    def test_log_exception_uses_message_and_details(self, caplog):
        logger = get_logger("test")
        with caplog.at_level(logging.ERROR, logger=ROOT_LOGGER):
            log_exception(logger, TorrentizeError("bad thing", {"path": "/x"}), "Building")
        assert "Building: bad thing" in caplog.text
        assert caplog.records[-1].details == {"path": "/x"}

    def test_error_str_includes_details(self):
        assert str(TorrentizeError("m", {"k": 1})) == "m (Details: {'k': 1})"
        assert str(TorrentizeError("m")) == "m"


class TestVerbosity:
    @pytest.mark.parametrize(
        ("count", "quiet", "level", "logging_level"),
        [
            (0, False, VerbosityLevel.NORMAL, logging.WARNING),
            (1, False, VerbosityLevel.VERBOSE, logging.INFO),
            (2, False, VerbosityLevel.DEBUG, logging.DEBUG),
            (5, False, VerbosityLevel.DEBUG, logging.DEBUG),
            (2, True, VerbosityLevel.QUIET, logging.ERROR),
        ],
    )
    def test_from_flags(self, count, quiet, level, logging_level):
        manager = VerbosityManager.from_flags(count, quiet)
        assert manager.level == level
        assert manager.logging_level == logging_level

    def test_configured_level_applies_by_default(self):
        assert VerbosityManager(0).resolve_logging_level(logging.DEBUG) == logging.DEBUG

    def test_flags_override_configured_level(self):
        assert VerbosityManager(1).resolve_logging_level(logging.ERROR) == logging.INFO
        assert VerbosityManager(0, quiet=True).is_quiet()
        assert VerbosityManager(2).is_verbose()
