# tests/test_logger.py
"""Test logging setup and report files"""

import logging

import pytest

from flickr_crawler.core.logger import (
    get_logger,
    log_download_failure,
    log_quality_fallback,
    setup_logging,
    shutdown_logging,
)


@pytest.fixture
def logs(temp_dir):
    setup_logging(temp_dir)
    yield temp_dir / "logs"
    shutdown_logging()


def _read(logs_dir, prefix):
    (path,) = logs_dir.glob(f"{prefix}_*.log")
    return path.read_text(encoding="utf-8")


class TestSetupLogging:
    """Test the log files"""

    def test_files_created(self, logs):
        for prefix in ("log_full", "log_errors", "download_failures", "quality_fallbacks"):
            assert len(list(logs.glob(f"{prefix}_*.log"))) == 1

    def test_levels(self, logs):
        logger = get_logger("flickr_crawler.test")
        logger.debug("debug line")
        logger.error("error line")
        shutdown_logging()

        full = _read(logs, "log_full")
        errors = _read(logs, "log_errors")
        assert "debug line" in full and "error line" in full
        assert "error line" in errors and "debug line" not in errors

    def test_download_failure_report(self, logs):
        log_download_failure(get_logger("t"), "52345678901", "photo", "HTTP 404", "Holidays")
        get_logger("t").warning("unrelated warning")
        shutdown_logging()

        report = _read(logs, "download_failures")
        assert "52345678901 (photo) in Holidays" in report
        assert "Reason: HTTP 404" in report
        assert "unrelated" not in report

    def test_quality_fallback_report(self, logs):
        log_quality_fallback(get_logger("t"), "52345678901", "Large 1600")
        shutdown_logging()

        report = _read(logs, "quality_fallbacks")
        assert "52345678901" in report
        assert "Large 1600" in report


class TestLogHelpers:
    """Test the warning helpers without files"""

    def test_quality_fallback_single_warning(self, caplog):
        with caplog.at_level(logging.WARNING):
            log_quality_fallback(get_logger("t"), "42")

        assert len(caplog.records) == 1
        assert caplog.records[0].levelno == logging.WARNING
        assert "42" in caplog.records[0].getMessage()
