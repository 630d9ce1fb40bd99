"""Unit tests for logging configuration."""

from pathlib import Path

from loguru import logger

from session_export.core.logging import job_logger, setup_logging


class TestLogging:
    """Tests for Loguru logging setup."""

    def test_setup_logging_does_not_raise(self) -> None:
        """setup_logging with valid log level does not raise."""
        setup_logging("DEBUG")
        setup_logging("INFO")
        setup_logging("WARNING")

    def test_setup_logging_case_insensitive(self) -> None:
        """setup_logging accepts case-insensitive log levels."""
        setup_logging("info")
        setup_logging("debug")

    def test_setup_logging_creates_log_file(self, tmp_path: Path) -> None:
        log_dir = tmp_path / "logs"
        setup_logging("INFO", log_dir=str(log_dir))
        logger.info("file sink check")
        logger.complete()
        assert (log_dir / "session-export.log").exists()
        setup_logging("INFO")


class TestJobLogger:
    """Tests for job_logger."""

    def test_binds_job_and_tenant(self) -> None:
        records: list[dict] = []
        sink_id = logger.add(lambda message: records.append(message.record), level="INFO")
        try:
            job_logger("exp_1", "tenant-1", attempt=2).info("hello")
        finally:
            logger.remove(sink_id)
        assert records[0]["extra"]["job_id"] == "exp_1"
        assert records[0]["extra"]["tenant_id"] == "tenant-1"
        assert records[0]["extra"]["attempt"] == 2
