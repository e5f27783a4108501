"""
Log handlers and the transaction audit line.
"""

import logging

from creek_bot.config.logging_config import level_from_env, log_tx, setup_logger, setup_tx_logger


class TestSetupLogger:

    def test_console_only_when_file_logging_is_off(self, tmp_path):
        logger = setup_logger("creek_test_console", level=logging.DEBUG)
        assert [type(h) for h in logger.handlers] == [logging.StreamHandler]
        assert not (tmp_path / "logs").exists()

    def test_file_handlers(self, monkeypatch, tmp_path):
        monkeypatch.setenv("LOG_TO_FILE", "1")
        monkeypatch.setenv("LOG_DIR", str(tmp_path / "out"))
        logger = setup_logger("creek_test_files")
        try:
            assert len(logger.handlers) == 3
            assert (tmp_path / "out").is_dir()
        finally:
            for handler in list(logger.handlers):
                handler.close()
                logger.removeHandler(handler)

    def test_handlers_are_not_duplicated(self):
        first = setup_logger("creek_test_dupes")
        second = setup_logger("creek_test_dupes")
        assert first is second
        assert len(second.handlers) == 1

    def test_level_from_env(self, monkeypatch):
        monkeypatch.setenv("LOG_LEVEL", "Warning")
        assert level_from_env() == logging.WARNING
        monkeypatch.setenv("LOG_LEVEL", "chatty")
        assert level_from_env() == logging.INFO


class TestAuditLine:

    def test_success(self, caplog):
        logger = setup_tx_logger("withdraw")
        with caplog.at_level(logging.INFO, logger=logger.name):
            log_tx(logger, "withdraw", 1000, digest="D1")
        assert "SUCCESS | WITHDRAW | Amount(raw): 1000 | TX: D1" in caplog.text

    def test_failure_is_an_error(self, caplog):
        logger = setup_tx_logger("borrow")
        with caplog.at_level(logging.INFO, logger=logger.name):
            log_tx(logger, "borrow", 5, success=False, error="MoveAbort 1537")
        record = caplog.records[-1]
        assert record.levelno == logging.ERROR
        assert "FAILED | BORROW | Amount(raw): 5 | Error: MoveAbort 1537" in record.getMessage()
