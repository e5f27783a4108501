"""
Logging Configuration for the Creek bot

Provides structured logging with:
- Timestamps
- Log levels (DEBUG, INFO, WARNING, ERROR, CRITICAL)
- File rotation (1 file per day)
- Separate error log
- A transaction audit log
"""

import logging
import os
import sys
from datetime import datetime
from logging.handlers import RotatingFileHandler, TimedRotatingFileHandler
from pathlib import Path
from typing import Optional


# Log formats
DETAILED_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - [%(filename)s:%(lineno)d] - %(message)s"
SIMPLE_FORMAT = "%(asctime)s - %(levelname)s - %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

LEVELS = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warn": logging.WARNING,
    "warning": logging.WARNING,
    "error": logging.ERROR,
}


def get_log_dir() -> Path:
    """Directory for log files (LOG_DIR env, defaults to ./logs)."""
    log_dir = Path(os.getenv("LOG_DIR", "logs"))
    log_dir.mkdir(parents=True, exist_ok=True)
    return log_dir


def file_logging_enabled() -> bool:
    return os.getenv("LOG_TO_FILE", "1").strip().lower() not in ("0", "false", "no", "off")


def level_from_env(default: int = logging.INFO) -> int:
    """Map LOG_LEVEL (debug/info/warning/error) to a logging level."""
    raw = os.getenv("LOG_LEVEL", "").strip().lower()
    return LEVELS.get(raw, default)


def setup_logger(
    name: str,
    level: int = logging.INFO,
    log_file: Optional[str] = None,
    console: bool = True,
    detailed: bool = False,
) -> logging.Logger:
    """
    Setup a logger with console and file handlers.

    Args:
        name: Logger name (typically module name)
        level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_file: Optional log file name (defaults to name.log)
        console: Whether to log to console
        detailed: Whether to use detailed format (includes file/line)

    Returns:
        Configured logger instance

    Example:
        >>> logger = setup_logger("withdraw", level=logging.DEBUG)
        >>> logger.info("Picked obligation")
        >>> logger.error("Submission failed", exc_info=True)
    """
    logger = logging.getLogger(name)
    logger.setLevel(level)

    # Prevent duplicate handlers
    if logger.handlers:
        return logger

    log_format = DETAILED_FORMAT if detailed else SIMPLE_FORMAT
    formatter = logging.Formatter(log_format, datefmt=DATE_FORMAT)

    if console:
        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setLevel(level)
        console_handler.setFormatter(formatter)
        logger.addHandler(console_handler)

    if not file_logging_enabled():
        return logger

    log_dir = get_log_dir()
    if log_file is None:
        log_file = f"{name}.log"

    file_handler = TimedRotatingFileHandler(
        log_dir / log_file,
        when="midnight",
        interval=1,
        backupCount=30,  # Keep 30 days of logs
        encoding="utf-8",
    )
    file_handler.setLevel(level)
    file_handler.setFormatter(formatter)
    logger.addHandler(file_handler)

    # Separate error log
    error_handler = RotatingFileHandler(
        log_dir / f"{name}_errors.log",
        maxBytes=10 * 1024 * 1024,  # 10 MB
        backupCount=5,
        encoding="utf-8",
    )
    error_handler.setLevel(logging.ERROR)
    error_handler.setFormatter(logging.Formatter(DETAILED_FORMAT, datefmt=DATE_FORMAT))
    logger.addHandler(error_handler)

    return logger


def setup_tx_logger(action: str) -> logging.Logger:
    """
    Setup logger for submitted transactions.
    Every submission is appended to a monthly audit file.

    Args:
        action: Protocol action (e.g., "withdraw", "borrow")

    Returns:
        Logger configured for transaction logging
    """
    logger_name = f"tx_{action}"
    logger = logging.getLogger(logger_name)
    logger.setLevel(logging.INFO)

    if logger.handlers:
        return logger

    formatter = logging.Formatter(SIMPLE_FORMAT, datefmt=DATE_FORMAT)

    if file_logging_enabled():
        tx_path = get_log_dir() / f"tx_{action}_{datetime.now().strftime('%Y%m')}.log"
        tx_handler = logging.FileHandler(tx_path, encoding="utf-8")
        tx_handler.setLevel(logging.INFO)
        tx_handler.setFormatter(formatter)
        logger.addHandler(tx_handler)

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(logging.INFO)
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

    return logger


def log_tx(
    logger: logging.Logger,
    action: str,
    amount: int,
    digest: Optional[str] = None,
    success: bool = True,
    error: Optional[str] = None,
):
    """
    Log a submitted transaction in structured format.

    Args:
        logger: Transaction logger instance
        action: "withdraw", "borrow", ...
        amount: Amount in the asset's smallest unit
        digest: Transaction digest
        success: Whether the transaction landed successfully
        error: Raw failure message, if any
    """
    status = "SUCCESS" if success else "FAILED"
    msg = f"{status} | {action.upper()} | Amount(raw): {amount}"
    if digest:
        msg += f" | TX: {digest}"
    if error:
        msg += f" | Error: {error}"

    if success:
        logger.info(msg)
    else:
        logger.error(msg)


def get_command_logger(command: str, debug: bool = False) -> logging.Logger:
    """Get logger for a CLI command; LOG_LEVEL=debug or --verbose enables detail."""
    level = logging.DEBUG if debug else level_from_env()
    return setup_logger(f"creek_{command}", level=level, detailed=level == logging.DEBUG)


def configure_library_logging(debug: bool = False) -> None:
    """Route creek_bot.* module loggers to stdout at the chosen level."""
    level = logging.DEBUG if debug else level_from_env()
    setup_logger("creek_bot", level=level, detailed=level == logging.DEBUG)
