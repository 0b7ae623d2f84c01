"""Logging configuration for the nodeprobe package."""
import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path

from nodeprobe.config import Config

def setup_logger(name: str, level: int = logging.INFO) -> logging.Logger:
    """
    Set up a logger with the specified name and log level.

    Args:
        name: The name of the logger
        level: The logging level (default: logging.INFO)

    Returns:
        Configured logger instance
    """
    logger = logging.getLogger(name)
    logger.setLevel(level)

    # Don't add handlers if they're already configured
    if not logger.handlers:
        handler = logging.StreamHandler(sys.stdout)
        handler.setLevel(level)

        formatter = logging.Formatter(Config.LOG_FORMAT, datefmt='%Y-%m-%d %H:%M:%S')
        handler.setFormatter(formatter)

        logger.addHandler(handler)

    return logger

def add_file_handler(
    path: str,
    logger_name: str = "nodeprobe",
    max_size_mb: int = 100,
    backup_count: int = 5,
) -> Path:
    """Attach a rotating file handler to the package logger.

    Args:
        path: Log file location (``~`` is expanded)
        logger_name: Logger to attach the handler to
        max_size_mb: Size in MB before the file is rotated
        backup_count: Number of rotated files to keep

    Returns:
        The absolute path of the log file
    """
    log_file = Path(path).expanduser().absolute()
    log_file.parent.mkdir(parents=True, exist_ok=True)

    file_handler = RotatingFileHandler(
        filename=log_file,
        maxBytes=max_size_mb * 1024 * 1024,
        backupCount=backup_count
    )
    file_handler.setFormatter(logging.Formatter(Config.LOG_FORMAT))

    logging.getLogger(logger_name).addHandler(file_handler)
    return log_file
