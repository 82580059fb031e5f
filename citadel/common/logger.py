"""Logging infrastructure for citadel.

Provides centralized logging configuration with console output, optional
rotating file output, and ISO 8601 timestamps.
"""

import logging
import logging.handlers
import os
from typing import Optional

LOG_FORMAT = "%(asctime)s [%(levelname)s] [%(name)s] %(message)s"
DATE_FORMAT = "%Y-%m-%dT%H:%M:%S"

APP_LOGGER = "citadel"


def setup_logger(
    name: str = APP_LOGGER,
    log_dir: Optional[str] = None,
    level: str = "INFO",
    log_format: Optional[str] = None,
    date_format: Optional[str] = None,
    console_logging: bool = True,
    max_bytes: int = 10485760,  # 10MB
    backup_count: int = 5,
) -> logging.Logger:
    """Set up a logger with console and, when log_dir is given, file handlers.

    Child loggers obtained through get_logger(__name__) inside the citadel
    package propagate to the "citadel" logger, so configuring it once at
    startup is enough.

    Args:
        name: Logger name (typically the application or component name)
        log_dir: Directory for log files; file logging is disabled when None
        level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_format: Custom log format string
        date_format: Custom date format string (ISO 8601 by default)
        console_logging: Enable console logging
        max_bytes: Maximum log file size before rotation
        backup_count: Number of backup log files to keep

    Returns:
        Configured logger instance
    """
    logger = logging.getLogger(name)

    level_upper = level.upper()
    if level_upper not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
        raise ValueError(
            f"Invalid log level: {level}. "
            f"Must be one of: DEBUG, INFO, WARNING, ERROR, CRITICAL"
        )
    logger.setLevel(getattr(logging, level_upper))

    # Prevent duplicate handlers
    if logger.handlers:
        return logger

    formatter = logging.Formatter(
        log_format or LOG_FORMAT, datefmt=date_format or DATE_FORMAT
    )

    if log_dir:
        os.makedirs(log_dir, exist_ok=True)
        log_file = os.path.join(log_dir, f"{name}.log")
        file_handler = logging.handlers.RotatingFileHandler(
            log_file, maxBytes=max_bytes, backupCount=backup_count
        )
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    if console_logging:
        console_handler = logging.StreamHandler()
        console_handler.setFormatter(formatter)
        logger.addHandler(console_handler)

    return logger


def get_logger(name: str) -> logging.Logger:
    """Get a logger by name.

    Args:
        name: Logger name

    Returns:
        Logger instance
    """
    return logging.getLogger(name)


def configure_logging(settings) -> logging.Logger:
    """Configure the "citadel" logger from application settings.

    Debug mode forces DEBUG level. Outside debug mode the SQLAlchemy engine
    logger is held at WARNING so statement echo never reaches the log.
    """
    level = "DEBUG" if settings.debug else settings.log_level
    logging.getLogger("sqlalchemy.engine").setLevel(
        logging.INFO if settings.debug else logging.WARNING
    )
    return setup_logger(APP_LOGGER, log_dir=settings.log_dir, level=level)
