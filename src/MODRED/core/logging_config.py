"""
Centralized logging configuration for the application.

Provides standardized logging setup with console and rotating file handlers,
ensuring consistent log formatting across all modules.

Module Input:
    - Logger name strings from calling modules
    - Log level and file location from settings

Module Output:
    - Formatted log entries to console (stdout)
    - Formatted log entries to rotating file (logs/app.log)
    - Configured logger instances for modules
"""
import logging
import os
import sys
from pathlib import Path
from logging.handlers import RotatingFileHandler
from typing import Optional, Union

from .settings import settings


# Environment variables set by serverless platforms with read-only disks
_SERVERLESS_ENV_VARS = ("AWS_LAMBDA_FUNCTION_NAME", "AWS_EXECUTION_ENV", "VERCEL")


def _resolve_level(level: Union[int, str]) -> int:
    if isinstance(level, int):
        return level
    return getattr(logging, str(level).upper(), logging.INFO)


class LoggerConfig:
    """Class to manage logger configuration and creation."""

    # Tracks configured loggers so handlers are attached once
    _configured_loggers = set()

    def __init__(
        self,
        log_level: Union[int, str] = logging.INFO,
        log_dir: Union[str, Path] = "logs",
        log_file: str = "app.log",
        max_bytes: int = 10_485_760,  # 10MB
        backup_count: int = 5
    ):
        """
        Initialize logger configuration.

        Args:
            log_level: Minimum logging level, as int or name (default: INFO)
            log_dir: Directory where log files are saved
            log_file: Name of the log file
            max_bytes: Maximum size of log file before rotation (10MB default)
            backup_count: Number of backup log files to keep
        """
        self.log_level = _resolve_level(log_level)
        self.log_dir = Path(log_dir)
        self.log_file = log_file
        self.max_bytes = max_bytes
        self.backup_count = backup_count

        self.is_serverless = any(var in os.environ for var in _SERVERLESS_ENV_VARS)

    def _create_formatter(self) -> logging.Formatter:
        """
        Create log formatter based on environment.

        Serverless platforms timestamp captured stdout themselves, so the
        timestamp is omitted there.
        """
        if self.is_serverless:
            return logging.Formatter(
                "%(levelname)-8s | %(name)s:%(funcName)s:%(lineno)d | %(message)s"
            )
        return logging.Formatter(
            "%(asctime)s | %(levelname)-8s | %(name)s:%(funcName)s:%(lineno)d | %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S"
        )

    def _create_console_handler(self) -> logging.StreamHandler:
        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setLevel(self.log_level)
        console_handler.setFormatter(self._create_formatter())
        return console_handler

    def _create_file_handler(self) -> Optional[RotatingFileHandler]:
        """
        Create rotating file handler for local environments.

        Returns:
            RotatingFileHandler or None: File handler (None when serverless
            or when the log directory cannot be created)
        """
        if self.is_serverless:
            return None

        try:
            self.log_dir.mkdir(parents=True, exist_ok=True)
        except OSError:
            return None

        file_handler = RotatingFileHandler(
            self.log_dir / self.log_file,
            maxBytes=self.max_bytes,
            backupCount=self.backup_count
        )
        file_handler.setLevel(self.log_level)
        file_handler.setFormatter(self._create_formatter())
        return file_handler

    def get_logger(self, name: str) -> logging.Logger:
        """
        Get or create a logger with standardized configuration.

        Creates a logger instance with console and rotating file handlers.
        Repeated calls for the same name return the already configured logger.

        Args:
            name: Logger name, typically __name__ from calling module

        Returns:
            logging.Logger: Configured logger instance ready for use

        Log Format:
            "%(asctime)s | %(levelname)-8s | %(name)s:%(funcName)s:%(lineno)d | %(message)s"
            Example: "2025-08-06 10:30:45 | INFO | MODRED.services.yakoa.client:register_token:88 | Token registered"
        """
        if name in LoggerConfig._configured_loggers:
            return logging.getLogger(name)

        logger = logging.getLogger(name)
        logger.setLevel(self.log_level)

        if logger.handlers:
            return logger

        logger.addHandler(self._create_console_handler())

        file_handler = self._create_file_handler()
        if file_handler is not None:
            logger.addHandler(file_handler)

        # Records are already emitted by our own handlers
        logger.propagate = False

        LoggerConfig._configured_loggers.add(name)
        return logger

    @staticmethod
    def setup_root_logger(log_level: Union[int, str] = logging.INFO):
        """
        Configure the root logger for libraries that use it.

        Sets up basic configuration for the root logger, which is inherited
        by third-party libraries (uvicorn, web3, urllib3) that don't
        configure their own handlers.
        """
        logging.basicConfig(
            level=_resolve_level(log_level),
            format="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S"
        )


_default_config = LoggerConfig(
    log_level=settings.log_level,
    log_dir=settings.log_dir,
    log_file=settings.log_file,
)


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger instance with default configuration.

    Example:
        from MODRED.core.logging_config import get_logger

        logger = get_logger(__name__)
        logger.info("Backend started")
    """
    return _default_config.get_logger(name)


def setup_root_logger(log_level: Union[int, str, None] = None):
    """Configure the root logger using the settings log level by default."""
    LoggerConfig.setup_root_logger(log_level or settings.log_level)
