"""
Logging Setup Module.

Configures the application logger used by every component. Log records are
plain dictionaries with a ``message`` key and contextual fields, which keeps
the console and file output greppable by field name.

Features:
- Console output, verbose in development mode
- Rotating log file per application
- Idempotent setup (safe to instantiate more than once)
"""

import logging
import os
from logging.handlers import RotatingFileHandler


class LogManager:
    """
    Builds and owns the application logger.

    Attributes:
        logger (logging.Logger): Configured logger instance
    """

    LOG_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"

    def __init__(
        self,
        app_name: str,
        log_dir: str = "logs",
        development: bool = False,
        level: int = logging.INFO,
        max_bytes: int = 5 * 1024 * 1024,
        backup_count: int = 3,
    ):
        """
        Initialize the log manager.

        Args:
            app_name (str): Logger name, also used for the log file name
            log_dir (str): Directory for log files
            development (bool): Log everything to the console at DEBUG level
            level (int): Level for the file handler and logger
            max_bytes (int): Rotation threshold for the log file
            backup_count (int): Number of rotated files to keep
        """
        self.logger = logging.getLogger(app_name)
        self.logger.setLevel(logging.DEBUG if development else level)
        self.logger.propagate = False

        if self.logger.handlers:
            return

        formatter = logging.Formatter(self.LOG_FORMAT)

        console = logging.StreamHandler()
        console.setLevel(logging.DEBUG if development else logging.INFO)
        console.setFormatter(formatter)
        self.logger.addHandler(console)

        os.makedirs(log_dir, exist_ok=True)
        file_handler = RotatingFileHandler(
            os.path.join(log_dir, f"{app_name}.log"),
            maxBytes=max_bytes,
            backupCount=backup_count,
            encoding="utf-8",
        )
        file_handler.setLevel(level)
        file_handler.setFormatter(formatter)
        self.logger.addHandler(file_handler)
