"""Logging configuration for apnpush"""

import logging
import logging.handlers
from pathlib import Path
from typing import Optional

# Parent of every module logger in this package
PACKAGE_LOGGER_NAME = __name__.rpartition(".")[0]


def setup_logging(
    log_level=logging.INFO,
    log_dir: Optional[str] = "logs",
    console_output=True,
    file_output=False,
):
    """
    Configure logging for the package logger hierarchy.

    Args:
        log_level: Logging level (default: INFO)
        log_dir: Directory for log files (default: "logs")
        console_output: Enable console output (default: True)
        file_output: Enable rotating file output (default: False)

    Returns:
        logging.Logger: The configured package logger
    """
    formatter = logging.Formatter(
        '%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )

    package_logger = logging.getLogger(PACKAGE_LOGGER_NAME)
    package_logger.setLevel(log_level)

    # Remove existing handlers
    for handler in list(package_logger.handlers):
        package_logger.removeHandler(handler)
        handler.close()

    if console_output:
        console_handler = logging.StreamHandler()
        console_handler.setLevel(log_level)
        console_handler.setFormatter(formatter)
        package_logger.addHandler(console_handler)

    if file_output:
        log_path = Path(log_dir or "logs")
        log_path.mkdir(parents=True, exist_ok=True)

        file_handler = logging.handlers.RotatingFileHandler(
            log_path / "apnpush.log",
            maxBytes=10 * 1024 * 1024,  # 10MB
            backupCount=5
        )
        file_handler.setLevel(log_level)
        file_handler.setFormatter(formatter)
        package_logger.addHandler(file_handler)

        # Gateway rejections and connection faults only
        error_handler = logging.handlers.RotatingFileHandler(
            log_path / "errors.log",
            maxBytes=5 * 1024 * 1024,  # 5MB
            backupCount=3
        )
        error_handler.setLevel(logging.ERROR)
        error_handler.setFormatter(formatter)
        package_logger.addHandler(error_handler)

    package_logger.debug(f"Log level: {logging.getLevelName(log_level)}")
    return package_logger
