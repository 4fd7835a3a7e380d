"""
Application logging configuration.

Library modules only create loggers with logging.getLogger(__name__);
handlers are attached once here, by the application entrypoint.
"""

import logging
import sys


def setup_logging(level: str = "INFO") -> logging.Logger:
    """
    Configure and return the root logger.

    The logger outputs to stdout with a structured format including
    timestamp, logger name, level and message.

    Args:
        level: Log level name (DEBUG, INFO, WARNING, ...)

    Returns:
        logging.Logger: Configured root logger
    """
    logger = logging.getLogger()
    logger.setLevel(level.upper())

    # Prevent duplicate handlers if called multiple times
    if not logger.handlers:
        console_handler = logging.StreamHandler(sys.stdout)
        formatter = logging.Formatter(
            "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
        )
        console_handler.setFormatter(formatter)
        logger.addHandler(console_handler)

    # botocore logs every request at DEBUG
    logging.getLogger("botocore").setLevel(logging.WARNING)
    return logger
