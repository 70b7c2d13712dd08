"""Logging setup for the API process.

Log records go to the console and to two files under ``settings.log_dir``:
- info.log: everything at INFO and above
- error.log: ERROR and above only

Compiler output is never logged here; it travels in the attempt log of a
failed compilation instead.
"""

import logging
import sys

from texfill.core.config import Settings, get_settings

# HTTP client libraries log every request at INFO.
NOISY_LOGGERS = ("httpx", "httpcore", "openai")

LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s:%(lineno)d | %(message)s"
CONSOLE_FORMAT = "%(asctime)s | %(levelname)-8s | %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def setup_logging(settings: Settings | None = None) -> logging.Logger:
    """Attach file and console handlers to the root logger.

    Safe to call more than once: existing root handlers are replaced.

    Args:
        settings: Settings providing ``log_level`` and ``log_dir``. Uses the
            global settings if None.

    Returns:
        The configured root logger.
    """
    settings = settings or get_settings()
    level = getattr(logging, settings.log_level, logging.INFO)

    log_dir = settings.log_dir
    log_dir.mkdir(parents=True, exist_ok=True)

    file_formatter = logging.Formatter(fmt=LOG_FORMAT, datefmt=DATE_FORMAT)

    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    root_logger.handlers.clear()

    for filename, file_level in (("info.log", logging.INFO), ("error.log", logging.ERROR)):
        handler = logging.FileHandler(log_dir / filename, encoding="utf-8")
        handler.setLevel(max(level, file_level))
        handler.setFormatter(file_formatter)
        root_logger.addHandler(handler)

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(level)
    console_handler.setFormatter(logging.Formatter(fmt=CONSOLE_FORMAT, datefmt=DATE_FORMAT))
    root_logger.addHandler(console_handler)

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(max(level, logging.WARNING))

    return root_logger
