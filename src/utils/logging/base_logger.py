import logging
import sys

from src.core.config import settings

DEFAULT_LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def setup_logging(level: str | None = None, stream=None) -> None:
    """
    Configure the root logger with a single console handler.

    Safe to call more than once: existing handlers are replaced, so the handler
    count never grows.

    Args:
        level: Log level name; defaults to settings.LOG_LEVEL
        stream: Output stream; defaults to sys.stderr
    """
    numeric_level = logging.getLevelName((level or settings.LOG_LEVEL).upper())
    if not isinstance(numeric_level, int):
        numeric_level = logging.INFO

    root_logger = logging.getLogger()
    root_logger.setLevel(numeric_level)

    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)
        handler.close()

    console_handler = logging.StreamHandler(stream if stream is not None else sys.stderr)
    console_handler.setLevel(numeric_level)
    console_handler.setFormatter(logging.Formatter(DEFAULT_LOG_FORMAT))
    root_logger.addHandler(console_handler)

    # The driver logs every routing table refresh at INFO.
    logging.getLogger("neo4j").setLevel(max(numeric_level, logging.WARNING))


def get_logger(name: str) -> logging.Logger:
    """Return a named logger; configuration is done once through setup_logging()."""
    return logging.getLogger(name)
