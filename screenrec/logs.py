"Logging setup: route module loggers through rich."

import logging

from rich.console import Console
from rich.logging import RichHandler

_handler = None


def setup_logging(level="WARNING"):
    """Attach a stderr RichHandler to the package logger (once) and set its level."""
    global _handler
    logger = logging.getLogger("screenrec")
    if _handler is None:
        _handler = RichHandler(
            console=Console(stderr=True),
            show_path=False,
            rich_tracebacks=True,
        )
        _handler.setFormatter(logging.Formatter("%(message)s", datefmt="[%X]"))
        logger.addHandler(_handler)
    logger.setLevel(level.upper())
    return logger
