"""Logging setup shared by the CLI and the protoc plugin."""

import logging

from rich.console import Console
from rich.logging import RichHandler

_LOGGER_NAME = "protolite"


def install(level: int | str = logging.INFO) -> None:
    """Route protolite logs through rich on stderr.

    stdout stays untouched; the plugin writes its response there.
    """
    handler = RichHandler(console=Console(stderr=True), show_path=False, show_time=False)
    handler.setFormatter(logging.Formatter("%(message)s"))

    logger = logging.getLogger(_LOGGER_NAME)
    logger.handlers = [handler]
    logger.setLevel(level)
    logger.propagate = False
