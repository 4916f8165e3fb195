"""Logging setup for test sessions using mockgram."""

import logging

from rich.logging import RichHandler

from mockgram.config import MockSettings, get_settings

_NOISY_LOGGERS = ("aiohttp.access", "aiohttp.server", "aiogram.event", "aiogram.dispatcher")


def setup_logging(settings: MockSettings | None = None) -> None:
    """Install a RichHandler on the ``mockgram`` logger tree.

    Safe to call more than once: an existing RichHandler is reused.
    """
    settings = settings or get_settings()
    level = logging.getLevelName(settings.log_level.upper())

    root = logging.getLogger("mockgram")
    root.setLevel(level)
    if not any(isinstance(h, RichHandler) for h in root.handlers):
        handler = RichHandler(rich_tracebacks=settings.rich_tracebacks)
        handler.setFormatter(logging.Formatter("%(name)s - %(message)s"))
        root.addHandler(handler)

    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
