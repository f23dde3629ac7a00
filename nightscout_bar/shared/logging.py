"""Logging setup shared by the poller, check and status bar entry points.

Records go to stderr as plain lines. When a rich console is driving a live
status bar, they are handed to rich instead so they print above the bar
rather than through it.
"""

import logging
from typing import Iterable, Optional

from rich.console import Console
from rich.logging import RichHandler

HANDLER_NAME = "nightscout-bar"

LOG_FORMAT = "%(asctime)s %(levelname)-8s %(name)s: %(message)s"
# RichHandler adds its own time and level columns
RICH_FORMAT = "%(name)s: %(message)s"

# aiohttp logs every connection at DEBUG
NOISY_LOGGERS = ("aiohttp.access", "aiohttp.client", "aiohttp.internal", "asyncio")


def resolve_level(level: str) -> int:
    """Turn a level name like 'debug' into a logging level. Unknown names mean INFO."""
    value = logging.getLevelName(str(level).strip().upper())
    return value if isinstance(value, int) else logging.INFO


def setup_logging(
    level: str = "INFO",
    console: Optional[Console] = None,
    quiet_loggers: Iterable[str] = NOISY_LOGGERS,
) -> logging.Handler:
    """Install the nightscout-bar handler on the root logger.

    Calling this again replaces the handler from the earlier call instead
    of adding a second one.

    Args:
        level: Level name, from --log-level or the config's log_level.
        console: Console of a running rich Live view, if any.
        quiet_loggers: Loggers held at WARNING whatever the level.

    Returns:
        The installed handler.
    """
    handler: logging.Handler
    if console is not None:
        handler = RichHandler(console=console, show_path=False)
        handler.setFormatter(logging.Formatter(RICH_FORMAT))
    else:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
    handler.set_name(HANDLER_NAME)

    root = logging.getLogger()
    for existing in list(root.handlers):
        if existing.get_name() == HANDLER_NAME:
            root.removeHandler(existing)
            existing.close()
    root.addHandler(handler)
    root.setLevel(resolve_level(level))

    for name in quiet_loggers:
        logging.getLogger(name).setLevel(logging.WARNING)

    return handler
