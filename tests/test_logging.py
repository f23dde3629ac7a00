import io
import logging

import pytest
from rich.console import Console
from rich.logging import RichHandler

from nightscout_bar.shared.logging import HANDLER_NAME, NOISY_LOGGERS, resolve_level, setup_logging


@pytest.fixture(autouse=True)
def restore_root_logger():
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    quiet_levels = {name: logging.getLogger(name).level for name in NOISY_LOGGERS}
    yield
    for handler in list(root.handlers):
        if handler not in handlers:
            root.removeHandler(handler)
            handler.close()
    root.setLevel(level)
    for name, quiet_level in quiet_levels.items():
        logging.getLogger(name).setLevel(quiet_level)


def _ours():
    return [h for h in logging.getLogger().handlers if h.get_name() == HANDLER_NAME]


@pytest.mark.parametrize(
    "name, expected",
    [
        ("debug", logging.DEBUG),
        ("WARNING", logging.WARNING),
        (" error ", logging.ERROR),
        ("chatty", logging.INFO),
    ],
)
def test_resolve_level(name, expected):
    assert resolve_level(name) == expected


def test_plain_handler_by_default():
    handler = setup_logging("debug")

    assert type(handler) is logging.StreamHandler
    assert _ours() == [handler]
    assert logging.getLogger().level == logging.DEBUG


def test_repeated_setup_replaces_handler():
    setup_logging("INFO")
    second = setup_logging("WARNING")

    assert _ours() == [second]
    assert logging.getLogger().level == logging.WARNING


def test_console_sends_records_through_rich():
    console = Console(file=io.StringIO(), record=True, width=120)
    handler = setup_logging("INFO", console=console)

    logging.getLogger("nightscout_bar.poller.poller").info("Fetch #1: 150 →")

    assert isinstance(handler, RichHandler)
    assert "nightscout_bar.poller.poller: Fetch #1: 150 →" in console.export_text()


def test_http_client_logs_stay_quiet_at_debug():
    setup_logging("DEBUG")

    for name in ("aiohttp.access", "aiohttp.client", "asyncio"):
        assert not logging.getLogger(name).isEnabledFor(logging.DEBUG)
    assert logging.getLogger("nightscout_bar.poller").isEnabledFor(logging.DEBUG)
