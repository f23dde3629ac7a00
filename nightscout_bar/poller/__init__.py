"""Nightscout poller - fetch, convert and publish the latest glucose reading."""

__version__ = "0.1.0"

import asyncio
import logging

from .poller import NightscoutPoller, build_entries_url
from .settings import MemorySettings, SettingsProvider, YamlSettings
from .state import ConnectionStatus, DisplayState, StateStore

logger = logging.getLogger(__name__)


async def run_poller(poller: NightscoutPoller) -> None:
    """Run the poller until cancelled, logging every state change."""
    unsubscribe = poller.store.subscribe(
        lambda state: logger.info(f"[{state.connection_status.value}] {state.title}")
    )
    await poller.start()
    try:
        await asyncio.Event().wait()
    finally:
        unsubscribe()
        await poller.stop()


def main():
    """Entry point for the headless poller service."""
    from .config import load_config
    from nightscout_bar.shared.logging import setup_logging

    config = load_config()
    setup_logging(config.log_level)

    poller = NightscoutPoller(YamlSettings(config.settings_path), config)

    try:
        asyncio.run(run_poller(poller))
    except KeyboardInterrupt:
        logger.info("Shutting down Nightscout poller...")


__all__ = [
    "NightscoutPoller",
    "build_entries_url",
    "SettingsProvider",
    "MemorySettings",
    "YamlSettings",
    "ConnectionStatus",
    "DisplayState",
    "StateStore",
    "run_poller",
    "main",
]
