"""Save settings and test the connection with a single fetch."""

import argparse
import asyncio
import logging
from typing import Any, Dict, List, Optional

from rich.console import Console

from nightscout_bar.shared.logging import setup_logging
from nightscout_bar.shared.models import (
    API_SECRET_KEY,
    SERVER_MMOL_KEY,
    SERVER_URL_KEY,
    SHOW_MMOL_KEY,
)

from .config import load_config
from .errors import SettingsError
from .poller import NightscoutPoller
from .settings import OverlaySettings, SettingsProvider, YamlSettings
from .state import ConnectionStatus

logger = logging.getLogger(__name__)


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    """Parse command-line arguments.

    Returns:
        Parsed argparse namespace.
    """
    parser = argparse.ArgumentParser(
        description="Test the Nightscout connection, optionally saving new settings first."
    )
    parser.add_argument("--config", help="Path to the poller config YAML file.")
    parser.add_argument("--server-url", help="Nightscout server base URL.")
    parser.add_argument("--api-secret", help="Nightscout API secret.")
    parser.add_argument(
        "--mmol",
        dest="show_mmol",
        action=argparse.BooleanOptionalAction,
        default=None,
        help="Show values in mmol/L.",
    )
    parser.add_argument(
        "--server-mmol",
        dest="server_mmol",
        action=argparse.BooleanOptionalAction,
        default=None,
        help="The server reports values in mmol/L.",
    )
    parser.add_argument(
        "--save",
        action="store_true",
        help="Write the given settings to the settings file before testing.",
    )
    parser.add_argument("--log-level", default=None, help="Override the configured log level.")
    return parser.parse_args(argv)


def settings_updates(args: argparse.Namespace) -> Dict[str, Any]:
    """Collect the settings given on the command line."""
    updates: Dict[str, Any] = {}
    if args.server_url is not None:
        updates[SERVER_URL_KEY] = args.server_url
    if args.api_secret is not None:
        updates[API_SECRET_KEY] = args.api_secret
    if args.show_mmol is not None:
        updates[SHOW_MMOL_KEY] = args.show_mmol
    if args.server_mmol is not None:
        updates[SERVER_MMOL_KEY] = args.server_mmol
    return updates


def main(argv: Optional[List[str]] = None) -> int:
    """Entry point for nightscout-bar-check."""
    from nightscout_bar.display.status_bar import render

    args = parse_args(argv)
    config = load_config(args.config)
    setup_logging(args.log_level or config.log_level)

    console = Console()
    settings: SettingsProvider = YamlSettings(config.settings_path)
    updates = settings_updates(args)
    if updates and args.save:
        try:
            settings.save(updates)
        except SettingsError as e:
            logger.error(f"Settings not saved: {e}")
            console.print(e.diagnostic, style="red", markup=False)
            return 1
    elif updates:
        # Test without touching the stored settings
        settings = OverlaySettings(settings, updates)

    poller = NightscoutPoller(settings, config)
    state = asyncio.run(poller.fetch_once())

    console.print(render(state))
    return 0 if state.connection_status is ConnectionStatus.OK else 1
