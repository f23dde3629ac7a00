"""Terminal display service."""

from .status_bar import StatusBarMonitor, render, render_diagnostics, render_title


def main():
    """Entry point for display service."""
    import asyncio

    from rich.console import Console

    from nightscout_bar.poller import NightscoutPoller, YamlSettings
    from nightscout_bar.poller.config import load_config
    from nightscout_bar.shared.logging import setup_logging

    config = load_config()
    console = Console()
    setup_logging(config.log_level, console=console)

    poller = NightscoutPoller(YamlSettings(config.settings_path), config)
    monitor = StatusBarMonitor(poller, console)

    try:
        asyncio.run(monitor.run())
    except KeyboardInterrupt:
        pass


__all__ = ["StatusBarMonitor", "render", "render_diagnostics", "render_title", "main"]
