"""
Terminal status bar for the latest Nightscout reading.
Renders the reading title and the connection diagnostics using Rich.
"""

import asyncio
import logging
import signal
from typing import Optional

from rich.console import Console, Group
from rich.live import Live
from rich.panel import Panel
from rich.text import Text

from nightscout_bar.poller import NightscoutPoller
from nightscout_bar.poller.state import ConnectionStatus, DisplayState

logger = logging.getLogger(__name__)


def render_title(state: DisplayState) -> Text:
    """Reading and arrow, dimmed while no reading has arrived."""
    style = "bold" if state.connection_status is ConnectionStatus.OK else "bold dim"
    return Text(state.title, style=style)


def render_diagnostics(state: DisplayState) -> Panel:
    """Connection log framed in the status colour."""
    return Panel(
        Text(state.diagnostics_text),
        title="Server connection",
        border_style=state.connection_status.colour,
    )


def render(state: DisplayState) -> Group:
    return Group(
        Panel(render_title(state), title="Nightscout", border_style="cyan"),
        render_diagnostics(state),
    )


class StatusBarMonitor:
    """Keeps a Rich Live view in sync with the poller's state."""

    def __init__(self, poller: NightscoutPoller, console: Optional[Console] = None):
        self.poller = poller
        self.console = console or Console()
        self._stop_event: Optional[asyncio.Event] = None

    def request_stop(self) -> None:
        if self._stop_event is not None:
            self._stop_event.set()

    def _setup_signal_handlers(self) -> None:
        """Stop cleanly on SIGINT/SIGTERM where the loop supports it."""
        loop = asyncio.get_running_loop()
        for signum in (signal.SIGINT, signal.SIGTERM):
            try:
                loop.add_signal_handler(signum, self.request_stop)
            except (NotImplementedError, RuntimeError):
                logger.debug(f"Signal handler for {signum!r} not supported here")

    async def run(self) -> None:
        """Run the poller and redraw on every state change until stopped."""
        self._stop_event = asyncio.Event()
        self._setup_signal_handlers()

        with Live(render(self.poller.state), console=self.console, auto_refresh=False) as live:
            unsubscribe = self.poller.store.subscribe(
                lambda state: live.update(render(state), refresh=True)
            )
            try:
                await self.poller.start()
                await self._stop_event.wait()
            finally:
                unsubscribe()
                await self.poller.stop()

        logger.info("Status bar stopped")
