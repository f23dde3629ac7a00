"""Nightscout poller - fetches the latest entry on a fixed schedule."""

import asyncio
import logging
from datetime import datetime, timezone, tzinfo
from typing import Callable, Optional, Set, Tuple

import aiohttp
from yarl import URL

from nightscout_bar.shared.models import FetchConfig, Reading

from .auth import auth_headers
from .config import PollerConfig
from .diagnostics import DiagnosticsLog
from .errors import (
    EmptyBodyError,
    FetchError,
    HTTPStatusError,
    InvalidURLError,
    ParseError,
    TimestampParseError,
    TransportError,
)
from .parser import parse_entries
from .settings import SettingsProvider
from .staleness import evaluate_staleness
from .state import ConnectionStatus, DisplayState, StateStore, StateUpdate
from .trend import arrow_for
from .units import convert_glucose, format_glucose, unit_label

logger = logging.getLogger(__name__)

ENTRIES_PATH = "/api/v1/entries.json"


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def build_entries_url(server_url: str) -> URL:
    """Build the entries request URL for a server base URL.

    Raises:
        InvalidURLError: If the URL is empty or not http(s).
    """
    text = (server_url or "").strip()
    if not text:
        raise InvalidURLError(server_url, "no server URL configured")

    try:
        base = URL(text)
    except (ValueError, TypeError) as e:
        raise InvalidURLError(server_url, str(e)) from e

    if base.scheme not in ("http", "https") or not base.host:
        raise InvalidURLError(server_url)

    path = base.path.rstrip("/") + ENTRIES_PATH
    return base.with_path(path).with_query({"count": "1"})


class NightscoutPoller:
    """Polls a Nightscout server and publishes results to a StateStore.

    One fetch runs immediately on start(), then one every poll_interval
    seconds. fetch_once() may be called at any time, including while the
    schedule is running; each fetch is applied to the store as one commit.
    """

    def __init__(
        self,
        settings: SettingsProvider,
        config: Optional[PollerConfig] = None,
        store: Optional[StateStore] = None,
        clock: Optional[Callable[[], datetime]] = None,
        local_tz: Optional[tzinfo] = None,
    ):
        self.settings = settings
        self.config = config or PollerConfig()
        self.store = store or StateStore()
        self._clock = clock or _utc_now
        self._local_tz = local_tz

        self._schedule_task: Optional[asyncio.Task] = None
        self._scheduled_fetch: Optional[asyncio.Task] = None
        self._in_flight: Set[asyncio.Task] = set()
        # Bumped by stop(); fetches started before a stop are not applied
        self._epoch = 0

    @property
    def state(self) -> DisplayState:
        return self.store.state

    @property
    def running(self) -> bool:
        return self._schedule_task is not None and not self._schedule_task.done()

    async def start(self) -> None:
        """Fetch once now, then every poll_interval seconds.

        Calling start() while already running does nothing.
        """
        if self.running:
            logger.warning("Poller already running, ignoring start()")
            return

        logger.info(f"Starting Nightscout poller (interval={self.config.poll_interval}s)")
        first = self._spawn_fetch()
        self._scheduled_fetch = first
        self._schedule_task = asyncio.create_task(self._run_schedule())
        await asyncio.shield(first)

    async def stop(self) -> None:
        """Cancel the schedule. In-flight fetches finish but are not applied."""
        self._epoch += 1
        task, self._schedule_task = self._schedule_task, None
        if task is None:
            return

        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass
        logger.info("Nightscout poller stopped")

    async def fetch_once(self) -> DisplayState:
        """Run one fetch-and-update cycle.

        Returns:
            The state after this fetch was applied, or the current state if
            the result was discarded.
        """
        generation = self.store.next_generation()
        epoch = self._epoch

        update = await self._attempt(generation)

        if epoch != self._epoch:
            logger.debug(f"Poller stopped during fetch #{generation}, discarding result")
            return self.store.state

        new_state = self.store.commit(update)
        return new_state if new_state is not None else self.store.state

    def _spawn_fetch(self) -> asyncio.Task:
        task = asyncio.create_task(self.fetch_once())
        self._in_flight.add(task)
        task.add_done_callback(self._on_fetch_done)
        return task

    def _on_fetch_done(self, task: asyncio.Task) -> None:
        self._in_flight.discard(task)
        if not task.cancelled() and task.exception() is not None:
            logger.error(f"Unexpected error in scheduled fetch: {task.exception()!r}")

    async def _run_schedule(self) -> None:
        """Fire a fetch every poll_interval seconds, not counting fetch time."""
        loop = asyncio.get_running_loop()
        interval = self.config.poll_interval
        next_tick = loop.time() + interval

        while True:
            await asyncio.sleep(max(0.0, next_tick - loop.time()))
            next_tick += interval
            if next_tick < loop.time():
                # Fell behind (e.g. system sleep), don't fire a burst of ticks
                next_tick = loop.time() + interval

            if self._scheduled_fetch is not None and not self._scheduled_fetch.done():
                logger.debug("Previous scheduled fetch still in flight, skipping tick")
                continue
            self._scheduled_fetch = self._spawn_fetch()

    async def _attempt(self, generation: int) -> StateUpdate:
        """Run every fetch stage and collect the outcome. Never raises FetchError."""
        log = DiagnosticsLog(
            max_lines=self.config.diagnostics_max_lines,
            max_line_length=self.config.diagnostics_max_line_length,
        )

        try:
            config = self.settings.snapshot()
            reading = await self._fetch_reading(config, log)
        except FetchError as e:
            log.append(e.diagnostic)
            logger.warning(f"Fetch #{generation} failed: {e}")
            return StateUpdate(
                generation=generation,
                connection_status=ConnectionStatus.ERROR,
                diagnostics=log.lines,
                completed_at=self._clock(),
            )

        now = self._clock()
        value = convert_glucose(reading.value, config.display_in_mmol, config.server_reports_in_mmol)
        glyph = arrow_for(reading.direction)

        suffix: Optional[str]
        try:
            suffix = evaluate_staleness(
                reading.server_timestamp, now, self.config.stale_after, self._local_tz
            )
        except TimestampParseError as e:
            # Keep whatever staleness suffix was shown before
            log.append(e.diagnostic)
            logger.warning(str(e))
            suffix = None

        display = format_glucose(value, config.display_in_mmol)
        log.append(f"Glucose: {display} {unit_label(config.display_in_mmol)} {glyph}")
        logger.info(f"Fetch #{generation}: {display} {glyph}{suffix or ''}")

        return StateUpdate(
            generation=generation,
            connection_status=ConnectionStatus.OK,
            diagnostics=log.lines,
            glucose_value=value,
            trend_glyph=glyph,
            staleness_suffix=suffix,
            display_in_mmol=config.display_in_mmol,
            reading_timestamp=reading.server_timestamp,
            completed_at=now,
        )

    async def _fetch_reading(self, config: FetchConfig, log: DiagnosticsLog) -> Reading:
        """Request the latest entry and decode it, logging each step.

        Raises:
            FetchError: On any failed stage.
        """
        url = build_entries_url(config.server_url)
        headers = auth_headers(config.api_secret)

        log.append(f"Request URL: {url}")
        log.append(f"Request Headers: {', '.join(headers)}")
        log.append(f"Starting network request to {url}")
        logger.debug(f"GET {url}")

        status, reason, body = await self._request(url, headers)
        log.append(f"Response Status Code: {status}")

        if not body:
            if status != 200:
                log.append("No data received in response")
                raise HTTPStatusError(status, reason)
            raise EmptyBodyError("No data received in response")

        log.append(f"Raw Response Data: {body.decode('utf-8', errors='replace')}")

        try:
            reading = parse_entries(body)
        except ParseError as e:
            if status == 200:
                raise
            log.append(e.diagnostic)
            raise HTTPStatusError(status, reason) from e

        if status != 200:
            log.append(
                f"Decoded entry sgv={reading.value:g} ignored because of status {status}"
            )
            raise HTTPStatusError(status, reason)

        return reading

    async def _request(self, url: URL, headers: dict) -> Tuple[int, Optional[str], bytes]:
        """Issue the GET request.

        Raises:
            TransportError: On connection failures and timeouts.
        """
        timeout = aiohttp.ClientTimeout(total=self.config.request_timeout)
        try:
            async with aiohttp.ClientSession(timeout=timeout) as session:
                async with session.get(url, headers=headers) as response:
                    body = await response.read()
                    return response.status, response.reason, body
        except asyncio.TimeoutError as e:
            raise TransportError(f"request timed out after {self.config.request_timeout:g}s") from e
        except aiohttp.ClientError as e:
            raise TransportError(str(e) or type(e).__name__) from e
