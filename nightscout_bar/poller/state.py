"""Observable display state shared between the poller and the presentation layer."""

import logging
import threading
from dataclasses import dataclass, replace
from datetime import datetime
from enum import Enum
from typing import Callable, List, Optional, Tuple

from .trend import UNKNOWN_TREND
from .units import format_glucose

logger = logging.getLogger(__name__)

INITIAL_DIAGNOSTICS = ("Server connection status...",)


class ConnectionStatus(Enum):
    """Outcome of the most recent fetch."""
    EMPTY = "empty"  # No fetch has completed yet
    OK = "ok"
    ERROR = "error"

    @property
    def colour(self) -> str:
        """Border colour used for the diagnostics view."""
        return {"ok": "green", "error": "red"}.get(self.value, "grey50")


@dataclass(frozen=True)
class DisplayState:
    """Everything the presentation layer renders. Replaced, never mutated."""
    glucose_value: float = 0.0
    trend_glyph: str = UNKNOWN_TREND
    staleness_suffix: str = ""
    connection_status: ConnectionStatus = ConnectionStatus.EMPTY
    diagnostics: Tuple[str, ...] = INITIAL_DIAGNOSTICS
    display_in_mmol: bool = False
    reading_timestamp: Optional[str] = None
    generation: int = 0
    updated_at: Optional[datetime] = None

    @property
    def display_value(self) -> str:
        return format_glucose(self.glucose_value, self.display_in_mmol)

    @property
    def title(self) -> str:
        """Status bar title, e.g. '6.2 → [14:05]'."""
        return f"{self.display_value} {self.trend_glyph}{self.staleness_suffix}"

    @property
    def diagnostics_text(self) -> str:
        return "\n".join(self.diagnostics)


@dataclass(frozen=True)
class StateUpdate:
    """Result of one fetch attempt, applied to the state as a single unit.

    Reading fields are None when the attempt did not produce a usable
    reading; the previous values are kept in that case.
    """
    generation: int
    connection_status: ConnectionStatus
    diagnostics: Tuple[str, ...]
    glucose_value: Optional[float] = None
    trend_glyph: Optional[str] = None
    staleness_suffix: Optional[str] = None
    display_in_mmol: Optional[bool] = None
    reading_timestamp: Optional[str] = None
    completed_at: Optional[datetime] = None

    @property
    def has_reading(self) -> bool:
        return self.glucose_value is not None


Observer = Callable[[DisplayState], None]


class StateStore:
    """Single writer for DisplayState.

    Every change goes through commit(), which holds a lock while it swaps in
    a new immutable DisplayState, then notifies observers outside the lock.
    """

    def __init__(self, initial: Optional[DisplayState] = None):
        self._state = initial or DisplayState()
        self._lock = threading.Lock()
        self._generation = self._state.generation
        self._observers: List[Observer] = []

    @property
    def state(self) -> DisplayState:
        return self._state

    def next_generation(self) -> int:
        """Reserve the generation number for a new fetch attempt."""
        with self._lock:
            self._generation += 1
            return self._generation

    def subscribe(self, observer: Observer) -> Callable[[], None]:
        """Register an observer; returns a function that unsubscribes it."""
        self._observers.append(observer)

        def unsubscribe() -> None:
            if observer in self._observers:
                self._observers.remove(observer)

        return unsubscribe

    def commit(self, update: StateUpdate) -> Optional[DisplayState]:
        """Apply a fetch result atomically.

        Returns:
            The new state, or None if a newer attempt has already been applied.
        """
        with self._lock:
            current = self._state
            if update.generation <= current.generation:
                logger.debug(
                    f"Dropping result of fetch #{update.generation}, "
                    f"fetch #{current.generation} already applied"
                )
                return None

            new_state = replace(
                current,
                connection_status=update.connection_status,
                diagnostics=update.diagnostics,
                generation=update.generation,
                updated_at=update.completed_at,
            )
            if update.has_reading:
                new_state = replace(
                    new_state,
                    glucose_value=update.glucose_value,
                    trend_glyph=update.trend_glyph if update.trend_glyph is not None else UNKNOWN_TREND,
                    display_in_mmol=bool(update.display_in_mmol),
                    reading_timestamp=update.reading_timestamp,
                )
                if update.staleness_suffix is not None:
                    new_state = replace(new_state, staleness_suffix=update.staleness_suffix)
            self._state = new_state

        self._notify(new_state)
        return new_state

    def _notify(self, state: DisplayState) -> None:
        for observer in list(self._observers):
            try:
                observer(state)
            except Exception as e:
                logger.error(f"State observer {observer!r} failed: {e}")
