"""Bounded per-fetch diagnostics trace."""

from collections import deque
from typing import Deque, Iterable, Tuple

DEFAULT_MAX_LINES = 50
DEFAULT_MAX_LINE_LENGTH = 500


def truncate(text: str, limit: int) -> str:
    """Shorten text to at most limit characters, marking the cut with an ellipsis."""
    if limit <= 0 or len(text) <= limit:
        return text
    return text[: max(limit - 1, 0)] + "…"


class DiagnosticsLog:
    """Append-only log for one fetch attempt.

    Never holds more than max_lines lines. Once full, the first line becomes
    a marker reporting how many earlier lines were dropped, followed by the
    newest max_lines - 1 lines. Each line is truncated to max_line_length
    characters.
    """

    def __init__(
        self,
        max_lines: int = DEFAULT_MAX_LINES,
        max_line_length: int = DEFAULT_MAX_LINE_LENGTH,
    ):
        if max_lines < 2:
            raise ValueError("max_lines must be at least 2")
        self.max_lines = max_lines
        self.max_line_length = max_line_length
        self._lines: Deque[str] = deque(maxlen=max_lines)
        self._appended = 0

    def append(self, line: str) -> None:
        self._appended += 1
        self._lines.append(truncate(str(line), self.max_line_length))

    def extend(self, lines: Iterable[str]) -> None:
        for line in lines:
            self.append(line)

    @property
    def dropped(self) -> int:
        """Number of lines not shown, counting the one the marker replaces."""
        if self._appended <= self.max_lines:
            return 0
        return self._appended - self.max_lines + 1

    @property
    def lines(self) -> Tuple[str, ...]:
        if not self.dropped:
            return tuple(self._lines)
        # The marker takes the slot of the oldest kept line
        newest = tuple(self._lines)[1:]
        return (f"... {self.dropped} earlier lines dropped",) + newest

    @property
    def text(self) -> str:
        return "\n".join(self.lines)

    def __len__(self) -> int:
        return len(self.lines)
