# src/ponc_planner/progress.py
from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, TextIO
import sys
import shutil


@dataclass
class _BarState:
    desc: str
    total: Optional[int]
    value: int = 0


class ProgressReporter:
    """
    Textual progress bar on stderr for a running calculation.

    The calculation reports a fraction; callers scale it to `total` and push
    it with update(). Only one bar is active at a time.
    """

    def __init__(self, stream: Optional[TextIO] = None, enabled: bool = True) -> None:
        self.stream = stream or sys.stderr
        self.enabled = enabled
        self._state: Optional[_BarState] = None

    # Public API --------------------------------------------------------

    def start(self, description: str, total: Optional[int] = None) -> None:
        """Start (or restart) a progress bar."""
        if not self.enabled:
            return
        if self._state is not None:
            self._finish_line()
        self._state = _BarState(desc=description, total=total, value=0)
        self._render()

    def update(self, value: int) -> None:
        """Set the absolute bar value. Redraws only when it changes."""
        if not self.enabled or self._state is None or value == self._state.value:
            return
        self._state.value = value
        self._render()

    def advance(self, n: int = 1) -> None:
        if not self.enabled or self._state is None:
            return
        self.update(self._state.value + n)

    def end(self) -> None:
        """Finish the current bar (newline) and clear state."""
        if not self.enabled or self._state is None:
            return
        self._finish_line()
        self._state = None

    def message(self, text: str) -> None:
        """Print a status line without breaking the bar."""
        if not self.enabled:
            return
        if self._state is not None:
            self._clear_line()
        self.stream.write(text + "\n")
        self.stream.flush()
        if self._state is not None:
            self._render()

    # Internal helpers --------------------------------------------------

    @staticmethod
    def _width() -> int:
        return shutil.get_terminal_size(fallback=(80, 20)).columns

    def _render(self) -> None:
        if self._state is None:
            return
        desc, total, value = self._state.desc, self._state.total, self._state.value
        width = self._width()

        if total is None or total <= 0:
            text = f"{desc}: {value}"
        else:
            frac = max(0.0, min(1.0, value / float(total)))
            bar_width = max(10, min(40, width - len(desc) - 20))
            filled = int(bar_width * frac)
            text = f"{desc} [{'#' * filled}{'-' * (bar_width - filled)}] {int(frac * 100):3d}%"

        self._clear_line()
        self.stream.write(text[: width - 1])
        self.stream.flush()

    def _clear_line(self) -> None:
        self.stream.write("\r" + " " * (self._width() - 1) + "\r")

    def _finish_line(self) -> None:
        self._clear_line()
        if self._state is None:
            return
        if self._state.total is None:
            line = f"{self._state.desc}: {self._state.value}\n"
        else:
            line = f"{self._state.desc}: {self._state.value}/{self._state.total}\n"
        self.stream.write(line)
        self.stream.flush()


class NullProgressReporter(ProgressReporter):
    """Drop-in replacement that does nothing."""

    def __init__(self) -> None:
        super().__init__(enabled=False)
