"""
Terminal progress bar for long comparisons.

Draws a single in-place line on stderr when attached to a terminal and
falls back to throttled log messages otherwise.
"""

import logging
import shutil
import sys
import threading
import time


class ProgressDisplay:
    """
    Row-matching progress bar.

    Safe to update from the comparison worker thread.

    Example:
        >>> progress = ProgressDisplay(label="Comparing")
        >>> progress.update(5000, 20000)
        >>> progress.finish()

    Args:
        label: Text shown before the bar
        stream: Output stream (default: stderr)
        log_interval: Seconds between log lines in non-TTY mode
    """

    def __init__(self, label: str = "Rows", stream=None, log_interval: float = 5.0):
        self.label = label
        self.stream = stream if stream is not None else sys.stderr
        self.log_interval = log_interval

        self.completed = 0
        self.total = 0
        self.start_time = time.time()
        self.lock = threading.Lock()

        isatty = getattr(self.stream, "isatty", None)
        self.is_tty = bool(isatty and isatty())
        self._last_log: float = 0.0
        self._drawn = False

        try:
            self.term_width = shutil.get_terminal_size().columns
        except (OSError, ValueError):
            self.term_width = 80

    def _format_elapsed(self) -> str:
        """Format elapsed time as MM:SS."""
        mins, secs = divmod(int(time.time() - self.start_time), 60)
        return f"{mins:02d}:{secs:02d}"

    def _render(self) -> str:
        if self.total == 0:
            pct = 100.0
        else:
            pct = self.completed / self.total * 100

        counts = f" {self.completed}/{self.total} ({pct:.1f}%) {self._format_elapsed()}"
        width = max(10, min(40, self.term_width - len(self.label) - len(counts) - 4))
        filled = int(width * pct / 100)
        bar = "█" * filled + "░" * (width - filled)
        return f"{self.label} [{bar}]{counts}"

    def update(self, completed: int, total: int) -> None:
        """Set progress; matches the comparison engine's on_progress signature."""
        with self.lock:
            self.completed = completed
            self.total = total

            if self.is_tty:
                self.stream.write("\r" + self._render())
                self.stream.flush()
                self._drawn = True
                return

            now = time.time()
            if now - self._last_log >= self.log_interval or completed >= total:
                self._last_log = now
                logging.info(self._render())

    def finish(self) -> None:
        """Clear the bar so normal output starts on a fresh line."""
        with self.lock:
            if self.is_tty and self._drawn:
                self.stream.write("\r\033[2K")
                self.stream.flush()
                self._drawn = False
