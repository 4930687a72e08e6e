"""
Display timer for an exam session.
The tick counter only drives the on-screen clock; recorded durations use wall-clock instants.
"""
import logging
import threading
from typing import Callable, Optional

logger = logging.getLogger(__name__)


def format_elapsed(seconds: int) -> str:
    """Render whole seconds as zero-padded HH:MM:SS."""
    seconds = max(0, int(seconds))
    hours = seconds // 3600
    minutes = (seconds % 3600) // 60
    return f"{hours:02d}:{minutes:02d}:{seconds % 60:02d}"


class ExamTimer:
    """
    Counter incremented once per `interval` seconds on a daemon thread.

    Args:
        interval: Seconds between ticks. None disables the thread so ticks
            only happen through explicit `tick()` calls.
        gate: Optional predicate checked on every tick; the counter only
            advances while it returns True.
    """

    def __init__(self, interval: Optional[float] = 1.0, gate: Optional[Callable[[], bool]] = None):
        self.interval = interval
        self.gate = gate
        self.ticks = 0
        self._stop = threading.Event()
        self._thread: Optional[threading.Thread] = None

    @property
    def cancelled(self) -> bool:
        return self._stop.is_set()

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        if self.interval is None or self._thread is not None or self.cancelled:
            return
        self._thread = threading.Thread(target=self._run, name="exam-timer", daemon=True)
        self._thread.start()

    def _run(self) -> None:
        while not self._stop.wait(self.interval):
            self.tick()

    def tick(self) -> None:
        if self.cancelled:
            return
        if self.gate is not None and not self.gate():
            return
        self.ticks += 1

    def cancel(self) -> bool:
        """Stop ticking. Returns True only for the call that actually stopped it."""
        if self.cancelled:
            return False
        self._stop.set()
        logger.debug(f"Timer cancelled at {self.ticks} ticks")
        return True

    def display(self) -> str:
        return format_elapsed(self.ticks)
