"""Copy progress accounting: counts, percentage and time remaining."""

import time
from dataclasses import dataclass


@dataclass(frozen=True)
class ProgressSnapshot:
    completed: int
    total: int
    percent: int
    elapsed: float
    estimated_remaining: float


def format_duration(seconds: float) -> str:
    """Format seconds as H:MM:SS."""
    seconds = max(0, int(round(seconds)))
    hours, rem = divmod(seconds, 3600)
    minutes, secs = divmod(rem, 60)
    return f"{hours}:{minutes:02d}:{secs:02d}"


class ProgressTracker:
    """Running totals for one backup run.

    ``total`` only grows; ``completed`` never exceeds it.
    """

    def __init__(self, clock=time.monotonic):
        self._clock = clock
        self._start: float | None = None
        self.total = 0
        self.completed = 0

    def add_planned(self, n: int):
        if n < 0:
            raise ValueError("planned count cannot be negative")
        self.total += n

    def start(self):
        """Mark the start of copying; called implicitly on first completion."""
        if self._start is None:
            self._start = self._clock()

    def record_completed(self) -> ProgressSnapshot:
        """Count one processed task and return the updated figures."""
        if self.completed >= self.total:
            raise ValueError(
                f"completed count would exceed planned total ({self.total})"
            )
        self.start()
        self.completed += 1
        return self.snapshot()

    def snapshot(self) -> ProgressSnapshot:
        elapsed = self._clock() - self._start if self._start is not None else 0.0
        percent = round(self.completed / self.total * 100) if self.total else 0
        remaining = 0.0
        if self.completed > 0:
            remaining = elapsed / self.completed * (self.total - self.completed)
        return ProgressSnapshot(
            completed=self.completed,
            total=self.total,
            percent=percent,
            elapsed=elapsed,
            estimated_remaining=remaining,
        )
