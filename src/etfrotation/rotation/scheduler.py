"""Elapsed-time trigger for rotation cycles."""

from __future__ import annotations

from datetime import datetime, timedelta


class RotationScheduler:
    """Gates rotation cycles by a fixed interval since the last rotation.

    ``last_rotation_time`` starts at the first timestamp observed rather
    than the epoch, so a cold start does not rotate immediately.
    """

    def __init__(self, interval: timedelta) -> None:
        self.interval = interval
        self.last_rotation_time: datetime | None = None

    def observe(self, current_time: datetime) -> bool:
        """Record the first timestamp seen. Returns True on that first call only."""
        if self.last_rotation_time is None:
            self.last_rotation_time = current_time
            return True
        return False

    def due_for_rotation(self, current_time: datetime) -> bool:
        if self.last_rotation_time is None:
            return False
        return current_time - self.last_rotation_time > self.interval

    def advance(self, current_time: datetime) -> None:
        self.last_rotation_time = current_time
