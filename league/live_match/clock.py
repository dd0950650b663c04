"""
Server-side match clock.

The clock state lives on the Match row (clock_running, clock_started_at,
clock_elapsed_seconds) so any server process can answer "what minute is
it" without a client keeping a timer alive. Wall-clock time comes from a
Clock object, which tests replace with FixedClock.
"""
from datetime import datetime, timedelta
from typing import Optional, Protocol

from config.settings import settings
from league.utils.helpers import utcnow


class Clock(Protocol):
    """Source of the current (naive UTC) time."""

    def now(self) -> datetime:
        ...


class SystemClock:
    """Wall-clock time."""

    def now(self) -> datetime:
        return utcnow()


class FixedClock:
    """Clock frozen at a given instant, moved forward explicitly."""

    def __init__(self, at: datetime):
        self._at = at

    def now(self) -> datetime:
        return self._at

    def advance(self, **kwargs) -> datetime:
        """Move forward by a timedelta built from kwargs (minutes=5, ...)."""
        self._at = self._at + timedelta(**kwargs)
        return self._at


class MatchClock:
    """Start/pause/resume view over a match's clock columns."""

    def __init__(self, match):
        self.match = match

    @property
    def is_running(self) -> bool:
        return bool(self.match.clock_running)

    def start(self, now: datetime) -> None:
        """Restart from minute 0 and begin ticking."""
        self.match.clock_elapsed_seconds = 0.0
        self.match.clock_started_at = now
        self.match.clock_running = True

    def pause(self, now: datetime) -> None:
        """Freeze elapsed time. Pausing a stopped clock does nothing."""
        if not self.is_running:
            return
        self.match.clock_elapsed_seconds = self.elapsed_seconds(now)
        self.match.clock_started_at = None
        self.match.clock_running = False

    def resume(self, now: datetime) -> None:
        if self.is_running:
            return
        self.match.clock_started_at = now
        self.match.clock_running = True

    def stop(self, now: datetime) -> None:
        self.pause(now)

    def reset(self) -> None:
        self.match.clock_elapsed_seconds = 0.0
        self.match.clock_started_at = None
        self.match.clock_running = False

    def set_minute(self, minute: int, now: datetime) -> None:
        """Jump to a given minute, keeping the running/paused state."""
        self.match.clock_elapsed_seconds = float(minute * 60)
        if self.is_running:
            self.match.clock_started_at = now

    def elapsed_seconds(self, now: datetime) -> float:
        elapsed = float(self.match.clock_elapsed_seconds or 0.0)
        started: Optional[datetime] = self.match.clock_started_at
        if self.is_running and started is not None:
            elapsed += max((now - started).total_seconds(), 0.0)
        return elapsed

    def current_minute(self, now: datetime) -> int:
        """Elapsed whole minutes, capped at the last playable minute."""
        return min(int(self.elapsed_seconds(now) // 60), settings.max_minute)


_clock: Clock = SystemClock()


def get_clock() -> Clock:
    """
    FastAPI dependency for the current clock.

    Tests override this with a FixedClock.
    """
    return _clock
