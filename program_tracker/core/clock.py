"""Injectable time source.

Every "today" decision in the engine goes through a Clock so that the start
of the day window and the instant being compared against it come from the
same source. Windows run from local midnight to the next local midnight in
the clock's timezone, so they are 23 or 25 hours long across DST changes.
"""
from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta, timezone
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from program_tracker.config.settings import get_settings
from program_tracker.core.logging import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class DayWindow:
    """Half-open interval [start, end) covering one local calendar day."""

    start: datetime
    end: datetime

    def contains(self, instant: datetime) -> bool:
        return self.start <= instant < self.end


class Clock(ABC):
    def __init__(self, tz: ZoneInfo | timezone):
        self.tz = tz

    @abstractmethod
    def now(self) -> datetime:
        """Current instant, timezone-aware, in the clock's timezone."""

    def today(self) -> date:
        return self.now().date()

    def local_date(self, instant: datetime) -> date:
        if instant.tzinfo is None:
            instant = instant.replace(tzinfo=timezone.utc)
        return instant.astimezone(self.tz).date()

    def window_for(self, day: date) -> DayWindow:
        start = datetime.combine(day, time.min, tzinfo=self.tz)
        end = datetime.combine(day + timedelta(days=1), time.min, tzinfo=self.tz)
        return DayWindow(start=start, end=end)

    def today_window(self) -> DayWindow:
        return self.window_for(self.today())


class SystemClock(Clock):
    def now(self) -> datetime:
        return datetime.now(self.tz)


class FrozenClock(Clock):
    """Clock pinned to a fixed instant; advance() moves it forward."""

    def __init__(self, instant: datetime, tz: ZoneInfo | timezone | None = None):
        if instant.tzinfo is None:
            raise ValueError("FrozenClock requires a timezone-aware instant")
        super().__init__(tz or instant.tzinfo)
        self._instant = instant

    def now(self) -> datetime:
        return self._instant.astimezone(self.tz)

    def advance(self, delta: timedelta) -> datetime:
        self._instant = self._instant + delta
        return self.now()


def resolve_timezone(name: str) -> ZoneInfo:
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError):
        logger.warning("unknown_timezone", timezone=name, fallback="UTC")
        return ZoneInfo("UTC")


def get_clock() -> Clock:
    """Clock for the configured timezone."""
    return SystemClock(resolve_timezone(get_settings().timezone))
