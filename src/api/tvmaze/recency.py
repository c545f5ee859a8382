"""
Recency window - which calendar dates count as "recent".

TVmaze air dates are local calendar dates (YYYY-MM-DD). An episode is recent
when its air date is one of the last N calendar days, today included, as seen
from a reference timezone.
"""

from datetime import datetime, timedelta, tzinfo
from zoneinfo import ZoneInfo

DEFAULT_WINDOW_DAYS = 7
DEFAULT_TIMEZONE = ZoneInfo("America/Los_Angeles")


class RecencyWindow:
    """Trailing window of N calendar days ending today in the reference timezone."""

    def __init__(
        self,
        days: int = DEFAULT_WINDOW_DAYS,
        tz: tzinfo = DEFAULT_TIMEZONE,
        now: datetime | None = None,
    ):
        if days < 1:
            raise ValueError(f"window must cover at least one day, got {days}")
        self.days = days
        self.tz = tz
        reference = now if now is not None else datetime.now(tz)
        if reference.tzinfo is None:
            reference = reference.replace(tzinfo=tz)
        self.today = reference.astimezone(tz).date()
        # Oldest first
        self.dates: list[str] = [
            (self.today - timedelta(days=offset)).isoformat() for offset in range(days - 1, -1, -1)
        ]
        self._date_set = frozenset(self.dates)

    @property
    def start(self) -> str:
        return self.dates[0]

    @property
    def end(self) -> str:
        return self.dates[-1]

    def is_recent(self, airdate: str | None) -> bool:
        if not airdate:
            return False
        return airdate in self._date_set

    def __contains__(self, airdate: object) -> bool:
        return isinstance(airdate, str) and self.is_recent(airdate)

    def __repr__(self) -> str:
        return f"RecencyWindow(days={self.days}, start={self.start}, end={self.end}, tz={self.tz})"
