"""
Month calendar over the store's events.

Holds the visible month and the calendar's own project filter (independent
of the board's). Weeks start on Sunday; `grid()` yields the leading blank
cells followed by one cell per day of the month.
"""
import calendar
import logging
from dataclasses import dataclass, field
from datetime import date
from typing import List, Optional

from .board import ALL, normalize_project_filter
from .schema import Event
from .store import AtlasStore

logger = logging.getLogger(__name__)

MONTH_VIEW = "month"
VIEWS = ("month", "week", "day")


@dataclass
class DayCell:
    date: str                      # ISO date
    day: int
    events: List[Event] = field(default_factory=list)
    today: bool = False


class CalendarController:
    """Visible month, project filter and per-day event buckets."""

    def __init__(self, store: AtlasStore, today: Optional[date] = None):
        self.store = store
        self._today = today
        current = self.today()
        self.year = current.year
        self.month = current.month
        self.project_filter = ALL
        self.view = MONTH_VIEW

    def today(self) -> date:
        return self._today or self.store.today or date.today()

    @property
    def month_label(self) -> str:
        return f"{calendar.month_name[self.month]} {self.year}"

    # -------------------- navigation --------------------

    def change_month(self, delta: int) -> None:
        """Step by `delta` months; December + 1 is January of the next year."""
        year, month0 = divmod(self.year * 12 + self.month - 1 + delta, 12)
        self.year, self.month = year, month0 + 1

    def go_to_today(self) -> None:
        current = self.today()
        self.year, self.month = current.year, current.month

    def change_view(self, view: str) -> bool:
        """Only the month view exists; week and day are refused."""
        if view != MONTH_VIEW:
            logger.debug("Calendar view %r not available", view)
            return False
        self.view = view
        return True

    def filter_by_project(self, value: Optional[str]) -> str:
        self.project_filter = normalize_project_filter(value)
        return self.project_filter

    # -------------------- contents --------------------

    def matches(self, event: Event) -> bool:
        return self.project_filter == ALL or event.project == self.project_filter

    def events_on(self, iso_date: str) -> List[Event]:
        return self.store.events_on(iso_date, self.project_filter)

    def leading_blanks(self) -> int:
        # date.weekday() is Monday=0; the grid starts on Sunday
        return (date(self.year, self.month, 1).weekday() + 1) % 7

    def grid(self) -> List[DayCell]:
        """One cell per day of the visible month, with its filtered events."""
        _, days = calendar.monthrange(self.year, self.month)
        current = self.today()
        cells = []
        for n in range(1, days + 1):
            day = date(self.year, self.month, n)
            iso = day.isoformat()
            cells.append(DayCell(
                date=iso,
                day=n,
                events=[e for e in self.store.events if e.date == iso and self.matches(e)],
                today=day == current,
            ))
        return cells

    def meeting_count(self) -> int:
        return sum(1 for e in self.store.events if "meeting" in e.title.lower())
