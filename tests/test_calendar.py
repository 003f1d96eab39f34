"""
Tests for the month calendar: navigation, project filter and day cells.
"""
from datetime import date

from atlas.calendar_view import CalendarController

from conftest import TODAY


def make_calendar(store):
    return CalendarController(store, today=TODAY)


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# Navigation
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━


def test_opens_on_current_month(store):
    cal = make_calendar(store)
    assert (cal.year, cal.month) == (2025, 3)
    assert cal.month_label == "March 2025"


def test_change_month_wraps_years(store):
    cal = make_calendar(store)
    cal.year, cal.month = 2024, 12
    cal.change_month(1)
    assert (cal.year, cal.month) == (2025, 1)
    cal.change_month(-1)
    assert (cal.year, cal.month) == (2024, 12)
    cal.change_month(-12)
    assert (cal.year, cal.month) == (2023, 12)


def test_go_to_today(store):
    cal = make_calendar(store)
    cal.change_month(5)
    cal.go_to_today()
    assert cal.month_label == "March 2025"


def test_only_month_view(store):
    cal = make_calendar(store)
    assert cal.change_view("month")
    assert not cal.change_view("week")
    assert not cal.change_view("day")
    assert cal.view == "month"


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# Grid & filter
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━


def test_grid_starts_on_sunday(store):
    cal = make_calendar(store)
    # 1 March 2025 is a Saturday
    assert cal.leading_blanks() == 6
    cells = cal.grid()
    assert len(cells) == 31
    assert cells[0].date == "2025-03-01"
    assert [c.day for c in cells if c.today] == [10]


def test_grid_buckets_events_by_day(store):
    cells = {c.date: c for c in make_calendar(store).grid()}
    assert [e.id for e in cells["2025-03-12"].events] == ["e2", "e3"]
    assert [e.id for e in cells["2025-03-07"].events] == ["e1"]
    assert cells["2025-03-01"].events == []


def test_project_filter_applies_to_grid_and_day(store):
    cal = make_calendar(store)
    assert cal.filter_by_project("Kitchen") == "kitchen"
    cells = {c.date: c for c in cal.grid()}
    assert [e.id for e in cells["2025-03-12"].events] == ["e2"]
    assert cells["2025-03-07"].events == []
    assert [e.id for e in cal.events_on("2025-03-12")] == ["e2"]

    assert cal.filter_by_project("All Projects") == "all"
    assert len(cal.events_on("2025-03-12")) == 2


def test_other_months_are_empty(store):
    cal = make_calendar(store)
    cal.change_month(1)
    assert cal.month_label == "April 2025"
    assert len(cal.grid()) == 30
    assert all(not c.events for c in cal.grid())
    assert all(not c.today for c in cal.grid())


def test_meeting_count(store):
    assert make_calendar(store).meeting_count() == 1


def test_defaults_to_store_today(store):
    assert CalendarController(store).today() == TODAY
    store.today = None
    assert CalendarController(store).today() == date.today()
