"""Unit tests for service calendar expansion."""

from datetime import date

import pytest

from gtfs_validation.feed import GtfsFeed, ServiceCalendar, ServiceCalendarDate
from gtfs_validation.validation.calendar import CalendarExpander

# 2024-01-01 is a Monday
JAN_1 = date(2024, 1, 1)
JAN_14 = date(2024, 1, 14)


@pytest.fixture
def monday_friday():
    return ServiceCalendar("WK", JAN_1, JAN_14, monday=True, friday=True)


def test_unknown_policy_rejected():
    with pytest.raises(ValueError, match="Unknown weekday policy"):
        CalendarExpander("sometimes")


def test_first_match_uses_first_flagged_weekday(monday_friday):
    """Test Monday+Friday service runs on Mondays only under first_match."""
    dates = CalendarExpander().expand_calendar(monday_friday)
    assert dates == {date(2024, 1, 1), date(2024, 1, 8)}


def test_sunday_takes_priority():
    """Test Sunday is consulted before Monday."""
    calendar = ServiceCalendar("WE", JAN_1, JAN_14, monday=True, sunday=True)
    dates = CalendarExpander().expand_calendar(calendar)
    assert dates == {date(2024, 1, 7), date(2024, 1, 14)}


def test_all_policy_honours_every_flag(monday_friday):
    dates = CalendarExpander("all").expand_calendar(monday_friday)
    assert dates == {
        date(2024, 1, 1),
        date(2024, 1, 5),
        date(2024, 1, 8),
        date(2024, 1, 12),
    }


def test_dates_stay_within_range():
    """Test every expanded date lies within [start, end] inclusive."""
    calendar = ServiceCalendar(
        "DAILY",
        date(2024, 2, 27),
        date(2024, 3, 2),
        monday=True,
        tuesday=True,
        wednesday=True,
        thursday=True,
        friday=True,
        saturday=True,
        sunday=True,
    )
    dates = CalendarExpander("all").expand_calendar(calendar)

    assert len(dates) == 5
    assert min(dates) == date(2024, 2, 27)
    assert max(dates) == date(2024, 3, 2)
    assert date(2024, 2, 29) in dates


def test_no_flags_means_no_dates():
    calendar = ServiceCalendar("NONE", JAN_1, JAN_14)
    assert CalendarExpander().expand_calendar(calendar) == set()


def test_exceptions_add_and_remove(monday_friday):
    exceptions = [
        ServiceCalendarDate("WK", date(2024, 1, 8), ServiceCalendarDate.SERVICE_REMOVED),
        ServiceCalendarDate("WK", date(2024, 1, 10), ServiceCalendarDate.SERVICE_ADDED),
    ]
    active = CalendarExpander().expand([monday_friday], exceptions)
    assert active["WK"] == {date(2024, 1, 1), date(2024, 1, 10)}


def test_removing_inactive_date_is_noop(monday_friday):
    """Test removing a date twice (or one never active) changes nothing further."""
    removal = ServiceCalendarDate("WK", date(2024, 1, 8), ServiceCalendarDate.SERVICE_REMOVED)
    not_active = ServiceCalendarDate("WK", date(2024, 1, 3), ServiceCalendarDate.SERVICE_REMOVED)

    active = CalendarExpander().expand([monday_friday], [removal, removal, not_active])

    assert active["WK"] == {date(2024, 1, 1)}


def test_service_known_only_from_exceptions():
    exceptions = [
        ServiceCalendarDate("HOLIDAY", date(2024, 12, 25), ServiceCalendarDate.SERVICE_ADDED),
        ServiceCalendarDate("GONE", date(2024, 12, 26), ServiceCalendarDate.SERVICE_REMOVED),
    ]
    active = CalendarExpander().expand([], exceptions)

    assert active["HOLIDAY"] == {date(2024, 12, 25)}
    assert active["GONE"] == set()


def test_unknown_exception_type_ignored(monday_friday):
    exceptions = [ServiceCalendarDate("WK", date(2024, 1, 3), 3)]
    active = CalendarExpander().expand([monday_friday], exceptions)
    assert active["WK"] == {date(2024, 1, 1), date(2024, 1, 8)}


def test_expand_feed(monday_friday):
    feed = GtfsFeed(calendars=[monday_friday])
    active = CalendarExpander().expand_feed(feed)
    assert set(active) == {"WK"}
