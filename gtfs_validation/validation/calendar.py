"""Expansion of weekly service calendars and exceptions into active-date sets."""

from datetime import date, timedelta
from typing import Dict, Iterable, List, Set

from gtfs_validation.feed.accessor import GtfsFeed
from gtfs_validation.feed.models import ServiceCalendar, ServiceCalendarDate
from gtfs_validation.utils.logging import get_logger

logger = get_logger(__name__)

# (calendar flag, date.weekday()) in the order flags are consulted
WEEKDAY_PRIORITY = (
    ("sunday", 6),
    ("monday", 0),
    ("tuesday", 1),
    ("wednesday", 2),
    ("thursday", 3),
    ("friday", 4),
    ("saturday", 5),
)

FIRST_MATCH = "first_match"
ALL_WEEKDAYS = "all"
WEEKDAY_POLICIES = (FIRST_MATCH, ALL_WEEKDAYS)

ActiveDateSet = Dict[str, Set[date]]


class CalendarExpander:
    """Turn calendars plus calendar exceptions into concrete dates per service.

    With the default ``first_match`` policy only the first flagged weekday, in
    Sunday..Saturday order, makes a date active; a calendar flagged for Monday
    and Friday runs on Mondays only. The ``all`` policy honours every flag.

    Attributes:
        weekday_policy: "first_match" or "all".

    Example:
        >>> expander = CalendarExpander()
        >>> active = expander.expand_feed(feed)
        >>> date(2024, 1, 7) in active["WE"]
        True
    """

    def __init__(self, weekday_policy: str = FIRST_MATCH) -> None:
        if weekday_policy not in WEEKDAY_POLICIES:
            raise ValueError(
                f"Unknown weekday policy '{weekday_policy}'. "
                f"Use one of: {', '.join(WEEKDAY_POLICIES)}"
            )
        self.weekday_policy = weekday_policy

    def active_weekdays(self, calendar: ServiceCalendar) -> Set[int]:
        """Weekdays (``date.weekday()`` numbering) on which a calendar runs."""
        flagged: List[int] = [
            weekday for flag, weekday in WEEKDAY_PRIORITY if getattr(calendar, flag)
        ]
        if self.weekday_policy == FIRST_MATCH:
            return set(flagged[:1])
        return set(flagged)

    def expand_calendar(self, calendar: ServiceCalendar) -> Set[date]:
        """Every date in [start_date, end_date] falling on an active weekday."""
        weekdays = self.active_weekdays(calendar)
        active: Set[date] = set()
        if not weekdays:
            return active

        current = calendar.start_date
        while current <= calendar.end_date:
            if current.weekday() in weekdays:
                active.add(current)
            current += timedelta(days=1)
        return active

    def expand(
        self,
        calendars: Iterable[ServiceCalendar],
        calendar_dates: Iterable[ServiceCalendarDate],
    ) -> ActiveDateSet:
        """Build the service id -> active dates mapping.

        Exceptions are applied in input order after all calendars are expanded.
        Removing a date that is not active is a no-op. A service known only
        from exceptions starts from an empty set.

        Args:
            calendars: Weekly service patterns.
            calendar_dates: Service exceptions.

        Returns:
            Mapping from service id to its set of active dates.
        """
        active_dates: ActiveDateSet = {}

        for calendar in calendars:
            active_dates[calendar.service_id] = self.expand_calendar(calendar)

        for exception in calendar_dates:
            dates = active_dates.setdefault(exception.service_id, set())
            if exception.exception_type == ServiceCalendarDate.SERVICE_ADDED:
                dates.add(exception.date)
            elif exception.exception_type == ServiceCalendarDate.SERVICE_REMOVED:
                dates.discard(exception.date)
            else:
                logger.debug(
                    f"Ignoring exception type {exception.exception_type} for "
                    f"service {exception.service_id} on {exception.date}"
                )

        logger.debug(f"Expanded {len(active_dates)} service calendars")
        return active_dates

    def expand_feed(self, feed: GtfsFeed) -> ActiveDateSet:
        return self.expand(feed.all_calendars(), feed.all_calendar_dates())
