"""Summary statistics of a feed snapshot."""

from dataclasses import asdict, dataclass
from datetime import date
from typing import Any, Dict, List, Optional

from gtfs_validation.feed.accessor import GtfsFeed


@dataclass(frozen=True)
class FeedStatistics:
    """Entity counts and the calendar date range of a feed.

    The date range spans every calendar start/end date and every exception
    date; both ends are None when the feed has no calendar data.
    """

    agency_count: int
    route_count: int
    trip_count: int
    stop_count: int
    stop_time_count: int
    shape_count: int
    calendar_date_start: Optional[date]
    calendar_date_end: Optional[date]

    @classmethod
    def from_feed(cls, feed: GtfsFeed) -> "FeedStatistics":
        dates: List[date] = []
        for calendar in feed.all_calendars():
            dates.extend((calendar.start_date, calendar.end_date))
        dates.extend(exception.date for exception in feed.all_calendar_dates())

        return cls(
            agency_count=len(feed.all_agencies()),
            route_count=len(feed.all_routes()),
            trip_count=len(feed.all_trips()),
            stop_count=len(feed.all_stops()),
            stop_time_count=len(feed.all_stop_times()),
            shape_count=len({p.shape_id for p in feed.all_shape_points()}),
            calendar_date_start=min(dates) if dates else None,
            calendar_date_end=max(dates) if dates else None,
        )

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)
