"""Feed Accessor: entity models, the in-memory snapshot, and the GTFS loader."""

from gtfs_validation.feed.accessor import FeedIntegrityError, GtfsFeed
from gtfs_validation.feed.loader import (
    FeedLoadError,
    load_feed,
    parse_gtfs_date,
    parse_gtfs_time,
)
from gtfs_validation.feed.models import (
    Agency,
    Route,
    ServiceCalendar,
    ServiceCalendarDate,
    ShapePoint,
    Stop,
    StopTime,
    Trip,
)

__all__ = [
    "Agency",
    "FeedIntegrityError",
    "FeedLoadError",
    "GtfsFeed",
    "Route",
    "ServiceCalendar",
    "ServiceCalendarDate",
    "ShapePoint",
    "Stop",
    "StopTime",
    "Trip",
    "load_feed",
    "parse_gtfs_date",
    "parse_gtfs_time",
]
