"""In-memory, read-only feed snapshot exposing entity collections."""

from typing import Iterable, Optional, Tuple

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


class FeedIntegrityError(ValueError):
    """Raised when a feed snapshot violates its referential-integrity contract."""


class GtfsFeed:
    """Immutable snapshot of a GTFS feed.

    Every collection is copied into a tuple on construction, so validators can
    share one instance without coordinating.

    Example:
        >>> feed = GtfsFeed(stops=[Stop("S1", 38.9, -77.0)])
        >>> len(feed.all_stops())
        1
    """

    def __init__(
        self,
        agencies: Optional[Iterable[Agency]] = None,
        routes: Optional[Iterable[Route]] = None,
        stops: Optional[Iterable[Stop]] = None,
        trips: Optional[Iterable[Trip]] = None,
        stop_times: Optional[Iterable[StopTime]] = None,
        shape_points: Optional[Iterable[ShapePoint]] = None,
        calendars: Optional[Iterable[ServiceCalendar]] = None,
        calendar_dates: Optional[Iterable[ServiceCalendarDate]] = None,
    ) -> None:
        self._agencies = tuple(agencies or ())
        self._routes = tuple(routes or ())
        self._stops = tuple(stops or ())
        self._trips = tuple(trips or ())
        self._stop_times = tuple(stop_times or ())
        self._shape_points = tuple(shape_points or ())
        self._calendars = tuple(calendars or ())
        self._calendar_dates = tuple(calendar_dates or ())

    def all_agencies(self) -> Tuple[Agency, ...]:
        return self._agencies

    def all_routes(self) -> Tuple[Route, ...]:
        return self._routes

    def all_stops(self) -> Tuple[Stop, ...]:
        return self._stops

    def all_trips(self) -> Tuple[Trip, ...]:
        return self._trips

    def all_stop_times(self) -> Tuple[StopTime, ...]:
        return self._stop_times

    def all_shape_points(self) -> Tuple[ShapePoint, ...]:
        return self._shape_points

    def all_calendars(self) -> Tuple[ServiceCalendar, ...]:
        return self._calendars

    def all_calendar_dates(self) -> Tuple[ServiceCalendarDate, ...]:
        return self._calendar_dates

    def __repr__(self) -> str:
        return (
            f"GtfsFeed(routes={len(self._routes)}, stops={len(self._stops)}, "
            f"trips={len(self._trips)}, stop_times={len(self._stop_times)})"
        )
