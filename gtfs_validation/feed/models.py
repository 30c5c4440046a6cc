"""GTFS entity models consumed by the validators."""

from dataclasses import dataclass
from datetime import date
from typing import Optional, Tuple


@dataclass(frozen=True)
class Agency:
    """GTFS agency."""

    agency_id: str
    agency_name: str = ""


@dataclass(frozen=True)
class Route:
    """GTFS route."""

    route_id: str
    route_short_name: Optional[str] = None
    route_long_name: Optional[str] = None
    route_desc: Optional[str] = None
    route_type: int = 3
    agency_id: str = ""


@dataclass(frozen=True)
class Stop:
    """GTFS stop with coordinates.

    Stops are identified by the agency-qualified pair (agency_id, stop_id).
    """

    stop_id: str
    stop_lat: Optional[float]
    stop_lon: Optional[float]
    stop_name: str = ""
    agency_id: str = ""

    @property
    def qualified_id(self) -> Tuple[str, str]:
        return (self.agency_id, self.stop_id)


@dataclass(frozen=True)
class Trip:
    """GTFS trip."""

    trip_id: str
    route_id: str
    service_id: str
    block_id: Optional[str] = None
    shape_id: Optional[str] = None


@dataclass(frozen=True)
class StopTime:
    """GTFS stop time. Times are seconds since service-day start (may exceed 24h)."""

    trip_id: str
    stop_id: str
    arrival_time: Optional[int]
    departure_time: Optional[int]
    stop_sequence: int


@dataclass(frozen=True)
class ShapePoint:
    """One vertex of a GTFS shape."""

    shape_id: str
    shape_pt_lat: Optional[float]
    shape_pt_lon: Optional[float]
    shape_pt_sequence: int


@dataclass(frozen=True)
class ServiceCalendar:
    """Weekly service pattern over a date range."""

    service_id: str
    start_date: date
    end_date: date
    monday: bool = False
    tuesday: bool = False
    wednesday: bool = False
    thursday: bool = False
    friday: bool = False
    saturday: bool = False
    sunday: bool = False


@dataclass(frozen=True)
class ServiceCalendarDate:
    """Service exception. exception_type 1 adds the date, 2 removes it."""

    service_id: str
    date: date
    exception_type: int

    SERVICE_ADDED = 1
    SERVICE_REMOVED = 2
