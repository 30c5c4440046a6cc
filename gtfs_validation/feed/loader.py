"""Load a GTFS directory or zip archive into a GtfsFeed snapshot.

Tables are read with pandas as strings so identifiers keep leading zeros, then
converted into the frozen entity models in `gtfs_validation.feed.models`.
"""

import zipfile
from datetime import date, datetime
from pathlib import Path
from typing import Dict, List, Optional, Union

import pandas as pd

from gtfs_validation.feed.accessor import GtfsFeed
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
from gtfs_validation.utils.logging import get_logger

logger = get_logger(__name__)

REQUIRED_FILES = ("stops.txt", "routes.txt", "trips.txt", "stop_times.txt")
OPTIONAL_FILES = ("agency.txt", "shapes.txt", "calendar.txt", "calendar_dates.txt")

REQUIRED_COLUMNS: Dict[str, List[str]] = {
    "agency.txt": ["agency_name"],
    "stops.txt": ["stop_id", "stop_lat", "stop_lon"],
    "routes.txt": ["route_id", "route_type"],
    "trips.txt": ["route_id", "service_id", "trip_id"],
    "stop_times.txt": [
        "trip_id",
        "arrival_time",
        "departure_time",
        "stop_id",
        "stop_sequence",
    ],
    "shapes.txt": ["shape_id", "shape_pt_lat", "shape_pt_lon", "shape_pt_sequence"],
    "calendar.txt": [
        "service_id",
        "monday",
        "tuesday",
        "wednesday",
        "thursday",
        "friday",
        "saturday",
        "sunday",
        "start_date",
        "end_date",
    ],
    "calendar_dates.txt": ["service_id", "date", "exception_type"],
}

WEEKDAY_COLUMNS = (
    "monday",
    "tuesday",
    "wednesday",
    "thursday",
    "friday",
    "saturday",
    "sunday",
)


class FeedLoadError(ValueError):
    """Raised when a GTFS source cannot be read into a feed snapshot."""


def parse_gtfs_time(value: Optional[str]) -> Optional[int]:
    """Parse a GTFS time (H:MM:SS or HH:MM:SS, hours may exceed 24) into seconds.

    Args:
        value: Time string; empty or None means the time is not set.

    Returns:
        Seconds since service-day start, or None for an empty value.

    Raises:
        ValueError: If the value is not a valid GTFS time.

    Example:
        >>> parse_gtfs_time("25:30:00")
        91800
    """
    if value is None:
        return None
    text = str(value).strip()
    if not text:
        return None
    parts = text.split(":")
    if len(parts) != 3:
        raise ValueError(f"Invalid GTFS time: '{value}'")
    hours, minutes, seconds = (int(part) for part in parts)
    if hours < 0 or not 0 <= minutes < 60 or not 0 <= seconds < 60:
        raise ValueError(f"Invalid GTFS time: '{value}'")
    return hours * 3600 + minutes * 60 + seconds


def parse_gtfs_date(value: str) -> date:
    """Parse a GTFS service date (YYYYMMDD).

    Raises:
        ValueError: If the value is not a valid date.
    """
    return datetime.strptime(str(value).strip(), "%Y%m%d").date()


def _optional_text(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def _optional_float(value: Optional[str]) -> Optional[float]:
    number = pd.to_numeric(value, errors="coerce")
    if pd.isna(number):
        return None
    return float(number)


class _TableSource:
    """Reads GTFS tables from a directory or a zip archive."""

    def __init__(self, path: Path) -> None:
        self.path = path
        self.is_zip = path.is_file() and zipfile.is_zipfile(path)

    def names(self) -> List[str]:
        if self.is_zip:
            with zipfile.ZipFile(self.path) as archive:
                return [Path(name).name for name in archive.namelist()]
        return [p.name for p in self.path.iterdir() if p.is_file()]

    def read(self, name: str) -> pd.DataFrame:
        try:
            if self.is_zip:
                with zipfile.ZipFile(self.path) as archive:
                    member = next(
                        m for m in archive.namelist() if Path(m).name == name
                    )
                    with archive.open(member) as handle:
                        df = pd.read_csv(
                            handle,
                            dtype=str,
                            keep_default_na=False,
                            encoding="utf-8-sig",
                        )
            else:
                df = pd.read_csv(
                    self.path / name,
                    dtype=str,
                    keep_default_na=False,
                    encoding="utf-8-sig",
                )
        except pd.errors.EmptyDataError as e:
            raise FeedLoadError(f"GTFS file {name} is empty") from e
        except pd.errors.ParserError as e:
            raise FeedLoadError(f"Parser error in GTFS file {name}: {e}") from e

        df.columns = [str(c).strip() for c in df.columns]
        missing = sorted(set(REQUIRED_COLUMNS.get(name, [])) - set(df.columns))
        if missing:
            raise FeedLoadError(f"GTFS file {name} missing required columns: {missing}")
        return df


def load_feed(gtfs_path: Union[str, Path]) -> GtfsFeed:
    """Load a GTFS feed from a directory or zip archive.

    Args:
        gtfs_path: Path to a folder of GTFS .txt files or a GTFS .zip.

    Returns:
        GtfsFeed snapshot of the feed.

    Raises:
        FeedLoadError: If the source is missing, a required file is absent,
            a file is empty or unparsable, or a value cannot be converted.

    Example:
        >>> feed = load_feed("data/gtfs.zip")
        >>> print(f"Loaded {len(feed.all_trips())} trips")
    """
    path = Path(gtfs_path)
    if not path.exists():
        raise FeedLoadError(f"GTFS source not found: {path}")

    source = _TableSource(path)
    available = set(source.names())

    missing_files = [name for name in REQUIRED_FILES if name not in available]
    if missing_files:
        raise FeedLoadError(f"Missing GTFS files in {path}: {', '.join(missing_files)}")

    tables: Dict[str, pd.DataFrame] = {}
    for name in REQUIRED_FILES + OPTIONAL_FILES:
        if name in available:
            tables[name] = source.read(name)
            logger.debug(f"Read {len(tables[name])} rows from {name}")

    try:
        agencies = _build_agencies(tables.get("agency.txt"))
        default_agency = agencies[0].agency_id if agencies else ""
        feed = GtfsFeed(
            agencies=agencies,
            routes=_build_routes(tables["routes.txt"], default_agency),
            stops=_build_stops(tables["stops.txt"], default_agency),
            trips=_build_trips(tables["trips.txt"]),
            stop_times=_build_stop_times(tables["stop_times.txt"]),
            shape_points=_build_shape_points(tables.get("shapes.txt")),
            calendars=_build_calendars(tables.get("calendar.txt")),
            calendar_dates=_build_calendar_dates(tables.get("calendar_dates.txt")),
        )
    except ValueError as e:
        raise FeedLoadError(f"Invalid value in GTFS feed {path}: {e}") from e

    logger.info(f"Loaded GTFS feed from {path}: {feed!r}")
    return feed


def _build_agencies(df: Optional[pd.DataFrame]) -> List[Agency]:
    if df is None:
        return []
    return [
        Agency(
            agency_id=str(row.get("agency_id", "")).strip(),
            agency_name=str(row.get("agency_name", "")).strip(),
        )
        for row in df.to_dict("records")
    ]


def _build_routes(df: pd.DataFrame, default_agency: str) -> List[Route]:
    routes = []
    for row in df.to_dict("records"):
        route_type = pd.to_numeric(row["route_type"], errors="coerce")
        routes.append(
            Route(
                route_id=row["route_id"].strip(),
                route_short_name=_optional_text(row.get("route_short_name")),
                route_long_name=_optional_text(row.get("route_long_name")),
                route_desc=_optional_text(row.get("route_desc")),
                # Unparsable route types fall outside every valid range
                route_type=-1 if pd.isna(route_type) else int(route_type),
                agency_id=_optional_text(row.get("agency_id")) or default_agency,
            )
        )
    return routes


def _build_stops(df: pd.DataFrame, default_agency: str) -> List[Stop]:
    return [
        Stop(
            stop_id=row["stop_id"].strip(),
            stop_lat=_optional_float(row["stop_lat"]),
            stop_lon=_optional_float(row["stop_lon"]),
            stop_name=str(row.get("stop_name", "")).strip(),
            agency_id=default_agency,
        )
        for row in df.to_dict("records")
    ]


def _build_trips(df: pd.DataFrame) -> List[Trip]:
    return [
        Trip(
            trip_id=row["trip_id"].strip(),
            route_id=row["route_id"].strip(),
            service_id=row["service_id"].strip(),
            block_id=_optional_text(row.get("block_id")),
            shape_id=_optional_text(row.get("shape_id")),
        )
        for row in df.to_dict("records")
    ]


def _build_stop_times(df: pd.DataFrame) -> List[StopTime]:
    return [
        StopTime(
            trip_id=row["trip_id"].strip(),
            stop_id=row["stop_id"].strip(),
            arrival_time=parse_gtfs_time(row["arrival_time"]),
            departure_time=parse_gtfs_time(row["departure_time"]),
            stop_sequence=int(row["stop_sequence"]),
        )
        for row in df.to_dict("records")
    ]


def _build_shape_points(df: Optional[pd.DataFrame]) -> List[ShapePoint]:
    if df is None:
        return []
    return [
        ShapePoint(
            shape_id=row["shape_id"].strip(),
            shape_pt_lat=_optional_float(row["shape_pt_lat"]),
            shape_pt_lon=_optional_float(row["shape_pt_lon"]),
            shape_pt_sequence=int(row["shape_pt_sequence"]),
        )
        for row in df.to_dict("records")
    ]


def _build_calendars(df: Optional[pd.DataFrame]) -> List[ServiceCalendar]:
    if df is None:
        return []
    calendars = []
    for row in df.to_dict("records"):
        flags = {day: str(row[day]).strip() == "1" for day in WEEKDAY_COLUMNS}
        calendars.append(
            ServiceCalendar(
                service_id=row["service_id"].strip(),
                start_date=parse_gtfs_date(row["start_date"]),
                end_date=parse_gtfs_date(row["end_date"]),
                **flags,
            )
        )
    return calendars


def _build_calendar_dates(df: Optional[pd.DataFrame]) -> List[ServiceCalendarDate]:
    if df is None:
        return []
    return [
        ServiceCalendarDate(
            service_id=row["service_id"].strip(),
            date=parse_gtfs_date(row["date"]),
            exception_type=int(row["exception_type"]),
        )
        for row in df.to_dict("records")
    ]
