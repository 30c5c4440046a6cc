"""Shape checks: reversed trip shapes and stops lying away from their shape."""

from typing import Dict, Iterable, List, Optional, Set, Tuple, TypeVar

from shapely.geometry import Point
from shapely.geometry.base import BaseGeometry

from gtfs_validation.feed.accessor import GtfsFeed
from gtfs_validation.feed.models import ShapePoint, Stop, StopTime, Trip
from gtfs_validation.geometry.adapter import CoordinateOutOfRange, GeometryAdapter
from gtfs_validation.utils.helpers import is_finite_coordinate
from gtfs_validation.utils.logging import get_logger
from gtfs_validation.validation.findings import Finding, Report, RuleCode

logger = get_logger(__name__)

T = TypeVar("T")


def _terminals(items: Iterable[T], group, sequence) -> Tuple[Dict[str, T], Dict[str, T]]:
    """Lowest- and highest-sequence item per group in one pass.

    A later item with an equal sequence number replaces the recorded extreme.
    """
    first: Dict[str, T] = {}
    last: Dict[str, T] = {}
    for item in items:
        key = group(item)
        current = first.get(key)
        if current is None or sequence(item) <= sequence(current):
            first[key] = item
        current = last.get(key)
        if current is None or sequence(item) >= sequence(current):
            last[key] = item
    return first, last


def terminal_stop_times(
    stop_times: Iterable[StopTime],
) -> Tuple[Dict[str, StopTime], Dict[str, StopTime]]:
    """First and last stop-time per trip id."""
    return _terminals(stop_times, lambda st: st.trip_id, lambda st: st.stop_sequence)


def terminal_shape_points(
    shape_points: Iterable[ShapePoint],
) -> Tuple[Dict[str, ShapePoint], Dict[str, ShapePoint]]:
    """First and last point per shape id."""
    return _terminals(shape_points, lambda p: p.shape_id, lambda p: p.shape_pt_sequence)


class ShapeDirectionValidator:
    """Flag trips whose shape appears to run in the opposite direction.

    A trip is reported when its first stop lies farther from the shape's start
    than `distance_multiplier` times its distance to the shape's end, and its
    last stop likewise lies farther from the shape's end than from its start.

    Attributes:
        geometry: Adapter used for projection and distance.
        distance_multiplier: Factor applied to the "wrong end" distances; larger
            values make the check stricter.
    """

    def __init__(self, geometry: GeometryAdapter, distance_multiplier: float = 1.0) -> None:
        if distance_multiplier < 0:
            raise ValueError(
                f"distance_multiplier must be non-negative, got {distance_multiplier}"
            )
        self.geometry = geometry
        self.distance_multiplier = float(distance_multiplier)

    def validate(self, feed: GtfsFeed) -> Report:
        report = Report()

        first_stops, last_stops = terminal_stop_times(feed.all_stop_times())
        first_points, last_points = terminal_shape_points(feed.all_shape_points())
        stops_by_id: Dict[str, Stop] = {stop.stop_id: stop for stop in feed.all_stops()}
        projected: Dict[Tuple[str, str], Point] = {}

        for trip in feed.all_trips():
            if not trip.shape_id:
                report.add(
                    Finding(
                        "trip",
                        "shape_id",
                        trip.trip_id,
                        RuleCode.MISSING_SHAPE,
                        f"Trip {trip.trip_id} is missing a shape",
                    )
                )
                continue

            shape_start = first_points.get(trip.shape_id)
            shape_end = last_points.get(trip.shape_id)
            if shape_start is None or shape_end is None:
                report.add(
                    Finding(
                        "trip",
                        "shape_id",
                        trip.trip_id,
                        RuleCode.MISSING_SHAPE,
                        f"Trip {trip.trip_id} references shape {trip.shape_id} "
                        f"which has no points",
                    )
                )
                continue

            first_stop = self._resolve_stop(first_stops.get(trip.trip_id), stops_by_id)
            last_stop = self._resolve_stop(last_stops.get(trip.trip_id), stops_by_id)
            if (
                first_stop is None
                or last_stop is None
                or not is_finite_coordinate(shape_start.shape_pt_lat, shape_start.shape_pt_lon)
                or not is_finite_coordinate(shape_end.shape_pt_lat, shape_end.shape_pt_lon)
            ):
                report.add(
                    Finding(
                        "trip",
                        "shape_id",
                        trip.trip_id,
                        RuleCode.MISSING_COORDINATES,
                        f"Trip {trip.trip_id} is missing coordinates",
                    )
                )
                continue

            try:
                first_stop_pt = self._project(
                    projected, ("stop", first_stop.stop_id), first_stop.stop_lat, first_stop.stop_lon
                )
                last_stop_pt = self._project(
                    projected, ("stop", last_stop.stop_id), last_stop.stop_lat, last_stop.stop_lon
                )
                start_pt = self._project(
                    projected,
                    ("shape_start", trip.shape_id),
                    shape_start.shape_pt_lat,
                    shape_start.shape_pt_lon,
                )
                end_pt = self._project(
                    projected,
                    ("shape_end", trip.shape_id),
                    shape_end.shape_pt_lat,
                    shape_end.shape_pt_lon,
                )
            except CoordinateOutOfRange as e:
                logger.warning(f"Skipping shape direction check for trip {trip.trip_id}: {e}")
                report.add(
                    Finding(
                        "trip",
                        "shape_id",
                        trip.trip_id,
                        RuleCode.COORDINATE_OUT_OF_RANGE,
                        f"Trip {trip.trip_id}: {e.reason}",
                        {"lat": e.lat, "lon": e.lon},
                    )
                )
                continue

            if self.is_reversed(first_stop_pt, last_stop_pt, start_pt, end_pt):
                report.add(
                    Finding(
                        "trip",
                        "shape_id",
                        trip.trip_id,
                        RuleCode.REVERSED_TRIP_SHAPE,
                        f"Trip {trip.trip_id} references reversed shape {trip.shape_id}",
                        {"shape_id": trip.shape_id},
                    )
                )

        logger.info(
            f"Shape direction check (multiplier {self.distance_multiplier}) over "
            f"{len(feed.all_trips())} trips: {len(report)} findings"
        )
        return report

    def is_reversed(
        self, first_stop: Point, last_stop: Point, shape_start: Point, shape_end: Point
    ) -> bool:
        first_to_start = self.geometry.distance(first_stop, shape_start)
        first_to_end = self.geometry.distance(first_stop, shape_end)
        last_to_end = self.geometry.distance(last_stop, shape_end)
        last_to_start = self.geometry.distance(last_stop, shape_start)
        return (
            first_to_start > first_to_end * self.distance_multiplier
            and last_to_end > last_to_start * self.distance_multiplier
        )

    @staticmethod
    def _resolve_stop(
        stop_time: Optional[StopTime], stops_by_id: Dict[str, Stop]
    ) -> Optional[Stop]:
        if stop_time is None:
            return None
        stop = stops_by_id.get(stop_time.stop_id)
        if stop is None or not is_finite_coordinate(stop.stop_lat, stop.stop_lon):
            return None
        return stop

    def _project(self, cache: Dict[Tuple[str, str], Point], key, lat, lon) -> Point:
        point = cache.get(key)
        if point is None:
            point = self.geometry.project_to_planar(lat, lon)
            cache[key] = point
        return point


class StopShapeDistanceValidator:
    """Flag stops lying more than `max_distance` meters from their trip's shape.

    Each (shape id, stop id) pair is reported once, against the first trip that
    exposes it. Trips without a usable shape are skipped; the shape direction
    check reports those.
    """

    def __init__(self, geometry: GeometryAdapter, max_distance: float = 130.0) -> None:
        if max_distance < 0:
            raise ValueError(f"max_distance must be non-negative, got {max_distance}")
        self.geometry = geometry
        self.max_distance = float(max_distance)

    def validate(self, feed: GtfsFeed) -> Report:
        report = Report()

        shape_lines = self._build_shape_lines(feed.all_shape_points(), report)
        stops_by_id: Dict[str, Stop] = {stop.stop_id: stop for stop in feed.all_stops()}
        stop_points: Dict[str, Optional[Point]] = {}

        stop_times_by_trip: Dict[str, List[StopTime]] = {}
        for stop_time in feed.all_stop_times():
            stop_times_by_trip.setdefault(stop_time.trip_id, []).append(stop_time)

        reported: Set[Tuple[str, str]] = set()
        for trip in feed.all_trips():
            line = shape_lines.get(trip.shape_id) if trip.shape_id else None
            if line is None:
                continue
            for stop_time in sorted(
                stop_times_by_trip.get(trip.trip_id, []), key=lambda st: st.stop_sequence
            ):
                key = (trip.shape_id, stop_time.stop_id)
                if key in reported:
                    continue
                point = self._stop_point(stop_time.stop_id, stops_by_id, stop_points)
                if point is None:
                    continue
                distance = self.geometry.distance(point, line)
                if distance > self.max_distance:
                    reported.add(key)
                    report.add(self._finding(trip, stop_time.stop_id, distance))

        logger.info(
            f"Stop-to-shape distance check (max {self.max_distance}m): {len(report)} findings"
        )
        return report

    def _finding(self, trip: Trip, stop_id: str, distance: float) -> Finding:
        return Finding(
            "stop",
            "stop_lat,stop_lon",
            stop_id,
            RuleCode.STOP_TOO_FAR_FROM_SHAPE,
            f"Stop {stop_id} is {distance:.1f}m from shape {trip.shape_id} "
            f"(trip {trip.trip_id})",
            {"shape_id": trip.shape_id, "trip_id": trip.trip_id, "distance": distance},
        )

    def _build_shape_lines(
        self, shape_points: Iterable[ShapePoint], report: Report
    ) -> Dict[str, BaseGeometry]:
        grouped: Dict[str, List[ShapePoint]] = {}
        for point in shape_points:
            grouped.setdefault(point.shape_id, []).append(point)

        lines: Dict[str, BaseGeometry] = {}
        for shape_id, points in grouped.items():
            points.sort(key=lambda p: p.shape_pt_sequence)
            try:
                planar = [
                    self.geometry.project_to_planar(p.shape_pt_lat, p.shape_pt_lon)
                    for p in points
                ]
            except CoordinateOutOfRange as e:
                logger.warning(f"Skipping shape {shape_id}: {e}")
                report.add(
                    Finding(
                        "shape",
                        "shape_pt_lat,shape_pt_lon",
                        shape_id,
                        RuleCode.COORDINATE_OUT_OF_RANGE,
                        f"Shape {shape_id}: {e.reason}",
                        {"lat": e.lat, "lon": e.lon},
                    )
                )
                continue
            lines[shape_id] = self.geometry.line(planar)
        return lines

    def _stop_point(
        self,
        stop_id: str,
        stops_by_id: Dict[str, Stop],
        cache: Dict[str, Optional[Point]],
    ) -> Optional[Point]:
        if stop_id in cache:
            return cache[stop_id]
        stop = stops_by_id.get(stop_id)
        point = None
        if stop is not None:
            try:
                point = self.geometry.project_to_planar(stop.stop_lat, stop.stop_lon)
            except CoordinateOutOfRange as e:
                logger.debug(f"Stop {stop_id} cannot be projected: {e}")
        cache[stop_id] = point
        return point
