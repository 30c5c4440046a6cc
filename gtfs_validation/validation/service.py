"""Validation engine entry points over one feed snapshot.

This module provides the GtfsValidationService class, which wires the feed,
the geometry adapter and the configuration into each validator and returns
their findings as Reports.
"""

from concurrent.futures import ThreadPoolExecutor
from itertools import chain
from typing import Any, Callable, Dict, List, Optional

from gtfs_validation.feed.accessor import GtfsFeed
from gtfs_validation.geometry.adapter import GeometryAdapter
from gtfs_validation.utils.config import get_config
from gtfs_validation.utils.helpers import get_setting
from gtfs_validation.utils.logging import get_logger
from gtfs_validation.validation.blocks import BlockOverlapDetector
from gtfs_validation.validation.calendar import ActiveDateSet, CalendarExpander
from gtfs_validation.validation.findings import Report
from gtfs_validation.validation.routes import RouteFieldValidator
from gtfs_validation.validation.shapes import (
    ShapeDirectionValidator,
    StopShapeDistanceValidator,
)
from gtfs_validation.validation.statistics import FeedStatistics
from gtfs_validation.validation.stops import DuplicateStopDetector
from gtfs_validation.validation.trips import TripSequenceValidator

logger = get_logger(__name__)


class GtfsValidationService:
    """Run semantic validation checks against a feed snapshot.

    Every check is a pure function of the feed: nothing is written back to feed
    entities, and calling a check twice yields the same findings in the same
    order.

    Attributes:
        feed: The feed snapshot under validation.
        config: Configuration dictionary (defaults to `get_config()`).

    Example:
        >>> service = GtfsValidationService(load_feed("data/gtfs.zip"))
        >>> report = service.validate_trips()
        >>> print(report.summary())
    """

    def __init__(
        self,
        feed: GtfsFeed,
        geometry: Optional[GeometryAdapter] = None,
        config: Optional[Dict[str, Any]] = None,
    ) -> None:
        self.feed = feed
        self.config = config if config is not None else get_config()
        self._geometry = geometry

        self.max_short_name_length: int = get_setting(
            self.config, "validation.routes.max_short_name_length", 6
        )
        self.route_type_min: int = get_setting(self.config, "validation.routes.route_type_min", 0)
        self.route_type_max: int = get_setting(self.config, "validation.routes.route_type_max", 7)
        self.weekday_policy: str = get_setting(
            self.config, "validation.calendar.weekday_policy", "first_match"
        )
        self.buffer_distance: float = get_setting(
            self.config, "validation.duplicate_stops.buffer_distance_meters", 2.0
        )
        self.distance_multiplier: float = get_setting(
            self.config, "validation.reversed_shapes.distance_multiplier", 1.0
        )
        self.max_stop_shape_distance: float = get_setting(
            self.config, "validation.stops_away_from_shape.max_distance_meters", 130.0
        )
        self.max_workers: int = get_setting(self.config, "validation.parallel.max_workers", 4)

    @property
    def geometry(self) -> GeometryAdapter:
        """Geometry adapter, built from the feed's coordinates on first use."""
        if self._geometry is None:
            stops = self.feed.all_stops()
            points = self.feed.all_shape_points()
            self._geometry = GeometryAdapter.for_coordinates(
                chain((s.stop_lat for s in stops), (p.shape_pt_lat for p in points)),
                chain((s.stop_lon for s in stops), (p.shape_pt_lon for p in points)),
            )
            logger.info(f"Using planar CRS {self._geometry.crs.to_string()}")
        return self._geometry

    def validate_routes(self) -> Report:
        """Field-level checks on every route."""
        validator = RouteFieldValidator(
            max_short_name_length=self.max_short_name_length,
            route_type_min=self.route_type_min,
            route_type_max=self.route_type_max,
        )
        return validator.validate(self.feed)

    def expand_service_calendars(self) -> ActiveDateSet:
        """Service id -> active dates, after exceptions."""
        return CalendarExpander(self.weekday_policy).expand_feed(self.feed)

    def validate_trips(self) -> Report:
        """Unused stops, stop-time sequences, duplicate trips, block overlaps and
        reversed shapes, in that order.

        Raises:
            FeedIntegrityError: If a stop-time references an unknown trip.
        """
        report = Report()

        trip_validator = TripSequenceValidator()
        report.extend(trip_validator.validate(self.feed))

        active_dates = self.expand_service_calendars()
        report.extend(BlockOverlapDetector().detect(trip_validator.block_intervals, active_dates))

        report.extend(self.find_reversed_trip_shapes())
        return report

    def find_duplicate_stops(self, buffer_distance: Optional[float] = None) -> Report:
        """Stops closer than `buffer_distance` meters (configured default 2.0)."""
        if buffer_distance is None:
            buffer_distance = self.buffer_distance
        return DuplicateStopDetector(self.geometry, buffer_distance).detect(self.feed)

    def find_reversed_trip_shapes(self, distance_multiplier: Optional[float] = None) -> Report:
        """Trips whose shape runs opposite to their stops (configured default 1.0)."""
        if distance_multiplier is None:
            distance_multiplier = self.distance_multiplier
        return ShapeDirectionValidator(self.geometry, distance_multiplier).validate(self.feed)

    def list_stops_away_from_shape(self, max_distance: Optional[float] = None) -> Report:
        """Stops farther than `max_distance` meters from their trip's shape."""
        if max_distance is None:
            max_distance = self.max_stop_shape_distance
        return StopShapeDistanceValidator(self.geometry, max_distance).validate(self.feed)

    def statistics(self) -> FeedStatistics:
        return FeedStatistics.from_feed(self.feed)

    def validate_all(self, parallel: bool = False) -> Report:
        """Run every check and concatenate the findings in a fixed order.

        Args:
            parallel: Run the independent checks on a thread pool. Output order
                is the same either way.

        Returns:
            Combined report: routes, trips, duplicate stops, stops away from shape.
        """
        checks: List[Callable[[], Report]] = [
            self.validate_routes,
            self.validate_trips,
            self.find_duplicate_stops,
            self.list_stops_away_from_shape,
        ]
        logger.info(f"Validating {self.feed!r} ({'parallel' if parallel else 'sequential'})")

        if parallel:
            # Build the shared adapter before workers race to create it
            _ = self.geometry
            with ThreadPoolExecutor(max_workers=self.max_workers) as pool:
                futures = [pool.submit(check) for check in checks]
                reports = [future.result() for future in futures]
        else:
            reports = [check() for check in checks]

        combined = Report()
        for report in reports:
            combined.extend(report)

        logger.info(combined.summary())
        return combined
