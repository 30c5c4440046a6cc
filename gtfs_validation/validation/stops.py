"""Spatial detection of near-coincident (duplicate) stops."""

from typing import List, Set, Tuple

from shapely.geometry import Point

from gtfs_validation.feed.accessor import GtfsFeed
from gtfs_validation.feed.models import Stop
from gtfs_validation.geometry.adapter import CoordinateOutOfRange, GeometryAdapter, SpatialIndex
from gtfs_validation.utils.helpers import is_finite_coordinate
from gtfs_validation.utils.logging import get_logger
from gtfs_validation.validation.findings import (
    DuplicateStopPair,
    Finding,
    Report,
    RuleCode,
    pair_key,
)

logger = get_logger(__name__)

QualifiedId = Tuple[str, str]


class DuplicateStopDetector:
    """Find stops within `buffer_distance` meters of each other.

    Stops are projected once, inserted into a spatial index, and the index is
    built before any query runs. Each unordered pair of agency-qualified stop
    ids is reported at most once.

    Attributes:
        geometry: Adapter used for projection and distance.
        buffer_distance: Maximum distance in meters for two stops to be duplicates.

    Example:
        >>> detector = DuplicateStopDetector(adapter, buffer_distance=2.0)
        >>> report = detector.detect(feed)
    """

    def __init__(self, geometry: GeometryAdapter, buffer_distance: float = 2.0) -> None:
        if buffer_distance < 0:
            raise ValueError(f"buffer_distance must be non-negative, got {buffer_distance}")
        self.geometry = geometry
        self.buffer_distance = float(buffer_distance)

    def detect(self, feed: GtfsFeed) -> Report:
        report = Report()

        indexed: List[Tuple[Stop, Point]] = []
        seen_ids: Set[QualifiedId] = set()
        index = SpatialIndex()

        for stop in feed.all_stops():
            point = self._project(stop, report)
            if point is None:
                continue
            if stop.qualified_id in seen_ids:
                logger.warning(
                    f"Stop {stop.stop_id} (agency '{stop.agency_id}') appears more than once; "
                    f"each row is compared at its own coordinates"
                )
            seen_ids.add(stop.qualified_id)
            # Payload is the row position in `indexed`
            index.insert(point, len(indexed))
            indexed.append((stop, point))

        index.build()

        reported: Set[Tuple[QualifiedId, QualifiedId]] = set()
        for stop, point in indexed:
            envelope = self.geometry.buffer(point, self.buffer_distance)
            for position in index.query(envelope):
                candidate, candidate_point = indexed[position]
                if candidate.qualified_id == stop.qualified_id:
                    continue
                key = pair_key(stop.qualified_id, candidate.qualified_id)
                if key in reported:
                    continue

                distance = self.geometry.distance(point, candidate_point)
                if distance <= self.buffer_distance:
                    reported.add(key)
                    pair = DuplicateStopPair(
                        stop1_id=stop.stop_id,
                        stop2_id=candidate.stop_id,
                        distance=distance,
                        stop1_agency_id=stop.agency_id,
                        stop2_agency_id=candidate.agency_id,
                    )
                    report.add(
                        Finding(
                            "stop",
                            "stop_lat,stop_lon",
                            pair.stop_ids,
                            RuleCode.DUPLICATE_STOPS,
                            str(pair),
                            pair,
                        )
                    )

        logger.info(
            f"Duplicate stop search over {len(indexed)} stops "
            f"(buffer {self.buffer_distance}m): {len(reported)} duplicate pairs"
        )
        return report

    def _project(self, stop: Stop, report: Report):
        if not is_finite_coordinate(stop.stop_lat, stop.stop_lon):
            report.add(
                Finding(
                    "stop",
                    "stop_lat,stop_lon",
                    stop.stop_id,
                    RuleCode.MISSING_COORDINATES,
                    f"Stop {stop.stop_id} is missing coordinates",
                )
            )
            return None
        try:
            return self.geometry.project_to_planar(stop.stop_lat, stop.stop_lon)
        except CoordinateOutOfRange as e:
            logger.warning(f"Skipping stop {stop.stop_id}: {e}")
            report.add(
                Finding(
                    "stop",
                    "stop_lat,stop_lon",
                    stop.stop_id,
                    RuleCode.COORDINATE_OUT_OF_RANGE,
                    f"Stop {stop.stop_id}: {e.reason}",
                    {"lat": e.lat, "lon": e.lon},
                )
            )
            return None
