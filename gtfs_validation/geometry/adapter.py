"""Geometry adapter: lat/lon projection, planar distance, buffering, spatial index.

Validators receive a `GeometryAdapter` instead of reaching for a shared geometry
factory, so tests can swap in a fixed projection.
"""

from typing import Any, Iterable, List, Optional, Sequence

import numpy as np
from pyproj import CRS, Transformer
from shapely.geometry import LineString, Point, box
from shapely.geometry.base import BaseGeometry
from shapely.strtree import STRtree

from gtfs_validation.utils.helpers import is_finite_coordinate


class CoordinateOutOfRange(ValueError):
    """Raised when a latitude/longitude pair cannot be projected."""

    def __init__(self, lat: Optional[float], lon: Optional[float], reason: str) -> None:
        self.lat = lat
        self.lon = lon
        self.reason = reason
        super().__init__(f"Cannot project ({lat}, {lon}): {reason}")


def utm_epsg_for(lat: float, lon: float) -> int:
    """Return the EPSG code of the WGS84 UTM zone containing a coordinate.

    Example:
        >>> utm_epsg_for(38.9, -77.0)
        32618
    """
    zone = min(int((lon + 180.0) // 6.0) + 1, 60)
    return (32600 if lat >= 0 else 32700) + zone


class GeometryAdapter:
    """Project WGS84 coordinates into a metric planar CRS and measure there.

    The adapter is immutable once constructed; one instance can be shared by
    every validator in a run.

    Attributes:
        crs: Target planar CRS.

    Example:
        >>> adapter = GeometryAdapter("EPSG:32618")
        >>> a = adapter.project_to_planar(38.9, -77.0)
        >>> b = adapter.project_to_planar(38.9001, -77.0)
        >>> round(adapter.distance(a, b))
        11
    """

    # Latitude band covered by UTM
    MIN_LATITUDE = -80.0
    MAX_LATITUDE = 84.0

    def __init__(self, crs: Any) -> None:
        self.crs = CRS.from_user_input(crs)
        self._transformer = Transformer.from_crs("EPSG:4326", self.crs, always_xy=True)

    @classmethod
    def for_coordinates(
        cls, lats: Iterable[Optional[float]], lons: Iterable[Optional[float]]
    ) -> "GeometryAdapter":
        """Build an adapter in the UTM zone of the mean of the given coordinates.

        Non-finite or missing coordinates are ignored. Falls back to zone 31N when
        no usable coordinate is supplied.
        """
        pairs = [
            (lat, lon)
            for lat, lon in zip(lats, lons)
            if is_finite_coordinate(lat, lon)
            and cls.MIN_LATITUDE <= lat <= cls.MAX_LATITUDE
            and -180.0 <= lon <= 180.0
        ]
        if not pairs:
            return cls(utm_epsg_for(0.0, 0.0))
        coords = np.array(pairs, dtype=float)
        mean_lat, mean_lon = coords.mean(axis=0)
        return cls(utm_epsg_for(float(mean_lat), float(mean_lon)))

    def project_to_planar(self, lat: Optional[float], lon: Optional[float]) -> Point:
        """Project a WGS84 coordinate to a planar point in meters.

        Raises:
            CoordinateOutOfRange: For missing or non-finite input, coordinates
                outside the supported band, or a failed transform.
        """
        if not is_finite_coordinate(lat, lon):
            raise CoordinateOutOfRange(lat, lon, "coordinate is missing or not finite")
        if not self.MIN_LATITUDE <= lat <= self.MAX_LATITUDE:
            raise CoordinateOutOfRange(lat, lon, "latitude outside supported zone")
        if not -180.0 <= lon <= 180.0:
            raise CoordinateOutOfRange(lat, lon, "longitude outside [-180, 180]")

        x, y = self._transformer.transform(lon, lat)
        if not (np.isfinite(x) and np.isfinite(y)):
            raise CoordinateOutOfRange(lat, lon, "projection produced no finite result")
        return Point(x, y)

    @staticmethod
    def distance(a: BaseGeometry, b: BaseGeometry) -> float:
        """Planar Euclidean distance between two geometries, in meters."""
        return float(a.distance(b))

    @staticmethod
    def buffer(point: Point, radius: float) -> BaseGeometry:
        """Return the envelope of a point buffered by `radius` meters."""
        return box(point.x - radius, point.y - radius, point.x + radius, point.y + radius)

    @staticmethod
    def line(points: Sequence[Point]) -> BaseGeometry:
        """Build a polyline through planar points (a single point stays a point)."""
        if len(points) == 1:
            return points[0]
        return LineString([(p.x, p.y) for p in points])


class SpatialIndex:
    """Two-phase spatial index over envelopes: insert everything, build, then query.

    Example:
        >>> index = SpatialIndex()
        >>> index.insert(Point(0, 0), "a")
        >>> index.build()
        >>> index.query(box(-1, -1, 1, 1))
        ['a']
    """

    def __init__(self) -> None:
        self._envelopes: List[BaseGeometry] = []
        self._payloads: List[Any] = []
        self._tree: Optional[STRtree] = None

    @property
    def is_built(self) -> bool:
        return self._tree is not None

    def insert(self, envelope: BaseGeometry, payload: Any) -> None:
        if self._tree is not None:
            raise RuntimeError("Cannot insert into a SpatialIndex after build()")
        self._envelopes.append(envelope.envelope)
        self._payloads.append(payload)

    def build(self) -> None:
        if self._tree is not None:
            raise RuntimeError("SpatialIndex already built")
        self._tree = STRtree(self._envelopes)

    def query(self, envelope: BaseGeometry) -> List[Any]:
        """Return payloads whose envelopes intersect `envelope`, in insertion order."""
        if self._tree is None:
            raise RuntimeError("SpatialIndex must be built before querying")
        indices = sorted(int(i) for i in self._tree.query(envelope))
        return [self._payloads[i] for i in indices]

    def __len__(self) -> int:
        return len(self._payloads)
