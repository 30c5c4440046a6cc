"""Geometry Adapter: planar projection, distance, buffering and spatial indexing."""

from gtfs_validation.geometry.adapter import (
    CoordinateOutOfRange,
    GeometryAdapter,
    SpatialIndex,
    utm_epsg_for,
)

__all__ = ["CoordinateOutOfRange", "GeometryAdapter", "SpatialIndex", "utm_epsg_for"]
