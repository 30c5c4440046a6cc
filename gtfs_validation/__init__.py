"""Semantic validation engine for GTFS transit feeds."""

__version__ = "0.1.0"
