"""Validation engine: findings, calendar expansion and the individual validators."""

from gtfs_validation.validation.blocks import BlockOverlapDetector
from gtfs_validation.validation.calendar import CalendarExpander
from gtfs_validation.validation.findings import (
    DuplicateStopPair,
    Finding,
    Report,
    RuleCode,
)
from gtfs_validation.validation.routes import RouteFieldValidator
from gtfs_validation.validation.service import GtfsValidationService
from gtfs_validation.validation.shapes import (
    ShapeDirectionValidator,
    StopShapeDistanceValidator,
)
from gtfs_validation.validation.statistics import FeedStatistics
from gtfs_validation.validation.stops import DuplicateStopDetector
from gtfs_validation.validation.trips import BlockInterval, TripSequenceValidator

__all__ = [
    "BlockInterval",
    "BlockOverlapDetector",
    "CalendarExpander",
    "DuplicateStopDetector",
    "DuplicateStopPair",
    "FeedStatistics",
    "Finding",
    "GtfsValidationService",
    "Report",
    "RouteFieldValidator",
    "RuleCode",
    "ShapeDirectionValidator",
    "StopShapeDistanceValidator",
    "TripSequenceValidator",
]
