"""Finding and Report containers returned by every validator."""

from collections import Counter
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Iterator, List, Optional, Tuple

import pandas as pd


class RuleCode(str, Enum):
    """Rule identifiers attached to findings."""

    ROUTE_SHORT_AND_LONG_NAMES_ARE_BLANK = "RouteShortAndLongNamesAreBlank"
    ROUTE_SHORT_NAME_TOO_LONG = "ValidateRouteShortNameIsTooLong"
    ROUTE_LONG_NAME_CONTAINS_SHORT_NAME = "ValidateRouteLongNameContainShortName"
    ROUTE_DESCRIPTION_SAME_AS_NAME = "ValidateRouteDescriptionSameAsRouteName"
    ROUTE_TYPE_INVALID = "ValidateRouteTypeInvalidValid"
    UNUSED_STOP = "UnusedStop"
    NO_STOP_TIMES_FOR_TRIP = "NoStopTimesForTrip"
    DEPARTURE_BEFORE_ARRIVAL = "StopTimeDepartureBeforeArrival"
    STOP_TIMES_OUT_OF_SEQUENCE = "StopTimesOutOfSequence"
    DUPLICATE_TRIP = "DuplicateTrip"
    OVERLAPPING_TRIPS_IN_BLOCK = "OverlappingTripsInBlock"
    DUPLICATE_STOPS = "DuplicateStops"
    MISSING_SHAPE = "MissingShape"
    MISSING_COORDINATES = "MissingCoordinates"
    REVERSED_TRIP_SHAPE = "ReversedTripShape"
    COORDINATE_OUT_OF_RANGE = "CoordinateOutOfRange"
    STOP_TOO_FAR_FROM_SHAPE = "StopTooFarFromShape"

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class DuplicateStopPair:
    """Payload of a DuplicateStops finding."""

    stop1_id: str
    stop2_id: str
    distance: float
    stop1_agency_id: str = ""
    stop2_agency_id: str = ""

    @property
    def stop_ids(self) -> str:
        return f"{self.stop1_id},{self.stop2_id}"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "stop1_id": self.stop1_id,
            "stop2_id": self.stop2_id,
            "stop1_agency_id": self.stop1_agency_id,
            "stop2_agency_id": self.stop2_agency_id,
            "distance": self.distance,
        }

    def __str__(self) -> str:
        return f"Stops {self.stop1_id} & {self.stop2_id} are {self.distance:.2f}m apart"


@dataclass(frozen=True)
class Finding:
    """One reported validation issue.

    Attributes:
        entity_type: GTFS entity the finding is about ("route", "stop", "trip", ...).
        field_names: Affected field name(s), comma separated.
        entity_id: Identifier of the affected entity (or entities).
        rule: Rule code.
        message: Human-readable detail.
        payload: Optional structured detail, e.g. a DuplicateStopPair.
    """

    entity_type: str
    field_names: str
    entity_id: str
    rule: RuleCode
    message: str = ""
    payload: Optional[Any] = None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to a plain dictionary for serialization."""
        payload = self.payload
        if hasattr(payload, "to_dict"):
            payload = payload.to_dict()
        return {
            "entity_type": self.entity_type,
            "field_names": self.field_names,
            "entity_id": self.entity_id,
            "rule": self.rule.value,
            "message": self.message,
            "payload": payload,
        }

    def __str__(self) -> str:
        return f"{self.rule.value} [{self.entity_type} {self.entity_id}] {self.message}".rstrip()


@dataclass
class Report:
    """Ordered, append-only sequence of findings."""

    findings: List[Finding] = field(default_factory=list)

    def add(self, finding: Finding) -> None:
        self.findings.append(finding)

    def extend(self, other: "Report") -> None:
        """Append every finding of another report, keeping its order."""
        self.findings.extend(other.findings)

    def by_rule(self, rule: RuleCode) -> List[Finding]:
        return [f for f in self.findings if f.rule == rule]

    def rule_counts(self) -> Dict[str, int]:
        """Number of findings per rule code, in first-seen order."""
        return dict(Counter(f.rule.value for f in self.findings))

    def is_clean(self) -> bool:
        return not self.findings

    def to_dicts(self) -> List[Dict[str, Any]]:
        return [f.to_dict() for f in self.findings]

    def to_dataframe(self) -> pd.DataFrame:
        """Tabulate findings, one row per finding. Payloads are kept as objects."""
        columns = ["entity_type", "field_names", "entity_id", "rule", "message", "payload"]
        return pd.DataFrame(self.to_dicts(), columns=columns)

    def summary(self) -> str:
        if self.is_clean():
            return "Validation passed with no findings"
        counts = ", ".join(f"{rule}: {n}" for rule, n in self.rule_counts().items())
        return f"Validation produced {len(self.findings)} finding(s) ({counts})"

    def __len__(self) -> int:
        return len(self.findings)

    def __iter__(self) -> Iterator[Finding]:
        return iter(self.findings)

    def __str__(self) -> str:
        lines = [self.summary()]
        lines.extend(str(f) for f in self.findings)
        return "\n".join(lines)


def pair_key(a: Tuple[str, str], b: Tuple[str, str]) -> Tuple[Tuple[str, str], Tuple[str, str]]:
    """Canonical unordered key for a pair of agency-qualified identifiers."""
    return (a, b) if a <= b else (b, a)
