"""Stop-time sequence checks, unused-stop detection and duplicate-trip detection."""

from dataclasses import dataclass
from operator import attrgetter
from typing import Dict, List, Optional, Tuple

from gtfs_validation.feed.accessor import FeedIntegrityError, GtfsFeed
from gtfs_validation.feed.models import StopTime, Trip
from gtfs_validation.utils.helpers import format_gtfs_time
from gtfs_validation.utils.logging import get_logger
from gtfs_validation.validation.findings import Finding, Report, RuleCode

logger = get_logger(__name__)

TripSignature = Tuple[str, str, Optional[int], Optional[int], Tuple[str, ...]]


@dataclass(frozen=True)
class BlockInterval:
    """Time span of one trip operated within a block."""

    trip: Trip
    start_time: Optional[int]
    first_stop: StopTime
    last_stop: StopTime

    @property
    def trip_id(self) -> str:
        return self.trip.trip_id

    @property
    def service_id(self) -> str:
        return self.trip.service_id


def group_stop_times_by_trip(feed: GtfsFeed) -> Dict[str, List[StopTime]]:
    """Map trip id -> stop-times sorted by stop_sequence (stable on ties).

    Raises:
        FeedIntegrityError: If a stop-time references a trip id absent from
            the feed's trips.
    """
    trip_ids = {trip.trip_id for trip in feed.all_trips()}
    grouped: Dict[str, List[StopTime]] = {}

    for stop_time in feed.all_stop_times():
        if stop_time.trip_id not in trip_ids:
            raise FeedIntegrityError(
                f"Stop time (stop {stop_time.stop_id}, sequence "
                f"{stop_time.stop_sequence}) references unknown trip {stop_time.trip_id}"
            )
        grouped.setdefault(stop_time.trip_id, []).append(stop_time)

    for stop_times in grouped.values():
        stop_times.sort(key=attrgetter("stop_sequence"))

    return grouped


def trip_signature(trip: Trip, stop_times: List[StopTime]) -> TripSignature:
    """Canonical key under which two trips count as duplicates."""
    return (
        trip.service_id,
        trip.block_id or "",
        stop_times[0].departure_time,
        stop_times[-1].arrival_time,
        tuple(st.stop_id for st in stop_times),
    )


def _describe_signature(signature: TripSignature) -> str:
    service_id, block_id, departure, arrival, stop_ids = signature
    return "_".join(
        [
            service_id,
            block_id,
            format_gtfs_time(departure),
            format_gtfs_time(arrival),
            ",".join(stop_ids),
        ]
    )


class TripSequenceValidator:
    """Validate stop-time ordering per trip and detect duplicated trips.

    Running the validator also collects a `BlockInterval` for every trip that
    has stop-times and a non-empty block id, for the block overlap check.

    Example:
        >>> validator = TripSequenceValidator()
        >>> report = validator.validate(feed)
        >>> intervals = validator.block_intervals
    """

    def __init__(self) -> None:
        self.block_intervals: Dict[str, List[BlockInterval]] = {}

    def validate(self, feed: GtfsFeed) -> Report:
        report = Report()
        self.block_intervals = {}

        stop_times_by_trip = group_stop_times_by_trip(feed)

        self.check_unused_stops(feed, report)

        seen_signatures: Dict[TripSignature, str] = {}
        for trip in feed.all_trips():
            stop_times = stop_times_by_trip.get(trip.trip_id)
            if not stop_times:
                report.add(
                    Finding(
                        "trip",
                        "trip_id",
                        trip.trip_id,
                        RuleCode.NO_STOP_TIMES_FOR_TRIP,
                        f"Trip Id {trip.trip_id} has no stop times.",
                    )
                )
                continue

            self.check_sequence(trip, stop_times, report)

            if trip.block_id:
                self.block_intervals.setdefault(trip.block_id, []).append(
                    BlockInterval(
                        trip=trip,
                        start_time=stop_times[0].departure_time,
                        first_stop=stop_times[0],
                        last_stop=stop_times[-1],
                    )
                )

            self.check_duplicate(trip, stop_times, seen_signatures, report)

        logger.info(
            f"Trip validation checked {len(feed.all_trips())} trips: "
            f"{len(report)} findings, {len(self.block_intervals)} blocks"
        )
        return report

    def check_unused_stops(self, feed: GtfsFeed, report: Report) -> None:
        used_stop_ids = {st.stop_id for st in feed.all_stop_times()}
        for stop in feed.all_stops():
            if stop.stop_id not in used_stop_ids:
                report.add(
                    Finding(
                        "stop",
                        "stop_id",
                        stop.stop_id,
                        RuleCode.UNUSED_STOP,
                        f"Stop Id {stop.stop_id} is not used in any trips.",
                    )
                )

    def check_sequence(self, trip: Trip, stop_times: List[StopTime], report: Report) -> None:
        """Report departures before arrivals and the first out-of-sequence arrival.

        Unset times are never compared. An arrival is checked against the most
        recent earlier stop-time that has a departure time.
        """
        previous: Optional[StopTime] = None
        for stop_time in stop_times:
            arrival = stop_time.arrival_time
            departure = stop_time.departure_time

            if arrival is not None and departure is not None and departure < arrival:
                report.add(
                    Finding(
                        "stop_time",
                        "trip_id",
                        trip.trip_id,
                        RuleCode.DEPARTURE_BEFORE_ARRIVAL,
                        f"Trip Id {trip.trip_id} stop sequence "
                        f"{stop_time.stop_sequence} departs before arriving.",
                        {"stop_sequence": stop_time.stop_sequence},
                    )
                )

            if previous is not None and arrival is not None and arrival < previous.departure_time:
                report.add(
                    Finding(
                        "stop_time",
                        "trip_id",
                        trip.trip_id,
                        RuleCode.STOP_TIMES_OUT_OF_SEQUENCE,
                        f"Trip Id {trip.trip_id} stop sequence {stop_time.stop_sequence} "
                        f"arrives before departing {previous.stop_sequence}",
                        {
                            "stop_sequence": stop_time.stop_sequence,
                            "previous_stop_sequence": previous.stop_sequence,
                        },
                    )
                )
                # Only the first violation per trip is reported
                break

            if departure is not None:
                previous = stop_time

    def check_duplicate(
        self,
        trip: Trip,
        stop_times: List[StopTime],
        seen_signatures: Dict[TripSignature, str],
        report: Report,
    ) -> None:
        signature = trip_signature(trip, stop_times)
        original_trip_id = seen_signatures.get(signature)
        if original_trip_id is None:
            seen_signatures[signature] = trip.trip_id
            return

        report.add(
            Finding(
                "trip",
                "trip_id",
                trip.trip_id,
                RuleCode.DUPLICATE_TRIP,
                f"Trip Ids {original_trip_id} & {trip.trip_id} are duplicates "
                f"({_describe_signature(signature)})",
                {"trip_ids": [original_trip_id, trip.trip_id]},
            )
        )
