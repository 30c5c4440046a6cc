"""Detection of temporally overlapping trips that share a vehicle block."""

from datetime import date
from typing import List, Mapping, Optional, Set, Tuple

from gtfs_validation.utils.logging import get_logger
from gtfs_validation.validation.findings import Finding, Report, RuleCode
from gtfs_validation.validation.trips import BlockInterval

logger = get_logger(__name__)


def _time_range(interval: BlockInterval) -> Optional[Tuple[int, int]]:
    """First-stop arrival to last-stop departure, or None if either is unset."""
    start = interval.first_stop.arrival_time
    end = interval.last_stop.departure_time
    if start is None or end is None:
        return None
    return start, end


def intervals_overlap(a: BlockInterval, b: BlockInterval) -> bool:
    """True if the two trips' time ranges overlap (touching ends do not count)."""
    range_a = _time_range(a)
    range_b = _time_range(b)
    if range_a is None or range_b is None:
        return False
    start_a, end_a = range_a
    start_b, end_b = range_b
    return not (end_a <= start_b or end_b <= start_a)


def share_active_date(dates_a: Set[date], dates_b: Set[date]) -> bool:
    """True on the first date common to both sets."""
    smaller, larger = (dates_a, dates_b) if len(dates_a) <= len(dates_b) else (dates_b, dates_a)
    return any(day in larger for day in smaller)


class BlockOverlapDetector:
    """Report pairs of trips in one block that run at the same time on the same day.

    Trips with the same service id overlap whenever their time ranges do. Trips
    with different service ids are only reported if the two services have at
    least one active date in common, so weekday and weekend variants of a
    block do not collide.

    Example:
        >>> detector = BlockOverlapDetector()
        >>> report = detector.detect(trip_validator.block_intervals, active_dates)
    """

    def detect(
        self,
        block_intervals: Mapping[str, List[BlockInterval]],
        active_dates: Mapping[str, Set[date]],
    ) -> Report:
        report = Report()
        for block_id, intervals in block_intervals.items():
            self.check_block(block_id, intervals, active_dates, report)
        logger.info(
            f"Block overlap check covered {len(block_intervals)} blocks: "
            f"{len(report)} findings"
        )
        return report

    def check_block(
        self,
        block_id: str,
        intervals: List[BlockInterval],
        active_dates: Mapping[str, Set[date]],
        report: Report,
    ) -> None:
        ordered = sorted(
            intervals,
            key=lambda i: (i.start_time is None, i.start_time if i.start_time is not None else 0),
        )

        for position, first in enumerate(ordered):
            for second in ordered[position + 1 :]:
                if first.trip_id == second.trip_id:
                    continue
                if not intervals_overlap(first, second):
                    continue
                if first.service_id != second.service_id and not share_active_date(
                    active_dates.get(first.service_id, set()),
                    active_dates.get(second.service_id, set()),
                ):
                    continue

                report.add(
                    Finding(
                        "trip",
                        "block_id",
                        block_id,
                        RuleCode.OVERLAPPING_TRIPS_IN_BLOCK,
                        f"Trip Ids {first.trip_id} & {second.trip_id} overlap and "
                        f"share block Id {block_id}",
                        {"block_id": block_id, "trip_ids": [first.trip_id, second.trip_id]},
                    )
                )

