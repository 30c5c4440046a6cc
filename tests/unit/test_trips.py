"""Unit tests for stop-time sequence, unused stop and duplicate trip checks."""

import pytest

from gtfs_validation.feed import (
    FeedIntegrityError,
    GtfsFeed,
    Stop,
    StopTime,
    Trip,
    parse_gtfs_time,
)
from gtfs_validation.validation.findings import RuleCode
from gtfs_validation.validation.trips import TripSequenceValidator, group_stop_times_by_trip


def st(trip_id, stop_id, arrival, departure, sequence):
    return StopTime(trip_id, stop_id, parse_gtfs_time(arrival), parse_gtfs_time(departure), sequence)


@pytest.fixture
def stops():
    return [Stop("S1", 38.90, -77.00), Stop("S2", 38.91, -77.00), Stop("S3", 38.92, -77.00)]


def _validate(**feed_kwargs):
    validator = TripSequenceValidator()
    return validator, validator.validate(GtfsFeed(**feed_kwargs))


def test_clean_trip(stops):
    _, report = _validate(
        stops=stops,
        trips=[Trip("T1", "R1", "S")],
        stop_times=[
            st("T1", "S1", "08:00:00", "08:00:00", 1),
            st("T1", "S2", "08:05:00", "08:06:00", 2),
            st("T1", "S3", "08:10:00", "08:10:00", 3),
        ],
    )
    assert report.is_clean()


def test_unused_stop(stops):
    _, report = _validate(
        stops=stops,
        trips=[Trip("T1", "R1", "S")],
        stop_times=[
            st("T1", "S1", "08:00:00", "08:00:00", 1),
            st("T1", "S2", "08:05:00", "08:05:00", 2),
        ],
    )
    assert [(f.rule, f.entity_id) for f in report] == [(RuleCode.UNUSED_STOP, "S3")]


def test_trip_without_stop_times(stops):
    _, report = _validate(
        stops=stops[:1],
        trips=[Trip("T1", "R1", "S"), Trip("T2", "R1", "S")],
        stop_times=[st("T1", "S1", "08:00:00", "08:00:00", 1)],
    )

    assert [(f.rule, f.entity_id) for f in report] == [(RuleCode.NO_STOP_TIMES_FOR_TRIP, "T2")]


def test_departure_before_arrival(stops):
    _, report = _validate(
        stops=stops[:2],
        trips=[Trip("T1", "R1", "S")],
        stop_times=[
            st("T1", "S1", "08:00:00", "08:00:00", 1),
            st("T1", "S2", "08:10:00", "08:09:00", 2),
        ],
    )

    assert [f.rule for f in report] == [RuleCode.DEPARTURE_BEFORE_ARRIVAL]
    assert report.findings[0].payload == {"stop_sequence": 2}


def test_only_first_out_of_sequence_reported(stops):
    _, report = _validate(
        stops=stops,
        trips=[Trip("T1", "R1", "S")],
        stop_times=[
            st("T1", "S1", "08:30:00", "08:30:00", 1),
            st("T1", "S2", "08:10:00", "08:10:00", 2),
            st("T1", "S3", "08:00:00", "08:00:00", 3),
        ],
    )

    out_of_sequence = report.by_rule(RuleCode.STOP_TIMES_OUT_OF_SEQUENCE)
    assert len(out_of_sequence) == 1
    assert out_of_sequence[0].payload == {"stop_sequence": 2, "previous_stop_sequence": 1}


def test_unset_times_are_not_compared(stops):
    """Test interpolated stops with no times never raise sequence findings."""
    _, report = _validate(
        stops=stops,
        trips=[Trip("T1", "R1", "S")],
        stop_times=[
            st("T1", "S1", "08:00:00", "08:00:00", 1),
            st("T1", "S2", "", "", 2),
            st("T1", "S3", "08:10:00", "08:10:00", 3),
        ],
    )
    assert report.is_clean()


def test_stop_times_sorted_by_sequence(stops):
    """Test file order does not matter, only stop_sequence does."""
    _, report = _validate(
        stops=stops[:2],
        trips=[Trip("T1", "R1", "S")],
        stop_times=[
            st("T1", "S2", "08:10:00", "08:10:00", 2),
            st("T1", "S1", "08:00:00", "08:00:00", 1),
        ],
    )
    assert report.is_clean()


def test_duplicate_trip(stops):
    times = [("S1", "08:00:00", 1), ("S2", "08:20:00", 2)]
    stop_times = [st(trip, s, t, t, seq) for trip in ("T1", "T2") for s, t, seq in times]

    _, report = _validate(
        stops=stops[:2],
        trips=[Trip("T1", "R1", "S", block_id="B1"), Trip("T2", "R2", "S", block_id="B1")],
        stop_times=stop_times,
    )

    duplicates = report.by_rule(RuleCode.DUPLICATE_TRIP)
    assert len(duplicates) == 1
    assert duplicates[0].entity_id == "T2"
    assert duplicates[0].payload == {"trip_ids": ["T1", "T2"]}
    assert "T1 & T2" in duplicates[0].message


def test_different_service_is_not_duplicate(stops):
    times = [("S1", "08:00:00", 1), ("S2", "08:20:00", 2)]
    stop_times = [st(trip, s, t, t, seq) for trip in ("T1", "T2") for s, t, seq in times]

    _, report = _validate(
        stops=stops[:2],
        trips=[Trip("T1", "R1", "WEEKDAY"), Trip("T2", "R1", "SATURDAY")],
        stop_times=stop_times,
    )
    assert report.by_rule(RuleCode.DUPLICATE_TRIP) == []


def test_block_intervals_collected(stops):
    validator, _ = _validate(
        stops=stops[:2],
        trips=[Trip("T1", "R1", "S", block_id="B1"), Trip("T2", "R1", "S")],
        stop_times=[
            st("T1", "S1", "08:00:00", "08:01:00", 1),
            st("T1", "S2", "08:20:00", "08:20:00", 2),
            st("T2", "S1", "09:00:00", "09:00:00", 1),
            st("T2", "S2", "09:20:00", "09:20:00", 2),
        ],
    )

    assert list(validator.block_intervals) == ["B1"]
    interval = validator.block_intervals["B1"][0]
    assert interval.trip_id == "T1"
    assert interval.start_time == parse_gtfs_time("08:01:00")
    assert interval.last_stop.stop_id == "S2"


def test_unknown_trip_reference_raises(stops):
    feed = GtfsFeed(
        stops=stops[:1],
        trips=[Trip("T1", "R1", "S")],
        stop_times=[st("GHOST", "S1", "08:00:00", "08:00:00", 1)],
    )

    with pytest.raises(FeedIntegrityError, match="unknown trip GHOST"):
        TripSequenceValidator().validate(feed)

    with pytest.raises(FeedIntegrityError):
        group_stop_times_by_trip(feed)
