"""Unit tests for duplicate stop detection."""

import math

import pytest

from gtfs_validation.feed import GtfsFeed, Stop
from gtfs_validation.geometry import GeometryAdapter
from gtfs_validation.validation.findings import DuplicateStopPair, RuleCode
from gtfs_validation.validation.stops import DuplicateStopDetector

METERS_PER_DEGREE_LAT = 111_000.0
BASE_LAT, BASE_LON = 38.9, -77.0


def _north_of_base(meters):
    return BASE_LAT + meters / METERS_PER_DEGREE_LAT


@pytest.fixture(scope="module")
def adapter():
    return GeometryAdapter("EPSG:32618")


@pytest.fixture
def close_pair():
    """Two stops ~1.5 m apart."""
    return [
        Stop("S1", BASE_LAT, BASE_LON, agency_id="AG"),
        Stop("S2", _north_of_base(1.5), BASE_LON, agency_id="AG"),
    ]


def test_negative_buffer_rejected(adapter):
    with pytest.raises(ValueError):
        DuplicateStopDetector(adapter, buffer_distance=-1.0)


def test_pair_within_buffer(adapter, close_pair):
    report = DuplicateStopDetector(adapter, buffer_distance=2.0).detect(GtfsFeed(stops=close_pair))

    assert len(report) == 1
    finding = report.findings[0]
    assert finding.rule == RuleCode.DUPLICATE_STOPS
    assert finding.entity_id == "S1,S2"
    assert isinstance(finding.payload, DuplicateStopPair)
    assert finding.payload.distance == pytest.approx(1.5, abs=0.05)
    assert finding.payload.stop1_agency_id == "AG"


def test_pair_outside_buffer(adapter, close_pair):
    report = DuplicateStopDetector(adapter, buffer_distance=1.0).detect(GtfsFeed(stops=close_pair))
    assert report.is_clean()


def test_pair_reported_once_regardless_of_order(adapter, close_pair):
    forward = DuplicateStopDetector(adapter).detect(GtfsFeed(stops=close_pair))
    backward = DuplicateStopDetector(adapter).detect(GtfsFeed(stops=list(reversed(close_pair))))

    assert len(forward) == len(backward) == 1
    assert {forward.findings[0].payload.stop1_id, forward.findings[0].payload.stop2_id} == {
        backward.findings[0].payload.stop1_id,
        backward.findings[0].payload.stop2_id,
    }


def test_stop_shared_between_pairs(adapter):
    """Test a stop close to two others appears in two distinct pairs."""
    stops = [
        Stop("A", _north_of_base(-1.0), BASE_LON),
        Stop("B", BASE_LAT, BASE_LON),
        Stop("C", _north_of_base(1.0), BASE_LON),
    ]

    report = DuplicateStopDetector(adapter, buffer_distance=1.5).detect(GtfsFeed(stops=stops))

    assert sorted(f.entity_id for f in report) == ["A,B", "B,C"]


def test_same_stop_id_different_agencies(adapter):
    """Test stop ids are qualified by agency."""
    stops = [
        Stop("S1", BASE_LAT, BASE_LON, agency_id="METRO"),
        Stop("S1", _north_of_base(0.5), BASE_LON, agency_id="CIRCULATOR"),
    ]

    report = DuplicateStopDetector(adapter).detect(GtfsFeed(stops=stops))

    assert len(report) == 1
    assert report.findings[0].payload.to_dict()["stop1_agency_id"] == "METRO"


def test_missing_coordinates(adapter, close_pair):
    stops = close_pair + [Stop("S3", None, BASE_LON), Stop("S4", BASE_LAT, math.nan)]

    report = DuplicateStopDetector(adapter).detect(GtfsFeed(stops=stops))

    missing = report.by_rule(RuleCode.MISSING_COORDINATES)
    assert [f.entity_id for f in missing] == ["S3", "S4"]
    assert len(report.by_rule(RuleCode.DUPLICATE_STOPS)) == 1


def test_coordinate_out_of_range(adapter, close_pair):
    stops = close_pair + [Stop("POLE", 89.9, 0.0)]

    report = DuplicateStopDetector(adapter).detect(GtfsFeed(stops=stops))

    assert [f.entity_id for f in report.by_rule(RuleCode.COORDINATE_OUT_OF_RANGE)] == ["POLE"]
    assert len(report.by_rule(RuleCode.DUPLICATE_STOPS)) == 1


def test_far_apart_stops(adapter):
    stops = [Stop("S1", BASE_LAT, BASE_LON), Stop("S2", _north_of_base(50.0), BASE_LON)]
    assert DuplicateStopDetector(adapter).detect(GtfsFeed(stops=stops)).is_clean()


def test_repeated_stop_id_keeps_each_row_location(adapter, caplog):
    """Test two rows sharing an id are each compared at their own coordinates."""
    stops = [
        Stop("X", _north_of_base(50.5), BASE_LON, agency_id="AG"),
        Stop("S1", BASE_LAT, BASE_LON, agency_id="AG"),
        Stop("S1", _north_of_base(50.0), BASE_LON, agency_id="AG"),
        Stop("S2", _north_of_base(1.5), BASE_LON, agency_id="AG"),
    ]

    report = DuplicateStopDetector(adapter).detect(GtfsFeed(stops=stops))

    assert [f.entity_id for f in report] == ["X,S1", "S1,S2"]
    distances = [f.payload.distance for f in report]
    assert distances[0] == pytest.approx(0.5, abs=0.05)
    assert distances[1] == pytest.approx(1.5, abs=0.05)
    assert "appears more than once" in caplog.text
