"""Unit tests for helpers module."""

import math

import pandas as pd
import pytest

from gtfs_validation.utils.helpers import (
    format_gtfs_time,
    get_setting,
    is_finite_coordinate,
    normalize_text,
    save_dataframe,
)


def test_normalize_text():
    """Test trimming and case folding."""
    assert normalize_text("  Red LINE ") == "red line"
    assert normalize_text(None) == ""
    assert normalize_text("   ") == ""


@pytest.mark.parametrize(
    "lat,lon,expected",
    [
        (38.9, -77.0, True),
        (None, -77.0, False),
        (38.9, None, False),
        (math.nan, -77.0, False),
        (38.9, math.inf, False),
    ],
)
def test_is_finite_coordinate(lat, lon, expected):
    """Test coordinate presence/finiteness guard."""
    assert is_finite_coordinate(lat, lon) is expected


def test_format_gtfs_time():
    """Test times past midnight keep counting hours."""
    assert format_gtfs_time(0) == "00:00:00"
    assert format_gtfs_time(8 * 3600 + 30 * 60) == "08:30:00"
    assert format_gtfs_time(90061) == "25:01:01"
    assert format_gtfs_time(None) == ""


def test_get_setting():
    """Test dotted lookups with defaults."""
    config = {"validation": {"routes": {"max_short_name_length": 8, "unset": None}}}

    assert get_setting(config, "validation.routes.max_short_name_length") == 8
    assert get_setting(config, "validation.routes.route_type_max", 7) == 7
    assert get_setting(config, "validation.routes.unset", 3) == 3
    assert get_setting(config, "validation.routes.max_short_name_length.deeper", "x") == "x"
    assert get_setting({}, "logging.level", "INFO") == "INFO"


def test_save_dataframe_csv(tmp_path):
    """Test CSV output creates parent directories."""
    df = pd.DataFrame({"rule": ["UnusedStop"], "entity_id": ["S1"]})
    path = tmp_path / "out" / "findings.csv"

    save_dataframe(df, str(path))

    assert path.exists()
    assert pd.read_csv(path)["entity_id"].tolist() == ["S1"]


def test_save_dataframe_unsupported_format(tmp_path):
    """Test unsupported formats are rejected."""
    with pytest.raises(ValueError, match="Unsupported format"):
        save_dataframe(pd.DataFrame(), str(tmp_path / "x.xlsx"), format="xlsx")
