"""Script to run semantic validation checks on a GTFS feed."""

import argparse
import copy
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional

# Add project root to Python path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from gtfs_validation.feed import load_feed
from gtfs_validation.utils.config import get_config, load_config
from gtfs_validation.utils.helpers import get_setting, save_dataframe
from gtfs_validation.utils.logging import setup_logging
from gtfs_validation.validation import GtfsValidationService


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Validate a GTFS feed for duplicate stops, reversed shapes, "
        "overlapping blocks and inconsistent schedules"
    )
    parser.add_argument("gtfs_path", type=str, help="GTFS directory or .zip file")
    parser.add_argument(
        "--config",
        type=str,
        default=None,
        help="Path to YAML configuration file (default: config/config.yaml)",
    )
    parser.add_argument(
        "--buffer-distance",
        type=float,
        default=None,
        help="Distance in meters under which two stops are duplicates",
    )
    parser.add_argument(
        "--distance-multiplier",
        type=float,
        default=None,
        help="Multiplier for the reversed shape check (larger is stricter)",
    )
    parser.add_argument(
        "--output",
        type=str,
        default=None,
        help="Write findings to this CSV file",
    )
    parser.add_argument("--parallel", action="store_true", help="Run checks on a thread pool")
    parser.add_argument("--log-level", type=str, default=None, help="Logging level")
    return parser.parse_args(argv)


def build_config(args: argparse.Namespace) -> Dict[str, Any]:
    """Configuration for this run: the file's settings plus command line overrides.

    Overrides are applied to a copy; the cached `get_config()` dictionary is
    never modified.
    """
    config = copy.deepcopy(load_config(args.config) if args.config else get_config())
    validation = config.setdefault("validation", {})
    if args.buffer_distance is not None:
        validation.setdefault("duplicate_stops", {})["buffer_distance_meters"] = args.buffer_distance
    if args.distance_multiplier is not None:
        validation.setdefault("reversed_shapes", {})["distance_multiplier"] = args.distance_multiplier
    return config


def main(argv: Optional[List[str]] = None) -> int:
    args = parse_args(argv)
    config = build_config(args)

    setup_logging(
        log_level=args.log_level or get_setting(config, "logging.level", "INFO"),
        log_file=get_setting(config, "logging.file"),
    )

    print("=" * 80)
    print(f"Validating GTFS feed: {args.gtfs_path}")
    print("=" * 80)

    feed = load_feed(args.gtfs_path)
    service = GtfsValidationService(feed, config=config)

    stats = service.statistics()
    for key, value in stats.to_dict().items():
        print(f"  {key}: {value}")

    report = service.validate_all(parallel=args.parallel)
    print(report)

    if args.output:
        save_dataframe(report.to_dataframe(), args.output, format="csv")
        print(f"Findings written to {args.output}")

    return 0 if report.is_clean() else 1


if __name__ == "__main__":
    sys.exit(main())
