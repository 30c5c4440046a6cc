"""Field-level rule checks on route records."""

from gtfs_validation.feed.accessor import GtfsFeed
from gtfs_validation.feed.models import Route
from gtfs_validation.utils.helpers import normalize_text
from gtfs_validation.utils.logging import get_logger
from gtfs_validation.validation.findings import Finding, Report, RuleCode

logger = get_logger(__name__)


class RouteFieldValidator:
    """Check route names, descriptions and types.

    Attributes:
        max_short_name_length: Longest accepted route_short_name.
        route_type_min: Lowest valid route_type.
        route_type_max: Highest valid route_type.
    """

    def __init__(
        self,
        max_short_name_length: int = 6,
        route_type_min: int = 0,
        route_type_max: int = 7,
    ) -> None:
        self.max_short_name_length = max_short_name_length
        self.route_type_min = route_type_min
        self.route_type_max = route_type_max

    def validate(self, feed: GtfsFeed) -> Report:
        """Validate every route, in feed order."""
        report = Report()
        routes = feed.all_routes()
        for route in routes:
            self.check_route(route, report)
        logger.info(f"Route validation checked {len(routes)} routes: {len(report)} findings")
        return report

    def check_route(self, route: Route, report: Report) -> None:
        route_id = route.route_id
        short_name = normalize_text(route.route_short_name)
        long_name = normalize_text(route.route_long_name)
        desc = normalize_text(route.route_desc)

        if not short_name and not long_name:
            report.add(
                Finding(
                    "route",
                    "route_short_name,route_long_name",
                    route_id,
                    RuleCode.ROUTE_SHORT_AND_LONG_NAMES_ARE_BLANK,
                )
            )

        if len(short_name) > self.max_short_name_length:
            report.add(
                Finding(
                    "route",
                    "route_short_name",
                    route_id,
                    RuleCode.ROUTE_SHORT_NAME_TOO_LONG,
                    f"route_short_name is {len(short_name)} chars ('{short_name}')",
                    {"length": len(short_name)},
                )
            )

        if short_name and long_name and short_name in long_name:
            report.add(
                Finding(
                    "route",
                    "route_short_name,route_long_name",
                    route_id,
                    RuleCode.ROUTE_LONG_NAME_CONTAINS_SHORT_NAME,
                    f"'{long_name}' contains '{short_name}'",
                )
            )

        if desc and desc in (short_name, long_name):
            report.add(
                Finding(
                    "route",
                    "route_short_name,route_long_name,route_desc",
                    route_id,
                    RuleCode.ROUTE_DESCRIPTION_SAME_AS_NAME,
                )
            )

        if not self.route_type_min <= route.route_type <= self.route_type_max:
            report.add(
                Finding(
                    "route",
                    "route_type",
                    route_id,
                    RuleCode.ROUTE_TYPE_INVALID,
                    f"route_type is {route.route_type}",
                    {"route_type": route.route_type},
                )
            )
