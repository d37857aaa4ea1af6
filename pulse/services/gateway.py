"""
Analytics Data Gateway.

Thin async wrapper around the GA4 Data API (google-analytics-data) that turns a
ReportQuery into a runReport request and returns rows as plain positional
string lists.

Row contract:
    A ReportRow carries dimension values and metric values in the order the
    ReportQuery requested them. Consumers read them by index, never by name.
    Missing dimension values read as "" and missing metric values as "0", so a
    short or malformed row degrades to zeros instead of raising.

Numeric parsing:
    - Integer metrics: parsed leniently; "12.0" -> 12, garbage -> 0
    - Float metrics: parsed as float; garbage -> 0.0
    - Ratio metrics (bounceRate, engagementRate, CTR): float * 100

The gateway is created once per process (see pulse/core/client.py) and passed
explicitly into every service function.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, List

from google.analytics.data_v1beta.types import (
    DateRange as GADateRange,
    Dimension,
    Metric,
    OrderBy,
    RunReportRequest,
)

from pulse.models.schemas import DateRange
from pulse.queries.reports import ReportQuery

logger = logging.getLogger(__name__)


# =============================================================================
# Lenient Value Parsing
# =============================================================================


def parse_int(value: Any) -> int:
    """
    Parse an integer metric value without raising.

    Decimal strings are truncated toward zero; anything unparseable is 0.
    """
    try:
        return int(value)
    except (TypeError, ValueError):
        try:
            return int(float(value))
        except (TypeError, ValueError, OverflowError):
            return 0


def parse_float(value: Any) -> float:
    """Parse a float metric value, 0.0 when unparseable."""
    try:
        return float(value)
    except (TypeError, ValueError):
        return 0.0


def parse_ratio(value: Any) -> float:
    """Parse a 0-1 ratio metric and scale it to a 0-100 percentage."""
    return parse_float(value) * 100


# =============================================================================
# Report Rows
# =============================================================================


@dataclass
class ReportRow:
    """One runReport row, addressed positionally."""

    dimension_values: List[str] = field(default_factory=list)
    metric_values: List[str] = field(default_factory=list)

    def dimension(self, index: int) -> str:
        if index < len(self.dimension_values):
            return self.dimension_values[index] or ""
        return ""

    def metric(self, index: int) -> str:
        if index < len(self.metric_values):
            return self.metric_values[index] or "0"
        return "0"

    def int_metric(self, index: int) -> int:
        return parse_int(self.metric(index))

    def float_metric(self, index: int) -> float:
        return parse_float(self.metric(index))

    def ratio_metric(self, index: int) -> float:
        return parse_ratio(self.metric(index))


# =============================================================================
# Gateway
# =============================================================================


class AnalyticsGateway:
    """
    Issues report queries against one GA4 property.

    Attributes:
        client: BetaAnalyticsDataAsyncClient (or any object with an async
            run_report(request=...) method).
        property_name: "properties/<id>".
    """

    def __init__(self, client: Any, property_name: str):
        self.client = client
        self.property_name = property_name

    def build_request(self, date_range: DateRange, query: ReportQuery) -> RunReportRequest:
        """Translate a ReportQuery into a RunReportRequest."""
        order_bys: List[OrderBy] = []
        if query.order_by_metric:
            order_bys.append(OrderBy(
                metric=OrderBy.MetricOrderBy(metric_name=query.order_by_metric),
                desc=query.desc,
            ))
        if query.order_by_dimension:
            order_bys.append(OrderBy(
                dimension=OrderBy.DimensionOrderBy(dimension_name=query.order_by_dimension),
            ))

        request = RunReportRequest(
            property=self.property_name,
            date_ranges=[GADateRange(start_date=date_range.startDate, end_date=date_range.endDate)],
            dimensions=[Dimension(name=name) for name in query.dimensions],
            metrics=[Metric(name=name) for name in query.metrics],
            order_bys=order_bys,
        )
        if query.limit is not None:
            request.limit = query.limit
        return request

    async def run_report(self, date_range: DateRange, query: ReportQuery) -> List[ReportRow]:
        """
        Run one report and return its rows.

        Args:
            date_range: Reporting window (ISO dates or relative tokens).
            query: Report shape from pulse.queries.

        Returns:
            Rows in API order. Empty list when the report has no rows.

        Raises:
            google.api_core.exceptions.GoogleAPICallError: On any API failure.
                Callers decide whether a report is optional.
        """
        request = self.build_request(date_range, query)
        response = await self.client.run_report(request=request)

        rows = [
            ReportRow(
                dimension_values=[value.value for value in row.dimension_values],
                metric_values=[value.value for value in row.metric_values],
            )
            for row in response.rows
        ]
        logger.debug(
            f"Report {query.name} [{date_range.startDate}..{date_range.endDate}] returned {len(rows)} rows"
        )
        return rows
