"""
Pytest Configuration and Shared Fixtures for Traffic Pulse Backend Tests.

This module provides:
- FakeGateway: an AnalyticsGateway stand-in that serves canned rows per report
  name, records every call, and can be told to fail specific reports
- Canned report rows for one sample week (source/medium, events, channels,
  Search Console, leads, pages)
- Settings fixtures with and without Slack / assistant configuration
- Helpers for building mocked Anthropic responses

Async tests use pytest-asyncio; FastAPI routes are tested with TestClient and
app.dependency_overrides (see test_api.py).
"""

from types import SimpleNamespace
from typing import Any, Dict, List, Optional, Sequence, Tuple

import pytest

from pulse.core.config import Settings
from pulse.models.schemas import DateRange
from pulse.queries.reports import ReportQuery
from pulse.services.gateway import ReportRow


# ============================================================
# PYTEST HOOKS
# ============================================================

def pytest_configure(config) -> None:
    """
    Register custom markers.

    - slow: Marks tests as slow (deselect with -m "not slow")
    """
    config.addinivalue_line(
        'markers',
        'slow: marks tests as slow (deselect with -m "not slow")'
    )


# ============================================================
# FAKE GATEWAY
# ============================================================

class FakeGateway:
    """
    In-memory stand-in for AnalyticsGateway.

    Rows are looked up by ReportQuery.name. A name may map to a single list of
    rows, or to a dict keyed by (startDate, endDate) when a test needs
    different rows per period. Unknown reports return no rows.

    Attributes:
        calls: (query name, date range) for every run_report call, in order.
        failures: Report names that raise RuntimeError instead of returning rows.
    """

    property_name = "properties/123456"

    def __init__(
        self,
        reports: Optional[Dict[str, Any]] = None,
        failures: Sequence[str] = (),
    ):
        self.reports: Dict[str, Any] = dict(reports or {})
        self.failures = set(failures)
        self.calls: List[Tuple[str, DateRange]] = []
        self.queries: List[ReportQuery] = []

    async def run_report(self, date_range: DateRange, query: ReportQuery) -> List[ReportRow]:
        self.calls.append((query.name, date_range))
        self.queries.append(query)

        if query.name in self.failures:
            raise RuntimeError(f"{query.name} failed: property is not linked to Search Console")

        rows = self.reports.get(query.name, [])
        if isinstance(rows, dict):
            rows = rows.get((date_range.startDate, date_range.endDate), [])
        if query.limit is not None:
            rows = rows[:query.limit]
        return list(rows)

    def called(self, name: str) -> List[DateRange]:
        """Date ranges the named report was requested for."""
        return [date_range for query_name, date_range in self.calls if query_name == name]


# ============================================================
# SAMPLE REPORT ROWS
# ============================================================

def make_row(dimensions: Sequence[str] = (), metrics: Sequence[Any] = ()) -> ReportRow:
    """Build a ReportRow from plain values; metric values are stringified like the API's."""
    return ReportRow(
        dimension_values=[str(d) for d in dimensions],
        metric_values=[str(m) for m in metrics],
    )


@pytest.fixture
def sample_week() -> DateRange:
    return DateRange(startDate="2024-01-08", endDate="2024-01-14")


@pytest.fixture
def weekly_metrics_rows() -> List[ReportRow]:
    """
    WEEKLY_METRICS_REPORT rows for two days.

    metrics: activeUsers, newUsers, sessions, screenPageViews, bounceRate,
    engagementRate, conversions, averageSessionDuration
    """
    return [
        make_row(["20240108"], [100, 40, 120, 300, "0.5", "0.6", 5, "90.0"]),
        make_row(["20240109"], [200, 60, 240, 500, "0.3", "0.8", 7, "110.0"]),
    ]


@pytest.fixture
def search_console_rows() -> List[ReportRow]:
    """SEARCH_CONSOLE_DAILY_REPORT rows: impressions, clicks, ctr (0-1)."""
    return [
        make_row(["20240108"], [1000, 50, "0.05"]),
        make_row(["20240109"], [1000, 150, "0.15"]),
    ]


@pytest.fixture
def source_medium_rows() -> List[ReportRow]:
    """SOURCE_MEDIUM_REPORT rows: activeUsers, sessions, conversions."""
    return [
        make_row(["google", "organic"], [800, 1000, 20]),
        make_row(["google", "cpc"], [300, 400, 12]),
        make_row(["chatgpt.com", "referral"], [40, 50, 5]),
        make_row(["yelp.com", "referral"], [20, 30, 3]),
        make_row(["(direct)", "(none)"], [250, 300, 6]),
        make_row(["facebook.com", "referral"], [60, 70, 1]),
        make_row(["partner.example.com", "referral"], [10, 15, 0]),
        make_row(["newsletter", "email"], [5, 8, 0]),
    ]


@pytest.fixture
def source_medium_event_rows() -> List[ReportRow]:
    """SOURCE_MEDIUM_EVENTS_REPORT rows: source, medium, eventName -> eventCount."""
    return [
        make_row(["google", "organic", "form_submit"], [10]),
        make_row(["google", "organic", "phone_click"], [4]),
        make_row(["google", "organic", "page_view"], [5000]),
        make_row(["google", "cpc", "generate_lead"], [6]),
        make_row(["google", "cpc", "click_to_call"], [3]),
        make_row(["(direct)", "(none)", "tel_click"], [2]),
        make_row(["chatgpt.com", "referral", "contact_form_submit"], [1]),
    ]


@pytest.fixture
def channel_rows() -> List[ReportRow]:
    """CHANNEL_REPORT rows: activeUsers, sessions, conversions."""
    return [
        make_row(["Organic Search"], [800, 1000, 20]),
        make_row(["Paid Search"], [300, 400, 12]),
        make_row(["Direct"], [250, 300, 6]),
    ]


@pytest.fixture
def channel_event_rows() -> List[ReportRow]:
    """CHANNEL_EVENTS_REPORT rows: channel, eventName -> eventCount."""
    return [
        make_row(["Organic Search", "form_submit"], [10]),
        make_row(["Organic Search", "phone_click"], [4]),
        make_row(["Paid Search", "generate_lead"], [6]),
        make_row(["Paid Search", "click_to_call"], [3]),
        make_row(["Direct", "tel_click"], [2]),
        make_row(["Unassigned", "form_submit"], [1]),
        make_row(["Direct", "scroll"], [900]),
    ]


@pytest.fixture
def channel_click_rows() -> List[ReportRow]:
    """CHANNEL_SEARCH_CLICKS_REPORT rows: organic Google clicks per channel."""
    return [
        make_row(["Organic Search"], [200]),
        make_row(["Paid Search"], [0]),
    ]


@pytest.fixture
def week_reports(
    weekly_metrics_rows,
    search_console_rows,
    source_medium_rows,
    source_medium_event_rows,
    channel_rows,
    channel_event_rows,
    channel_click_rows,
) -> Dict[str, Any]:
    """Canned rows for every report the weekly report issues."""
    return {
        "weekly_metrics": weekly_metrics_rows,
        "search_console_daily": search_console_rows,
        "source_medium": source_medium_rows,
        "source_medium_events": source_medium_event_rows,
        "channel": channel_rows,
        "channel_events": channel_event_rows,
        "channel_search_clicks": channel_click_rows,
        "leads_by_source": [
            make_row(["google"], [32]),
            make_row([""], [3]),
        ],
        "leads_by_day": [
            make_row(["20240108"], [20]),
            make_row(["20240109"], [18]),
        ],
        "top_pages": [
            make_row(["/", "Home"], [900, "75.5"]),
            make_row(["/services", "Services"], [400, "120.0"]),
            make_row(["/contact", "Contact"], [150, "45.0"]),
        ],
        "traffic_sources": [
            make_row(["google", "organic"], [1000, 800]),
            make_row(["google", "cpc"], [400, 300]),
        ],
        "daily_metrics": [
            make_row(["20240108"], [100, 120, "0.5", 5, 300]),
            make_row(["20240109"], [200, 240, "0.3", 7, 500]),
        ],
        "aggregated_metrics": [
            make_row([], [300, 360, "0.4", 12, 800]),
        ],
    }


@pytest.fixture
def fake_gateway(week_reports) -> FakeGateway:
    """FakeGateway serving the sample week for any date range."""
    return FakeGateway(week_reports)


def flat_series_rows(value: float, days: int = 30, spike: Optional[Tuple[int, float]] = None) -> List[ReportRow]:
    """Anomaly series rows: one value per day from 2024-01-01, optionally with one spike."""
    rows = []
    for day in range(days):
        day_value = spike[1] if spike and spike[0] == day else value
        rows.append(make_row([f"202401{day + 1:02d}"], [day_value]))
    return rows


# ============================================================
# SETTINGS FIXTURES
# ============================================================

@pytest.fixture
def test_settings() -> Settings:
    """Settings with every integration configured."""
    return Settings(
        _env_file=None,
        ga_property_id="123456",
        anthropic_api_key="sk-ant-test",
        slack_webhook_url="https://hooks.slack.com/services/T000/B000/XXXX",
        assistant_max_tool_rounds=3,
    )


@pytest.fixture
def unconfigured_settings() -> Settings:
    """Settings with nothing configured."""
    return Settings(
        _env_file=None,
        ga_property_id="",
        anthropic_api_key=None,
        slack_webhook_url=None,
    )


# ============================================================
# ANTHROPIC RESPONSE HELPERS
# ============================================================

def text_block(text: str) -> SimpleNamespace:
    return SimpleNamespace(type="text", text=text)


def tool_use_block(tool_id: str, name: str, tool_input: Dict[str, Any]) -> SimpleNamespace:
    return SimpleNamespace(type="tool_use", id=tool_id, name=name, input=tool_input)


def assistant_message(*blocks: SimpleNamespace, stop_reason: str = "end_turn") -> SimpleNamespace:
    """Shape of anthropic.types.Message as far as the chat loop reads it."""
    return SimpleNamespace(content=list(blocks), stop_reason=stop_reason)
