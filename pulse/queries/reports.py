"""
Report Definitions for the Analytics Data API.

Each ReportQuery names the dimensions and metrics one runReport call requests,
plus its ordering and row limit. The aggregator reads response rows
positionally, so the order of `dimensions` and `metrics` here is the contract
between a report and the code that consumes it: every consumer documents the
indices it reads next to the report it uses.

Reports:
    DAILY_METRICS_REPORT: core metrics per day (get_metrics)
    AGGREGATED_METRICS_REPORT: core metrics for the whole range
    WEEKLY_METRICS_REPORT: full daily metrics for the weekly dashboard
    SEARCH_CONSOLE_DAILY_REPORT: organic Google Search metrics per day (optional)
    SOURCE_MEDIUM_REPORT: users/sessions/conversions by source/medium
    SOURCE_MEDIUM_EVENTS_REPORT: event counts by source/medium/event name
    CHANNEL_REPORT: users/sessions/conversions by default channel group
    CHANNEL_EVENTS_REPORT: event counts by channel/event name
    CHANNEL_SEARCH_CLICKS_REPORT: organic Google Search clicks by channel (optional)
    LEADS_BY_SOURCE_REPORT / LEADS_BY_DAY_REPORT: conversions by source / day
    TOP_PAGES_REPORT: views and duration by page
    TRAFFIC_SOURCES_REPORT: sessions and users by source/medium
    anomaly_series_report(metric): one metric per day over the anomaly lookback
"""

from dataclasses import dataclass, replace
from typing import Dict, Optional, Tuple

from pulse.models.enums import AnomalyMetric


# =============================================================================
# CONSTANTS
# =============================================================================

# Days of history the anomaly detector looks at. Fixed, not caller-supplied.
ANOMALY_LOOKBACK_DAYS: int = 30

ANOMALY_START_DATE: str = f"{ANOMALY_LOOKBACK_DAYS}daysAgo"
ANOMALY_END_DATE: str = "today"

# Dashboard metric name -> GA4 metric name. Unknown names are sent as-is.
ANOMALY_METRIC_MAP: Dict[str, str] = {
    AnomalyMetric.USERS.value: "activeUsers",
    AnomalyMetric.SESSIONS.value: "sessions",
    AnomalyMetric.PAGEVIEWS.value: "screenPageViews",
    AnomalyMetric.BOUNCE_RATE.value: "bounceRate",
}

# GA4 metrics reported as 0-1 fractions; scaled to percentages on read.
RATIO_METRICS: Tuple[str, ...] = (
    "bounceRate",
    "engagementRate",
    "organicGoogleSearchClickThroughRate",
)


@dataclass(frozen=True)
class ReportQuery:
    """
    Shape of one runReport request.

    Attributes:
        name: Identifier used in logs and by test doubles.
        dimensions: Dimension names, in the order rows will carry them.
        metrics: Metric names, in the order rows will carry them.
        order_by_metric: Metric to sort by, if any.
        order_by_dimension: Dimension to sort by, if any (ascending).
        desc: Sort descending (applies to order_by_metric).
        limit: Maximum rows, or None for the API default.
    """
    name: str
    dimensions: Tuple[str, ...] = ()
    metrics: Tuple[str, ...] = ()
    order_by_metric: Optional[str] = None
    order_by_dimension: Optional[str] = None
    desc: bool = False
    limit: Optional[int] = None

    def with_limit(self, limit: int) -> "ReportQuery":
        return replace(self, limit=limit)


# =============================================================================
# DAILY AND TOTAL METRICS
# =============================================================================

# dims: [date]
# metrics: [activeUsers, sessions, bounceRate, conversions, screenPageViews]
DAILY_METRICS_REPORT = ReportQuery(
    name="daily_metrics",
    dimensions=("date",),
    metrics=("activeUsers", "sessions", "bounceRate", "conversions", "screenPageViews"),
    order_by_dimension="date",
)

# dims: []
# metrics: [activeUsers, sessions, bounceRate, conversions, screenPageViews]
AGGREGATED_METRICS_REPORT = ReportQuery(
    name="aggregated_metrics",
    metrics=("activeUsers", "sessions", "bounceRate", "conversions", "screenPageViews"),
)

# dims: [date]
# metrics: [activeUsers, newUsers, sessions, screenPageViews, bounceRate,
#           engagementRate, conversions, averageSessionDuration]
WEEKLY_METRICS_REPORT = ReportQuery(
    name="weekly_metrics",
    dimensions=("date",),
    metrics=(
        "activeUsers",
        "newUsers",
        "sessions",
        "screenPageViews",
        "bounceRate",
        "engagementRate",
        "conversions",
        "averageSessionDuration",
    ),
    order_by_dimension="date",
)

# dims: [date]
# metrics: [organicGoogleSearchImpressions, organicGoogleSearchClicks,
#           organicGoogleSearchClickThroughRate]
# Fails when the property has no Search Console link; callers treat it as optional.
SEARCH_CONSOLE_DAILY_REPORT = ReportQuery(
    name="search_console_daily",
    dimensions=("date",),
    metrics=(
        "organicGoogleSearchImpressions",
        "organicGoogleSearchClicks",
        "organicGoogleSearchClickThroughRate",
    ),
    order_by_dimension="date",
)


# =============================================================================
# SOURCE / MEDIUM
# =============================================================================

# dims: [sessionSource, sessionMedium]
# metrics: [activeUsers, sessions, conversions]
SOURCE_MEDIUM_REPORT = ReportQuery(
    name="source_medium",
    dimensions=("sessionSource", "sessionMedium"),
    metrics=("activeUsers", "sessions", "conversions"),
    order_by_metric="sessions",
    desc=True,
    limit=100,
)

# dims: [sessionSource, sessionMedium, eventName]
# metrics: [eventCount]
SOURCE_MEDIUM_EVENTS_REPORT = ReportQuery(
    name="source_medium_events",
    dimensions=("sessionSource", "sessionMedium", "eventName"),
    metrics=("eventCount",),
    limit=500,
)

# dims: [sessionSource, sessionMedium]
# metrics: [sessions, activeUsers]
TRAFFIC_SOURCES_REPORT = ReportQuery(
    name="traffic_sources",
    dimensions=("sessionSource", "sessionMedium"),
    metrics=("sessions", "activeUsers"),
    order_by_metric="sessions",
    desc=True,
    limit=20,
)


# =============================================================================
# CHANNEL GROUPS
# =============================================================================

# dims: [sessionDefaultChannelGroup]
# metrics: [activeUsers, sessions, conversions]
CHANNEL_REPORT = ReportQuery(
    name="channel",
    dimensions=("sessionDefaultChannelGroup",),
    metrics=("activeUsers", "sessions", "conversions"),
    order_by_metric="conversions",
    desc=True,
)

# dims: [sessionDefaultChannelGroup, eventName]
# metrics: [eventCount]
CHANNEL_EVENTS_REPORT = ReportQuery(
    name="channel_events",
    dimensions=("sessionDefaultChannelGroup", "eventName"),
    metrics=("eventCount",),
)

# dims: [sessionDefaultChannelGroup]
# metrics: [organicGoogleSearchClicks]
# Optional, same Search Console dependency as SEARCH_CONSOLE_DAILY_REPORT.
CHANNEL_SEARCH_CLICKS_REPORT = ReportQuery(
    name="channel_search_clicks",
    dimensions=("sessionDefaultChannelGroup",),
    metrics=("organicGoogleSearchClicks",),
)


# =============================================================================
# LEADS
# =============================================================================

# dims: [sessionSource]
# metrics: [conversions]
LEADS_BY_SOURCE_REPORT = ReportQuery(
    name="leads_by_source",
    dimensions=("sessionSource",),
    metrics=("conversions",),
    order_by_metric="conversions",
    desc=True,
    limit=10,
)

# dims: [date]
# metrics: [conversions]
LEADS_BY_DAY_REPORT = ReportQuery(
    name="leads_by_day",
    dimensions=("date",),
    metrics=("conversions",),
    order_by_dimension="date",
)


# =============================================================================
# PAGES
# =============================================================================

# dims: [pagePath, pageTitle]
# metrics: [screenPageViews, averageSessionDuration]
TOP_PAGES_REPORT = ReportQuery(
    name="top_pages",
    dimensions=("pagePath", "pageTitle"),
    metrics=("screenPageViews", "averageSessionDuration"),
    order_by_metric="screenPageViews",
    desc=True,
    limit=10,
)


# =============================================================================
# ANOMALY SERIES
# =============================================================================

def resolve_anomaly_metric(metric: str) -> str:
    """Map a dashboard metric alias to its GA4 name; unknown names pass through."""
    return ANOMALY_METRIC_MAP.get(metric, metric)


def anomaly_series_report(metric: str) -> ReportQuery:
    """
    Build the one-metric daily report the anomaly detector reads.

    dims: [date]
    metrics: [<resolved metric>]

    Args:
        metric: Dashboard alias (users, sessions, pageviews, bounceRate) or a
            raw GA4 metric name.
    """
    return ReportQuery(
        name=f"anomaly_series:{metric}",
        dimensions=("date",),
        metrics=(resolve_anomaly_metric(metric),),
        order_by_dimension="date",
    )
