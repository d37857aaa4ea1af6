"""
Enumeration definitions for the Traffic Pulse backend.

All enums inherit from both `str` and `Enum` so they serialize to their plain
string values inside Pydantic models and JSON responses.

- SourceCategory: the eight marketing categories a (source, medium) pair can fall into
- AggregationGrain: how raw report rows are grouped by the aggregator
- AnomalyMetric: metrics the anomaly detector and assistant accept by alias
- AnalyticsAction: actions served by the GET /analytics endpoint
- ReportType: canned assistant report periods
- WeeklyPeriod: period selector for the weekly dashboard
"""

from enum import Enum


class SourceCategory(str, Enum):
    """
    Marketing category for a traffic source.

    Values are the keys of the detailed channel breakdown returned to the
    dashboard, so they keep the dashboard's camelCase spelling.

    Categorization rules are evaluated in this order (first match wins),
    see services/categorization.py:
    - llmAI: AI assistants and answer engines (chatgpt, perplexity, claude, ...)
    - listings: Directories and review sites (yelp, bbb, houzz, ...)
    - paidSearch: Paid mediums (cpc, ppc, paid, *paid*)
    - organicSearch: Organic medium from a known search engine
    - social: Social mediums or social platform sources
    - referral: Any other referral
    - direct: (direct) / (none) traffic
    - other: Everything else
    """
    ORGANIC_SEARCH = "organicSearch"
    PAID_SEARCH = "paidSearch"
    LLM_AI = "llmAI"
    LISTINGS = "listings"
    SOCIAL = "social"
    REFERRAL = "referral"
    DIRECT = "direct"
    OTHER = "other"


class AggregationGrain(str, Enum):
    """
    Grouping applied by the metrics aggregator.

    - day: one bucket per normalized date (YYYY-MM-DD)
    - source_medium: one bucket per (sessionSource, sessionMedium) pair
    - channel: one bucket per sessionDefaultChannelGroup label
    """
    DAY = "day"
    SOURCE_MEDIUM = "source_medium"
    CHANNEL = "channel"


class AnomalyMetric(str, Enum):
    """
    Dashboard metric names accepted for anomaly detection.

    Each maps to a GA4 metric name in queries/reports.py ANOMALY_METRIC_MAP.
    """
    USERS = "users"
    SESSIONS = "sessions"
    PAGEVIEWS = "pageviews"
    BOUNCE_RATE = "bounceRate"


class AnalyticsAction(str, Enum):
    """Actions served by GET /analytics."""
    METRICS = "metrics"
    AGGREGATED = "aggregated"
    TOP_PAGES = "topPages"
    TRAFFIC_SOURCES = "trafficSources"
    COMPARE = "compare"
    ANOMALIES = "anomalies"
    DASHBOARD = "dashboard"


class ReportType(str, Enum):
    """
    Canned report periods for the analytics assistant.

    - daily: yesterday vs the day before
    - weekly: last 7 days vs the 7 days before
    - monthly: last 30 days vs the 30 days before
    """
    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"


class WeeklyPeriod(str, Enum):
    """
    Period selector for GET /analytics/weekly.

    - lastWeek: last complete Monday-Sunday week
    - custom: explicit startDate/endDate query parameters
    """
    LAST_WEEK = "lastWeek"
    CUSTOM = "custom"
