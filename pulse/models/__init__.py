"""
Package initialization file for backend models.

Re-exports all Pydantic schemas and enumerations from schemas.py and enums.py
so other modules can import them from pulse.models directly.

Usage:
    from pulse.models import (
        SourceCategory,
        DateRange,
        SourceMetrics,
        DetailedBreakdown,
        # ... etc
    )
"""

# =============================================================================
# Enums
# =============================================================================

from pulse.models.enums import (
    SourceCategory,
    AggregationGrain,
    AnomalyMetric,
    AnalyticsAction,
    ReportType,
    WeeklyPeriod,
)


# =============================================================================
# Schemas
# =============================================================================

from pulse.models.schemas import (
    # -------------------------------------------------------------------------
    # Date ranges
    # -------------------------------------------------------------------------
    DateRange,
    ReportPeriod,

    # -------------------------------------------------------------------------
    # Daily rows and totals
    # -------------------------------------------------------------------------
    DailyMetrics,
    WeeklyMetrics,
    AggregatedMetrics,
    WeeklyTotals,
    LeadTotals,
    WeeklyDashboardMetrics,

    # -------------------------------------------------------------------------
    # Pages, sources and channels
    # -------------------------------------------------------------------------
    TopPage,
    TrafficSource,
    SourceMetrics,
    ChannelMetrics,
    ConversionsByType,
    DetailedBreakdown,
    PhoneCallEvent,
    ChannelBreakdownResult,
    BreakdownTotals,

    # -------------------------------------------------------------------------
    # Comparisons, leads and anomalies
    # -------------------------------------------------------------------------
    PeriodSnapshot,
    ComparisonResult,
    LastYearComparison,
    SourceLeads,
    DayLeads,
    LeadsSummary,
    AnomalyPoint,
    AnomalyResult,

    # -------------------------------------------------------------------------
    # Composite payloads
    # -------------------------------------------------------------------------
    DashboardSummary,
    WeeklyReport,
    AnalyticsResponse,

    # -------------------------------------------------------------------------
    # Assistant chat
    # -------------------------------------------------------------------------
    ChatMessage,
    ChatRequest,
    ChatResponse,
)


__all__ = [
    # Enums
    "SourceCategory",
    "AggregationGrain",
    "AnomalyMetric",
    "AnalyticsAction",
    "ReportType",
    "WeeklyPeriod",
    # Schemas
    "DateRange",
    "ReportPeriod",
    "DailyMetrics",
    "WeeklyMetrics",
    "AggregatedMetrics",
    "WeeklyTotals",
    "LeadTotals",
    "WeeklyDashboardMetrics",
    "TopPage",
    "TrafficSource",
    "SourceMetrics",
    "ChannelMetrics",
    "ConversionsByType",
    "DetailedBreakdown",
    "PhoneCallEvent",
    "ChannelBreakdownResult",
    "BreakdownTotals",
    "PeriodSnapshot",
    "ComparisonResult",
    "LastYearComparison",
    "SourceLeads",
    "DayLeads",
    "LeadsSummary",
    "AnomalyPoint",
    "AnomalyResult",
    "DashboardSummary",
    "WeeklyReport",
    "AnalyticsResponse",
    "ChatMessage",
    "ChatRequest",
    "ChatResponse",
]
