"""
Traffic Pulse Services Module

Business logic for the analytics dashboard. Pure reducers are separated from
the async operations that query the Analytics Data API, so everything except
analytics.py and assistant.py can be tested without a gateway.

Services:
- gateway: AnalyticsGateway and positional ReportRow parsing
- categorization: source/medium categories and lead event classification
- periods: date normalization and reporting windows
- aggregation: row reducers by day, source/medium and channel
- comparison: percentage change between periods
- anomaly: z-score anomaly detection (numpy)
- analytics: async read operations and composite reports
- assistant: Claude tool-use chat and canned reports

Every async operation takes the gateway (and, for the assistant, the
Anthropic client) as an explicit argument; no service holds a client at module
level.
"""

# =============================================================================
# Gateway
# =============================================================================

from pulse.services.gateway import (
    AnalyticsGateway,
    ReportRow,
    parse_float,
    parse_int,
    parse_ratio,
)

# =============================================================================
# Categorization
# =============================================================================

from pulse.services.categorization import (
    EventClassification,
    categorize_source,
    classify_event,
)

# =============================================================================
# Periods
# =============================================================================

from pulse.services.periods import (
    format_ga_date,
    get_last_complete_week,
    get_same_week_last_year,
    resolve_relative_date,
)

# =============================================================================
# Aggregation
# =============================================================================

from pulse.services.aggregation import (
    aggregate,
    aggregate_by_channel,
    aggregate_by_source_medium,
    aggregate_daily,
    aggregate_leads,
    build_detailed_breakdown,
    click_to_lead_rate,
    summarize_breakdown,
)

# =============================================================================
# Comparison and Anomalies
# =============================================================================

from pulse.services.comparison import calculate_change, compare_metrics
from pulse.services.anomaly import DEFAULT_ANOMALY_THRESHOLD, detect_anomalies

# =============================================================================
# Analytics Operations
# =============================================================================

from pulse.services.analytics import (
    build_dashboard,
    build_weekly_report,
    compare_periods,
    compare_with_last_year,
    detect_metric_anomalies,
    get_aggregated_metrics,
    get_conversions_by_channel,
    get_detailed_channel_breakdown,
    get_leads_and_conversions,
    get_metrics,
    get_top_pages,
    get_traffic_sources,
    get_weekly_dashboard_metrics,
    resolve_weekly_period,
)

# =============================================================================
# Assistant
# =============================================================================

from pulse.services.assistant import (
    TOOLS,
    chat,
    execute_tool_call,
    generate_report,
)


__all__ = [
    # Gateway
    'AnalyticsGateway',
    'ReportRow',
    'parse_float',
    'parse_int',
    'parse_ratio',
    # Categorization
    'EventClassification',
    'categorize_source',
    'classify_event',
    # Periods
    'format_ga_date',
    'get_last_complete_week',
    'get_same_week_last_year',
    'resolve_relative_date',
    # Aggregation
    'aggregate',
    'aggregate_by_channel',
    'aggregate_by_source_medium',
    'aggregate_daily',
    'aggregate_leads',
    'build_detailed_breakdown',
    'click_to_lead_rate',
    'summarize_breakdown',
    # Comparison and anomalies
    'calculate_change',
    'compare_metrics',
    'DEFAULT_ANOMALY_THRESHOLD',
    'detect_anomalies',
    # Analytics operations
    'build_dashboard',
    'build_weekly_report',
    'compare_periods',
    'compare_with_last_year',
    'detect_metric_anomalies',
    'get_aggregated_metrics',
    'get_conversions_by_channel',
    'get_detailed_channel_breakdown',
    'get_leads_and_conversions',
    'get_metrics',
    'get_top_pages',
    'get_traffic_sources',
    'get_weekly_dashboard_metrics',
    'resolve_weekly_period',
    # Assistant
    'TOOLS',
    'chat',
    'execute_tool_call',
    'generate_report',
]
