"""
Report Query Module for the Traffic Pulse backend.

Provides the runReport shapes (dimensions, metrics, ordering, limits) used by
the analytics services. Keeping them in one place keeps the positional row
contract between a report and its consumer visible.

Example usage:
    from pulse.queries import SOURCE_MEDIUM_REPORT, anomaly_series_report

    rows = await gateway.run_report(date_range, SOURCE_MEDIUM_REPORT)
    series_rows = await gateway.run_report(lookback, anomaly_series_report("users"))
"""

from pulse.queries.reports import (
    ReportQuery,
    ANOMALY_LOOKBACK_DAYS,
    ANOMALY_START_DATE,
    ANOMALY_END_DATE,
    ANOMALY_METRIC_MAP,
    RATIO_METRICS,
    DAILY_METRICS_REPORT,
    AGGREGATED_METRICS_REPORT,
    WEEKLY_METRICS_REPORT,
    SEARCH_CONSOLE_DAILY_REPORT,
    SOURCE_MEDIUM_REPORT,
    SOURCE_MEDIUM_EVENTS_REPORT,
    TRAFFIC_SOURCES_REPORT,
    CHANNEL_REPORT,
    CHANNEL_EVENTS_REPORT,
    CHANNEL_SEARCH_CLICKS_REPORT,
    LEADS_BY_SOURCE_REPORT,
    LEADS_BY_DAY_REPORT,
    TOP_PAGES_REPORT,
    resolve_anomaly_metric,
    anomaly_series_report,
)


__all__ = [
    'ReportQuery',
    'ANOMALY_LOOKBACK_DAYS',
    'ANOMALY_START_DATE',
    'ANOMALY_END_DATE',
    'ANOMALY_METRIC_MAP',
    'RATIO_METRICS',
    'DAILY_METRICS_REPORT',
    'AGGREGATED_METRICS_REPORT',
    'WEEKLY_METRICS_REPORT',
    'SEARCH_CONSOLE_DAILY_REPORT',
    'SOURCE_MEDIUM_REPORT',
    'SOURCE_MEDIUM_EVENTS_REPORT',
    'TRAFFIC_SOURCES_REPORT',
    'CHANNEL_REPORT',
    'CHANNEL_EVENTS_REPORT',
    'CHANNEL_SEARCH_CLICKS_REPORT',
    'LEADS_BY_SOURCE_REPORT',
    'LEADS_BY_DAY_REPORT',
    'TOP_PAGES_REPORT',
    'resolve_anomaly_metric',
    'anomaly_series_report',
]
