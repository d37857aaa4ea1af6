"""
Analytics Read Operations

The operations behind the HTTP endpoints and the assistant tools. Each one
takes the AnalyticsGateway explicitly as its first argument, issues its report
queries concurrently with asyncio.gather, and hands the rows to the pure
reducers in pulse/services/aggregation.py.

Failure policy:
    - Search Console reports (SEARCH_CONSOLE_DAILY_REPORT,
      CHANNEL_SEARCH_CLICKS_REPORT) are optional. Properties without a linked
      Search Console fail those queries; the failure is logged at WARNING and
      the affected fields read as zero (clicks fall back to sessions).
    - Every other report failure propagates to the caller unchanged.

Composite operations:
    - build_dashboard: everything the overview page shows for one range
    - build_weekly_report: the weekly report, with totals taken from the
      detailed breakdown and a year-over-year comparison
"""

import asyncio
import logging
from datetime import date
from typing import Dict, List, Optional, Tuple

from pulse.models.enums import WeeklyPeriod
from pulse.models.schemas import (
    AggregatedMetrics,
    AnomalyResult,
    ChannelBreakdownResult,
    ComparisonResult,
    ConversionsByType,
    DailyMetrics,
    DashboardSummary,
    DateRange,
    LastYearComparison,
    LeadTotals,
    LeadsSummary,
    PeriodSnapshot,
    ReportPeriod,
    TopPage,
    TrafficSource,
    WeeklyDashboardMetrics,
    WeeklyReport,
)
from pulse.queries.reports import (
    AGGREGATED_METRICS_REPORT,
    ANOMALY_END_DATE,
    ANOMALY_START_DATE,
    CHANNEL_EVENTS_REPORT,
    CHANNEL_REPORT,
    CHANNEL_SEARCH_CLICKS_REPORT,
    DAILY_METRICS_REPORT,
    LEADS_BY_DAY_REPORT,
    LEADS_BY_SOURCE_REPORT,
    RATIO_METRICS,
    SEARCH_CONSOLE_DAILY_REPORT,
    SOURCE_MEDIUM_EVENTS_REPORT,
    SOURCE_MEDIUM_REPORT,
    TOP_PAGES_REPORT,
    TRAFFIC_SOURCES_REPORT,
    WEEKLY_METRICS_REPORT,
    ReportQuery,
    anomaly_series_report,
    resolve_anomaly_metric,
)
from pulse.services.aggregation import (
    SearchConsoleDay,
    aggregate_by_channel,
    aggregate_by_source_medium,
    aggregate_daily,
    aggregate_leads,
    build_detailed_breakdown,
    click_to_lead_rate,
    collect_phone_call_events,
    parse_aggregated_metrics,
    parse_daily_metrics,
    parse_top_pages,
    parse_traffic_sources,
    reduce_channel_clicks,
    reduce_search_console,
    summarize_breakdown,
)
from pulse.services.anomaly import DEFAULT_ANOMALY_THRESHOLD, detect_anomalies
from pulse.services.comparison import compare_metrics
from pulse.services.gateway import AnalyticsGateway, ReportRow
from pulse.services.periods import format_ga_date, get_last_complete_week, get_same_week_last_year

logger = logging.getLogger(__name__)


# =============================================================================
# CONSTANTS
# =============================================================================

# Metrics compared by compare_periods.
PERIOD_COMPARISON_METRICS: Tuple[str, ...] = ("users", "sessions", "pageviews")

# Keys of LastYearComparison.changes, in display order.
YEAR_OVER_YEAR_METRICS: Tuple[str, ...] = (
    "users",
    "newUsers",
    "sessions",
    "pageviews",
    "conversions",
    "impressions",
    "clicks",
    "ctr",
    "formSubmissions",
    "phoneCalls",
    "clickToLeadRate",
)

DEFAULT_TOP_PAGES_LIMIT: int = 10
DASHBOARD_TOP_PAGES_LIMIT: int = 5


# =============================================================================
# Optional Reports
# =============================================================================


async def _run_optional_report(
    gateway: AnalyticsGateway,
    date_range: DateRange,
    query: ReportQuery,
) -> List[ReportRow]:
    """Run a Search Console report, returning no rows when it fails."""
    try:
        return await gateway.run_report(date_range, query)
    except Exception as e:
        logger.warning(
            f"Search Console report {query.name} unavailable for "
            f"{date_range.startDate}..{date_range.endDate}, zero-filling: {e}"
        )
        return []


# =============================================================================
# Single-Report Operations
# =============================================================================


async def get_metrics(gateway: AnalyticsGateway, date_range: DateRange) -> List[DailyMetrics]:
    """Core metrics per day, in date order."""
    rows = await gateway.run_report(date_range, DAILY_METRICS_REPORT)
    return parse_daily_metrics(rows)


async def get_aggregated_metrics(gateway: AnalyticsGateway, date_range: DateRange) -> AggregatedMetrics:
    """Core metrics totalled over the whole range."""
    rows = await gateway.run_report(date_range, AGGREGATED_METRICS_REPORT)
    return parse_aggregated_metrics(rows)


async def get_top_pages(
    gateway: AnalyticsGateway,
    date_range: DateRange,
    limit: int = DEFAULT_TOP_PAGES_LIMIT,
) -> List[TopPage]:
    """Pages ranked by views, at most `limit` of them."""
    rows = await gateway.run_report(date_range, TOP_PAGES_REPORT.with_limit(limit))
    return parse_top_pages(rows)


async def get_traffic_sources(gateway: AnalyticsGateway, date_range: DateRange) -> List[TrafficSource]:
    """Top 20 source/medium pairs by sessions."""
    rows = await gateway.run_report(date_range, TRAFFIC_SOURCES_REPORT)
    return parse_traffic_sources(rows)


# =============================================================================
# Breakdowns
# =============================================================================


async def get_detailed_channel_breakdown(
    gateway: AnalyticsGateway,
    date_range: DateRange,
) -> ChannelBreakdownResult:
    """
    Source/medium rows grouped by marketing category.

    Runs SOURCE_MEDIUM_REPORT and SOURCE_MEDIUM_EVENTS_REPORT concurrently,
    joins lead events onto each pair, and also returns the raw event rows
    classified as phone calls so the dashboard can show where calls came from.
    """
    source_rows, event_rows = await asyncio.gather(
        gateway.run_report(date_range, SOURCE_MEDIUM_REPORT),
        gateway.run_report(date_range, SOURCE_MEDIUM_EVENTS_REPORT),
    )

    source_metrics = aggregate_by_source_medium(source_rows, event_rows)
    breakdown = build_detailed_breakdown(source_metrics)
    phone_events = collect_phone_call_events(event_rows)

    logger.debug(
        f"Channel breakdown {date_range.startDate}..{date_range.endDate}: "
        f"{len(source_metrics)} source/medium rows, {len(phone_events)} phone event rows"
    )
    return ChannelBreakdownResult(breakdown=breakdown, rawPhoneCallsBySource=phone_events)


async def get_conversions_by_channel(
    gateway: AnalyticsGateway,
    date_range: DateRange,
) -> ConversionsByType:
    """
    Lead totals and per-channel rows.

    Organic search clicks per channel are optional; without them every
    channel's clicks fall back to its sessions.
    """
    channel_rows, event_rows, click_rows = await asyncio.gather(
        gateway.run_report(date_range, CHANNEL_REPORT),
        gateway.run_report(date_range, CHANNEL_EVENTS_REPORT),
        _run_optional_report(gateway, date_range, CHANNEL_SEARCH_CLICKS_REPORT),
    )
    return aggregate_by_channel(channel_rows, event_rows, reduce_channel_clicks(click_rows))


async def get_weekly_dashboard_metrics(
    gateway: AnalyticsGateway,
    date_range: DateRange,
) -> WeeklyDashboardMetrics:
    """
    Per-day metrics and period totals for the weekly dashboard.

    Search Console impressions, clicks and ctr are zero-filled when the
    Search Console report fails.
    """
    main_rows, search_rows = await asyncio.gather(
        gateway.run_report(date_range, WEEKLY_METRICS_REPORT),
        _run_optional_report(gateway, date_range, SEARCH_CONSOLE_DAILY_REPORT),
    )
    search_by_date: Dict[str, SearchConsoleDay] = reduce_search_console(search_rows)
    return aggregate_daily(main_rows, search_by_date)


async def get_leads_and_conversions(gateway: AnalyticsGateway, date_range: DateRange) -> LeadsSummary:
    """Conversions by top ten sources and by day."""
    by_source_rows, by_day_rows = await asyncio.gather(
        gateway.run_report(date_range, LEADS_BY_SOURCE_REPORT),
        gateway.run_report(date_range, LEADS_BY_DAY_REPORT),
    )
    return aggregate_leads(by_source_rows, by_day_rows)


# =============================================================================
# Comparisons
# =============================================================================


async def compare_periods(
    gateway: AnalyticsGateway,
    period1: DateRange,
    period2: DateRange,
) -> ComparisonResult:
    """
    Compare aggregated users, sessions and pageviews between two ranges.

    Args:
        period1: The current period.
        period2: The period to compare against.
    """
    current, previous = await asyncio.gather(
        get_aggregated_metrics(gateway, period1),
        get_aggregated_metrics(gateway, period2),
    )
    return ComparisonResult(
        current=PeriodSnapshot(users=current.users, sessions=current.sessions, pageviews=current.pageviews),
        previous=PeriodSnapshot(users=previous.users, sessions=previous.sessions, pageviews=previous.pageviews),
        changes=compare_metrics(current, previous, PERIOD_COMPARISON_METRICS),
    )


def _lead_totals(weekly: WeeklyDashboardMetrics, conversions: ConversionsByType) -> LeadTotals:
    """
    Weekly totals extended with channel lead counts.

    clickToLeadRate here is the channel total conversions / organic clicks * 100.
    """
    return LeadTotals(
        **weekly.totals.model_dump(),
        formSubmissions=conversions.formSubmissions,
        phoneCalls=conversions.phoneCalls,
        clickToLeadRate=click_to_lead_rate(conversions.totalConversions, weekly.totals.clicks),
    )


async def compare_with_last_year(
    gateway: AnalyticsGateway,
    current_period: DateRange,
    today: Optional[date] = None,
) -> LastYearComparison:
    """
    Compare a period against the same dates one calendar year earlier.

    Fetches the weekly dashboard metrics and channel conversions for both
    periods (four operations, run concurrently).

    Returns:
        LastYearComparison with percentage changes for every key in
        YEAR_OVER_YEAR_METRICS.
    """
    last_year_period = get_same_week_last_year(current_period, today)

    current_weekly, last_year_weekly, current_conversions, last_year_conversions = await asyncio.gather(
        get_weekly_dashboard_metrics(gateway, current_period),
        get_weekly_dashboard_metrics(gateway, last_year_period),
        get_conversions_by_channel(gateway, current_period),
        get_conversions_by_channel(gateway, last_year_period),
    )

    current = _lead_totals(current_weekly, current_conversions)
    last_year = _lead_totals(last_year_weekly, last_year_conversions)

    return LastYearComparison(
        current=current,
        lastYear=last_year,
        changes=compare_metrics(current, last_year, YEAR_OVER_YEAR_METRICS),
    )


# =============================================================================
# Anomalies
# =============================================================================


async def detect_metric_anomalies(
    gateway: AnalyticsGateway,
    metric: str,
    threshold: float = DEFAULT_ANOMALY_THRESHOLD,
) -> AnomalyResult:
    """
    Run z-score anomaly detection over the last 30 days of one metric.

    Args:
        metric: users, sessions, pageviews, bounceRate, or a raw GA4 metric
            name (sent unchanged).
        threshold: |z| a day must exceed to be reported.
    """
    lookback = DateRange(startDate=ANOMALY_START_DATE, endDate=ANOMALY_END_DATE)
    rows = await gateway.run_report(lookback, anomaly_series_report(metric))

    is_ratio = resolve_anomaly_metric(metric) in RATIO_METRICS
    series: List[Tuple[str, float]] = [
        (format_ga_date(row.dimension(0)), row.ratio_metric(0) if is_ratio else row.float_metric(0))
        for row in rows
    ]
    return detect_anomalies(series, threshold)


# =============================================================================
# Composite Payloads
# =============================================================================


async def build_dashboard(gateway: AnalyticsGateway, date_range: DateRange) -> DashboardSummary:
    """Aggregated totals, daily metrics, top 5 pages, traffic sources and user anomalies."""
    aggregated, metrics, top_pages, traffic_sources, anomalies = await asyncio.gather(
        get_aggregated_metrics(gateway, date_range),
        get_metrics(gateway, date_range),
        get_top_pages(gateway, date_range, DASHBOARD_TOP_PAGES_LIMIT),
        get_traffic_sources(gateway, date_range),
        detect_metric_anomalies(gateway, "users"),
    )
    return DashboardSummary(
        aggregated=aggregated,
        metrics=metrics,
        topPages=top_pages,
        trafficSources=traffic_sources,
        anomalies=anomalies,
    )


def resolve_weekly_period(
    period: WeeklyPeriod = WeeklyPeriod.LAST_WEEK,
    start_date: Optional[str] = None,
    end_date: Optional[str] = None,
    today: Optional[date] = None,
) -> DateRange:
    """
    Date range for a weekly report request.

    lastWeek is the last complete Monday-Sunday week. custom uses the given
    dates, defaulting to 7daysAgo..yesterday.
    """
    if period == WeeklyPeriod.LAST_WEEK:
        return get_last_complete_week(today)
    return DateRange(startDate=start_date or "7daysAgo", endDate=end_date or "yesterday")


async def build_weekly_report(
    gateway: AnalyticsGateway,
    current_period: DateRange,
    today: Optional[date] = None,
) -> WeeklyReport:
    """
    Build the full weekly report for one period.

    Runs seven operations concurrently: weekly metrics, leads, top pages,
    traffic sources, year-over-year comparison, channel conversions and the
    detailed breakdown.

    Headline totals start from the weekly metrics totals, then users,
    conversions, formSubmissions and phoneCalls are replaced by the detailed
    breakdown sums so they agree with the breakdown tables. The headline
    clickToLeadRate is breakdown conversions / breakdown sessions * 100, while
    the comparison keeps its own conversions / clicks * 100.
    """
    last_year_period = get_same_week_last_year(current_period, today)

    (
        weekly,
        leads,
        top_pages,
        traffic_sources,
        comparison,
        conversions,
        breakdown_result,
    ) = await asyncio.gather(
        get_weekly_dashboard_metrics(gateway, current_period),
        get_leads_and_conversions(gateway, current_period),
        get_top_pages(gateway, current_period, DEFAULT_TOP_PAGES_LIMIT),
        get_traffic_sources(gateway, current_period),
        compare_with_last_year(gateway, current_period, today),
        get_conversions_by_channel(gateway, current_period),
        get_detailed_channel_breakdown(gateway, current_period),
    )

    breakdown_totals = summarize_breakdown(breakdown_result.breakdown)
    totals = LeadTotals(**{
        **weekly.totals.model_dump(),
        "users": breakdown_totals.users,
        "conversions": breakdown_totals.conversions,
        "formSubmissions": breakdown_totals.formSubmissions,
        "phoneCalls": breakdown_totals.phoneCalls,
        "clickToLeadRate": breakdown_totals.clickToLeadRate,
    })

    logger.info(
        f"Weekly report {current_period.startDate}..{current_period.endDate}: "
        f"{totals.users} users, {totals.conversions} conversions, "
        f"users {comparison.changes['users']:+.1f}% YoY"
    )

    return WeeklyReport(
        period=ReportPeriod(current=current_period, lastYear=last_year_period),
        totals=totals,
        daily=weekly.daily,
        leads=leads,
        topPages=top_pages,
        trafficSources=traffic_sources,
        conversionsByChannel=conversions.byChannel,
        detailedBreakdown=breakdown_result.breakdown,
        rawPhoneCallsBySource=breakdown_result.rawPhoneCallsBySource,
        comparison=comparison,
    )
