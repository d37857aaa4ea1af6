"""
Metrics Aggregation Service

Reduces positional report rows (see pulse/services/gateway.py) into the
totals and breakdowns the dashboard shows. Every function here is pure: rows
in, Pydantic models out, no API calls.

Groupings:
    - By day: one row per normalized date, Search Console values joined on date
    - By source/medium: sessions rows joined with classified event counts
    - By channel: channel rows joined with classified event counts and clicks

Derived Rate Policy:
    Two click-to-lead formulas coexist and are kept at their own call sites:
    - source/medium rows and breakdown totals: conversions / sessions * 100
    - channel rows and year-over-year totals: conversions / clicks * 100
    Both return 0 when the denominator is 0.

    bounceRate, engagementRate and avgSessionDuration totals are plain means of
    the daily values, unweighted by traffic volume.

No rounding is applied; formatting belongs to the presentation layer.
"""

from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence, Tuple, Union

from pulse.models.enums import AggregationGrain, SourceCategory
from pulse.models.schemas import (
    AggregatedMetrics,
    BreakdownTotals,
    ChannelMetrics,
    ConversionsByType,
    DailyMetrics,
    DayLeads,
    DetailedBreakdown,
    LeadsSummary,
    PhoneCallEvent,
    SourceLeads,
    SourceMetrics,
    TopPage,
    TrafficSource,
    WeeklyDashboardMetrics,
    WeeklyMetrics,
    WeeklyTotals,
)
from pulse.services.categorization import categorize_source, classify_event
from pulse.services.gateway import ReportRow
from pulse.services.periods import format_ga_date


SourceMediumKey = Tuple[str, str]


# =============================================================================
# Helpers
# =============================================================================


@dataclass
class LeadCounts:
    """Form and phone event totals for one grouping key."""
    forms: int = 0
    phones: int = 0

    def add(self, event_name: str, count: int) -> None:
        classification = classify_event(event_name)
        if classification.is_form:
            self.forms += count
        elif classification.is_phone:
            self.phones += count


@dataclass
class SearchConsoleDay:
    """Organic Google Search metrics for one day."""
    impressions: int = 0
    clicks: int = 0
    ctr: float = 0.0


def click_to_lead_rate(conversions: float, denominator: float) -> float:
    """conversions / denominator * 100, or 0 when the denominator is 0."""
    if denominator > 0:
        return (conversions / denominator) * 100
    return 0.0


def _mean(total: float, count: int) -> float:
    return total / count if count > 0 else 0.0


# =============================================================================
# Daily Metrics
# =============================================================================


def parse_daily_metrics(rows: Sequence[ReportRow]) -> List[DailyMetrics]:
    """
    Rows of DAILY_METRICS_REPORT to DailyMetrics.

    Reads dims [date], metrics [activeUsers, sessions, bounceRate,
    conversions, screenPageViews].
    """
    return [
        DailyMetrics(
            date=format_ga_date(row.dimension(0)),
            users=row.int_metric(0),
            sessions=row.int_metric(1),
            bounceRate=row.ratio_metric(2),
            conversions=row.int_metric(3),
            pageviews=row.int_metric(4),
        )
        for row in rows
    ]


def parse_aggregated_metrics(rows: Sequence[ReportRow]) -> AggregatedMetrics:
    """
    First row of AGGREGATED_METRICS_REPORT to AggregatedMetrics.

    A report with no rows yields all zeros.
    """
    row = rows[0] if rows else ReportRow()
    return AggregatedMetrics(
        users=row.int_metric(0),
        sessions=row.int_metric(1),
        bounceRate=row.ratio_metric(2),
        conversions=row.int_metric(3),
        pageviews=row.int_metric(4),
    )


def reduce_search_console(rows: Sequence[ReportRow]) -> Dict[str, SearchConsoleDay]:
    """
    Rows of SEARCH_CONSOLE_DAILY_REPORT keyed by normalized date.

    Reads dims [date], metrics [impressions, clicks, clickThroughRate].
    """
    by_date: Dict[str, SearchConsoleDay] = {}
    for row in rows:
        by_date[format_ga_date(row.dimension(0))] = SearchConsoleDay(
            impressions=row.int_metric(0),
            clicks=row.int_metric(1),
            ctr=row.ratio_metric(2),
        )
    return by_date


def aggregate_daily(
    main_rows: Sequence[ReportRow],
    search_by_date: Optional[Dict[str, SearchConsoleDay]] = None,
) -> WeeklyDashboardMetrics:
    """
    Reduce WEEKLY_METRICS_REPORT rows into per-day rows and period totals.

    Reads dims [date], metrics [activeUsers, newUsers, sessions,
    screenPageViews, bounceRate, engagementRate, conversions,
    averageSessionDuration].

    Args:
        main_rows: Weekly metrics rows, one per day.
        search_by_date: Search Console values by normalized date. Days missing
            from it (or the whole mapping, when Search Console is unavailable)
            contribute zero impressions, clicks and ctr.

    Returns:
        WeeklyDashboardMetrics with:
        - counts summed across days
        - bounceRate / engagementRate / avgSessionDuration averaged over days
        - ctr = total clicks / total impressions * 100
    """
    search_by_date = search_by_date or {}

    daily: List[WeeklyMetrics] = []
    total_users = total_new_users = total_sessions = total_pageviews = 0
    total_conversions = total_impressions = total_clicks = 0
    bounce_rate_sum = engagement_rate_sum = avg_session_duration_sum = 0.0

    for row in main_rows:
        day = format_ga_date(row.dimension(0))
        search = search_by_date.get(day, SearchConsoleDay())

        users = row.int_metric(0)
        new_users = row.int_metric(1)
        sessions = row.int_metric(2)
        pageviews = row.int_metric(3)
        bounce_rate = row.ratio_metric(4)
        engagement_rate = row.ratio_metric(5)
        conversions = row.int_metric(6)
        avg_session_duration = row.float_metric(7)

        daily.append(WeeklyMetrics(
            date=day,
            users=users,
            newUsers=new_users,
            sessions=sessions,
            pageviews=pageviews,
            bounceRate=bounce_rate,
            engagementRate=engagement_rate,
            conversions=conversions,
            impressions=search.impressions,
            clicks=search.clicks,
            ctr=search.ctr,
        ))

        total_users += users
        total_new_users += new_users
        total_sessions += sessions
        total_pageviews += pageviews
        total_conversions += conversions
        total_impressions += search.impressions
        total_clicks += search.clicks
        bounce_rate_sum += bounce_rate
        engagement_rate_sum += engagement_rate
        avg_session_duration_sum += avg_session_duration

    day_count = len(daily)
    totals = WeeklyTotals(
        users=total_users,
        newUsers=total_new_users,
        sessions=total_sessions,
        pageviews=total_pageviews,
        bounceRate=_mean(bounce_rate_sum, day_count),
        engagementRate=_mean(engagement_rate_sum, day_count),
        conversions=total_conversions,
        impressions=total_impressions,
        clicks=total_clicks,
        ctr=(total_clicks / total_impressions) * 100 if total_impressions > 0 else 0.0,
        avgSessionDuration=_mean(avg_session_duration_sum, day_count),
    )
    return WeeklyDashboardMetrics(totals=totals, daily=daily)


# =============================================================================
# Source / Medium
# =============================================================================


def reduce_source_medium_events(event_rows: Sequence[ReportRow]) -> Dict[SourceMediumKey, LeadCounts]:
    """
    Sum classified event counts per (source, medium).

    Reads dims [sessionSource, sessionMedium, eventName], metrics [eventCount].
    Every pair seen in the events gets an entry, even if none of its events
    are leads.
    """
    events: Dict[SourceMediumKey, LeadCounts] = {}
    for row in event_rows:
        key = (row.dimension(0), row.dimension(1))
        events.setdefault(key, LeadCounts()).add(row.dimension(2), row.int_metric(0))
    return events


def collect_phone_call_events(event_rows: Sequence[ReportRow]) -> List[PhoneCallEvent]:
    """Event rows the classifier counts as phone calls, in report order."""
    phone_events: List[PhoneCallEvent] = []
    for row in event_rows:
        event_name = row.dimension(2)
        if classify_event(event_name).is_phone:
            phone_events.append(PhoneCallEvent(
                source=row.dimension(0),
                medium=row.dimension(1),
                eventName=event_name,
                count=row.int_metric(0),
            ))
    return phone_events


def aggregate_by_source_medium(
    source_rows: Sequence[ReportRow],
    event_rows: Sequence[ReportRow],
) -> List[SourceMetrics]:
    """
    Join source/medium session rows with their lead event counts.

    Reads SOURCE_MEDIUM_REPORT dims [sessionSource, sessionMedium], metrics
    [activeUsers, sessions, conversions]. One SourceMetrics per input row, in
    input order, each tagged with its category.

    clickToLeadRate = conversions / sessions * 100.
    """
    events = reduce_source_medium_events(event_rows)

    results: List[SourceMetrics] = []
    for row in source_rows:
        source = row.dimension(0)
        medium = row.dimension(1)
        users = row.int_metric(0)
        sessions = row.int_metric(1)
        conversions = row.int_metric(2)
        leads = events.get((source, medium), LeadCounts())

        results.append(SourceMetrics(
            source=source,
            medium=medium,
            category=categorize_source(source, medium),
            users=users,
            sessions=sessions,
            conversions=conversions,
            formSubmissions=leads.forms,
            phoneCalls=leads.phones,
            clickToLeadRate=click_to_lead_rate(conversions, sessions),
        ))
    return results


def build_detailed_breakdown(source_metrics: Sequence[SourceMetrics]) -> DetailedBreakdown:
    """
    Group source rows by category, each group sorted by sessions descending.

    Every row lands in exactly one category; none are dropped or duplicated.
    Ties keep their input order.
    """
    grouped: Dict[SourceCategory, List[SourceMetrics]] = {category: [] for category in SourceCategory}
    for metrics in source_metrics:
        grouped[metrics.category].append(metrics)

    return DetailedBreakdown(**{
        category.value: sorted(rows, key=lambda m: m.sessions, reverse=True)
        for category, rows in grouped.items()
    })


def summarize_breakdown(breakdown: DetailedBreakdown) -> BreakdownTotals:
    """
    Sum every category of a breakdown.

    clickToLeadRate = conversions / sessions * 100 over the summed values.
    """
    sessions = users = conversions = forms = phones = 0
    for row in breakdown.all_sources():
        sessions += row.sessions
        users += row.users
        conversions += row.conversions
        forms += row.formSubmissions
        phones += row.phoneCalls

    return BreakdownTotals(
        sessions=sessions,
        users=users,
        conversions=conversions,
        formSubmissions=forms,
        phoneCalls=phones,
        clickToLeadRate=click_to_lead_rate(conversions, sessions),
    )


def parse_traffic_sources(rows: Sequence[ReportRow]) -> List[TrafficSource]:
    """TRAFFIC_SOURCES_REPORT rows: dims [source, medium], metrics [sessions, activeUsers]."""
    return [
        TrafficSource(
            source=row.dimension(0),
            medium=row.dimension(1),
            sessions=row.int_metric(0),
            users=row.int_metric(1),
        )
        for row in rows
    ]


# =============================================================================
# Channel Groups
# =============================================================================


def reduce_channel_clicks(rows: Sequence[ReportRow]) -> Dict[str, int]:
    """CHANNEL_SEARCH_CLICKS_REPORT rows keyed by channel."""
    return {row.dimension(0): row.int_metric(0) for row in rows}


def aggregate_by_channel(
    channel_rows: Sequence[ReportRow],
    event_rows: Sequence[ReportRow],
    clicks_by_channel: Optional[Dict[str, int]] = None,
) -> ConversionsByType:
    """
    Join channel session rows with lead events and organic clicks.

    Reads CHANNEL_REPORT dims [sessionDefaultChannelGroup], metrics
    [activeUsers, sessions, conversions] and CHANNEL_EVENTS_REPORT dims
    [sessionDefaultChannelGroup, eventName], metrics [eventCount].

    Args:
        channel_rows: One row per channel.
        event_rows: Event counts per channel and event name.
        clicks_by_channel: Organic search clicks per channel. A channel with no
            entry, or with zero clicks, uses its sessions as the click count.

    Returns:
        ConversionsByType where formSubmissions / phoneCalls sum every event
        row (including channels absent from channel_rows), totalConversions
        sums channel_rows, and each channel's clickToLeadRate is
        conversions / clicks * 100.
    """
    clicks_by_channel = clicks_by_channel or {}

    channel_leads: Dict[str, LeadCounts] = {}
    total_forms = 0
    total_phones = 0
    for row in event_rows:
        channel = row.dimension(0)
        event_name = row.dimension(1)
        count = row.int_metric(0)
        channel_leads.setdefault(channel, LeadCounts()).add(event_name, count)

        classification = classify_event(event_name)
        if classification.is_form:
            total_forms += count
        elif classification.is_phone:
            total_phones += count

    by_channel: List[ChannelMetrics] = []
    total_conversions = 0
    for row in channel_rows:
        channel = row.dimension(0)
        users = row.int_metric(0)
        sessions = row.int_metric(1)
        conversions = row.int_metric(2)
        clicks = clicks_by_channel.get(channel) or sessions
        leads = channel_leads.get(channel, LeadCounts())

        total_conversions += conversions
        by_channel.append(ChannelMetrics(
            channel=channel,
            users=users,
            sessions=sessions,
            clicks=clicks,
            conversions=conversions,
            formSubmissions=leads.forms,
            phoneCalls=leads.phones,
            clickToLeadRate=click_to_lead_rate(conversions, clicks),
        ))

    return ConversionsByType(
        formSubmissions=total_forms,
        phoneCalls=total_phones,
        totalConversions=total_conversions,
        byChannel=by_channel,
    )


# =============================================================================
# Leads and Pages
# =============================================================================


def aggregate_leads(
    by_source_rows: Sequence[ReportRow],
    by_day_rows: Sequence[ReportRow],
) -> LeadsSummary:
    """
    Conversions by source (top 10) and by day.

    total is the sum of the by-day series, so it covers every source, not
    just the top ten. Empty source names read as "Unknown".
    """
    by_source = [
        SourceLeads(source=row.dimension(0) or "Unknown", leads=row.int_metric(0))
        for row in by_source_rows
    ]
    by_day = [
        DayLeads(date=format_ga_date(row.dimension(0)), leads=row.int_metric(0))
        for row in by_day_rows
    ]
    return LeadsSummary(
        total=sum(day.leads for day in by_day),
        bySource=by_source,
        byDay=by_day,
    )


def parse_top_pages(rows: Sequence[ReportRow]) -> List[TopPage]:
    """TOP_PAGES_REPORT rows: dims [pagePath, pageTitle], metrics [views, avg duration]."""
    return [
        TopPage(
            path=row.dimension(0),
            title=row.dimension(1),
            pageviews=row.int_metric(0),
            avgTimeOnPage=row.float_metric(1),
        )
        for row in rows
    ]


# =============================================================================
# Dispatcher
# =============================================================================


def aggregate(
    grain: AggregationGrain,
    rows: Sequence[ReportRow],
    event_rows: Sequence[ReportRow] = (),
    search_by_date: Optional[Dict[str, SearchConsoleDay]] = None,
    clicks_by_channel: Optional[Dict[str, int]] = None,
) -> Union[WeeklyDashboardMetrics, List[SourceMetrics], ConversionsByType]:
    """
    Aggregate report rows at the requested grain.

    Args:
        grain: AggregationGrain.DAY, SOURCE_MEDIUM or CHANNEL.
        rows: The primary rows for that grain (weekly metrics, source/medium
            sessions, or channel sessions).
        event_rows: Event count rows joined in for SOURCE_MEDIUM and CHANNEL.
        search_by_date: Search Console values joined in for DAY.
        clicks_by_channel: Organic clicks joined in for CHANNEL.
    """
    if grain == AggregationGrain.DAY:
        return aggregate_daily(rows, search_by_date)
    if grain == AggregationGrain.SOURCE_MEDIUM:
        return aggregate_by_source_medium(rows, event_rows)
    if grain == AggregationGrain.CHANNEL:
        return aggregate_by_channel(rows, event_rows, clicks_by_channel)
    raise ValueError(f"Unsupported aggregation grain: {grain}")
