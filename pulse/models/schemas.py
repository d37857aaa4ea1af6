"""
Pydantic request/response models for the Traffic Pulse backend.

Field names are camelCase because these models are the JSON contract consumed
by the dashboard and returned to the analytics assistant as tool results.

Model groups:
- Date ranges and reporting periods
- Daily metric rows (simple and weekly forms)
- Source/medium and channel breakdowns
- Totals, comparisons and anomaly results
- Composite dashboard and weekly report payloads
- Assistant chat request/response

All models use Pydantic v2 syntax. Rates expressed as percentages (bounceRate,
engagementRate, ctr, clickToLeadRate) are on a 0-100 scale; the Analytics Data
API reports them as 0-1 fractions and the aggregator scales them.
"""

from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

from pulse.models.enums import ReportType, SourceCategory


# =============================================================================
# Date Ranges
# =============================================================================


class DateRange(BaseModel):
    """
    Inclusive reporting window.

    Each boundary is either an ISO calendar date (YYYY-MM-DD) or a relative
    token understood by the Analytics Data API ("today", "yesterday",
    "7daysAgo"). Immutable once constructed.
    """
    model_config = ConfigDict(
        frozen=True,
        str_strip_whitespace=True,
        json_schema_extra={
            "example": {"startDate": "2024-01-08", "endDate": "2024-01-14"}
        },
    )

    startDate: str = Field(..., description="Start date (YYYY-MM-DD or relative token)", min_length=1)
    endDate: str = Field(..., description="End date (YYYY-MM-DD or relative token)", min_length=1)


class ReportPeriod(BaseModel):
    """Current period and the same period one calendar year earlier."""
    current: DateRange
    lastYear: DateRange


# =============================================================================
# Daily Metric Rows
# =============================================================================


class DailyMetrics(BaseModel):
    """
    One day of core traffic metrics.

    Returned by get_metrics and the get_metrics assistant tool.
    """
    date: str = Field(..., description="Normalized date (YYYY-MM-DD)")
    users: int = Field(default=0, description="Active users")
    sessions: int = Field(default=0, description="Sessions")
    bounceRate: float = Field(default=0.0, description="Bounce rate percentage (0-100)")
    conversions: int = Field(default=0, description="Conversions")
    pageviews: int = Field(default=0, description="Screen/page views")


class WeeklyMetrics(BaseModel):
    """
    One day of weekly dashboard metrics.

    Search Console fields (impressions, clicks, ctr) are zero when the
    property has no linked Search Console data for that day.
    """
    date: str
    users: int = 0
    newUsers: int = 0
    sessions: int = 0
    pageviews: int = 0
    bounceRate: float = 0.0
    engagementRate: float = 0.0
    conversions: int = 0
    impressions: int = 0
    clicks: int = 0
    ctr: float = 0.0


class AggregatedMetrics(BaseModel):
    """Whole-range totals for the core traffic metrics."""
    users: int = 0
    sessions: int = 0
    bounceRate: float = 0.0
    conversions: int = 0
    pageviews: int = 0


# =============================================================================
# Pages and Sources
# =============================================================================


class TopPage(BaseModel):
    """A page ranked by views."""
    path: str
    title: str
    pageviews: int = 0
    avgTimeOnPage: float = Field(default=0.0, description="Average session duration in seconds")


class TrafficSource(BaseModel):
    """Sessions and users for one source/medium pair."""
    source: str
    medium: str
    sessions: int = 0
    users: int = 0


class SourceMetrics(BaseModel):
    """
    Aggregated counts for one source/medium pair over a period.

    clickToLeadRate here is conversions / sessions * 100 (0 when there are no
    sessions). The channel path uses clicks as the denominator instead, see
    ChannelMetrics.
    """
    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "source": "google",
                "medium": "organic",
                "category": "organicSearch",
                "users": 812,
                "sessions": 1034,
                "conversions": 21,
                "formSubmissions": 14,
                "phoneCalls": 6,
                "clickToLeadRate": 2.03,
            }
        }
    )

    source: str = Field(..., description="sessionSource dimension value")
    medium: str = Field(..., description="sessionMedium dimension value")
    category: SourceCategory = Field(..., description="Marketing category assigned by the categorizer")
    users: int = 0
    sessions: int = 0
    conversions: int = 0
    formSubmissions: int = Field(default=0, description="Form submission events attributed to this pair")
    phoneCalls: int = Field(default=0, description="Phone call events attributed to this pair")
    clickToLeadRate: float = Field(default=0.0, description="conversions / sessions * 100")


class ChannelMetrics(BaseModel):
    """
    Aggregated counts for one default channel group.

    clicks falls back to sessions when the channel has no organic search click
    data; clickToLeadRate is conversions / clicks * 100.
    """
    channel: str = Field(..., description="sessionDefaultChannelGroup label")
    users: int = 0
    sessions: int = 0
    clicks: int = 0
    conversions: int = 0
    formSubmissions: int = 0
    phoneCalls: int = 0
    clickToLeadRate: float = 0.0


class ConversionsByType(BaseModel):
    """Lead totals across all channels plus the per-channel rows."""
    formSubmissions: int = 0
    phoneCalls: int = 0
    totalConversions: int = 0
    byChannel: List[ChannelMetrics] = Field(default_factory=list)


class DetailedBreakdown(BaseModel):
    """
    Source/medium rows grouped by marketing category.

    Every source/medium row of the period appears in exactly one list, and
    each list is sorted by sessions, descending. The field names match the
    SourceCategory values so the breakdown can be built from a mapping keyed
    by the enum.
    """
    organicSearch: List[SourceMetrics] = Field(default_factory=list)
    paidSearch: List[SourceMetrics] = Field(default_factory=list)
    llmAI: List[SourceMetrics] = Field(default_factory=list)
    listings: List[SourceMetrics] = Field(default_factory=list)
    social: List[SourceMetrics] = Field(default_factory=list)
    referral: List[SourceMetrics] = Field(default_factory=list)
    direct: List[SourceMetrics] = Field(default_factory=list)
    other: List[SourceMetrics] = Field(default_factory=list)

    def for_category(self, category: SourceCategory) -> List[SourceMetrics]:
        return getattr(self, category.value)

    def all_sources(self) -> List[SourceMetrics]:
        """Flatten the breakdown in category order."""
        return [row for category in SourceCategory for row in self.for_category(category)]


class PhoneCallEvent(BaseModel):
    """A raw event row the event classifier counted as a phone call."""
    source: str
    medium: str
    eventName: str
    count: int = 0


class ChannelBreakdownResult(BaseModel):
    """Detailed breakdown plus the raw phone call events behind it."""
    breakdown: DetailedBreakdown
    rawPhoneCallsBySource: List[PhoneCallEvent] = Field(default_factory=list)


class BreakdownTotals(BaseModel):
    """Sums across every category of a DetailedBreakdown."""
    sessions: int = 0
    users: int = 0
    conversions: int = 0
    formSubmissions: int = 0
    phoneCalls: int = 0
    clickToLeadRate: float = Field(default=0.0, description="conversions / sessions * 100")


# =============================================================================
# Totals and Comparisons
# =============================================================================


class WeeklyTotals(BaseModel):
    """
    Sums and day-averages over a period.

    bounceRate, engagementRate and avgSessionDuration are plain arithmetic
    means of the daily values, not weighted by traffic. ctr is
    clicks / impressions * 100.
    """
    users: int = 0
    newUsers: int = 0
    sessions: int = 0
    pageviews: int = 0
    bounceRate: float = 0.0
    engagementRate: float = 0.0
    conversions: int = 0
    impressions: int = 0
    clicks: int = 0
    ctr: float = 0.0
    avgSessionDuration: float = 0.0


class LeadTotals(WeeklyTotals):
    """WeeklyTotals extended with lead counts and the click-to-lead rate."""
    formSubmissions: int = 0
    phoneCalls: int = 0
    clickToLeadRate: float = 0.0


class WeeklyDashboardMetrics(BaseModel):
    """Totals plus the per-day rows they were reduced from."""
    totals: WeeklyTotals
    daily: List[WeeklyMetrics] = Field(default_factory=list)


class PeriodSnapshot(BaseModel):
    """The subset of aggregated metrics compared between two periods."""
    users: int = 0
    sessions: int = 0
    pageviews: int = 0


class ComparisonResult(BaseModel):
    """
    Two periods and the signed percentage change per metric.

    changes[metric] is (current - previous) / previous * 100, or 100 / 0 when
    the previous value is zero (see services/comparison.py).
    """
    current: PeriodSnapshot
    previous: PeriodSnapshot
    changes: Dict[str, float] = Field(default_factory=dict)


class LastYearComparison(BaseModel):
    """Current period against the same period one calendar year earlier."""
    current: LeadTotals
    lastYear: LeadTotals
    changes: Dict[str, float] = Field(default_factory=dict)


# =============================================================================
# Leads
# =============================================================================


class SourceLeads(BaseModel):
    source: str
    leads: int = 0


class DayLeads(BaseModel):
    date: str
    leads: int = 0


class LeadsSummary(BaseModel):
    """Conversions by top source and by day."""
    total: int = 0
    bySource: List[SourceLeads] = Field(default_factory=list)
    byDay: List[DayLeads] = Field(default_factory=list)


# =============================================================================
# Anomalies
# =============================================================================


class AnomalyPoint(BaseModel):
    """A day whose value deviates more than the threshold from the mean."""
    date: str
    value: float
    deviation: float = Field(..., description="z-score: (value - mean) / population std")


class AnomalyResult(BaseModel):
    """
    Outcome of z-score anomaly detection over a daily series.

    hasAnomaly is True iff anomalies is non-empty. Anomalies keep the order of
    the input series.
    """
    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "hasAnomaly": True,
                "anomalies": [{"date": "2024-01-15", "value": 50.0, "deviation": 2.24}],
            }
        }
    )

    hasAnomaly: bool = False
    anomalies: List[AnomalyPoint] = Field(default_factory=list)


# =============================================================================
# Composite Payloads
# =============================================================================


class DashboardSummary(BaseModel):
    """Payload for GET /analytics?action=dashboard."""
    aggregated: AggregatedMetrics
    metrics: List[DailyMetrics]
    topPages: List[TopPage]
    trafficSources: List[TrafficSource]
    anomalies: AnomalyResult


class WeeklyReport(BaseModel):
    """
    Payload for GET /analytics/weekly.

    totals starts from the weekly dashboard totals and overrides users,
    conversions, formSubmissions and phoneCalls with the sums of the detailed
    breakdown, so the headline numbers match the breakdown tables.
    clickToLeadRate in totals is the breakdown's conversions / sessions * 100;
    comparison uses conversions / clicks * 100.
    """
    period: ReportPeriod
    totals: LeadTotals
    daily: List[WeeklyMetrics]
    leads: LeadsSummary
    topPages: List[TopPage]
    trafficSources: List[TrafficSource]
    conversionsByChannel: List[ChannelMetrics]
    detailedBreakdown: DetailedBreakdown
    rawPhoneCallsBySource: List[PhoneCallEvent]
    comparison: LastYearComparison


class AnalyticsResponse(BaseModel):
    """Success envelope shared by the analytics endpoints."""
    success: bool = True
    data: Any = None


# =============================================================================
# Assistant Chat
# =============================================================================


class ChatMessage(BaseModel):
    role: Literal["user", "assistant"]
    content: str


class ChatRequest(BaseModel):
    """
    Body for POST /analytics/chat.

    When action == "report" the assistant generates a canned report of
    reportType and message is ignored; otherwise message is required.
    """
    message: Optional[str] = Field(default=None, description="User question")
    history: List[ChatMessage] = Field(default_factory=list, description="Prior turns, oldest first")
    action: Optional[str] = Field(default=None, description='"report" to generate a canned report')
    reportType: ReportType = Field(default=ReportType.WEEKLY)


class ChatResponse(BaseModel):
    success: bool = True
    response: str
