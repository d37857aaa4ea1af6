"""
FastAPI router for the dashboard analytics endpoint.

Implements GET /analytics?action=..., a single entry point that dispatches on
the `action` query parameter:

- metrics: daily core metrics for the range
- aggregated: whole-range totals
- topPages: pages ranked by views (limit, default 10)
- trafficSources: top source/medium pairs
- compare: the range against period2StartDate..period2EndDate
- anomalies: z-score anomalies for `metric` over the last 30 days
- dashboard: aggregated + metrics + top 5 pages + sources + user anomalies

Response shape: {"success": true, "data": ...}. A missing or unknown action
is a 400; any analytics failure is a 500 with the upstream error text.
"""

import logging
from typing import Optional

from fastapi import APIRouter, HTTPException, Query

from pulse.core.dependencies import GatewayDep, SettingsDep
from pulse.models.enums import AnalyticsAction
from pulse.models.schemas import AnalyticsResponse, DateRange
from pulse.services import analytics


# Configure logging
logger = logging.getLogger(__name__)

router = APIRouter(prefix="/analytics", tags=["analytics"])

INVALID_ACTION_DETAIL = (
    "Invalid action. Use: metrics, aggregated, topPages, trafficSources, compare, anomalies, or dashboard"
)


@router.get(
    '',
    response_model=AnalyticsResponse,
    summary="Get Analytics",
    description="""
    Dashboard analytics for one date range.

    Dates accept YYYY-MM-DD or relative tokens ("today", "yesterday",
    "7daysAgo"). The anomalies action ignores the date range and always looks
    at the last 30 days.
    """
)
async def get_analytics(
    gateway: GatewayDep,
    settings: SettingsDep,
    action: Optional[str] = Query(default=None, description="Which view to return"),
    startDate: str = Query(default="7daysAgo", description="Range start"),
    endDate: str = Query(default="today", description="Range end"),
    limit: int = Query(default=analytics.DEFAULT_TOP_PAGES_LIMIT, ge=1, description="topPages row limit"),
    period2StartDate: str = Query(default="14daysAgo", description="Comparison range start"),
    period2EndDate: str = Query(default="8daysAgo", description="Comparison range end"),
    metric: str = Query(default="users", description="Metric for anomaly detection"),
    threshold: Optional[float] = Query(default=None, description="z-score threshold (default 2)"),
) -> AnalyticsResponse:
    """
    Dispatch one dashboard analytics action.

    Raises:
        HTTPException 400: If action is missing or not recognized.
        HTTPException 500: If an Analytics Data API call fails.
    """
    try:
        selected = AnalyticsAction(action)
    except ValueError:
        raise HTTPException(status_code=400, detail=INVALID_ACTION_DETAIL)

    date_range = DateRange(startDate=startDate, endDate=endDate)
    logger.info(f"Analytics action={selected.value} range={startDate}..{endDate}")

    try:
        if selected == AnalyticsAction.METRICS:
            data = await analytics.get_metrics(gateway, date_range)
        elif selected == AnalyticsAction.AGGREGATED:
            data = await analytics.get_aggregated_metrics(gateway, date_range)
        elif selected == AnalyticsAction.TOP_PAGES:
            data = await analytics.get_top_pages(gateway, date_range, limit)
        elif selected == AnalyticsAction.TRAFFIC_SOURCES:
            data = await analytics.get_traffic_sources(gateway, date_range)
        elif selected == AnalyticsAction.COMPARE:
            period2 = DateRange(startDate=period2StartDate, endDate=period2EndDate)
            data = await analytics.compare_periods(gateway, date_range, period2)
        elif selected == AnalyticsAction.ANOMALIES:
            data = await analytics.detect_metric_anomalies(
                gateway,
                metric,
                threshold if threshold is not None else settings.anomaly_threshold,
            )
        else:
            data = await analytics.build_dashboard(gateway, date_range)

        return AnalyticsResponse(success=True, data=data)

    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Analytics API error (action={selected.value}): {e}", exc_info=True)
        raise HTTPException(
            status_code=500,
            detail=f"Analytics query failed: {str(e)}"
        )
