"""
FastAPI router for the weekly report endpoint.

Implements GET /analytics/weekly, the data behind the weekly report page:
daily metrics, leads, top pages, traffic sources, channel conversions, the
detailed category breakdown and a year-over-year comparison.

Period selection:
- period=lastWeek (default): the last complete Monday-Sunday week
- period=custom: startDate / endDate, defaulting to 7daysAgo / yesterday
"""

import logging
from typing import Optional

from fastapi import APIRouter, HTTPException, Query

from pulse.core.dependencies import GatewayDep
from pulse.models.enums import WeeklyPeriod
from pulse.models.schemas import AnalyticsResponse
from pulse.services.analytics import build_weekly_report, resolve_weekly_period


# Configure logging
logger = logging.getLogger(__name__)

router = APIRouter(prefix="/analytics", tags=["weekly"])


@router.get(
    '/weekly',
    response_model=AnalyticsResponse,
    summary="Get Weekly Report",
)
async def get_weekly_report(
    gateway: GatewayDep,
    period: WeeklyPeriod = Query(default=WeeklyPeriod.LAST_WEEK, description="lastWeek or custom"),
    startDate: Optional[str] = Query(default=None, description="Custom range start (default 7daysAgo)"),
    endDate: Optional[str] = Query(default=None, description="Custom range end (default yesterday)"),
) -> AnalyticsResponse:
    """
    Build the weekly report for the selected period.

    Headline totals come from the detailed breakdown so they match the
    breakdown tables on the page.

    Raises:
        HTTPException 500: If a required Analytics Data API call fails.
    """
    current_period = resolve_weekly_period(period, startDate, endDate)
    logger.info(f"Weekly report requested for {current_period.startDate}..{current_period.endDate}")

    try:
        report = await build_weekly_report(gateway, current_period)
        return AnalyticsResponse(success=True, data=report)

    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Weekly analytics API error: {e}", exc_info=True)
        raise HTTPException(
            status_code=500,
            detail=f"Failed to build weekly report: {str(e)}"
        )
