"""
Slack weekly digest job for Traffic Pulse.

Posts a summary of the last complete Monday-Sunday week to Slack using the
WebhookClient from slack-sdk. Meant to run from a scheduler every Monday
morning, after the previous week is complete.

Digest contents:
- Headline totals (users, sessions, conversions, form submissions, phone
  calls, click-to-lead rate) with year-over-year change
- Sessions and conversions per marketing category
- User-count anomalies over the last 30 days, if any

Environment Requirements:
- GA_PROPERTY_ID and Google credentials (see pulse/core/config.py)
- SLACK_WEBHOOK_URL: Slack incoming webhook URL
  Format: https://hooks.slack.com/services/xxx/yyy/zzz

Usage:
    gateway = create_analytics_gateway(settings)
    result = await send_weekly_digest(gateway, settings)

    # Or from cron
    python -m pulse.jobs.weekly_digest
"""

import asyncio
import logging
from datetime import date
from typing import Any, Dict, List, Optional

from slack_sdk.webhook import WebhookClient

from pulse.core.config import Settings
from pulse.models.enums import SourceCategory
from pulse.models.schemas import AnomalyResult, WeeklyReport
from pulse.services.analytics import build_weekly_report, detect_metric_anomalies
from pulse.services.gateway import AnalyticsGateway
from pulse.services.periods import get_last_complete_week

logger = logging.getLogger(__name__)


# Display labels for the category table, in report order.
CATEGORY_LABELS: Dict[SourceCategory, str] = {
    SourceCategory.ORGANIC_SEARCH: "Organic Search",
    SourceCategory.PAID_SEARCH: "Paid Search",
    SourceCategory.LLM_AI: "AI Assistants",
    SourceCategory.LISTINGS: "Listings",
    SourceCategory.SOCIAL: "Social",
    SourceCategory.REFERRAL: "Referral",
    SourceCategory.DIRECT: "Direct",
    SourceCategory.OTHER: "Other",
}

# Anomalies listed in the digest before truncating.
MAX_ANOMALIES_SHOWN: int = 5


def _format_change(change: float) -> str:
    arrow = "🔺" if change > 0 else ("🔻" if change < 0 else "➖")
    return f"{arrow} {change:+.1f}% YoY"


def format_digest_blocks(report: WeeklyReport, anomalies: AnomalyResult) -> List[Dict[str, Any]]:
    """
    Format a weekly report into Slack Block Kit blocks.

    Args:
        report: Weekly report for the digest week.
        anomalies: User-count anomalies to call out.

    Returns:
        List of Block Kit block dicts ready to send via WebhookClient.
    """
    blocks: List[Dict[str, Any]] = []
    current = report.period.current

    blocks.append({
        "type": "header",
        "text": {
            "type": "plain_text",
            "text": f"📈 Traffic Pulse Weekly Digest - {current.startDate} to {current.endDate}",
            "emoji": True
        }
    })
    blocks.append({"type": "divider"})

    totals = report.totals
    changes = report.comparison.changes
    totals_text = (
        f"*📊 Week at a Glance*\n\n"
        f"Users: *{totals.users:,}*  {_format_change(changes.get('users', 0.0))}\n"
        f"Sessions: *{totals.sessions:,}*  {_format_change(changes.get('sessions', 0.0))}\n"
        f"Conversions: *{totals.conversions:,}*  {_format_change(changes.get('conversions', 0.0))}\n"
        f"Form Submissions: *{totals.formSubmissions:,}*  |  Phone Calls: *{totals.phoneCalls:,}*\n"
        f"Click-to-Lead Rate: *{totals.clickToLeadRate:.2f}%*"
    )
    blocks.append({
        "type": "section",
        "text": {"type": "mrkdwn", "text": totals_text}
    })

    category_lines: List[str] = []
    for category, label in CATEGORY_LABELS.items():
        rows = report.detailedBreakdown.for_category(category)
        if not rows:
            continue
        sessions = sum(row.sessions for row in rows)
        conversions = sum(row.conversions for row in rows)
        category_lines.append(f"• {label}: *{sessions:,}* sessions, *{conversions:,}* conversions")

    if category_lines:
        blocks.append({
            "type": "section",
            "text": {"type": "mrkdwn", "text": "*🧭 By Channel*\n\n" + "\n".join(category_lines)}
        })

    if anomalies.hasAnomaly:
        anomaly_lines = [
            f"• {point.date}: {point.value:,.0f} users (z = {point.deviation:+.2f})"
            for point in anomalies.anomalies[:MAX_ANOMALIES_SHOWN]
        ]
        hidden = len(anomalies.anomalies) - MAX_ANOMALIES_SHOWN
        if hidden > 0:
            anomaly_lines.append(f"_...and {hidden} more_")
        blocks.append({
            "type": "section",
            "text": {"type": "mrkdwn", "text": "*⚠️ Unusual Days (last 30 days)*\n\n" + "\n".join(anomaly_lines)}
        })

    blocks.append({"type": "divider"})
    blocks.append({
        "type": "context",
        "elements": [{"type": "mrkdwn", "text": "Generated by Traffic Pulse"}]
    })
    return blocks


async def send_weekly_digest(
    gateway: AnalyticsGateway,
    settings: Settings,
    today: Optional[date] = None,
) -> Dict[str, Any]:
    """
    Build and post the weekly digest for the last complete week.

    Args:
        gateway: Analytics gateway to query.
        settings: Settings carrying slack_webhook_url and anomaly_threshold.
        today: Reference date for the last complete week (default: today).

    Returns:
        Dict with:
        - success: True if the digest was posted
        - week: "<start>..<end>" of the digest week
        - error: Error message (if failed)

    Raises:
        No exceptions are raised - all errors are captured in the return dict.
    """
    if not settings.slack_webhook_url:
        return {
            'success': False,
            'error': 'SLACK_WEBHOOK_URL not configured. Set this environment variable to enable the weekly digest.'
        }

    week = get_last_complete_week(today)
    week_label = f"{week.startDate}..{week.endDate}"

    try:
        report, anomalies = await asyncio.gather(
            build_weekly_report(gateway, week, today),
            detect_metric_anomalies(gateway, "users", settings.anomaly_threshold),
        )
    except Exception as e:
        logger.error(f"Weekly digest data fetch failed for {week_label}: {e}", exc_info=True)
        return {
            'success': False,
            'error': f'Failed to fetch weekly report: {str(e)}',
            'week': week_label
        }

    blocks = format_digest_blocks(report, anomalies)

    try:
        client = WebhookClient(settings.slack_webhook_url)
        response = client.send(blocks=blocks)

        if response.status_code == 200:
            logger.info(f"Weekly digest sent for {week_label}")
            return {
                'success': True,
                'week': week_label,
                'users': report.totals.users,
                'conversions': report.totals.conversions,
                'anomaly_count': len(anomalies.anomalies)
            }
        return {
            'success': False,
            'error': f'Slack API returned status {response.status_code}: {response.body}',
            'week': week_label
        }
    except Exception as e:
        logger.error(f"Weekly digest send failed for {week_label}: {e}", exc_info=True)
        return {
            'success': False,
            'error': f'Failed to send Slack message: {str(e)}',
            'week': week_label
        }


async def _run_from_cli() -> Dict[str, Any]:
    from pulse.core.client import close_analytics_gateway, create_analytics_gateway
    from pulse.core.config import get_settings

    settings = get_settings()
    gateway = create_analytics_gateway(settings)
    try:
        return await send_weekly_digest(gateway, settings)
    finally:
        await close_analytics_gateway(gateway)


if __name__ == "__main__":
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    result = asyncio.run(_run_from_cli())
    logger.info(f"Weekly digest result: {result}")
