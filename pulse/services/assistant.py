"""
Analytics Assistant Service

Conversational access to the analytics operations through Claude tool use.

Flow:
    1. The user's message (plus prior turns) is sent with the TOOLS catalogue
    2. While the model stops with stop_reason == "tool_use", every requested
       tool is executed concurrently against the gateway and the JSON results
       are sent back as tool_result blocks
    3. The first text block of the final response is returned

The loop is bounded by max_tool_rounds so a model that keeps requesting tools
cannot hold the request open indefinitely. Tool results are pretty-printed
JSON; an unknown tool name yields {"error": "Unknown tool: <name>"} rather than
an exception so the model can recover.

generate_report builds a canned daily / weekly / monthly prompt from live
data and runs it through chat with no history.
"""

import asyncio
import json
import logging
from typing import Any, Dict, List, Optional, Sequence

from pydantic import BaseModel

from pulse.models.enums import AnomalyMetric, ReportType
from pulse.models.schemas import ChatMessage, DateRange
from pulse.services import analytics
from pulse.services.anomaly import DEFAULT_ANOMALY_THRESHOLD
from pulse.services.gateway import AnalyticsGateway

logger = logging.getLogger(__name__)


# =============================================================================
# CONSTANTS
# =============================================================================

DEFAULT_MODEL: str = "claude-sonnet-4-20250514"
DEFAULT_MAX_TOKENS: int = 4096
DEFAULT_MAX_TOOL_ROUNDS: int = 10

FALLBACK_RESPONSE: str = "I apologize, but I couldn't generate a response."

SYSTEM_PROMPT: str = """You are an expert Google Analytics analyst assistant. You help users understand their website traffic, identify trends, and provide actionable insights.

When users ask about their analytics data, use the available tools to fetch real data and provide clear, insightful responses.

Key guidelines:
- Always provide context for numbers (e.g., "This is a 15% increase compared to the previous period")
- Highlight notable trends or anomalies
- Suggest actionable next steps when appropriate
- Be concise but thorough in your analysis
- If you detect any issues or opportunities, proactively mention them

For date references:
- "yesterday" means the previous day
- "last week" means the 7 days ending yesterday
- "last month" means the 30 days ending yesterday
- "this week" means the current week starting from Monday
- "this month" means from the 1st of the current month to today"""

# Current and previous ranges per canned report type.
REPORT_DATE_RANGES: Dict[ReportType, Dict[str, DateRange]] = {
    ReportType.DAILY: {
        "current": DateRange(startDate="yesterday", endDate="yesterday"),
        "previous": DateRange(startDate="2daysAgo", endDate="2daysAgo"),
    },
    ReportType.WEEKLY: {
        "current": DateRange(startDate="7daysAgo", endDate="yesterday"),
        "previous": DateRange(startDate="14daysAgo", endDate="8daysAgo"),
    },
    ReportType.MONTHLY: {
        "current": DateRange(startDate="30daysAgo", endDate="yesterday"),
        "previous": DateRange(startDate="60daysAgo", endDate="31daysAgo"),
    },
}


# =============================================================================
# Tool Catalogue
# =============================================================================

_DATE_RANGE_PROPERTIES: Dict[str, Any] = {
    "startDate": {
        "type": "string",
        "description": "Start date in format YYYY-MM-DD or relative like '7daysAgo', '30daysAgo', 'yesterday'",
    },
    "endDate": {
        "type": "string",
        "description": "End date in format YYYY-MM-DD or relative like 'today', 'yesterday'",
    },
}

TOOLS: List[Dict[str, Any]] = [
    {
        "name": "get_metrics",
        "description": (
            "Fetch key performance metrics from Google Analytics for a specified date range. "
            "Returns daily data for users, sessions, bounce rate, conversions, and pageviews."
        ),
        "input_schema": {
            "type": "object",
            "properties": _DATE_RANGE_PROPERTIES,
            "required": ["startDate", "endDate"],
        },
    },
    {
        "name": "get_aggregated_metrics",
        "description": (
            "Fetch aggregated (total) metrics for a date range. Returns single totals for "
            "users, sessions, bounce rate, conversions, and pageviews."
        ),
        "input_schema": {
            "type": "object",
            "properties": _DATE_RANGE_PROPERTIES,
            "required": ["startDate", "endDate"],
        },
    },
    {
        "name": "get_top_pages",
        "description": "Get the most visited pages on the website for a specified date range.",
        "input_schema": {
            "type": "object",
            "properties": {
                **_DATE_RANGE_PROPERTIES,
                "limit": {
                    "type": "number",
                    "description": "Maximum number of pages to return (default: 10)",
                },
            },
            "required": ["startDate", "endDate"],
        },
    },
    {
        "name": "get_traffic_sources",
        "description": "Get traffic acquisition data showing where visitors come from (sources and mediums).",
        "input_schema": {
            "type": "object",
            "properties": _DATE_RANGE_PROPERTIES,
            "required": ["startDate", "endDate"],
        },
    },
    {
        "name": "compare_periods",
        "description": "Compare metrics between two time periods to see growth or decline.",
        "input_schema": {
            "type": "object",
            "properties": {
                "period1StartDate": {"type": "string", "description": "Start date of first (current) period"},
                "period1EndDate": {"type": "string", "description": "End date of first (current) period"},
                "period2StartDate": {"type": "string", "description": "Start date of second (comparison) period"},
                "period2EndDate": {"type": "string", "description": "End date of second (comparison) period"},
            },
            "required": ["period1StartDate", "period1EndDate", "period2StartDate", "period2EndDate"],
        },
    },
    {
        "name": "detect_anomalies",
        "description": (
            "Detect unusual spikes or drops in a specific metric over the last 30 days "
            "using statistical analysis."
        ),
        "input_schema": {
            "type": "object",
            "properties": {
                "metric": {
                    "type": "string",
                    "enum": [metric.value for metric in AnomalyMetric],
                    "description": "The metric to analyze for anomalies",
                },
                "threshold": {
                    "type": "number",
                    "description": "Standard deviation threshold for anomaly detection (default: 2)",
                },
            },
            "required": ["metric"],
        },
    },
    {
        "name": "get_channel_breakdown",
        "description": (
            "Break traffic down by marketing category (organic search, paid search, AI assistants, "
            "listings, social, referral, direct, other) with sessions, conversions, form submissions, "
            "phone calls and click-to-lead rate per source/medium."
        ),
        "input_schema": {
            "type": "object",
            "properties": _DATE_RANGE_PROPERTIES,
            "required": ["startDate", "endDate"],
        },
    },
    {
        "name": "compare_with_last_year",
        "description": (
            "Compare a period against the same dates one year earlier, including Search Console "
            "impressions and clicks, form submissions, phone calls and click-to-lead rate."
        ),
        "input_schema": {
            "type": "object",
            "properties": _DATE_RANGE_PROPERTIES,
            "required": ["startDate", "endDate"],
        },
    },
]


# =============================================================================
# Tool Execution
# =============================================================================


def _to_json(result: Any) -> str:
    """Pretty-print a model, a list of models, or plain data."""
    if isinstance(result, BaseModel):
        payload = result.model_dump(mode="json")
    elif isinstance(result, list):
        payload = [item.model_dump(mode="json") if isinstance(item, BaseModel) else item for item in result]
    else:
        payload = result
    return json.dumps(payload, indent=2)


def _date_range(tool_input: Dict[str, Any], prefix: str = "") -> DateRange:
    if prefix:
        return DateRange(
            startDate=tool_input[f"{prefix}StartDate"],
            endDate=tool_input[f"{prefix}EndDate"],
        )
    return DateRange(startDate=tool_input["startDate"], endDate=tool_input["endDate"])


async def execute_tool_call(gateway: AnalyticsGateway, tool_name: str, tool_input: Dict[str, Any]) -> str:
    """
    Run one assistant tool against the gateway.

    Args:
        gateway: Analytics gateway to query.
        tool_name: Name from TOOLS.
        tool_input: The model's input object for the tool.

    Returns:
        JSON string (indent=2) of the operation result, or an error object for
        an unknown tool name.

    Raises:
        Whatever the underlying analytics operation raises.
    """
    logger.info(f"Assistant tool call: {tool_name}")

    if tool_name == "get_metrics":
        result = await analytics.get_metrics(gateway, _date_range(tool_input))
    elif tool_name == "get_aggregated_metrics":
        result = await analytics.get_aggregated_metrics(gateway, _date_range(tool_input))
    elif tool_name == "get_top_pages":
        limit = int(tool_input.get("limit") or analytics.DEFAULT_TOP_PAGES_LIMIT)
        result = await analytics.get_top_pages(gateway, _date_range(tool_input), limit)
    elif tool_name == "get_traffic_sources":
        result = await analytics.get_traffic_sources(gateway, _date_range(tool_input))
    elif tool_name == "compare_periods":
        result = await analytics.compare_periods(
            gateway,
            _date_range(tool_input, "period1"),
            _date_range(tool_input, "period2"),
        )
    elif tool_name == "detect_anomalies":
        threshold = tool_input.get("threshold")
        result = await analytics.detect_metric_anomalies(
            gateway,
            tool_input["metric"],
            float(threshold) if threshold is not None else DEFAULT_ANOMALY_THRESHOLD,
        )
    elif tool_name == "get_channel_breakdown":
        result = await analytics.get_detailed_channel_breakdown(gateway, _date_range(tool_input))
    elif tool_name == "compare_with_last_year":
        result = await analytics.compare_with_last_year(gateway, _date_range(tool_input))
    else:
        logger.warning(f"Assistant requested unknown tool: {tool_name}")
        return json.dumps({"error": f"Unknown tool: {tool_name}"})

    return _to_json(result)


# =============================================================================
# Chat Loop
# =============================================================================


def _first_text(content: Sequence[Any]) -> Optional[str]:
    for block in content:
        if getattr(block, "type", None) == "text" and getattr(block, "text", None):
            return block.text
    return None


async def chat(
    client: Any,
    gateway: AnalyticsGateway,
    message: str,
    history: Optional[Sequence[ChatMessage]] = None,
    model: str = DEFAULT_MODEL,
    max_tokens: int = DEFAULT_MAX_TOKENS,
    max_tool_rounds: int = DEFAULT_MAX_TOOL_ROUNDS,
) -> str:
    """
    Answer a user message, calling analytics tools as the model requests.

    Args:
        client: AsyncAnthropic client (anything with `await messages.create(...)`).
        gateway: Analytics gateway the tools query.
        message: The new user message.
        history: Prior turns, oldest first.
        model: Claude model name.
        max_tokens: Response token cap per model call.
        max_tool_rounds: Maximum tool-use round trips before answering with
            whatever the last response holds.

    Returns:
        The first text block of the final response, or FALLBACK_RESPONSE.
    """
    messages: List[Dict[str, Any]] = [
        {"role": turn.role, "content": turn.content} for turn in (history or [])
    ]
    messages.append({"role": "user", "content": message})

    async def create():
        return await client.messages.create(
            model=model,
            max_tokens=max_tokens,
            system=SYSTEM_PROMPT,
            tools=TOOLS,
            messages=messages,
        )

    response = await create()

    rounds = 0
    while response.stop_reason == "tool_use":
        if rounds >= max_tool_rounds:
            logger.warning(f"Assistant stopped after {rounds} tool rounds without a final answer")
            break
        rounds += 1

        tool_blocks = [block for block in response.content if block.type == "tool_use"]
        outputs = await asyncio.gather(*[
            execute_tool_call(gateway, block.name, dict(block.input or {}))
            for block in tool_blocks
        ])
        tool_results = [
            {"type": "tool_result", "tool_use_id": block.id, "content": output}
            for block, output in zip(tool_blocks, outputs)
        ]

        messages.append({"role": "assistant", "content": response.content})
        messages.append({"role": "user", "content": tool_results})

        response = await create()

    return _first_text(response.content) or FALLBACK_RESPONSE


# =============================================================================
# Canned Reports
# =============================================================================


async def generate_report(
    client: Any,
    gateway: AnalyticsGateway,
    report_type: ReportType = ReportType.WEEKLY,
    model: str = DEFAULT_MODEL,
    max_tokens: int = DEFAULT_MAX_TOKENS,
    max_tool_rounds: int = DEFAULT_MAX_TOOL_ROUNDS,
) -> str:
    """
    Generate a written daily, weekly or monthly report.

    Fetches aggregated metrics, top 5 pages, traffic sources, the comparison
    with the previous period and user anomalies, then asks the assistant for
    a six-section report over that data.
    """
    report_type = ReportType(report_type)
    ranges = REPORT_DATE_RANGES[report_type]
    current = ranges["current"]
    previous = ranges["previous"]

    metrics, top_pages, traffic_sources, comparison, anomalies = await asyncio.gather(
        analytics.get_aggregated_metrics(gateway, current),
        analytics.get_top_pages(gateway, current, analytics.DASHBOARD_TOP_PAGES_LIMIT),
        analytics.get_traffic_sources(gateway, current),
        analytics.compare_periods(gateway, current, previous),
        analytics.detect_metric_anomalies(gateway, "users"),
    )

    prompt = f"""Generate a {report_type.value} analytics report based on this data:

Current Period Metrics:
{_to_json(metrics)}

Top Pages:
{_to_json(top_pages)}

Traffic Sources:
{_to_json(traffic_sources)}

Period Comparison:
{_to_json(comparison)}

Anomaly Detection (Users):
{_to_json(anomalies)}

Please provide a well-structured report with:
1. Executive Summary (2-3 sentences)
2. Key Metrics Overview
3. Notable Trends
4. Top Performing Content
5. Traffic Analysis
6. Recommendations"""

    return await chat(
        client,
        gateway,
        prompt,
        model=model,
        max_tokens=max_tokens,
        max_tool_rounds=max_tool_rounds,
    )
