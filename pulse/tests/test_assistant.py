"""
Tests for the analytics assistant: tool dispatch, the tool-use loop and
canned report generation.

The Anthropic client is replaced by a namespace whose messages.create is an
AsyncMock returning canned responses built with the conftest helpers.
"""

import json
from types import SimpleNamespace
from unittest.mock import AsyncMock

import pytest

from pulse.models.enums import ReportType
from pulse.models.schemas import ChatMessage, DateRange
from pulse.queries.reports import ANOMALY_METRIC_MAP
from pulse.services.assistant import (
    FALLBACK_RESPONSE,
    SYSTEM_PROMPT,
    TOOLS,
    chat,
    execute_tool_call,
    generate_report,
)
from pulse.tests.conftest import FakeGateway, assistant_message, text_block, tool_use_block


pytestmark = pytest.mark.asyncio


def mock_client(*responses):
    """Client whose messages.create returns the given responses in order."""
    return SimpleNamespace(messages=SimpleNamespace(create=AsyncMock(side_effect=list(responses))))


# =============================================================================
# Tool Catalogue and Dispatch
# =============================================================================

class TestExecuteToolCall:

    async def test_catalogue_names(self) -> None:
        names = [tool["name"] for tool in TOOLS]

        assert names == [
            "get_metrics",
            "get_aggregated_metrics",
            "get_top_pages",
            "get_traffic_sources",
            "compare_periods",
            "detect_anomalies",
            "get_channel_breakdown",
            "compare_with_last_year",
        ]
        assert all(tool["input_schema"]["type"] == "object" for tool in TOOLS)

    async def test_anomaly_metric_choices(self) -> None:
        tool = next(t for t in TOOLS if t["name"] == "detect_anomalies")
        choices = tool["input_schema"]["properties"]["metric"]["enum"]

        assert choices == ["users", "sessions", "pageviews", "bounceRate"]
        assert set(choices) == set(ANOMALY_METRIC_MAP)

    async def test_get_top_pages_with_limit(self, fake_gateway) -> None:
        output = await execute_tool_call(
            fake_gateway,
            "get_top_pages",
            {"startDate": "7daysAgo", "endDate": "today", "limit": 2},
        )

        pages = json.loads(output)
        assert [page["path"] for page in pages] == ["/", "/services"]
        assert "\n  " in output

    async def test_compare_periods_reads_both_ranges(self, fake_gateway) -> None:
        await execute_tool_call(
            fake_gateway,
            "compare_periods",
            {
                "period1StartDate": "7daysAgo",
                "period1EndDate": "yesterday",
                "period2StartDate": "14daysAgo",
                "period2EndDate": "8daysAgo",
            },
        )

        assert fake_gateway.called("aggregated_metrics") == [
            DateRange(startDate="7daysAgo", endDate="yesterday"),
            DateRange(startDate="14daysAgo", endDate="8daysAgo"),
        ]

    async def test_detect_anomalies_tool(self, fake_gateway) -> None:
        output = await execute_tool_call(fake_gateway, "detect_anomalies", {"metric": "sessions"})

        assert json.loads(output) == {"hasAnomaly": False, "anomalies": []}
        assert fake_gateway.queries[0].name == "anomaly_series:sessions"

    async def test_channel_breakdown_tool(self, fake_gateway) -> None:
        output = await execute_tool_call(
            fake_gateway, "get_channel_breakdown", {"startDate": "7daysAgo", "endDate": "today"}
        )

        data = json.loads(output)
        assert data["breakdown"]["llmAI"][0]["source"] == "chatgpt.com"

    async def test_unknown_tool(self, fake_gateway) -> None:
        output = await execute_tool_call(fake_gateway, "delete_property", {})

        assert json.loads(output) == {"error": "Unknown tool: delete_property"}
        assert fake_gateway.calls == []

    async def test_operation_errors_propagate(self, week_reports) -> None:
        gateway = FakeGateway(week_reports, failures=["aggregated_metrics"])

        with pytest.raises(RuntimeError):
            await execute_tool_call(gateway, "get_aggregated_metrics", {"startDate": "a", "endDate": "b"})


# =============================================================================
# Chat Loop
# =============================================================================

class TestChat:

    async def test_plain_answer(self, fake_gateway) -> None:
        client = mock_client(assistant_message(text_block("Traffic is steady.")))

        answer = await chat(client, fake_gateway, "How is traffic?")

        assert answer == "Traffic is steady."
        kwargs = client.messages.create.call_args.kwargs
        assert kwargs["system"] == SYSTEM_PROMPT
        assert kwargs["tools"] == TOOLS
        assert kwargs["messages"] == [{"role": "user", "content": "How is traffic?"}]

    async def test_history_precedes_message(self, fake_gateway) -> None:
        client = mock_client(assistant_message(text_block("Sure.")))
        history = [
            ChatMessage(role="user", content="Hi"),
            ChatMessage(role="assistant", content="Hello!"),
        ]

        await chat(client, fake_gateway, "And last week?", history)

        messages = client.messages.create.call_args.kwargs["messages"]
        assert [m["role"] for m in messages] == ["user", "assistant", "user"]
        assert messages[-1]["content"] == "And last week?"

    async def test_tool_round_trip(self, fake_gateway) -> None:
        client = mock_client(
            assistant_message(
                text_block("Let me check."),
                tool_use_block("toolu_1", "get_aggregated_metrics", {"startDate": "7daysAgo", "endDate": "today"}),
                stop_reason="tool_use",
            ),
            assistant_message(text_block("You had 300 users.")),
        )

        answer = await chat(client, fake_gateway, "How many users?")

        assert answer == "You had 300 users."
        assert client.messages.create.await_count == 2
        assert fake_gateway.called("aggregated_metrics") == [DateRange(startDate="7daysAgo", endDate="today")]

        messages = client.messages.create.call_args.kwargs["messages"]
        assert messages[1]["role"] == "assistant"
        tool_result = messages[2]["content"][0]
        assert tool_result["type"] == "tool_result"
        assert tool_result["tool_use_id"] == "toolu_1"
        assert json.loads(tool_result["content"])["users"] == 300

    async def test_parallel_tool_blocks_answered_in_order(self, fake_gateway) -> None:
        client = mock_client(
            assistant_message(
                tool_use_block("toolu_a", "get_traffic_sources", {"startDate": "7daysAgo", "endDate": "today"}),
                tool_use_block("toolu_b", "no_such_tool", {}),
                stop_reason="tool_use",
            ),
            assistant_message(text_block("Done.")),
        )

        await chat(client, fake_gateway, "Sources?")

        tool_results = client.messages.create.call_args.kwargs["messages"][2]["content"]
        assert [r["tool_use_id"] for r in tool_results] == ["toolu_a", "toolu_b"]
        assert "Unknown tool" in tool_results[1]["content"]

    async def test_fallback_without_text(self, fake_gateway) -> None:
        client = mock_client(assistant_message())

        assert await chat(client, fake_gateway, "Hello?") == FALLBACK_RESPONSE

    async def test_tool_rounds_capped(self, fake_gateway) -> None:
        looping = assistant_message(
            tool_use_block("toolu_x", "get_aggregated_metrics", {"startDate": "7daysAgo", "endDate": "today"}),
            stop_reason="tool_use",
        )
        client = SimpleNamespace(messages=SimpleNamespace(create=AsyncMock(return_value=looping)))

        answer = await chat(client, fake_gateway, "Loop forever", max_tool_rounds=2)

        assert answer == FALLBACK_RESPONSE
        # initial call plus one per allowed round
        assert client.messages.create.await_count == 3
        assert len(fake_gateway.called("aggregated_metrics")) == 2

    async def test_model_settings_forwarded(self, fake_gateway) -> None:
        client = mock_client(assistant_message(text_block("ok")))

        await chat(client, fake_gateway, "hi", model="claude-test", max_tokens=256)

        kwargs = client.messages.create.call_args.kwargs
        assert kwargs["model"] == "claude-test"
        assert kwargs["max_tokens"] == 256


# =============================================================================
# Canned Reports
# =============================================================================

class TestGenerateReport:

    async def test_weekly_report_prompt(self, fake_gateway) -> None:
        client = mock_client(assistant_message(text_block("## Executive Summary")))

        report = await generate_report(client, fake_gateway, ReportType.WEEKLY)

        assert report == "## Executive Summary"
        prompt = client.messages.create.call_args.kwargs["messages"][0]["content"]
        assert prompt.startswith("Generate a weekly analytics report")
        for section in (
            "1. Executive Summary",
            "2. Key Metrics Overview",
            "3. Notable Trends",
            "4. Top Performing Content",
            "5. Traffic Analysis",
            "6. Recommendations",
        ):
            assert section in prompt

    async def test_weekly_ranges(self, fake_gateway) -> None:
        client = mock_client(assistant_message(text_block("report")))

        await generate_report(client, fake_gateway, ReportType.WEEKLY)

        assert fake_gateway.called("aggregated_metrics") == [
            DateRange(startDate="7daysAgo", endDate="yesterday"),
            DateRange(startDate="7daysAgo", endDate="yesterday"),
            DateRange(startDate="14daysAgo", endDate="8daysAgo"),
        ]
        top_pages_query = next(q for q in fake_gateway.queries if q.name == "top_pages")
        assert top_pages_query.limit == 5

    async def test_daily_report_uses_yesterday(self, fake_gateway) -> None:
        client = mock_client(assistant_message(text_block("report")))

        await generate_report(client, fake_gateway, ReportType.DAILY)

        assert DateRange(startDate="2daysAgo", endDate="2daysAgo") in fake_gateway.called("aggregated_metrics")
        prompt = client.messages.create.call_args.kwargs["messages"][0]["content"]
        assert prompt.startswith("Generate a daily analytics report")

    async def test_accepts_plain_string(self, fake_gateway) -> None:
        client = mock_client(assistant_message(text_block("report")))

        await generate_report(client, fake_gateway, "monthly")

        assert DateRange(startDate="60daysAgo", endDate="31daysAgo") in fake_gateway.called("aggregated_metrics")
