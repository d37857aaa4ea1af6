"""
Tests for the HTTP surface: /analytics, /analytics/weekly, /analytics/chat,
/health and /.

The app is exercised through TestClient without entering the lifespan, so no
Google or Anthropic client is ever built. Routes receive a FakeGateway, a
mocked assistant client and test Settings through app.dependency_overrides.
"""

from datetime import date
from types import SimpleNamespace
from unittest.mock import AsyncMock

import pytest
from fastapi.testclient import TestClient

from pulse.api.analytics import INVALID_ACTION_DETAIL
from pulse.core.dependencies import get_assistant_client, get_gateway, get_settings_dependency
from pulse.main import app
from pulse.tests.conftest import FakeGateway, assistant_message, flat_series_rows, text_block


# ============================================================
# FIXTURES
# ============================================================

@pytest.fixture
def assistant_client():
    return SimpleNamespace(
        messages=SimpleNamespace(create=AsyncMock(return_value=assistant_message(text_block("All good."))))
    )


@pytest.fixture
def override(test_settings, assistant_client):
    """Install dependency overrides for one test, then remove them."""
    def install(gateway):
        app.dependency_overrides[get_gateway] = lambda: gateway
        app.dependency_overrides[get_assistant_client] = lambda: assistant_client
        app.dependency_overrides[get_settings_dependency] = lambda: test_settings
        return TestClient(app)

    yield install
    app.dependency_overrides.clear()


@pytest.fixture
def client(override, fake_gateway):
    return override(fake_gateway)


# ============================================================
# /analytics
# ============================================================

class TestAnalyticsEndpoint:
    """Action dispatch, validation and the success envelope."""

    def test_missing_action(self, client) -> None:
        response = client.get("/analytics")

        assert response.status_code == 400
        assert response.json() == {"detail": INVALID_ACTION_DETAIL}

    def test_unknown_action(self, client) -> None:
        response = client.get("/analytics", params={"action": "funnel"})

        assert response.status_code == 400

    def test_aggregated(self, client) -> None:
        response = client.get("/analytics", params={"action": "aggregated"})

        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        assert body["data"]["users"] == 300
        assert body["data"]["bounceRate"] == pytest.approx(40.0)

    def test_metrics(self, client) -> None:
        response = client.get("/analytics", params={"action": "metrics"})

        assert [day["date"] for day in response.json()["data"]] == ["2024-01-08", "2024-01-09"]

    def test_top_pages_limit(self, client, fake_gateway) -> None:
        response = client.get("/analytics", params={"action": "topPages", "limit": 2})

        assert len(response.json()["data"]) == 2
        assert fake_gateway.queries[-1].limit == 2

    def test_limit_must_be_positive(self, client) -> None:
        response = client.get("/analytics", params={"action": "topPages", "limit": 0})

        assert response.status_code == 422

    def test_date_range_forwarded(self, client, fake_gateway) -> None:
        client.get(
            "/analytics",
            params={"action": "trafficSources", "startDate": "2024-01-01", "endDate": "2024-01-31"},
        )

        date_range = fake_gateway.called("traffic_sources")[0]
        assert (date_range.startDate, date_range.endDate) == ("2024-01-01", "2024-01-31")

    def test_compare_default_second_period(self, client, fake_gateway) -> None:
        response = client.get("/analytics", params={"action": "compare"})

        assert response.json()["data"]["changes"] == {"users": 0.0, "sessions": 0.0, "pageviews": 0.0}
        second = fake_gateway.called("aggregated_metrics")[1]
        assert (second.startDate, second.endDate) == ("14daysAgo", "8daysAgo")

    def test_dashboard(self, client) -> None:
        data = client.get("/analytics", params={"action": "dashboard"}).json()["data"]

        assert set(data) == {"aggregated", "metrics", "topPages", "trafficSources", "anomalies"}

    def test_upstream_failure_is_500(self, override, week_reports) -> None:
        client = override(FakeGateway(week_reports, failures=["aggregated_metrics"]))

        response = client.get("/analytics", params={"action": "aggregated"})

        assert response.status_code == 500
        assert response.json()["detail"].startswith("Analytics query failed: ")


class TestAnomaliesAction:
    """Threshold comes from the query string, else from settings."""

    def spiking_gateway(self):
        return FakeGateway({"anomaly_series:users": flat_series_rows(100, spike=(29, 400))})

    def test_default_threshold_from_settings(self, override, test_settings) -> None:
        test_settings.anomaly_threshold = 10.0
        client = override(self.spiking_gateway())

        data = client.get("/analytics", params={"action": "anomalies"}).json()["data"]

        assert data == {"hasAnomaly": False, "anomalies": []}

    def test_explicit_threshold(self, override, test_settings) -> None:
        test_settings.anomaly_threshold = 10.0
        client = override(self.spiking_gateway())

        data = client.get("/analytics", params={"action": "anomalies", "threshold": 2}).json()["data"]

        assert data["hasAnomaly"] is True
        assert data["anomalies"][0]["date"] == "2024-01-30"


# ============================================================
# /analytics/weekly
# ============================================================

class TestWeeklyEndpoint:

    def test_custom_period(self, client, fake_gateway) -> None:
        response = client.get(
            "/analytics/weekly",
            params={"period": "custom", "startDate": "2024-01-08", "endDate": "2024-01-14"},
        )

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["period"]["current"] == {"startDate": "2024-01-08", "endDate": "2024-01-14"}
        assert data["period"]["lastYear"] == {"startDate": "2023-01-08", "endDate": "2023-01-14"}
        assert data["totals"]["users"] == 1485
        assert set(data["detailedBreakdown"]) == {
            "organicSearch", "paidSearch", "llmAI", "listings", "social", "referral", "direct", "other",
        }

    def test_last_week_is_monday_to_sunday(self, client, fake_gateway) -> None:
        client.get("/analytics/weekly")

        week = fake_gateway.called("weekly_metrics")[0]
        assert date.fromisoformat(week.startDate).weekday() == 0
        assert date.fromisoformat(week.endDate).weekday() == 6

    def test_invalid_period(self, client) -> None:
        response = client.get("/analytics/weekly", params={"period": "lastMonth"})

        assert response.status_code == 422

    def test_failure_is_500(self, override, week_reports) -> None:
        client = override(FakeGateway(week_reports, failures=["source_medium"]))

        response = client.get("/analytics/weekly", params={"period": "custom"})

        assert response.status_code == 500
        assert response.json()["detail"].startswith("Failed to build weekly report: ")


# ============================================================
# /analytics/chat
# ============================================================

class TestChatEndpoint:

    def test_message_required(self, client) -> None:
        response = client.post("/analytics/chat", json={"history": []})

        assert response.status_code == 400
        assert response.json() == {"detail": "Message is required"}

    def test_chat_answer(self, client, assistant_client, test_settings) -> None:
        response = client.post("/analytics/chat", json={"message": "How are we doing?"})

        assert response.status_code == 200
        assert response.json() == {"success": True, "response": "All good."}
        kwargs = assistant_client.messages.create.call_args.kwargs
        assert kwargs["model"] == test_settings.assistant_model

    def test_report_action_ignores_message(self, client, assistant_client) -> None:
        response = client.post("/analytics/chat", json={"action": "report", "reportType": "monthly"})

        assert response.status_code == 200
        prompt = assistant_client.messages.create.call_args.kwargs["messages"][0]["content"]
        assert prompt.startswith("Generate a monthly analytics report")

    def test_invalid_report_type(self, client) -> None:
        response = client.post("/analytics/chat", json={"action": "report", "reportType": "yearly"})

        assert response.status_code == 422

    def test_assistant_failure_is_500(self, client, assistant_client) -> None:
        assistant_client.messages.create.side_effect = RuntimeError("overloaded")

        response = client.post("/analytics/chat", json={"message": "hi"})

        assert response.status_code == 500
        assert response.json()["detail"] == "Assistant request failed: overloaded"


# ============================================================
# UNCONFIGURED CLIENTS AND SERVICE ENDPOINTS
# ============================================================

class TestServiceEndpoints:

    def test_missing_gateway_is_503(self) -> None:
        app.state.gateway = None
        client = TestClient(app)

        response = client.get("/analytics", params={"action": "aggregated"})

        assert response.status_code == 503

    def test_missing_assistant_is_503(self, fake_gateway) -> None:
        app.state.assistant_client = None
        app.dependency_overrides[get_gateway] = lambda: fake_gateway
        try:
            response = TestClient(app).post("/analytics/chat", json={"message": "hi"})
        finally:
            app.dependency_overrides.clear()

        assert response.status_code == 503

    def test_health(self) -> None:
        app.state.gateway = None
        app.state.assistant_client = None

        response = TestClient(app).get("/health")

        assert response.json() == {"status": "healthy", "analytics": False, "assistant": False}

    def test_root(self) -> None:
        body = TestClient(app).get("/").json()

        assert body["name"] == "Traffic Pulse API"
        assert body["docs"] == "/docs"
