"""Integration tests for /healthz and /metrics endpoints."""

from unittest.mock import MagicMock, patch

import pytest
from fastapi.testclient import TestClient

from backend.app.main import app


@pytest.fixture
def client() -> TestClient:
    """Create test client."""
    return TestClient(app)


class TestHealthEndpoint:
    """Test /health and /healthz endpoints."""

    def test_health_always_ok(self, client: TestClient) -> None:
        response = client.get("/health")

        assert response.status_code == 200
        assert response.json() == {"status": "ok"}

    @patch("backend.app.api.routes.health.check_db")
    @patch("backend.app.api.routes.health.check_webhook")
    def test_healthz_returns_200_when_db_ok(
        self,
        mock_check_webhook: MagicMock,
        mock_check_db: MagicMock,
        client: TestClient,
    ) -> None:
        """Test /healthz returns 200 when the database is reachable."""
        mock_check_db.return_value = (True, "ok")
        mock_check_webhook.return_value = (True, "configured")

        response = client.get("/healthz")

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "ok"
        assert data["components"] == {"db": "ok", "webhook": "configured"}

    @patch("backend.app.api.routes.health.check_db")
    @patch("backend.app.api.routes.health.check_webhook")
    def test_healthz_returns_503_when_db_fails(
        self,
        mock_check_webhook: MagicMock,
        mock_check_db: MagicMock,
        client: TestClient,
    ) -> None:
        """Test /healthz returns 503 when DB check fails."""
        mock_check_db.return_value = (False, "error: OperationalError")
        mock_check_webhook.return_value = (True, "log_only")

        response = client.get("/healthz")

        assert response.status_code == 503
        data = response.json()
        assert data["status"] == "degraded"
        assert data["components"]["db"] == "error: OperationalError"
        assert data["components"]["webhook"] == "log_only"

    def test_healthz_against_sqlite(self, client: TestClient) -> None:
        """The test database URL is in-memory SQLite, which always connects."""
        response = client.get("/healthz")

        assert response.status_code == 200
        assert response.json()["components"]["db"] == "ok"


class TestMetricsEndpoint:
    """Test /metrics endpoint."""

    def test_metrics_returns_prometheus_format(self, client: TestClient) -> None:
        """Test /metrics returns Prometheus text format."""
        response = client.get("/metrics")

        assert response.status_code == 200
        assert "text/plain" in response.headers["content-type"]
        assert "# HELP" in response.text or "# TYPE" in response.text

    def test_metrics_includes_workflow_metrics(self, client: TestClient) -> None:
        """Test /metrics includes survey workflow counters."""
        from backend.app.utils.metrics import PrometheusWorkflowMetrics

        metrics = PrometheusWorkflowMetrics()
        metrics.inc_workflow("publish", "success")
        metrics.inc_compensation("rolled_back")
        metrics.inc_notification_failure("SURVEY_CREATED")

        response = client.get("/metrics")

        assert response.status_code == 200
        text = response.text
        assert "survey_workflow_total" in text
        assert "survey_compensation_total" in text
        assert "survey_notification_failures_total" in text

    def test_metrics_can_be_scraped_multiple_times(self, client: TestClient) -> None:
        """Test /metrics endpoint can be called multiple times."""
        response1 = client.get("/metrics")
        response2 = client.get("/metrics")

        assert response1.status_code == 200
        assert response2.status_code == 200


class TestRootEndpoint:
    """Test root endpoint."""

    def test_root_returns_api_info(self, client: TestClient) -> None:
        """Test root endpoint returns API information."""
        response = client.get("/")

        assert response.status_code == 200
        data = response.json()
        assert data["message"] == "MoSurveys API"
        assert data["version"] == "0.1.0"
