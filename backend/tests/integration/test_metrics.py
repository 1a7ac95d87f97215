"""Integration tests for the Prometheus metrics endpoint."""

import pytest
from httpx import AsyncClient

from src.core.config import Settings, get_settings
from src.main import app


@pytest.mark.asyncio
async def test_metrics_endpoint_returns_prometheus_metrics(client: AsyncClient):
    # Touch a save and a render so every family has samples.
    await client.put(
        "/api/projects/p1/assessment/fields/aiSystemPurpose", json={"value": "Scoring"}
    )
    await client.post("/api/projects/p1/reports", json={"format": "html"})

    response = await client.get("/api/metrics")
    assert response.status_code == 200
    body = response.text

    assert "riskassess_http_requests_total" in body
    assert "riskassess_http_request_duration_seconds" in body
    assert "riskassess_assessment_saves_total" in body
    assert 'riskassess_report_renders_total{format="html",outcome="ok"}' in body


@pytest.mark.asyncio
async def test_metrics_require_token_in_production(client: AsyncClient):
    app.dependency_overrides[get_settings] = lambda: Settings(
        environment="production",
        storage_backend="database",
        database_url="postgresql+asyncpg://localhost/riskassess",
        metrics_token="s3cret",
    )

    assert (await client.get("/api/metrics")).status_code == 403
    response = await client.get("/api/metrics", headers={"Authorization": "Bearer s3cret"})
    assert response.status_code == 200
