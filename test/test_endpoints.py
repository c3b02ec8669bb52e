# test/test_endpoints.py
from unittest import mock

import pytest
from fastapi.testclient import TestClient

from ventas_etl.api.endpoints import get_orchestrator
from ventas_etl.core.dates import window_for_range
from ventas_etl.main import app
from ventas_etl.services.etl_service import SyncResult


@pytest.fixture
def orchestrator():
    orchestrator = mock.Mock()
    orchestrator.run.return_value = SyncResult(companies=2, documents=3, detail_lines=6, inserted=6)
    app.dependency_overrides[get_orchestrator] = lambda: orchestrator
    yield orchestrator
    app.dependency_overrides.clear()


@pytest.fixture
def client():
    return TestClient(app)


def test_health(client):
    assert client.get("/health").json() == {"status": "ok"}
    body = client.get("/api/v1/scheduler/health").json()
    assert body["status"] == "healthy"
    assert body["companies_configured"] == 2


def test_sync_endpoint_runs_backfill(client, orchestrator):
    response = client.post("/api/v1/etl/ventas", params={
        "fecha_inicio": "2024-03-01", "fecha_fin": "2024-03-31", "start_company_index": 1,
    })

    assert response.status_code == 200
    assert response.json()["inserted"] == 6
    args, kwargs = orchestrator.run.call_args
    assert args[0] == window_for_range("2024-03-01", "2024-03-31")
    assert kwargs == {"start_company_index": 1, "start_offset": None}


def test_sync_endpoint_rejects_single_date(client, orchestrator):
    response = client.post("/api/v1/etl/ventas", params={"fecha_inicio": "2024-03-01"})

    assert response.status_code == 400
    orchestrator.run.assert_not_called()


def test_sync_endpoint_reports_failure(client, orchestrator):
    orchestrator.run.side_effect = RuntimeError("connection refused")

    response = client.post("/api/v1/etl/ventas")

    assert response.status_code == 500
    assert "connection refused" in response.json()["detail"]


def test_daily_scheduler_endpoint(client, orchestrator):
    response = client.post("/api/v1/scheduler/etl/daily")

    assert response.status_code == 200
    body = response.json()
    assert body["status"] == "success"
    assert body["detail_lines"] == 6
    orchestrator.run.assert_called_once()


def test_missing_database_url_is_a_configuration_error(client):
    with mock.patch("ventas_etl.db.postgres._pool", None), \
            mock.patch("ventas_etl.db.postgres.settings.DATABASE_URL", None):
        sync = client.post("/api/v1/etl/ventas", params={"fecha_inicio": "2024-03-01", "fecha_fin": "2024-03-01"})
        daily = client.post("/api/v1/scheduler/etl/daily")

    for response in (sync, daily):
        assert response.status_code == 400
        assert "DATABASE_URL" in response.json()["detail"]


def test_empty_company_list_is_a_configuration_error(client):
    with mock.patch("ventas_etl.core.companies.settings.BSALE_COMPANIES", []):
        response = client.post("/api/v1/etl/ventas")

    assert response.status_code == 400
    assert "BSALE_COMPANIES" in response.json()["detail"]
