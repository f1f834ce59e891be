"""
Endpoint tests for the scoring API.

The lifespan hook is skipped (no context manager around TestClient);
each test wires its own ResultStoreService against temporary DuckDB files.
"""

import pandas as pd
import pytest
from fastapi.testclient import TestClient

from src.api import main
from src.api.service import ResultStoreService
from src.views.materializer import save_result_sets


@pytest.fixture
def service(tmp_path, marketplace_frame, monkeypatch):
    source = str(tmp_path / "cleaned_merged_data.duckdb")
    save_result_sets({"cleaned_merged_data": marketplace_frame}, source)

    svc = ResultStoreService(
        source_db_path=source,
        results_db_path=str(tmp_path / "fraud_results.duckdb"),
        max_workers=2
    )
    monkeypatch.setattr(main, "scoring_service", svc)
    return svc


@pytest.fixture
def client(service):
    return TestClient(main.app)


@pytest.mark.integration
def test_root_lists_endpoints(client):
    response = client.get("/")

    assert response.status_code == 200
    assert "runs" in response.json()["endpoints"]


@pytest.mark.integration
def test_health_before_first_run_is_degraded(client):
    body = client.get("/health").json()

    assert body["status"] == "degraded"
    assert body["results_db_ok"] is False
    assert body["last_run_id"] is None


@pytest.mark.integration
def test_results_empty_before_first_run(client):
    assert client.get("/results").json()["result_sets"] == []
    assert client.get("/results/FlaggedPairs").status_code == 404


@pytest.mark.integration
def test_run_then_read(client):
    run = client.post("/runs")

    assert run.status_code == 201
    report = run.json()
    assert report["errors"] == {}
    assert report["snapshot_rows"] == 103
    assert report["row_counts"]["FlaggedPairs"] == 2

    listed = {r["name"]: r["row_count"] for r in client.get("/results").json()["result_sets"]}
    assert listed["TopFraudulentBuyerSellerPairs"] == 1
    assert listed["flagged_users_transactions"] == 2

    pairs = client.get("/results/FlaggedPairs").json()
    assert {r["buyer_id"] for r in pairs["rows"]} == {"B_COLLUDE", "B_PROMO"}

    health = client.get("/health").json()
    assert health["status"] == "healthy"
    assert health["last_run_id"] == report["run_id"]


@pytest.mark.integration
def test_limit_caps_rows(client):
    client.post("/runs")

    body = client.get("/results/FlaggedPairs", params={"limit": 1}).json()

    assert body["row_count"] == 1


@pytest.mark.integration
def test_unknown_result_set_is_404(client):
    client.post("/runs")

    response = client.get("/results/NoSuchSet")

    assert response.status_code == 404
    assert response.json()["detail"]["error"] == "NotFound"


@pytest.mark.integration
def test_missing_source_column_is_400(client, service, tmp_path):
    broken = str(tmp_path / "broken.duckdb")
    df = pd.DataFrame([{
        "buyer_id": "B1",
        "transaction_amount": 1.0,
        "transaction_created_datetime": pd.Timestamp("2024-03-01 12:00"),
    }])
    save_result_sets({"cleaned_merged_data": df}, broken)
    service.source_db_path = broken

    response = client.post("/runs")

    assert response.status_code == 400
    assert response.json()["detail"]["error"] == "SchemaMismatch"
