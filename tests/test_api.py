"""Tests for the HTTP planner endpoints.

Run with: pytest tests/test_api.py -v
"""

from pathlib import Path

import pytest
import yaml
from fastapi.testclient import TestClient

from shipment_planner.api.server import app

SAMPLE_INSTANCE = Path(__file__).resolve().parents[1] / "config" / "sample_instance.yaml"


@pytest.fixture
def client() -> TestClient:
    return TestClient(app)


@pytest.fixture
def instance() -> dict:
    with open(SAMPLE_INSTANCE, encoding="utf-8") as f:
        return yaml.safe_load(f)


class TestPlanEndpoint:
    def test_health(self, client):
        response = client.get("/api/health")
        assert response.status_code == 200
        assert response.json() == {"status": "ok"}

    def test_plan_sample_instance(self, client, instance):
        response = client.post("/api/plan", json={"instance": instance, "strategy": "nearest"})
        assert response.status_code == 200

        body = response.json()
        assert body["strategy"] == "nearest"
        assert body["status"] == "HEURISTIC"
        assert len(body["assignments"]) + len(body["unfulfilled"]) == 11
        assert body["summary"]["total_cost"] == pytest.approx(
            body["summary"]["shipments_cost"] + body["summary"]["unfinished_order_lines_cost"]
        )

    def test_requests_do_not_share_stock(self, client, instance):
        first = client.post("/api/plan", json={"instance": instance}).json()
        second = client.post("/api/plan", json={"instance": instance}).json()
        assert first["assignments"] == second["assignments"]

    def test_cost_overrides(self, client, instance):
        body = client.post(
            "/api/plan",
            json={"instance": instance, "costs": {"base_cost": 0.0, "size_cost": 0.0}},
        ).json()
        assert body["summary"]["shipments_cost"] == 0.0

    def test_unknown_strategy_is_422(self, client, instance):
        response = client.post("/api/plan", json={"instance": instance, "strategy": "random"})
        assert response.status_code == 422

    def test_bad_instance_is_422(self, client, instance):
        instance["order_lines"][0]["product"] = "NOPE"
        response = client.post("/api/plan", json={"instance": instance})
        assert response.status_code == 422
        assert "unknown product" in response.json()["detail"]

    def test_bad_cost_field_is_422(self, client, instance):
        response = client.post("/api/plan", json={"instance": instance, "costs": {"speed": 1}})
        assert response.status_code == 422
