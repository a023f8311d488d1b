"""HTTP tests for the spoke calculator API using FastAPI's TestClient."""

import pytest
from fastapi.testclient import TestClient

from spokecalc.config import Settings, get_settings
from spokecalc.main import app

SECRET = "test-secret"

AUDIT_CASE = {
    "hubType": "Classic Flange",
    "spokeCount": 32,
    "crossL": 3,
    "crossR": 3,
    "rimErd": 600,
    "washerThickness": 0,
    "rimAsymmetry": 0,
    "pcd_l": 58,
    "pcd_r": 58,
    "flange_l": 35,
    "flange_r": 21,
    "spo_l": 0,
    "spo_r": 0,
    "shd": 2.6,
    "spokeVendor": "Sapim",
    "targetTension": 120,
    "crossSectionArea": 2.01,
}

BUILD_REQUEST = {
    "recipe": {
        "buildType": "Wheel Set",
        "components": {
            "frontRim": {"variantId": 101, "productId": 1, "title": "Rim"},
            "frontHub": {"variantId": 201, "productId": 2, "title": "Front Hub"},
            "frontSpokes": {"variantId": 301, "productId": 3, "title": "Spokes", "vendor": "Sapim"},
            "rearRim": {"variantId": 101, "productId": 1, "title": "Rim"},
            "rearHub": {"variantId": 201, "productId": 2, "title": "Rear Hub"},
            "rearSpokes": {"variantId": 301, "productId": 3, "title": "Spokes", "vendor": "Sapim"},
        },
        "specs": {"frontSpokeCount": "32", "rearSpokeCount": "32"},
    },
    "metadata": {
        "1": {"erd": "600", "washer_policy": "Optional"},
        "2": {
            "hub_type": "Classic Flange",
            "flange_diameter_left": "58",
            "flange_diameter_right": "58",
            "flange_offset_left": "35",
            "flange_offset_right": "21",
            "spoke_hole_diameter": "2.6",
        },
        "3": {"cross_sectional_area": "2.01"},
    },
}


@pytest.fixture
def client():
    app.dependency_overrides[get_settings] = lambda: Settings(INTERNAL_API_SECRET=SECRET)
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


# ---------------------------------------------------------------------------
# Health
# ---------------------------------------------------------------------------


class TestHealth:
    def test_health(self, client):
        resp = client.get("/health")
        assert resp.status_code == 200
        assert resp.json()["status"] == "ok"


# ---------------------------------------------------------------------------
# Build Reports
# ---------------------------------------------------------------------------


class TestBuilds:
    def test_wheel_set(self, client):
        resp = client.post("/api/builds", json=BUILD_REQUEST)
        assert resp.status_code == 200
        data = resp.json()
        assert data["errors"] == []
        for position in ("front", "rear"):
            result = data[position]
            assert result["calculationSuccessful"] is True
            assert result["lengths"]["left"]["rounded"] == 292
            assert result["lengths"]["right"]["rounded"] == 290
        assert len(data["spokeOrderLines"]) == 4

    def test_missing_component_reported_not_raised(self, client):
        body = {**BUILD_REQUEST, "recipe": {**BUILD_REQUEST["recipe"], "buildType": "Front"}}
        body["recipe"]["components"] = {
            k: v for k, v in BUILD_REQUEST["recipe"]["components"].items() if k != "frontHub"
        }
        resp = client.post("/api/builds", json=body)
        assert resp.status_code == 200
        data = resp.json()
        assert data["front"]["calculationSuccessful"] is False
        assert data["front"]["errorKind"] == "missing_component"
        assert data["rear"] is None

    def test_invalid_build_type_is_422(self, client):
        body = {**BUILD_REQUEST, "recipe": {**BUILD_REQUEST["recipe"], "buildType": "Tandem"}}
        resp = client.post("/api/builds", json=body)
        assert resp.status_code == 422

    def test_single_wheel(self, client):
        resp = client.post("/api/wheels/rear", json=BUILD_REQUEST)
        assert resp.status_code == 200
        data = resp.json()
        assert data["position"] == "rear"
        assert data["crossPattern"] == {"left": 3, "right": 3}


# ---------------------------------------------------------------------------
# Regression Harness
# ---------------------------------------------------------------------------


class TestCalculatorHarness:
    def test_requires_secret(self, client):
        resp = client.post("/api/test-calculator", json=AUDIT_CASE)
        assert resp.status_code == 401

    def test_wrong_secret(self, client):
        resp = client.post(
            "/api/test-calculator", json=AUDIT_CASE, headers={"X-Internal-Secret": "nope"}
        )
        assert resp.status_code == 401

    def test_unconfigured_secret_rejects_everything(self, client):
        app.dependency_overrides[get_settings] = lambda: Settings(INTERNAL_API_SECRET="")
        resp = client.post(
            "/api/test-calculator", json=AUDIT_CASE, headers={"X-Internal-Secret": ""}
        )
        assert resp.status_code == 401

    def test_steel_golden_case(self, client):
        resp = client.post(
            "/api/test-calculator", json=AUDIT_CASE, headers={"X-Internal-Secret": SECRET}
        )
        assert resp.status_code == 200
        data = resp.json()
        assert data["calculationSuccessful"] is True
        assert data["lengths"]["left"]["geo"] == pytest.approx(290.9453, abs=1e-3)
        assert data["lengths"]["right"]["geo"] == pytest.approx(289.6009, abs=1e-3)
        assert data["lengths"]["left"]["rounded"] == 292
        assert data["lengths"]["left"]["stretch"] > 0
        assert data["inputs"]["finalErd"] == 600
        assert data["inputs"]["washerPolicy"] == "Optional"
        assert data["inputs"]["effectiveFlangeL"] == 35

    def test_rim_asymmetry_uses_rear_convention(self, client):
        case = {**AUDIT_CASE, "rimAsymmetry": 2}
        resp = client.post("/api/test-calculator", json=case, headers={"X-Internal-Secret": SECRET})
        data = resp.json()
        assert data["inputs"]["effectiveFlangeL"] == 33
        assert data["inputs"]["effectiveFlangeR"] == 23

    def test_berd_case(self, client):
        case = {**AUDIT_CASE, "spokeVendor": "Berd", "washerThickness": 0.5}
        resp = client.post("/api/test-calculator", json=case, headers={"X-Internal-Secret": SECRET})
        assert resp.status_code == 200
        data = resp.json()
        assert data["inputs"]["finalErd"] == 601
        assert data["inputs"]["washerPolicy"] == "Mandatory (Berd)"
        left = data["lengths"]["left"]
        assert left["stretch"] is None
        assert left["final"] > left["geo"]

    def test_infeasible_lacing_is_400(self, client):
        case = {**AUDIT_CASE, "crossL": 5}
        resp = client.post("/api/test-calculator", json=case, headers={"X-Internal-Secret": SECRET})
        assert resp.status_code == 400
        data = resp.json()
        assert data["calculationSuccessful"] is False
        assert "5/3" in data["error"]

    def test_classic_without_spoke_hole_is_422(self, client):
        case = {k: v for k, v in AUDIT_CASE.items() if k != "shd"}
        resp = client.post("/api/test-calculator", json=case, headers={"X-Internal-Secret": SECRET})
        assert resp.status_code == 422
