from __future__ import annotations

from pathlib import Path
import sys

sys.path.append(str(Path(__file__).resolve().parents[1]))

import httpx
import pytest
from fastapi.testclient import TestClient

from backend.app import create_app
from backend.config import Settings
from sap_payloads import feed, single_entry

BASE = "https://sap.example.com/sap/opu/odata/sap/ZPM_SRV"


@pytest.fixture()
def upstream():
    """Route table for the fake SAP Gateway: entity set name -> response."""

    responses: dict[str, httpx.Response] = {}
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        entity_set = request.url.path.rsplit("/", 1)[-1].split("(", 1)[0]
        return responses.get(entity_set, httpx.Response(404, text="Not Found"))

    return responses, seen, handler


@pytest.fixture()
def client(upstream):
    _, _, handler = upstream
    settings = Settings(
        username="relay",
        password="s3cret",
        client="100",
        login_url=f"{BASE}/LoginSet",
        plant_mapping_url=f"{BASE}/PlantSet",
        notifications_url=f"{BASE}/NotifSet",
        pm_details_url=f"{BASE}/PlanningSet",
        work_orders_url=f"{BASE}/OrderSet",
    )
    http_client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    app = create_app(settings, http_client=http_client)
    with TestClient(app) as test_client:
        yield test_client


def _xml(payload: str) -> httpx.Response:
    return httpx.Response(200, content=payload.encode("utf-8"), headers={"Content-Type": "application/atom+xml"})


def test_login_returns_employee_and_password(client, upstream):
    responses, seen, _ = upstream
    responses["LoginSet"] = _xml(single_entry({"EmployeeId": "E123", "Password": "pw-1"}))

    response = client.get("/api/maintenance/login/E123")

    assert response.status_code == 200
    assert response.json() == {"employeeId": "E123", "password": "pw-1"}
    assert seen[0].url.path.endswith("LoginSet(EmployeeId='E123')")


def test_login_without_password_is_unexpected_structure(client, upstream):
    responses, _, _ = upstream
    responses["LoginSet"] = _xml(single_entry({"EmployeeId": "E123"}))

    response = client.get("/api/maintenance/login/E123")

    assert response.status_code == 500
    assert response.json() == {"error": "Unexpected SAP response structure"}


def test_login_parse_failure_has_its_own_message(client, upstream):
    responses, _, _ = upstream
    responses["LoginSet"] = _xml("<entry><content>")

    response = client.get("/api/maintenance/login/E123")

    assert response.status_code == 500
    assert response.json() == {"error": "Failed to parse XML response"}


def test_plant_mapping_maps_every_entry(client, upstream):
    responses, seen, _ = upstream
    responses["PlantSet"] = _xml(
        feed(
            {"MaintEngineer": "ENG01", "PlantId": "1000"},
            {"MaintEngineer": "ENG01", "PlantId": "2000"},
        )
    )

    response = client.get("/api/maintenance/plant-mapping/ENG01")

    assert response.status_code == 200
    assert response.json() == {
        "engineerId": "ENG01",
        "plants": [
            {"maintEngineer": "ENG01", "plantId": "1000"},
            {"maintEngineer": "ENG01", "plantId": "2000"},
        ],
    }
    assert seen[0].url.params["$filter"] == "(MaintEngineer eq 'ENG01')"


def test_notifications_truncate_dates_and_default_priority(client, upstream):
    responses, _, _ = upstream
    responses["NotifSet"] = _xml(
        feed(
            {
                "Qmnum": "000010000001",
                "Qmdat": "2024-05-01T10:00:00",
                "Qmart": "M1",
                "Qmtxt": "Pump leaking",
                "Priokx": "High",
            },
            {"Qmnum": "000010000002", "Qmdat": "2024-05-02T00:00:00", "Qmart": "M2", "Qmtxt": "Noise"},
            {"Qmnum": "000010000003", "Priokx": ""},
        )
    )

    response = client.get("/api/maintenance/notifications/1000")

    assert response.status_code == 200
    assert response.json() == {
        "plantId": "1000",
        "notifications": [
            {
                "notificationNo": "000010000001",
                "date": "2024-05-01",
                "type": "M1",
                "description": "Pump leaking",
                "priority": "High",
            },
            {
                "notificationNo": "000010000002",
                "date": "2024-05-02",
                "type": "M2",
                "description": "Noise",
                "priority": "N/A",
            },
            {"notificationNo": "000010000003", "priority": "N/A"},
        ],
    }


def test_pm_details_maps_organisational_fields(client, upstream):
    responses, _, _ = upstream
    responses["PlanningSet"] = _xml(
        feed(
            {
                "Plant": "1000",
                "Name1": "Hamburg Works",
                "Ort01": "Hamburg",
                "Regio": "02",
                "Land1": "DE",
                "MaintEngineer": "ENG02",
            }
        )
    )

    response = client.get("/api/maintenance/pm-details/ENG02")

    assert response.status_code == 200
    assert response.json() == {
        "engineerId": "ENG02",
        "pmDetails": [
            {
                "plant": "1000",
                "name": "Hamburg Works",
                "city": "Hamburg",
                "region": "02",
                "country": "DE",
                "engineerId": "ENG02",
            }
        ],
    }


def test_work_orders_map_all_fields(client, upstream):
    responses, seen, _ = upstream
    responses["OrderSet"] = _xml(
        feed(
            {
                "Aufnr": "4000123",
                "Ktext": "Replace bearing",
                "Auart": "PM01",
                "Gstrs": "2024-06-01T00:00:00",
                "Gltrs": "2024-06-03T00:00:00",
                "Equnr": "10000042",
                "Kostl": "CC100",
                "Werks": "1000",
                "Bukrs": "DE01",
                "Txt04": "REL",
                "Txt30": "Released",
            },
            {"Aufnr": "4000124", "Equnr": None, "Werks": "1000"},
        )
    )

    response = client.get("/api/maintenance/work-orders/1000")

    assert response.status_code == 200
    assert response.json() == {
        "plantId": "1000",
        "workOrders": [
            {
                "orderNumber": "4000123",
                "description": "Replace bearing",
                "orderType": "PM01",
                "startDate": "2024-06-01",
                "endDate": "2024-06-03",
                "equipmentNumber": "10000042",
                "costCenter": "CC100",
                "plant": "1000",
                "companyCode": "DE01",
                "shortText": "REL",
                "longText": "Released",
            },
            {"orderNumber": "4000124", "equipmentNumber": "", "plant": "1000"},
        ],
    }
    assert seen[0].url.params["$filter"] == "(Werks eq '1000')"


def test_empty_work_order_feed_is_success(client, upstream):
    responses, _, _ = upstream
    responses["OrderSet"] = _xml(feed())

    response = client.get("/api/maintenance/work-orders/1000")

    assert response.status_code == 200
    assert response.json() == {"plantId": "1000", "workOrders": []}


@pytest.mark.parametrize(
    ("path", "message"),
    [
        ("/api/maintenance/login/E1", "SAP login request failed"),
        ("/api/maintenance/plant-mapping/ENG01", "SAP plant mapping request failed"),
        ("/api/maintenance/notifications/1000", "SAP notifications request failed"),
        ("/api/maintenance/pm-details/ENG01", "SAP PM details request failed"),
        ("/api/maintenance/work-orders/1000", "SAP work orders request failed"),
    ],
)
def test_upstream_error_status_becomes_500_with_details(client, path, message):
    response = client.get(path)

    assert response.status_code == 500
    assert response.json() == {"error": message, "details": "Request failed with status code 404"}


@pytest.mark.parametrize(
    ("entity_set", "path", "message"),
    [
        ("PlantSet", "/api/maintenance/plant-mapping/ENG01", "Unexpected SAP feed structure"),
        ("NotifSet", "/api/maintenance/notifications/1000", "Unexpected SAP notifications structure"),
        ("PlanningSet", "/api/maintenance/pm-details/ENG01", "Unexpected SAP PM details structure"),
        ("OrderSet", "/api/maintenance/work-orders/1000", "Unexpected SAP work orders structure"),
    ],
)
def test_feed_routes_reject_non_feed_documents(client, upstream, entity_set, path, message):
    responses, _, _ = upstream
    responses[entity_set] = _xml(single_entry({"Werks": "1000"}))

    response = client.get(path)

    assert response.status_code == 500
    assert response.json() == {"error": message}


def test_feed_parse_failure_has_no_details(client, upstream):
    responses, _, _ = upstream
    responses["NotifSet"] = httpx.Response(200, text="<html>Service unavailable")

    response = client.get("/api/maintenance/notifications/1000")

    assert response.status_code == 500
    assert response.json() == {"error": "Failed to parse XML"}


def test_connection_failure_reports_underlying_error():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("Name or service not known", request=request)

    settings = Settings(pm_details_url=f"{BASE}/PlanningSet")
    app = create_app(settings, http_client=httpx.AsyncClient(transport=httpx.MockTransport(handler)))

    with TestClient(app) as test_client:
        response = test_client.get("/api/maintenance/pm-details/ENG01")
        follow_up = test_client.get("/api/maintenance/pm-details/ENG01")

    assert response.status_code == 500
    assert response.json() == {"error": "SAP PM details request failed", "details": "Name or service not known"}
    assert follow_up.status_code == 500


def test_unconfigured_service_url_is_reported_per_request():
    app = create_app(Settings(), http_client=httpx.AsyncClient(transport=httpx.MockTransport(lambda r: httpx.Response(200))))

    with TestClient(app) as test_client:
        response = test_client.get("/api/maintenance/login/E1")

    assert response.status_code == 500
    assert response.json() == {"error": "SAP login request failed", "details": "SAP_LOGIN_URL is not configured"}


def test_root_landing_page(client):
    response = client.get("/")

    assert response.status_code == 200
    assert response.json()["message"] == "SAP Maintenance Relay API"


def test_cors_allows_only_configured_origins():
    settings = Settings(cors_origins=("http://localhost:5173",))
    app = create_app(settings, http_client=httpx.AsyncClient(transport=httpx.MockTransport(lambda r: httpx.Response(200))))

    with TestClient(app) as test_client:
        allowed = test_client.get("/", headers={"Origin": "http://localhost:5173"})
        denied = test_client.get("/", headers={"Origin": "https://evil.example.com"})

    assert allowed.headers["access-control-allow-origin"] == "http://localhost:5173"
    assert "access-control-allow-origin" not in denied.headers


def test_cors_defaults_to_any_origin(client):
    response = client.get("/", headers={"Origin": "https://pm.example.com"})

    assert response.headers["access-control-allow-origin"] == "*"


def test_login_echoes_employee_id_returned_by_sap(client, upstream):
    responses, _, _ = upstream
    responses["LoginSet"] = _xml(single_entry({"EmployeeId": "E000123", "Password": "pw-1"}))

    response = client.get("/api/maintenance/login/e123")

    assert response.status_code == 200
    assert response.json() == {"employeeId": "E000123", "password": "pw-1"}
