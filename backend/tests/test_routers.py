import dataclasses
from datetime import datetime, timedelta, timezone

import pytest
from fastapi.testclient import TestClient

from focos.db import SessionLocal
from focos.main import create_app
from focos.models.fire_reports import FireReport
from focos.routers.cron import get_firms_client

from conftest import FakeFirms, viirs_csv, viirs_row


def make_client(settings, fake):
    app = create_app(settings)
    app.dependency_overrides[get_firms_client] = lambda: fake.client(settings)
    return TestClient(app)


@pytest.fixture
def secured(settings):
    return dataclasses.replace(settings, cron_secret="s3cret")


def test_cron_imports_hotspots(settings):
    fake = FakeFirms(viirs_csv(viirs_row()))
    client = make_client(settings, fake)

    resp = client.get("/api/cron/firms")

    assert resp.status_code == 200
    body = resp.json()
    assert body["success"] is True
    assert body["imported"] == 1
    assert body["total_found"] == 1
    assert body["duplicates_skipped"] == 0

    again = client.get("/api/cron/firms").json()
    assert again["imported"] == 0
    assert again["duplicates_skipped"] == 1


def test_cron_rejects_bad_secret(secured):
    fake = FakeFirms(viirs_csv(viirs_row()))
    client = make_client(secured, fake)

    for headers in ({}, {"Authorization": "Bearer nope"}, {"Authorization": "s3cret"}):
        resp = client.get("/api/cron/firms", headers=headers)
        assert resp.status_code == 401
        assert resp.json() == {"error": "Unauthorized"}

    assert fake.requests == []


def test_cron_accepts_bearer_secret(secured):
    fake = FakeFirms("")
    client = make_client(secured, fake)

    resp = client.get("/api/cron/firms", headers={"Authorization": "Bearer s3cret"})

    assert resp.status_code == 200
    assert resp.json()["message"] == "No hotspots found"


def test_cron_missing_key_is_503(settings):
    settings = dataclasses.replace(settings, firms_map_key=None)
    fake = FakeFirms(viirs_csv(viirs_row()))
    client = make_client(settings, fake)

    resp = client.get("/api/cron/firms")

    assert resp.status_code == 503
    body = resp.json()
    assert body["success"] is False
    assert body["error_code"] == "no_api_key"
    assert fake.requests == []


def test_cron_upstream_error_is_502(settings):
    client = make_client(settings, FakeFirms("nope", status_code=503))

    resp = client.get("/api/cron/firms")

    assert resp.status_code == 502
    assert resp.json()["error_code"] == "upstream_error"


def _seed(reports):
    db = SessionLocal()
    try:
        db.add_all(reports)
        db.commit()
    finally:
        db.close()


def test_list_reports_filters_and_orders(settings):
    client = make_client(settings, FakeFirms(""))
    now = datetime.now(timezone.utc)
    _seed(
        [
            FireReport(latitude=-40.0, longitude=-70.0, status="pending", source="manual",
                       created_at=now - timedelta(hours=3)),
            FireReport(latitude=-41.0, longitude=-71.0, status="active", source="nasa_firms",
                       source_id="a", created_at=now - timedelta(hours=2)),
            FireReport(latitude=-42.0, longitude=-72.0, status="false_alarm", source="nasa_firms",
                       source_id="b", created_at=now - timedelta(hours=1)),
        ]
    )

    items = client.get("/reports").json()["items"]
    assert [i["latitude"] for i in items] == [-42.0, -41.0, -40.0]

    items = client.get("/reports", params=[("status", "pending"), ("status", "active")]).json()["items"]
    assert sorted(i["status"] for i in items) == ["active", "pending"]

    items = client.get("/reports", params={"source": "nasa_firms", "limit": 1}).json()["items"]
    assert len(items) == 1
    assert items[0]["source_id"] == "b"


def test_list_reports_rejects_unknown_status(settings):
    client = make_client(settings, FakeFirms(""))
    assert client.get("/reports", params={"status": "burning"}).status_code == 422


def test_get_report(settings):
    client = make_client(settings, FakeFirms(viirs_csv(viirs_row())))
    client.get("/api/cron/firms")

    report_id = client.get("/reports").json()["items"][0]["id"]
    resp = client.get(f"/reports/{report_id}")

    assert resp.status_code == 200
    assert resp.json()["intensity"] == "extreme"
    assert resp.json()["detected_at"].startswith("2026-01-17T01:42:00")

    assert client.get("/reports/999999").status_code == 404
