from datetime import datetime

import pytest

from dandori_portal.attendance import controller as attendance_controller
from dandori_portal.attendance import service as attendance_service

FIXED_NOW = datetime(2026, 3, 2, 9, 0)


@pytest.fixture()
def fixed_clock(monkeypatch):
    monkeypatch.setattr(attendance_controller, "now_local", lambda: FIXED_NOW)
    monkeypatch.setattr(attendance_service, "now_local", lambda: FIXED_NOW)


def test_punch_listing_defaults_to_local_today(client, login, fixed_clock):
    login("employee@dandori.example", "employee123")
    res = client.post("/api/attendance/punches", json={"punch_type": "check_in"})
    assert res.status_code == 201

    sessions = client.get("/api/attendance/punches").get_json()
    assert sessions["count"] == 1
    assert sessions["data"][0]["check_in"].startswith("2026-03-02T09:00")

    assert client.get("/api/attendance/punches?date=2026-03-03").get_json()["count"] == 0


def test_stats_default_to_local_today(client, login, fixed_clock):
    login("employee@dandori.example", "employee123")
    client.post("/api/attendance/punches", json={"punch_type": "check_in"})

    login("hr@dandori.example", "hr1234")
    daily = client.get("/api/attendance/stats").get_json()["data"]
    assert daily["present_count"] == 1

    monthly = client.get("/api/attendance/stats?type=monthly").get_json()["data"]
    assert (monthly["year"], monthly["month"]) == (2026, 3)

    assert client.get("/api/attendance/stats?type=weekly").status_code == 400
