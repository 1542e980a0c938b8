from datetime import date, datetime, timezone

import pytest

from pizzeria.model import AdventCalendarEntry, AdventClaim, UserVoucher
from pizzeria.routers import advent_routes
from pizzeria.utils.config import settings
from pizzeria.utils.helper import to_utc


@pytest.fixture
def today(monkeypatch):
    """Freeze the calendar clock; call with the date to use."""
    def freeze(value: date):
        monkeypatch.setattr(advent_routes, "calendar_today", lambda: value)
    freeze(date(2026, 12, 5))
    return freeze


@pytest.fixture
def calendar(db, reward):
    for day in (4, 5, 6):
        db.add(AdventCalendarEntry(day=day, year=2026, reward_id=reward.id))
    db.add(AdventCalendarEntry(day=7, year=2026, reward_id=reward.id, is_closed=True))
    db.commit()


def test_disabled_calendar(client, today, customer_headers):
    data = client.get("/api/advent-calendar").json()
    assert data["enabled"] is False
    assert data["calendar"] == []
    r = client.post("/api/advent-calendar", json={"day": 5}, headers=customer_headers)
    assert r.status_code == 400


def test_calendar_view(client, advent_enabled, calendar, today, customer_headers):
    data = client.get("/api/advent-calendar", headers=customer_headers).json()
    assert data["enabled"] is True
    assert data["year"] == 2026
    assert data["daysUntilChristmas"] == 20
    days = {d["day"]: d for d in data["calendar"]}
    assert days[4]["isPastDay"] and not days[4]["canClaim"]
    assert days[5]["isCurrentDay"] and days[5]["canClaim"]
    assert days[5]["rewardName"] == "$5 Off"
    assert days[6]["isFutureDay"]
    assert days[7]["isClosed"]

    # guests see the calendar but cannot claim
    assert not any(d["canClaim"] for d in client.get("/api/advent-calendar").json()["calendar"])


def test_days_until_christmas_is_clamped(client, advent_enabled, today):
    today(date(2026, 12, 28))
    assert client.get("/api/advent-calendar").json()["daysUntilChristmas"] == 0


def test_claim_today(client, db, advent_enabled, calendar, today, customer, customer_headers):
    r = client.post("/api/advent-calendar", json={"day": 5}, headers=customer_headers)
    assert r.status_code == 200, r.text
    voucher = r.json()["voucher"]
    assert voucher["voucherCode"].startswith("XMAS2026-DAY5-")
    assert len(voucher["voucherCode"]) == len("XMAS2026-DAY5-") + 6
    assert voucher["expiresAt"].startswith("2026-12-26")

    days = {d["day"]: d for d in client.get("/api/advent-calendar", headers=customer_headers).json()["calendar"]}
    assert days[5]["isClaimed"] and not days[5]["canClaim"]

    r = client.post("/api/advent-calendar", json={"day": 5}, headers=customer_headers)
    assert r.status_code == 400
    assert r.json() == {"error": "You have already claimed this reward"}
    assert db.query(AdventClaim).count() == 1


@pytest.mark.parametrize("zone, expected", [
    ("America/New_York", datetime(2026, 12, 26, 5, tzinfo=timezone.utc)),
    ("Asia/Tokyo", datetime(2026, 12, 25, 15, tzinfo=timezone.utc)),
])
def test_claimed_voucher_expires_at_local_midnight(client, db, monkeypatch, advent_enabled, calendar, today,
                                                   customer, customer_headers, zone, expected):
    monkeypatch.setattr(settings, "RESTAURANT_TIMEZONE", zone)
    assert client.post("/api/advent-calendar", json={"day": 5}, headers=customer_headers).status_code == 200
    voucher = db.query(UserVoucher).filter(UserVoucher.user_id == customer.id).one()
    assert to_utc(voucher.expires_at) == expected


@pytest.mark.parametrize("day", [0, 26, 4, 6])
def test_only_todays_valid_day_can_be_claimed(client, advent_enabled, calendar, today, customer_headers, day):
    r = client.post("/api/advent-calendar", json={"day": day}, headers=customer_headers)
    assert r.status_code == 400


def test_claim_outside_december(client, advent_enabled, calendar, today, customer_headers):
    today(date(2026, 11, 5))
    assert client.post("/api/advent-calendar", json={"day": 5}, headers=customer_headers).status_code == 400


def test_closed_day_and_missing_reward(client, advent_enabled, calendar, today, customer_headers):
    today(date(2026, 12, 7))
    assert client.post("/api/advent-calendar", json={"day": 7}, headers=customer_headers).status_code == 400
    today(date(2026, 12, 8))
    assert client.post("/api/advent-calendar", json={"day": 8}, headers=customer_headers).status_code == 404


def test_claim_requires_auth(client, advent_enabled, calendar, today):
    assert client.post("/api/advent-calendar", json={"day": 5}).status_code == 401


def test_admin_reset_allows_reclaim(client, db, advent_enabled, calendar, today, customer, customer_headers,
                                    admin_headers):
    client.post("/api/advent-calendar", json={"day": 5}, headers=customer_headers)

    r = client.request("DELETE", "/api/advent-calendar", json={"day": 5, "userId": customer.id},
                       headers=customer_headers)
    assert r.status_code == 403
    r = client.request("DELETE", "/api/advent-calendar", json={"day": 5, "userId": customer.id},
                       headers=admin_headers)
    assert r.status_code == 200
    assert r.json()["claimsRemoved"] == 1
    assert r.json()["vouchersRemoved"] == 1
    assert db.query(UserVoucher).count() == 0

    assert client.post("/api/advent-calendar", json={"day": 5}, headers=customer_headers).status_code == 200


def test_admin_entries(client, advent_enabled, reward, today, admin_headers, customer_headers):
    r = client.post("/api/admin/advent-calendar", json={"day": 5, "rewardId": reward.id}, headers=admin_headers)
    assert r.status_code == 200
    assert r.json()["year"] == 2026

    r = client.post("/api/admin/advent-calendar", json={"day": 5, "rewardId": 999}, headers=admin_headers)
    assert r.status_code == 404
    assert client.post("/api/admin/advent-calendar", json={"day": 30}, headers=admin_headers).status_code == 400

    client.post("/api/advent-calendar", json={"day": 5}, headers=customer_headers)
    entries = client.get("/api/admin/advent-calendar", headers=admin_headers).json()
    assert entries == [{
        "id": entries[0]["id"], "day": 5, "year": 2026, "rewardId": reward.id, "isActive": True,
        "isClosed": False, "rewardName": "$5 Off", "claimCount": 1,
    }]

    r = client.delete("/api/admin/advent-calendar/5", headers=admin_headers)
    assert r.status_code == 200
    assert r.json()["rewardId"] is None
    assert r.json()["isActive"] is False
    assert client.delete("/api/admin/advent-calendar/9", headers=admin_headers).status_code == 404
