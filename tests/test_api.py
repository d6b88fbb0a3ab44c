from datetime import date
from decimal import Decimal

from fastapi.testclient import TestClient

from database import get_db


def _create(client, category_id, amount="10.00", day="2024-01-05", **extra):
    payload = {"amount": amount, "category_id": category_id, "expense_date": day, **extra}
    return client.post("/expenses", json=payload)


def test_health(client) -> None:
    assert client.get("/health").json() == {"status": "healthy"}
    assert client.get("/").json()["status"] == "ok"


def test_categories_are_seeded_and_sorted(client) -> None:
    resp = client.get("/categories")
    assert resp.status_code == 200
    names = [c["name"] for c in resp.json()]
    assert "Food" in names
    assert names == sorted(names)


def test_create_category_and_duplicate_conflict(client) -> None:
    resp = client.post("/categories", json={"name": "Pets"})
    assert resp.status_code == 201
    assert resp.json()["color"] == "#C7CEEA"
    assert resp.json()["icon"] == "📌"

    dup = client.post("/categories", json={"name": "Pets", "color": "#123456"})
    assert dup.status_code == 409
    assert "already exists" in dup.json()["detail"]


def test_create_category_validation(client) -> None:
    assert client.post("/categories", json={"name": "   "}).status_code == 422
    assert client.post("/categories", json={"name": "X", "color": "red"}).status_code == 422


def test_create_expense(client, category_ids) -> None:
    resp = _create(client, category_ids["Food"], amount="42.50", description="Dinner")
    assert resp.status_code == 201
    body = resp.json()
    assert Decimal(body["amount"]) == Decimal("42.50")
    assert body["payment_method"] == "cash"
    assert body["category"]["name"] == "Food"
    assert body["expense_date"] == "2024-01-05"


def test_zero_amount_is_rejected_and_not_persisted(client, category_ids) -> None:
    resp = _create(client, category_ids["Food"], amount="0")
    assert resp.status_code == 422
    assert client.get("/expenses").json()["count"] == 0


def test_amount_too_large_for_the_column_is_rejected(client, category_ids) -> None:
    resp = _create(client, category_ids["Food"], amount="12345678901234567.89")
    assert resp.status_code == 422
    assert client.get("/expenses").json()["count"] == 0


def test_missing_date_is_rejected(client, category_ids) -> None:
    resp = client.post("/expenses", json={"amount": "5", "category_id": category_ids["Food"]})
    assert resp.status_code == 422


def test_unknown_category_is_a_validation_error(client) -> None:
    resp = _create(client, "does-not-exist")
    assert resp.status_code == 422
    assert "does not exist" in resp.json()["detail"]
    assert client.get("/expenses").json()["count"] == 0


def test_get_update_delete_roundtrip(client, category_ids) -> None:
    expense_id = _create(client, category_ids["Food"]).json()["id"]

    assert client.get(f"/expenses/{expense_id}").json()["id"] == expense_id

    resp = client.put(
        f"/expenses/{expense_id}",
        json={
            "amount": "15",
            "category_id": category_ids["Transport"],
            "expense_date": "2024-01-07",
            "payment_method": "credit card",
        },
    )
    assert resp.status_code == 200
    body = resp.json()
    assert Decimal(body["amount"]) == Decimal("15")
    assert body["category"]["name"] == "Transport"
    assert body["payment_method"] == "credit card"

    assert client.delete(f"/expenses/{expense_id}").status_code == 204
    assert client.get(f"/expenses/{expense_id}").status_code == 404


def test_update_missing_expense_is_not_found(client, category_ids) -> None:
    resp = client.put(
        "/expenses/missing",
        json={"amount": "1", "category_id": category_ids["Food"], "expense_date": "2024-01-01"},
    )
    assert resp.status_code == 404


def test_delete_missing_expense_is_not_found(client, category_ids) -> None:
    _create(client, category_ids["Food"])
    resp = client.delete("/expenses/missing")
    assert resp.status_code == 404
    assert "not found" in resp.json()["detail"]
    assert client.get("/expenses").json()["count"] == 1


def test_list_expenses_filters_and_total(client, category_ids) -> None:
    food, transport = category_ids["Food"], category_ids["Transport"]
    _create(client, food, amount="10", day="2024-01-01")
    _create(client, food, amount="20", day="2024-01-15")
    _create(client, transport, amount="5", day="2024-01-15")
    _create(client, food, amount="7", day="2024-02-01")

    body = client.get("/expenses", params={"start_date": "2024-01-01", "end_date": "2024-01-31"}).json()
    assert body["count"] == 3
    assert Decimal(body["total"]) == Decimal("35")
    assert body["expenses"][0]["expense_date"] == "2024-01-15"

    body = client.get("/expenses", params={"category": food, "sort_date_desc": "false"}).json()
    assert [e["expense_date"] for e in body["expenses"]] == ["2024-01-01", "2024-01-15", "2024-02-01"]
    assert Decimal(body["total"]) == Decimal("37")


def test_list_expenses_rejects_inverted_range(client) -> None:
    resp = client.get("/expenses", params={"start_date": "2024-02-01", "end_date": "2024-01-01"})
    assert resp.status_code == 422


def test_summary_by_day(client, category_ids) -> None:
    _create(client, category_ids["Food"], amount="100", day="2024-01-05")
    _create(client, category_ids["Food"], amount="50", day="2024-01-05")
    _create(client, category_ids["Transport"], amount="25", day="2024-01-06")
    _create(client, category_ids["Transport"], amount="999", day="2024-03-01")

    resp = client.get("/expenses/summary", params={"start_date": "2024-01-01", "end_date": "2024-01-31"})
    assert resp.status_code == 200
    body = resp.json()

    assert body["period"] == "day"
    assert [(b["key"], Decimal(b["amount"])) for b in body["buckets"]] == [
        ("2024-01-05", Decimal("150")),
        ("2024-01-06", Decimal("25")),
    ]
    assert [(b["name"], b["count"], Decimal(b["percentage"])) for b in body["breakdown"]] == [
        ("Food", 2, Decimal("85.7")),
        ("Transport", 1, Decimal("14.3")),
    ]
    assert Decimal(body["total"]) == Decimal("175")
    assert body["count"] == 3

    stats = body["stats"]
    assert stats["active_days"] == 2
    assert Decimal(stats["daily_average"]) == Decimal("87.50")
    assert stats["busiest_day"]["key"] == "2024-01-05"
    assert stats["top_category"]["name"] == "Food"


def test_summary_by_month(client, category_ids) -> None:
    _create(client, category_ids["Food"], amount="10", day="2024-03-02")
    _create(client, category_ids["Food"], amount="5", day="2024-01-31")

    body = client.get(
        "/expenses/summary",
        params={"start_date": "2024-01-01", "end_date": "2024-12-31", "period": "month"},
    ).json()
    assert [b["key"] for b in body["buckets"]] == ["2024-01", "2024-03"]


def test_summary_empty_range(client) -> None:
    body = client.get("/expenses/summary", params={"start_date": "2000-01-01", "end_date": "2000-01-31"}).json()
    assert body["buckets"] == [] and body["breakdown"] == []
    assert Decimal(body["total"]) == 0
    assert body["stats"]["busiest_day"] is None
    assert body["stats"]["top_category"] is None


def test_summary_defaults_to_current_month(client) -> None:
    body = client.get("/expenses/summary").json()
    today = date.today()
    assert body["start_date"] == today.replace(day=1).isoformat()
    assert body["end_date"] >= today.isoformat()


def test_summary_rejects_bad_period_and_range(client) -> None:
    assert client.get("/expenses/summary", params={"period": "week"}).status_code == 422
    resp = client.get("/expenses/summary", params={"start_date": "2024-02-01", "end_date": "2024-01-01"})
    assert resp.status_code == 422


def test_dashboard_and_analytics_cover_current_month(client, category_ids) -> None:
    today = date.today().isoformat()
    _create(client, category_ids["Food"], amount="30", day=today)
    _create(client, category_ids["Health"], amount="10", day=today)
    _create(client, category_ids["Food"], amount="500", day="1999-01-01")

    dashboard = client.get("/dashboard").json()
    assert len(dashboard["expenses"]) == 2
    assert Decimal(dashboard["total"]) == Decimal("40")
    assert [b["name"] for b in dashboard["breakdown"]] == ["Food", "Health"]

    analytics = client.get("/analytics").json()
    assert [(d["key"], Decimal(d["amount"])) for d in analytics["daily"]] == [(today, Decimal("40"))]
    assert analytics["stats"]["active_days"] == 1
    assert Decimal(analytics["stats"]["daily_average"]) == Decimal("40")
    assert analytics["stats"]["top_category"]["name"] == "Food"


def test_unexpected_error_returns_generic_message(app) -> None:
    def broken_db():
        raise RuntimeError("connection string leaked: secret")

    app.dependency_overrides[get_db] = broken_db
    with TestClient(app, raise_server_exceptions=False) as c:
        resp = c.get("/expenses")
    app.dependency_overrides.clear()

    assert resp.status_code == 500
    assert "secret" not in resp.text
    assert resp.json()["detail"] == "Something went wrong. Please try again later."
