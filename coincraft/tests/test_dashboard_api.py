from fastapi.testclient import TestClient

from coincraft.main import app

client = TestClient(app)


def test_nudges_endpoint():
    resp = client.post(
        "/v1/nudges",
        json={
            "user_id": "u1",
            "today": "2024-03-05",
            "active_modules": ["envelope"],
            "aggregates": {
                "today_transaction_count": 0,
                "this_week_expenses": 15000,
                "last_week_expenses": 10000,
                "envelopes": [{"id": "e1", "name": "Food", "current_amount": 900, "target_amount": 1000}],
            },
        },
    )

    assert resp.status_code == 200
    nudges = resp.json()["nudges"]
    assert [n["id"] for n in nudges] == ["no-log-today", "spending-increase", "envelope-warning-e1"]
    assert nudges[1]["type"] == "warning"
    assert nudges[0]["action"] == {"label": "Log Now", "href": "#quick-add"}


def test_nudges_rejects_negative_aggregates():
    resp = client.post("/v1/nudges", json={"aggregates": {"this_week_expenses": -1}})

    assert resp.status_code == 422


def test_health_score_endpoint():
    resp = client.post(
        "/v1/health-score",
        json={
            "today": "2024-07-01",
            "active_modules": ["goals"],
            "cash_flow": {
                "monthly_income": 100000,
                "monthly_expenses": 70000,
                "last_month_expenses": 70000,
                "current_streak": 14,
            },
            "goals": [{"id": "g1", "name": "Trip", "current_amount": 100, "target_amount": 1000}],
        },
    )

    assert resp.status_code == 200
    body = resp.json()
    assert body["base_score"] == 15 + 12 + 8
    assert body["goal_contributions"] == 20
    assert body["goal_on_track"] == 5
    assert body["envelope_adherence"] is None
    assert body["total_score"] == 60
    assert body["level"] == "good"
    assert body["message"]
