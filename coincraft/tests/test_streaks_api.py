from fastapi.testclient import TestClient

from coincraft.main import app

client = TestClient(app)


def log(user_id, day):
    return client.post("/v1/streaks/activity", json={"user_id": user_id, "activity_date": day})


def test_current_streak_for_new_user():
    resp = client.get("/v1/streaks/current", params={"user_id": "fresh"})

    assert resp.status_code == 200
    body = resp.json()
    assert body["current_streak"] == 0
    assert body["longest_streak"] == 0
    assert body["last_log_date"] is None
    assert body["milestones"] == {"7": False, "30": False, "100": False}


def test_week_of_logging_unlocks_consistency():
    for day in range(1, 7):
        assert log("weekly", f"2024-04-0{day}").json()["milestone"] is None

    resp = log("weekly", "2024-04-07")

    body = resp.json()
    assert body["changed"] is True
    assert body["state"]["current_streak"] == 7
    assert body["milestone"] == 7
    assert body["achievement"]["id"] == "consistency"

    current = client.get("/v1/streaks/current", params={"user_id": "weekly"}).json()
    assert current["milestones"]["7"] is True
    assert current["last_log_date"] == "2024-04-07"


def test_second_log_same_day_is_unchanged():
    log("same-day", "2024-04-01")

    body = log("same-day", "2024-04-01").json()

    assert body["changed"] is False
    assert body["state"]["current_streak"] == 1
    assert body["milestone"] is None
    assert body["achievement"] is None


def test_user_id_is_required():
    assert client.get("/v1/streaks/current").status_code == 422
    assert client.post("/v1/streaks/activity", json={"user_id": ""}).status_code == 422
