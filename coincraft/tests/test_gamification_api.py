from fastapi.testclient import TestClient

from coincraft.main import app

client = TestClient(app)


def test_achievement_catalog():
    resp = client.get("/v1/achievements")

    assert resp.status_code == 200
    ids = [a["id"] for a in resp.json()["achievements"]]
    assert ids[0] == "first-steps"
    assert len(ids) == 10


def test_evaluate_achievements():
    resp = client.post(
        "/v1/achievements/evaluate",
        json={
            "user_id": "u1",
            "context": {"transaction_count": 5, "streak_count": 7},
            "earned_ids": ["first-steps"],
        },
    )

    assert resp.status_code == 200
    assert [a["id"] for a in resp.json()["awarded"]] == ["consistency"]


def test_quiz_questions():
    questions = client.get("/v1/onboarding/quiz").json()["questions"]

    assert len(questions) == 4
    assert {a["character"] for a in questions[0]["answers"]} == {"planner", "observer", "saver"}


def test_quiz_submission_recommends_character():
    resp = client.post("/v1/onboarding/quiz", json={"answers": ["planner", "planner", "saver", "planner"]})

    assert resp.status_code == 200
    body = resp.json()
    assert body["character"]["id"] == "planner"
    assert body["scores"] == {"observer": 0, "planner": 3, "saver": 1}
    assert body["modules"] == ["core", "statistics", "envelope"]
