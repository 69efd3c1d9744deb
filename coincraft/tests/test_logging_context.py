"""Tests for structured logging and request_id propagation."""

import json
import logging

from fastapi.testclient import TestClient

from coincraft.core.logging import JsonFormatter, PrettyFormatter, log_event, request_id_ctx_var
from coincraft.main import app


def test_request_id_in_response_and_logs(caplog):
    client = TestClient(app)
    with caplog.at_level(logging.INFO, logger="coincraft"):
        response = client.get("/healthz")
    rid = response.headers.get("x-request-id")
    assert rid
    records = [r for r in caplog.records if getattr(r, "request_id", None) == rid]
    assert records, "Expected logs to contain request_id from response"
    assert len({r.request_id for r in records}) == 1


def test_domain_events_carry_request_id(caplog):
    client = TestClient(app)
    with caplog.at_level(logging.INFO, logger="coincraft"):
        response = client.post(
            "/v1/streaks/activity",
            json={"user_id": "log-user", "activity_date": "2024-02-01"},
            headers={"X-Request-Id": "rid-streak-1"},
        )
    assert response.headers.get("x-request-id") == "rid-streak-1"
    updates = [r for r in caplog.records if r.getMessage() == "streak.updated"]
    assert len(updates) == 1
    assert updates[0].request_id == "rid-streak-1"
    assert updates[0].user_id == "log-user"


def test_request_id_in_error_response():
    client = TestClient(app)
    response = client.get("/v1/envelopes/non-existent")
    rid = response.headers.get("x-request-id")
    assert response.status_code == 404
    assert rid
    payload = response.json()
    assert payload["error"]["request_id"] == rid


def test_json_formatter_promotes_structured_fields(caplog):
    token = request_id_ctx_var.set("rid-json")
    try:
        with caplog.at_level(logging.INFO, logger="coincraft"):
            log_event("info", "envelope.created", user_id="u1", envelope_id="e1", event_type="envelope.created",
                      extra={"note": "x" * 600})
    finally:
        request_id_ctx_var.reset(token)

    record = [r for r in caplog.records if r.getMessage() == "envelope.created"][0]
    payload = json.loads(JsonFormatter().format(record))
    assert payload["request_id"] == "rid-json"
    assert payload["user_id"] == "u1"
    assert payload["envelope_id"] == "e1"
    assert payload["event_type"] == "envelope.created"
    assert record.note.endswith("...<truncated>")


def test_event_extras_reach_formatted_output(caplog):
    with caplog.at_level(logging.INFO, logger="coincraft"):
        log_event("error", "nudge.rule_failed", event_type="nudge.rule_failed", extra={"rule": "goal_close"})

    record = [r for r in caplog.records if r.getMessage() == "nudge.rule_failed"][0]
    payload = json.loads(JsonFormatter().format(record))
    assert payload["rule"] == "goal_close"
    assert "event_fields" not in payload
    assert "rule=goal_close" in PrettyFormatter().format(record)
