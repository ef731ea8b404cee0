"""Functional tests for the HTTP contract.

Drives the in-process FastAPI app through TestClient: status codes,
problem+json error bodies, ETag/If-Match preconditions and response shapes
validated against the JSON Schemas under schemas/.
"""

from __future__ import annotations

import json
from pathlib import Path

import pytest
from jsonschema import Draft202012Validator

PROJECT_ROOT = Path(__file__).resolve().parents[2]
SCHEMAS_DIR = PROJECT_ROOT / "schemas"
API = "/api/v1"


def _schema(name: str) -> Draft202012Validator:
    return Draft202012Validator(json.loads((SCHEMAS_DIR / f"{name}.schema.json").read_text(encoding="utf-8")))


def _assert_problem(resp, status: int, code: str) -> dict:
    assert resp.status_code == status, resp.text
    assert resp.headers["content-type"].startswith("application/problem+json")
    body = resp.json()
    _schema("Problem").validate(body)
    assert body["code"] == code
    return body


def _create(client, version=1, text="How stressed are you?", answers=None, **extra):
    payload = {
        "version": version,
        "text": text,
        "answers": answers or [{"text": "Low", "weight": 20}, {"text": "High", "weight": 80}],
        **extra,
    }
    return client.post(f"{API}/questions", json=payload)


def test_create_question_returns_201_with_etag_and_location(client):
    resp = _create(client, category="stress")

    assert resp.status_code == 201, resp.text
    body = resp.json()
    _schema("Question").validate(body)
    assert body["version"] == "1"
    assert "revision" not in body
    assert resp.headers["ETag"].startswith('W/"')
    assert resp.headers["Location"] == f"{API}/questions/{body['id']}"
    assert resp.headers.get("X-Request-Id")


def test_weight_sum_error_is_problem_json_with_total(client):
    resp = _create(client, answers=[{"text": "A", "weight": 40}, {"text": "B", "weight": 52}])

    body = _assert_problem(resp, 422, "WEIGHT_SUM_INVALID")
    assert body["total"] == 92
    assert body["detail"] == "total must be 100%, currently 92%"


def test_malformed_payload_is_validation_failed(client):
    resp = client.post(f"{API}/questions", json={"version": 1, "text": "no answers"})

    body = _assert_problem(resp, 422, "VALIDATION_FAILED")
    assert body["errors"]


def test_get_unknown_question_is_404(client):
    _assert_problem(client.get(f"{API}/questions/missing"), 404, "NOT_FOUND")


def test_patch_version_is_immutable(client):
    qid = _create(client).json()["id"]

    _assert_problem(client.patch(f"{API}/questions/{qid}", json={"version": 2}), 409, "IMMUTABLE_FIELD")


def test_patch_rejects_unknown_fields(client):
    qid = _create(client).json()["id"]

    _assert_problem(client.patch(f"{API}/questions/{qid}", json={"colour": "red"}), 422, "VALIDATION_FAILED")


def test_if_match_precondition(client):
    created = _create(client)
    qid = created.json()["id"]
    etag = created.headers["ETag"]

    ok = client.patch(f"{API}/questions/{qid}", json={"text": "Edited"}, headers={"If-Match": etag})
    assert ok.status_code == 200, ok.text
    assert ok.headers["ETag"] != etag

    stale = client.patch(f"{API}/questions/{qid}", json={"text": "Again"}, headers={"If-Match": etag})
    _assert_problem(stale, 412, "PRE_IF_MATCH_ETAG_MISMATCH")
    assert stale.headers["ETag"] == ok.headers["ETag"]

    wildcard = client.patch(f"{API}/questions/{qid}", json={"category": "sleep"}, headers={"If-Match": "*"})
    assert wildcard.status_code == 200
    assert wildcard.json()["category"] == "sleep"


def test_assessment_status_toggle_and_active_listing(client):
    first = _create(client).json()
    second = _create(client, text="Second").json()

    resp = client.patch(f"{API}/questions/{second['id']}/assessment-status", json={"in_assessment": False})
    assert resp.status_code == 200
    assert resp.json()["answers"] == second["answers"]

    assert client.get(f"{API}/questions/assessment").json() == {"version_id": None, "questions": [], "count": 0}

    assert client.post(f"{API}/versions/1/activate").json() == {"active_version_id": "1"}
    listing = client.get(f"{API}/questions/assessment").json()
    assert listing["version_id"] == "1"
    assert [q["id"] for q in listing["questions"]] == [first["id"]]
    assert listing["questions"][0]["is_authoritative"] is True


def test_list_questions_filters(client):
    _create(client, version=1, category="mood")
    _create(client, version=2, category="sleep")

    body = client.get(f"{API}/questions", params={"version": "2"}).json()
    assert body["count"] == 1
    assert body["questions"][0]["category"] == "sleep"
    assert client.get(f"{API}/questions", params={"category": "mood"}).json()["count"] == 1


def test_version_lifecycle(client):
    _create(client, version=1)
    _create(client, version=2)

    assert client.post(f"{API}/versions/1/activate").status_code == 200
    _assert_problem(client.post(f"{API}/versions/2/activate"), 409, "ACTIVE_VERSION_CONFLICT")
    _assert_problem(client.post(f"{API}/versions/9/activate"), 404, "NOT_FOUND")

    listing = client.get(f"{API}/versions").json()
    assert listing["active_version_id"] == "1"
    for summary in listing["versions"]:
        _schema("VersionSummary").validate(summary)

    assert client.post(f"{API}/versions/1/deactivate").json() == {"active_version_id": None}
    assert client.post(f"{API}/versions/2/activate").json() == {"active_version_id": "2"}

    assert client.delete(f"{API}/versions/2").status_code == 204
    assert client.get(f"{API}/versions").json()["active_version_id"] is None
    _assert_problem(client.get(f"{API}/versions/2"), 404, "NOT_FOUND")


def test_version_metadata(client):
    _create(client, version=3)

    resp = client.put(f"{API}/versions/3/metadata", json={"name": "Burnout check", "estimated_time": "4 min"})
    assert resp.status_code == 200
    assert resp.json()["metadata"]["name"] == "Burnout check"
    assert client.get(f"{API}/versions/3").json()["metadata"]["estimated_time"] == "4 min"


def test_score_session_end_to_end(client):
    q1 = _create(client, answers=[{"text": "Fine", "weight": 30}, {"text": "Low", "weight": 70}]).json()
    q2 = _create(client, answers=[{"text": "Good", "weight": 0}, {"text": "Poor", "weight": 100}]).json()
    session = {
        "version_id": 1,
        "answers": [
            {"question_id": q1["id"], "answer_id": q1["answers"][1]["id"]},
            {"question_id": q2["id"], "answer_id": q2["answers"][1]["id"]},
        ],
    }

    resp = client.post(f"{API}/sessions/score", json=session)

    assert resp.status_code == 200, resp.text
    body = resp.json()
    _schema("ScoringResult").validate(body)
    assert body["score"] == pytest.approx(85.0)
    assert (body["risk_level"], body["routing_outcome"]) == ("high", "specialist")

    events_feed = client.get("/__test__/events").json()
    assert events_feed[-1]["type"] == "session.scored"


@pytest.mark.parametrize(
    "session, status, code",
    [
        ({"version_id": 1, "answers": []}, 422, "EMPTY_SESSION"),
        ({"version_id": 1, "answers": [{"question_id": "nope", "answer_id": "x"}]}, 422, "INVALID_ANSWER_REFERENCE"),
        ({"version_id": 5, "answers": [{"question_id": "nope", "answer_id": "x"}]}, 404, "NOT_FOUND"),
    ],
)
def test_score_session_errors(client, session, status, code):
    _create(client)

    _assert_problem(client.post(f"{API}/sessions/score", json=session), status, code)


def test_routing_policy_endpoint_lists_default_bands(client):
    bands = client.get(f"{API}/routing-policy").json()["bands"]

    assert [b["min_score"] for b in bands] == [75, 25, 0]
    assert bands[0]["routing_outcome"] == "specialist"


def test_delete_question_returns_204(client):
    qid = _create(client).json()["id"]

    assert client.delete(f"{API}/questions/{qid}").status_code == 204
    _assert_problem(client.delete(f"{API}/questions/{qid}"), 404, "NOT_FOUND")


def test_health_and_test_support_reset(client):
    assert client.get("/health").json() == {"status": "ok", "store": True}
    _create(client)

    assert client.post("/__test__/reset-state").status_code == 204
    assert client.get(f"{API}/questions").json()["count"] == 0
    assert client.get("/__test__/events").json() == []
