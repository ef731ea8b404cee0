"""Step definitions for the assessment integration features.

Steps talk HTTP only, through `context.client` (httpx or TestClient, see
environment.py). Questions are tracked by their text in `context.vars`.
"""

from __future__ import annotations

from typing import Any, Dict, List

from behave import given, then, when


def _url(context, path: str) -> str:
    return f"{context.api_prefix}{path}"


def _questions(context) -> Dict[str, Dict[str, Any]]:
    return context.vars.setdefault("questions", {})


def _create(context, text: str, version: int, answers: List[Dict[str, Any]]):
    resp = context.client.post(_url(context, "/questions"), json={"version": version, "text": text, "answers": answers})
    if resp.status_code == 201:
        _questions(context)[text] = {"body": resp.json(), "etag": resp.headers.get("ETag")}
    return resp


def _question_id(context, text: str) -> str:
    assert text in _questions(context), f"unknown question {text!r}"
    return _questions(context)[text]["body"]["id"]


def _answer_id(context, text: str, weight: int) -> str:
    answers = _questions(context)[text]["body"]["answers"]
    return next(a["id"] for a in answers if a["weight"] == weight)


# ------------------
# authoring
# ------------------


@when('I create a question "{text}" in version {version:d} with answers')
def step_create_with_table(context, text: str, version: int) -> None:
    answers = [{"text": row["text"], "weight": int(row["weight"])} for row in context.table]
    context.response = _create(context, text, version, answers)


@given('a question "{text}" in version {version:d} with weights {weights}')
def step_seed_question(context, text: str, version: int, weights: str) -> None:
    answers = [{"text": f"option {i}", "weight": int(w)} for i, w in enumerate(weights.split(","))]
    resp = _create(context, text, version, answers)
    assert resp.status_code == 201, resp.text


@when('I change the version of question "{text}" to {version:d}')
def step_change_version(context, text: str, version: int) -> None:
    context.response = context.client.patch(
        _url(context, f"/questions/{_question_id(context, text)}"), json={"version": version}
    )


@given('question "{text}" is edited to text "{new_text}"')
def step_edit_text(context, text: str, new_text: str) -> None:
    resp = context.client.patch(_url(context, f"/questions/{_question_id(context, text)}"), json={"text": new_text})
    assert resp.status_code == 200, resp.text


@when('I edit question "{text}" with its original ETag')
def step_edit_with_original_etag(context, text: str) -> None:
    original = _questions(context)[text]["etag"]
    context.response = context.client.patch(
        _url(context, f"/questions/{_question_id(context, text)}"),
        json={"text": "late edit"},
        headers={"If-Match": original},
    )


@when('I exclude question "{text}" from the assessment')
def step_exclude(context, text: str) -> None:
    context.response = context.client.patch(
        _url(context, f"/questions/{_question_id(context, text)}/assessment-status"),
        json={"in_assessment": False},
    )
    assert context.response.status_code == 200, context.response.text


# ------------------
# versions
# ------------------


@when("I activate version {version:d}")
def step_activate(context, version: int) -> None:
    context.response = context.client.post(_url(context, f"/versions/{version}/activate"))


@given("version {version:d} is active")
def step_version_is_active(context, version: int) -> None:
    resp = context.client.post(_url(context, f"/versions/{version}/activate"))
    assert resp.status_code == 200, resp.text


@when("I deactivate version {version:d}")
def step_deactivate(context, version: int) -> None:
    context.response = context.client.post(_url(context, f"/versions/{version}/deactivate"))
    assert context.response.status_code == 200, context.response.text


@when("I delete version {version:d}")
def step_delete_version(context, version: int) -> None:
    context.response = context.client.delete(_url(context, f"/versions/{version}"))


# ------------------
# scoring
# ------------------


@when('I score version {version:d} choosing weight {w1:d} for "{q1}" and {w2:d} for "{q2}"')
def step_score(context, version: int, w1: int, q1: str, w2: int, q2: str) -> None:
    answers = [
        {"question_id": _question_id(context, q1), "answer_id": _answer_id(context, q1, w1)},
        {"question_id": _question_id(context, q2), "answer_id": _answer_id(context, q2, w2)},
    ]
    context.response = context.client.post(
        _url(context, "/sessions/score"), json={"version_id": version, "answers": answers}
    )


@when("I score version {version:d} with no answers")
def step_score_empty(context, version: int) -> None:
    context.response = context.client.post(_url(context, "/sessions/score"), json={"version_id": version, "answers": []})


# ------------------
# assertions
# ------------------


@then("the response status is {status:d}")
def step_status(context, status: int) -> None:
    assert context.response is not None, "no request was made"
    assert context.response.status_code == status, f"{context.response.status_code}: {context.response.text}"


@then("the response has an ETag header")
def step_has_etag(context) -> None:
    assert context.response.headers.get("ETag", "").startswith('W/"')


@then('the question "{text}" has {count:d} answers')
def step_answer_count(context, text: str, count: int) -> None:
    resp = context.client.get(_url(context, f"/questions/{_question_id(context, text)}"))
    assert resp.status_code == 200, resp.text
    assert len(resp.json()["answers"]) == count


@then('the problem code is "{code}"')
def step_problem_code(context, code: str) -> None:
    assert context.response.headers["content-type"].startswith("application/problem+json")
    assert context.response.json()["code"] == code, context.response.text


@then('the problem field "{field}" is {value:d}')
def step_problem_field(context, field: str, value: int) -> None:
    assert context.response.json()[field] == value


@then('the active version is "{version}"')
def step_active_version(context, version: str) -> None:
    assert context.client.get(_url(context, "/versions")).json()["active_version_id"] == version


@then("there is no active version")
def step_no_active_version(context) -> None:
    assert context.client.get(_url(context, "/versions")).json()["active_version_id"] is None


@then("version {version:d} is not listed")
def step_version_not_listed(context, version: int) -> None:
    listed = [v["id"] for v in context.client.get(_url(context, "/versions")).json()["versions"]]
    assert str(version) not in listed


@then('the assessment lists only "{text}"')
def step_assessment_lists_only(context, text: str) -> None:
    body = context.client.get(_url(context, "/questions/assessment")).json()
    assert [q["text"] for q in body["questions"]] == [text]


@then("the score is {score:g}")
def step_score_value(context, score: float) -> None:
    assert abs(context.response.json()["score"] - score) < 1e-9


@then('the routing is "{risk}" and "{outcome}"')
def step_routing(context, risk: str, outcome: str) -> None:
    body = context.response.json()
    assert (body["risk_level"], body["routing_outcome"]) == (risk, outcome)
