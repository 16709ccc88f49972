import json
import uuid

import pytest

from survey_insights.api.deps.llm import get_llm_client
from survey_insights.core.security import create_access_token
from survey_insights.models.response import Response
from survey_insights.repositories.surveys import SurveyRepository

from conftest import REPORT, FakeLLM, make_three_question_survey, seed_required_questions


@pytest.fixture
def survey(api_db, owner_id):
    seed_required_questions(api_db)
    return make_three_question_survey(api_db, owner_id, activate=True)


@pytest.fixture
def question_ids(api_db, survey):
    return [str(q.id) for q in SurveyRepository(api_db).get_questions(survey.id)]


def _submit(client, survey_id, question_ids, values=("choice_1", 4, "tasty"), customer=None):
    payload = {"answers": [{"question_id": q, "value": v} for q, v in zip(question_ids, values)]}
    if customer:
        payload["customer"] = customer
    return client.post(f"/api/v1/surveys/{survey_id}/responses", json=payload)


# ---------- health / root ----------

def test_health_endpoints(client):
    assert client.get("/health").json()["status"] == "ok"
    assert client.get("/api/v1/healthz").json() == {"status": "ok"}
    assert client.get("/api/v1/health/db").json() == {"db": "ok"}
    assert client.get("/").json()["api_v1"] == "/api/v1"


# ---------- auth ----------

def test_owner_routes_need_a_token(client):
    assert client.get("/api/v1/surveys").status_code == 401
    bad = {"Authorization": "Bearer not-a-jwt"}
    assert client.get("/api/v1/surveys", headers=bad).json()["detail"] == "Invalid token"


def test_expired_token_is_rejected(client, settings, owner_id):
    token = create_access_token({"sub": owner_id}, settings, expires_minutes=-10)
    r = client.get("/api/v1/surveys", headers={"Authorization": f"Bearer {token}"})
    assert r.status_code == 401
    assert r.json()["detail"] == "Token expired"


# ---------- surveys ----------

def test_create_and_read_active_survey(client, api_db, auth_headers):
    seed_required_questions(api_db)
    payload = {
        "title": "Brunch",
        "activate": True,
        "questions": [
            {"question_text": "Anything else?", "question_type": "text", "order_num": 2},
            {"question_text": "Visits?", "question_type": "multiple_choice", "order_num": 1,
             "options": {"choices_text": ["a", "b"]}, "required_question_category": "visit_frequency"},
        ],
    }

    created = client.post("/api/v1/surveys", json=payload, headers=auth_headers)
    assert created.status_code == 201
    assert [q["order_num"] for q in created.json()["questions"]] == [1, 2]

    active = client.get("/api/v1/surveys/active", headers=auth_headers).json()
    assert active["id"] == created.json()["id"]
    assert active["questions"][0]["required_question"]["category"] == "visit_frequency"
    assert active["questions"][1]["required_question"] is None


def test_no_active_survey_is_404(client, auth_headers):
    r = client.get("/api/v1/surveys/active", headers=auth_headers)
    assert r.status_code == 404
    assert r.json() == {"success": False, "error": "No active survey for this owner"}


def test_duplicate_order_is_400(client, auth_headers):
    payload = {
        "title": "Dup",
        "questions": [
            {"question_text": "a", "question_type": "text", "order_num": 1},
            {"question_text": "b", "question_type": "text", "order_num": 1},
        ],
    }
    r = client.post("/api/v1/surveys", json=payload, headers=auth_headers)
    assert r.status_code == 400
    assert r.json()["success"] is False


def test_toggle_active(client, survey, auth_headers):
    r = client.patch(f"/api/v1/surveys/{survey.id}/active", json={"is_active": False}, headers=auth_headers)
    assert r.status_code == 200
    assert r.json()["is_active"] is False
    assert client.get("/api/v1/surveys/active", headers=auth_headers).status_code == 404


def test_list_surveys_only_shows_own(client, api_db, survey, auth_headers):
    make_three_question_survey(api_db, uuid.uuid4())
    listed = client.get("/api/v1/surveys", headers=auth_headers).json()
    assert [s["id"] for s in listed] == [str(survey.id)]


def test_public_questions_are_ordered(client, survey, question_ids):
    r = client.get(f"/api/v1/surveys/{survey.id}/questions")
    assert r.status_code == 200
    assert [q["id"] for q in r.json()] == question_ids
    assert client.get(f"/api/v1/surveys/{uuid.uuid4()}/questions").status_code == 404


def test_required_questions_catalog(client, api_db):
    seed_required_questions(api_db)
    assert len(client.get("/api/v1/required-questions").json()) == 4
    rq = client.get("/api/v1/required-questions/visit_frequency").json()
    assert rq["choices"]["choice_6"] == "Almost daily"
    assert client.get("/api/v1/required-questions/nope").status_code == 404


# ---------- responses ----------

def test_submit_and_count_by_category(client, survey, question_ids, auth_headers):
    r = _submit(client, survey.id, question_ids, customer={"age_group": "20s", "gender": "female"})

    assert r.status_code == 201
    body = r.json()
    assert body["success"] is True
    assert len(body["response_ids"]) == 3
    assert body["customer_info_id"]

    counts = client.get(f"/api/v1/surveys/{survey.id}/responses/category-counts", headers=auth_headers).json()
    assert counts["counts"] == {"visit_frequency": 1, "null": 2}
    assert counts["total"] == 3


def test_multi_select_submission(client, api_db, survey, question_ids):
    r = _submit(client, survey.id, question_ids, values=(["choice_1", "choice_3"], 4, "tasty"))
    assert r.status_code == 201

    row = api_db.query(Response).filter(Response.question_id == uuid.UUID(question_ids[0])).one()
    assert row.selected_option == "choice_1"
    assert row.selected_options == ["choice_1", "choice_3"]


def test_invalid_submission_is_400(client, survey, question_ids):
    r = _submit(client, survey.id, question_ids, values=("choice_1", 9, "x"))
    assert r.status_code == 400
    assert r.json()["success"] is False


def test_empty_submission_is_422(client, survey):
    r = client.post(f"/api/v1/surveys/{survey.id}/responses", json={"answers": []})
    assert r.status_code == 422


def test_category_counts_of_foreign_survey_is_404(client, survey, settings):
    stranger = create_access_token({"sub": uuid.uuid4()}, settings)
    r = client.get(
        f"/api/v1/surveys/{survey.id}/responses/category-counts",
        headers={"Authorization": f"Bearer {stranger}"},
    )
    assert r.status_code == 404


# ---------- ai statistics ----------

def test_ai_statistics_empty_then_generated(client, survey, question_ids, auth_headers):
    url = f"/api/v1/surveys/{survey.id}/ai-statistics"
    assert client.get(url, headers=auth_headers).json() == {"success": True, "statistics": []}

    nothing = client.post(url, headers=auth_headers).json()
    assert nothing["statistics"] == []
    assert nothing["message"]

    _submit(client, survey.id, question_ids, customer={"age_group": "30s", "gender": "male"})
    generated = client.post(url, headers=auth_headers).json()
    assert len(generated["statistics"]) == 1
    assert generated["live_analysis"]["visit_frequency_analysis"]["new_customers"] == 100

    listed = client.get(url, headers=auth_headers).json()
    assert listed["success"] is True
    assert [s["id"] for s in listed["statistics"]] == [generated["statistics"][0]["id"]]


def test_ai_statistics_masks_foreign_and_missing(client, survey, settings):
    stranger = {"Authorization": f"Bearer {create_access_token({'sub': uuid.uuid4()}, settings)}"}

    foreign = client.get(f"/api/v1/surveys/{survey.id}/ai-statistics", headers=stranger)
    missing = client.get(f"/api/v1/surveys/{uuid.uuid4()}/ai-statistics", headers=stranger)

    assert foreign.status_code == missing.status_code == 404
    assert foreign.json() == missing.json()
    assert foreign.json()["success"] is False


def test_store_failure_is_500(client, survey, auth_headers, monkeypatch):
    from survey_insights.api.v1.endpoints import ai_statistics
    from survey_insights.core.errors import QueryError

    def broken(*args, **kwargs):
        raise QueryError("Store error while trying to load AI statistics")

    monkeypatch.setattr(ai_statistics, "list_statistics", broken)
    r = client.get(f"/api/v1/surveys/{survey.id}/ai-statistics", headers=auth_headers)

    assert r.status_code == 500
    assert r.json() == {"success": False, "error": "Store error while trying to load AI statistics"}


# ---------- ai analysis ----------

def test_ai_analysis_without_model_is_503(client, survey, auth_headers):
    r = client.post(f"/api/v1/surveys/{survey.id}/ai-analysis", headers=auth_headers)
    assert r.status_code == 503


def test_ai_analysis_with_model(client, survey, question_ids, auth_headers):
    llm = FakeLLM(json.dumps(REPORT))
    client.app.dependency_overrides[get_llm_client] = lambda: llm
    _submit(client, survey.id, question_ids)

    r = client.post(f"/api/v1/surveys/{survey.id}/ai-analysis", headers=auth_headers)

    client.app.dependency_overrides.clear()
    assert r.status_code == 200
    assert r.json()["statistics"][0]["summary"] == REPORT["summary"]
    assert len(llm.completions.calls) == 1


# ---------- dashboard ----------

def test_dashboard_without_active_survey(client, auth_headers):
    body = client.get("/api/v1/dashboard", headers=auth_headers).json()
    assert body["active_survey"] is None
    assert body["question_count"] == 0


def test_dashboard_summary(client, survey, question_ids, auth_headers):
    _submit(client, survey.id, question_ids)
    client.post(f"/api/v1/surveys/{survey.id}/ai-statistics", headers=auth_headers)

    body = client.get("/api/v1/dashboard", headers=auth_headers).json()

    assert body["active_survey"]["id"] == str(survey.id)
    assert body["question_count"] == 3
    assert body["category_counts"] == {"visit_frequency": 1, "null": 2}
    assert body["latest_statistic"]["total_responses"] == 1


# ---------- survey drafts ----------

def test_survey_draft_without_model_is_503(client, auth_headers):
    r = client.post("/api/v1/surveys/generate", json={"description": "bakery feedback"}, headers=auth_headers)
    assert r.status_code == 503


def test_survey_draft_needs_a_token(client):
    assert client.post("/api/v1/surveys/generate", json={"description": "bakery feedback"}).status_code == 401


def test_survey_draft_can_be_created_as_is(client, auth_headers):
    draft = {
        "title": "Bakery",
        "description": "Quick feedback",
        "questions": [
            {"question_text": "Favourite bread?", "question_type": "single_choice", "choices_text": ["Rye", "Baguette"]},
            {"question_text": "Rate the staff", "question_type": "rating"},
        ],
    }
    client.app.dependency_overrides[get_llm_client] = lambda: FakeLLM(json.dumps(draft))

    r = client.post("/api/v1/surveys/generate", json={"description": "bakery feedback"}, headers=auth_headers)

    client.app.dependency_overrides.clear()
    assert r.status_code == 200
    survey = r.json()["survey"]
    assert survey["questions"][0]["question_type"] == "multiple_choice"
    assert survey["questions"][0]["options"] == {"choices_text": ["Rye", "Baguette"]}

    created = client.post("/api/v1/surveys", json=survey, headers=auth_headers)
    assert created.status_code == 201
    assert len(created.json()["questions"]) == 2
