import uuid
from datetime import datetime, timedelta, timezone

import pytest

from survey_insights.core.errors import NotFoundOrForbidden
from survey_insights.models.ai_statistic import AiStatistic
from survey_insights.repositories.surveys import SurveyRepository
from survey_insights.schemas.responses import AnswerIn, CustomerIn
from survey_insights.services.ingestion import submit_responses
from survey_insights.services.statistics import generate_statistics, latest_statistic, list_statistics

from conftest import make_metrics_survey, make_three_question_survey


def _snapshot(survey, owner_id, when, summary):
    return AiStatistic(
        survey_id=survey.id,
        user_id=owner_id,
        analysis_date=when,
        total_responses=10,
        average_rating=4.2,
        summary=summary,
    )


def test_foreign_and_missing_surveys_look_the_same(db, owner_id, other_owner_id, required_questions):
    survey = make_three_question_survey(db, owner_id)

    with pytest.raises(NotFoundOrForbidden) as foreign:
        list_statistics(db, survey.id, other_owner_id)
    with pytest.raises(NotFoundOrForbidden) as missing:
        list_statistics(db, uuid.uuid4(), other_owner_id)

    assert type(foreign.value) is type(missing.value)
    assert foreign.value.message == missing.value.message


def test_owned_survey_without_statistics_is_empty(db, owner_id, required_questions):
    survey = make_three_question_survey(db, owner_id)
    assert list_statistics(db, survey.id, owner_id) == []
    assert latest_statistic(db, survey.id, owner_id) is None


def test_statistics_are_newest_first(db, owner_id, required_questions):
    survey = make_three_question_survey(db, owner_id)
    base = datetime(2026, 1, 1, tzinfo=timezone.utc)
    db.add_all([
        _snapshot(survey, owner_id, base + timedelta(days=1), "middle"),
        _snapshot(survey, owner_id, base, "oldest"),
        _snapshot(survey, owner_id, base + timedelta(days=2), "newest"),
    ])
    db.commit()

    rows = list_statistics(db, survey.id, owner_id)

    assert [r.summary for r in rows] == ["newest", "middle", "oldest"]
    assert latest_statistic(db, survey.id, owner_id).summary == "newest"


def test_generate_without_responses_stores_nothing(db, owner_id, required_questions):
    survey = make_metrics_survey(db, owner_id)

    result = generate_statistics(db, survey.id, owner_id)

    assert result.snapshot is None
    assert db.query(AiStatistic).count() == 0


def test_generate_appends_a_snapshot(db, owner_id, required_questions):
    survey = make_metrics_survey(db, owner_id)
    q = SurveyRepository(db).get_questions(survey.id)
    submissions = [
        ([5, 5, 5, "choice_4"], CustomerIn(age_group="20s", gender="female")),
        ([4, 2, 3, "choice_1"], CustomerIn(age_group="20s", gender="female")),
    ]
    for values, customer in submissions:
        answers = [AnswerIn(question_id=question.id, value=v) for question, v in zip(q, values)]
        submit_responses(db, survey.id, answers, customer=customer)

    result = generate_statistics(db, survey.id, owner_id)

    snapshot = result.snapshot
    assert snapshot is not None
    assert snapshot.total_responses == 2
    assert snapshot.average_rating == pytest.approx(4.5)  # CSAT 90 on a 1..5 scale
    assert snapshot.main_customer_age_group == "20s"
    assert snapshot.main_customer_gender == "female"
    assert snapshot.statistics["csat"] == 90
    assert snapshot.statistics["visit_frequency_analysis"]["loyal_customers"] == 50
    assert snapshot.summary
    assert [s.id for s in list_statistics(db, survey.id, owner_id)] == [snapshot.id]


def test_generate_for_foreign_survey_is_masked(db, owner_id, other_owner_id, required_questions):
    survey = make_metrics_survey(db, owner_id)
    with pytest.raises(NotFoundOrForbidden):
        generate_statistics(db, survey.id, other_owner_id)


def test_snapshot_without_satisfaction_ratings_has_no_average(db, owner_id, required_questions):
    survey = make_metrics_survey(db, owner_id)
    q = SurveyRepository(db).get_questions(survey.id)
    # only recommendation and visit frequency answered
    submit_responses(db, survey.id, [AnswerIn(question_id=q[1].id, value=5), AnswerIn(question_id=q[3].id, value="choice_2")])

    snapshot = generate_statistics(db, survey.id, owner_id).snapshot

    assert snapshot.average_rating is None
    assert snapshot.statistics["csat"] == 0


def test_anonymous_submissions_count_one_each(db, owner_id, required_questions):
    survey = make_metrics_survey(db, owner_id)
    q = SurveyRepository(db).get_questions(survey.id)
    for value in (5, 4, 3):
        submit_responses(db, survey.id, [AnswerIn(question_id=q[0].id, value=value)])
    submit_responses(
        db, survey.id, [AnswerIn(question_id=q[0].id, value=2)], customer=CustomerIn(age_group="40s", gender="male")
    )

    snapshot = generate_statistics(db, survey.id, owner_id).snapshot

    assert snapshot.total_responses == 4
