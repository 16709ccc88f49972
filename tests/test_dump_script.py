from scripts.dump_survey_state import dump
from survey_insights.repositories.surveys import SurveyRepository
from survey_insights.schemas.responses import AnswerIn
from survey_insights.services.ingestion import submit_responses

from conftest import make_three_question_survey


def test_dump_lists_questions_and_counts(db, owner_id, required_questions):
    survey = make_three_question_survey(db, owner_id)
    repo = SurveyRepository(db)
    q = repo.get_questions(survey.id)
    submit_responses(db, survey.id, [AnswerIn(question_id=q[0].id, value="choice_2"), AnswerIn(question_id=q[1].id, value=3)])

    state = dump(repo, survey.id)

    assert state["survey"]["title"] == "Lunch feedback"
    assert [x["order"] for x in state["questions"]] == [1, 2, 3]
    assert [x["category"] for x in state["questions"]] == ["visit_frequency", None, None]
    assert state["category_counts"] == {"visit_frequency": 1, "null": 1}
