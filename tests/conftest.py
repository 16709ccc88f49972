import json
import uuid
from types import SimpleNamespace

import pytest
from fastapi.testclient import TestClient

from survey_insights.core.config import Settings
from survey_insights.core.security import create_access_token
from survey_insights.db.session import Store
from survey_insights.main import create_app
from survey_insights.models.survey import RequiredQuestion
from survey_insights.repositories.surveys import SurveyRepository
from survey_insights.schemas.surveys import QuestionIn

VISIT_CHOICES = {
    "choice_1": "First visit",
    "choice_2": "Once or twice a year",
    "choice_3": "Every few months",
    "choice_4": "Monthly",
    "choice_5": "Weekly",
    "choice_6": "Almost daily",
}


@pytest.fixture
def settings(tmp_path):
    return Settings.load(
        _env_file=None,
        DATABASE_URL="sqlite://",
        JWT_SECRET="test-secret",
        AUTO_CREATE_TABLES=True,
        LOG_DIR=str(tmp_path / "logs"),
        OPENAI_API_KEY=None,
    )


@pytest.fixture
def store(settings):
    s = Store(settings)
    s.create_all()
    yield s
    s.dispose()


@pytest.fixture
def db(store):
    session = store.session()
    yield session
    session.close()


@pytest.fixture
def owner_id():
    return uuid.uuid4()


@pytest.fixture
def other_owner_id():
    return uuid.uuid4()


def seed_required_questions(db):
    rows = [
        RequiredQuestion(
            category="visit_frequency",
            question_text="How often do you visit us?",
            question_type="multiple_choice",
            choices=VISIT_CHOICES,
        ),
        RequiredQuestion(category="overall_satisfaction", question_text="How satisfied were you?", question_type="rating"),
        RequiredQuestion(category="recommendation", question_text="Would you recommend us?", question_type="rating"),
        RequiredQuestion(category="revisit_intention", question_text="Will you come back?", question_type="rating"),
    ]
    db.add_all(rows)
    db.commit()
    return {rq.category: rq for rq in rows}


@pytest.fixture
def required_questions(db):
    return seed_required_questions(db)


def make_three_question_survey(db, owner_id, activate=False):
    """Q1 links visit_frequency; Q2 (rating) and Q3 (text) are unlinked."""
    return SurveyRepository(db).create_survey(
        owner_id,
        title="Lunch feedback",
        questions=[
            QuestionIn(
                question_text="How often do you visit us?",
                question_type="multiple_choice",
                options={"choices_text": list(VISIT_CHOICES.values())},
                order_num=1,
                required_question_category="visit_frequency",
            ),
            QuestionIn(question_text="How was the food?", question_type="rating", order_num=2),
            QuestionIn(question_text="Anything else?", question_type="text", order_num=3),
        ],
        activate=activate,
    )


def make_metrics_survey(db, owner_id):
    """Rating questions for every metric category plus visit frequency."""
    return SurveyRepository(db).create_survey(
        owner_id,
        title="Dinner survey",
        questions=[
            QuestionIn(question_text="Overall?", question_type="rating", order_num=1,
                       required_question_category="overall_satisfaction"),
            QuestionIn(question_text="Recommend?", question_type="rating", order_num=2,
                       required_question_category="recommendation"),
            QuestionIn(question_text="Come back?", question_type="rating", order_num=3,
                       required_question_category="revisit_intention"),
            QuestionIn(question_text="Visits?", question_type="multiple_choice", order_num=4,
                       options={"choices_text": list(VISIT_CHOICES.values())},
                       required_question_category="visit_frequency"),
        ],
    )


@pytest.fixture
def app(settings):
    return create_app(settings)


@pytest.fixture
def client(app):
    with TestClient(app) as c:
        yield c


@pytest.fixture
def api_db(client):
    session = client.app.state.store.session()
    yield session
    session.close()


@pytest.fixture
def auth_headers(settings, owner_id):
    token = create_access_token({"sub": owner_id}, settings)
    return {"Authorization": f"Bearer {token}"}


REPORT = {
    "summary": "Regulars love the soup; first-timers find it slow.",
    "key_stats": {"average_rating": 4.1, "main_customer_age_group": "30s", "main_customer_gender": "male"},
    "top_pros": ["soup", "staff"],
    "top_cons": ["waiting time"],
    "recommendations": ["add a lunch express menu", "hire for peak hours"],
}


class FakeCompletions:
    def __init__(self, content):
        self.content = content
        self.calls = []

    async def create(self, **kwargs):
        self.calls.append(kwargs)
        return SimpleNamespace(choices=[SimpleNamespace(message=SimpleNamespace(content=self.content))])


class FakeLLM:
    """Stands in for AsyncOpenAI: only chat.completions.create is used."""

    def __init__(self, content=None):
        self.completions = FakeCompletions(json.dumps(REPORT) if content is None else content)
        self.chat = SimpleNamespace(completions=self.completions)
