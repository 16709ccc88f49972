# survey_insights/api/v1/endpoints/surveys.py
from typing import List
from uuid import UUID

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from survey_insights.core.config import Settings
from survey_insights.core.security import get_app_settings, get_current_owner
from survey_insights.db.session import get_db
from survey_insights.repositories.surveys import SurveyRepository
from survey_insights.schemas.surveys import (
    QuestionOut,
    SurveyActiveIn,
    SurveyCreateIn,
    SurveyOut,
    SurveyWithQuestionsOut,
)

router = APIRouter(prefix="/surveys", tags=["surveys"])


@router.post("", response_model=SurveyWithQuestionsOut, status_code=201)
def create_survey(
    payload: SurveyCreateIn,
    db: Session = Depends(get_db),
    owner_id: UUID = Depends(get_current_owner),
):
    repo = SurveyRepository(db)
    survey = repo.create_survey(
        owner_id,
        title=payload.title,
        description=payload.description,
        questions=payload.questions,
        activate=payload.activate,
    )
    return SurveyWithQuestionsOut(
        **SurveyOut.model_validate(survey).model_dump(),
        questions=[QuestionOut.model_validate(q) for q in repo.get_questions(survey.id)],
    )


@router.get("", response_model=List[SurveyOut])
def list_surveys(
    db: Session = Depends(get_db),
    owner_id: UUID = Depends(get_current_owner),
    settings: Settings = Depends(get_app_settings),
):
    return SurveyRepository(db, settings.READ_RETRY_ATTEMPTS).list_surveys(owner_id)


@router.get("/active", response_model=SurveyWithQuestionsOut)
def get_active_survey(
    db: Session = Depends(get_db),
    owner_id: UUID = Depends(get_current_owner),
    settings: Settings = Depends(get_app_settings),
):
    """
    The owner's single active survey with its ordered questions.
    404 when none is active, 409 when the store holds more than one.
    """
    repo = SurveyRepository(db, settings.READ_RETRY_ATTEMPTS)
    survey = repo.get_active_survey(owner_id)
    return SurveyWithQuestionsOut(
        **SurveyOut.model_validate(survey).model_dump(),
        questions=[QuestionOut.model_validate(q) for q in repo.get_questions(survey.id)],
    )


@router.patch("/{survey_id}/active", response_model=SurveyOut)
def set_survey_active(
    survey_id: UUID,
    payload: SurveyActiveIn,
    db: Session = Depends(get_db),
    owner_id: UUID = Depends(get_current_owner),
):
    return SurveyRepository(db).set_active(survey_id, owner_id, payload.is_active)


@router.get("/{survey_id}/questions", response_model=List[QuestionOut])
def list_questions(
    survey_id: UUID,
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_app_settings),
):
    """Public: respondents load the questions to render the form."""
    repo = SurveyRepository(db, settings.READ_RETRY_ATTEMPTS)
    repo.get_survey(survey_id)
    return repo.get_questions(survey_id)
