# survey_insights/api/v1/endpoints/required_questions.py
from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from survey_insights.db.session import get_db
from survey_insights.repositories.surveys import SurveyRepository
from survey_insights.schemas.surveys import RequiredQuestionOut

router = APIRouter(prefix="/required-questions", tags=["required-questions"])


@router.get("", response_model=List[RequiredQuestionOut])
def list_required_questions(db: Session = Depends(get_db)):
    return SurveyRepository(db).list_required_questions()


@router.get("/{category}", response_model=RequiredQuestionOut)
def get_required_question(category: str, db: Session = Depends(get_db)):
    return SurveyRepository(db).get_required_question_by_category(category)
