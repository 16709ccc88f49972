# survey_insights/api/v1/endpoints/dashboard.py
from uuid import UUID

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from survey_insights.core.config import Settings
from survey_insights.core.errors import NotFound
from survey_insights.core.security import get_app_settings, get_current_owner
from survey_insights.db.session import get_db
from survey_insights.repositories.surveys import SurveyRepository
from survey_insights.schemas.statistics import AiStatisticOut, DashboardOut
from survey_insights.schemas.surveys import SurveyOut
from survey_insights.services.ingestion import category_counts_for_survey
from survey_insights.services.statistics import latest_statistic

router = APIRouter(tags=["dashboard"])


@router.get("/dashboard", response_model=DashboardOut)
def dashboard(
    db: Session = Depends(get_db),
    owner_id: UUID = Depends(get_current_owner),
    settings: Settings = Depends(get_app_settings),
):
    repo = SurveyRepository(db, settings.READ_RETRY_ATTEMPTS)
    try:
        survey = repo.get_active_survey(owner_id)
    except NotFound:
        return DashboardOut()

    latest = latest_statistic(db, survey.id, owner_id)
    return DashboardOut(
        active_survey=SurveyOut.model_validate(survey),
        question_count=len(repo.get_questions(survey.id)),
        category_counts=category_counts_for_survey(db, survey.id, settings.READ_RETRY_ATTEMPTS),
        latest_statistic=AiStatisticOut.model_validate(latest) if latest else None,
    )
