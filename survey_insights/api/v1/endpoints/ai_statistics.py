# survey_insights/api/v1/endpoints/ai_statistics.py
from uuid import UUID

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from survey_insights.core.config import Settings
from survey_insights.core.security import get_app_settings, get_current_owner
from survey_insights.db.session import get_db
from survey_insights.schemas.statistics import AiStatisticOut, GeneratedStatisticsOut, StatisticsListOut
from survey_insights.services.statistics import generate_statistics, list_statistics

router = APIRouter(prefix="/surveys", tags=["ai-statistics"])


@router.get("/{survey_id}/ai-statistics", response_model=StatisticsListOut)
def get_ai_statistics(
    survey_id: UUID,
    db: Session = Depends(get_db),
    owner_id: UUID = Depends(get_current_owner),
    settings: Settings = Depends(get_app_settings),
):
    """
    Stored analysis snapshots of an owned survey, newest first.
    A foreign survey answers exactly like a missing one (404).
    """
    rows = list_statistics(db, survey_id, owner_id, read_attempts=settings.READ_RETRY_ATTEMPTS)
    return StatisticsListOut(statistics=[AiStatisticOut.model_validate(r) for r in rows])


@router.post("/{survey_id}/ai-statistics", response_model=GeneratedStatisticsOut)
def regenerate_ai_statistics(
    survey_id: UUID,
    db: Session = Depends(get_db),
    owner_id: UUID = Depends(get_current_owner),
    settings: Settings = Depends(get_app_settings),
):
    result = generate_statistics(db, survey_id, owner_id, window_days=settings.STATISTICS_WINDOW_DAYS)
    if result.snapshot is None:
        return GeneratedStatisticsOut(message="No responses to analyze")
    return GeneratedStatisticsOut(
        statistics=[AiStatisticOut.model_validate(result.snapshot)],
        live_analysis=result.analysis,
    )
