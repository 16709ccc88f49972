# survey_insights/api/v1/endpoints/ai_analysis.py
from uuid import UUID

from fastapi import APIRouter, Depends
from openai import AsyncOpenAI
from sqlalchemy.orm import Session

from survey_insights.api.deps.llm import get_llm_client
from survey_insights.core.config import Settings
from survey_insights.core.security import get_app_settings, get_current_owner
from survey_insights.db.session import get_db
from survey_insights.schemas.statistics import AiStatisticOut, GeneratedStatisticsOut
from survey_insights.schemas.surveys import GeneratedSurveyOut, SurveyGenerateIn
from survey_insights.services.ai_analysis import run_ai_analysis
from survey_insights.services.survey_generation import generate_survey

router = APIRouter(prefix="/surveys", tags=["ai-analysis"])


@router.post("/{survey_id}/ai-analysis", response_model=GeneratedStatisticsOut)
async def request_ai_analysis(
    survey_id: UUID,
    db: Session = Depends(get_db),
    owner_id: UUID = Depends(get_current_owner),
    settings: Settings = Depends(get_app_settings),
    client: AsyncOpenAI = Depends(get_llm_client),
):
    snapshot = await run_ai_analysis(db, client, settings.MODEL_NAME, survey_id, owner_id)
    if snapshot is None:
        return GeneratedStatisticsOut(message="No responses to analyze")
    return GeneratedStatisticsOut(statistics=[AiStatisticOut.model_validate(snapshot)])


@router.post("/generate", response_model=GeneratedSurveyOut)
async def request_survey_draft(
    payload: SurveyGenerateIn,
    owner_id: UUID = Depends(get_current_owner),
    settings: Settings = Depends(get_app_settings),
    client: AsyncOpenAI = Depends(get_llm_client),
):
    """Drafts a survey from a description. Nothing is stored."""
    draft = await generate_survey(client, settings.MODEL_NAME, payload.description)
    return GeneratedSurveyOut(survey=draft)
