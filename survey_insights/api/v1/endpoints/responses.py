# survey_insights/api/v1/endpoints/responses.py
from uuid import UUID

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from survey_insights.core.config import Settings
from survey_insights.core.security import get_app_settings, get_current_owner
from survey_insights.db.session import get_db
from survey_insights.repositories.surveys import SurveyRepository
from survey_insights.schemas.responses import CategoryCountsOut, SubmitResponsesIn, SubmitResponsesOut
from survey_insights.services.ingestion import category_counts_for_survey, submit_responses

router = APIRouter(prefix="/surveys", tags=["responses"])


@router.post("/{survey_id}/responses", response_model=SubmitResponsesOut, status_code=201)
def submit(
    survey_id: UUID,
    payload: SubmitResponsesIn,
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_app_settings),
):
    """
    Public: a customer submits one answer per question. All rows are stored
    or none is.
    """
    result = submit_responses(
        db,
        survey_id,
        payload.answers,
        customer=payload.customer,
        read_attempts=settings.READ_RETRY_ATTEMPTS,
    )
    return SubmitResponsesOut(
        survey_id=result.survey_id,
        response_ids=result.response_ids,
        customer_info_id=result.customer_info_id,
    )


@router.get("/{survey_id}/responses/category-counts", response_model=CategoryCountsOut)
def category_counts(
    survey_id: UUID,
    db: Session = Depends(get_db),
    owner_id: UUID = Depends(get_current_owner),
    settings: Settings = Depends(get_app_settings),
):
    SurveyRepository(db, settings.READ_RETRY_ATTEMPTS).get_owned_survey(survey_id, owner_id)
    counts = category_counts_for_survey(db, survey_id, settings.READ_RETRY_ATTEMPTS)
    return CategoryCountsOut(survey_id=survey_id, total=sum(counts.values()), counts=counts)
