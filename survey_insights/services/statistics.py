# survey_insights/services/statistics.py
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, List, Optional
from uuid import UUID

from sqlalchemy.orm import Session

from survey_insights.core.logging import get_logger
from survey_insights.db.session import read_with_retry, store_call
from survey_insights.models.ai_statistic import AiStatistic
from survey_insights.models.response import CustomerInfo, Response
from survey_insights.repositories.surveys import SurveyRepository
from survey_insights.services import insights

logger = get_logger(__name__)

RESPONSE_LIMIT = 10000


@dataclass
class GeneratedStatistics:
    snapshot: Optional[AiStatistic]
    analysis: Optional[dict[str, Any]]


def list_statistics(db: Session, survey_id: UUID, owner_id: UUID, read_attempts: int = 2) -> List[AiStatistic]:
    """
    Snapshots of a survey, newest analysis first. The ownership check runs
    before anything else is read.
    """
    SurveyRepository(db, read_attempts=read_attempts).get_owned_survey(survey_id, owner_id)
    return read_with_retry(
        db,
        "load AI statistics",
        lambda: (
            db.query(AiStatistic)
            .filter(AiStatistic.survey_id == survey_id, AiStatistic.user_id == owner_id)
            .order_by(AiStatistic.analysis_date.desc())
            .all()
        ),
        attempts=read_attempts,
    )


def latest_statistic(db: Session, survey_id: UUID, owner_id: UUID) -> Optional[AiStatistic]:
    rows = list_statistics(db, survey_id, owner_id)
    return rows[0] if rows else None


def save_snapshot(db: Session, snapshot: AiStatistic) -> AiStatistic:
    with store_call(db, "save the AI statistics"):
        db.add(snapshot)
        db.commit()
        db.refresh(snapshot)
    logger.info("AI statistics %s saved for survey %s", snapshot.id, snapshot.survey_id)
    return snapshot


def load_window(db: Session, survey_id: UUID, since: datetime, read_attempts: int = 2):
    """Responses of the survey created since `since`, and the survey's customers."""
    responses = read_with_retry(
        db,
        "load responses",
        lambda: (
            db.query(Response)
            .filter(Response.survey_id == survey_id, Response.created_at >= since)
            .order_by(Response.created_at.asc())
            .limit(RESPONSE_LIMIT)
            .all()
        ),
        attempts=read_attempts,
    )
    customers = read_with_retry(
        db,
        "load customers",
        lambda: db.query(CustomerInfo).filter(CustomerInfo.survey_id == survey_id).all(),
        attempts=read_attempts,
    )
    return responses, customers


def generate_statistics(
    db: Session,
    survey_id: UUID,
    owner_id: UUID,
    now: Optional[datetime] = None,
    window_days: int = 90,
) -> GeneratedStatistics:
    """
    Analyzes the last `window_days` of responses and appends the result as a
    new snapshot. Nothing is stored when there are no responses.
    """
    SurveyRepository(db).get_owned_survey(survey_id, owner_id)
    now = now or datetime.now(timezone.utc)

    responses, customers = load_window(db, survey_id, now - timedelta(days=window_days))
    logger.info("Loaded %d responses and %d customers for survey %s", len(responses), len(customers), survey_id)
    if not responses:
        return GeneratedStatistics(snapshot=None, analysis=None)

    analysis = insights.analyze(responses, customers, now=now)
    segments = analysis["customer_segments"]
    total_customers = insights.count_submissions(responses)

    snapshot = AiStatistic(
        survey_id=survey_id,
        user_id=owner_id,
        analysis_date=now,
        total_responses=total_customers,
        average_rating=insights.average_rating(responses),
        main_customer_age_group=segments[0]["age_group"] if segments else insights.UNKNOWN,
        main_customer_gender=segments[0]["gender"] if segments else insights.UNKNOWN,
        top_pros=analysis["strength_areas"],
        top_cons=analysis["weakness_areas"],
        summary=insights.build_summary(
            analysis["nps"],
            analysis["csat"],
            analysis["loyalty_index"],
            segments,
            analysis["visit_frequency_analysis"],
            {k: analysis[k] for k in ("satisfaction_trend", "growth_potential")},
            total_customers,
            responses,
        ),
        statistics=analysis,
        recommendations=(
            "Priorities: " + ", ".join(analysis["improvement_priorities"])
            + ". Recommendations: " + ", ".join(analysis["strategic_recommendations"])
        ),
    )
    return GeneratedStatistics(snapshot=save_snapshot(db, snapshot), analysis=analysis)
