# survey_insights/services/ai_analysis.py
"""LLM-backed survey analysis over an OpenAI-compatible chat endpoint."""
from __future__ import annotations

import asyncio
from collections import defaultdict
from datetime import datetime, timezone
from typing import Any, Optional, Type, TypeVar
from uuid import UUID

from openai import AsyncOpenAI, OpenAIError
from pydantic import BaseModel, ValidationError as SchemaValidationError
from sqlalchemy.orm import Session

from survey_insights.core.errors import QueryError
from survey_insights.core.logging import get_logger
from survey_insights.db.session import read_with_retry
from survey_insights.models.ai_statistic import AiStatistic
from survey_insights.models.response import CustomerInfo, Response
from survey_insights.repositories.surveys import SurveyRepository
from survey_insights.schemas.statistics import AiAnalysisReport
from survey_insights.services.insights import count_submissions
from survey_insights.services.statistics import RESPONSE_LIMIT, save_snapshot

logger = get_logger(__name__)

SchemaT = TypeVar("SchemaT", bound=BaseModel)

SYSTEM_PROMPT = (
    "You are a restaurant customer-experience analyst. "
    "You read survey answers and write short, concrete findings for the owner."
)

ANALYSIS_PROMPT = """Survey: {title}
Description: {description}

Questions:
{questions}

Answers grouped by customer ({customer_count} customers):
{answers}

Return a JSON object with: summary (string), key_stats (average_rating on a 1-5 scale,
main_customer_age_group, main_customer_gender), top_pros (max 5), top_cons (max 5)
and recommendations (max 5)."""


def build_messages(survey, questions, grouped: dict) -> list[dict[str, str]]:
    q_lines = [f"{q.order_num}. {q.question_text} (type: {q.question_type})" for q in questions]
    a_lines = []
    for i, (customer, answers) in enumerate(grouped.values(), start=1):
        who = "anonymous"
        if customer is not None:
            who = f"{customer.age_group or '?'} / {customer.gender or '?'}"
        parts = [f"{text}: {value}" for text, value in answers]
        a_lines.append(f"- customer {i} ({who}): " + "; ".join(parts))

    return [
        {"role": "system", "content": SYSTEM_PROMPT},
        {
            "role": "user",
            "content": ANALYSIS_PROMPT.format(
                title=survey.title,
                description=survey.description or "-",
                questions="\n".join(q_lines),
                customer_count=len(grouped),
                answers="\n".join(a_lines),
            ),
        },
    ]


async def get_structured_output(
    client: AsyncOpenAI,
    model_name: str,
    messages: list,
    schema: Type[SchemaT],
    temperature: float = 0.0,
) -> SchemaT:
    """Chat completion constrained to `schema`'s JSON schema, validated into it."""
    completion = await client.chat.completions.create(
        model=model_name,
        messages=messages,
        response_format={
            "type": "json_schema",
            "json_schema": {
                "name": schema.__name__,
                "schema": schema.model_json_schema(),
            },
        },
        temperature=temperature,
    )
    content = completion.choices[0].message.content if completion.choices else None
    if not content:
        raise QueryError(f"Model {model_name!r} returned an empty completion")
    try:
        return schema.model_validate_json(content)
    except SchemaValidationError as e:
        raise QueryError(f"Model returned a malformed {schema.__name__}", details={"cause": str(e)}) from e


def _answer_value(r: Response):
    if r.rating is not None:
        return r.rating
    if r.selected_options and len(r.selected_options) > 1:
        return ", ".join(r.selected_options)
    return r.selected_option or r.response_text


def _load_answers(db: Session, survey_id: UUID, owner_id: UUID):
    """Survey, its questions, the newest responses and answers grouped per customer."""
    repo = SurveyRepository(db)
    survey = repo.get_owned_survey(survey_id, owner_id)
    questions = repo.get_questions(survey_id)
    q_text = {q.id: q.question_text for q in questions}

    responses = read_with_retry(
        db,
        "load responses",
        lambda: (
            db.query(Response)
            .filter(Response.survey_id == survey_id)
            .order_by(Response.created_at.desc())
            .limit(RESPONSE_LIMIT)
            .all()
        ),
    )
    if not responses:
        return survey, questions, responses, {}
    customers = {
        c.id: c
        for c in read_with_retry(
            db,
            "load customers",
            lambda: db.query(CustomerInfo).filter(CustomerInfo.survey_id == survey_id).all(),
        )
    }

    answers_by_customer: dict = defaultdict(list)
    for r in reversed(responses):
        answers_by_customer[r.customer_info_id].append((q_text.get(r.question_id, "?"), _answer_value(r)))
    grouped: dict[Any, tuple] = {
        cid: (customers.get(cid), answers) for cid, answers in answers_by_customer.items()
    }
    return survey, questions, responses, grouped


async def run_ai_analysis(
    db: Session,
    client: AsyncOpenAI,
    model_name: str,
    survey_id: UUID,
    owner_id: UUID,
    now: Optional[datetime] = None,
) -> Optional[AiStatistic]:
    """
    Sends the newest answers of the survey to the model and appends its
    report as a snapshot. Returns None when the survey has no answers yet.

    Store work runs in worker threads; only the model call awaits on the loop.
    """
    survey, questions, responses, grouped = await asyncio.to_thread(_load_answers, db, survey_id, owner_id)
    if not responses:
        return None

    messages = build_messages(survey, questions, grouped)
    logger.info("Requesting AI analysis for survey %s (%d customers)", survey_id, len(grouped))
    try:
        report = await get_structured_output(client, model_name, messages, AiAnalysisReport)
    except OpenAIError as e:
        logger.error("AI analysis request failed for survey %s: %s", survey_id, e)
        raise QueryError("AI analysis request failed", details={"cause": str(e)}) from e

    snapshot = AiStatistic(
        survey_id=survey_id,
        user_id=owner_id,
        analysis_date=now or datetime.now(timezone.utc),
        total_responses=count_submissions(responses),
        average_rating=report.key_stats.average_rating,
        main_customer_age_group=report.key_stats.main_customer_age_group,
        main_customer_gender=report.key_stats.main_customer_gender,
        top_pros=report.top_pros,
        top_cons=report.top_cons,
        summary=report.summary,
        statistics=report.model_dump(mode="json"),
        recommendations="\n".join(report.recommendations),
    )
    return await asyncio.to_thread(save_snapshot, db, snapshot)
