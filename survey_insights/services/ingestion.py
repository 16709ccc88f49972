# survey_insights/services/ingestion.py
from __future__ import annotations

import re
from collections import Counter
from dataclasses import dataclass, field
from typing import Iterable, List, Optional, Sequence
from uuid import UUID

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from survey_insights.core.errors import QueryError, ValidationError
from survey_insights.core.logging import get_logger
from survey_insights.db.session import read_with_retry
from survey_insights.models.response import CustomerInfo, Response
from survey_insights.models.survey import Question
from survey_insights.repositories.surveys import SurveyRepository
from survey_insights.schemas.responses import AnswerIn, CustomerIn

logger = get_logger(__name__)

NULL_CATEGORY = "null"
RATING_MIN, RATING_MAX = 1, 5
_CHOICE_RE = re.compile(r"^choice_(\d+)$")


@dataclass
class SubmissionResult:
    survey_id: UUID
    response_ids: List[UUID] = field(default_factory=list)
    customer_info_id: Optional[UUID] = None


# -------------------- helpers -------------------- #

def _option_keys(question: Question) -> Optional[set]:
    """Option keys a choice question accepts, or None when nothing constrains them."""
    choices = (question.options or {}).get("choices_text")
    if choices is not None:
        return {f"choice_{i}" for i in range(1, len(choices) + 1)}
    rq = question.required_question
    if rq is not None and rq.choices:
        return set(rq.choices)
    return None


def _check_option(question: Question, key, allowed: Optional[set]) -> str:
    if not isinstance(key, str) or not _CHOICE_RE.match(key):
        raise ValidationError(
            f"Question {question.id} expects an option key like 'choice_1'",
            details={"question_id": str(question.id)},
        )
    if allowed is not None and key not in allowed:
        raise ValidationError(
            f"Option {key} does not exist in question {question.id}",
            details={"question_id": str(question.id)},
        )
    return key

def _apply_value(question: Question, value, row: Response) -> None:
    """Puts the answer value in the column its question type uses."""
    qtype = (question.question_type or "").lower()
    if qtype == "rating":
        if isinstance(value, bool) or not isinstance(value, int):
            raise ValidationError(
                f"Question {question.id} expects an integer rating",
                details={"question_id": str(question.id)},
            )
        if not RATING_MIN <= value <= RATING_MAX:
            raise ValidationError(
                f"Invalid rating {value} for question {question.id}",
                details={"question_id": str(question.id)},
            )
        row.rating = value
    elif qtype == "multiple_choice":
        allowed = _option_keys(question)
        keys = value if isinstance(value, list) else [value]
        if not keys:
            raise ValidationError(
                f"No option selected for question {question.id}",
                details={"question_id": str(question.id)},
            )
        keys = [_check_option(question, k, allowed) for k in keys]
        if len(set(keys)) != len(keys):
            raise ValidationError(
                f"Option selected twice in question {question.id}",
                details={"question_id": str(question.id)},
            )
        # first key feeds the per-category metrics
        row.selected_option = keys[0]
        row.selected_options = keys
    elif qtype == "text":
        if not isinstance(value, str):
            raise ValidationError(
                f"Question {question.id} expects a text answer",
                details={"question_id": str(question.id)},
            )
        text = value.strip()
        if not text:
            raise ValidationError(
                f"Empty answer for question {question.id}",
                details={"question_id": str(question.id)},
            )
        row.response_text = text
    else:
        raise ValidationError(f"Unknown question type '{question.question_type}'")


def _resolve_category(repo: SurveyRepository, question: Question, cache: dict) -> Optional[str]:
    """Category of the required question linked to `question`, or None."""
    rq_id = question.required_question_id
    if rq_id is None:
        return None
    if rq_id not in cache:
        cache[rq_id] = repo.get_required_question(rq_id).category
    return cache[rq_id]


# -------------------- operations -------------------- #

def submit_responses(
    db: Session,
    survey_id: UUID,
    answers: Sequence[AnswerIn],
    customer: Optional[CustomerIn] = None,
    read_attempts: int = 2,
) -> SubmissionResult:
    """
    Stores one Response row per answer, stamping each with the category of
    the required question linked to its question.

    Everything is validated before the first write and the batch is written
    in a single transaction: either every row is stored or none is.
    """
    repo = SurveyRepository(db, read_attempts=read_attempts)
    repo.get_survey(survey_id)

    if not answers:
        raise ValidationError("At least one answer is required")

    questions = {q.id: q for q in repo.get_questions(survey_id)}
    seen: set[UUID] = set()
    categories: dict[UUID, str] = {}
    rows: list[Response] = []

    for a in answers:
        q = questions.get(a.question_id)
        if q is None:
            raise ValidationError(
                f"Question {a.question_id} does not belong to survey {survey_id}",
                details={"question_id": str(a.question_id)},
            )
        if a.question_id in seen:
            raise ValidationError(
                f"Question {a.question_id} answered more than once",
                details={"question_id": str(a.question_id)},
            )
        seen.add(a.question_id)

        row = Response(
            survey_id=survey_id,
            question_id=q.id,
            required_question_category=_resolve_category(repo, q, categories),
        )
        _apply_value(q, a.value, row)
        rows.append(row)

    result = SubmissionResult(survey_id=survey_id)
    index = -1
    try:
        if customer is not None:
            info = CustomerInfo(
                survey_id=survey_id,
                name=customer.name,
                age_group=customer.age_group,
                gender=customer.gender,
            )
            db.add(info)
            db.flush()
            result.customer_info_id = info.id

        for index, row in enumerate(rows):
            row.customer_info_id = result.customer_info_id
            db.add(row)
            db.flush()
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logger.error("Response batch for survey %s failed at row %d: %s", survey_id, index, e)
        raise QueryError(
            "Could not store the responses; nothing was saved",
            details={
                "failed_index": index,
                "succeeded": [],
                "failed": [str(r.question_id) for r in rows[max(index, 0):]],
                "cause": str(e),
            },
        ) from e

    result.response_ids = [r.id for r in rows]
    logger.info("Stored %d responses for survey %s", len(rows), survey_id)
    return result


def count_by_category(responses: Iterable) -> dict[str, int]:
    """
    Counts responses per required_question_category. Missing or empty
    categories are counted under "null".
    """
    counter: Counter = Counter()
    for r in responses:
        if isinstance(r, dict):
            category = r.get("required_question_category")
        else:
            category = getattr(r, "required_question_category", None)
        counter[category or NULL_CATEGORY] += 1
    return dict(counter)


def category_counts_for_survey(db: Session, survey_id: UUID, read_attempts: int = 2) -> dict[str, int]:
    rows = read_with_retry(
        db,
        "load response categories",
        lambda: (
            db.query(Response.required_question_category)
            .filter(Response.survey_id == survey_id)
            .all()
        ),
        attempts=read_attempts,
    )
    return count_by_category({"required_question_category": c} for (c,) in rows)
