# survey_insights/repositories/surveys.py
from __future__ import annotations

from typing import Iterable, List, Optional
from uuid import UUID

from sqlalchemy.orm import Session, joinedload

from survey_insights.core.errors import AmbiguousState, NotFound, NotFoundOrForbidden, ValidationError
from survey_insights.core.logging import get_logger
from survey_insights.db.session import read_with_retry, store_call
from survey_insights.models.survey import Question, RequiredQuestion, Survey
from survey_insights.schemas.surveys import QuestionIn

logger = get_logger(__name__)


class SurveyRepository:
    """
    Read/write access to surveys, their ordered questions and the required
    question catalog.
    """

    def __init__(self, db: Session, read_attempts: int = 2):
        self.db = db
        self.read_attempts = read_attempts

    def _read(self, what: str, fn):
        return read_with_retry(self.db, what, fn, attempts=self.read_attempts)

    # -------------------- surveys -------------------- #

    def get_active_survey(self, owner_id: UUID) -> Survey:
        rows = self._read(
            "load the active survey",
            lambda: (
                self.db.query(Survey)
                .filter(Survey.user_id == owner_id, Survey.is_active.is_(True))
                .limit(2)
                .all()
            ),
        )
        if not rows:
            raise NotFound("No active survey for this owner")
        if len(rows) > 1:
            logger.error("Owner %s has more than one active survey", owner_id)
            raise AmbiguousState(
                "More than one active survey for this owner",
                details={"survey_ids": [str(s.id) for s in rows]},
            )
        return rows[0]

    def get_survey(self, survey_id: UUID) -> Survey:
        s = self._read("load the survey", lambda: self.db.get(Survey, survey_id))
        if not s:
            raise NotFound("Survey not found")
        return s

    def get_owned_survey(self, survey_id: UUID, owner_id: UUID) -> Survey:
        """
        Survey matching both id and owner. A missing survey and one owned by
        someone else fail the same way.
        """
        rows = self._read(
            "check survey ownership",
            lambda: (
                self.db.query(Survey)
                .filter(Survey.id == survey_id, Survey.user_id == owner_id)
                .all()
            ),
        )
        if not rows:
            raise NotFoundOrForbidden("Survey not found")
        return rows[0]

    def list_surveys(self, owner_id: UUID) -> List[Survey]:
        return self._read(
            "list surveys",
            lambda: (
                self.db.query(Survey)
                .filter(Survey.user_id == owner_id)
                .order_by(Survey.created_at.desc())
                .all()
            ),
        )

    def create_survey(
        self,
        owner_id: UUID,
        title: str,
        description: Optional[str] = None,
        questions: Iterable[QuestionIn] = (),
        activate: bool = False,
    ) -> Survey:
        questions = list(questions)
        orders = [q.order_num for q in questions]
        if len(orders) != len(set(orders)):
            raise ValidationError("order_num values must be unique within a survey")

        survey = Survey(user_id=owner_id, title=title, description=description, is_active=False)
        for q in sorted(questions, key=lambda q: q.order_num):
            rq_id = q.required_question_id
            if q.required_question_category:
                rq_id = self.get_required_question_by_category(q.required_question_category).id
            elif rq_id is not None:
                self.get_required_question(rq_id)
            survey.questions.append(
                Question(
                    question_text=q.question_text,
                    question_type=q.question_type,
                    options=q.options,
                    order_num=q.order_num,
                    required_question_id=rq_id,
                )
            )

        with store_call(self.db, "create the survey"):
            self.db.add(survey)
            self.db.flush()
            if activate:
                self._deactivate_others(owner_id, survey.id)
                survey.is_active = True
            self.db.commit()
            self.db.refresh(survey)
        logger.info("Survey %s created for owner %s (%d questions)", survey.id, owner_id, len(questions))
        return survey

    def set_active(self, survey_id: UUID, owner_id: UUID, active: bool) -> Survey:
        """
        Toggles a survey. Activating one deactivates every other survey of the
        same owner in the same transaction.
        """
        survey = self.get_owned_survey(survey_id, owner_id)
        with store_call(self.db, "toggle the survey"):
            if active:
                self._deactivate_others(owner_id, survey.id)
            survey.is_active = active
            self.db.commit()
            self.db.refresh(survey)
        return survey

    def _deactivate_others(self, owner_id: UUID, keep_id: UUID) -> int:
        return (
            self.db.query(Survey)
            .filter(Survey.user_id == owner_id, Survey.id != keep_id, Survey.is_active.is_(True))
            .update({Survey.is_active: False}, synchronize_session=False)
        )

    # -------------------- questions -------------------- #

    def get_questions(self, survey_id: UUID) -> List[Question]:
        """Questions of a survey by ascending order_num, each with its required question resolved."""
        return self._read(
            "list questions",
            lambda: (
                self.db.query(Question)
                .options(joinedload(Question.required_question))
                .filter(Question.survey_id == survey_id)
                .order_by(Question.order_num.asc())
                .all()
            ),
        )

    def get_question(self, question_id: UUID) -> Question:
        q = self._read("load the question", lambda: self.db.get(Question, question_id))
        if not q:
            raise NotFound("Question not found", details={"question_id": str(question_id)})
        return q

    # -------------------- required questions -------------------- #

    def list_required_questions(self) -> List[RequiredQuestion]:
        return self._read(
            "list required questions",
            lambda: self.db.query(RequiredQuestion).order_by(RequiredQuestion.category.asc()).all(),
        )

    def get_required_question(self, required_question_id: UUID) -> RequiredQuestion:
        rq = self._read(
            "load the required question",
            lambda: self.db.get(RequiredQuestion, required_question_id),
        )
        if not rq:
            raise NotFound(
                "Required question not found",
                details={"required_question_id": str(required_question_id)},
            )
        return rq

    def get_required_question_by_category(self, category: str) -> RequiredQuestion:
        rq = self._read(
            "load the required question",
            lambda: (
                self.db.query(RequiredQuestion)
                .filter(RequiredQuestion.category == category)
                .first()
            ),
        )
        if not rq:
            raise NotFound("Required question not found", details={"category": category})
        return rq
