# survey_insights/models/survey.py
import uuid
from sqlalchemy import (
    Column, String, Text, Integer, Boolean, ForeignKey, DateTime, UniqueConstraint, Uuid, func
)
from sqlalchemy.orm import relationship

from survey_insights.db.base_class import Base
from survey_insights.models.types import JSONType

QUESTION_TYPES = ("rating", "multiple_choice", "text")


class Survey(Base):
    __tablename__ = "surveys"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    user_id = Column(Uuid(as_uuid=True), nullable=False, index=True)  # owner
    title = Column(String, nullable=False)
    description = Column(Text, nullable=True)
    # at most one active survey per owner; kept by SurveyRepository.set_active
    is_active = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    questions = relationship(
        "Question",
        back_populates="survey",
        order_by="Question.order_num",
        cascade="all, delete-orphan",
    )


class RequiredQuestion(Base):
    __tablename__ = "required_questions"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    category = Column(String, unique=True, nullable=False, index=True)  # visit_frequency, recommendation...
    question_text = Column(Text, nullable=False)
    question_type = Column(String, nullable=False, default="multiple_choice")
    choices = Column(JSONType, nullable=True)  # {"choice_1": "First visit", ...}


class Question(Base):
    __tablename__ = "questions"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    survey_id = Column(Uuid(as_uuid=True), ForeignKey("surveys.id", ondelete="CASCADE"), nullable=False, index=True)
    question_text = Column(Text, nullable=False)
    question_type = Column(String, nullable=False)  # rating | multiple_choice | text
    options = Column(JSONType, nullable=True)  # {"choices_text": [...]}
    order_num = Column(Integer, nullable=False)
    required_question_id = Column(
        Uuid(as_uuid=True), ForeignKey("required_questions.id"), nullable=True, index=True
    )

    __table_args__ = (
        UniqueConstraint("survey_id", "order_num", name="uq_question_order_per_survey"),
    )

    survey = relationship("Survey", back_populates="questions")
    required_question = relationship("RequiredQuestion")
