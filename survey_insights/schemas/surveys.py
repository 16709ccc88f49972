# survey_insights/schemas/surveys.py
from __future__ import annotations

from datetime import datetime
from typing import Any, List, Literal, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, model_validator

QuestionType = Literal["rating", "multiple_choice", "text"]


# ---------- Inputs ----------

class QuestionIn(BaseModel):
    question_text: str = Field(min_length=1)
    question_type: QuestionType
    options: Optional[dict[str, Any]] = None
    order_num: int = Field(ge=1)
    # link to a required question, by id or by category
    required_question_id: Optional[UUID] = None
    required_question_category: Optional[str] = None

    @model_validator(mode="after")
    def one_link_only(self):
        if self.required_question_id and self.required_question_category:
            raise ValueError("Use required_question_id or required_question_category, not both")
        return self


class SurveyCreateIn(BaseModel):
    title: str = Field(min_length=1)
    description: Optional[str] = None
    questions: List[QuestionIn] = Field(default_factory=list)
    activate: bool = False


class SurveyActiveIn(BaseModel):
    is_active: bool


# ---------- Outputs ----------

class RequiredQuestionOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    category: str
    question_text: str
    question_type: str
    choices: Optional[dict[str, str]] = None


class QuestionOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    survey_id: UUID
    question_text: str
    question_type: str
    options: Optional[dict[str, Any]] = None
    order_num: int
    required_question_id: Optional[UUID] = None
    required_question: Optional[RequiredQuestionOut] = None


class SurveyOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    user_id: UUID
    title: str
    description: Optional[str] = None
    is_active: bool
    created_at: Optional[datetime] = None


class SurveyWithQuestionsOut(SurveyOut):
    questions: List[QuestionOut] = Field(default_factory=list)


# ---------- AI survey drafts ----------

class SurveyGenerateIn(BaseModel):
    description: str = Field(min_length=1)


class GeneratedQuestion(BaseModel):
    """One question as the model writes it; the type is normalized afterwards."""
    question_text: str = Field(min_length=1)
    question_type: str
    choices_text: Optional[List[str]] = None


class GeneratedSurvey(BaseModel):
    title: str = Field(min_length=1)
    description: str = Field(min_length=1)
    questions: List[GeneratedQuestion] = Field(min_length=1)


class GeneratedSurveyOut(BaseModel):
    success: bool = True
    # ready to POST to /surveys once the owner has reviewed it
    survey: SurveyCreateIn
