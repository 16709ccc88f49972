# survey_insights/schemas/responses.py
from __future__ import annotations

from typing import List, Optional, Union
from uuid import UUID

from pydantic import BaseModel, Field


class AnswerIn(BaseModel):
    question_id: UUID
    # rating -> int 1..5, multiple_choice -> "choice_N" or a list of keys,
    # text -> free text
    value: Union[int, str, List[str]]


class CustomerIn(BaseModel):
    name: Optional[str] = None
    age_group: Optional[str] = None
    gender: Optional[str] = None


class SubmitResponsesIn(BaseModel):
    answers: List[AnswerIn] = Field(min_length=1)
    customer: Optional[CustomerIn] = None


class SubmitResponsesOut(BaseModel):
    success: bool = True
    survey_id: UUID
    response_ids: List[UUID]
    customer_info_id: Optional[UUID] = None


class CategoryCountsOut(BaseModel):
    survey_id: UUID
    total: int
    counts: dict[str, int]
