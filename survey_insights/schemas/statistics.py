# survey_insights/schemas/statistics.py
from __future__ import annotations

from datetime import datetime
from typing import Any, List, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from survey_insights.schemas.surveys import SurveyOut


class AiStatisticOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    survey_id: UUID
    analysis_date: datetime
    total_responses: int
    average_rating: Optional[float] = None
    main_customer_age_group: Optional[str] = None
    main_customer_gender: Optional[str] = None
    top_pros: Optional[List[str]] = None
    top_cons: Optional[List[str]] = None
    summary: Optional[str] = None
    statistics: Optional[dict[str, Any]] = None
    recommendations: Optional[str] = None


class StatisticsListOut(BaseModel):
    success: bool = True
    statistics: List[AiStatisticOut] = Field(default_factory=list)


class GeneratedStatisticsOut(BaseModel):
    success: bool = True
    statistics: List[AiStatisticOut] = Field(default_factory=list)
    live_analysis: Optional[dict[str, Any]] = None
    message: Optional[str] = None


# ---------- LLM structured output ----------

class KeyStats(BaseModel):
    average_rating: Optional[float] = None
    main_customer_age_group: Optional[str] = None
    main_customer_gender: Optional[str] = None


class AiAnalysisReport(BaseModel):
    summary: str
    key_stats: KeyStats = Field(default_factory=KeyStats)
    top_pros: List[str] = Field(default_factory=list)
    top_cons: List[str] = Field(default_factory=list)
    recommendations: List[str] = Field(default_factory=list)


class DashboardOut(BaseModel):
    active_survey: Optional[SurveyOut] = None
    question_count: int = 0
    category_counts: dict[str, int] = Field(default_factory=dict)
    latest_statistic: Optional[AiStatisticOut] = None
