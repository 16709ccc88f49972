# survey_insights/models/ai_statistic.py
import uuid
from sqlalchemy import Column, String, Text, Integer, Float, ForeignKey, DateTime, Uuid, func

from survey_insights.db.base_class import Base
from survey_insights.models.types import JSONType


class AiStatistic(Base):
    """Append-only snapshot of a survey analysis."""
    __tablename__ = "ai_statistics"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    survey_id = Column(Uuid(as_uuid=True), ForeignKey("surveys.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = Column(Uuid(as_uuid=True), nullable=False, index=True)

    analysis_date = Column(DateTime(timezone=True), nullable=False, index=True)
    total_responses = Column(Integer, nullable=False, default=0)
    average_rating = Column(Float, nullable=True)
    main_customer_age_group = Column(String, nullable=True)
    main_customer_gender = Column(String, nullable=True)
    top_pros = Column(JSONType, nullable=True)
    top_cons = Column(JSONType, nullable=True)

    summary = Column(Text, nullable=True)
    statistics = Column(JSONType, nullable=True)
    recommendations = Column(Text, nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
