# survey_insights/models/response.py
import uuid
from sqlalchemy import Column, String, Text, Integer, ForeignKey, DateTime, Uuid, func

from survey_insights.db.base_class import Base
from survey_insights.models.types import JSONType


class CustomerInfo(Base):
    __tablename__ = "customer_info"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    survey_id = Column(Uuid(as_uuid=True), nullable=True, index=True)
    name = Column(String, nullable=True)
    age_group = Column(String, nullable=True)  # "20대", "30대"...
    gender = Column(String, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)


class Response(Base):
    __tablename__ = "responses"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    survey_id = Column(Uuid(as_uuid=True), ForeignKey("surveys.id", ondelete="CASCADE"), nullable=False, index=True)
    question_id = Column(Uuid(as_uuid=True), ForeignKey("questions.id", ondelete="CASCADE"), nullable=False, index=True)
    # implicit link to customer_info, no FK in the store
    customer_info_id = Column(Uuid(as_uuid=True), nullable=True, index=True)

    rating = Column(Integer, nullable=True)           # rating questions
    selected_option = Column(String, nullable=True)   # "choice_N"
    selected_options = Column(JSONType, nullable=True)  # every key of a multi-select answer
    response_text = Column(Text, nullable=True)       # free text

    # copy of the linked required question category at answer time; NULL if none
    required_question_category = Column(String, nullable=True, index=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False, index=True)
