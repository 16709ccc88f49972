# survey_insights/db/base_class.py
from sqlalchemy.orm import DeclarativeBase

class Base(DeclarativeBase):
    """Common declarative base for every SQLAlchemy model."""
    pass
