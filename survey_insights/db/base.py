# survey_insights/db/base.py
from survey_insights.db.base_class import Base  # noqa: F401

# Import every module that defines tables so Base.metadata knows them
# (create_all and alembic autogenerate rely on it).
from survey_insights.models import survey  # noqa: F401
from survey_insights.models import response  # noqa: F401
from survey_insights.models import ai_statistic  # noqa: F401
