# alembic/versions/0002_response_selected_options.py
from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

revision = "0002_response_selected_options"
down_revision = "0001_core_schema"
branch_labels = None
depends_on = None


def upgrade():
    # every key of a multi-select answer; selected_option keeps the first one
    op.add_column('responses', sa.Column('selected_options', postgresql.JSONB(), nullable=True))


def downgrade():
    op.drop_column('responses', 'selected_options')
