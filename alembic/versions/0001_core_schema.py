from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

revision = '0001_core_schema'
down_revision = None
branch_labels = None
depends_on = None

UUID = postgresql.UUID(as_uuid=True)


def upgrade():
    op.create_table(
        'surveys',
        sa.Column('id', UUID, primary_key=True, server_default=sa.text('gen_random_uuid()')),
        sa.Column('user_id', UUID, nullable=False),
        sa.Column('title', sa.String(), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.text('false')),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.text('now()')),
    )
    op.create_index('ix_surveys_user_id', 'surveys', ['user_id'])

    op.create_table(
        'required_questions',
        sa.Column('id', UUID, primary_key=True, server_default=sa.text('gen_random_uuid()')),
        sa.Column('category', sa.String(), nullable=False),
        sa.Column('question_text', sa.Text(), nullable=False),
        sa.Column('question_type', sa.String(), nullable=False, server_default='multiple_choice'),
        sa.Column('choices', postgresql.JSONB(), nullable=True),
    )
    op.create_index('ix_required_questions_category', 'required_questions', ['category'], unique=True)

    op.create_table(
        'questions',
        sa.Column('id', UUID, primary_key=True, server_default=sa.text('gen_random_uuid()')),
        sa.Column('survey_id', UUID, sa.ForeignKey('surveys.id', ondelete='CASCADE'), nullable=False),
        sa.Column('question_text', sa.Text(), nullable=False),
        sa.Column('question_type', sa.String(), nullable=False),
        sa.Column('options', postgresql.JSONB(), nullable=True),
        sa.Column('order_num', sa.Integer(), nullable=False),
        sa.Column('required_question_id', UUID, sa.ForeignKey('required_questions.id'), nullable=True),
        sa.UniqueConstraint('survey_id', 'order_num', name='uq_question_order_per_survey'),
    )
    op.create_index('ix_questions_survey_id', 'questions', ['survey_id'])
    op.create_index('ix_questions_required_question_id', 'questions', ['required_question_id'])

    op.create_table(
        'customer_info',
        sa.Column('id', UUID, primary_key=True, server_default=sa.text('gen_random_uuid()')),
        sa.Column('survey_id', UUID, nullable=True),
        sa.Column('name', sa.String(), nullable=True),
        sa.Column('age_group', sa.String(), nullable=True),
        sa.Column('gender', sa.String(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.text('now()')),
    )
    op.create_index('ix_customer_info_survey_id', 'customer_info', ['survey_id'])

    op.create_table(
        'responses',
        sa.Column('id', UUID, primary_key=True, server_default=sa.text('gen_random_uuid()')),
        sa.Column('survey_id', UUID, sa.ForeignKey('surveys.id', ondelete='CASCADE'), nullable=False),
        sa.Column('question_id', UUID, sa.ForeignKey('questions.id', ondelete='CASCADE'), nullable=False),
        sa.Column('customer_info_id', UUID, nullable=True),
        sa.Column('rating', sa.Integer(), nullable=True),
        sa.Column('selected_option', sa.String(), nullable=True),
        sa.Column('response_text', sa.Text(), nullable=True),
        sa.Column('required_question_category', sa.String(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.text('now()')),
    )
    op.create_index('ix_responses_survey_id', 'responses', ['survey_id'])
    op.create_index('ix_responses_question_id', 'responses', ['question_id'])
    op.create_index('ix_responses_customer_info_id', 'responses', ['customer_info_id'])
    op.create_index('ix_responses_required_question_category', 'responses', ['required_question_category'])
    op.create_index('ix_responses_created_at', 'responses', ['created_at'])

    op.create_table(
        'ai_statistics',
        sa.Column('id', UUID, primary_key=True, server_default=sa.text('gen_random_uuid()')),
        sa.Column('survey_id', UUID, sa.ForeignKey('surveys.id', ondelete='CASCADE'), nullable=False),
        sa.Column('user_id', UUID, nullable=False),
        sa.Column('analysis_date', sa.DateTime(timezone=True), nullable=False),
        sa.Column('total_responses', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('average_rating', sa.Float(), nullable=True),
        sa.Column('main_customer_age_group', sa.String(), nullable=True),
        sa.Column('main_customer_gender', sa.String(), nullable=True),
        sa.Column('top_pros', postgresql.JSONB(), nullable=True),
        sa.Column('top_cons', postgresql.JSONB(), nullable=True),
        sa.Column('summary', sa.Text(), nullable=True),
        sa.Column('statistics', postgresql.JSONB(), nullable=True),
        sa.Column('recommendations', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.text('now()')),
    )
    op.create_index('ix_ai_statistics_survey_id', 'ai_statistics', ['survey_id'])
    op.create_index('ix_ai_statistics_user_id', 'ai_statistics', ['user_id'])
    op.create_index('ix_ai_statistics_analysis_date', 'ai_statistics', ['analysis_date'])


def downgrade():
    op.drop_table('ai_statistics')
    op.drop_table('responses')
    op.drop_table('customer_info')
    op.drop_table('questions')
    op.drop_table('required_questions')
    op.drop_table('surveys')
