"""Initial valuation schema: companies, assessment, tasks, multiples, snapshots, drift

Revision ID: 3f9a61c2d8e4
Revises:
Create Date: 2026-10-19 09:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '3f9a61c2d8e4'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Upgrade schema."""
    op.create_table('companies',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('name', sa.Text(), nullable=False),
        sa.Column('icb_industry', sa.Text(), nullable=True),
        sa.Column('icb_super_sector', sa.Text(), nullable=True),
        sa.Column('icb_sector', sa.Text(), nullable=True),
        sa.Column('icb_sub_sector', sa.Text(), nullable=True),
        sa.Column('revenue_size_category', sa.Text(), nullable=True),
        sa.Column('revenue_model', sa.Text(), nullable=True),
        sa.Column('gross_margin_proxy', sa.Text(), nullable=True),
        sa.Column('labor_intensity', sa.Text(), nullable=True),
        sa.Column('asset_intensity', sa.Text(), nullable=True),
        sa.Column('owner_involvement', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=True),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_companies_icb_industry', 'companies', ['icb_industry'])
    op.create_index('ix_companies_icb_super_sector', 'companies', ['icb_super_sector'])
    op.create_index('ix_companies_icb_sector', 'companies', ['icb_sector'])
    op.create_index('ix_companies_icb_sub_sector', 'companies', ['icb_sub_sector'])

    op.create_table('questions',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('bri_category', sa.Text(), nullable=False),
        sa.Column('question_text', sa.Text(), nullable=False),
        sa.Column('max_impact_points', sa.Numeric(8, 2), nullable=False),
        sa.Column('display_order', sa.Integer(), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=True),
        sa.CheckConstraint('max_impact_points > 0', name='ck_question_points_positive'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_questions_bri_category', 'questions', ['bri_category'])

    op.create_table('question_options',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('question_id', sa.Integer(), nullable=False),
        sa.Column('option_text', sa.Text(), nullable=False),
        sa.Column('score_value', sa.Numeric(5, 4), nullable=False),
        sa.Column('display_order', sa.Integer(), nullable=True),
        sa.CheckConstraint('score_value >= 0 AND score_value <= 1', name='ck_option_score_range'),
        sa.ForeignKeyConstraint(['question_id'], ['questions.id']),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_question_options_question_id', 'question_options', ['question_id'])

    op.create_table('assessment_responses',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('company_id', sa.Integer(), nullable=False),
        sa.Column('question_id', sa.Integer(), nullable=False),
        sa.Column('selected_option_id', sa.Integer(), nullable=False),
        sa.Column('effective_option_id', sa.Integer(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=True),
        sa.Column('updated_at', sa.DateTime(), nullable=True),
        sa.ForeignKeyConstraint(['company_id'], ['companies.id']),
        sa.ForeignKeyConstraint(['question_id'], ['questions.id']),
        sa.ForeignKeyConstraint(['selected_option_id'], ['question_options.id']),
        sa.ForeignKeyConstraint(['effective_option_id'], ['question_options.id']),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_assessment_responses_company_question', 'assessment_responses',
                    ['company_id', 'question_id'])

    op.create_table('task_templates',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('question_id', sa.Integer(), nullable=False),
        sa.Column('upgrades_from_option_id', sa.Integer(), nullable=False),
        sa.Column('upgrades_to_option_id', sa.Integer(), nullable=False),
        sa.Column('title', sa.Text(), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('bri_category', sa.Text(), nullable=True),
        sa.Column('raw_impact', sa.Numeric(16, 2), nullable=False),
        sa.ForeignKeyConstraint(['question_id'], ['questions.id']),
        sa.ForeignKeyConstraint(['upgrades_from_option_id'], ['question_options.id']),
        sa.ForeignKeyConstraint(['upgrades_to_option_id'], ['question_options.id']),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('question_id', 'upgrades_from_option_id', 'upgrades_to_option_id',
                            name='uq_task_template_upgrade'),
    )
    op.create_index('ix_task_templates_question_id', 'task_templates', ['question_id'])

    op.create_table('tasks',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('company_id', sa.Integer(), nullable=False),
        sa.Column('title', sa.Text(), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('bri_category', sa.Text(), nullable=True),
        sa.Column('status', sa.Text(), nullable=False),
        sa.Column('raw_impact', sa.Numeric(16, 2), nullable=False),
        sa.Column('normalized_value', sa.Numeric(8, 6), nullable=False),
        sa.Column('linked_question_id', sa.Integer(), nullable=True),
        sa.Column('upgrades_from_option_id', sa.Integer(), nullable=True),
        sa.Column('upgrades_to_option_id', sa.Integer(), nullable=True),
        sa.Column('template_id', sa.Integer(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=True),
        sa.Column('completed_at', sa.DateTime(), nullable=True),
        sa.ForeignKeyConstraint(['company_id'], ['companies.id']),
        sa.ForeignKeyConstraint(['linked_question_id'], ['questions.id']),
        sa.ForeignKeyConstraint(['upgrades_from_option_id'], ['question_options.id']),
        sa.ForeignKeyConstraint(['upgrades_to_option_id'], ['question_options.id']),
        sa.ForeignKeyConstraint(['template_id'], ['task_templates.id']),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_tasks_company_id', 'tasks', ['company_id'])

    op.create_table('industry_multiples',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('icb_industry', sa.Text(), nullable=False),
        sa.Column('icb_super_sector', sa.Text(), nullable=False),
        sa.Column('icb_sector', sa.Text(), nullable=False),
        sa.Column('icb_sub_sector', sa.Text(), nullable=False),
        sa.Column('effective_date', sa.Date(), nullable=False),
        sa.Column('ebitda_multiple_low', sa.Numeric(8, 4), nullable=False),
        sa.Column('ebitda_multiple_high', sa.Numeric(8, 4), nullable=False),
        sa.Column('revenue_multiple_low', sa.Numeric(8, 4), nullable=False),
        sa.Column('revenue_multiple_high', sa.Numeric(8, 4), nullable=False),
        sa.Column('source', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=True),
        sa.CheckConstraint('ebitda_multiple_low <= ebitda_multiple_high', name='ck_ebitda_low_le_high'),
        sa.CheckConstraint('revenue_multiple_low <= revenue_multiple_high', name='ck_revenue_low_le_high'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_industry_multiples_icb_industry', 'industry_multiples', ['icb_industry'])
    op.create_index('ix_industry_multiples_icb_super_sector', 'industry_multiples', ['icb_super_sector'])
    op.create_index('ix_industry_multiples_icb_sector', 'industry_multiples', ['icb_sector'])
    op.create_index('ix_industry_multiples_icb_sub_sector', 'industry_multiples', ['icb_sub_sector'])

    op.create_table('financial_periods',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('company_id', sa.Integer(), nullable=False),
        sa.Column('period_end', sa.Date(), nullable=False),
        sa.Column('annual_revenue', sa.Numeric(16, 2), nullable=True),
        sa.Column('adjusted_ebitda', sa.Numeric(16, 2), nullable=True),
        sa.Column('free_cash_flow', sa.Numeric(16, 2), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=True),
        sa.ForeignKeyConstraint(['company_id'], ['companies.id']),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_financial_periods_company_id', 'financial_periods', ['company_id'])

    op.create_table('valuation_snapshots',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('company_id', sa.Integer(), nullable=False),
        sa.Column('adjusted_ebitda', sa.Numeric(16, 2), nullable=False),
        sa.Column('ebitda_is_estimated', sa.Boolean(), nullable=False),
        sa.Column('industry_multiple_id', sa.Integer(), nullable=True),
        sa.Column('industry_multiple_low', sa.Numeric(8, 4), nullable=False),
        sa.Column('industry_multiple_high', sa.Numeric(8, 4), nullable=False),
        sa.Column('multiple_match_level', sa.Text(), nullable=True),
        sa.Column('core_score', sa.Numeric(6, 2), nullable=False),
        sa.Column('bri_score', sa.Numeric(6, 4), nullable=False),
        sa.Column('financial_score', sa.Numeric(6, 4), nullable=True),
        sa.Column('transferability_score', sa.Numeric(6, 4), nullable=True),
        sa.Column('operational_score', sa.Numeric(6, 4), nullable=True),
        sa.Column('market_score', sa.Numeric(6, 4), nullable=True),
        sa.Column('legal_tax_score', sa.Numeric(6, 4), nullable=True),
        sa.Column('personal_score', sa.Numeric(6, 4), nullable=True),
        sa.Column('alpha_constant', sa.Numeric(6, 4), nullable=False),
        sa.Column('discount_fraction', sa.Numeric(8, 6), nullable=False),
        sa.Column('base_multiple', sa.Numeric(8, 4), nullable=False),
        sa.Column('final_multiple', sa.Numeric(8, 4), nullable=False),
        sa.Column('current_value', sa.Numeric(16, 2), nullable=False),
        sa.Column('potential_value', sa.Numeric(16, 2), nullable=False),
        sa.Column('value_gap', sa.Numeric(16, 2), nullable=False),
        sa.Column('snapshot_reason', sa.Text(), nullable=True),
        sa.Column('created_by_user_id', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(['company_id'], ['companies.id']),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_valuation_snapshots_company_created', 'valuation_snapshots',
                    ['company_id', 'created_at'])

    op.create_table('drift_reports',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('company_id', sa.Integer(), nullable=False),
        sa.Column('period_start', sa.DateTime(), nullable=False),
        sa.Column('period_end', sa.DateTime(), nullable=False),
        sa.Column('start_snapshot_id', sa.Integer(), nullable=True),
        sa.Column('end_snapshot_id', sa.Integer(), nullable=True),
        sa.Column('bri_score_start', sa.Numeric(6, 4), nullable=True),
        sa.Column('bri_score_end', sa.Numeric(6, 4), nullable=True),
        sa.Column('valuation_start', sa.Numeric(16, 2), nullable=True),
        sa.Column('valuation_end', sa.Numeric(16, 2), nullable=True),
        sa.Column('bri_delta', sa.Numeric(7, 2), nullable=False),
        sa.Column('valuation_delta', sa.Numeric(16, 2), nullable=False),
        sa.Column('category_changes', sa.JSON(), nullable=True),
        sa.Column('overall_direction', sa.Text(), nullable=False),
        sa.Column('severity', sa.Text(), nullable=False),
        sa.Column('summary', sa.Text(), nullable=True),
        sa.Column('signals_count', sa.Integer(), nullable=True),
        sa.Column('tasks_completed_count', sa.Integer(), nullable=True),
        sa.Column('tasks_added_count', sa.Integer(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=True),
        sa.Column('viewed_at', sa.DateTime(), nullable=True),
        sa.ForeignKeyConstraint(['company_id'], ['companies.id']),
        sa.ForeignKeyConstraint(['start_snapshot_id'], ['valuation_snapshots.id']),
        sa.ForeignKeyConstraint(['end_snapshot_id'], ['valuation_snapshots.id']),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_drift_reports_company_id', 'drift_reports', ['company_id'])

    op.create_table('signals',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('company_id', sa.Integer(), nullable=False),
        sa.Column('signal_type', sa.Text(), nullable=False),
        sa.Column('severity', sa.Text(), nullable=False),
        sa.Column('title', sa.Text(), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('data', sa.JSON(), nullable=True),
        sa.Column('drift_report_id', sa.Integer(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=True),
        sa.ForeignKeyConstraint(['company_id'], ['companies.id']),
        sa.ForeignKeyConstraint(['drift_report_id'], ['drift_reports.id']),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_signals_company_id', 'signals', ['company_id'])


def downgrade() -> None:
    """Downgrade schema."""
    op.drop_table('signals')
    op.drop_table('drift_reports')
    op.drop_table('valuation_snapshots')
    op.drop_table('financial_periods')
    op.drop_table('industry_multiples')
    op.drop_table('tasks')
    op.drop_table('task_templates')
    op.drop_table('assessment_responses')
    op.drop_table('question_options')
    op.drop_table('questions')
    op.drop_table('companies')
