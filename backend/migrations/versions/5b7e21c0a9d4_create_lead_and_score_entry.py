"""create lead and score_entry tables

Revision ID: 5b7e21c0a9d4
Revises:
Create Date: 2026-10-19 00:00:00

"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '5b7e21c0a9d4'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    bind = op.get_bind()
    insp = sa.inspect(bind)
    existing_tables = set(insp.get_table_names())

    if 'lead' not in existing_tables:
        op.create_table(
            'lead',
            sa.Column('id', sa.Integer(), primary_key=True),
            sa.Column('name', sa.String(length=128), nullable=False),
            sa.Column('phone', sa.String(length=32), nullable=False),
            sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        )
        op.create_index('ix_lead_phone', 'lead', ['phone'])

    if 'score_entry' not in existing_tables:
        op.create_table(
            'score_entry',
            sa.Column('id', sa.Integer(), primary_key=True),
            sa.Column('lead_id', sa.Integer(), sa.ForeignKey('lead.id'), nullable=True),
            sa.Column('name', sa.String(length=128), nullable=True),
            sa.Column('phone', sa.String(length=32), nullable=True),
            sa.Column('score', sa.Integer(), nullable=False),
            sa.Column('flips_count', sa.Integer(), nullable=False),
            sa.Column('elapsed_seconds', sa.Integer(), nullable=True),
            sa.Column('reason', sa.String(length=32), nullable=True),
            sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        )


def downgrade():
    bind = op.get_bind()
    insp = sa.inspect(bind)
    existing_tables = set(insp.get_table_names())
    if 'score_entry' in existing_tables:
        op.drop_table('score_entry')
    if 'lead' in existing_tables:
        op.drop_index('ix_lead_phone', table_name='lead')
        op.drop_table('lead')
