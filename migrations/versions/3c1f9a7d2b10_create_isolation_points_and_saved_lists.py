"""Create isolation_points and saved_lists

Revision ID: 3c1f9a7d2b10
Revises:
Create Date: 2026-10-19 09:12:41.318204

"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '3c1f9a7d2b10'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    # --- 1. Catalog ---
    op.create_table('isolation_points',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('kks', sa.String(length=64), nullable=False),
        sa.Column('unit', sa.String(length=64), nullable=False),
        sa.Column('description', sa.Text(), nullable=False),
        sa.Column('type', sa.String(length=32), nullable=False),
        sa.Column('panel_kks', sa.String(length=64), nullable=True),
        sa.Column('load_kks', sa.String(length=64), nullable=True),
        sa.Column('isolation_method', sa.String(length=100), nullable=False),
        sa.Column('normal_position', sa.String(length=50), nullable=False),
        sa.Column('isolation_position', sa.String(length=50), nullable=True),
        sa.Column('special_instructions', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('kks')
    )

    # --- 2. Saved procedures ---
    op.create_table('saved_lists',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(length=200), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('isolation_point_ids', sa.JSON(), nullable=False),
        sa.Column('jsa_number', sa.String(length=100), nullable=True),
        sa.Column('work_order', sa.String(length=100), nullable=True),
        sa.Column('job_description', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint('id')
    )


def downgrade():
    op.drop_table('saved_lists')
    op.drop_table('isolation_points')
