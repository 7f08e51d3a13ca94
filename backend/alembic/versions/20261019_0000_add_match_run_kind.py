"""
Add run_kind to matches so teacher runs and job runs keep separate results

Revision ID: 20261019_0000
Revises: 20261018_0000
Create Date: 2026-10-19 00:00:00.000000+00:00
"""
from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = '20261019_0000'
down_revision = '20261018_0000'
branch_labels = None
depends_on = None


def upgrade():
    # Existing rows were written by teacher runs; job runs recreate theirs on the next run
    with op.batch_alter_table('matches') as batch_op:
        batch_op.add_column(
            sa.Column('run_kind', sa.String(length=16), nullable=False, server_default='teacher')
        )
        batch_op.drop_index('idx_matches_teacher')
        batch_op.drop_index('idx_matches_job')
        batch_op.create_index('idx_matches_teacher', ['teacher_id', 'run_kind', 'match_score'], unique=False)
        batch_op.create_index('idx_matches_job', ['job_id', 'run_kind', 'match_score'], unique=False)


def downgrade():
    op.execute("DELETE FROM matches WHERE run_kind = 'job'")
    with op.batch_alter_table('matches') as batch_op:
        batch_op.drop_index('idx_matches_job')
        batch_op.drop_index('idx_matches_teacher')
        batch_op.create_index('idx_matches_teacher', ['teacher_id', 'match_score'], unique=False)
        batch_op.create_index('idx_matches_job', ['job_id', 'match_score'], unique=False)
        batch_op.drop_column('run_kind')
