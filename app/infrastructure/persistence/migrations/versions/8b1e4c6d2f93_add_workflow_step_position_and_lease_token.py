"""add workflow_step position and workflow_run lease_token

Revision ID: 8b1e4c6d2f93
Revises: 3f9c2a7d1b80
Create Date: 2026-10-19

position orders the step log by execution, independent of clock resolution.
lease_token identifies the claim that owns a running run; writes from a
worker whose lease was taken over no longer match.
"""

from collections.abc import Sequence
from typing import Union

import sqlalchemy as sa
from alembic import op

revision: str = "8b1e4c6d2f93"
down_revision: Union[str, Sequence[str], None] = "3f9c2a7d1b80"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    with op.batch_alter_table("workflow_step") as batch:
        batch.add_column(
            sa.Column("position", sa.Integer(), nullable=False, server_default="0")
        )
    op.create_index(
        "ix_workflow_step_run_position",
        "workflow_step",
        ["run_id", "position"],
        unique=False,
    )
    with op.batch_alter_table("workflow_run") as batch:
        batch.add_column(sa.Column("lease_token", sa.String(64), nullable=True))


def downgrade() -> None:
    with op.batch_alter_table("workflow_run") as batch:
        batch.drop_column("lease_token")
    op.drop_index("ix_workflow_step_run_position", table_name="workflow_step")
    with op.batch_alter_table("workflow_step") as batch:
        batch.drop_column("position")
