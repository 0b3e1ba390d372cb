"""post analysis columns

Revision ID: 8f3b2d6e1a57
Revises: 5c1e7a9d2b40
Create Date: 2026-10-19 16:40:12.902114

"""
from __future__ import annotations

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = "8f3b2d6e1a57"
down_revision: Union[str, Sequence[str], None] = "5c1e7a9d2b40"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Store the readability score and tone from a post analysis."""
    op.add_column("post", sa.Column("readability_score", sa.Float(), nullable=True))
    op.add_column("post", sa.Column("tone", sa.Text(), nullable=True))


def downgrade() -> None:
    with op.batch_alter_table("post") as batch_op:
        batch_op.drop_column("tone")
        batch_op.drop_column("readability_score")
