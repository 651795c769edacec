"""add course tags

Revision ID: 7d2e4b91c6a8
Revises: 3c1f9a7e5b20
Create Date: 2026-10-19 12:00:00.000000

"""

from collections.abc import Sequence

import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

from alembic import op

# revision identifiers, used by Alembic.
revision: str = "7d2e4b91c6a8"
down_revision: str | Sequence[str] | None = "3c1f9a7e5b20"
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    op.create_table(
        "course_tags",
        sa.Column(
            "course_id",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey("courses.id", ondelete="CASCADE"),
            primary_key=True,
        ),
        sa.Column("tag", sa.String(length=64), primary_key=True),
    )
    op.create_index("course_tags_tag_idx", "course_tags", ["tag"])


def downgrade() -> None:
    op.drop_index("course_tags_tag_idx", table_name="course_tags")
    op.drop_table("course_tags")
