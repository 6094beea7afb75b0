"""Create users and organizations tables referenced by reports.

Revision ID: 001_create_owner_directories
Revises:
Create Date: 2025-10-08

"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

from exposure_store.models.types import GUID, UTCDateTime

# revision identifiers, used by Alembic.
revision: str = "001_create_owner_directories"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Create the owner directory tables."""
    op.create_table(
        "users",
        sa.Column("id", GUID(), primary_key=True),
        sa.Column("email", sa.String(255), nullable=True),
        sa.Column("created_at", UTCDateTime(), server_default=sa.func.now()),
    )
    op.create_index("ix_users_email", "users", ["email"])

    op.create_table(
        "organizations",
        sa.Column("id", GUID(), primary_key=True),
        sa.Column("name", sa.String(255), nullable=True),
        sa.Column("created_at", UTCDateTime(), server_default=sa.func.now()),
    )


def downgrade() -> None:
    """Drop the owner directory tables."""
    op.drop_table("organizations")
    op.drop_index("ix_users_email", table_name="users")
    op.drop_table("users")
