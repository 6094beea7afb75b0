"""Create reports table.

Revision ID: 002_create_reports
Revises: 001_create_owner_directories
Create Date: 2025-10-08

"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

from exposure_store.config import get_settings
from exposure_store.models.report import single_owner_check
from exposure_store.models.types import GUID, UTCDateTime

# revision identifiers, used by Alembic.
revision: str = "002_create_reports"
down_revision: Union[str, None] = "001_create_owner_directories"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Create reports with one row per owner and RESTRICT/CASCADE owner keys."""
    on_delete = get_settings().owner_fk_on_delete

    op.create_table(
        "reports",
        sa.Column("id", GUID(), primary_key=True),
        sa.Column(
            "owner_user",
            GUID(),
            sa.ForeignKey("users.id", ondelete=on_delete),
            nullable=True,
        ),
        sa.Column(
            "owner_org",
            GUID(),
            sa.ForeignKey("organizations.id", ondelete=on_delete),
            nullable=True,
        ),
        sa.Column("exposed_count", sa.Integer, nullable=False),
        sa.Column("created_at", UTCDateTime(), nullable=False),
        sa.Column("last_updated_at", UTCDateTime(), nullable=False),
        sa.UniqueConstraint("owner_user", name="uq_reports_owner_user"),
        sa.UniqueConstraint("owner_org", name="uq_reports_owner_org"),
        single_owner_check(on_delete),
        sa.CheckConstraint("exposed_count >= 0", name="ck_reports_exposed_count_non_negative"),
    )
    op.create_index(
        "ix_reports_last_updated_at_id", "reports", ["last_updated_at", "id"]
    )


def downgrade() -> None:
    """Drop reports table."""
    op.drop_index("ix_reports_last_updated_at_id", table_name="reports")
    op.drop_table("reports")
