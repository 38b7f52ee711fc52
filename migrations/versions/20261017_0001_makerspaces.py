"""makerspace onboarding core

Revision ID: 20261017_0001
Revises:
Create Date: 2026-10-17

"""

from __future__ import annotations

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = "20261017_0001"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "makerspaces",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("email", sa.String(length=255), nullable=False),
        sa.Column("status", sa.String(length=16), nullable=False, server_default="pending"),
        sa.Column("claim_token", sa.Text(), nullable=True),
        sa.Column("profile", sa.JSON(), nullable=True),
        sa.Column("name", sa.String(length=255), nullable=True),
        sa.Column("city", sa.String(length=120), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("CURRENT_TIMESTAMP")),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("CURRENT_TIMESTAMP")),
        sa.Column("activated_at", sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("claim_token", name="uq_makerspaces_claim_token"),
        sa.CheckConstraint("status IN ('pending', 'active')", name="ck_makerspaces_status"),
        sa.CheckConstraint(
            "(status = 'pending' AND claim_token IS NOT NULL AND profile IS NULL)"
            " OR (status = 'active' AND claim_token IS NULL AND profile IS NOT NULL)",
            name="ck_makerspaces_lifecycle_fields",
        ),
    )
    op.create_index("ix_makerspaces_email", "makerspaces", ["email"], unique=True)
    op.create_index("ix_makerspaces_status_city", "makerspaces", ["status", "city"])
    op.create_index("ix_makerspaces_status_name", "makerspaces", ["status", "name"])


def downgrade() -> None:
    op.drop_index("ix_makerspaces_status_name", table_name="makerspaces")
    op.drop_index("ix_makerspaces_status_city", table_name="makerspaces")
    op.drop_index("ix_makerspaces_email", table_name="makerspaces")
    op.drop_table("makerspaces")
