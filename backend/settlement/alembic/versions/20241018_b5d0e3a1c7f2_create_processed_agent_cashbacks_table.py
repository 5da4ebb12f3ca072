"""create processed_agent_cashbacks table

Revision ID: b5d0e3a1c7f2
Revises: 7e2b4d6f8a91
Create Date: 2024-10-18 09:10:00.000000

"""

import sqlalchemy as sa
from alembic import op

# revision identifiers, used by Alembic.
revision = "b5d0e3a1c7f2"
down_revision = "7e2b4d6f8a91"
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "processed_agent_cashbacks",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("agent_id", sa.String(length=255), nullable=False),
        sa.Column("period_number", sa.Integer(), nullable=False),
        sa.Column("billing_period_start", sa.DateTime(timezone=True), nullable=False),
        sa.Column("billing_period_end", sa.DateTime(timezone=True), nullable=False),
        sa.Column("inspection_ids", sa.JSON(), nullable=False),
        sa.Column("total_revenue", sa.Numeric(precision=12, scale=4), nullable=False),
        sa.Column("cashback_amount", sa.Numeric(precision=12, scale=4), nullable=False),
        sa.Column("processed_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("processed_by", sa.String(length=255), nullable=False),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("(CURRENT_TIMESTAMP)"),
            nullable=True,
        ),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        "ix_processed_agent_cashbacks_agent_id", "processed_agent_cashbacks", ["agent_id"]
    )
    op.create_index(
        "ix_processed_agent_cashbacks_agent_period",
        "processed_agent_cashbacks",
        ["agent_id", "period_number"],
    )


def downgrade() -> None:
    op.drop_index(
        "ix_processed_agent_cashbacks_agent_period", table_name="processed_agent_cashbacks"
    )
    op.drop_index("ix_processed_agent_cashbacks_agent_id", table_name="processed_agent_cashbacks")
    op.drop_table("processed_agent_cashbacks")
