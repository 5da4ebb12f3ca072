"""create invoices table

Revision ID: 7e2b4d6f8a91
Revises: 3c1f9a7b2d40
Create Date: 2024-10-18 09:05:00.000000

"""

import sqlalchemy as sa
from alembic import op

# revision identifiers, used by Alembic.
revision = "7e2b4d6f8a91"
down_revision = "3c1f9a7b2d40"
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "invoices",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("invoice_number", sa.String(length=50), nullable=False),
        sa.Column("agent_id", sa.String(length=255), nullable=False),
        sa.Column("settlement_kind", sa.String(length=30), nullable=False),
        sa.Column("period_number", sa.Integer(), nullable=False),
        sa.Column("status", sa.String(length=20), nullable=False),
        sa.Column("reconciled_status", sa.String(length=20), nullable=True),
        sa.Column("billing_period_start", sa.DateTime(timezone=True), nullable=False),
        sa.Column("billing_period_end", sa.DateTime(timezone=True), nullable=False),
        sa.Column("inspection_ids", sa.JSON(), nullable=False),
        sa.Column("total_amount", sa.Numeric(precision=12, scale=4), nullable=False),
        sa.Column("agent_cashback", sa.Numeric(precision=12, scale=4), nullable=False),
        sa.Column("clerk_commission", sa.Numeric(precision=12, scale=4), nullable=False),
        sa.Column("net_amount", sa.Numeric(precision=12, scale=4), nullable=False),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("generated_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("due_date", sa.DateTime(timezone=True), nullable=False),
        sa.Column("sent_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("paid_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("(CURRENT_TIMESTAMP)"),
            nullable=True,
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("(CURRENT_TIMESTAMP)"),
            nullable=True,
        ),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint(
            "agent_id",
            "period_number",
            "settlement_kind",
            name="uq_invoices_agent_period_kind",
        ),
    )
    op.create_index(
        op.f("ix_invoices_invoice_number"), "invoices", ["invoice_number"], unique=True
    )
    op.create_index(op.f("ix_invoices_agent_id"), "invoices", ["agent_id"])
    op.create_index(op.f("ix_invoices_period_number"), "invoices", ["period_number"])


def downgrade() -> None:
    op.drop_index(op.f("ix_invoices_period_number"), table_name="invoices")
    op.drop_index(op.f("ix_invoices_agent_id"), table_name="invoices")
    op.drop_index(op.f("ix_invoices_invoice_number"), table_name="invoices")
    op.drop_table("invoices")
