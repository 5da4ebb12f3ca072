"""create settled_inspections table

Revision ID: 3c1f9a7b2d40
Revises:
Create Date: 2024-10-18 09:00:00.000000

"""

import sqlalchemy as sa
from alembic import op

# revision identifiers, used by Alembic.
revision = "3c1f9a7b2d40"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "settled_inspections",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("inspection_id", sa.String(length=255), nullable=False),
        sa.Column("settlement_kind", sa.String(length=30), nullable=False),
        sa.Column("source_id", sa.String(length=36), nullable=False),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("(CURRENT_TIMESTAMP)"),
            nullable=True,
        ),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint(
            "inspection_id",
            "settlement_kind",
            name="uq_settled_inspections_inspection_kind",
        ),
    )
    op.create_index(
        "ix_settled_inspections_inspection_id", "settled_inspections", ["inspection_id"]
    )
    op.create_index("ix_settled_inspections_source_id", "settled_inspections", ["source_id"])


def downgrade() -> None:
    op.drop_index("ix_settled_inspections_source_id", table_name="settled_inspections")
    op.drop_index("ix_settled_inspections_inspection_id", table_name="settled_inspections")
    op.drop_table("settled_inspections")
