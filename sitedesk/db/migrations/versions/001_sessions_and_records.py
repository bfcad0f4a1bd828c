"""Create sessions and records tables.

Revision ID: 001
Revises:
Create Date: 2026-10-19

Tables: sessions, records
"""

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects.postgresql import JSONB

revision = "001"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    """Create the session and durable record tables."""
    op.create_table(
        "sessions",
        sa.Column("address", sa.String(64), primary_key=True),
        sa.Column("intent", sa.String(64)),
        sa.Column("step", sa.String(64)),
        sa.Column("data", JSONB, server_default="{}", nullable=False),
        sa.Column("context", JSONB, server_default="{}", nullable=False),
        sa.Column("inner_state", JSONB),
        sa.Column("created_at", sa.TIMESTAMP(timezone=True), server_default=sa.text("NOW()"), nullable=False),
        sa.Column("updated_at", sa.TIMESTAMP(timezone=True), server_default=sa.text("NOW()"), nullable=False),
        sa.CheckConstraint(
            "intent IS NULL OR step IS NOT NULL",
            name="chk_sessions_step_with_intent",
        ),
    )

    op.create_index("idx_sessions_updated_at", "sessions", ["updated_at"])

    op.create_table(
        "records",
        sa.Column("record_id", sa.String(36), primary_key=True),
        sa.Column("record_type", sa.String(50), nullable=False),
        sa.Column("fields", JSONB, nullable=False),
        sa.Column("created_at", sa.TIMESTAMP(timezone=True), server_default=sa.text("NOW()"), nullable=False),
        sa.CheckConstraint(
            "record_type IN ('activity', 'material_request', 'inventory_transaction', "
            "'invoice', 'inquiry', 'booking')",
            name="chk_records_type",
        ),
    )

    op.create_index("idx_records_type_created", "records", ["record_type", "created_at"])
    op.execute(
        "CREATE INDEX idx_records_inventory_item_site ON records "
        "((fields->>'item_id'), (fields->>'site')) "
        "WHERE record_type = 'inventory_transaction'"
    )


def downgrade() -> None:
    """Drop the session and record tables."""
    op.execute("DROP INDEX IF EXISTS idx_records_inventory_item_site")
    op.drop_index("idx_records_type_created", table_name="records")
    op.drop_table("records")
    op.drop_index("idx_sessions_updated_at", table_name="sessions")
    op.drop_table("sessions")
