"""Manual gate records, booking pricing inputs and the platform settings row.

Revision ID: 002_gate_records
Revises: 001_initial
Create Date: 2026-10-19

- verification_decisions / manual_settlements: decisions recorded by an
  administrator, read by the manual gateways
- bookings.estimated_km, bookings.price_override: kept so edits can re-price
- platform_settings: re-keyed to (or seeded under) the fixed singleton ID
"""

from typing import Sequence

import sqlalchemy as sa
from sqlalchemy import Integer, Numeric, String, column, table
from sqlalchemy.dialects import postgresql

from alembic import op

# revision identifiers
revision: str = "002_gate_records"
down_revision: str = "001_initial"
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None

PLATFORM_SETTINGS_ID = "00000000-0000-0000-0000-000000000001"

DEFAULT_PLATFORM_SETTINGS = {
    "id": PLATFORM_SETTINGS_ID,
    "company_name": "RentCar Premium",
    "currency": "EUR",
    "tax_percentage": "20.0",
    "young_driver_min_age": 25,
    "young_driver_fee": "30.00",
    "support_email": "support@rentcar.com",
}


def upgrade() -> None:
    """Add gate tables and booking columns, then pin the settings row."""

    # ==================== BOOKINGS ====================
    op.add_column("bookings", sa.Column("estimated_km", sa.Numeric(10, 1)))
    op.add_column(
        "bookings",
        sa.Column("price_override", sa.Boolean, nullable=False, server_default=sa.false()),
    )

    # ==================== MANUAL GATES ====================
    op.create_table(
        "verification_decisions",
        sa.Column("subject_id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("status", sa.String(20), nullable=False),
        sa.Column("reason", sa.Text),
        sa.Column("decided_by", sa.String(100), nullable=False, server_default="admin"),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )

    op.create_table(
        "manual_settlements",
        sa.Column(
            "booking_id",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey("bookings.id", ondelete="CASCADE"),
            primary_key=True,
        ),
        sa.Column("settled", sa.Boolean, nullable=False, server_default=sa.true()),
        sa.Column("reference", sa.String(100)),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )

    # ==================== PLATFORM SETTINGS ====================
    # Keep the oldest existing row under the fixed ID and drop any duplicates
    op.execute(
        f"""
        UPDATE platform_settings SET id = '{PLATFORM_SETTINGS_ID}'
        WHERE id = (SELECT id FROM platform_settings ORDER BY created_at, id LIMIT 1)
        """
    )
    op.execute(f"DELETE FROM platform_settings WHERE id <> '{PLATFORM_SETTINGS_ID}'")

    existing = op.get_bind().execute(sa.text("SELECT count(*) FROM platform_settings")).scalar()
    if not existing:
        settings_table = table(
            "platform_settings",
            column("id", postgresql.UUID(as_uuid=True)),
            column("company_name", String),
            column("currency", String),
            column("tax_percentage", Numeric),
            column("young_driver_min_age", Integer),
            column("young_driver_fee", Numeric),
            column("support_email", String),
        )
        op.bulk_insert(settings_table, [DEFAULT_PLATFORM_SETTINGS])


def downgrade() -> None:
    """Drop gate tables and booking columns; the settings row is left in place."""
    op.drop_table("manual_settlements")
    op.drop_table("verification_decisions")
    op.drop_column("bookings", "price_override")
    op.drop_column("bookings", "estimated_km")
