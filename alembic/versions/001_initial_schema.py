"""Initial database schema.

Revision ID: 001_initial
Revises: None
Create Date: 2026-10-19

Creates all initial tables for the RentCar booking engine:
- Vehicles (fleet and rate cards)
- Bookings and their status history
- Platform settings

Double-booking is also rejected by the database: an exclusion constraint
over (vehicle_id, [start_date, end_date)) for non-cancelled bookings.
"""

from typing import Sequence

import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

from alembic import op

# revision identifiers
revision: str = "001_initial"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    """Create all database tables."""

    # Required for the (uuid =, tstzrange &&) exclusion constraint
    op.execute("CREATE EXTENSION IF NOT EXISTS btree_gist")

    # ==================== VEHICLES ====================
    op.create_table(
        "vehicles",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("make", sa.String(80), nullable=False),
        sa.Column("model", sa.String(80), nullable=False),
        sa.Column("plate_number", sa.String(20), nullable=False, unique=True, index=True),
        sa.Column("price_per_hour", sa.Numeric(10, 2)),
        sa.Column("price_per_km", sa.Numeric(10, 2)),
        sa.Column("price_per_day", sa.Numeric(10, 2)),
        sa.Column("deposit_amount", sa.Numeric(10, 2), server_default="0"),
        sa.Column("daily_km_limit", sa.Numeric(10, 2)),
        sa.Column("extra_km_charge", sa.Numeric(10, 2), server_default="0"),
        sa.Column("current_odometer", sa.Numeric(12, 1), server_default="0"),
        sa.Column("is_available", sa.Boolean, server_default=sa.true()),
        sa.Column("status", sa.String(20), nullable=False, server_default="AVAILABLE"),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )

    # ==================== BOOKINGS ====================
    op.create_table(
        "bookings",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("vehicle_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("vehicles.id"), nullable=False, index=True),
        sa.Column("renter_id", postgresql.UUID(as_uuid=True), index=True),
        sa.Column("guest_name", sa.String(200)),
        sa.Column("guest_phone", sa.String(30)),
        sa.Column("guest_email", sa.String(255)),
        sa.Column("driver_age", sa.Integer),
        sa.Column("start_date", sa.DateTime(timezone=True), nullable=False, index=True),
        sa.Column("end_date", sa.DateTime(timezone=True), nullable=False, index=True),
        sa.Column("rental_type", sa.String(10), nullable=False, server_default="DAY"),
        sa.Column("base_price", sa.Numeric(10, 2), nullable=False),
        sa.Column("surcharge_amount", sa.Numeric(10, 2), server_default="0"),
        sa.Column("tax_amount", sa.Numeric(10, 2), nullable=False),
        sa.Column("total_price", sa.Numeric(10, 2), nullable=False),
        sa.Column("deposit_amount", sa.Numeric(10, 2), server_default="0"),
        sa.Column("currency", sa.String(3), server_default="EUR"),
        sa.Column("status", sa.String(20), nullable=False, server_default="DRAFT", index=True),
        sa.Column("expires_at", sa.DateTime(timezone=True), index=True),
        sa.Column("start_odometer", sa.Numeric(12, 1)),
        sa.Column("end_odometer", sa.Numeric(12, 1)),
        sa.Column("pickup_notes", sa.Text),
        sa.Column("return_notes", sa.Text),
        sa.Column("damage_fee", sa.Numeric(10, 2)),
        sa.Column("extra_km_fee", sa.Numeric(10, 2)),
        sa.Column("confirmed_at", sa.DateTime(timezone=True)),
        sa.Column("started_at", sa.DateTime(timezone=True)),
        sa.Column("completed_at", sa.DateTime(timezone=True)),
        sa.Column("cancelled_at", sa.DateTime(timezone=True)),
        sa.Column("cancellation_reason", sa.Text),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("version", sa.Integer, nullable=False, server_default="1"),
        sa.CheckConstraint("end_date > start_date", name="ck_bookings_date_order"),
        sa.CheckConstraint(
            "base_price >= 0 AND tax_amount >= 0 AND total_price >= 0",
            name="ck_bookings_non_negative_prices",
        ),
    )
    op.create_index("ix_bookings_vehicle_window", "bookings", ["vehicle_id", "start_date", "end_date"])

    # No two live bookings may overlap on the same vehicle
    op.execute(
        """
        ALTER TABLE bookings
        ADD CONSTRAINT ex_bookings_vehicle_overlap
        EXCLUDE USING gist (
            vehicle_id WITH =,
            tstzrange(start_date, end_date, '[)') WITH &&
        )
        WHERE (status <> 'CANCELLED')
        """
    )

    op.create_table(
        "booking_status_logs",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("booking_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("bookings.id", ondelete="CASCADE"), nullable=False, index=True),
        sa.Column("from_status", sa.String(20)),
        sa.Column("to_status", sa.String(20), nullable=False),
        sa.Column("actor", sa.String(100), server_default="system"),
        sa.Column("note", sa.Text),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), index=True),
    )

    # ==================== PLATFORM ====================
    op.create_table(
        "platform_settings",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("company_name", sa.String(120), nullable=False),
        sa.Column("currency", sa.String(3), nullable=False, server_default="EUR"),
        sa.Column("tax_percentage", sa.Numeric(5, 2), nullable=False, server_default="20.0"),
        sa.Column("young_driver_min_age", sa.Integer, nullable=False, server_default="25"),
        sa.Column("young_driver_fee", sa.Numeric(10, 2), nullable=False, server_default="30.00"),
        sa.Column("support_email", sa.String(255)),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )


def downgrade() -> None:
    """Drop all database tables in reverse order."""
    op.drop_table("platform_settings")
    op.drop_table("booking_status_logs")
    op.execute("ALTER TABLE bookings DROP CONSTRAINT IF EXISTS ex_bookings_vehicle_overlap")
    op.drop_index("ix_bookings_vehicle_window", table_name="bookings")
    op.drop_table("bookings")
    op.drop_table("vehicles")
