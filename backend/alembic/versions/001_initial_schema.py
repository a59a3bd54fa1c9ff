"""Initial schema: api keys, shows, seats, reservations and bookings.

Revision ID: 001
Revises: None
Create Date: 2026-10-17
"""
from typing import Sequence, Union
from alembic import op
import sqlalchemy as sa

revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _timestamps():
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    ]


def upgrade() -> None:
    # API keys table
    op.create_table(
        "api_keys",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("key_prefix", sa.String(16), nullable=False),
        sa.Column("key_hash", sa.String(255), nullable=False),
        sa.Column("permissions", sa.JSON(), nullable=False),
        sa.Column("rate_limit", sa.Integer(), nullable=False, server_default=sa.text("100")),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        sa.Column("last_used_at", sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
    )
    # Keys are looked up by the 8 characters after "vk_", then bcrypt-checked
    op.create_index("ix_api_keys_key_prefix", "api_keys", ["key_prefix"])

    # Shows table
    op.create_table(
        "shows",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("title", sa.String(255), nullable=False),
        sa.Column("description", sa.String(1000), nullable=True),
        sa.Column("show_date", sa.Date(), nullable=False),
        sa.Column("show_time", sa.Time(), nullable=False),
        sa.Column("duration_minutes", sa.Integer(), nullable=False, server_default=sa.text("150")),
        sa.Column("section", sa.String(20), nullable=False, server_default=sa.text("'A'")),
        sa.Column("row_count", sa.Integer(), nullable=False, server_default=sa.text("10")),
        sa.Column("seats_per_row", sa.Integer(), nullable=False, server_default=sa.text("10")),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        *_timestamps(),
        sa.CheckConstraint("row_count > 0", name="check_show_row_count_positive"),
        sa.CheckConstraint("seats_per_row > 0", name="check_show_seats_per_row_positive"),
    )
    # One show per day; the external API addresses shows by date
    op.create_index("ix_shows_show_date", "shows", ["show_date"], unique=True)

    # Seats table
    op.create_table(
        "seats",
        sa.Column("show_id", sa.String(36), sa.ForeignKey("shows.id", ondelete="CASCADE"), primary_key=True),
        sa.Column("seat_id", sa.String(20), primary_key=True),
        sa.Column("number", sa.Integer(), nullable=False),
        sa.Column("row", sa.Integer(), nullable=False),
        sa.Column("section", sa.String(20), nullable=False),
        sa.Column("category", sa.String(20), nullable=False),
        sa.Column("price", sa.Integer(), nullable=False),
        sa.Column("status", sa.String(20), nullable=False, server_default=sa.text("'available'")),
        sa.Column("reserved_until", sa.DateTime(timezone=True), nullable=True),
        sa.Column("reserved_by", sa.String(36), nullable=True),
        sa.Column("booking_id", sa.String(32), nullable=True),
        *_timestamps(),
        sa.CheckConstraint("status IN ('available', 'reserved', 'sold')", name="check_seat_status"),
        sa.CheckConstraint("price >= 0", name="check_seat_price_non_negative"),
    )
    # Inventories load a show's seats in seat-number order
    op.create_index("ix_seats_show_number", "seats", ["show_id", "number"])

    # Reservations table
    op.create_table(
        "reservations",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("show_id", sa.String(36), sa.ForeignKey("shows.id", ondelete="CASCADE"), nullable=False),
        sa.Column("seat_ids", sa.JSON(), nullable=False),
        sa.Column("holder_id", sa.String(36), sa.ForeignKey("api_keys.id"), nullable=False),
        sa.Column("external_booking_id", sa.String(255), nullable=True),
        sa.Column("expires_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("status", sa.String(20), nullable=False, server_default=sa.text("'active'")),
        sa.Column("hold_metadata", sa.JSON(), nullable=False),
        *_timestamps(),
        sa.CheckConstraint("status IN ('active', 'consumed', 'released')", name="check_reservation_status"),
    )
    op.create_index("ix_reservations_show_id", "reservations", ["show_id"])
    op.create_index("ix_reservations_holder_id", "reservations", ["holder_id"])
    op.create_index("ix_reservations_expires_at", "reservations", ["expires_at"])

    # Bookings table
    op.create_table(
        "bookings",
        sa.Column("id", sa.String(32), primary_key=True),
        sa.Column("show_id", sa.String(36), sa.ForeignKey("shows.id"), nullable=False),
        sa.Column("api_key_id", sa.String(36), sa.ForeignKey("api_keys.id"), nullable=False),
        sa.Column("reservation_id", sa.String(36), sa.ForeignKey("reservations.id"), nullable=True),
        sa.Column("seat_ids", sa.JSON(), nullable=False),
        sa.Column("seats", sa.JSON(), nullable=False),
        sa.Column("customer_name", sa.String(255), nullable=False),
        sa.Column("customer_email", sa.String(255), nullable=False),
        sa.Column("customer_phone", sa.String(50), nullable=True),
        sa.Column("total_price", sa.Integer(), nullable=False),
        sa.Column("status", sa.String(20), nullable=False, server_default=sa.text("'confirmed'")),
        sa.Column("notes", sa.String(1000), nullable=True),
        sa.Column("booked_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("cancelled_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("cancel_reason", sa.String(255), nullable=True),
        *_timestamps(),
        sa.CheckConstraint("total_price >= 0", name="check_booking_total_non_negative"),
        sa.CheckConstraint("status IN ('confirmed', 'cancelled')", name="check_booking_status"),
    )
    op.create_index("ix_bookings_show_id", "bookings", ["show_id"])
    op.create_index("ix_bookings_api_key_id", "bookings", ["api_key_id"])


def downgrade() -> None:
    op.drop_table("bookings")
    op.drop_table("reservations")
    op.drop_table("seats")
    op.drop_table("shows")
    op.drop_table("api_keys")
