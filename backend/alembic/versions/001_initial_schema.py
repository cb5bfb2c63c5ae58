"""Initial schema: users, routes, trips, passengers, tickets with indexes and constraints.

Revision ID: 001
Revises: None
Create Date: 2026-10-19
"""
from typing import Sequence, Union
from alembic import op
import sqlalchemy as sa

revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _timestamps() -> list:
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    ]


def upgrade() -> None:
    # Users table
    op.create_table(
        "users",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("email", sa.String(255), nullable=False),
        sa.Column("username", sa.String(100), nullable=False),
        sa.Column("hashed_password", sa.String(255), nullable=False),
        sa.Column("role", sa.String(20), nullable=False, server_default=sa.text("'user'")),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        *_timestamps(),
        sa.CheckConstraint("role IN ('user', 'admin')", name="check_user_role"),
    )
    op.create_index("ix_users_id", "users", ["id"])
    op.create_index("ix_users_email", "users", ["email"], unique=True)
    op.create_index("ix_users_username", "users", ["username"], unique=True)

    # Routes table
    op.create_table(
        "routes",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("category", sa.String(20), nullable=False),
        sa.Column("source", sa.String(255), nullable=False),
        sa.Column("destination", sa.String(255), nullable=False),
        sa.Column("total_seats", sa.Integer(), nullable=False),
        sa.Column("fare", sa.Numeric(10, 2), nullable=False),
        *_timestamps(),
        sa.CheckConstraint("total_seats >= 1", name="check_route_total_seats_positive"),
        sa.CheckConstraint("fare >= 0", name="check_route_fare_non_negative"),
        sa.CheckConstraint(
            "category IN ('AC', 'Non-AC', 'Sleeper', 'Deluxe')",
            name="check_route_category",
        ),
    )
    op.create_index("ix_routes_id", "routes", ["id"])
    op.create_index("ix_routes_source_destination", "routes", ["source", "destination"])

    # Trips table
    op.create_table(
        "trips",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column(
            "route_id",
            sa.Integer(),
            sa.ForeignKey("routes.id", ondelete="RESTRICT"),
            nullable=False,
        ),
        sa.Column("date", sa.Date(), nullable=False),
        sa.Column("departure_time", sa.String(5), nullable=False),
        sa.Column("total_seats", sa.Integer(), nullable=False),
        sa.Column("available_seats", sa.Integer(), nullable=False),
        *_timestamps(),
        # The seat counter can never leave [0, total_seats], whatever the caller does
        sa.CheckConstraint("available_seats >= 0", name="check_trip_available_non_negative"),
        sa.CheckConstraint("total_seats >= 1", name="check_trip_total_seats_positive"),
        sa.CheckConstraint("available_seats <= total_seats", name="check_trip_available_lte_total"),
    )
    op.create_index("ix_trips_id", "trips", ["id"])
    op.create_index("ix_trips_route_id", "trips", ["route_id"])
    # Search looks up trips of matching routes on one date
    op.create_index("ix_trips_route_date", "trips", ["route_id", "date"])

    # Passengers table
    op.create_table(
        "passengers",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("age", sa.Integer(), nullable=False),
        sa.Column("gender", sa.String(10), nullable=False),
        sa.Column("contact", sa.String(100), nullable=False),
        sa.Column("address", sa.String(500), nullable=True),
        sa.Column("owner_id", sa.Integer(), sa.ForeignKey("users.id"), nullable=False),
        *_timestamps(),
        sa.CheckConstraint("age >= 1", name="check_passenger_age_positive"),
        sa.CheckConstraint("gender IN ('Male', 'Female', 'Other')", name="check_passenger_gender"),
    )
    op.create_index("ix_passengers_id", "passengers", ["id"])
    op.create_index("ix_passengers_owner_id", "passengers", ["owner_id"])

    # Tickets table
    op.create_table(
        "tickets",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column(
            "trip_id",
            sa.Integer(),
            sa.ForeignKey("trips.id", ondelete="RESTRICT"),
            nullable=False,
        ),
        sa.Column(
            "passenger_id",
            sa.Integer(),
            sa.ForeignKey("passengers.id", ondelete="RESTRICT"),
            nullable=False,
        ),
        sa.Column("journey_date", sa.Date(), nullable=False),
        sa.Column("seat_number", sa.Integer(), nullable=False),
        sa.Column("fare", sa.Numeric(10, 2), nullable=False),
        *_timestamps(),
        # Second, independent guard against two bookings of one seat
        sa.UniqueConstraint("trip_id", "seat_number", name="uq_ticket_trip_seat"),
        sa.CheckConstraint("seat_number >= 1", name="check_ticket_seat_number_positive"),
        sa.CheckConstraint("fare >= 0", name="check_ticket_fare_non_negative"),
    )
    op.create_index("ix_tickets_id", "tickets", ["id"])
    op.create_index("ix_tickets_trip_id", "tickets", ["trip_id"])
    op.create_index("ix_tickets_passenger_id", "tickets", ["passenger_id"])


def downgrade() -> None:
    op.drop_table("tickets")
    op.drop_table("passengers")
    op.drop_table("trips")
    op.drop_table("routes")
    op.drop_table("users")
