"""
Trip model with seat inventory tracking.

Key design decisions:
- `total_seats` is a snapshot of the route capacity at scheduling time
- `available_seats` is denormalized (avoids COUNT over tickets) and is only
  ever changed by the inventory controller's conditional UPDATEs
- CHECK constraints keep the counter inside [0, total_seats] at the DB level
"""

from sqlalchemy import Column, Integer, String, Date, ForeignKey, Index, CheckConstraint
from sqlalchemy.orm import relationship

from app.db.base import Base, TimestampMixin


class Trip(Base, TimestampMixin):
    __tablename__ = "trips"

    id = Column(Integer, primary_key=True, index=True)
    route_id = Column(Integer, ForeignKey("routes.id", ondelete="RESTRICT"), nullable=False, index=True)
    date = Column(Date, nullable=False)
    departure_time = Column(String(5), nullable=False)  # "HH:MM"
    total_seats = Column(Integer, nullable=False)
    available_seats = Column(Integer, nullable=False)

    # Relationships
    route = relationship("Route", back_populates="trips")
    tickets = relationship("Ticket", back_populates="trip", passive_deletes="all")

    __table_args__ = (
        CheckConstraint("available_seats >= 0", name="check_trip_available_non_negative"),
        CheckConstraint("total_seats >= 1", name="check_trip_total_seats_positive"),
        CheckConstraint("available_seats <= total_seats", name="check_trip_available_lte_total"),
        # Search: trips for a route on a date
        Index("ix_trips_route_date", "route_id", "date"),
    )

    def __repr__(self) -> str:
        return f"<Trip(id={self.id}, route={self.route_id}, date={self.date}, available={self.available_seats}/{self.total_seats})>"
