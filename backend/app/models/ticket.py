"""
Ticket model: one booked seat on a trip for a passenger.

Key design decisions:
- Unique constraint on (trip_id, seat_number) is the store-level guard
  against two concurrent bookings of the same seat
- `fare` and `journey_date` are snapshots taken at booking time
- Tickets are deleted on cancellation; a live ticket always holds a seat
"""

from sqlalchemy import Column, Integer, Date, Numeric, ForeignKey, UniqueConstraint, CheckConstraint
from sqlalchemy.orm import relationship

from app.db.base import Base, TimestampMixin


class Ticket(Base, TimestampMixin):
    __tablename__ = "tickets"

    id = Column(Integer, primary_key=True, index=True)
    trip_id = Column(Integer, ForeignKey("trips.id", ondelete="RESTRICT"), nullable=False, index=True)
    passenger_id = Column(Integer, ForeignKey("passengers.id", ondelete="RESTRICT"), nullable=False, index=True)
    journey_date = Column(Date, nullable=False)
    seat_number = Column(Integer, nullable=False)
    fare = Column(Numeric(10, 2), nullable=False)

    # Relationships
    trip = relationship("Trip", back_populates="tickets")
    passenger = relationship("Passenger", back_populates="tickets")

    __table_args__ = (
        UniqueConstraint("trip_id", "seat_number", name="uq_ticket_trip_seat"),
        CheckConstraint("seat_number >= 1", name="check_ticket_seat_number_positive"),
        CheckConstraint("fare >= 0", name="check_ticket_fare_non_negative"),
    )

    def __repr__(self) -> str:
        return f"<Ticket(id={self.id}, trip={self.trip_id}, seat={self.seat_number}, passenger={self.passenger_id})>"
