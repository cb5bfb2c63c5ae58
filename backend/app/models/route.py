"""
Bus route: a fixed itinerary with a seat capacity and a fare.

Trips snapshot `total_seats` when they are scheduled; tickets snapshot
`fare` when they are booked. Editing a route therefore never rewrites
existing trips or tickets.
"""

from sqlalchemy import Column, Integer, String, Numeric, Index, CheckConstraint
from sqlalchemy.orm import relationship

from app.db.base import Base, TimestampMixin

ROUTE_CATEGORIES = ("AC", "Non-AC", "Sleeper", "Deluxe")


class Route(Base, TimestampMixin):
    __tablename__ = "routes"

    id = Column(Integer, primary_key=True, index=True)
    category = Column(String(20), nullable=False)
    source = Column(String(255), nullable=False)
    destination = Column(String(255), nullable=False)
    total_seats = Column(Integer, nullable=False)
    fare = Column(Numeric(10, 2), nullable=False)

    # Relationships
    trips = relationship("Trip", back_populates="route", passive_deletes="all")

    __table_args__ = (
        CheckConstraint("total_seats >= 1", name="check_route_total_seats_positive"),
        CheckConstraint("fare >= 0", name="check_route_fare_non_negative"),
        CheckConstraint(
            "category IN ('AC', 'Non-AC', 'Sleeper', 'Deluxe')",
            name="check_route_category",
        ),
        # Trip search filters on both ends of the route
        Index("ix_routes_source_destination", "source", "destination"),
    )

    def __repr__(self) -> str:
        return f"<Route(id={self.id}, {self.source}->{self.destination}, seats={self.total_seats})>"
