from app.models.user import User
from app.models.route import Route
from app.models.trip import Trip
from app.models.passenger import Passenger
from app.models.ticket import Ticket

__all__ = ["User", "Route", "Trip", "Passenger", "Ticket"]
