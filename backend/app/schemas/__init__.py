from app.schemas.common import MessageResponse, ErrorResponse
from app.schemas.user import UserCreate, PrivilegedUserCreate, UserResponse, UserLogin, Token
from app.schemas.route import RouteCreate, RouteUpdate, RouteResponse
from app.schemas.trip import TripCreate, TripUpdate, TripResponse, TripView
from app.schemas.passenger import PassengerCreate, PassengerUpdate, PassengerResponse
from app.schemas.ticket import TicketCreate, TicketUpdate, TicketResponse, TicketCancelResponse

__all__ = [
    "MessageResponse", "ErrorResponse",
    "UserCreate", "PrivilegedUserCreate", "UserResponse", "UserLogin", "Token",
    "RouteCreate", "RouteUpdate", "RouteResponse",
    "TripCreate", "TripUpdate", "TripResponse", "TripView",
    "PassengerCreate", "PassengerUpdate", "PassengerResponse",
    "TicketCreate", "TicketUpdate", "TicketResponse", "TicketCancelResponse",
]
