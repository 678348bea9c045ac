from .booking import Booking
from .check_in import CheckInRecord
from .ticket import Ticket

__all__ = [
    "Booking",
    "CheckInRecord",
    "Ticket",
]
