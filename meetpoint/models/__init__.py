"""Domain models for the MeetPoint client"""

from .establishment import Category, Establishment, Rating
from .registration import BusinessRegistration, CustomerRegistration
from .user import AccountKind, User

__all__ = [
    "AccountKind",
    "BusinessRegistration",
    "Category",
    "CustomerRegistration",
    "Establishment",
    "Rating",
    "User",
]
