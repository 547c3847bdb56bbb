from .principal import PRINCIPAL_MODELS, Admin, Base, Gender, PrincipalRole, Reader, Volunteer
from .catalog import Author, Book, BookCollection, Category, Department, Hall, Publisher
from .circulation import Lending, LendingStatus, Request, RequestStatus
from .engagement import DEFAULT_POINT_RULES, Activity, PointHistory, PointSystem, Review, Wishlist
from .token import AccessToken

__all__ = [
    "AccessToken",
    "Activity",
    "Admin",
    "Author",
    "Base",
    "Book",
    "BookCollection",
    "Category",
    "DEFAULT_POINT_RULES",
    "Department",
    "Gender",
    "Hall",
    "Lending",
    "LendingStatus",
    "PRINCIPAL_MODELS",
    "PointHistory",
    "PointSystem",
    "PrincipalRole",
    "Publisher",
    "Reader",
    "Request",
    "RequestStatus",
    "Review",
    "Volunteer",
    "Wishlist",
]
