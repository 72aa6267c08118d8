"""
Library circulation models.

Pydantic models for every entity circulation touches:
- Title: catalog metadata, keyed by ISBN
- Copy: a physical, barcoded instance of a title
- Patron: a member with loan history and pending alerts
- Loan / Reservation: circulation records
"""

from .circulation import Loan, Reservation, ReservationStatus
from .copy import Copy, CopyStatus
from .patron import Patron
from .title import Title, TitleCategory

__all__ = [
    "Copy",
    "CopyStatus",
    "Loan",
    "Patron",
    "Reservation",
    "ReservationStatus",
    "Title",
    "TitleCategory",
]
