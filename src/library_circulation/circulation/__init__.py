"""
Circulation core: the copy state machine, the reservation ledger, and the
coordinator that ties them to inventory and patrons.
"""

from .coordinator import PICKUP_MESSAGE, CirculationCoordinator
from .ledger import ReservationLedger
from .state import ALLOWED_TRANSITIONS, TERMINAL_STATUSES, can_transition, transition

__all__ = [
    "ALLOWED_TRANSITIONS",
    "PICKUP_MESSAGE",
    "TERMINAL_STATUSES",
    "CirculationCoordinator",
    "ReservationLedger",
    "can_transition",
    "transition",
]
