"""
Copy status state machine.

Every status change of a Copy goes through ``transition``. A move that is not
in the table means circulation code itself is wrong, so it is reported as a
ConsistencyError rather than a user-facing conflict; the coordinator checks
preconditions and raises ConflictError before it ever asks for a transition.

MAINTENANCE and LOST have no outgoing edges. Bringing such a copy back into
circulation is a manual, out-of-band procedure.
"""

import logging
from datetime import datetime

from ..errors import ConsistencyError
from ..models.copy import Copy, CopyStatus

logger = logging.getLogger(__name__)

ALLOWED_TRANSITIONS: dict[CopyStatus, frozenset[CopyStatus]] = {
    CopyStatus.AVAILABLE: frozenset(
        {CopyStatus.BORROWED, CopyStatus.MAINTENANCE, CopyStatus.LOST}
    ),
    CopyStatus.BORROWED: frozenset({CopyStatus.AVAILABLE, CopyStatus.RESERVED}),
    # RESERVED -> RESERVED hands a released hold to the next patron in line
    CopyStatus.RESERVED: frozenset(
        {CopyStatus.BORROWED, CopyStatus.RESERVED, CopyStatus.AVAILABLE}
    ),
    CopyStatus.MAINTENANCE: frozenset(),
    CopyStatus.LOST: frozenset(),
}

TERMINAL_STATUSES = frozenset(
    status for status, targets in ALLOWED_TRANSITIONS.items() if not targets
)


def can_transition(current: CopyStatus, target: CopyStatus) -> bool:
    return target in ALLOWED_TRANSITIONS[current]


def transition(copy: Copy, target: CopyStatus, when: datetime | None = None) -> CopyStatus:
    """
    Move a copy to a new status.

    Returns:
        The previous status

    Raises:
        ConsistencyError: If the move is not permitted
    """
    current = copy.status
    if not can_transition(current, target):
        logger.critical(
            "Illegal status transition for copy %s: %s -> %s",
            copy.barcode,
            current.value,
            target.value,
        )
        raise ConsistencyError(
            f"Illegal status transition for copy {copy.barcode}: "
            f"{current.value} -> {target.value}"
        )

    copy.status = target
    copy.updated_at = when or datetime.now()
    logger.debug("Copy %s: %s -> %s", copy.barcode, current.value, target.value)
    return current
