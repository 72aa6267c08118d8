"""
Reservation ledger: per-title waiting lines for holds.

Each title has a FIFO queue of PENDING reservations. The ledger answers
"who is next" for a title and never reorders, prioritizes, or expires holds.
It also keeps every reservation it has created, indexed by ID, so that
reservations which have left the queue (ready for pickup, fulfilled or
canceled) can still be looked up.

The ledger does not check copy availability when a hold is placed: patrons
may reserve ahead even while copies are on the shelf.

The ledger is not synchronized on its own. The circulation coordinator holds
its lock around every ledger call.
"""

import logging
from collections import deque
from datetime import datetime
from uuid import uuid4

from ..errors import ConflictError, NotFoundError
from ..models.circulation import Reservation, ReservationStatus

logger = logging.getLogger(__name__)


class ReservationLedger:
    """Per-title FIFO queues of pending reservations."""

    def __init__(self) -> None:
        # Key: ISBN, value: pending reservations in request order
        self._queues: dict[str, deque[Reservation]] = {}
        self._reservations: dict[str, Reservation] = {}

    def enqueue(self, patron_id: str, isbn: str, when: datetime | None = None) -> Reservation:
        """Place a PENDING hold at the tail of the title's queue."""
        reservation = Reservation(
            id=self._generate_reservation_id(),
            patron_id=patron_id,
            isbn=isbn,
            created_at=when or datetime.now(),
        )
        self._queues.setdefault(isbn, deque()).append(reservation)
        self._reservations[reservation.id] = reservation

        logger.info(
            "Reservation %s made for %s by %s (position %d)",
            reservation.id,
            isbn,
            patron_id,
            len(self._queues[isbn]),
        )
        return reservation

    def dequeue_next(self, isbn: str) -> Reservation | None:
        """
        Pop the head of the title's queue.

        The returned reservation is still PENDING; the caller assigns its next
        status. An absent or empty queue yields None.
        """
        queue = self._queues.get(isbn)
        if not queue:
            return None

        reservation = queue.popleft()
        if not queue:
            del self._queues[isbn]

        logger.debug("Dequeued reservation %s for %s", reservation.id, isbn)
        return reservation

    def cancel(self, reservation_id: str, when: datetime | None = None) -> Reservation:
        """
        Cancel a reservation, removing it from its queue wherever it sits.

        Raises:
            NotFoundError: If the reservation is unknown
            ConflictError: If it is already fulfilled or canceled
        """
        reservation = self._reservations.get(reservation_id)
        if reservation is None:
            raise NotFoundError(f"Reservation {reservation_id} not found")

        if not reservation.is_active:
            raise ConflictError(
                f"Reservation {reservation_id} is already {reservation.status.value}"
            )

        if reservation.status == ReservationStatus.PENDING:
            queue = self._queues.get(reservation.isbn)
            if queue is not None:
                queue.remove(reservation)
                if not queue:
                    del self._queues[reservation.isbn]

        reservation.cancel(when)
        logger.info("Reservation %s canceled", reservation_id)
        return reservation

    def get(self, reservation_id: str) -> Reservation | None:
        return self._reservations.get(reservation_id)

    def queue_length(self, isbn: str) -> int:
        return len(self._queues.get(isbn, ()))

    def pending_for(self, isbn: str) -> list[Reservation]:
        """Snapshot of the title's queue, head first."""
        return list(self._queues.get(isbn, ()))

    def position_of(self, reservation_id: str) -> int | None:
        """1-based queue position, or None if the reservation is not queued."""
        reservation = self._reservations.get(reservation_id)
        if reservation is None or reservation.status != ReservationStatus.PENDING:
            return None

        for position, queued in enumerate(self._queues.get(reservation.isbn, ()), start=1):
            if queued.id == reservation_id:
                return position
        return None

    def reservations_for_patron(self, patron_id: str) -> list[Reservation]:
        """Every reservation the patron has placed, oldest first."""
        return [r for r in self._reservations.values() if r.patron_id == patron_id]

    def _generate_reservation_id(self) -> str:
        while True:
            reservation_id = f"reservation_{uuid4().hex[:12]}"
            if reservation_id not in self._reservations:
                return reservation_id
