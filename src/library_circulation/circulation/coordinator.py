"""
Circulation coordinator: checkout, return and reservation hand-off.

This is the only component that changes a copy's status, and the only place
where a returned copy is matched with a waiting reservation. Each operation
runs as one unit under a coordinator-wide lock:

1. **Checkout**: validate the copy, patron, title category and copy status,
   then open a Loan and mark the copy BORROWED
2. **Return**: close the open Loan, ask the ledger for the next pending
   reservation of the title, and either hold the copy for that patron
   (RESERVED) or shelve it (AVAILABLE)
3. **Reserve / cancel**: place a hold in the title's queue, or withdraw one;
   withdrawing a hold that already has a copy set aside passes the copy on

The return pipeline is fixed: close loan, query ledger, set status, notify.
Notifications are sent after the lock is released and after the state change
is in place, so a failing notifier can never undo or fail a return.
"""

import logging
import threading
from collections.abc import Callable
from datetime import date, datetime, timedelta
from typing import NoReturn
from uuid import uuid4

from ..config import CirculationConfig
from ..directories.inventory import InventoryDirectory
from ..directories.patrons import PatronDirectory
from ..errors import (
    ConflictError,
    ConsistencyError,
    InvalidOperationError,
    NotFoundError,
)
from ..models.circulation import Loan, Reservation, ReservationStatus
from ..models.copy import Copy, CopyStatus
from ..models.title import Title
from ..notifications import Notifier
from ..observability import report_notification_failure, traced
from .ledger import ReservationLedger
from .state import transition

logger = logging.getLogger(__name__)

PICKUP_MESSAGE = "Your reserved book '{title}' is ready for pickup!"

# (patron_id, message) to deliver once the lock is released
_Notice = tuple[str, str]


class CirculationCoordinator:
    """
    Orchestrates circulation across inventory, patrons and the reservation ledger.

    Collaborators are passed in explicitly; the coordinator holds no global
    state. Besides the collaborators it tracks two indexes of its own:
    the open loan of each borrowed copy, and the reservation each RESERVED
    copy is held for.
    """

    def __init__(
        self,
        inventory: InventoryDirectory,
        patrons: PatronDirectory,
        ledger: ReservationLedger,
        notifier: Notifier,
        config: CirculationConfig | None = None,
        clock: Callable[[], datetime] = datetime.now,
    ):
        self.inventory = inventory
        self.patrons = patrons
        self.ledger = ledger
        self.notifier = notifier
        self.config = config or CirculationConfig()
        self._clock = clock
        self._lock = threading.RLock()
        # Key: barcode
        self._open_loans: dict[str, Loan] = {}
        self._holds: dict[str, Reservation] = {}

    # =========================================================================
    # CHECKOUT
    # =========================================================================

    @traced("checkout")
    def checkout(self, patron_id: str, barcode: str) -> Loan:
        """
        Check out a copy to a patron.

        Checks run in order and the first failure wins:
        copy exists, patron exists, title is not reference-only, and the copy
        is AVAILABLE or RESERVED for this very patron.

        A patron who borrows a shelf copy while another copy of the same title
        is held for them no longer needs the hold: it is fulfilled and the held
        copy passes to the next patron in line, or back to the shelf.

        Returns:
            The newly opened Loan

        Raises:
            NotFoundError: If the copy or patron is unknown
            InvalidOperationError: If the title is reference-only
            ConflictError: If the copy is not available to this patron
            ConsistencyError: If circulation indexes disagree with copy status
        """
        with self._lock:
            copy = self._require_copy(barcode, "Checkout")

            patron = self.patrons.get(patron_id)
            if patron is None:
                logger.error("Checkout failed: no patron found with ID %s", patron_id)
                raise NotFoundError(f"Patron {patron_id} not found")

            title = self._require_title(copy)
            if title.is_reference:
                logger.warning("Attempt to check out reference title: %s", barcode)
                raise InvalidOperationError(
                    f"'{title.name}' is a reference title and cannot be checked out"
                )

            hold = self._check_checkout_status(copy, patron_id)

            # Taking a shelf copy settles a hold already waiting for this patron
            released = self._ready_hold_of(patron.id, title.isbn) if hold is None else None
            held_copy = self._require_held_copy(released)[0] if released is not None else None

            if barcode in self._open_loans:
                self._fail_consistency(
                    f"Copy {barcode} is {copy.status.value} but already has an open loan"
                )

            now = self._clock()
            loan = Loan(
                id=self._generate_loan_id(),
                barcode=barcode,
                patron_id=patron.id,
                checkout_date=now,
                due_date=self.due_date_for(now),
            )

            transition(copy, CopyStatus.BORROWED, now)
            self._open_loans[barcode] = loan
            patron.record_loan(loan)

            if hold is not None:
                del self._holds[barcode]
                hold.fulfill(now)
                logger.info("Reservation %s fulfilled by pickup of %s", hold.id, barcode)

            notice = None
            if released is not None:
                del self._holds[held_copy.barcode]
                released.fulfill(now)
                notice = self._hand_off(held_copy, title, now)
                logger.info(
                    "Reservation %s fulfilled by checkout of %s; held copy %s is now %s",
                    released.id,
                    barcode,
                    held_copy.barcode,
                    held_copy.status.value,
                )

        if notice is not None:
            self._dispatch(*notice)
        logger.info("Copy checked out: %s to %s (due %s)", barcode, patron_id, loan.due_date)
        return loan

    def _check_checkout_status(self, copy: Copy, patron_id: str) -> Reservation | None:
        """Return the hold being picked up, if any, or raise ConflictError."""
        if copy.status == CopyStatus.AVAILABLE:
            return None

        if copy.status == CopyStatus.RESERVED:
            hold = self._holds.get(copy.barcode)
            if hold is None:
                self._fail_consistency(f"Copy {copy.barcode} is reserved but holds no reservation")
            if hold.patron_id == patron_id:
                return hold
            logger.warning(
                "Copy %s is held for %s; checkout by %s refused",
                copy.barcode,
                hold.patron_id,
                patron_id,
            )
            raise ConflictError(f"Copy {copy.barcode} is held for another patron")

        logger.warning("Copy not available: %s (status: %s)", copy.barcode, copy.status.value)
        raise ConflictError(f"Copy {copy.barcode} is not available (status: {copy.status.value})")

    def due_date_for(self, checkout_time: datetime) -> date:
        """Due date under the fixed loan period."""
        return checkout_time.date() + timedelta(days=self.config.loan_period_days)

    # =========================================================================
    # RETURN
    # =========================================================================

    def return_copy(self, barcode: str) -> CopyStatus:
        """
        Return a borrowed copy.

        The open loan is closed, then the next pending reservation for the
        title (if any) gets the copy and a pickup notification.

        Returns:
            The copy's new status: RESERVED or AVAILABLE
        """
        status, _ = self.check_in(barcode)
        return status

    @traced("return")
    def check_in(self, barcode: str) -> tuple[CopyStatus, Reservation | None]:
        """
        Return a borrowed copy and report who, if anyone, it is now held for.

        Returns:
            The copy's new status, and the reservation it was allocated to

        Raises:
            NotFoundError: If the copy is unknown
            ConflictError: If the copy is not currently borrowed
            ConsistencyError: If the borrowed copy has no open loan
        """
        with self._lock:
            copy = self._require_copy(barcode, "Return")

            if copy.status != CopyStatus.BORROWED:
                logger.warning(
                    "Return failed: copy %s is not checked out (status: %s)",
                    barcode,
                    copy.status.value,
                )
                raise ConflictError(
                    f"Copy {barcode} is not currently checked out (status: {copy.status.value})"
                )

            loan = self._open_loans.get(barcode)
            if loan is None:
                self._fail_consistency(f"No open loan found for borrowed copy {barcode}")

            title = self._require_title(copy)

            now = self._clock()
            loan.close(now)
            del self._open_loans[barcode]
            logger.info("Loan %s closed for copy %s", loan.id, barcode)

            notice = self._hand_off(copy, title, now)
            new_status = copy.status
            hold = self._holds.get(barcode)

        if notice is not None:
            logger.info("Copy returned and held for reservation: %s", barcode)
            self._dispatch(*notice)
        else:
            logger.info("Copy returned and available: %s", barcode)

        return new_status, hold

    def _hand_off(self, copy: Copy, title: Title, now: datetime) -> _Notice | None:
        """
        Give a copy to the next waiting patron, or shelve it.

        Must be called with the lock held and the copy free of loans and holds.
        """
        reservation = self.ledger.dequeue_next(title.isbn)
        if reservation is None:
            transition(copy, CopyStatus.AVAILABLE, now)
            return None

        reservation.mark_ready(copy.barcode, now)
        transition(copy, CopyStatus.RESERVED, now)
        self._holds[copy.barcode] = reservation

        return reservation.patron_id, PICKUP_MESSAGE.format(title=title.name)

    # =========================================================================
    # RESERVATIONS
    # =========================================================================

    @traced("reserve")
    def reserve(self, patron_id: str, isbn: str) -> Reservation:
        """
        Place a hold on a title.

        Holds are accepted whether or not a copy is currently on the shelf.

        Raises:
            NotFoundError: If the patron or title is unknown
        """
        with self._lock:
            patron = self.patrons.get(patron_id)
            if patron is None:
                logger.error("Reservation failed: no patron found with ID %s", patron_id)
                raise NotFoundError(f"Patron {patron_id} not found")

            title = self.inventory.get_title(isbn)
            if title is None:
                logger.error("Reservation failed: no title found with ISBN %s", isbn)
                raise NotFoundError(f"Title {isbn} not found")

            return self.ledger.enqueue(patron.id, title.isbn, when=self._clock())

    @traced("cancel_reservation")
    def cancel_reservation(self, reservation_id: str) -> Reservation:
        """
        Withdraw a hold.

        A pending hold simply leaves its queue. A hold that already has a
        copy set aside releases that copy to the next patron in line, or back
        to the shelf when nobody is waiting.

        Raises:
            NotFoundError: If the reservation is unknown
            ConflictError: If it is already fulfilled or canceled
            ConsistencyError: If the held copy cannot be found
        """
        notice = None
        with self._lock:
            reservation = self.ledger.get(reservation_id)
            if reservation is None:
                raise NotFoundError(f"Reservation {reservation_id} not found")

            held = None
            if reservation.status == ReservationStatus.READY_FOR_PICKUP:
                held = self._require_held_copy(reservation)

            now = self._clock()
            self.ledger.cancel(reservation_id, when=now)

            if held is not None:
                copy, title = held
                del self._holds[copy.barcode]
                notice = self._hand_off(copy, title, now)
                logger.info(
                    "Hold on %s released; copy is now %s", copy.barcode, copy.status.value
                )

        if notice is not None:
            self._dispatch(*notice)
        return reservation

    def _ready_hold_of(self, patron_id: str, isbn: str) -> Reservation | None:
        for reservation in self._holds.values():
            if reservation.patron_id == patron_id and reservation.isbn == isbn:
                return reservation
        return None

    def _require_held_copy(self, reservation: Reservation) -> tuple[Copy, Title]:
        barcode = reservation.held_barcode
        copy = self.inventory.get(barcode) if barcode else None
        if copy is None or self._holds.get(barcode) is not reservation:
            self._fail_consistency(
                f"Reservation {reservation.id} is ready for pickup but its copy is not held"
            )
        return copy, self._require_title(copy)

    # =========================================================================
    # INVENTORY STATUS
    # =========================================================================

    @traced("withdraw_copy")
    def withdraw_copy(self, barcode: str, status: CopyStatus) -> Copy:
        """
        Take an available copy out of circulation.

        Raises:
            InvalidOperationError: If the target is not MAINTENANCE or LOST
            NotFoundError: If the copy is unknown
            ConflictError: If the copy is not AVAILABLE
        """
        status = CopyStatus(status)
        if status not in (CopyStatus.MAINTENANCE, CopyStatus.LOST):
            raise InvalidOperationError(
                f"Copies can only be withdrawn to maintenance or lost, not {status.value}"
            )

        with self._lock:
            copy = self._require_copy(barcode, "Withdrawal")
            if copy.status != CopyStatus.AVAILABLE:
                raise ConflictError(
                    f"Copy {barcode} cannot be withdrawn while {copy.status.value}"
                )
            transition(copy, status, self._clock())

        logger.info("Copy %s withdrawn from circulation (%s)", barcode, status.value)
        return copy

    # =========================================================================
    # QUERIES
    # =========================================================================

    def open_loan_for(self, barcode: str) -> Loan | None:
        with self._lock:
            return self._open_loans.get(barcode)

    def hold_for(self, barcode: str) -> Reservation | None:
        """The reservation a RESERVED copy is set aside for."""
        with self._lock:
            return self._holds.get(barcode)

    def queue_position(self, reservation_id: str) -> int | None:
        """1-based place of a pending reservation in its title's queue."""
        with self._lock:
            return self.ledger.position_of(reservation_id)

    def active_loans(self) -> list[Loan]:
        with self._lock:
            return list(self._open_loans.values())

    def overdue_loans(self, today: date | None = None) -> list[Loan]:
        today = today or self._clock().date()
        return [loan for loan in self.active_loans() if loan.is_overdue(today)]

    def verify_invariants(self) -> None:
        """
        Cross-check copy statuses against the loan and hold indexes.

        Raises:
            ConsistencyError: On the first mismatch found
        """
        with self._lock:
            for copy in self.inventory:
                borrowed = copy.status == CopyStatus.BORROWED
                if borrowed != (copy.barcode in self._open_loans):
                    self._fail_consistency(
                        f"Copy {copy.barcode} is {copy.status.value} "
                        f"but open loan present={not borrowed}"
                    )
                reserved = copy.status == CopyStatus.RESERVED
                if reserved != (copy.barcode in self._holds):
                    self._fail_consistency(
                        f"Copy {copy.barcode} is {copy.status.value} "
                        f"but hold present={not reserved}"
                    )

    # =========================================================================
    # HELPERS
    # =========================================================================

    def _require_copy(self, barcode: str, operation: str) -> Copy:
        copy = self.inventory.get(barcode)
        if copy is None:
            logger.error("%s failed: no copy found with barcode %s", operation, barcode)
            raise NotFoundError(f"Copy {barcode} not found")
        return copy

    def _require_title(self, copy: Copy) -> Title:
        title = self.inventory.get_title(copy.isbn)
        if title is None:
            self._fail_consistency(f"Copy {copy.barcode} references missing title {copy.isbn}")
        return title

    def _fail_consistency(self, message: str) -> NoReturn:
        logger.critical("CRITICAL: %s", message)
        raise ConsistencyError(message)

    def _dispatch(self, patron_id: str, message: str) -> None:
        """Send a notification; failures are reported, never raised."""
        try:
            delivered = self.notifier.notify(patron_id, message)
        except Exception as e:
            report_notification_failure(patron_id, message, e)
            return

        if not delivered:
            logger.warning("Notification to patron %s was not delivered", patron_id)

    def _generate_loan_id(self) -> str:
        return f"loan_{uuid4().hex[:12]}"
