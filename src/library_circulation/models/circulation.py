"""
Circulation models for the library.

These models record how copies move between the shelf and patrons:
- Loan: one checkout-to-return cycle of a specific copy
- Reservation: a patron's standing hold on a title (not a specific copy)

Both are long-lived records. A Loan is closed rather than deleted when the copy
comes back. A Reservation leaves the ledger queue once a copy is allocated to
it but remains available for audit until it is fulfilled or canceled.
"""

from datetime import date, datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, model_validator


class ReservationStatus(str, Enum):
    """Status of a reservation."""

    PENDING = "pending"  # Waiting in the title's queue
    READY_FOR_PICKUP = "ready_for_pickup"
    FULFILLED = "fulfilled"
    CANCELED = "canceled"


class Loan(BaseModel):
    """
    Represents one checkout of a copy by a patron.

    A loan is open while ``return_date`` is None. At most one open loan exists
    per copy, and a copy is BORROWED exactly when it has one.
    """

    id: str = Field(
        ...,
        description="Unique identifier for the loan",
        pattern=r"^loan_[a-zA-Z0-9]{6,}$",
        examples=["loan_5f2c9a1b7e3d"],
    )

    barcode: str = Field(
        ...,
        description="Barcode of the borrowed copy",
        examples=["copy_1a2b3c4d"],
    )

    patron_id: str = Field(
        ...,
        description="ID of the borrowing patron",
        pattern=r"^patron_[a-zA-Z0-9_]{6,}$",
        examples=["patron_7c1e0d9a"],
    )

    checkout_date: datetime = Field(
        default_factory=datetime.now,
        description="Date and time when the copy was checked out",
    )

    due_date: date = Field(
        ...,
        description="Date when the copy should be returned",
        examples=["2024-01-14"],
    )

    return_date: datetime | None = Field(
        None,
        description="Date and time when the copy was returned; None while open",
    )

    @model_validator(mode="after")
    def validate_dates(self) -> "Loan":
        """Validate date relationships."""
        if self.due_date <= self.checkout_date.date():
            raise ValueError("Due date must be after checkout date")

        if self.return_date and self.return_date < self.checkout_date:
            raise ValueError("Return date cannot be before checkout date")

        return self

    @property
    def is_open(self) -> bool:
        """Check whether the copy is still out on this loan."""
        return self.return_date is None

    @property
    def loan_period_days(self) -> int:
        """Calculate the loan period in days."""
        return (self.due_date - self.checkout_date.date()).days

    def is_overdue(self, today: date | None = None) -> bool:
        """Check if the loan is open past its due date."""
        if not self.is_open:
            return False
        return (today or date.today()) > self.due_date

    def close(self, when: datetime | None = None) -> None:
        """
        Mark the loan as returned.

        Raises:
            ValueError: If the loan was already closed
        """
        if not self.is_open:
            raise ValueError(f"Loan {self.id} already closed")
        self.return_date = when or datetime.now()

    model_config = ConfigDict(
        # Re-run date validation when return_date is set
        validate_assignment=True,
        json_schema_extra={
            "example": {
                "id": "loan_5f2c9a1b7e3d",
                "barcode": "copy_1a2b3c4d",
                "patron_id": "patron_7c1e0d9a",
                "checkout_date": "2024-01-01T10:30:00",
                "due_date": "2024-01-31",
                "return_date": None,
            }
        },
    )


class Reservation(BaseModel):
    """
    Represents a patron's hold on a title.

    Lifecycle: PENDING -> READY_FOR_PICKUP -> FULFILLED, with CANCELED
    reachable from either of the first two states.
    """

    id: str = Field(
        ...,
        description="Unique identifier for the reservation",
        pattern=r"^reservation_[a-zA-Z0-9]{6,}$",
        examples=["reservation_9b8a7c6d"],
    )

    patron_id: str = Field(
        ...,
        description="ID of the patron who placed the hold",
        pattern=r"^patron_[a-zA-Z0-9_]{6,}$",
    )

    isbn: str = Field(
        ...,
        description="ISBN of the reserved title",
        pattern=r"^\d{13}$",
    )

    status: ReservationStatus = Field(
        default=ReservationStatus.PENDING,
        description="Current status of the reservation",
    )

    created_at: datetime = Field(
        default_factory=datetime.now,
        description="When the hold was placed",
    )

    ready_at: datetime | None = Field(
        None,
        description="When a copy was allocated and the patron notified",
    )

    held_barcode: str | None = Field(
        None,
        description="Barcode of the copy set aside for pickup",
    )

    closed_at: datetime | None = Field(
        None,
        description="When the reservation was fulfilled or canceled",
    )

    @property
    def is_active(self) -> bool:
        """Check whether the hold still awaits a copy or a pickup."""
        return self.status in (ReservationStatus.PENDING, ReservationStatus.READY_FOR_PICKUP)

    def mark_ready(self, barcode: str, when: datetime | None = None) -> None:
        """
        Allocate a returned copy to this reservation.

        Raises:
            ValueError: If the reservation is not pending
        """
        if self.status != ReservationStatus.PENDING:
            raise ValueError("Can only allocate a copy to a pending reservation")

        self.status = ReservationStatus.READY_FOR_PICKUP
        self.held_barcode = barcode
        self.ready_at = when or datetime.now()

    def fulfill(self, when: datetime | None = None) -> None:
        """Mark the reservation as picked up."""
        if self.status != ReservationStatus.READY_FOR_PICKUP:
            raise ValueError("Can only fulfill reservations that are ready for pickup")

        self.status = ReservationStatus.FULFILLED
        self.closed_at = when or datetime.now()

    def cancel(self, when: datetime | None = None) -> None:
        """Withdraw the reservation."""
        if not self.is_active:
            raise ValueError("Cannot cancel completed reservations")

        self.status = ReservationStatus.CANCELED
        self.closed_at = when or datetime.now()

    model_config = ConfigDict(
        validate_assignment=True,
        json_schema_extra={
            "example": {
                "id": "reservation_9b8a7c6d",
                "patron_id": "patron_7c1e0d9a",
                "isbn": "9780441172719",
                "status": "pending",
                "created_at": "2024-01-03T09:00:00",
            }
        },
    )
