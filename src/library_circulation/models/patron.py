"""
Patron model for the library.

A patron carries two ordered collections that circulation appends to:
- ``borrowing_history``: every Loan the patron has taken out, oldest first
- ``alerts``: notification messages awaiting the patron, oldest first

The history is append-only. Alerts are drained by the patron-facing layer
(``clear_alerts``), never by circulation itself.
"""

import threading
from datetime import datetime

from pydantic import BaseModel, ConfigDict, EmailStr, Field, PrivateAttr, field_validator

from .circulation import Loan


class Patron(BaseModel):
    """Represents a library member who can borrow copies and place holds."""

    id: str = Field(
        ...,
        description="Unique identifier for the patron",
        pattern=r"^patron_[a-zA-Z0-9_]{6,}$",
        examples=["patron_7c1e0d9a", "patron_doe_jane"],
    )

    name: str = Field(
        ...,
        description="Full name of the patron",
        min_length=2,
        max_length=200,
        examples=["Alice Smith", "Bob Jones"],
    )

    email: EmailStr = Field(
        ...,
        description="Email address for patron notifications",
        examples=["alice@example.com"],
    )

    borrowing_history: list[Loan] = Field(
        default_factory=list,
        description="Every loan taken by the patron, oldest first",
    )

    alerts: list[str] = Field(
        default_factory=list,
        description="Pending notification messages, oldest first",
    )

    created_at: datetime = Field(
        default_factory=datetime.now,
        description="Timestamp when the patron registered",
    )

    updated_at: datetime = Field(
        default_factory=datetime.now,
        description="Timestamp when the patron record was last updated",
    )

    # Notifications arrive from other threads while the patron-facing layer drains
    _alerts_lock: threading.Lock = PrivateAttr(default_factory=threading.Lock)

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: str) -> str:
        if len(v) < 2:
            raise ValueError("Name must be at least 2 characters")
        return v

    @property
    def open_loans(self) -> list[Loan]:
        """Loans the patron has not returned yet."""
        return [loan for loan in self.borrowing_history if loan.is_open]

    def record_loan(self, loan: Loan) -> None:
        """Append a loan to the borrowing history."""
        self.borrowing_history.append(loan)
        self.updated_at = datetime.now()

    def add_alert(self, message: str) -> None:
        """Queue a notification message for the patron."""
        with self._alerts_lock:
            self.alerts.append(message)

    def clear_alerts(self) -> list[str]:
        """Drain and return pending alerts, oldest first."""
        with self._alerts_lock:
            drained = list(self.alerts)
            self.alerts.clear()
        return drained

    model_config = ConfigDict(
        validate_assignment=True,
        # Whitespace around names and emails is never meaningful
        str_strip_whitespace=True,
        extra="forbid",
        json_schema_extra={
            "example": {
                "id": "patron_7c1e0d9a",
                "name": "Alice Smith",
                "email": "alice@example.com",
                "borrowing_history": [],
                "alerts": [],
            }
        },
    )
