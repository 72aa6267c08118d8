"""
Circulation tools for the library MCP server.

Each tool is a thin adapter over the circulation coordinator:
1. checkout_copy: lend a specific copy to a patron
2. return_copy: take a copy back and hand it to the next waiting patron
3. reserve_title: join the waiting line for a title
4. cancel_reservation: leave the waiting line, or release a held copy
5. patron_alerts: read (and optionally clear) a patron's notifications

Handlers validate their arguments with Pydantic, call the process library,
and return MCP tool results. Expected failures (unknown entity, business rule,
wrong state) become ``isError`` responses with the error text. Consistency
faults are logged with a traceback before being reported.
"""

import logging
from typing import Any

from pydantic import BaseModel, Field, ValidationError, field_validator

from ..errors import CirculationError, ConsistencyError
from ..library import get_library
from ..models.circulation import Loan, Reservation

logger = logging.getLogger(__name__)


def _error(text: str) -> dict[str, Any]:
    return {"isError": True, "content": [{"type": "text", "text": text}]}


def _result(text: str, data: dict[str, Any]) -> dict[str, Any]:
    return {"content": [{"type": "text", "text": text}], "data": data}


def _failure(tool: str, error: Exception) -> dict[str, Any]:
    """Map a circulation failure onto an error response."""
    if isinstance(error, ConsistencyError):
        logger.exception("Consistency fault in %s tool", tool)
        return _error(f"Internal consistency fault: {error}")
    if isinstance(error, CirculationError):
        logger.info("%s failed: %s", tool, error)
        return _error(str(error))
    logger.exception("Unexpected error in %s tool", tool)
    return _error(f"An unexpected error occurred: {error!s}")


def format_loan(loan: Loan) -> dict[str, Any]:
    return {
        "id": loan.id,
        "barcode": loan.barcode,
        "patron_id": loan.patron_id,
        "checkout_date": loan.checkout_date.isoformat(),
        "due_date": loan.due_date.isoformat(),
        "return_date": loan.return_date.isoformat() if loan.return_date else None,
        "loan_period_days": loan.loan_period_days,
    }


def format_reservation(reservation: Reservation) -> dict[str, Any]:
    return {
        "id": reservation.id,
        "patron_id": reservation.patron_id,
        "isbn": reservation.isbn,
        "status": reservation.status.value,
        "created_at": reservation.created_at.isoformat(),
        "held_barcode": reservation.held_barcode,
    }


# =============================================================================
# INPUT SCHEMAS
# =============================================================================


class PatronCopyInput(BaseModel):
    """Input schema for the checkout_copy tool."""

    patron_id: str = Field(
        ...,
        description="Unique identifier of the borrowing patron",
        pattern=r"^patron_[a-zA-Z0-9_]{6,}$",
        examples=["patron_7c1e0d9a"],
    )

    barcode: str = Field(
        ...,
        description="Barcode of the physical copy",
        min_length=3,
        max_length=64,
        examples=["copy_1a2b3c4d"],
    )


class ReturnCopyInput(BaseModel):
    """Input schema for the return_copy tool."""

    barcode: str = Field(
        ...,
        description="Barcode of the copy being returned",
        min_length=3,
        max_length=64,
        examples=["copy_1a2b3c4d"],
    )


class ReserveTitleInput(BaseModel):
    """Input schema for the reserve_title tool."""

    patron_id: str = Field(
        ...,
        description="Unique identifier of the patron placing the hold",
        pattern=r"^patron_[a-zA-Z0-9_]{6,}$",
    )

    isbn: str = Field(
        ...,
        description="ISBN-13 of the title to reserve; hyphens allowed",
        examples=["9780441172719", "978-0441172719"],
    )

    @field_validator("isbn")
    @classmethod
    def normalize_isbn(cls, v: str) -> str:
        normalized = v.strip().replace("-", "")
        if len(normalized) != 13 or not normalized.isdigit():
            raise ValueError("ISBN must be 13 digits")
        return normalized


class CancelReservationInput(BaseModel):
    """Input schema for the cancel_reservation tool."""

    reservation_id: str = Field(
        ...,
        description="ID of the reservation to withdraw",
        pattern=r"^reservation_[a-zA-Z0-9]{6,}$",
    )


class PatronAlertsInput(BaseModel):
    """Input schema for the patron_alerts tool."""

    patron_id: str = Field(
        ...,
        description="Patron whose alerts to read",
        pattern=r"^patron_[a-zA-Z0-9_]{6,}$",
    )

    clear: bool = Field(
        default=False,
        description="Remove the alerts after reading them",
    )


# =============================================================================
# HANDLERS
# =============================================================================


async def checkout_copy_handler(arguments: dict[str, Any]) -> dict[str, Any]:
    """Check out a copy to a patron."""
    try:
        params = PatronCopyInput.model_validate(arguments)
    except ValidationError as e:
        logger.warning("Invalid checkout parameters: %s", e)
        return _error(f"Invalid parameters: {e}")

    try:
        loan = get_library().checkout(params.patron_id, params.barcode)
    except Exception as e:
        return _failure("checkout_copy", e)

    message = (
        f"Checked out copy '{loan.barcode}' to patron '{loan.patron_id}'. "
        f"Due date: {loan.due_date.strftime('%B %d, %Y')} "
        f"({loan.loan_period_days}-day loan)"
    )
    return _result(message, {"loan": format_loan(loan)})


async def return_copy_handler(arguments: dict[str, Any]) -> dict[str, Any]:
    """Return a copy; the next waiting patron, if any, is notified."""
    try:
        params = ReturnCopyInput.model_validate(arguments)
    except ValidationError as e:
        logger.warning("Invalid return parameters: %s", e)
        return _error(f"Invalid parameters: {e}")

    try:
        status, hold = get_library().circulation.check_in(params.barcode)
    except Exception as e:
        return _failure("return_copy", e)

    if hold is not None:
        message = (
            f"Copy '{params.barcode}' returned and held for patron '{hold.patron_id}' "
            f"(reservation {hold.id})"
        )
    else:
        message = f"Copy '{params.barcode}' returned and available"

    return _result(
        message,
        {
            "barcode": params.barcode,
            "status": status.value,
            "reservation": format_reservation(hold) if hold is not None else None,
        },
    )


async def reserve_title_handler(arguments: dict[str, Any]) -> dict[str, Any]:
    """Place a hold on a title."""
    try:
        params = ReserveTitleInput.model_validate(arguments)
    except ValidationError as e:
        logger.warning("Invalid reservation parameters: %s", e)
        return _error(f"Invalid parameters: {e}")

    library = get_library()
    try:
        reservation = library.reserve(params.patron_id, params.isbn)
    except Exception as e:
        return _failure("reserve_title", e)

    position = library.circulation.queue_position(reservation.id)
    return _result(
        f"Reservation {reservation.id} placed for '{params.isbn}' "
        f"(position {position} in queue)",
        {"reservation": format_reservation(reservation), "queue_position": position},
    )


async def cancel_reservation_handler(arguments: dict[str, Any]) -> dict[str, Any]:
    """Withdraw a hold."""
    try:
        params = CancelReservationInput.model_validate(arguments)
    except ValidationError as e:
        logger.warning("Invalid cancellation parameters: %s", e)
        return _error(f"Invalid parameters: {e}")

    try:
        reservation = get_library().cancel_reservation(params.reservation_id)
    except Exception as e:
        return _failure("cancel_reservation", e)

    return _result(
        f"Reservation {reservation.id} canceled",
        {"reservation": format_reservation(reservation)},
    )


async def patron_alerts_handler(arguments: dict[str, Any]) -> dict[str, Any]:
    """Read a patron's pending alerts."""
    try:
        params = PatronAlertsInput.model_validate(arguments)
    except ValidationError as e:
        return _error(f"Invalid parameters: {e}")

    patron = get_library().patrons.get(params.patron_id)
    if patron is None:
        return _error(f"Patron {params.patron_id} not found")

    alerts = patron.clear_alerts() if params.clear else list(patron.alerts)
    message = f"{len(alerts)} alert(s) for patron '{patron.id}'"
    return _result(message, {"patron_id": patron.id, "alerts": alerts})


# =============================================================================
# TOOL REGISTRATION
# =============================================================================

checkout_copy = {
    "name": "checkout_copy",
    "description": (
        "Check out a physical copy to a patron. Reference titles cannot be checked out; "
        "a copy held for a reservation can only be checked out by that patron."
    ),
    "inputSchema": PatronCopyInput.model_json_schema(),
    "handler": checkout_copy_handler,
}

return_copy = {
    "name": "return_copy",
    "description": (
        "Return a borrowed copy. If patrons are waiting for the title, the copy is held "
        "for the first of them and they are notified; otherwise it goes back on the shelf."
    ),
    "inputSchema": ReturnCopyInput.model_json_schema(),
    "handler": return_copy_handler,
}

reserve_title = {
    "name": "reserve_title",
    "description": (
        "Place a hold on a title. Holds are served strictly in the order they were placed."
    ),
    "inputSchema": ReserveTitleInput.model_json_schema(),
    "handler": reserve_title_handler,
}

cancel_reservation = {
    "name": "cancel_reservation",
    "description": (
        "Cancel a reservation. A copy already held for it passes to the next patron in line."
    ),
    "inputSchema": CancelReservationInput.model_json_schema(),
    "handler": cancel_reservation_handler,
}

patron_alerts = {
    "name": "patron_alerts",
    "description": "List a patron's pending notifications, optionally clearing them.",
    "inputSchema": PatronAlertsInput.model_json_schema(),
    "handler": patron_alerts_handler,
}
