"""
Tests for the library models.

These tests verify that the models:
1. Normalize and validate identifiers (ISBN, barcode, IDs)
2. Enforce date relationships on loans
3. Guard reservation lifecycle transitions
4. Keep patron alerts and borrowing history in order
"""

from concurrent.futures import ThreadPoolExecutor
from datetime import date, datetime, timedelta

import pytest
from pydantic import ValidationError

from library_circulation.models import (
    Copy,
    CopyStatus,
    Loan,
    Patron,
    Reservation,
    ReservationStatus,
    Title,
    TitleCategory,
)


def make_loan(**overrides) -> Loan:
    checkout = datetime(2024, 3, 1, 10, 0)
    data = {
        "id": "loan_a1b2c3d4e5f6",
        "barcode": "DUNE-001",
        "patron_id": "patron_smith001",
        "checkout_date": checkout,
        "due_date": checkout.date() + timedelta(days=30),
    }
    data.update(overrides)
    return Loan(**data)


class TestTitle:
    """Test suite for Title model."""

    def test_create_valid_title(self):
        title = Title(
            isbn="978-0-441-17271-9",
            name="  Dune ",
            author="Frank Herbert",
            publication_year=1965,
        )

        assert title.isbn == "9780441172719"
        assert title.name == "Dune"
        assert title.category == TitleCategory.REGULAR
        assert not title.is_reference
        assert title.updated_at == title.created_at

    def test_reference_category(self):
        title = Title(
            isbn="9780198149811",
            name="The Times Atlas",
            author="Various",
            publication_year=2014,
            category="reference",
        )

        assert title.is_reference

    @pytest.mark.parametrize("isbn", ["12345", "97804411727190", "978044117271X", ""])
    def test_invalid_isbn(self, isbn):
        with pytest.raises(ValidationError):
            Title(isbn=isbn, name="Dune", author="Frank Herbert", publication_year=1965)

    def test_blank_author_rejected(self):
        with pytest.raises(ValidationError, match="must not be blank"):
            Title(isbn="9780441172719", name="Dune", author="   ", publication_year=1965)

    def test_publication_year_bounds(self):
        with pytest.raises(ValidationError):
            Title(isbn="9780441172719", name="Dune", author="F. H.", publication_year=1200)

        with pytest.raises(ValidationError):
            Title(
                isbn="9780441172719",
                name="Dune",
                author="F. H.",
                publication_year=datetime.now().year + 5,
            )


class TestCopy:
    """Test suite for Copy model."""

    def test_new_copy_is_available(self):
        copy = Copy(barcode="DUNE-001", isbn="9780441172719")

        assert copy.status == CopyStatus.AVAILABLE
        assert copy.is_available
        assert copy.location is None

    def test_blank_location_normalized(self):
        copy = Copy(barcode="DUNE-001", isbn="9780441172719", location="  ")

        assert copy.location is None

    @pytest.mark.parametrize("barcode", ["AB", "has space", "semi;colon"])
    def test_invalid_barcode(self, barcode):
        with pytest.raises(ValidationError):
            Copy(barcode=barcode, isbn="9780441172719")

    def test_status_assignment_validated(self):
        copy = Copy(barcode="DUNE-001", isbn="9780441172719")

        with pytest.raises(ValidationError):
            copy.status = "on_the_moon"


class TestLoan:
    """Test suite for Loan model."""

    def test_create_valid_loan(self):
        loan = make_loan()

        assert loan.is_open
        assert loan.loan_period_days == 30
        assert loan.return_date is None

    def test_due_date_must_follow_checkout(self):
        with pytest.raises(ValidationError, match="Due date must be after checkout date"):
            make_loan(due_date=date(2024, 3, 1))

    def test_invalid_loan_id(self):
        with pytest.raises(ValidationError):
            make_loan(id="checkout_123")

    def test_is_overdue(self):
        loan = make_loan()

        assert not loan.is_overdue(date(2024, 3, 31))
        assert loan.is_overdue(date(2024, 4, 1))

    def test_closed_loan_never_overdue(self):
        loan = make_loan()
        loan.close(datetime(2024, 5, 1))

        assert not loan.is_overdue(date(2024, 6, 1))

    def test_close(self):
        loan = make_loan()
        returned = datetime(2024, 3, 10, 16, 0)

        loan.close(returned)

        assert not loan.is_open
        assert loan.return_date == returned

    def test_close_twice_rejected(self):
        loan = make_loan()
        loan.close(datetime(2024, 3, 10))

        with pytest.raises(ValueError, match="already closed"):
            loan.close(datetime(2024, 3, 11))

    def test_return_before_checkout_rejected(self):
        loan = make_loan()

        with pytest.raises(ValidationError, match="Return date cannot be before checkout date"):
            loan.close(datetime(2024, 2, 1))


class TestReservation:
    """Test suite for Reservation model."""

    @pytest.fixture
    def reservation(self):
        return Reservation(
            id="reservation_9b8a7c6d5e4f",
            patron_id="patron_smith001",
            isbn="9780441172719",
        )

    def test_new_reservation_pending(self, reservation):
        assert reservation.status == ReservationStatus.PENDING
        assert reservation.is_active
        assert reservation.held_barcode is None

    def test_full_lifecycle(self, reservation):
        reservation.mark_ready("DUNE-001", datetime(2024, 3, 5))
        assert reservation.status == ReservationStatus.READY_FOR_PICKUP
        assert reservation.held_barcode == "DUNE-001"
        assert reservation.ready_at == datetime(2024, 3, 5)

        reservation.fulfill(datetime(2024, 3, 6))
        assert reservation.status == ReservationStatus.FULFILLED
        assert reservation.closed_at == datetime(2024, 3, 6)
        assert not reservation.is_active

    def test_fulfill_requires_ready(self, reservation):
        with pytest.raises(ValueError, match="ready for pickup"):
            reservation.fulfill()

    def test_mark_ready_requires_pending(self, reservation):
        reservation.mark_ready("DUNE-001")

        with pytest.raises(ValueError, match="pending"):
            reservation.mark_ready("DUNE-002")

    def test_cancel_from_ready(self, reservation):
        reservation.mark_ready("DUNE-001")
        reservation.cancel()

        assert reservation.status == ReservationStatus.CANCELED
        assert reservation.closed_at is not None

    def test_cannot_cancel_completed(self, reservation):
        reservation.cancel()

        with pytest.raises(ValueError, match="Cannot cancel completed reservations"):
            reservation.cancel()

    def test_invalid_isbn(self):
        with pytest.raises(ValidationError):
            Reservation(
                id="reservation_9b8a7c6d5e4f",
                patron_id="patron_smith001",
                isbn="978-0441172719",
            )


class TestPatron:
    """Test suite for Patron model."""

    @pytest.fixture
    def patron(self):
        return Patron(id="patron_smith001", name=" Alice Smith ", email="alice@example.com")

    def test_whitespace_stripped(self, patron):
        assert patron.name == "Alice Smith"

    def test_invalid_email(self):
        with pytest.raises(ValidationError):
            Patron(id="patron_smith001", name="Alice Smith", email="not-an-email")

    def test_extra_fields_forbidden(self):
        with pytest.raises(ValidationError):
            Patron(
                id="patron_smith001",
                name="Alice Smith",
                email="alice@example.com",
                borrowing_limit=5,
            )

    def test_alerts_kept_in_order_and_drained(self, patron):
        patron.add_alert("first")
        patron.add_alert("second")

        assert patron.alerts == ["first", "second"]
        assert patron.clear_alerts() == ["first", "second"]
        assert patron.alerts == []

    def test_alerts_not_lost_while_draining(self, patron):
        senders, per_sender = 4, 250
        drained = []

        def send(n):
            for i in range(per_sender):
                patron.add_alert(f"{n}-{i}")

        with ThreadPoolExecutor(max_workers=senders + 1) as pool:
            futures = [pool.submit(send, n) for n in range(senders)]
            while not all(f.done() for f in futures):
                drained.extend(patron.clear_alerts())
            for f in futures:
                f.result()
        drained.extend(patron.clear_alerts())

        assert len(drained) == senders * per_sender
        assert len(set(drained)) == senders * per_sender
        assert patron.alerts == []

    def test_open_loans(self, patron):
        first = make_loan(id="loan_000000000001", patron_id=patron.id)
        second = make_loan(id="loan_000000000002", patron_id=patron.id)
        patron.record_loan(first)
        patron.record_loan(second)
        first.close(datetime(2024, 3, 5))

        assert patron.borrowing_history == [first, second]
        assert patron.open_loans == [second]
