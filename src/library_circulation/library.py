"""
Library facade.

Wires the directories, the reservation ledger, the notifier and the
circulation coordinator together, and offers one entry point for cataloging,
registration, search and circulation. The coordinator underneath receives
every collaborator explicitly; the facade only does the assembly.
"""

import logging
from collections.abc import Callable
from datetime import datetime

from .circulation.coordinator import CirculationCoordinator
from .circulation.ledger import ReservationLedger
from .config import CirculationConfig, get_config
from .directories.inventory import InventoryDirectory
from .directories.patrons import PatronDirectory
from .models.circulation import Loan, Reservation
from .models.copy import Copy, CopyStatus
from .models.patron import Patron
from .models.title import Title, TitleCategory
from .notifications import Notifier, PatronAlertNotifier
from .search import SearchField, search_titles

logger = logging.getLogger(__name__)


class Library:
    """A single library's catalog, membership and circulation."""

    def __init__(
        self,
        config: CirculationConfig | None = None,
        notifier: Notifier | None = None,
        clock: Callable[[], datetime] = datetime.now,
    ):
        self.config = config or get_config()
        self.inventory = InventoryDirectory()
        self.patrons = PatronDirectory()
        self.ledger = ReservationLedger()
        self.notifier = notifier or PatronAlertNotifier(self.patrons)
        self.circulation = CirculationCoordinator(
            inventory=self.inventory,
            patrons=self.patrons,
            ledger=self.ledger,
            notifier=self.notifier,
            config=self.config,
            clock=clock,
        )
        logger.info("Library initialized (loan period %d days)", self.config.loan_period_days)

    # === Catalog & membership ===

    def add_title(
        self,
        isbn: str,
        name: str,
        author: str,
        publication_year: int,
        category: TitleCategory = TitleCategory.REGULAR,
    ) -> Title:
        title = Title(
            isbn=isbn,
            name=name,
            author=author,
            publication_year=publication_year,
            category=category,
        )
        return self.inventory.add_title(title)

    def add_copy(self, isbn: str, location: str | None = None, barcode: str | None = None) -> Copy:
        return self.inventory.add_copy(isbn, location=location, barcode=barcode)

    def add_patron(self, name: str, email: str) -> Patron:
        return self.patrons.add_patron(name, email)

    def search(self, query: str, field: SearchField = SearchField.TITLE) -> list[Title]:
        logger.info("Executing %s search with query '%s'", SearchField(field).value, query)
        return search_titles(self.inventory.titles(), query, field)

    # === Circulation ===

    def checkout(self, patron_id: str, barcode: str) -> Loan:
        return self.circulation.checkout(patron_id, barcode)

    def return_copy(self, barcode: str) -> CopyStatus:
        return self.circulation.return_copy(barcode)

    def reserve(self, patron_id: str, isbn: str) -> Reservation:
        return self.circulation.reserve(patron_id, isbn)

    def cancel_reservation(self, reservation_id: str) -> Reservation:
        return self.circulation.cancel_reservation(reservation_id)


class _LibraryStore:
    """Internal storage for the process library used by the tool server."""

    _instance: Library | None = None


def get_library() -> Library:
    """Get or create the process library instance."""
    if _LibraryStore._instance is None:  # type: ignore[reportPrivateUsage]
        _LibraryStore._instance = Library()  # type: ignore[reportPrivateUsage]
    return _LibraryStore._instance  # type: ignore[reportPrivateUsage]


def reset_library(library: Library | None = None) -> None:
    """Replace (or clear) the process library instance."""
    _LibraryStore._instance = library  # type: ignore[reportPrivateUsage]
