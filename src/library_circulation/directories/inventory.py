"""
Inventory directory: the catalog of titles and the physical copies of each.

Lookups return the stored model instance itself, so a status change made by
the circulation coordinator on a copy is visible to every later lookup
without a separate save step. Absent keys come back as ``None``; deciding
whether absence is an error is the caller's job.
"""

import logging
from collections.abc import Iterator
from datetime import datetime
from uuid import uuid4

from pydantic import BaseModel, Field

from ..errors import ConflictError, DuplicateError, NotFoundError
from ..models.copy import Copy, CopyStatus
from ..models.title import Title, TitleCategory

logger = logging.getLogger(__name__)

# Copies in these states are held by a patron or earmarked for one
_IN_CIRCULATION = {CopyStatus.BORROWED, CopyStatus.RESERVED}


class TitleUpdateSchema(BaseModel):
    """Schema for updating title metadata. The ISBN itself is immutable."""

    name: str | None = Field(None, min_length=1, max_length=500)
    author: str | None = Field(None, min_length=1, max_length=200)
    publication_year: int | None = Field(None, ge=1450)
    category: TitleCategory | None = None


class InventoryDirectory:
    """In-memory directory of titles (by ISBN) and copies (by barcode)."""

    def __init__(self) -> None:
        self._titles: dict[str, Title] = {}
        self._copies: dict[str, Copy] = {}

    # === Titles ===

    def add_title(self, title: Title) -> Title:
        """
        Catalog a new title.

        Raises:
            DuplicateError: If a title with the same ISBN exists
        """
        if title.isbn in self._titles:
            logger.warning("Attempted to add duplicate title with ISBN %s", title.isbn)
            raise DuplicateError(f"Title with ISBN {title.isbn} already exists")

        self._titles[title.isbn] = title
        logger.info("Added title to catalog: %s (%s)", title.name, title.isbn)
        return title

    def get_title(self, isbn: str) -> Title | None:
        """Get a title by ISBN (hyphens ignored), or None."""
        return self._titles.get(isbn.replace("-", ""))

    def update_title(self, isbn: str, data: TitleUpdateSchema) -> Title:
        """
        Apply a metadata update to an existing title.

        Raises:
            NotFoundError: If no title has this ISBN
        """
        title = self.get_title(isbn)
        if title is None:
            raise NotFoundError(f"Title {isbn} not found")

        for field, value in data.model_dump(exclude_unset=True, exclude_none=True).items():
            setattr(title, field, value)
        title.updated_at = datetime.now()

        logger.info("Updated title metadata for ISBN %s", title.isbn)
        return title

    def titles(self) -> list[Title]:
        """All cataloged titles, in cataloging order."""
        return list(self._titles.values())

    # === Copies ===

    def add_copy(
        self, isbn: str, location: str | None = None, barcode: str | None = None
    ) -> Copy:
        """
        Add a physical copy of a cataloged title. New copies start AVAILABLE.

        Raises:
            NotFoundError: If the title is not cataloged
            DuplicateError: If the barcode is already in use
        """
        title = self.get_title(isbn)
        if title is None:
            logger.error("Attempted to add a copy for uncataloged ISBN %s", isbn)
            raise NotFoundError(f"Title {isbn} must be cataloged before adding copies")

        barcode = barcode or self._generate_barcode()
        if barcode in self._copies:
            raise DuplicateError(f"Copy with barcode {barcode} already exists")

        copy = Copy(barcode=barcode, isbn=title.isbn, location=location)
        self._copies[barcode] = copy
        logger.info("Added copy %s of '%s'", barcode, title.name)
        return copy

    def get(self, barcode: str) -> Copy | None:
        """Get a copy by barcode, or None."""
        return self._copies.get(barcode)

    def remove_copy(self, barcode: str) -> bool:
        """
        Remove a copy from inventory.

        Returns:
            True if removed, False if no such copy

        Raises:
            ConflictError: If the copy is on loan or held for a patron
        """
        copy = self._copies.get(barcode)
        if copy is None:
            logger.warning("Could not remove copy: no copy with barcode %s", barcode)
            return False

        if copy.status in _IN_CIRCULATION:
            raise ConflictError(
                f"Copy {barcode} cannot be removed while {copy.status.value}"
            )

        del self._copies[barcode]
        logger.info("Removed copy %s", barcode)
        return True

    def copies_of(self, isbn: str) -> list[Copy]:
        """All copies of a title."""
        isbn = isbn.replace("-", "")
        return [copy for copy in self._copies.values() if copy.isbn == isbn]

    def copies_at(self, location: str | None) -> list[Copy]:
        """All copies at a branch; None selects the main collection."""
        return [copy for copy in self._copies.values() if copy.location == location]

    def __iter__(self) -> Iterator[Copy]:
        return iter(list(self._copies.values()))

    def __len__(self) -> int:
        return len(self._copies)

    def _generate_barcode(self) -> str:
        """Generate a unique barcode."""
        while True:
            barcode = f"copy_{uuid4().hex[:8]}"
            if barcode not in self._copies:
                return barcode
