"""
Patron directory: registration and lookup of library members.

Like the inventory directory, ``get`` hands back the stored Patron instance.
Loans appended to its history and alerts queued by the notifier are therefore
visible through any later lookup.
"""

import logging
from datetime import datetime
from uuid import uuid4

from pydantic import BaseModel, EmailStr, Field

from ..errors import DuplicateError, NotFoundError
from ..models.patron import Patron

logger = logging.getLogger(__name__)


class PatronContactUpdate(BaseModel):
    """Schema for updating patron contact details."""

    name: str | None = Field(None, min_length=2, max_length=200)
    email: EmailStr | None = None


class PatronDirectory:
    """In-memory directory of patrons keyed by patron ID."""

    def __init__(self) -> None:
        self._patrons: dict[str, Patron] = {}

    def add_patron(self, name: str, email: str, patron_id: str | None = None) -> Patron:
        """
        Register a new patron.

        Raises:
            DuplicateError: If the email (case-insensitive) or ID is already in use
            pydantic.ValidationError: If name or email are malformed
        """
        if self._email_in_use(email):
            logger.warning("Attempted to add patron with duplicate email: %s", email)
            raise DuplicateError("A patron with this email already exists")

        patron_id = patron_id or self._generate_patron_id()
        if patron_id in self._patrons:
            raise DuplicateError(f"Patron {patron_id} already exists")

        patron = Patron(id=patron_id, name=name, email=email)
        self._patrons[patron.id] = patron
        logger.info("Added new patron: %s (ID: %s)", patron.name, patron.id)
        return patron

    def get(self, patron_id: str) -> Patron | None:
        """Get a patron by ID, or None."""
        return self._patrons.get(patron_id)

    def update_contact(self, patron_id: str, data: PatronContactUpdate) -> Patron:
        """
        Update a patron's name or email.

        Raises:
            NotFoundError: If the patron does not exist
            DuplicateError: If the new email belongs to another patron
        """
        patron = self.get(patron_id)
        if patron is None:
            raise NotFoundError(f"Patron {patron_id} not found")

        if data.email is not None and self._email_in_use(data.email, exclude=patron_id):
            raise DuplicateError("A patron with this email already exists")

        for field, value in data.model_dump(exclude_unset=True, exclude_none=True).items():
            setattr(patron, field, value)
        patron.updated_at = datetime.now()

        logger.info("Updated contact information for patron %s", patron_id)
        return patron

    def patrons(self) -> list[Patron]:
        """All registered patrons, in registration order."""
        return list(self._patrons.values())

    def __len__(self) -> int:
        return len(self._patrons)

    def _email_in_use(self, email: str, exclude: str | None = None) -> bool:
        needle = email.strip().lower()
        return any(
            patron.email.lower() == needle
            for patron in self._patrons.values()
            if patron.id != exclude
        )

    def _generate_patron_id(self) -> str:
        while True:
            patron_id = f"patron_{uuid4().hex[:8]}"
            if patron_id not in self._patrons:
                return patron_id
