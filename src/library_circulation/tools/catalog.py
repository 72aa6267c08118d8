"""
Catalog and membership tools for the library MCP server.

These tools populate the process library so the circulation tools have
something to work with:
1. add_title: catalog a new title
2. add_copy: add a physical copy of a cataloged title
3. register_patron: enroll a new borrower
"""

import logging
from typing import Any

from pydantic import BaseModel, EmailStr, Field, ValidationError, field_validator

from ..library import get_library
from ..models.copy import Copy
from ..models.patron import Patron
from ..models.title import Title, TitleCategory
from .circulation import _error, _failure, _result

logger = logging.getLogger(__name__)


def format_cataloged_title(title: Title) -> dict[str, Any]:
    return {
        "isbn": title.isbn,
        "name": title.name,
        "author": title.author,
        "publication_year": title.publication_year,
        "category": title.category.value,
    }


def format_copy(copy: Copy) -> dict[str, Any]:
    return {
        "barcode": copy.barcode,
        "isbn": copy.isbn,
        "status": copy.status.value,
        "location": copy.location,
    }


def format_patron(patron: Patron) -> dict[str, Any]:
    return {
        "id": patron.id,
        "name": patron.name,
        "email": patron.email,
    }


class AddTitleInput(BaseModel):
    """Input schema for the add_title tool."""

    isbn: str = Field(
        ...,
        description="ISBN-13 of the title; hyphens allowed",
        examples=["9780441172719", "978-0-441-17271-9"],
    )

    name: str = Field(
        ...,
        description="The title of the work",
        min_length=1,
        max_length=500,
        examples=["Dune"],
    )

    author: str = Field(
        ...,
        description="Author name as printed on the title page",
        min_length=1,
        max_length=200,
        examples=["Frank Herbert"],
    )

    publication_year: int = Field(
        ...,
        description="Year the work was published",
        ge=1450,
        examples=[1965],
    )

    category: TitleCategory = Field(
        default=TitleCategory.REGULAR,
        description="Lending category: regular, or reference for in-library use only",
    )

    @field_validator("isbn")
    @classmethod
    def normalize_isbn(cls, v: str) -> str:
        normalized = v.strip().replace("-", "")
        if len(normalized) != 13 or not normalized.isdigit():
            raise ValueError("ISBN must be 13 digits")
        return normalized


class AddCopyInput(BaseModel):
    """Input schema for the add_copy tool."""

    isbn: str = Field(
        ...,
        description="ISBN-13 of the cataloged title this copy belongs to",
        examples=["9780441172719"],
    )

    location: str | None = Field(
        default=None,
        description="Branch or shelf where the copy is kept",
        max_length=200,
        examples=["Main Branch"],
    )

    barcode: str | None = Field(
        default=None,
        description="Barcode printed on the copy; generated when omitted",
        pattern=r"^[A-Za-z0-9_-]{3,64}$",
        examples=["DUNE-001"],
    )

    @field_validator("isbn")
    @classmethod
    def normalize_isbn(cls, v: str) -> str:
        normalized = v.strip().replace("-", "")
        if len(normalized) != 13 or not normalized.isdigit():
            raise ValueError("ISBN must be 13 digits")
        return normalized


class RegisterPatronInput(BaseModel):
    """Input schema for the register_patron tool."""

    name: str = Field(
        ...,
        description="Full name of the patron",
        min_length=2,
        max_length=200,
        examples=["Alice Smith"],
    )

    email: EmailStr = Field(
        ...,
        description="Contact email; must be unique among patrons",
        examples=["alice@example.com"],
    )


async def add_title_handler(arguments: dict[str, Any]) -> dict[str, Any]:
    """Catalog a new title."""
    try:
        params = AddTitleInput.model_validate(arguments)
    except ValidationError as e:
        logger.warning("Invalid title parameters: %s", e)
        return _error(f"Invalid parameters: {e}")

    try:
        title = get_library().add_title(
            params.isbn,
            params.name,
            params.author,
            params.publication_year,
            params.category,
        )
    except ValidationError as e:
        return _error(f"Invalid parameters: {e}")
    except Exception as e:
        return _failure("add_title", e)

    return _result(
        f"Cataloged '{title.name}' by {title.author} (ISBN {title.isbn})",
        {"title": format_cataloged_title(title)},
    )


async def add_copy_handler(arguments: dict[str, Any]) -> dict[str, Any]:
    """Add a physical copy of a cataloged title."""
    try:
        params = AddCopyInput.model_validate(arguments)
    except ValidationError as e:
        logger.warning("Invalid copy parameters: %s", e)
        return _error(f"Invalid parameters: {e}")

    try:
        copy = get_library().add_copy(params.isbn, location=params.location, barcode=params.barcode)
    except Exception as e:
        return _failure("add_copy", e)

    return _result(
        f"Added copy '{copy.barcode}' of ISBN {copy.isbn}",
        {"copy": format_copy(copy)},
    )


async def register_patron_handler(arguments: dict[str, Any]) -> dict[str, Any]:
    """Register a new patron."""
    try:
        params = RegisterPatronInput.model_validate(arguments)
    except ValidationError as e:
        logger.warning("Invalid patron parameters: %s", e)
        return _error(f"Invalid parameters: {e}")

    try:
        patron = get_library().add_patron(params.name, str(params.email))
    except ValidationError as e:
        return _error(f"Invalid parameters: {e}")
    except Exception as e:
        return _failure("register_patron", e)

    return _result(
        f"Registered patron '{patron.name}' with ID {patron.id}",
        {"patron": format_patron(patron)},
    )


add_title = {
    "name": "add_title",
    "description": (
        "Catalog a new title. Reference titles can be searched but never checked out."
    ),
    "inputSchema": AddTitleInput.model_json_schema(),
    "handler": add_title_handler,
}

add_copy = {
    "name": "add_copy",
    "description": (
        "Add a physical copy of a cataloged title. New copies go straight on the shelf."
    ),
    "inputSchema": AddCopyInput.model_json_schema(),
    "handler": add_copy_handler,
}

register_patron = {
    "name": "register_patron",
    "description": "Register a new patron. The returned ID is used by the circulation tools.",
    "inputSchema": RegisterPatronInput.model_json_schema(),
    "handler": register_patron_handler,
}
