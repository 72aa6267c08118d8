"""
Title model for the library catalog.

A Title is the bibliographic identity of a work, keyed by ISBN. Physical
copies reference it by ISBN; circulation never mutates it. Metadata changes go
through ``InventoryDirectory.update_title``.
"""

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, field_validator


class TitleCategory(str, Enum):
    """Lending category of a title."""

    REGULAR = "regular"
    REFERENCE = "reference"


class Title(BaseModel):
    """
    Represents a title in the library catalog.

    The category gates checkout eligibility: reference titles are for
    in-library use and never leave the building.
    """

    isbn: str = Field(
        ...,
        description="International Standard Book Number (ISBN-13 format)",
        pattern=r"^\d{3}-\d{1,5}-\d{1,7}-\d{1,7}-\d{1}$|^[\d-]+$",
        examples=["978-0-441-17271-9", "9780441172719"],
    )

    name: str = Field(
        ...,
        description="The title of the work",
        min_length=1,
        max_length=500,
        examples=["Dune", "The Left Hand of Darkness"],
    )

    author: str = Field(
        ...,
        description="Author name as printed on the title page",
        min_length=1,
        max_length=200,
        examples=["Frank Herbert", "Ursula K. Le Guin"],
    )

    publication_year: int = Field(
        ...,
        description="Year the work was published",
        ge=1450,
        le=datetime.now().year + 1,
        examples=[1965, 1969],
    )

    category: TitleCategory = Field(
        default=TitleCategory.REGULAR,
        description="Lending category; reference titles cannot be checked out",
    )

    created_at: datetime = Field(
        default_factory=datetime.now,
        description="Timestamp when the title was cataloged",
    )

    updated_at: datetime | None = Field(
        default=None,
        description="Timestamp when the title metadata was last updated",
    )

    @field_validator("isbn")
    @classmethod
    def normalize_isbn(cls, v: str) -> str:
        """Normalize ISBN by removing hyphens for consistent lookups."""
        normalized = v.replace("-", "")
        if len(normalized) != 13 or not normalized.isdigit():
            raise ValueError("ISBN must be 13 digits")
        return normalized

    @field_validator("name", "author")
    @classmethod
    def strip_text(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Value must not be blank")
        return v

    def model_post_init(self, __context) -> None:
        """Initialize updated_at to match created_at on creation."""
        if self.updated_at is None:
            self.updated_at = self.created_at

    @property
    def is_reference(self) -> bool:
        """Check whether the title is reference-only."""
        return self.category == TitleCategory.REFERENCE

    model_config = ConfigDict(
        validate_assignment=True,
        json_schema_extra={
            "example": {
                "isbn": "9780441172719",
                "name": "Dune",
                "author": "Frank Herbert",
                "publication_year": 1965,
                "category": "regular",
            }
        },
    )
