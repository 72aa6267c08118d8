"""
Copy model: one physical, barcoded instance of a Title.

The ``status`` field is owned by the circulation state machine
(``library_circulation.circulation.state``). Catalog and reservation code
read it but never assign it.
"""

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, field_validator


class CopyStatus(str, Enum):
    """Circulation status of a physical copy."""

    AVAILABLE = "available"
    BORROWED = "borrowed"
    RESERVED = "reserved"  # Held for a specific patron
    MAINTENANCE = "maintenance"
    LOST = "lost"


class Copy(BaseModel):
    """Represents a physical copy held by the library."""

    barcode: str = Field(
        ...,
        description="Unique barcode printed on the copy",
        pattern=r"^[A-Za-z0-9_-]{3,64}$",
        examples=["copy_1a2b3c4d", "BC-000123"],
    )

    isbn: str = Field(
        ...,
        description="ISBN of the title this copy belongs to",
        pattern=r"^\d{13}$",
        examples=["9780441172719"],
    )

    status: CopyStatus = Field(
        default=CopyStatus.AVAILABLE,
        description="Current circulation status",
    )

    location: str | None = Field(
        None,
        description="Branch currently holding the copy; None for the main collection",
        max_length=100,
        examples=["main", "branch_eastside"],
    )

    created_at: datetime = Field(
        default_factory=datetime.now,
        description="When the copy was added to inventory",
    )

    updated_at: datetime = Field(
        default_factory=datetime.now,
        description="When the copy record last changed",
    )

    @field_validator("location")
    @classmethod
    def normalize_location(cls, v: str | None) -> str | None:
        if v is None:
            return v
        v = v.strip()
        return v or None

    @property
    def is_available(self) -> bool:
        return self.status == CopyStatus.AVAILABLE

    model_config = ConfigDict(
        validate_assignment=True,
        json_schema_extra={
            "example": {
                "barcode": "copy_1a2b3c4d",
                "isbn": "9780441172719",
                "status": "available",
                "location": "main",
            }
        },
    )
