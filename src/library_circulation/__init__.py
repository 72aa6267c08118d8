"""Library circulation and reservation coordinator."""

from .errors import (
    CirculationError,
    ConflictError,
    ConsistencyError,
    DuplicateError,
    InvalidOperationError,
    NotFoundError,
)
from .library import Library, get_library, reset_library

__version__ = "0.1.0"

__all__ = [
    "CirculationError",
    "ConflictError",
    "ConsistencyError",
    "DuplicateError",
    "InvalidOperationError",
    "Library",
    "NotFoundError",
    "__version__",
    "get_library",
    "reset_library",
]
