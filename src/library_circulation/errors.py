"""
Error taxonomy for library circulation.

Callers distinguish four kinds of failure:

1. **NotFoundError**: a referenced copy, title, patron or reservation is absent
2. **InvalidOperationError**: a business rule forbids the request outright
   (checking out a reference-only title)
3. **ConflictError**: the entity exists but is in the wrong state for the
   requested transition (returning a copy that is not on loan)
4. **ConsistencyError**: an internal invariant is broken. This is a defect,
   not a user error, and is never recovered locally.

The first three are expected outcomes that the tool layer turns into error
responses. ConsistencyError halts the triggering request and propagates.
"""


class CirculationError(Exception):
    """Base exception for circulation operations."""


class NotFoundError(CirculationError):
    """Raised when a referenced entity is not found."""


class InvalidOperationError(CirculationError):
    """Raised when an operation is disallowed by a business rule."""


class ConflictError(CirculationError):
    """Raised when an entity is in the wrong state for the requested transition."""


class DuplicateError(CirculationError):
    """Raised when registering an entity whose key already exists."""


class ConsistencyError(CirculationError):
    """Raised when circulation state violates an internal invariant."""
