"""
In-memory directories for catalog and patron data.

Circulation treats these as key-value lookups: ``get`` returns the live entity
or None, and mutations go through the returned instance.
"""

from .inventory import InventoryDirectory, TitleUpdateSchema
from .patrons import PatronContactUpdate, PatronDirectory

__all__ = [
    "InventoryDirectory",
    "PatronContactUpdate",
    "PatronDirectory",
    "TitleUpdateSchema",
]
