"""
MCP tools for the library circulation server.

Every tool is a dictionary with a name, a description, an input schema and an
async handler, collected in ``all_tools`` for registration.
"""

from .catalog import add_copy, add_title, register_patron
from .circulation import (
    cancel_reservation,
    checkout_copy,
    patron_alerts,
    reserve_title,
    return_copy,
)
from .search import search_catalog

all_tools = [
    add_title,
    add_copy,
    register_patron,
    search_catalog,
    checkout_copy,
    return_copy,
    reserve_title,
    cancel_reservation,
    patron_alerts,
]

__all__ = [
    "add_copy",
    "add_title",
    "all_tools",
    "cancel_reservation",
    "checkout_copy",
    "patron_alerts",
    "register_patron",
    "reserve_title",
    "return_copy",
    "search_catalog",
]
