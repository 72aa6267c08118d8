"""
Catalog search tool for the library MCP server.

Matches a query against one title field (name, author or ISBN) and reports
how many copies of each hit are on the shelf.
"""

import logging
from typing import Any

from pydantic import BaseModel, Field, ValidationError, field_validator

from ..library import Library, get_library
from ..models.copy import CopyStatus
from ..models.title import Title
from ..search import SearchField

logger = logging.getLogger(__name__)


class SearchCatalogInput(BaseModel):
    """Input schema for the search_catalog tool."""

    query: str = Field(
        ...,
        description="Text to look for in the chosen field",
        min_length=1,
        max_length=200,
        examples=["dune", "herbert", "978-0441172719"],
    )

    field: SearchField = Field(
        default=SearchField.TITLE,
        description="Field to match against: title, author or isbn",
    )

    @field_validator("query")
    @classmethod
    def strip_whitespace(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Query must not be blank")
        return v


def format_title(library: Library, title: Title) -> dict[str, Any]:
    copies = library.inventory.copies_of(title.isbn)
    return {
        "isbn": title.isbn,
        "name": title.name,
        "author": title.author,
        "publication_year": title.publication_year,
        "category": title.category.value,
        "total_copies": len(copies),
        "available_copies": sum(1 for c in copies if c.status == CopyStatus.AVAILABLE),
        "waiting_patrons": library.ledger.queue_length(title.isbn),
    }


async def search_catalog_handler(arguments: dict[str, Any]) -> dict[str, Any]:
    """Handler for the search_catalog tool."""
    try:
        params = SearchCatalogInput.model_validate(arguments)
    except ValidationError as e:
        logger.warning("Invalid search parameters: %s", e)
        return {
            "isError": True,
            "content": [{"type": "text", "text": f"Invalid search parameters: {e}"}],
        }

    try:
        library = get_library()
        titles = library.search(params.query, params.field)
        results = [format_title(library, title) for title in titles]
    except Exception as e:
        logger.exception("Unexpected error in search_catalog tool")
        return {
            "isError": True,
            "content": [{"type": "text", "text": f"An unexpected error occurred: {e!s}"}],
        }

    if not results:
        message = "No titles found matching your search."
    else:
        message = f"Found {len(results)} title(s) matching your search"

    return {
        "content": [{"type": "text", "text": message}],
        "data": {"titles": results},
    }


search_catalog = {
    "name": "search_catalog",
    "description": (
        "Search the catalog by title, author or ISBN (case-insensitive substring match). "
        "Results include copy availability and the length of the waiting line."
    ),
    "inputSchema": SearchCatalogInput.model_json_schema(),
    "handler": search_catalog_handler,
}
