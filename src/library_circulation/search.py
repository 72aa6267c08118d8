"""
Title search.

Matching is a case-insensitive substring test on one field. ISBN queries
ignore hyphens so "978-0441172719" finds "9780441172719".
"""

from collections.abc import Iterable
from enum import Enum

from .models.title import Title


class SearchField(str, Enum):
    """Field a search query is matched against."""

    TITLE = "title"
    AUTHOR = "author"
    ISBN = "isbn"


def _matches(title: Title, needle: str, field: SearchField) -> bool:
    if field == SearchField.TITLE:
        return needle in title.name.lower()
    if field == SearchField.AUTHOR:
        return needle in title.author.lower()
    return needle.replace("-", "") in title.isbn


def search_titles(
    titles: Iterable[Title], query: str, field: SearchField = SearchField.TITLE
) -> list[Title]:
    """Return the titles whose ``field`` contains ``query``, in input order."""
    needle = query.strip().lower()
    if not needle:
        return []
    field = SearchField(field)
    return [title for title in titles if _matches(title, needle, field)]
