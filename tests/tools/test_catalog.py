"""
Tests for catalog tools (add_title, add_copy, register_patron).

A fresh process library starts empty, so these tools are the only way an MCP
client can give the circulation tools anything to work on.
"""

import pytest

from library_circulation.models.copy import CopyStatus
from library_circulation.models.title import TitleCategory
from library_circulation.tools.catalog import (
    add_copy_handler,
    add_title_handler,
    register_patron_handler,
)
from library_circulation.tools.circulation import (
    checkout_copy_handler,
    reserve_title_handler,
    return_copy_handler,
)
from library_circulation.tools.search import search_catalog_handler

NEUROMANCER = {
    "isbn": "978-0-441-56959-5",
    "name": "Neuromancer",
    "author": "William Gibson",
    "publication_year": 1984,
}


def error_text(result):
    assert result.get("isError") is True
    return result["content"][0]["text"]


@pytest.fixture
def empty_desk(process_library):
    """Process library with nothing cataloged."""
    return process_library


class TestAddTitleTool:
    """Test the add_title MCP tool."""

    async def test_add_title_success(self, empty_desk):
        result = await add_title_handler(NEUROMANCER)

        assert "isError" not in result
        assert "Cataloged 'Neuromancer' by William Gibson" in result["content"][0]["text"]
        assert result["data"]["title"] == {
            "isbn": "9780441569595",
            "name": "Neuromancer",
            "author": "William Gibson",
            "publication_year": 1984,
            "category": "regular",
        }
        assert empty_desk.inventory.get_title("9780441569595") is not None

    async def test_add_reference_title(self, empty_desk):
        result = await add_title_handler({**NEUROMANCER, "category": "reference"})

        assert result["data"]["title"]["category"] == "reference"
        title = empty_desk.inventory.get_title("9780441569595")
        assert title.category == TitleCategory.REFERENCE

    async def test_duplicate_isbn(self, empty_desk):
        await add_title_handler(NEUROMANCER)

        result = await add_title_handler({**NEUROMANCER, "name": "Neuromancer (reissue)"})

        assert error_text(result) == "Title with ISBN 9780441569595 already exists"
        assert empty_desk.inventory.get_title("9780441569595").name == "Neuromancer"

    @pytest.mark.parametrize(
        "overrides",
        [
            {"isbn": "12345"},
            {"name": ""},
            {"publication_year": 1200},
            {"category": "rare"},
        ],
    )
    async def test_invalid_parameters(self, empty_desk, overrides):
        result = await add_title_handler({**NEUROMANCER, **overrides})

        assert error_text(result).startswith("Invalid parameters")
        assert empty_desk.inventory.titles() == []

    async def test_future_publication_year(self, empty_desk):
        result = await add_title_handler({**NEUROMANCER, "publication_year": 3000})

        assert error_text(result).startswith("Invalid parameters")
        assert empty_desk.inventory.titles() == []


class TestAddCopyTool:
    """Test the add_copy MCP tool."""

    async def test_add_copy_with_barcode(self, empty_desk):
        await add_title_handler(NEUROMANCER)

        result = await add_copy_handler(
            {"isbn": "9780441569595", "barcode": "NEURO-001", "location": "Main Branch"}
        )

        assert "isError" not in result
        assert result["data"]["copy"] == {
            "barcode": "NEURO-001",
            "isbn": "9780441569595",
            "status": "available",
            "location": "Main Branch",
        }
        assert empty_desk.inventory.get("NEURO-001").status == CopyStatus.AVAILABLE

    async def test_add_copy_generates_barcode(self, empty_desk):
        await add_title_handler(NEUROMANCER)

        result = await add_copy_handler({"isbn": "978-0441569595"})

        barcode = result["data"]["copy"]["barcode"]
        assert empty_desk.inventory.get(barcode) is not None

    async def test_copy_of_uncataloged_title(self, empty_desk):
        result = await add_copy_handler({"isbn": "9780441569595", "barcode": "NEURO-001"})

        assert "must be cataloged" in error_text(result)
        assert empty_desk.inventory.get("NEURO-001") is None

    async def test_duplicate_barcode(self, empty_desk):
        await add_title_handler(NEUROMANCER)
        await add_copy_handler({"isbn": "9780441569595", "barcode": "NEURO-001"})

        result = await add_copy_handler({"isbn": "9780441569595", "barcode": "NEURO-001"})

        assert error_text(result) == "Copy with barcode NEURO-001 already exists"

    async def test_invalid_barcode(self, empty_desk):
        await add_title_handler(NEUROMANCER)

        result = await add_copy_handler({"isbn": "9780441569595", "barcode": "no spaces"})

        assert error_text(result).startswith("Invalid parameters")


class TestRegisterPatronTool:
    """Test the register_patron MCP tool."""

    async def test_register_success(self, empty_desk):
        result = await register_patron_handler({"name": "Dana Reed", "email": "dana@example.com"})

        assert "isError" not in result
        patron = result["data"]["patron"]
        assert patron["name"] == "Dana Reed"
        assert patron["email"] == "dana@example.com"
        assert patron["id"].startswith("patron_")
        assert f"ID {patron['id']}" in result["content"][0]["text"]
        assert empty_desk.patrons.get(patron["id"]) is not None

    async def test_duplicate_email(self, empty_desk):
        await register_patron_handler({"name": "Dana Reed", "email": "dana@example.com"})

        result = await register_patron_handler({"name": "Dana R.", "email": "dana@example.com"})

        assert error_text(result) == "A patron with this email already exists"
        assert len(empty_desk.patrons) == 1

    @pytest.mark.parametrize(
        "arguments",
        [
            {"name": "D", "email": "dana@example.com"},
            {"name": "Dana Reed", "email": "not-an-email"},
            {"name": "Dana Reed"},
        ],
    )
    async def test_invalid_parameters(self, empty_desk, arguments):
        result = await register_patron_handler(arguments)

        assert error_text(result).startswith("Invalid parameters")
        assert len(empty_desk.patrons) == 0


class TestCatalogThenCirculate:
    """A client builds the catalog over the tools and then circulates a copy."""

    async def test_full_desk_session(self, empty_desk):
        await add_title_handler(NEUROMANCER)
        await add_copy_handler({"isbn": "9780441569595", "barcode": "NEURO-001"})
        first = await register_patron_handler({"name": "Dana Reed", "email": "dana@example.com"})
        second = await register_patron_handler({"name": "Eli Park", "email": "eli@example.com"})
        dana = first["data"]["patron"]["id"]
        eli = second["data"]["patron"]["id"]

        found = await search_catalog_handler({"query": "gibson", "field": "author"})
        assert "isError" not in found

        checkout = await checkout_copy_handler({"patron_id": dana, "barcode": "NEURO-001"})
        assert "isError" not in checkout

        await reserve_title_handler({"patron_id": eli, "isbn": "9780441569595"})
        returned = await return_copy_handler({"barcode": "NEURO-001"})

        assert returned["data"]["status"] == "reserved"
        assert returned["data"]["reservation"]["patron_id"] == eli
        assert empty_desk.patrons.get(eli).alerts == [
            "Your reserved book 'Neuromancer' is ready for pickup!"
        ]
