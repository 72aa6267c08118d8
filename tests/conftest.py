"""Test configuration and fixtures for the library circulation server.

Every test gets:
1. An isolated configuration (the process-wide one is reset around it)
2. A fresh in-memory Library with a frozen clock
3. Logfire configured locally so spans are created but never exported
"""

from collections.abc import Generator
from datetime import datetime, timedelta

import logfire
import pytest

from library_circulation.config import CirculationConfig, reset_config
from library_circulation.library import Library, reset_library
from library_circulation.models.copy import Copy
from library_circulation.models.patron import Patron
from library_circulation.models.title import Title, TitleCategory

DUNE_ISBN = "9780441172719"
ATLAS_ISBN = "9780198149811"


class FrozenClock:
    """Clock that only moves when a test advances it."""

    def __init__(self, start: datetime):
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> datetime:
        self.now += timedelta(**kwargs)
        return self.now


class RecordingNotifier:
    """Notifier that records every message instead of delivering it."""

    def __init__(self) -> None:
        self.sent: list[tuple[str, str]] = []

    def notify(self, patron_id: str, message: str) -> bool:
        self.sent.append((patron_id, message))
        return True


class FailingNotifier:
    """Notifier whose transport is down."""

    def __init__(self) -> None:
        self.attempts = 0

    def notify(self, patron_id: str, message: str) -> bool:
        self.attempts += 1
        raise ConnectionError("notification gateway unreachable")


# === Session setup ===


@pytest.fixture(autouse=True, scope="session")
def local_logfire() -> None:
    """Keep spans in-process for the whole test run."""
    logfire.configure(send_to_logfire=False, console=False)


# === Configuration fixtures ===


@pytest.fixture
def test_config() -> Generator[CirculationConfig, None, None]:
    """Provide an isolated configuration with a 30 day loan period."""
    reset_config()

    config = CirculationConfig(
        service_name="test-library-circulation",
        service_version="0.0.1-test",
        loan_period_days=30,
        debug=True,
    )

    yield config

    reset_config()


# === Library fixtures ===


@pytest.fixture
def clock() -> FrozenClock:
    return FrozenClock(datetime(2024, 3, 1, 10, 0, 0))


@pytest.fixture
def library(test_config: CirculationConfig, clock: FrozenClock) -> Library:
    """A fresh library using in-process patron alerts for notifications."""
    return Library(config=test_config, clock=clock)


@pytest.fixture
def recording_notifier() -> RecordingNotifier:
    return RecordingNotifier()


@pytest.fixture
def recorded_library(
    test_config: CirculationConfig, clock: FrozenClock, recording_notifier: RecordingNotifier
) -> Library:
    """A fresh library whose notifications are captured for inspection."""
    return Library(config=test_config, notifier=recording_notifier, clock=clock)


@pytest.fixture
def dune(library: Library) -> Title:
    return library.add_title(DUNE_ISBN, "Dune", "Frank Herbert", 1965)


@pytest.fixture
def dune_copies(library: Library, dune: Title) -> list[Copy]:
    return [
        library.add_copy(dune.isbn, barcode="DUNE-001"),
        library.add_copy(dune.isbn, barcode="DUNE-002"),
    ]


@pytest.fixture
def atlas_copy(library: Library) -> Copy:
    """A copy of a reference-only title."""
    library.add_title(
        ATLAS_ISBN, "The Times Atlas", "Various", 2014, category=TitleCategory.REFERENCE
    )
    return library.add_copy(ATLAS_ISBN, barcode="ATLAS-001")


@pytest.fixture
def alice(library: Library) -> Patron:
    return library.add_patron("Alice Smith", "alice@example.com")


@pytest.fixture
def bob(library: Library) -> Patron:
    return library.add_patron("Bob Jones", "bob@example.com")


@pytest.fixture
def carol(library: Library) -> Patron:
    return library.add_patron("Carol White", "carol@example.com")


@pytest.fixture
def process_library(library: Library) -> Generator[Library, None, None]:
    """Install the test library as the one the MCP tools operate on."""
    reset_library(library)
    yield library
    reset_library()


@pytest.fixture
def failing_notifier() -> FailingNotifier:
    return FailingNotifier()


@pytest.fixture
def failing_library(
    test_config: CirculationConfig, clock: FrozenClock, failing_notifier: FailingNotifier
) -> Library:
    """A fresh library whose notification transport always raises."""
    return Library(config=test_config, notifier=failing_notifier, clock=clock)
