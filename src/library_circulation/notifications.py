"""
Patron notifications.

Circulation decides *that* a patron must be told something and *what*; a
Notifier decides how the message travels. The in-process implementation
appends the message to the patron's alert list, where the patron-facing layer
picks it up. An email or SMS transport would implement the same protocol.
"""

import logging
from typing import Protocol

from .directories.patrons import PatronDirectory

logger = logging.getLogger(__name__)


class Notifier(Protocol):
    """Delivery channel for patron messages."""

    def notify(self, patron_id: str, message: str) -> bool:
        """Deliver a message. Returns False when the patron cannot be reached."""
        ...


class PatronAlertNotifier:
    """Deliver messages by queuing them on the patron's alert list."""

    def __init__(self, patrons: PatronDirectory) -> None:
        self.patrons = patrons

    def notify(self, patron_id: str, message: str) -> bool:
        patron = self.patrons.get(patron_id)
        if patron is None:
            logger.warning("Attempted to notify unknown patron %s", patron_id)
            return False

        if not message or not message.strip():
            logger.warning("Attempted to send an empty message to patron %s", patron_id)
            return False

        patron.add_alert(message)
        logger.info("Notification sent to %s (ID: %s): %s", patron.name, patron.id, message)
        return True
