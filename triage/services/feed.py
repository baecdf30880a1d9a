"""
Live view of the store, kept current by its subscriptions.

Each push replaces the previous list wholesale; nothing is merged. If a
subscription fails, every read of that collection raises until
resubscribe() is called.
"""
import logging
from typing import List, Optional

from triage.models.records import ComplaintRecord, NotificationRecord
from triage.store import ComplaintStore

logger = logging.getLogger(__name__)


class FeedUnavailableError(Exception):
    """Raised when data cannot be shown because its subscription failed."""
    def __init__(self, message: str, cause: Optional[Exception] = None):
        self.message = message
        self.cause = cause
        super().__init__(self.message)


class SnapshotFeed:
    """Holds the latest complaint and notification snapshots pushed by the store."""

    def __init__(self, store: ComplaintStore):
        self.store = store
        self._complaints: List[ComplaintRecord] = []
        self._notifications: List[NotificationRecord] = []
        self._error: Optional[Exception] = None
        self._notifications_error: Optional[Exception] = None
        self._unsubscribers = []

    def open(self) -> "SnapshotFeed":
        self._error = None
        self._notifications_error = None
        self._unsubscribers = [
            self.store.subscribe(self._on_complaints, self._on_error),
            self.store.subscribe_notifications(self._on_notifications, self._on_notifications_error),
        ]
        return self

    def close(self) -> None:
        for unsubscribe in self._unsubscribers:
            unsubscribe()
        self._unsubscribers = []

    def resubscribe(self) -> "SnapshotFeed":
        """Drop the current subscriptions and start again, clearing any error."""
        self.close()
        return self.open()

    @property
    def error(self) -> Optional[Exception]:
        return self._error

    @property
    def notifications_error(self) -> Optional[Exception]:
        return self._notifications_error

    @property
    def complaints(self) -> List[ComplaintRecord]:
        if self._error is not None:
            raise FeedUnavailableError(
                "Could not load complaints. The complaint store is unavailable.",
                cause=self._error
            )
        return self._complaints

    @property
    def notifications(self) -> List[NotificationRecord]:
        if self._notifications_error is not None:
            raise FeedUnavailableError(
                "Could not load notifications. The complaint store is unavailable.",
                cause=self._notifications_error
            )
        return self._notifications

    def find(self, complaint_id: str) -> Optional[ComplaintRecord]:
        for complaint in self.complaints:
            if complaint.id == complaint_id:
                return complaint
        return None

    def _on_complaints(self, complaints: List[ComplaintRecord]) -> None:
        self._complaints = complaints

    def _on_notifications(self, notifications: List[NotificationRecord]) -> None:
        self._notifications = notifications

    def _on_error(self, error: Exception) -> None:
        logger.error("Complaint subscription failed: %s", error)
        self._error = error

    def _on_notifications_error(self, error: Exception) -> None:
        logger.error("Notification subscription failed: %s", error)
        self._notifications_error = error
