"""
Document store for complaints and notifications.

The store is the only owner of persisted records. Callers never get ORM
objects back: they subscribe and receive the full, newest-first list of
detached records on subscribe and after every committed write.
"""
import logging
import threading
from datetime import datetime
from typing import Callable, List, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import selectinload, sessionmaker

from triage.models.audit import AuditLogEntry, AuditAction
from triage.models.domain import Complaint, Notification, new_document_id
from triage.models.enums import Status
from triage.models.records import (
    AuditEntryDraft,
    AuditLogRecord,
    ComplaintRecord,
    Location,
    NewComplaint,
    NotificationRecord,
)

logger = logging.getLogger(__name__)

# Fields a partial update may touch. Everything else is immutable after creation.
UPDATABLE_FIELDS = frozenset({"status", "urgency", "category", "department", "assigned_to"})


class StoreWriteError(Exception):
    """Raised when a write could not be committed. Nothing is retried."""
    def __init__(self, message: str):
        self.message = message
        super().__init__(self.message)


class ComplaintNotFoundError(LookupError):
    def __init__(self, complaint_id: str):
        self.complaint_id = complaint_id
        super().__init__(f"Complaint {complaint_id} not found")


class NotificationNotFoundError(LookupError):
    def __init__(self, notification_id: str):
        self.notification_id = notification_id
        super().__init__(f"Notification {notification_id} not found")


class _Subscription:
    def __init__(self, on_snapshot: Callable, on_error: Optional[Callable]):
        self.on_snapshot = on_snapshot
        self.on_error = on_error


def to_complaint_record(row: Complaint) -> ComplaintRecord:
    location = None
    if row.location_lat is not None and row.location_lng is not None:
        location = Location(lat=row.location_lat, lng=row.location_lng)
    return ComplaintRecord(
        id=row.id,
        text=row.text,
        submitted_by=row.submitted_by,
        timestamp=row.timestamp,
        status=row.status,
        urgency=row.urgency,
        category=row.category,
        department=row.department,
        assigned_to=row.assigned_to,
        audit_log=[AuditLogRecord.model_validate(entry) for entry in row.audit_log],
        location=location,
    )


class ComplaintStore:
    """Complaint and notification collections with live subscriptions."""

    def __init__(self, session_factory: sessionmaker):
        self._session_factory = session_factory
        self._complaint_subscriptions: List[_Subscription] = []
        self._notification_subscriptions: List[_Subscription] = []
        # Held from commit through delivery so snapshots reach subscribers in commit order
        self._lock = threading.RLock()

    # Complaints
    def subscribe(
        self,
        on_snapshot: Callable[[List[ComplaintRecord]], None],
        on_error: Optional[Callable[[Exception], None]] = None
    ) -> Callable[[], None]:
        """
        Subscribe to the complaint collection.

        The current snapshot is delivered immediately, then again after every
        change. Returns a function that cancels the subscription.
        """
        subscription = _Subscription(on_snapshot, on_error)
        with self._lock:
            self._complaint_subscriptions.append(subscription)
            self._push([subscription], self._load_complaints)

        def unsubscribe():
            if subscription in self._complaint_subscriptions:
                self._complaint_subscriptions.remove(subscription)

        return unsubscribe

    def create(self, complaint: NewComplaint) -> str:
        """
        Persist a new complaint and return its id.

        The store assigns id and timestamp, and seeds the audit log with the
        "Submitted" entry in the same transaction.
        """
        now = datetime.utcnow()
        complaint_id = new_document_id()
        row = Complaint(
            id=complaint_id,
            text=complaint.text,
            submitted_by=complaint.submitted_by,
            timestamp=now,
            status=Status.SUBMITTED,
            location_lat=complaint.location.lat if complaint.location else None,
            location_lng=complaint.location.lng if complaint.location else None,
        )
        row.audit_log.append(AuditLogEntry(
            timestamp=now,
            actor_id=complaint.submitted_by,
            action=AuditAction.SUBMITTED,
            details="Complaint created."
        ))

        with self._lock:
            with self._session_factory() as session:
                try:
                    session.add(row)
                    session.commit()
                except SQLAlchemyError as e:
                    session.rollback()
                    logger.error("Failed to create complaint: %s", e)
                    raise StoreWriteError("Could not save the complaint.") from e

            logger.info("Created complaint %s", complaint_id)
            self._publish_complaints()
        return complaint_id

    def update(self, complaint_id: str, fields: dict, audit_entry: AuditEntryDraft) -> None:
        """
        Apply a partial update and append one audit entry.

        Only the named fields are written; the audit entry is added as a new
        row so entries from concurrent writers are never lost.
        """
        unknown = set(fields) - UPDATABLE_FIELDS
        if unknown:
            raise ValueError(f"Fields cannot be updated: {', '.join(sorted(unknown))}")

        with self._lock:
            with self._session_factory() as session:
                try:
                    complaint = session.get(Complaint, complaint_id)
                    if complaint is None:
                        raise ComplaintNotFoundError(complaint_id)
                    for name, value in fields.items():
                        setattr(complaint, name, value)
                    session.add(AuditLogEntry(
                        complaint_id=complaint_id,
                        timestamp=datetime.utcnow(),
                        actor_id=audit_entry.actor_id,
                        action=audit_entry.action,
                        details=audit_entry.details
                    ))
                    session.commit()
                except SQLAlchemyError as e:
                    session.rollback()
                    logger.error("Failed to update complaint %s: %s", complaint_id, e)
                    raise StoreWriteError("Could not update the complaint.") from e

            logger.debug("Updated complaint %s: %s", complaint_id, audit_entry.action)
            self._publish_complaints()

    # Notifications
    def subscribe_notifications(
        self,
        on_snapshot: Callable[[List[NotificationRecord]], None],
        on_error: Optional[Callable[[Exception], None]] = None
    ) -> Callable[[], None]:
        """Subscribe to the notification collection, newest first."""
        subscription = _Subscription(on_snapshot, on_error)
        with self._lock:
            self._notification_subscriptions.append(subscription)
            self._push([subscription], self._load_notifications)

        def unsubscribe():
            if subscription in self._notification_subscriptions:
                self._notification_subscriptions.remove(subscription)

        return unsubscribe

    def create_notification(self, complaint_id: str, message: str) -> str:
        notification_id = new_document_id()
        with self._lock:
            with self._session_factory() as session:
                try:
                    session.add(Notification(
                        id=notification_id,
                        complaint_id=complaint_id,
                        message=message,
                        timestamp=datetime.utcnow(),
                        read=False
                    ))
                    session.commit()
                except SQLAlchemyError as e:
                    session.rollback()
                    logger.error("Failed to create notification for %s: %s", complaint_id, e)
                    raise StoreWriteError("Could not save the notification.") from e

            self._publish_notifications()
        return notification_id

    def mark_notification_read(self, notification_id: str) -> None:
        """Set read=True. There is no way back to unread."""
        with self._lock:
            with self._session_factory() as session:
                try:
                    notification = session.get(Notification, notification_id)
                    if notification is None:
                        raise NotificationNotFoundError(notification_id)
                    notification.read = True
                    session.commit()
                except SQLAlchemyError as e:
                    session.rollback()
                    logger.error("Failed to mark notification %s read: %s", notification_id, e)
                    raise StoreWriteError("Could not update the notification.") from e

            self._publish_notifications()

    # Snapshot delivery
    def _load_complaints(self) -> List[ComplaintRecord]:
        with self._session_factory() as session:
            rows = session.query(Complaint).options(
                selectinload(Complaint.audit_log)
            ).order_by(Complaint.timestamp.desc()).all()
            return [to_complaint_record(row) for row in rows]

    def _load_notifications(self) -> List[NotificationRecord]:
        with self._session_factory() as session:
            rows = session.query(Notification).order_by(Notification.timestamp.desc()).all()
            return [NotificationRecord.model_validate(row) for row in rows]

    def _publish_complaints(self) -> None:
        self._push(list(self._complaint_subscriptions), self._load_complaints)

    def _publish_notifications(self) -> None:
        self._push(list(self._notification_subscriptions), self._load_notifications)

    def _push(self, subscriptions: List[_Subscription], load: Callable[[], list]) -> None:
        if not subscriptions:
            return
        try:
            snapshot = load()
        except SQLAlchemyError as e:
            logger.error("Snapshot query failed: %s", e)
            for subscription in subscriptions:
                if subscription.on_error is not None:
                    subscription.on_error(e)
            return

        for subscription in subscriptions:
            subscription.on_snapshot(snapshot)
