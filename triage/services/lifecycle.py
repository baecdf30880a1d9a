"""
Complaint lifecycle engine.

All complaint state changes go through here. The engine reads the latest
snapshot pushed by the store, decides whether a write is needed, and issues
one partial update with exactly one audit entry. It never keeps its own copy
of a complaint.
"""
import logging
from typing import Optional

from triage.models.audit import AuditAction, SYSTEM_ACTOR_ID
from triage.models.enums import Status
from triage.models.records import AuditEntryDraft, ComplaintRecord, Location, NewComplaint
from triage.services.classifier import Classifier, Classification
from triage.services.feed import SnapshotFeed
from triage.store import ComplaintNotFoundError

logger = logging.getLogger(__name__)


def normalize_assignee(assignee: Optional[str]) -> Optional[str]:
    """Empty string and None both mean "no assignee"."""
    if assignee is None:
        return None
    assignee = assignee.strip()
    return assignee or None


class LifecycleEngine:
    """Enforces audit-trail invariants on every complaint transition."""

    def __init__(self, feed: SnapshotFeed, classifier: Classifier):
        self.feed = feed
        self.store = feed.store
        self.classifier = classifier

    def _current(self, complaint_id: str) -> ComplaintRecord:
        complaint = self.feed.find(complaint_id)
        if complaint is None:
            raise ComplaintNotFoundError(complaint_id)
        return complaint

    def create_complaint(
        self,
        text: str,
        submitted_by: str,
        location: Optional[Location] = None
    ) -> str:
        """
        Create a complaint in Submitted state.

        The store writes the "Submitted" audit entry together with the record.
        Classification is a separate step (see classify_complaint) so the
        caller can run it in the background.
        """
        complaint_id = self.store.create(NewComplaint(
            text=text,
            submitted_by=submitted_by,
            location=location
        ))
        logger.info("Complaint %s submitted by %s", complaint_id, submitted_by)
        return complaint_id

    def classify_complaint(self, complaint_id: str, text: str) -> Classification:
        """
        Classify a complaint and move it to Classified.

        Classifier failures never reach this method: it always gets either a
        real answer or the fallback, so the complaint always makes progress.
        Creates one notification naming the department.
        """
        classification = self.classifier.classify(text)

        previous = self.feed.find(complaint_id)
        previous_status = previous.status.value if previous else Status.SUBMITTED.value

        self.store.update(
            complaint_id,
            {
                "urgency": classification.urgency,
                "category": classification.category,
                "department": classification.department,
                "status": Status.CLASSIFIED,
            },
            AuditEntryDraft(
                actor_id=SYSTEM_ACTOR_ID,
                action=AuditAction.CLASSIFIED,
                details=(
                    f"Urgency: {classification.urgency.value}, "
                    f"Category: {classification.category.value}, "
                    f"Department: {classification.department.value} "
                    f"(previous status: {previous_status})"
                )
            )
        )
        logger.info(
            "Complaint %s classified as %s/%s/%s",
            complaint_id,
            classification.urgency.value,
            classification.category.value,
            classification.department.value
        )

        if classification.department:
            self.store.create_notification(
                complaint_id,
                f"Complaint #{complaint_id[:4]} auto-assigned to {classification.department.value}."
            )

        return classification

    def assign(self, complaint_id: str, assignee: Optional[str], actor_id: str) -> bool:
        """
        Assign (or unassign) a complaint.

        Forces status to Assigned. Returns False without writing anything when
        the assignee is unchanged.
        """
        complaint = self._current(complaint_id)
        new_assignee = normalize_assignee(assignee)
        previous_assignee = normalize_assignee(complaint.assigned_to)

        if new_assignee == previous_assignee:
            return False

        self.store.update(
            complaint_id,
            {"assigned_to": new_assignee, "status": Status.ASSIGNED},
            AuditEntryDraft(
                actor_id=actor_id,
                action=AuditAction.assigned_to(new_assignee),
                details=f"Previously assigned to {previous_assignee or 'Unassigned'}"
            )
        )
        logger.info("Complaint %s assigned to %s by %s", complaint_id, new_assignee or "nobody", actor_id)
        return True

    def update_status(self, complaint_id: str, new_status: Status, actor_id: str) -> bool:
        """
        Set a complaint's status directly.

        Any status may follow any other. Returns False without writing when
        the status is unchanged.
        """
        complaint = self._current(complaint_id)
        new_status = Status(new_status)

        if complaint.status == new_status:
            return False

        self.store.update(
            complaint_id,
            {"status": new_status},
            AuditEntryDraft(
                actor_id=actor_id,
                action=AuditAction.status_changed_to(new_status.value),
                details=f"Previous status was {complaint.status.value}"
            )
        )
        logger.info(
            "Complaint %s status %s -> %s by %s",
            complaint_id,
            complaint.status.value,
            new_status.value,
            actor_id
        )
        return True

    def mark_notification_read(self, notification_id: str) -> bool:
        """One-way read flag. Returns False when it was already read."""
        for notification in self.feed.notifications:
            if notification.id == notification_id and notification.read:
                return False
        self.store.mark_notification_read(notification_id)
        return True
