"""
Audit trail model for complaints.

Each entry is its own row so that concurrent writers append rather than
overwrite: two staff members acting on the same complaint both end up in
the log even when one of their scalar updates is lost.
"""
from datetime import datetime
from sqlalchemy import Column, String, Integer, DateTime, ForeignKey
from sqlalchemy.orm import relationship
from triage.database import Base


class AuditLogEntry(Base):
    """
    Immutable record of one action taken on a complaint.

    Invariants:
    - Once written, never edited or deleted
    - Append-only; ordered by (timestamp, id)
    - The first entry of every complaint has action "Submitted"
    """
    __tablename__ = "audit_log_entries"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    complaint_id = Column(String, ForeignKey("complaints.id"), nullable=False, index=True)
    timestamp = Column(DateTime, nullable=False, default=datetime.utcnow)
    actor_id = Column(String, nullable=False)  # "system-ai" for automatic actions
    action = Column(String, nullable=False)
    details = Column(String, nullable=False, default="")

    complaint = relationship("Complaint", back_populates="audit_log")


# Fixed audit vocabulary
class AuditAction:
    """Actions written by the lifecycle engine."""
    SUBMITTED = "Submitted"
    CLASSIFIED = "Classified"

    @staticmethod
    def assigned_to(assignee):
        return f"Assigned to {assignee or 'Unassigned'}"

    @staticmethod
    def status_changed_to(status):
        return f"Status changed to {status}"


SYSTEM_ACTOR_ID = "system-ai"
