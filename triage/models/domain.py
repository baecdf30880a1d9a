"""Domain models - complaints and the notifications derived from them."""
import uuid
from datetime import datetime
from sqlalchemy import Column, String, Boolean, Float, DateTime, ForeignKey, Enum as SQLEnum
from sqlalchemy.orm import relationship
from triage.database import Base
from triage.models.audit import AuditLogEntry
from triage.models.enums import Status, Urgency, Category, Department


def new_document_id() -> str:
    """Store-assigned identifier for new records."""
    return uuid.uuid4().hex


class Complaint(Base):
    """
    A citizen complaint tracked through Submitted → Classified → Assigned → In Progress → Resolved → Closed.

    Invariants enforced here:
    - id, text, submitted_by, timestamp and location never change after creation
    - urgency/category/department stay null until classification
    - audit_log is ordered by insertion and only ever grows
    """
    __tablename__ = "complaints"

    id = Column(String, primary_key=True, default=new_document_id)
    text = Column(String, nullable=False)
    submitted_by = Column(String, nullable=False, index=True)
    timestamp = Column(DateTime, nullable=False, default=datetime.utcnow, index=True)
    status = Column(SQLEnum(Status), nullable=False, default=Status.SUBMITTED)

    # Filled in by classification, editable by staff afterwards
    urgency = Column(SQLEnum(Urgency), nullable=True)
    category = Column(SQLEnum(Category), nullable=True)
    department = Column(SQLEnum(Department), nullable=True)

    assigned_to = Column(String, nullable=True)

    # Captured only at submission time
    location_lat = Column(Float, nullable=True)
    location_lng = Column(Float, nullable=True)

    audit_log = relationship(
        "AuditLogEntry",
        back_populates="complaint",
        order_by=AuditLogEntry.id,
    )
    notifications = relationship("Notification", back_populates="complaint")


class Notification(Base):
    """
    Side-channel message created by system actions.

    Invariants:
    - read only ever moves from False to True
    - Never deleted
    """
    __tablename__ = "notifications"

    id = Column(String, primary_key=True, default=new_document_id)
    complaint_id = Column(String, ForeignKey("complaints.id"), nullable=False, index=True)
    message = Column(String, nullable=False)
    timestamp = Column(DateTime, nullable=False, default=datetime.utcnow, index=True)
    read = Column(Boolean, nullable=False, default=False)

    complaint = relationship("Complaint", back_populates="notifications")
