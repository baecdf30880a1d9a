"""
Detached, read-only views of stored records.

These are what the store pushes to subscribers. They carry no database
session, so the lifecycle engine and aggregation views can work on them
without touching the database.
"""
from datetime import datetime
from typing import Optional, List
from pydantic import BaseModel, Field
from triage.models.enums import Status, Urgency, Category, Department


class Location(BaseModel):
    lat: float = Field(..., ge=-90, le=90)
    lng: float = Field(..., ge=-180, le=180)


class AuditLogRecord(BaseModel):
    timestamp: datetime
    actor_id: str
    action: str
    details: str

    class Config:
        from_attributes = True
        frozen = True


class ComplaintRecord(BaseModel):
    id: str
    text: str
    submitted_by: str
    timestamp: datetime
    status: Status
    urgency: Optional[Urgency] = None
    category: Optional[Category] = None
    department: Optional[Department] = None
    assigned_to: Optional[str] = None
    audit_log: List[AuditLogRecord] = []
    location: Optional[Location] = None

    class Config:
        frozen = True


class NotificationRecord(BaseModel):
    id: str
    complaint_id: str
    message: str
    timestamp: datetime
    read: bool

    class Config:
        from_attributes = True
        frozen = True


# Write-side inputs
class NewComplaint(BaseModel):
    """A complaint as submitted: no id, timestamp or audit log yet."""
    text: str = Field(..., min_length=1)
    submitted_by: str = Field(..., min_length=1)
    location: Optional[Location] = None


class AuditEntryDraft(BaseModel):
    """An audit entry before the store stamps it."""
    actor_id: str
    action: str
    details: str = ""
