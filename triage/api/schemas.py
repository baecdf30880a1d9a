"""Pydantic schemas for request/response validation."""
from typing import Optional, List
from pydantic import BaseModel, Field
from triage.models.enums import Status, Role, Department
from triage.models.records import ComplaintRecord, Location, NotificationRecord


# Complaint schemas
class ComplaintCreate(BaseModel):
    text: str = Field(..., min_length=1, max_length=5000)
    location: Optional[Location] = None


class AssignRequest(BaseModel):
    # Empty or missing means unassign
    assigned_to: Optional[str] = None


class StatusUpdate(BaseModel):
    status: Status


class TransitionResponse(BaseModel):
    """Result of a lifecycle action. changed is False when nothing was written."""
    changed: bool
    complaint: ComplaintRecord


# Statistics schemas
class ChartItem(BaseModel):
    name: str
    value: int


class DashboardStats(BaseModel):
    total: int
    open: int
    high_urgency: int
    busiest_department: str
    by_category: List[ChartItem]
    by_department: List[ChartItem]
    by_status: List[ChartItem]


class PublicStats(BaseModel):
    total: int
    resolved: int
    open: int
    average_resolution_time: str
    by_department: List[ChartItem]
    by_status: List[ChartItem]


# Notification schemas
class NotificationList(BaseModel):
    notifications: List[NotificationRecord]
    unread_count: int


class UserResponse(BaseModel):
    id: str
    email: str
    role: Role
    department: Optional[Department] = None


# Error responses
class NotFoundResponse(BaseModel):
    detail: str


class ErrorResponse(BaseModel):
    message: str
