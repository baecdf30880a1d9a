"""API routes for complaint intake, triage and statistics."""
from typing import List, Optional

from fastapi import APIRouter, BackgroundTasks, Depends, Header, HTTPException, Query, Request, status

from triage import config
from triage.api.schemas import (
    AssignRequest,
    ComplaintCreate,
    DashboardStats,
    NotFoundResponse,
    NotificationList,
    PublicStats,
    StatusUpdate,
    TransitionResponse,
    UserResponse,
)
from triage.models.records import ComplaintRecord
from triage.services import aggregation
from triage.services.feed import SnapshotFeed
from triage.services.identity import User, resolve_user
from triage.services.lifecycle import LifecycleEngine
from triage.store import ComplaintNotFoundError, NotificationNotFoundError

router = APIRouter()


# Dependencies
def get_feed(request: Request) -> SnapshotFeed:
    return request.app.state.feed


def get_lifecycle(request: Request) -> LifecycleEngine:
    return request.app.state.lifecycle


def get_current_user(
    x_user_id: Optional[str] = Header(None),
    x_user_email: Optional[str] = Header(None)
) -> User:
    """Identity is established upstream and passed in headers."""
    if not x_user_id or not x_user_email:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Missing user identity")
    return resolve_user(x_user_id, x_user_email)


def require_staff(user: User = Depends(get_current_user)) -> User:
    if not user.is_staff:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Staff access required")
    return user


def _get_complaint(feed: SnapshotFeed, complaint_id: str) -> ComplaintRecord:
    complaint = feed.find(complaint_id)
    if complaint is None:
        raise HTTPException(status_code=404, detail="Complaint not found")
    return complaint


@router.get("/me", response_model=UserResponse)
def whoami(user: User = Depends(get_current_user)):
    return user


# Complaint endpoints
@router.post("/complaints", response_model=ComplaintRecord, status_code=status.HTTP_201_CREATED)
def create_complaint(
    complaint_data: ComplaintCreate,
    background_tasks: BackgroundTasks,
    user: User = Depends(get_current_user),
    feed: SnapshotFeed = Depends(get_feed),
    lifecycle: LifecycleEngine = Depends(get_lifecycle)
):
    """
    Submit a complaint.
    Classification runs after the response is sent; the complaint is returned in Submitted state.
    """
    complaint_id = lifecycle.create_complaint(
        text=complaint_data.text,
        submitted_by=user.id,
        location=complaint_data.location
    )
    background_tasks.add_task(lifecycle.classify_complaint, complaint_id, complaint_data.text)
    return _get_complaint(feed, complaint_id)


@router.get("/complaints", response_model=List[ComplaintRecord])
def list_complaints(
    status_filter: str = Query(aggregation.ALL, alias="status"),
    urgency: str = aggregation.ALL,
    assigned: str = aggregation.ALL,
    user: User = Depends(require_staff),
    feed: SnapshotFeed = Depends(get_feed)
):
    """List complaints, newest first. "unassigned" selects complaints nobody owns."""
    return aggregation.filter_complaints(
        feed.complaints,
        status=status_filter,
        urgency=urgency,
        assigned=assigned
    )


@router.get("/complaints/mine", response_model=List[ComplaintRecord])
def list_my_complaints(user: User = Depends(get_current_user), feed: SnapshotFeed = Depends(get_feed)):
    """Complaints submitted by the caller."""
    return aggregation.complaints_submitted_by(feed.complaints, user.id)


@router.get("/complaints/{complaint_id}", response_model=ComplaintRecord)
def get_complaint(
    complaint_id: str,
    user: User = Depends(get_current_user),
    feed: SnapshotFeed = Depends(get_feed)
):
    complaint = _get_complaint(feed, complaint_id)
    if not user.is_staff and complaint.submitted_by != user.id:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Not your complaint")
    return complaint


@router.put("/complaints/{complaint_id}/assign", response_model=TransitionResponse, responses={
    404: {"model": NotFoundResponse, "description": "Complaint not found"}
})
def assign_complaint(
    complaint_id: str,
    assign_data: AssignRequest,
    user: User = Depends(require_staff),
    feed: SnapshotFeed = Depends(get_feed),
    lifecycle: LifecycleEngine = Depends(get_lifecycle)
):
    """
    Assign a complaint to a staff member, or unassign with an empty value.
    Side effect: status becomes Assigned.
    """
    try:
        changed = lifecycle.assign(complaint_id, assign_data.assigned_to, actor_id=user.id)
    except ComplaintNotFoundError:
        raise HTTPException(status_code=404, detail="Complaint not found")
    return TransitionResponse(changed=changed, complaint=_get_complaint(feed, complaint_id))


@router.put("/complaints/{complaint_id}/status", response_model=TransitionResponse, responses={
    404: {"model": NotFoundResponse, "description": "Complaint not found"}
})
def update_complaint_status(
    complaint_id: str,
    status_data: StatusUpdate,
    user: User = Depends(require_staff),
    feed: SnapshotFeed = Depends(get_feed),
    lifecycle: LifecycleEngine = Depends(get_lifecycle)
):
    """Set a complaint's status. Nothing is written if it is unchanged."""
    try:
        changed = lifecycle.update_status(complaint_id, status_data.status, actor_id=user.id)
    except ComplaintNotFoundError:
        raise HTTPException(status_code=404, detail="Complaint not found")
    return TransitionResponse(changed=changed, complaint=_get_complaint(feed, complaint_id))


@router.get("/staff", response_model=List[str])
def list_staff(user: User = Depends(require_staff)):
    """Staff ids that complaints can be assigned to."""
    return config.STAFF_IDS


# Statistics endpoints
@router.get("/dashboard/stats", response_model=DashboardStats)
def get_dashboard_stats(user: User = Depends(require_staff), feed: SnapshotFeed = Depends(get_feed)):
    return aggregation.dashboard_stats(feed.complaints)


@router.get("/public/stats", response_model=PublicStats)
def get_public_stats(feed: SnapshotFeed = Depends(get_feed)):
    """Anonymous, read-only analytics."""
    return aggregation.public_stats(feed.complaints)


# Notification endpoints
@router.get("/notifications", response_model=NotificationList)
def list_notifications(user: User = Depends(require_staff), feed: SnapshotFeed = Depends(get_feed)):
    notifications = feed.notifications
    return NotificationList(
        notifications=notifications,
        unread_count=aggregation.unread_count(notifications)
    )


@router.put("/notifications/{notification_id}/read", response_model=NotificationList, responses={
    404: {"model": NotFoundResponse, "description": "Notification not found"}
})
def mark_notification_read(
    notification_id: str,
    user: User = Depends(require_staff),
    feed: SnapshotFeed = Depends(get_feed),
    lifecycle: LifecycleEngine = Depends(get_lifecycle)
):
    """Mark a notification as read. There is no way to mark it unread again."""
    try:
        lifecycle.mark_notification_read(notification_id)
    except NotificationNotFoundError:
        raise HTTPException(status_code=404, detail="Notification not found")
    notifications = feed.notifications
    return NotificationList(
        notifications=notifications,
        unread_count=aggregation.unread_count(notifications)
    )
