"""
Statistics over a complaint snapshot.

Every function here is pure: same list in, same answer out. They are
recomputed on each request from whatever the feed currently holds.
"""
from collections import Counter
from decimal import Decimal, ROUND_HALF_UP
from typing import Dict, Iterable, List, Optional, Sequence

from triage.models.audit import AuditAction
from triage.models.enums import Status, Urgency, CLOSED_STATUSES
from triage.models.records import ComplaintRecord, NotificationRecord

NOT_AVAILABLE = "N/A"

ALL = "all"
UNASSIGNED = "unassigned"


def is_open(complaint: ComplaintRecord) -> bool:
    return complaint.status not in CLOSED_STATUSES


def count_open(complaints: Sequence[ComplaintRecord]) -> int:
    return sum(1 for c in complaints if is_open(c))


def count_resolved(complaints: Sequence[ComplaintRecord]) -> int:
    return sum(1 for c in complaints if not is_open(c))


def count_high_urgency(complaints: Sequence[ComplaintRecord]) -> int:
    return sum(1 for c in complaints if c.urgency == Urgency.HIGH)


def counts_by_category(complaints: Sequence[ComplaintRecord]) -> Dict[str, int]:
    """Category counts in first-seen order. Unclassified complaints are skipped."""
    counts = Counter()
    for c in complaints:
        if c.category:
            counts[c.category.value] += 1
    return dict(counts)


def counts_by_department(complaints: Sequence[ComplaintRecord]) -> Dict[str, int]:
    """Department counts in first-seen order. Unclassified complaints are skipped."""
    counts = Counter()
    for c in complaints:
        if c.department:
            counts[c.department.value] += 1
    return dict(counts)


def counts_by_status(complaints: Sequence[ComplaintRecord]) -> Dict[str, int]:
    """Every status, in lifecycle order, zero included."""
    counts = Counter(c.status.value for c in complaints)
    return {status.value: counts.get(status.value, 0) for status in Status}


def busiest_department(complaints: Sequence[ComplaintRecord]) -> str:
    """Department with the most complaints. Ties go to the one seen first."""
    counts = counts_by_department(complaints)
    if not counts:
        return NOT_AVAILABLE
    # sorted() is stable, so equal counts keep first-seen order
    return sorted(counts.items(), key=lambda item: item[1], reverse=True)[0][0]


def _elapsed_hours(complaint: ComplaintRecord) -> Optional[int]:
    """
    Whole hours from the first "Submitted" entry to the last resolving entry.

    None when either marker is missing or the span is negative.
    """
    submitted = next(
        (entry for entry in complaint.audit_log if entry.action == AuditAction.SUBMITTED),
        None
    )
    resolved = next(
        (
            entry for entry in reversed(complaint.audit_log)
            if Status.RESOLVED.value in entry.action or Status.CLOSED.value in entry.action
        ),
        None
    )
    if submitted is None or resolved is None:
        return None

    seconds = (resolved.timestamp - submitted.timestamp).total_seconds()
    if seconds < 0:
        return None
    return int(seconds // 3600)


def _one_decimal(value: Decimal) -> Decimal:
    """Round to one decimal place with ties going up."""
    return value.quantize(Decimal("0.1"), rounding=ROUND_HALF_UP)


def format_duration(hours: float) -> str:
    hours = Decimal(str(hours))
    if hours < 24:
        return f"{_one_decimal(hours)} hours"
    return f"{_one_decimal(hours / 24)} days"


def average_resolution_time(complaints: Sequence[ComplaintRecord]) -> str:
    """
    Mean submit-to-resolve time over Resolved/Closed complaints.

    Complaints without both audit markers are left out, not counted as zero.
    """
    spans = []
    for complaint in complaints:
        if is_open(complaint):
            continue
        hours = _elapsed_hours(complaint)
        if hours is not None:
            spans.append(hours)

    if not spans:
        return NOT_AVAILABLE
    return format_duration(sum(spans) / len(spans))


def as_chart_data(counts: Dict[str, int], sort_desc: bool = False) -> List[dict]:
    data = [{"name": name, "value": value} for name, value in counts.items()]
    if sort_desc:
        data.sort(key=lambda item: item["value"], reverse=True)
    return data


def dashboard_stats(complaints: Sequence[ComplaintRecord]) -> dict:
    """Numbers for the staff dashboard."""
    return {
        "total": len(complaints),
        "open": count_open(complaints),
        "high_urgency": count_high_urgency(complaints),
        "busiest_department": busiest_department(complaints),
        "by_category": as_chart_data(counts_by_category(complaints)),
        "by_department": as_chart_data(counts_by_department(complaints)),
        "by_status": as_chart_data(counts_by_status(complaints)),
    }


def public_stats(complaints: Sequence[ComplaintRecord]) -> dict:
    """Numbers for the anonymous public view."""
    resolved = count_resolved(complaints)
    return {
        "total": len(complaints),
        "resolved": resolved,
        "open": len(complaints) - resolved,
        "average_resolution_time": average_resolution_time(complaints),
        "by_department": as_chart_data(counts_by_department(complaints), sort_desc=True),
        "by_status": as_chart_data(counts_by_status(complaints)),
    }


def filter_complaints(
    complaints: Iterable[ComplaintRecord],
    status: str = ALL,
    urgency: str = ALL,
    assigned: str = ALL
) -> List[ComplaintRecord]:
    """
    Staff list filters. "all" disables a filter; assigned="unassigned"
    keeps complaints with no assignee whatever their status.
    """
    result = list(complaints)
    if status != ALL:
        result = [c for c in result if c.status.value == status]
    if urgency != ALL:
        result = [c for c in result if c.urgency is not None and c.urgency.value == urgency]
    if assigned != ALL:
        if assigned == UNASSIGNED:
            result = [c for c in result if not c.assigned_to]
        else:
            result = [c for c in result if c.assigned_to == assigned]
    return result


def complaints_submitted_by(complaints: Iterable[ComplaintRecord], user_id: str) -> List[ComplaintRecord]:
    return [c for c in complaints if c.submitted_by == user_id]


def unread_count(notifications: Iterable[NotificationRecord]) -> int:
    return sum(1 for n in notifications if not n.read)
