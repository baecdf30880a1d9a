"""
Tests that prove the complaint lifecycle invariants.

Each test verifies a specific rule of the lifecycle engine.
"""
import pytest
from conftest import StubClassifier
from triage.models.audit import SYSTEM_ACTOR_ID
from triage.models.enums import Status, Urgency, Category, Department
from triage.models.records import Location
from triage.services.classifier import Classifier, FALLBACK_CLASSIFICATION
from triage.services.lifecycle import LifecycleEngine, normalize_assignee
from triage.store import ComplaintNotFoundError


class FailingModels:
    def generate_content(self, **kwargs):
        raise ConnectionError("Gemini unreachable")


class FailingGenaiClient:
    models = FailingModels()


class TestCreateInvariants:
    """Test complaint creation."""

    def test_new_complaint_enters_submitted(self, sample_complaint):
        """
        INVARIANT: A new complaint starts in Submitted with no classification.
        """
        assert sample_complaint.status == Status.SUBMITTED
        assert sample_complaint.urgency is None
        assert sample_complaint.category is None
        assert sample_complaint.department is None
        assert sample_complaint.assigned_to is None

    def test_creation_writes_exactly_one_submitted_entry(self, sample_complaint):
        """
        INVARIANT: Creating a complaint yields exactly one audit entry, action "Submitted".
        """
        assert len(sample_complaint.audit_log) == 1
        entry = sample_complaint.audit_log[0]
        assert entry.action == "Submitted"
        assert entry.actor_id == "citizen-1"
        assert entry.details == "Complaint created."

    def test_creation_does_not_classify(self, lifecycle, classifier, sample_complaint):
        """Classification is a separate step so it can run in the background."""
        assert classifier.calls == []

    def test_location_is_kept(self, lifecycle):
        complaint_id = lifecycle.create_complaint(
            text="Pothole outside the library",
            submitted_by="citizen-1",
            location=Location(lat=51.5, lng=-0.12)
        )
        complaint = lifecycle.feed.find(complaint_id)

        assert complaint.location.lat == 51.5
        assert complaint.location.lng == -0.12


class TestClassificationInvariants:
    """Test automatic classification."""

    def test_classification_sets_fields_and_status(self, lifecycle, sample_complaint):
        lifecycle.classify_complaint(sample_complaint.id, sample_complaint.text)
        complaint = lifecycle.feed.find(sample_complaint.id)

        assert complaint.status == Status.CLASSIFIED
        assert complaint.urgency == Urgency.HIGH
        assert complaint.category == Category.SAFETY
        assert complaint.department == Department.PUBLIC_WORKS

    def test_classified_entry_follows_submitted(self, lifecycle, sample_complaint):
        """
        INVARIANT: The "Submitted" entry comes before any classification entry.
        """
        lifecycle.classify_complaint(sample_complaint.id, sample_complaint.text)
        complaint = lifecycle.feed.find(sample_complaint.id)

        assert [e.action for e in complaint.audit_log] == ["Submitted", "Classified"]
        classified = complaint.audit_log[1]
        assert classified.actor_id == SYSTEM_ACTOR_ID
        assert "Urgency: High" in classified.details
        assert "Category: Safety" in classified.details
        assert "Department: Public Works" in classified.details
        assert "previous status: Submitted" in classified.details

    def test_classifier_failure_uses_fallback(self, feed):
        """
        INVARIANT: A failing classifier never leaves urgency/category/department null.
        """
        lifecycle = LifecycleEngine(feed, Classifier(client=FailingGenaiClient()))
        complaint_id = lifecycle.create_complaint("Water is brown", submitted_by="citizen-1")

        result = lifecycle.classify_complaint(complaint_id, "Water is brown")
        complaint = feed.find(complaint_id)

        assert result == FALLBACK_CLASSIFICATION
        assert complaint.status == Status.CLASSIFIED
        assert complaint.urgency == Urgency.MEDIUM
        assert complaint.category == Category.OTHER
        assert complaint.department == Department.GENERAL

    def test_missing_api_key_uses_fallback(self, feed):
        lifecycle = LifecycleEngine(feed, Classifier(api_key=""))
        complaint_id = lifecycle.create_complaint("Noisy neighbours", submitted_by="citizen-1")

        lifecycle.classify_complaint(complaint_id, "Noisy neighbours")

        assert feed.find(complaint_id).department == Department.GENERAL

    def test_classification_creates_one_notification(self, lifecycle, feed, sample_complaint):
        """
        INVARIANT: Auto-classification notifies once, naming the department.
        """
        lifecycle.classify_complaint(sample_complaint.id, sample_complaint.text)

        assert len(feed.notifications) == 1
        notification = feed.notifications[0]
        assert notification.complaint_id == sample_complaint.id
        assert notification.read is False
        assert notification.message == (
            f"Complaint #{sample_complaint.id[:4]} auto-assigned to Public Works."
        )

    def test_notification_is_not_an_audit_entry(self, lifecycle, feed, sample_complaint):
        lifecycle.classify_complaint(sample_complaint.id, sample_complaint.text)

        assert len(feed.find(sample_complaint.id).audit_log) == 2


class TestAssignmentInvariants:
    """Test assignment rules."""

    def test_assign_forces_assigned_status(self, lifecycle, sample_complaint):
        changed = lifecycle.assign(sample_complaint.id, "admin01", actor_id="admin01")
        complaint = lifecycle.feed.find(sample_complaint.id)

        assert changed is True
        assert complaint.assigned_to == "admin01"
        assert complaint.status == Status.ASSIGNED

    def test_reassign_records_previous_assignee(self, lifecycle, sample_complaint):
        """
        INVARIANT: Reassigning admin01 → admin02 writes an entry whose details name admin01.
        """
        lifecycle.assign(sample_complaint.id, "admin01", actor_id="admin01")
        lifecycle.assign(sample_complaint.id, "admin02", actor_id="admin01")
        complaint = lifecycle.feed.find(sample_complaint.id)

        last = complaint.audit_log[-1]
        assert last.action == "Assigned to admin02"
        assert "admin01" in last.details

    def test_same_assignee_twice_writes_nothing(self, lifecycle, sample_complaint):
        """
        INVARIANT: Assigning the same admin twice produces no second write.
        """
        assert lifecycle.assign(sample_complaint.id, "admin02", actor_id="admin01") is True
        before = lifecycle.feed.find(sample_complaint.id)

        assert lifecycle.assign(sample_complaint.id, "admin02", actor_id="admin01") is False
        after = lifecycle.feed.find(sample_complaint.id)

        assert len(after.audit_log) == len(before.audit_log)

    def test_empty_string_and_none_are_both_unassigned(self, lifecycle, sample_complaint):
        """
        INVARIANT: "" and None both mean no assignee, so unassigning an unassigned complaint is a no-op.
        """
        assert lifecycle.assign(sample_complaint.id, "", actor_id="admin01") is False
        assert lifecycle.assign(sample_complaint.id, None, actor_id="admin01") is False
        assert len(lifecycle.feed.find(sample_complaint.id).audit_log) == 1

    def test_unassign(self, lifecycle, sample_complaint):
        lifecycle.assign(sample_complaint.id, "admin03", actor_id="admin01")

        assert lifecycle.assign(sample_complaint.id, "", actor_id="admin01") is True
        complaint = lifecycle.feed.find(sample_complaint.id)

        assert complaint.assigned_to is None
        assert complaint.audit_log[-1].action == "Assigned to Unassigned"
        assert complaint.audit_log[-1].details == "Previously assigned to admin03"

    def test_unknown_complaint(self, lifecycle):
        with pytest.raises(ComplaintNotFoundError):
            lifecycle.assign("does-not-exist", "admin01", actor_id="admin01")

    def test_normalize_assignee(self):
        assert normalize_assignee(None) is None
        assert normalize_assignee("") is None
        assert normalize_assignee("  ") is None
        assert normalize_assignee(" admin01 ") == "admin01"


class TestStatusInvariants:
    """Test manual status changes."""

    def test_status_change_records_previous_status(self, lifecycle, sample_complaint):
        changed = lifecycle.update_status(sample_complaint.id, Status.IN_PROGRESS, actor_id="admin01")
        complaint = lifecycle.feed.find(sample_complaint.id)

        assert changed is True
        assert complaint.status == Status.IN_PROGRESS
        last = complaint.audit_log[-1]
        assert last.action == "Status changed to In Progress"
        assert last.details == "Previous status was Submitted"
        assert last.actor_id == "admin01"

    def test_unchanged_status_writes_nothing(self, lifecycle, sample_complaint):
        assert lifecycle.update_status(sample_complaint.id, Status.SUBMITTED, actor_id="admin01") is False
        assert len(lifecycle.feed.find(sample_complaint.id).audit_log) == 1

    def test_any_status_may_follow_any_other(self, lifecycle, sample_complaint):
        """Statuses are a flat set: staff can move backwards as well as forwards."""
        lifecycle.update_status(sample_complaint.id, Status.CLOSED, actor_id="admin01")
        lifecycle.update_status(sample_complaint.id, Status.SUBMITTED, actor_id="admin01")

        assert lifecycle.feed.find(sample_complaint.id).status == Status.SUBMITTED

    def test_accepts_status_value(self, lifecycle, sample_complaint):
        lifecycle.update_status(sample_complaint.id, "Resolved", actor_id="admin01")

        assert lifecycle.feed.find(sample_complaint.id).status == Status.RESOLVED


class TestFullLifecycle:
    """Test the whole path a complaint normally takes."""

    def test_submitted_to_closed(self, lifecycle, sample_complaint):
        """
        Submitted → Classified → Assigned → In Progress → Resolved → Closed
        with one audit entry per step.
        """
        complaint_id = sample_complaint.id
        lifecycle.classify_complaint(complaint_id, sample_complaint.text)
        lifecycle.assign(complaint_id, "admin02", actor_id="admin01")
        lifecycle.update_status(complaint_id, Status.IN_PROGRESS, actor_id="admin02")
        lifecycle.update_status(complaint_id, Status.RESOLVED, actor_id="admin02")
        lifecycle.update_status(complaint_id, Status.CLOSED, actor_id="admin01")

        complaint = lifecycle.feed.find(complaint_id)
        assert complaint.status == Status.CLOSED
        assert [e.action for e in complaint.audit_log] == [
            "Submitted",
            "Classified",
            "Assigned to admin02",
            "Status changed to In Progress",
            "Status changed to Resolved",
            "Status changed to Closed",
        ]

    def test_audit_log_never_shrinks(self, lifecycle, sample_complaint):
        """
        INVARIANT: Audit log length is non-decreasing across any sequence of operations.
        """
        complaint_id = sample_complaint.id
        operations = [
            lambda: lifecycle.classify_complaint(complaint_id, "text"),
            lambda: lifecycle.assign(complaint_id, "admin01", actor_id="admin01"),
            lambda: lifecycle.assign(complaint_id, "admin01", actor_id="admin01"),
            lambda: lifecycle.update_status(complaint_id, Status.RESOLVED, actor_id="admin01"),
            lambda: lifecycle.update_status(complaint_id, Status.RESOLVED, actor_id="admin01"),
            lambda: lifecycle.assign(complaint_id, None, actor_id="admin01"),
        ]

        lengths = [len(lifecycle.feed.find(complaint_id).audit_log)]
        for operation in operations:
            operation()
            lengths.append(len(lifecycle.feed.find(complaint_id).audit_log))

        assert lengths == sorted(lengths)
        assert lengths == [1, 2, 3, 3, 4, 4, 5]

    def test_reclassification_keeps_history(self, feed, sample_complaint):
        """Running classification again appends; earlier entries stay put."""
        lifecycle = LifecycleEngine(
            feed,
            StubClassifier(result=FALLBACK_CLASSIFICATION)
        )
        lifecycle.classify_complaint(sample_complaint.id, sample_complaint.text)
        lifecycle.classify_complaint(sample_complaint.id, sample_complaint.text)

        complaint = feed.find(sample_complaint.id)
        assert [e.action for e in complaint.audit_log] == ["Submitted", "Classified", "Classified"]
        assert "previous status: Classified" in complaint.audit_log[-1].details
