"""Enums for the complaint triage system - these define the valid values for complaint fields."""
from enum import Enum


class Status(str, Enum):
    """Lifecycle states of a complaint. Flat: staff may move between any of them."""
    SUBMITTED = "Submitted"
    CLASSIFIED = "Classified"
    ASSIGNED = "Assigned"
    IN_PROGRESS = "In Progress"
    RESOLVED = "Resolved"
    CLOSED = "Closed"


class Urgency(str, Enum):
    HIGH = "High"
    MEDIUM = "Medium"
    LOW = "Low"


class Category(str, Enum):
    INFRASTRUCTURE = "Infrastructure"
    SERVICE = "Service"
    SAFETY = "Safety"
    BILLING = "Billing"
    OTHER = "Other"


class Department(str, Enum):
    PUBLIC_WORKS = "Public Works"
    UTILITIES = "Utilities"
    PARKS_AND_REC = "Parks and Recreation"
    ADMINISTRATION = "Administration"
    GENERAL = "General"


class Role(str, Enum):
    """Roles derived from the authenticated email. Never persisted."""
    USER = "USER"
    ADMIN = "ADMIN"
    DEPARTMENT_HEAD = "DEPARTMENT_HEAD"


# Statuses that count as finished work
CLOSED_STATUSES = (Status.RESOLVED, Status.CLOSED)
