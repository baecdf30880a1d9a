"""Static email-to-role lookup for callers authenticated upstream."""
from typing import Dict, Iterable, Optional
from pydantic import BaseModel

from triage import config
from triage.models.enums import Role, Department


class User(BaseModel):
    id: str
    email: str
    role: Role
    department: Optional[Department] = None

    @property
    def is_staff(self) -> bool:
        return self.role in (Role.ADMIN, Role.DEPARTMENT_HEAD)


def resolve_user(
    user_id: str,
    email: str,
    admin_emails: Optional[Iterable[str]] = None,
    department_heads: Optional[Dict[str, str]] = None
) -> User:
    """
    Derive role and department from the email address.

    Admins come first; a department head whose department is not a known
    Department is treated as a plain user.
    """
    admin_emails = config.ADMIN_EMAILS if admin_emails is None else admin_emails
    department_heads = config.DEPARTMENT_HEAD_EMAILS if department_heads is None else department_heads

    normalized = email.strip().lower()
    if normalized in {e.lower() for e in admin_emails}:
        return User(id=user_id, email=email, role=Role.ADMIN)

    department = department_heads.get(normalized)
    if department in {d.value for d in Department}:
        return User(id=user_id, email=email, role=Role.DEPARTMENT_HEAD, department=Department(department))

    return User(id=user_id, email=email, role=Role.USER)
