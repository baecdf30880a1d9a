"""Runtime configuration, read once from environment variables."""
import os


def _split(value: str) -> list:
    return [item.strip() for item in value.split(",") if item.strip()]


# Use PostgreSQL in production (from DATABASE_URL env var), SQLite locally
DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./triage.db")

# Gemini classification. Without a key the classifier always returns the fallback.
GEMINI_API_KEY = os.getenv("GEMINI_API_KEY", "")
GEMINI_MODEL = os.getenv("GEMINI_MODEL", "gemini-2.5-flash")

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

CORS_ORIGINS = _split(os.getenv("CORS_ORIGINS", "*"))

# Static role lookup (authentication itself happens upstream)
ADMIN_EMAILS = _split(os.getenv("ADMIN_EMAILS", "admin@example.com"))

# "email=Department" pairs, e.g. "works@example.com=Public Works"
DEPARTMENT_HEAD_EMAILS = {
    email.strip().lower(): department.strip()
    for email, _, department in (
        pair.partition("=") for pair in _split(os.getenv("DEPARTMENT_HEAD_EMAILS", ""))
    )
    if department.strip()
}

# Staff ids offered as assignees
STAFF_IDS = _split(os.getenv("STAFF_IDS", "admin01,admin02,admin03"))
