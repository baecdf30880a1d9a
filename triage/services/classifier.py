"""Gemini classification of complaint text into urgency, category and department."""
import json
import logging
import re
from typing import Any, Dict, NamedTuple, Optional

from google import genai
from google.genai import types

from triage import config
from triage.models.enums import Urgency, Category, Department

logger = logging.getLogger(__name__)


class Classification(NamedTuple):
    urgency: Urgency
    category: Category
    department: Department


# Used whenever the service is unavailable or answers nonsense
FALLBACK_CLASSIFICATION = Classification(Urgency.MEDIUM, Category.OTHER, Department.GENERAL)


class ClassificationError(Exception):
    """Raised internally when Gemini cannot return a valid result."""


def build_prompt(text: str) -> str:
    return (
        "You triage complaints submitted to a city council. "
        "Analyze the following complaint and classify its urgency, category and the department "
        "that should handle it. "
        f"Urgency must be one of: {', '.join(u.value for u in Urgency)}. "
        f"Category must be one of: {', '.join(c.value for c in Category)}. "
        f"Department must be one of: {', '.join(d.value for d in Department)}. "
        "Return strict JSON with fields urgency, category, department. JSON only.\n"
        f"Complaint: \"{text}\""
    )


RESPONSE_SCHEMA = {
    "type": "OBJECT",
    "properties": {
        "urgency": {"type": "STRING", "enum": [u.value for u in Urgency]},
        "category": {"type": "STRING", "enum": [c.value for c in Category]},
        "department": {"type": "STRING", "enum": [d.value for d in Department]},
    },
    "required": ["urgency", "category", "department"],
}


def _safe_json_loads(raw_text: str) -> Dict[str, Any]:
    """Parse JSON, tolerating code fences around it."""
    cleaned = raw_text.strip()
    cleaned = re.sub(r"^```[a-zA-Z0-9_-]*", "", cleaned).strip()
    cleaned = re.sub(r"```$", "", cleaned).strip()
    return json.loads(cleaned)


def parse_classification(raw_text: str) -> Classification:
    """Validate a Gemini answer against the enums."""
    try:
        payload = _safe_json_loads(raw_text)
    except json.JSONDecodeError as exc:
        raise ClassificationError("Gemini returned non-JSON output") from exc
    if not isinstance(payload, dict):
        raise ClassificationError("Gemini returned a non-object payload")

    try:
        return Classification(
            urgency=Urgency(payload.get("urgency")),
            category=Category(payload.get("category")),
            department=Department(payload.get("department")),
        )
    except ValueError as exc:
        raise ClassificationError(f"Gemini response did not match expected schema: {payload}") from exc


class Classifier:
    """
    Classifies complaint text. Never raises.

    Without an API key, or on any failure, returns FALLBACK_CLASSIFICATION.
    """

    def __init__(self, api_key: Optional[str] = None, model: Optional[str] = None, client=None):
        self.model = model or config.GEMINI_MODEL
        if client is not None:
            self._client = client
        else:
            api_key = config.GEMINI_API_KEY if api_key is None else api_key
            self._client = genai.Client(api_key=api_key) if api_key else None
            if self._client is None:
                logger.warning("GEMINI_API_KEY not set. Classification will use the fallback.")

    @property
    def available(self) -> bool:
        return self._client is not None

    def classify(self, text: str) -> Classification:
        if self._client is None:
            logger.info("AI classification skipped: API key not found.")
            return FALLBACK_CLASSIFICATION

        try:
            response = self._client.models.generate_content(
                model=self.model,
                contents=build_prompt(text),
                config=types.GenerateContentConfig(
                    response_mime_type="application/json",
                    response_schema=RESPONSE_SCHEMA,
                ),
            )
            return parse_classification(response.text or "")
        except Exception:
            logger.exception("Error classifying complaint with Gemini. Using fallback.")
            return FALLBACK_CLASSIFICATION
