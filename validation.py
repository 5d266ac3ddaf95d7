"""
Validation gate applied to raw request payloads before any write.

Rules are declarative per entity; the first violated rule wins.
"""
import math
import re
from typing import Any, Dict, Optional, Type, TypeVar

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from errors import InvalidAmountError, ValidationError

EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")

M = TypeVar("M", bound=BaseModel)

RULES: Dict[str, Dict[str, Any]] = {
    "alumni": {
        "required": ["name", "email", "batch", "degree"],
        "emails": ["email"],
        "integers": ["batch"],
    },
    "feedback": {
        "required": ["alumniName"],
        "one_of": [(("text", "videoUrl"), "Either text or video URL is required")],
        "bounds": {"rating": (1, 5)},
    },
    "campaign": {
        "required": ["title", "description", "goal", "startDate", "endDate"],
        "bounds": {"goal": (0.01, None)},
    },
    "campaign_update": {
        "bounds": {"goal": (0.01, None)},
    },
    "donation": {
        "required": ["campaignId", "amount", "name", "email"],
        "emails": ["email"],
    },
    "college_info": {
        "required": ["name", "address", "foundedYear", "website"],
        "emails": ["email"],
        "integers": ["foundedYear"],
    },
    "scraped_profile": {
        "required": ["name", "email", "source"],
        "emails": ["email"],
        "missing_message": "Missing required fields: {fields}",
    },
}


def _is_missing(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def _as_number(field: str, value: Any) -> float:
    if isinstance(value, bool):
        raise ValidationError(f"{field} must be a number")
    try:
        number = float(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{field} must be a number")
    if not math.isfinite(number):
        raise ValidationError(f"{field} must be a number")
    return number


def is_valid_email(value: Any) -> bool:
    return isinstance(value, str) and bool(EMAIL_RE.match(value.strip()))


def validate_payload(entity: str, payload: Any) -> dict:
    """
    Check ``payload`` against ``RULES[entity]`` and return it as a dict.

    Raises:
        ValidationError: on the first violated rule
    """
    if not isinstance(payload, dict):
        raise ValidationError("Request body must be a JSON object")
    rules = RULES[entity]

    missing = [f for f in rules.get("required", []) if _is_missing(payload.get(f))]
    if missing:
        template = rules.get("missing_message", "Please provide all required fields")
        raise ValidationError(template.format(fields=", ".join(missing)))

    for fields, message in rules.get("one_of", []):
        if all(_is_missing(payload.get(f)) for f in fields):
            raise ValidationError(message)

    for field in rules.get("emails", []):
        value = payload.get(field)
        if not _is_missing(value) and not is_valid_email(value):
            raise ValidationError("Invalid email format")

    for field in rules.get("integers", []):
        value = payload.get(field)
        if _is_missing(value):
            continue
        try:
            int(str(value))
        except ValueError:
            raise ValidationError(f"{field} must be a valid number")

    for field, (low, high) in rules.get("bounds", {}).items():
        value = payload.get(field)
        if _is_missing(value):
            continue
        number = _as_number(field, value)
        if low is not None and number < low:
            raise ValidationError(f"{field} must be at least {low:g}" if low >= 1 else f"{field} must be greater than 0")
        if high is not None and number > high:
            raise ValidationError(f"{field} must be at most {high:g}")

    return payload


def validate_amount(amount: Any) -> float:
    if isinstance(amount, bool):
        raise InvalidAmountError("Amount must be a number")
    try:
        value = float(amount)
    except (TypeError, ValueError):
        raise InvalidAmountError("Amount must be a number")
    if not math.isfinite(value):
        raise InvalidAmountError("Amount must be a number")
    if value <= 0:
        raise InvalidAmountError("Amount must be greater than 0")
    return value


def build_model(model: Type[M], data: dict) -> M:
    """Construct a schema model, reporting only the first pydantic error."""
    try:
        return model(**data)
    except PydanticValidationError as e:
        first = e.errors()[0]
        loc = ".".join(str(part) for part in first.get("loc", ()))
        message = first.get("msg", "invalid value")
        raise ValidationError(f"{loc}: {message}" if loc else message)


def clean_patch(payload: dict, protected: tuple) -> dict:
    """Drop protected and unknown-id keys from a merge-update payload."""
    return {k: v for k, v in payload.items() if k not in protected and k not in ("_id", "id")}


def optional_str(value: Any) -> Optional[str]:
    if _is_missing(value):
        return None
    return str(value).strip()
