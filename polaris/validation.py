"""Input validation helpers shared by the widget adapters.

Each helper returns the normalized value or raises
:class:`~polaris.protocols.ValidationError` with a message fit for display.
"""

import re
from datetime import date
from typing import Any, Dict, Iterable, List, Optional
from urllib.parse import urlparse

from polaris.protocols import ValidationError

_CONTROL_CHARS = re.compile(r"[\x00-\x08\x0b\x0c\x0e-\x1f\x7f]")


def sanitize_string(
    value: Any,
    field_name: str,
    max_length: int = 1000,
    required: bool = True,
    strip: bool = True,
) -> str:
    """Validate a text input and strip control characters.

    Args:
        value: The value to sanitize.
        field_name: Human-readable field name for messages.
        max_length: Maximum allowed length after stripping.
        required: Reject empty (or whitespace-only) strings.
        strip: Trim surrounding whitespace.

    Returns:
        The sanitized string.

    Raises:
        ValidationError: If validation fails.
    """
    if value is None and not required:
        return ""
    if not isinstance(value, str):
        raise ValidationError(
            f"{field_name} must be text, got {type(value).__name__}", field_name
        )

    cleaned = _CONTROL_CHARS.sub("", value)
    if strip:
        cleaned = cleaned.strip()

    if required and not cleaned.strip():
        raise ValidationError(f"{field_name} is required", field_name)
    if len(cleaned) > max_length:
        raise ValidationError(f"{field_name} too long (max {max_length} characters)", field_name)
    return cleaned


def require_bool(value: Any, field_name: str) -> bool:
    if not isinstance(value, bool):
        raise ValidationError(f"{field_name} must be true or false", field_name)
    return value


def require_int(value: Any, field_name: str, min_val: Optional[int] = None) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValidationError(f"{field_name} must be a whole number", field_name)
    if min_val is not None and value < min_val:
        raise ValidationError(f"{field_name} must be at least {min_val}", field_name)
    return value


def optional_iso_date(value: Any, field_name: str) -> Optional[str]:
    """Accept None/empty or a ``YYYY-MM-DD`` date string."""
    if value is None or value == "":
        return None
    if not isinstance(value, str):
        raise ValidationError(f"{field_name} must be a date string", field_name)
    try:
        return date.fromisoformat(value.strip()).isoformat()
    except ValueError:
        raise ValidationError(f"{field_name} must be a date like 2024-05-31", field_name)


def bool_week(value: Any, field_name: str = "days") -> List[bool]:
    """Seven booleans, Sunday first."""
    if not isinstance(value, (list, tuple)) or len(value) != 7:
        raise ValidationError(f"{field_name} must be an array of 7 booleans", field_name)
    return [require_bool(v, field_name) for v in value]


def is_valid_url(url: Any) -> bool:
    """True for absolute http/https URLs with a host."""
    if not url or not isinstance(url, str):
        return False
    url = url.strip()
    if any(c.isspace() for c in url):
        return False
    try:
        parsed = urlparse(url)
    except ValueError:
        return False
    return parsed.scheme in ("http", "https") and bool(parsed.hostname)


def reject_unknown(data: Dict[str, Any], allowed: Iterable[str]) -> None:
    """Raise if *data* carries keys outside *allowed*."""
    unknown = sorted(set(data) - set(allowed))
    if unknown:
        raise ValidationError(f"Unknown field(s): {', '.join(unknown)}", unknown[0])
