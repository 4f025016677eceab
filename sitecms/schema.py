from typing import Any, Dict, List
from urllib.parse import urlparse

POST_REQUIRED_FIELDS = ["title", "content"]
JOB_REQUIRED_FIELDS = ["title", "link"]


def _is_non_empty_str(v: Any) -> bool:
    return isinstance(v, str) and v.strip() != ""


def _valid_url(v: str) -> bool:
    p = urlparse(v)
    return bool(p.scheme in ("http", "https") and p.netloc)


def _check_required(data: Dict[str, Any], fields: List[str]) -> List[str]:
    errors: List[str] = []
    for f in fields:
        if f not in data or data[f] is None:
            errors.append(f"Missing required field: {f}")
        elif not _is_non_empty_str(data[f]):
            errors.append(f"Field '{f}' must be a non-empty string")
    return errors


def validate_post(data: Dict[str, Any]) -> List[str]:
    """
    Returns a list of validation error messages. Empty list means valid.
    Only consulted when strict validation is switched on.
    """
    errors = _check_required(data, POST_REQUIRED_FIELDS)
    if data.get("type") is not None and not isinstance(data["type"], str):
        errors.append("Field 'type' must be a string if provided")
    return errors


def validate_job(data: Dict[str, Any]) -> List[str]:
    """Same contract as validate_post; the link must be an absolute http(s) URL."""
    errors = _check_required(data, JOB_REQUIRED_FIELDS)

    if data.get("company") is not None and not isinstance(data["company"], str):
        errors.append("Field 'company' must be a string if provided")

    if _is_non_empty_str(data.get("link")) and not _valid_url(data["link"]):
        errors.append("Field 'link' must be a valid absolute URL (scheme + host)")

    return errors
