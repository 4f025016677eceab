"""
Record factories for posts and jobs.

Input is lenient by default: missing fields become empty strings. With
`strict=True` the fields are checked by `sitecms.schema` first.
"""

import time
from datetime import datetime
from typing import Any, Dict, Mapping, Optional

from .errors import ValidationError
from .schema import validate_job, validate_post

DEFAULT_POST_TYPE = "General"

_DAYS = ("Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun")
_MONTHS = ("Jan", "Feb", "Mar", "Apr", "May", "Jun",
           "Jul", "Aug", "Sep", "Oct", "Nov", "Dec")


def new_id() -> int:
    """Creation time in epoch milliseconds."""
    return int(time.time() * 1000)


def format_date(moment: Optional[datetime] = None) -> str:
    """Render `moment` as e.g. 'Sun Oct 18 2026', independent of the process locale."""
    moment = moment or datetime.now()
    return f"{_DAYS[moment.weekday()]} {_MONTHS[moment.month - 1]} {moment.day:02d} {moment.year:04d}"


def _text(fields: Mapping[str, Any], name: str) -> str:
    value = fields.get(name)
    return "" if value is None else str(value)


def make_post(fields: Mapping[str, Any], media: str = "", strict: bool = False) -> Dict[str, Any]:
    if strict:
        errors = validate_post(dict(fields))
        if errors:
            raise ValidationError(errors)

    return {
        "id": new_id(),
        "title": _text(fields, "title"),
        "content": _text(fields, "content"),
        "type": _text(fields, "type") or DEFAULT_POST_TYPE,
        "media": media or "",
        "date": format_date(),
    }


def make_job(fields: Mapping[str, Any], strict: bool = False) -> Dict[str, Any]:
    if strict:
        errors = validate_job(dict(fields))
        if errors:
            raise ValidationError(errors)

    return {
        "id": new_id(),
        "title": _text(fields, "title"),
        "link": _text(fields, "link"),
        "company": _text(fields, "company"),
        "date": format_date(),
    }
