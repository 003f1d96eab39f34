"""
Form validation for create/edit dialogs.

Each validator takes raw submitted values (strings from the page, or JSON
from the HTTP API) and returns cleaned values, or raises ValidationError
carrying one message per offending field.
"""
from datetime import date
from typing import Any, Dict, List, Optional

from .schema import Priority, TaskStatus


class ValidationError(Exception):
    """Raised when submitted values fail validation."""

    def __init__(self, errors: Dict[str, str]):
        self.errors = dict(errors)
        super().__init__("; ".join(f"{k}: {v}" for k, v in self.errors.items()))


def _text(values: Dict[str, Any], name: str) -> str:
    value = values.get(name)
    return "" if value is None else str(value).strip()


def split_labels(raw: Any) -> List[str]:
    """'painting, diy' -> ['painting', 'diy']; lists pass through trimmed."""
    if isinstance(raw, (list, tuple)):
        items = raw
    else:
        items = str(raw or "").split(",")
    return [str(item).strip() for item in items if str(item).strip()]


def _optional_number(values, name, errors, integer=False) -> Optional[float]:
    raw = values.get(name)
    if raw is None or (isinstance(raw, str) and not raw.strip()):
        return None
    try:
        number = int(raw) if integer else float(raw)
    except (TypeError, ValueError):
        errors[name] = "Must be a number"
        return None
    if number < 0:
        errors[name] = "Must not be negative"
        return None
    return number


def validate_task(values: Dict[str, Any]) -> Dict[str, Any]:
    """Cleaned task fields; the title is required."""
    errors: Dict[str, str] = {}
    title = _text(values, "title")
    if not title:
        errors["title"] = "Title is required"

    priority = _text(values, "priority").lower() or Priority.MEDIUM.value
    if priority not in {p.value for p in Priority}:
        errors["priority"] = f"Unknown priority: {priority}"

    estimate = _optional_number(values, "estimate", errors)

    status = None
    if values.get("status") not in (None, ""):
        status = TaskStatus.parse(values["status"])
        if status is None:
            errors["status"] = f"Unknown status: {values['status']}"

    if errors:
        raise ValidationError(errors)

    labels = values.get("labels")
    if labels is None:
        labels = values.get("tags")
    cleaned = {
        "title": title,
        "description": _text(values, "description"),
        "project": _text(values, "project"),
        "priority": Priority(priority),
        "due_date": _text(values, "due_date") or _text(values, "dueDate") or None,
        "estimate": estimate,
        "labels": split_labels(labels),
    }
    if "dependencies" in values:
        cleaned["dependencies"] = split_labels(values.get("dependencies"))
    if status is not None:
        cleaned["status"] = status
    return cleaned


def validate_project(values: Dict[str, Any]) -> Dict[str, Any]:
    """Cleaned project fields; name and budget are required."""
    errors: Dict[str, str] = {}
    name = _text(values, "name")
    if not name:
        errors["name"] = "Project name is required"
    budget = _optional_number(values, "budget", errors)
    if budget is None and "budget" not in errors:
        errors["budget"] = "Budget is required"
    if errors:
        raise ValidationError(errors)
    return {
        "name": name,
        "description": _text(values, "description"),
        "budget": budget,
        "timeline": _text(values, "timeline"),
        "priority": Priority.from_str(_text(values, "priority") or "medium"),
    }


def validate_event(values: Dict[str, Any]) -> Dict[str, Any]:
    """Cleaned event fields; title and an ISO date are required."""
    errors: Dict[str, str] = {}
    title = _text(values, "title")
    if not title:
        errors["title"] = "Title is required"
    raw_date = _text(values, "date")
    if not raw_date:
        errors["date"] = "Date is required"
    else:
        try:
            date.fromisoformat(raw_date)
        except ValueError:
            errors["date"] = "Use YYYY-MM-DD"
    duration = _optional_number(values, "duration", errors, integer=True)
    if errors:
        raise ValidationError(errors)
    return {
        "title": title,
        "date": raw_date,
        "project": _text(values, "project"),
        "duration": int(duration or 0),
        "notes": _text(values, "notes"),
    }


def validate_status(values: Dict[str, Any]) -> TaskStatus:
    status = TaskStatus.parse(values.get("status"))
    if status is None:
        raise ValidationError({"status": f"Unknown status: {values.get('status')}"})
    return status
