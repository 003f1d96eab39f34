"""
Atlas entity schema.

Task lifecycle (kanban columns, in display order):
  Someday → Planning → Ready → In Progress → Blocked → Done

Any column may be reached from any other by drag/drop or an explicit move.
Entities persist as JSON objects with camelCase keys; the dataclasses here
use snake_case attributes.
"""
from enum import Enum
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Optional, List, Dict, Any, Union


class TaskStatus(str, Enum):
    """Kanban columns, in board order."""
    SOMEDAY = "someday"
    PLANNING = "planning"
    READY = "ready"
    IN_PROGRESS = "in-progress"
    BLOCKED = "blocked"
    DONE = "done"

    @classmethod
    def parse(cls, value: Any) -> Optional["TaskStatus"]:
        """Return the matching status, or None for anything off the board."""
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            return None

    @property
    def label(self) -> str:
        return STATUS_LABELS[self]


STATUS_LABELS: Dict[TaskStatus, str] = {
    TaskStatus.SOMEDAY: "Someday/Maybe",
    TaskStatus.PLANNING: "Research & Planning",
    TaskStatus.READY: "Permitted & Ready",
    TaskStatus.IN_PROGRESS: "Active Work",
    TaskStatus.BLOCKED: "Waiting on External",
    TaskStatus.DONE: "Done Done",
}


class Priority(str, Enum):
    """Task and project priority."""
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"

    @classmethod
    def from_str(cls, value: Any) -> "Priority":
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            return cls.MEDIUM


def utc_now() -> str:
    """ISO-8601 UTC timestamp."""
    return datetime.now(timezone.utc).isoformat()


def _str_list(value: Any) -> List[str]:
    if not isinstance(value, list):
        return []
    return [str(v) for v in value]


def _number(value: Any) -> Optional[float]:
    if value is None or value == "" or isinstance(value, bool):
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


@dataclass
class Task:
    """One card on the board."""

    # Identifiers
    id: str
    title: str
    description: str = ""

    # Board placement. Unknown values read from storage are kept verbatim
    # so a reload round-trips, but they never land in a column.
    status: Union[TaskStatus, str] = TaskStatus.PLANNING
    project: str = ""              # raw project id, may not resolve
    priority: Priority = Priority.MEDIUM

    # Scheduling
    due_date: Optional[str] = None  # free-form ("Next week") or ISO date
    estimate: Optional[float] = None  # hours

    # Links
    labels: List[str] = field(default_factory=list)
    dependencies: List[str] = field(default_factory=list)
    photos: List[str] = field(default_factory=list)

    # Metadata
    created_at: str = field(default_factory=utc_now)
    updated_at: str = field(default_factory=utc_now)

    @property
    def column(self) -> Optional[TaskStatus]:
        """The board column this task renders into, if any."""
        return TaskStatus.parse(self.status)

    def touch(self) -> None:
        self.updated_at = utc_now()

    def move_to(self, status: TaskStatus) -> bool:
        """Set a new status. Returns False when nothing changed."""
        if self.column == status:
            return False
        self.status = status
        self.touch()
        return True

    def to_dict(self) -> Dict[str, Any]:
        status = self.status.value if isinstance(self.status, TaskStatus) else self.status
        return {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "status": status,
            "project": self.project,
            "priority": self.priority.value,
            "dueDate": self.due_date,
            "estimate": self.estimate,
            "labels": list(self.labels),
            "dependencies": list(self.dependencies),
            "photos": list(self.photos),
            "createdAt": self.created_at,
            "updatedAt": self.updated_at,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Task":
        """Deserialize from dict (tolerates records written by older pages)."""
        raw_status = data.get("status", TaskStatus.PLANNING.value)
        status = TaskStatus.parse(raw_status) or str(raw_status)
        labels = data.get("labels")
        if labels is None:
            labels = data.get("tags")
        created_at = data.get("createdAt") or data.get("created_at") or utc_now()
        return cls(
            id=str(data.get("id", "")),
            title=str(data.get("title", "")),
            description=data.get("description") or "",
            status=status,
            project=str(data.get("project") or ""),
            priority=Priority.from_str(data.get("priority", "medium")),
            due_date=data.get("dueDate", data.get("due_date")),
            estimate=_number(data.get("estimate")),
            labels=_str_list(labels),
            dependencies=_str_list(data.get("dependencies")),
            photos=_str_list(data.get("photos")),
            created_at=created_at,
            updated_at=data.get("updatedAt") or data.get("updated_at") or created_at,
        )


@dataclass
class Project:
    """A renovation project; tasks reference it by id."""
    id: str
    name: str
    status: str = "planning"
    progress: int = 0              # percent, 0-100
    budget: float = 0
    spent: float = 0
    priority: Priority = Priority.MEDIUM
    description: str = ""
    timeline: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "status": self.status,
            "progress": self.progress,
            "budget": self.budget,
            "spent": self.spent,
            "priority": self.priority.value,
            "description": self.description,
            "timeline": self.timeline,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Project":
        try:
            progress = int(data.get("progress") or 0)
        except (TypeError, ValueError):
            progress = 0
        return cls(
            id=str(data.get("id", "")),
            name=str(data.get("name", "")),
            status=data.get("status") or "planning",
            progress=max(0, min(100, progress)),
            budget=_number(data.get("budget")) or 0,
            spent=_number(data.get("spent")) or 0,
            priority=Priority.from_str(data.get("priority", "medium")),
            description=data.get("description") or "",
            timeline=data.get("timeline") or "",
        )


@dataclass
class Event:
    """A dated calendar entry. duration == 0 means all day."""
    id: str
    title: str
    date: str                      # ISO date
    project: str = ""
    duration: int = 0              # minutes
    notes: str = ""
    attendees: List[str] = field(default_factory=list)

    @property
    def all_day(self) -> bool:
        return not self.duration

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "date": self.date,
            "project": self.project,
            "duration": self.duration,
            "notes": self.notes,
            "attendees": list(self.attendees),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Event":
        try:
            duration = int(data.get("duration") or 0)
        except (TypeError, ValueError):
            duration = 0
        return cls(
            id=str(data.get("id", "")),
            title=str(data.get("title", "")),
            date=str(data.get("date", "")),
            project=str(data.get("project") or ""),
            duration=max(0, duration),
            notes=data.get("notes") or "",
            attendees=_str_list(data.get("attendees")),
        )


@dataclass
class Document:
    """Metadata for a stored file; the file itself lives elsewhere."""
    id: str
    type: str
    title: str
    project: str = ""
    date: str = ""
    size: str = ""                 # display descriptor ("2.4 MB", "12 photos")
    photos: Optional[int] = None

    def to_dict(self) -> Dict[str, Any]:
        data = {
            "id": self.id,
            "type": self.type,
            "project": self.project,
            "title": self.title,
            "date": self.date,
            "size": self.size,
        }
        if self.photos is not None:
            data["photos"] = self.photos
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Document":
        photos = data.get("photos")
        return cls(
            id=str(data.get("id", "")),
            type=str(data.get("type", "")),
            title=str(data.get("title", "")),
            project=str(data.get("project") or ""),
            date=str(data.get("date") or ""),
            size=str(data.get("size") or ""),
            photos=int(photos) if isinstance(photos, (int, float)) and not isinstance(photos, bool) else None,
        )
