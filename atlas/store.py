"""
Atlas store: the canonical entity collections and their persistence.

Each collection is one JSON array under a well-known storage key. `save()`
rewrites every collection in full; there is no per-entity patching, so when
two contexts save concurrently the last save wins.
"""
import json
import logging
from datetime import date
from typing import Any, Callable, Dict, List, Optional, Tuple

from .schema import Task, Project, Event, Document, TaskStatus, Priority
from .storage import Storage
from . import seed

logger = logging.getLogger(__name__)

TASKS_KEY = "atlas_tasks"
PROJECTS_KEY = "atlas_projects"
DOCUMENTS_KEY = "atlas_documents"
EVENTS_KEY = "atlas_events"

# attribute name -> (storage key, entity class)
COLLECTIONS: Dict[str, Tuple[str, Any]] = {
    "tasks": (TASKS_KEY, Task),
    "projects": (PROJECTS_KEY, Project),
    "documents": (DOCUMENTS_KEY, Document),
    "events": (EVENTS_KEY, Event),
}

# Task attributes an edit form may change; status goes through set_task_status.
EDITABLE_TASK_FIELDS = (
    "title", "description", "project", "priority", "due_date", "estimate",
    "labels", "dependencies", "photos",
)


class AtlasStore:
    """Sole owner of tasks, projects, documents and events."""

    def __init__(self, storage: Storage, bus=None, today: Optional[date] = None):
        self.storage = storage
        self.bus = bus
        self.today = today
        self.tasks: List[Task] = []
        self.projects: List[Project] = []
        self.documents: List[Document] = []
        self.events: List[Event] = []
        self.version = 0

    # -------------------- persistence --------------------

    def load(self) -> None:
        """Read every collection; seed and persist whatever is missing. Never raises."""
        seeded = []
        for attr, (key, entity_cls) in COLLECTIONS.items():
            items = self._read_collection(key, entity_cls)
            if items is None:
                items = self._seed(attr)
                seeded.append(attr)
            setattr(self, attr, items)
        self.version += 1
        if seeded:
            logger.info("Seeded %s", ", ".join(seeded))
            self.save(emit=False)

    def _read_collection(self, key: str, entity_cls) -> Optional[list]:
        try:
            raw = self.storage.get_item(key)
        except Exception as e:
            logger.warning("Cannot read %s: %s", key, e)
            return None
        if raw is None:
            return None
        try:
            data = json.loads(raw)
        except (json.JSONDecodeError, TypeError) as e:
            logger.warning("Malformed %s, falling back to seed: %s", key, e)
            return None
        if not isinstance(data, list) or not all(isinstance(d, dict) for d in data):
            logger.warning("Malformed %s, falling back to seed: expected a list of objects", key)
            return None
        try:
            return [entity_cls.from_dict(d) for d in data]
        except (TypeError, ValueError) as e:
            logger.warning("Malformed %s, falling back to seed: %s", key, e)
            return None

    def _seed(self, attr: str) -> list:
        if attr == "tasks":
            return seed.seed_tasks()
        if attr == "projects":
            return seed.seed_projects()
        if attr == "documents":
            return seed.seed_documents()
        return seed.seed_events(self.today)

    def save(self, emit: bool = True) -> bool:
        """Overwrite every collection in storage; notify the bus when `emit`."""
        self.version += 1
        try:
            for attr, (key, _) in COLLECTIONS.items():
                payload = [item.to_dict() for item in getattr(self, attr)]
                self.storage.set_item(key, json.dumps(payload))
        except Exception as e:
            logger.error("Error saving collections: %s", e)
            return False
        if emit and self.bus is not None:
            self.bus.notify()
        return True

    def snapshot(self) -> Dict[str, List[Dict[str, Any]]]:
        """Plain-data copy of every collection."""
        return {attr: [item.to_dict() for item in getattr(self, attr)] for attr in COLLECTIONS}

    # -------------------- tasks --------------------

    def get_task(self, task_id: str) -> Optional[Task]:
        for task in self.tasks:
            if task.id == task_id:
                return task
        return None

    def add_task(self, task: Task) -> Task:
        task.touch()
        self.tasks.append(task)
        self.save()
        return task

    def update_task(self, task_id: str, **changes) -> Optional[Task]:
        """Apply edit-form changes to a task. Unknown fields are ignored."""
        task = self.get_task(task_id)
        if task is None:
            return None
        for name, value in changes.items():
            if name not in EDITABLE_TASK_FIELDS:
                continue
            if name == "priority":
                value = Priority.from_str(value)
            setattr(task, name, value)
        task.touch()
        self.save()
        return task

    def set_task_status(self, task_id: str, status: TaskStatus) -> Optional[Task]:
        """Commit a status transition. Returns the task when it moved."""
        task = self.get_task(task_id)
        if task is None:
            return None
        old = task.status
        if not task.move_to(status):
            return None
        logger.info("Task %s moved from %s to %s", task_id, getattr(old, "value", old), status.value)
        self.save()
        return task

    def delete_task(self, task_id: str) -> bool:
        before = len(self.tasks)
        self.tasks = [t for t in self.tasks if t.id != task_id]
        if len(self.tasks) == before:
            return False
        self.save()
        return True

    def filter_tasks(self, predicate: Callable[[Task], bool]) -> List[Task]:
        return [t for t in self.tasks if predicate(t)]

    # -------------------- projects --------------------

    def get_project(self, project_id: str) -> Optional[Project]:
        for project in self.projects:
            if project.id == project_id:
                return project
        return None

    def project_name(self, project_id: str) -> str:
        """Display name; an unknown id is shown as-is."""
        project = self.get_project(project_id)
        return project.name if project else project_id

    def add_project(self, project: Project) -> Project:
        self.projects.append(project)
        self.save()
        return project

    # -------------------- events & documents --------------------

    def get_event(self, event_id: str) -> Optional[Event]:
        for event in self.events:
            if event.id == event_id:
                return event
        return None

    def add_event(self, event: Event) -> Event:
        self.events.append(event)
        self.save()
        return event

    def events_on(self, iso_date: str, project: str = "all") -> List[Event]:
        return [
            e for e in self.events
            if e.date == iso_date and (project == "all" or e.project == project)
        ]

    def get_document(self, doc_id: str) -> Optional[Document]:
        for doc in self.documents:
            if doc.id == doc_id:
                return doc
        # tolerate page ids like "file-1" for "doc-1"
        suffix = (doc_id or "").split("-")[-1]
        for doc in self.documents:
            if doc.id == f"doc-{suffix}":
                return doc
        return None
