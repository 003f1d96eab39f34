"""
Atlas application context: one page of one tab.

Wires storage → SyncBus → store → index → resolver → board/modal, and exposes
the entry points page templates and collaborators call: open a task by id or
name, add/edit/delete a task, create a project, plus the calendar and
document dialogs.

Every component receives the store it works on; there is no module-level
instance. A context belongs to the thread that built it. Changes made by
other contexts are applied when that thread calls pump(); the commit entry
points pump first, so an edit never lands on a stale copy of the store.
"""
import logging
import time
import uuid
from datetime import date
from typing import Any, Dict, Optional, Union

from .board import BoardController, normalize_priority_filter, normalize_project_filter
from .calendar_view import CalendarController
from .config import AtlasConfig
from .forms import validate_event, validate_project, validate_status, validate_task
from .indexer import TaskIndex
from .modal import ModalController
from .page import Dialog, Page, PageBindings
from .render import render, status_label
from .resolver import Resolution, TaskResolver
from .schema import Event, Priority, Project, Task, TaskStatus, STATUS_LABELS
from .storage import Storage, open_storage
from .store import AtlasStore
from .sync import SyncBus

logger = logging.getLogger(__name__)

TASK_FIELDS = ("title", "project", "priority", "due_date", "estimate", "labels", "description")
PROJECT_FIELDS = ("name", "description", "budget", "timeline", "priority")
EVENT_FIELDS = ("title", "date", "project", "duration", "notes")


def new_id(prefix: str) -> str:
    """Sortable unique id: ms timestamp + random hex."""
    return f"{prefix}{int(time.time() * 1000)}-{uuid.uuid4().hex[:6]}"


class AtlasApp:
    """One execution context bound to a storage region."""

    def __init__(
        self,
        storage: Storage,
        page: Union[str, PageBindings] = "kanban",
        config: Optional[AtlasConfig] = None,
        today: Optional[date] = None,
        watch: bool = False,
    ):
        self.config = config or AtlasConfig()
        bindings = page if isinstance(page, PageBindings) else self.config.bindings(page)

        self.storage = storage
        self.bus = SyncBus(storage, key=self.config.sync_key)
        self.store = AtlasStore(storage, bus=self.bus, today=today)
        self.index = TaskIndex(self.store)
        self.resolver = TaskResolver(self.index, strict=self.config.strict_resolution)
        self.page = Page(bindings, toast_limit=self.config.toast_limit)
        self.modal = ModalController(self.page)
        self.board = BoardController(
            self.store,
            self.page,
            open_task=self.open_task,
            open_add_task=self.open_add_task_modal,
            notify=self.toast,
            drag_threshold=self.config.drag_threshold_px,
            before_commit=self.pump,
        )
        self.calendar = CalendarController(self.store, today=today)

        self.bus.subscribe(self.refresh)
        self.store.load()
        self.index.rebuild()
        self.board.render()
        if watch:
            self.bus.watch()

    @classmethod
    def from_config(cls, config: AtlasConfig, page: str = "kanban",
                    watch: Optional[bool] = None) -> "AtlasApp":
        storage = open_storage(config.storage_backend, config.db_path)
        if watch is None:
            watch = config.watch_storage
        return cls(storage, page=page, config=config, watch=watch)

    def pump(self) -> bool:
        """Apply changes other contexts announced since the last call."""
        return self.bus.drain()

    def refresh(self, remote: bool = False) -> None:
        """Sync subscriber: reload after a foreign change, then re-index and re-render."""
        if remote:
            self.store.load()
        self.index.rebuild()
        self.board.render()

    def close(self) -> None:
        self.modal.close()
        self.bus.unsubscribe(self.refresh)
        self.bus.close()

    def toast(self, message: str) -> None:
        logger.info("%s", message)
        self.page.show_toast(message)

    # -------------------- task entry points --------------------

    def open_task(self, id_or_name: str) -> Resolution:
        """Show a task's details, or a placeholder for a name nothing matches."""
        resolution = self.resolver.resolve(id_or_name)
        if resolution.resolved:
            self._show_task_detail(resolution.task)
        else:
            candidates = [self.index.get(i) for i in resolution.candidates]
            self.modal.open(
                "Task Details",
                render("placeholder.html", query=resolution.query,
                       candidates=[t for t in candidates if t is not None]),
                ["task-create"],
            )
        return resolution

    def _show_task_detail(self, task: Task) -> Optional[Dialog]:
        dependencies = [(dep_id, self.index.get(dep_id)) for dep_id in task.dependencies]
        content = render(
            "task_detail.html",
            task=task,
            project_name=self.store.project_name(task.project),
            status_label=status_label(task.status),
            dependencies=dependencies,
        )
        return self.modal.open("Task Details", content, ["task-edit", "task-delete", "task-move"])

    def _task_form(self, form_id: str, submit_label: str):
        def render_form(values: Dict[str, Any], errors: Dict[str, str]) -> str:
            return render("task_form.html", form_id=form_id, submit_label=submit_label,
                          values=values, errors=errors, projects=self.store.projects)
        return render_form

    def open_add_task_modal(self, status: Union[TaskStatus, str] = TaskStatus.PLANNING,
                            values: Optional[Dict[str, Any]] = None) -> Optional[Dialog]:
        column = TaskStatus.parse(status) or TaskStatus.PLANNING
        defaults = {
            "project": self.store.projects[0].id if self.store.projects else "",
            "priority": Priority.MEDIUM.value,
        }
        defaults.update(values or {})
        return self.modal.open_form(
            "Add Task",
            self._task_form("add-task-form", "Add Task"),
            validate_task,
            lambda cleaned: self.create_task(cleaned, column),
            values=defaults,
            fields=TASK_FIELDS,
        )

    def create_task(self, cleaned: Dict[str, Any],
                    status: TaskStatus = TaskStatus.PLANNING) -> Task:
        """Commit validated task fields as a new task."""
        self.pump()
        fields = dict(cleaned)
        column = fields.pop("status", None) or status
        task = Task(id=new_id("t"), status=column, **fields)
        self.store.add_task(task)
        self.toast(f"{task.title} added to {column.label}")
        return task

    def open_edit_task_modal(self, task_id: str) -> Optional[Dialog]:
        task = self.index.get(task_id)
        if task is None:
            return self._show_missing("task", task_id)
        values = {
            "title": task.title,
            "project": task.project,
            "priority": task.priority.value,
            "due_date": task.due_date or "",
            "estimate": task.estimate,
            "labels": ", ".join(task.labels),
            "description": task.description,
        }
        return self.modal.open_form(
            "Edit Task",
            self._task_form("edit-task-form", "Save Changes"),
            validate_task,
            lambda cleaned: self.apply_task_edit(task_id, cleaned),
            values=values,
            fields=TASK_FIELDS,
        )

    def apply_task_edit(self, task_id: str, cleaned: Dict[str, Any]) -> Optional[Task]:
        self.pump()
        fields = dict(cleaned)
        status = fields.pop("status", None)
        task = self.store.update_task(task_id, **fields)
        if task is None:
            self.toast("That task no longer exists.")
            return None
        if status is not None:
            self.store.set_task_status(task_id, status)
        self.toast(f"{task.title} updated")
        return task

    def open_move_task_modal(self, task_id: str) -> Optional[Dialog]:
        task = self.index.get(task_id)
        if task is None:
            return self._show_missing("task", task_id)
        content = render(
            "move_form.html",
            task=task,
            statuses=list(STATUS_LABELS.items()),
            current=getattr(task.status, "value", task.status),
        )

        def render_form(values, errors):
            return content

        return self.modal.open_form(
            "Move Task", render_form, validate_status,
            lambda status: self.move_task(task_id, status),
            fields=("status",),
        )

    def move_task(self, task_id: str, status: TaskStatus) -> Optional[Task]:
        """Explicit move (outside drag/drop). Returns the task if it moved."""
        self.pump()
        task = self.store.set_task_status(task_id, status)
        if task is not None:
            self.toast(f"{task.title} moved to {status.label}")
        return task

    def delete_task(self, task_id: str) -> Optional[Dialog]:
        """Ask for confirmation; the task is only removed on confirm."""
        task = self.index.get(task_id)
        if task is None:
            return self._show_missing("task", task_id)
        title = task.title
        content = render(
            "confirm.html",
            message=f"Delete “{title}”? This cannot be undone.",
            confirm_label="Delete",
        )
        return self.modal.confirm("Delete Task", content, lambda: self.remove_task(task_id))

    def remove_task(self, task_id: str) -> bool:
        """Delete without asking; callers have already confirmed."""
        self.pump()
        task = self.store.get_task(task_id)
        if task is None or not self.store.delete_task(task_id):
            return False
        self.toast(f"{task.title} deleted")
        return True

    # -------------------- projects --------------------

    def open_new_project_modal(self) -> Optional[Dialog]:
        def render_form(values, errors):
            return render("project_form.html", values=values, errors=errors)

        return self.modal.open_form(
            "Create New Project", render_form, validate_project, self.create_project,
            values={"priority": Priority.MEDIUM.value}, fields=PROJECT_FIELDS,
        )

    def create_project(self, cleaned: Dict[str, Any]) -> Project:
        self.pump()
        project = Project(id=new_id("project-"), status="planning", progress=0, spent=0, **cleaned)
        self.store.add_project(project)
        self.toast(f"Project {project.name} created successfully!")
        return project

    # -------------------- filters --------------------

    def filter_by_project(self, value: Optional[str]) -> str:
        project = normalize_project_filter(value)
        self.board.set_filters(project=project)
        return project

    def filter_by_priority(self, value: Optional[str]) -> str:
        priority = normalize_priority_filter(value)
        self.board.set_filters(priority=priority)
        return priority

    # -------------------- calendar & documents --------------------

    def change_month(self, delta: int) -> str:
        self.calendar.change_month(delta)
        return self.calendar.month_label

    def go_to_today(self) -> str:
        self.calendar.go_to_today()
        return self.calendar.month_label

    def filter_calendar_by_project(self, value: Optional[str]) -> str:
        return self.calendar.filter_by_project(value)

    def change_calendar_view(self, view: str) -> bool:
        if not self.calendar.change_view(view):
            self.toast("Week and Day views are under development.")
            return False
        return True

    def open_event(self, event_id: str) -> Optional[Dialog]:
        event = self.store.get_event(event_id)
        if event is None:
            return self._show_missing("event", event_id)
        return self.modal.open("Event Details", render(
            "event_detail.html", event=event, project_name=self.store.project_name(event.project)))

    def open_events_for_date(self, iso_date: str, project: Optional[str] = None) -> Optional[Dialog]:
        """Events on one day; the calendar's project filter applies unless `project` is given."""
        if project is None:
            events = self.calendar.events_on(iso_date)
        else:
            events = self.store.events_on(iso_date, normalize_project_filter(project))
        if not events:
            self.toast("No events for this date.")
            return None
        rows = [(e, self.store.project_name(e.project)) for e in events]
        return self.modal.open(f"Events on {iso_date}", render("events_for_date.html", events=rows))

    def open_add_event_modal(self, default_date: Optional[str] = None) -> Optional[Dialog]:
        values = {
            "date": default_date or (self.store.today or date.today()).isoformat(),
            "project": self.store.projects[0].id if self.store.projects else "",
        }

        def render_form(values, errors):
            return render("event_form.html", values=values, errors=errors, projects=self.store.projects)

        return self.modal.open_form(
            "Schedule New Task/Event", render_form, validate_event, self.create_event,
            values=values, fields=EVENT_FIELDS,
        )

    def create_event(self, cleaned: Dict[str, Any]) -> Event:
        self.pump()
        event = Event(id=new_id("e"), **cleaned)
        self.store.add_event(event)
        self.toast("Event scheduled.")
        return event

    def open_document(self, doc_id: str) -> Optional[Dialog]:
        doc = self.store.get_document(doc_id)
        if doc is None:
            return self._show_missing("document", doc_id)
        return self.modal.open("File Details", render(
            "document_detail.html", doc=doc, project_name=self.store.project_name(doc.project)))

    def _show_missing(self, kind: str, ref: str) -> Optional[Dialog]:
        logger.debug("No %s %r", kind, ref)
        return self.modal.open(f"{kind.capitalize()} Details", render("missing.html", kind=kind, ref=ref))
