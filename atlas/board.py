"""
Kanban board: rendering, filters and the drag/drop state machine.

Drag/drop states:
  Idle
  Dragging(task_id, origin_status)

  Idle → Dragging       drag starts on a card (pointer moved past the
                        threshold, or an explicit start_drag)
  Dragging → Idle       drop on a bound column: commit status, persist,
                        notify, toast
  Dragging → Idle       drop anywhere else, or cancel: nothing is written

A drop is the only gesture that changes a status; the card snaps back on a
cancel simply because nothing was written.
"""
import logging
import math
import re
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Union

from .page import CardView, Page, Role
from .render import render
from .schema import Task, TaskStatus
from .store import AtlasStore

logger = logging.getLogger(__name__)

DRAG_THRESHOLD_PX = 5
ALL = "all"
PRIORITY_WORDS = ("high", "medium", "low")


def normalize_project_filter(value: Optional[str]) -> str:
    """'All Projects' -> 'all', 'Kitchen' -> 'kitchen', 'Guest Bath' -> 'guest-bath'."""
    slug = re.sub(r"\s+", "-", (value or ALL).strip().lower())
    if not slug or slug == ALL or slug.startswith("all-"):
        return ALL
    return slug


def normalize_priority_filter(value: Optional[str]) -> str:
    """'High Priority' -> 'high'; anything without a priority word -> 'all'."""
    text = (value or "").lower()
    for word in PRIORITY_WORDS:
        if word in text:
            return word
    return ALL


@dataclass(frozen=True)
class Idle:
    pass


@dataclass(frozen=True)
class Dragging:
    task_id: str
    origin_status: TaskStatus


DragState = Union[Idle, Dragging]
IDLE = Idle()


@dataclass
class _Gesture:
    """Pointer-down origin for telling a click from a drag."""
    task_id: str
    x: float
    y: float
    exceeded: bool = False


class BoardController:
    """Renders the board from the store and the active filters."""

    def __init__(
        self,
        store: AtlasStore,
        page: Page,
        open_task: Optional[Callable[[str], Any]] = None,
        open_add_task: Optional[Callable[[TaskStatus], Any]] = None,
        notify: Optional[Callable[[str], Any]] = None,
        drag_threshold: float = DRAG_THRESHOLD_PX,
        before_commit: Optional[Callable[[], Any]] = None,
    ):
        self.store = store
        self.page = page
        self.open_task = open_task
        self.open_add_task = open_add_task
        self.notify = notify
        self.drag_threshold = drag_threshold
        self.before_commit = before_commit
        self.project_filter = ALL
        self.priority_filter = ALL
        self.state: DragState = IDLE
        self._gesture: Optional[_Gesture] = None
        self._suppress_click = False

    # -------------------- filters --------------------

    def set_filters(self, project: Optional[str] = None, priority: Optional[str] = None) -> None:
        """Change one or both filters and re-render. The store is untouched."""
        if project is not None:
            self.project_filter = project or ALL
        if priority is not None:
            self.priority_filter = priority or ALL
        self.render()

    def matches(self, task: Task) -> bool:
        project_match = self.project_filter == ALL or task.project == self.project_filter
        priority_match = self.priority_filter == ALL or task.priority.value == self.priority_filter
        return project_match and priority_match

    def visible_tasks(self) -> List[Task]:
        return [t for t in self.store.tasks if self.matches(t)]

    def column_tasks(self, status: TaskStatus) -> List[Task]:
        return [t for t in self.visible_tasks() if t.column == status]

    def counts(self) -> Dict[TaskStatus, int]:
        counts = {status: 0 for status in TaskStatus}
        for task in self.visible_tasks():
            if task.column is not None:
                counts[task.column] += 1
        return counts

    # -------------------- rendering --------------------

    def render(self) -> None:
        """Refill every bound column with card markup, then the count badges."""
        draw_cards = self.page.bindings.has(Role.CARD)
        for status in TaskStatus:
            column = self.page.column(status)
            if column is None:
                logger.debug("Page %s has no %s column; skipped", self.page.bindings.name, status.value)
                continue
            column.cards = [
                CardView(task.id, self._card_markup(task)) for task in self.column_tasks(status)
            ] if draw_cards else []
        self.update_counts()

    def update_counts(self) -> None:
        for status, count in self.counts().items():
            self.page.set_badge(status, count)

    def _card_markup(self, task: Task) -> str:
        return render("card.html", task=task, project_name=self.store.project_name(task.project))

    # -------------------- pointer gestures --------------------

    def pointer_down(self, task_id: str, x: float, y: float) -> None:
        self._gesture = _Gesture(task_id, x, y)
        self._suppress_click = False

    def pointer_move(self, x: float, y: float) -> bool:
        """Track movement; starts the drag once the threshold is exceeded."""
        gesture = self._gesture
        if gesture is None:
            return False
        if not gesture.exceeded and math.hypot(x - gesture.x, y - gesture.y) > self.drag_threshold:
            gesture.exceeded = True
            self.start_drag(gesture.task_id)
        return gesture.exceeded

    def pointer_up(self, target: Optional[str] = None) -> Optional[Task]:
        """Release the pointer over `target` (a column status, or None for outside)."""
        gesture, self._gesture = self._gesture, None
        result = self.drop(target) if isinstance(self.state, Dragging) else None
        # only the click that ends a dragged gesture is swallowed
        self._suppress_click = bool(gesture and gesture.exceeded)
        return result

    def click(self, task_id: str) -> bool:
        """Open the task's details unless the click ends a drag gesture."""
        if self._suppress_click:
            self._suppress_click = False
            return False
        if self.open_task is None:
            return False
        self.open_task(task_id)
        return True

    def add_task_clicked(self, status: Union[TaskStatus, str]) -> bool:
        """An add-task trigger fired; only triggers the page declares are honoured."""
        parsed = TaskStatus.parse(status)
        if parsed is None or not self.page.bindings.has(Role.ADD_BUTTON, parsed):
            return False
        if self.open_add_task is None:
            return False
        self.open_add_task(parsed)
        return True

    # -------------------- drag state machine --------------------

    def start_drag(self, task_id: str) -> bool:
        if isinstance(self.state, Dragging):
            return False
        task = self.store.get_task(task_id)
        if task is None or task.column is None:
            return False
        self.state = Dragging(task_id=task.id, origin_status=task.column)
        logger.debug("Drag started: %s from %s", task.id, task.column.value)
        return True

    def drop(self, target: Optional[Union[TaskStatus, str]]) -> Optional[Task]:
        """Finish a drag over `target`. Returns the task if its status changed."""
        state = self.state
        if not isinstance(state, Dragging):
            return None
        self.state = IDLE
        status = TaskStatus.parse(target) if target is not None else None
        if status is None or not self.page.bindings.has(Role.COLUMN, status):
            logger.debug("Drop of %s outside any column; nothing written", state.task_id)
            return None
        if self.before_commit is not None:
            self.before_commit()
        task = self.store.set_task_status(state.task_id, status)
        if task is None:
            return None
        self.render()
        if self.notify is not None:
            self.notify(f"{task.title} moved to {status.label}")
        return task

    def cancel_drag(self) -> None:
        if isinstance(self.state, Dragging):
            logger.debug("Drag of %s cancelled", self.state.task_id)
        self.state = IDLE
        self._gesture = None
        self._suppress_click = False
