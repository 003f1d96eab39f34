"""
Headless page surface and its typed role bindings.

A page declares up front which roles it carries (kanban columns, count
badges, add-task triggers, task cards, modal root, toasts). Render steps for
a role the page does not declare are skipped; nothing is guessed from
markup.
"""
import logging
from collections import deque
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Deque, Dict, Iterable, List, Optional, Tuple

from .schema import TaskStatus

logger = logging.getLogger(__name__)

ALL_STATUSES: Tuple[TaskStatus, ...] = tuple(TaskStatus)


class Role(Enum):
    COLUMN = "column"
    COUNT_BADGE = "count-badge"
    ADD_BUTTON = "add-button"
    CARD = "card"
    MODAL_ROOT = "modal-root"
    TOAST = "toast"


def _statuses(values: Iterable[Any]) -> Tuple[TaskStatus, ...]:
    parsed = []
    for value in values or ():
        status = TaskStatus.parse(value)
        if status is None:
            logger.warning("Ignoring unknown column %r in page bindings", value)
        elif status not in parsed:
            parsed.append(status)
    return tuple(parsed)


@dataclass(frozen=True)
class PageBindings:
    """Which roles exist on a page."""
    name: str
    columns: Tuple[TaskStatus, ...] = ()
    count_badges: Tuple[TaskStatus, ...] = ()
    add_buttons: Tuple[TaskStatus, ...] = ()
    cards: bool = False
    modal_root: bool = True
    toasts: bool = True

    def has(self, role: Role, status: Optional[TaskStatus] = None) -> bool:
        if role is Role.COLUMN:
            return status in self.columns
        if role is Role.COUNT_BADGE:
            return status in self.count_badges
        if role is Role.ADD_BUTTON:
            return status in self.add_buttons
        if role is Role.CARD:
            return self.cards
        if role is Role.MODAL_ROOT:
            return self.modal_root
        return self.toasts

    @classmethod
    def kanban(cls) -> "PageBindings":
        return cls(
            name="kanban",
            columns=ALL_STATUSES,
            count_badges=ALL_STATUSES,
            add_buttons=ALL_STATUSES,
            cards=True,
        )

    @classmethod
    def static(cls, name: str) -> "PageBindings":
        """A page with no board; it only opens dialogs through entry points."""
        return cls(name=name)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "PageBindings":
        """Parse a bindings block from config. Unknown columns are dropped."""
        return cls(
            name=str(data.get("name", "custom")),
            columns=_statuses(data.get("columns", ())),
            count_badges=_statuses(data.get("count_badges", ())),
            add_buttons=_statuses(data.get("add_buttons", ())),
            cards=bool(data.get("cards", False)),
            modal_root=bool(data.get("modal_root", True)),
            toasts=bool(data.get("toasts", True)),
        )


PAGE_BINDINGS: Dict[str, PageBindings] = {
    "kanban": PageBindings.kanban(),
    "dashboard": PageBindings.static("dashboard"),
    "calendar": PageBindings.static("calendar"),
    "documents": PageBindings.static("documents"),
    "projects": PageBindings.static("projects"),
    "index": PageBindings(name="index", modal_root=False, toasts=False),
}


@dataclass
class CardView:
    task_id: str
    markup: str


@dataclass
class ColumnView:
    status: TaskStatus
    cards: List[CardView] = field(default_factory=list)

    @property
    def task_ids(self) -> List[str]:
        return [c.task_id for c in self.cards]


@dataclass
class Dialog:
    """The mounted modal: markup plus the controls focus may move between."""
    title: str
    content: str
    focusables: List[str] = field(default_factory=list)
    errors: Dict[str, str] = field(default_factory=dict)
    kind: str = "dialog"           # dialog | form | confirm


Handler = Callable[..., Any]


class Page:
    """Rendered output and event routing for one page of one context."""

    def __init__(self, bindings: PageBindings, toast_limit: int = 20):
        self.bindings = bindings
        self.columns: Dict[TaskStatus, ColumnView] = {s: ColumnView(s) for s in bindings.columns}
        self.badges: Dict[TaskStatus, int] = {}
        self.dialog: Optional[Dialog] = None
        self.focus: Optional[str] = None
        self.toasts: Deque[str] = deque(maxlen=toast_limit)
        self._listeners: Dict[str, List[Handler]] = {}

    # -------------------- roles --------------------

    def column(self, status: TaskStatus) -> Optional[ColumnView]:
        return self.columns.get(status)

    def set_badge(self, status: TaskStatus, count: int) -> bool:
        if not self.bindings.has(Role.COUNT_BADGE, status):
            return False
        self.badges[status] = count
        return True

    def mount(self, dialog: Dialog) -> bool:
        if not self.bindings.modal_root:
            logger.debug("Page %s has no modal root; dialog %r not shown", self.bindings.name, dialog.title)
            return False
        self.dialog = dialog
        return True

    def unmount(self) -> None:
        self.dialog = None

    def show_toast(self, message: str) -> bool:
        if not self.bindings.toasts:
            return False
        self.toasts.append(message)
        return True

    # -------------------- events --------------------

    def add_listener(self, event_type: str, handler: Handler) -> None:
        self._listeners.setdefault(event_type, []).append(handler)

    def remove_listener(self, event_type: str, handler: Handler) -> None:
        handlers = self._listeners.get(event_type, [])
        if handler in handlers:
            handlers.remove(handler)

    def listener_count(self, event_type: Optional[str] = None) -> int:
        if event_type is not None:
            return len(self._listeners.get(event_type, []))
        return sum(len(h) for h in self._listeners.values())

    def dispatch(self, event_type: str, **event) -> bool:
        """Deliver an event to every listener. Returns True if any ran."""
        handlers = list(self._listeners.get(event_type, []))
        for handler in handlers:
            handler(**event)
        return bool(handlers)

    def press_key(self, key: str, shift: bool = False) -> bool:
        return self.dispatch("keydown", key=key, shift=shift)

    def click(self, target: str) -> bool:
        return self.dispatch("click", target=target)
