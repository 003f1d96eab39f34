"""
Task lookup index: id -> Task and normalized title -> [task ids].

Titles are not unique, so a title maps to every id carrying it, in
collection order. The index tracks the store's version and rebuilds itself
before any lookup made after a load or save.
"""
import re
from typing import Dict, List, Optional

from .schema import Task

_SPACES = re.compile(r"\s+")


def normalize_title(title: str) -> str:
    """Case-fold, trim and collapse inner whitespace."""
    return _SPACES.sub(" ", (title or "").strip()).casefold()


class TaskIndex:
    """O(1) lookups over the store's tasks."""

    def __init__(self, store):
        self.store = store
        self._by_id: Dict[str, Task] = {}
        self._by_title: Dict[str, List[str]] = {}
        self._tasks: List[Task] = []
        self._version: Optional[int] = None

    def rebuild(self) -> None:
        by_id: Dict[str, Task] = {}
        by_title: Dict[str, List[str]] = {}
        tasks = list(self.store.tasks)
        for task in tasks:
            # first occurrence wins on an id collision
            by_id.setdefault(task.id, task)
            by_title.setdefault(normalize_title(task.title), []).append(task.id)
        self._by_id = by_id
        self._by_title = by_title
        self._tasks = tasks
        self._version = self.store.version

    def _fresh(self) -> None:
        if self._version != self.store.version:
            self.rebuild()

    def get(self, task_id: str) -> Optional[Task]:
        self._fresh()
        return self._by_id.get(task_id)

    def ids_for_title(self, title: str) -> List[str]:
        self._fresh()
        return list(self._by_title.get(normalize_title(title), []))

    def tasks(self) -> List[Task]:
        """Tasks in collection order, as of the last rebuild."""
        self._fresh()
        return list(self._tasks)

    def __contains__(self, task_id: str) -> bool:
        return self.get(task_id) is not None

    def __len__(self) -> int:
        self._fresh()
        return len(self._by_id)
