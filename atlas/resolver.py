"""
Resolve a caller-supplied identifier to a task.

Pages reference tasks either by id or, in static template content, by name
only. Lookup order: exact id, exact normalized title, fuzzy substring match
(either direction), then "unresolved". Callers render a placeholder for an
unresolved name instead of treating it as an error.
"""
import logging
from dataclasses import dataclass
from typing import Optional, Tuple

from .indexer import TaskIndex, normalize_title
from .schema import Task

logger = logging.getLogger(__name__)

MATCH_ID = "id"
MATCH_TITLE = "title"
MATCH_FUZZY = "fuzzy"
UNRESOLVED = "unresolved"


@dataclass(frozen=True)
class Resolution:
    """Outcome of a lookup. `candidates` lists every id that matched."""
    query: str
    task: Optional[Task] = None
    match: str = UNRESOLVED
    candidates: Tuple[str, ...] = ()

    @property
    def resolved(self) -> bool:
        return self.task is not None

    @property
    def ambiguous(self) -> bool:
        return len(self.candidates) > 1


class TaskResolver:
    """Id / title / fuzzy lookup over a TaskIndex.

    With `strict=True` an ambiguous title or fuzzy match is reported as
    unresolved (candidates attached) instead of picking the first one.
    """

    def __init__(self, index: TaskIndex, strict: bool = False):
        self.index = index
        self.strict = strict

    def resolve(self, id_or_name: Optional[str]) -> Resolution:
        query = (id_or_name or "").strip()
        if not query:
            return Resolution(query=query)

        task = self.index.get(query)
        if task is not None:
            return Resolution(query, task, MATCH_ID, (task.id,))

        ids = self.index.ids_for_title(query)
        if ids:
            return self._pick(query, MATCH_TITLE, tuple(ids))

        needle = normalize_title(query)
        fuzzy = tuple(
            t.id for t in self.index.tasks()
            if needle in normalize_title(t.title) or (t.title.strip() and normalize_title(t.title) in needle)
        )
        if fuzzy:
            return self._pick(query, MATCH_FUZZY, fuzzy)

        logger.debug("No task matches %r", query)
        return Resolution(query=query)

    def _pick(self, query: str, match: str, ids: Tuple[str, ...]) -> Resolution:
        if len(ids) > 1:
            logger.warning("Ambiguous %s match for %r: %s", match, query, ", ".join(ids))
            if self.strict:
                return Resolution(query=query, candidates=ids)
        return Resolution(query, self.index.get(ids[0]), match, ids)
