"""Collaborative State Store: the normalized in-memory cache the UI reads.

Four collections (projects, tasks, members, activity) are each held in a
dict keyed by entity id, so no operation can leave two entries with the
same id. Dict insertion order is the list order consumers observe.

Only the coordinator holds a :class:`CollaborativeStateStore`. Everything
else receives a :class:`StateView`, which has no mutating methods.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable
from enum import StrEnum
from typing import Any

from .models import ActivityEntry, Project, Task, TeamMember

logger = logging.getLogger(__name__)

DEFAULT_ACTIVITY_LIMIT = 50


class Collection(StrEnum):
    PROJECTS = "projects"
    TASKS = "tasks"
    MEMBERS = "members"
    ACTIVITY = "activity"


Listener = Callable[[Collection], None]


class CollaborativeStateStore:
    """Mutable store. The activity collection is newest first and capped."""

    def __init__(self, activity_limit: int = DEFAULT_ACTIVITY_LIMIT) -> None:
        self.activity_limit = activity_limit
        self.active_project_id: str | None = None
        self._collections: dict[Collection, dict[str, Any]] = {c: {} for c in Collection}
        self._listeners: list[Listener] = []

    # -- mutation -------------------------------------------------------

    def replace(self, collection: Collection, items: Iterable[Any]) -> None:
        """Full refresh. Order is kept as given; later duplicates overwrite earlier ones."""
        fresh: dict[str, Any] = {}
        for item in items:
            fresh[item.id] = item
        if collection == Collection.ACTIVITY:
            fresh = self._capped(fresh)
        self._collections[collection] = fresh
        self._notify(collection)

    def upsert_one(self, collection: Collection, item: Any) -> None:
        """Insert if absent, else overwrite in place without reordering.

        New activity entries go to the front; everything else is appended.
        """
        entries = self._collections[collection]
        if item.id in entries:
            entries[item.id] = item
        elif collection == Collection.ACTIVITY:
            self._collections[collection] = self._capped({item.id: item, **entries})
        else:
            entries[item.id] = item
        self._notify(collection)

    def remove_one(self, collection: Collection, item_id: str) -> bool:
        removed = self._collections[collection].pop(item_id, None) is not None
        if removed:
            self._notify(collection)
        return removed

    def evict_project(self, project_id: str) -> int:
        """Drop cached tasks and members that reference *project_id*.

        The remote store cascades deletes; this keeps the local cache from
        holding orphans. Returns the number of evicted entries.
        """
        evicted = 0
        for collection in (Collection.TASKS, Collection.MEMBERS):
            entries = self._collections[collection]
            stale = [key for key, item in entries.items() if item.project_id == project_id]
            for key in stale:
                del entries[key]
            if stale:
                evicted += len(stale)
                self._notify(collection)
        if self.active_project_id == project_id:
            self.active_project_id = None
        logger.debug(f"Evicted {evicted} cached entries for project {project_id}")
        return evicted

    def set_active_project(self, project_id: str | None) -> None:
        self.active_project_id = project_id

    def clear(self) -> None:
        for collection in Collection:
            self._collections[collection] = {}
            self._notify(collection)
        self.active_project_id = None

    def _capped(self, entries: dict[str, Any]) -> dict[str, Any]:
        if len(entries) <= self.activity_limit:
            return entries
        return dict(list(entries.items())[: self.activity_limit])

    # -- reads ----------------------------------------------------------

    def get(self, collection: Collection, item_id: str) -> Any | None:
        return self._collections[collection].get(item_id)

    def items(self, collection: Collection) -> list[Any]:
        return list(self._collections[collection].values())

    def view(self) -> StateView:
        return StateView(self)

    # -- change notification --------------------------------------------

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register *listener*; returns a callable that unsubscribes it."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _notify(self, collection: Collection) -> None:
        for listener in list(self._listeners):
            listener(collection)


class StateView:
    """Read-only facade over the store, handed to UI consumers."""

    def __init__(self, store: CollaborativeStateStore) -> None:
        self._store = store

    @property
    def active_project_id(self) -> str | None:
        return self._store.active_project_id

    def projects(self) -> list[Project]:
        return self._store.items(Collection.PROJECTS)

    def project(self, project_id: str) -> Project | None:
        return self._store.get(Collection.PROJECTS, project_id)

    def tasks(self, project_id: str | None = None) -> list[Task]:
        tasks: list[Task] = self._store.items(Collection.TASKS)
        if project_id is None:
            return tasks
        return [t for t in tasks if t.project_id == project_id]

    def task(self, task_id: str) -> Task | None:
        return self._store.get(Collection.TASKS, task_id)

    def members(self, project_id: str | None = None) -> list[TeamMember]:
        members: list[TeamMember] = self._store.items(Collection.MEMBERS)
        if project_id is None:
            return members
        return [m for m in members if m.project_id == project_id]

    def member(self, membership_id: str) -> TeamMember | None:
        return self._store.get(Collection.MEMBERS, membership_id)

    def activity(self) -> list[ActivityEntry]:
        return self._store.items(Collection.ACTIVITY)

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        return self._store.subscribe(listener)
