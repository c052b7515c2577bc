"""Fold sanitized tasks into per-status kanban columns and the flat list view."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Iterable, TypedDict

from .tasks import Task, normalize_status

logger = logging.getLogger("snapshotter.assembler")


class ListSummary(TypedDict):
    id: str
    name: str
    numColumns: int
    columnsInfo: dict[str, int]


class Snapshot(TypedDict):
    date: str
    lists: list[ListSummary]
    kanbanColumns: dict[str, dict[str, list[Task]]]
    listViewTasks: list[Task]


class StatusBuckets:
    """Ordered mapping of normalized status → tasks.

    Known statuses are registered up front so every column exists even when
    empty.  A task whose status is unknown gets a new column appended at the
    end instead of being dropped.
    """

    def __init__(self, statuses: Iterable[dict | str] = ()) -> None:
        self._buckets: dict[str, list[Task]] = {}
        self.known: list[str] = []
        for status in statuses:
            label = status.get("status") if isinstance(status, dict) else status
            key = normalize_status(label)
            if key not in self._buckets:
                self._buckets[key] = []
                self.known.append(key)

    def add(self, task: Task) -> None:
        key = normalize_status(task["status"])
        if key not in self._buckets:
            logger.warning(
                "Task %s has status %r not defined on list %r; adding a column",
                task["id"], task["status"], task["listName"],
            )
            self._buckets[key] = []
        self._buckets[key].append(task)

    def counts(self) -> dict[str, int]:
        """Task count per defined status; columns added for unknown statuses are not counted."""
        return {key: len(self._buckets[key]) for key in self.known}

    def as_dict(self) -> dict[str, list[Task]]:
        return {key: list(tasks) for key, tasks in self._buckets.items()}

    def __len__(self) -> int:
        return sum(len(tasks) for tasks in self._buckets.values())


@dataclass
class ListSection:
    """One list's contribution to a snapshot."""
    id: str
    name: str
    columns: StatusBuckets
    tasks: list[Task] = field(default_factory=list)

    def add(self, task: Task) -> None:
        self.columns.add(task)
        self.tasks.append(task)

    @property
    def summary(self) -> ListSummary:
        return ListSummary(
            id=self.id,
            name=self.name,
            numColumns=len(self.columns.known),
            columnsInfo=self.columns.counts(),
        )


def build_section(list_id: str, list_name: str, statuses: Iterable[dict | str], tasks: Iterable[Task]) -> ListSection:
    """Place ``tasks`` (already filtered and sanitized, in source order) into columns."""
    section = ListSection(id=list_id, name=list_name, columns=StatusBuckets(statuses))
    for task in tasks:
        section.add(task)
    return section


class SnapshotAssembler:
    """Accumulates list sections, in fetch order, into one snapshot document."""

    def __init__(self, date: str) -> None:
        self.snapshot = Snapshot(date=date, lists=[], kanbanColumns={}, listViewTasks=[])

    def add_section(self, section: ListSection) -> bool:
        """Merge a list into the snapshot.  Lists without tasks are left out."""
        if not section.tasks:
            logger.info("No tasks to include in %s after filtering.", section.name)
            return False
        self.snapshot["kanbanColumns"][section.name] = section.columns.as_dict()
        self.snapshot["listViewTasks"].extend(section.tasks)
        self.snapshot["lists"].append(section.summary)
        return True

    def build(self) -> Snapshot:
        return self.snapshot
