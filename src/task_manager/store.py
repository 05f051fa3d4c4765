from __future__ import annotations

import itertools
from dataclasses import replace
from datetime import datetime, timezone

from task_manager.errors import DuplicateTaskError, NotFoundError
from task_manager.models import Priority, Status, Task, as_priority, normalize_tag, normalize_title


class TaskStore:
    """In-memory owner of all tasks.

    Records are immutable; every mutation swaps the stored record for an
    updated copy, so snapshots handed out by ``list``/``get`` never change
    underneath their readers. Not thread-safe.
    """

    def __init__(self, reject_duplicate_titles: bool = False) -> None:
        self.reject_duplicate_titles = reject_duplicate_titles
        self._tasks: dict[int, Task] = {}
        self._ids = itertools.count(1)

    def __len__(self) -> int:
        return len(self._tasks)

    def __contains__(self, task_id: object) -> bool:
        return task_id in self._tasks

    def add(
        self,
        title: str,
        description: str = "",
        priority: Priority = Priority.MEDIUM,
    ) -> int:
        title = normalize_title(title)
        priority = as_priority(priority)
        self._check_duplicate(title)

        task_id = next(self._ids)
        now = datetime.now(timezone.utc)
        self._tasks[task_id] = Task(
            id=task_id,
            title=title,
            description=description,
            priority=priority,
            created_at=now,
            updated_at=now,
        )
        return task_id

    def get(self, task_id: int) -> Task:
        try:
            return self._tasks[task_id]
        except KeyError:
            raise NotFoundError(task_id) from None

    def update(
        self,
        task_id: int,
        *,
        title: str | None = None,
        description: str | None = None,
        priority: Priority | None = None,
    ) -> None:
        task = self.get(task_id)
        changes: dict[str, object] = {}
        if title is not None:
            title = normalize_title(title)
            self._check_duplicate(title, ignore_id=task_id)
            changes["title"] = title
        if description is not None:
            changes["description"] = description
        if priority is not None:
            changes["priority"] = priority
        if changes:
            self._replace(task, **changes)

    def set_status(self, task_id: int, status: Status) -> None:
        self._replace(self.get(task_id), status=status)

    def add_tag(self, task_id: int, tag: str) -> None:
        task = self.get(task_id)
        tag = normalize_tag(tag)
        if tag not in task.tags:
            self._replace(task, tags=task.tags | {tag})

    def remove_tag(self, task_id: int, tag: str) -> None:
        task = self.get(task_id)
        tag = tag.strip()
        if tag in task.tags:
            self._replace(task, tags=task.tags - {tag})

    def delete(self, task_id: int) -> None:
        if self._tasks.pop(task_id, None) is None:
            raise NotFoundError(task_id)

    def list(self) -> list[Task]:
        return list(self._tasks.values())

    def _replace(self, task: Task, **changes: object) -> None:
        self._tasks[task.id] = replace(
            task, updated_at=datetime.now(timezone.utc), **changes
        )

    def _check_duplicate(self, title: str, ignore_id: int | None = None) -> None:
        if not self.reject_duplicate_titles:
            return
        for task in self._tasks.values():
            if task.title == title and task.id != ignore_id:
                raise DuplicateTaskError(title)
