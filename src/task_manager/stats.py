from __future__ import annotations

from collections import Counter
from typing import Any, Iterable

from task_manager.models import Priority, Status, Task


def total(tasks: Iterable[Task]) -> int:
    return sum(1 for _task in tasks)


def count_by_status(tasks: Iterable[Task]) -> dict[Status, int]:
    counts = {status: 0 for status in Status}
    for task in tasks:
        counts[task.status] += 1
    return counts


def count_by_priority(tasks: Iterable[Task]) -> dict[Priority, int]:
    counts = {level: 0 for level in Priority}
    for task in tasks:
        counts[task.priority] += 1
    return counts


def completion_rate(tasks: Iterable[Task]) -> float:
    task_list = list(tasks)
    if not task_list:
        return 0.0
    done = sum(1 for task in task_list if task.status is Status.COMPLETED)
    return round((done / len(task_list)) * 100, 2)


def tag_counts(tasks: Iterable[Task], limit: int | None = None) -> list[tuple[str, int]]:
    counter: Counter[str] = Counter()
    for task in tasks:
        counter.update(task.tags)
    ranked = sorted(counter.items(), key=lambda item: (-item[1], item[0]))
    return ranked if limit is None else ranked[:limit]


def summary(tasks: Iterable[Task]) -> dict[str, Any]:
    task_list = list(tasks)
    return {
        "total": total(task_list),
        "by_status": count_by_status(task_list),
        "by_priority": count_by_priority(task_list),
        "completion_rate": completion_rate(task_list),
    }
