from __future__ import annotations

from typing import Iterable

from task_manager.models import Priority, Status, Task


def filter_by_keyword(
    tasks: Iterable[Task], keyword: str, *, include_tags: bool = False
) -> list[Task]:
    """Case-insensitive substring match on title and description.

    With ``include_tags`` a task also matches when one of its tags contains
    the keyword.
    """
    needle = keyword.casefold()
    matched = []
    for task in tasks:
        haystack = [task.title, task.description]
        if include_tags:
            haystack.extend(task.tags)
        if any(needle in text.casefold() for text in haystack):
            matched.append(task)
    return matched


def filter_by_priority(tasks: Iterable[Task], priority: Priority) -> list[Task]:
    return [task for task in tasks if task.priority == priority]


def filter_by_status(tasks: Iterable[Task], status: Status) -> list[Task]:
    return [task for task in tasks if task.status == status]


def filter_by_tag(tasks: Iterable[Task], tag: str) -> list[Task]:
    tag = tag.strip()
    return [task for task in tasks if tag in task.tags]


def apply_filters(
    tasks: Iterable[Task],
    *,
    keyword: str | None = None,
    priority: Priority | None = None,
    status: Status | None = None,
    tag: str | None = None,
) -> list[Task]:
    result = list(tasks)
    if keyword is not None:
        result = filter_by_keyword(result, keyword)
    if priority is not None:
        result = filter_by_priority(result, priority)
    if status is not None:
        result = filter_by_status(result, status)
    if tag is not None:
        result = filter_by_tag(result, tag)
    return result


def sort_by_priority(tasks: Iterable[Task], *, descending: bool = True) -> list[Task]:
    if descending:
        return sorted(tasks, key=lambda item: (-item.priority, item.id))
    return sorted(tasks, key=lambda item: (item.priority, item.id))
