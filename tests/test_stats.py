from __future__ import annotations

from task_manager.models import Priority, Status, Task
from task_manager.stats import (
    completion_rate,
    count_by_priority,
    count_by_status,
    summary,
    tag_counts,
    total,
)


def make_tasks() -> list[Task]:
    return [
        Task(id=1, title="A", status=Status.COMPLETED, priority=Priority.LOW, tags=frozenset({"home"})),
        Task(id=2, title="B", status=Status.PENDING, priority=Priority.CRITICAL, tags=frozenset({"work", "home"})),
        Task(id=3, title="C", status=Status.COMPLETED, priority=Priority.CRITICAL, tags=frozenset({"work"})),
    ]


def test_count_by_status_has_every_key() -> None:
    counts = count_by_status(make_tasks())
    assert counts == {Status.PENDING: 1, Status.IN_PROGRESS: 0, Status.COMPLETED: 2}
    assert sum(counts.values()) == total(make_tasks())


def test_count_by_priority_has_every_key() -> None:
    counts = count_by_priority(make_tasks())
    assert counts[Priority.LOW] == 1
    assert counts[Priority.MEDIUM] == 0
    assert counts[Priority.CRITICAL] == 2
    assert list(counts) == [Priority.LOW, Priority.MEDIUM, Priority.HIGH, Priority.CRITICAL]


def test_empty_input() -> None:
    assert total([]) == 0
    assert set(count_by_status([]).values()) == {0}
    assert completion_rate([]) == 0.0
    assert tag_counts([]) == []


def test_completion_rate() -> None:
    assert completion_rate(make_tasks()) == 66.67


def test_tag_counts() -> None:
    assert tag_counts(make_tasks()) == [("home", 2), ("work", 2)]
    assert tag_counts(make_tasks(), limit=1) == [("home", 2)]


def test_summary_accepts_generators() -> None:
    result = summary(task for task in make_tasks())
    assert result["total"] == 3
    assert result["by_status"][Status.COMPLETED] == 2
    assert result["completion_rate"] == 66.67
