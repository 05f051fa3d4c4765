from __future__ import annotations


class TaskError(Exception):
    """Base class for task manager errors."""


class ValidationError(TaskError, ValueError):
    """Input violates a domain constraint (empty title, unknown priority...)."""


class DuplicateTaskError(ValidationError):
    def __init__(self, title: str) -> None:
        super().__init__(f"task with title {title!r} already exists")
        self.title = title


class NotFoundError(TaskError, LookupError):
    def __init__(self, task_id: int) -> None:
        super().__init__(f"task {task_id} not found")
        self.task_id = task_id


class CommandError(TaskError):
    """A shell command line could not be parsed."""
