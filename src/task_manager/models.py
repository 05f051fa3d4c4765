from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import IntEnum, StrEnum

from task_manager.errors import ValidationError


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Priority(IntEnum):
    LOW = 1
    MEDIUM = 2
    HIGH = 3
    CRITICAL = 4

    @property
    def label(self) -> str:
        return self.name.title()

    @classmethod
    def parse(cls, raw: str) -> Priority:
        """Accept a full level name or its first letter, in any case."""
        key = raw.strip().lower()
        for level in cls:
            name = level.name.lower()
            if key in (name, name[0]):
                return level
        raise ValidationError(f"invalid priority {raw!r} (use low, medium, high or critical)")


class Status(StrEnum):
    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"

    @property
    def label(self) -> str:
        return self.value.replace("_", " ").title()

    @classmethod
    def parse(cls, raw: str) -> Status:
        key = raw.strip().lower()
        status = _STATUS_ALIASES.get(key)
        if status is None:
            try:
                status = cls(key)
            except ValueError:
                raise ValidationError(
                    f"invalid status {raw!r} (use pending, progress or completed)"
                ) from None
        return status


_STATUS_ALIASES = {
    "progress": Status.IN_PROGRESS,
    "in-progress": Status.IN_PROGRESS,
    "inprogress": Status.IN_PROGRESS,
    "in progress": Status.IN_PROGRESS,
    "done": Status.COMPLETED,
}


def normalize_title(title: str) -> str:
    title = title.strip()
    if not title:
        raise ValidationError("title must not be empty")
    return title


def normalize_tag(tag: str) -> str:
    tag = tag.strip()
    if not tag:
        raise ValidationError("tag must not be empty")
    return tag


def as_priority(value: object) -> Priority:
    try:
        return Priority(value)
    except ValueError:
        raise ValidationError(f"invalid priority {value!r}") from None


def as_status(value: object) -> Status:
    try:
        return Status(value)
    except ValueError:
        raise ValidationError(f"invalid status {value!r}") from None


@dataclass(frozen=True, slots=True)
class Task:
    id: int
    title: str
    description: str = ""
    priority: Priority = Priority.MEDIUM
    status: Status = Status.PENDING
    tags: frozenset[str] = frozenset()
    created_at: datetime = field(default_factory=_utcnow)
    updated_at: datetime = field(default_factory=_utcnow)

    def __post_init__(self) -> None:
        if not self.title.strip():
            raise ValidationError("title must not be empty")
        object.__setattr__(self, "priority", as_priority(self.priority))
        object.__setattr__(self, "status", as_status(self.status))

    def sorted_tags(self) -> list[str]:
        return sorted(self.tags)
