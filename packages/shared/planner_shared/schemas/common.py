from enum import Enum

class TodoStatus(str, Enum):
    WAIT = "WAIT"
    IN_PROGRESS = "IN_PROGRESS"
    COMPLETE = "COMPLETE"

class TodoPriority(str, Enum):
    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"
    URGENT = "URGENT"

class TaskStatus(str, Enum):
    TODO = "TODO"
    IN_PROGRESS = "IN_PROGRESS"
    COMPLETE = "COMPLETE"

class ArchiveBucket(str, Enum):
    FINISHED = "FINISHED"
    UNFINISHED = "UNFINISHED"

class GraceUnit(str, Enum):
    DAY = "DAY"
    HOUR = "HOUR"

class ListKind(str, Enum):
    TODO = "TODO"
    IN_PROGRESS = "IN_PROGRESS"
    COMPLETE = "COMPLETE"
    CUSTOM = "CUSTOM"

    @classmethod
    def from_name(cls, name: str) -> "ListKind":
        """Infer a list kind from a display name ("In Progress" -> IN_PROGRESS)."""
        return LIST_NAME_KINDS.get(name.strip().upper(), cls.CUSTOM)

# Display names that imply a list kind when none is given explicitly
LIST_NAME_KINDS: dict[str, ListKind] = {
    "TODO": ListKind.TODO,
    "IN PROGRESS": ListKind.IN_PROGRESS,
    "IN_PROGRESS": ListKind.IN_PROGRESS,
    "COMPLETE": ListKind.COMPLETE,
    "COMPLETED": ListKind.COMPLETE,
}

# Statuses of todos that can still become overdue
OPEN_TODO_STATUSES: tuple[TodoStatus, ...] = (TodoStatus.WAIT, TodoStatus.IN_PROGRESS)

