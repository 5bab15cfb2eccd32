# SQLModel definitions, imported here so the metadata is complete for Alembic and init_db.
from .base import UUIDMixin, TimestampMixin, OwnedMixin  # noqa: F401
from .user import User  # noqa: F401
from .custom_status import CustomStatus  # noqa: F401
from .project import Project  # noqa: F401
from .task import Task, TaskList  # noqa: F401
from .todo import Todo  # noqa: F401
from .archive import ArchiveLog, ArchivePolicy  # noqa: F401
