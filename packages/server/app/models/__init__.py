# SQLModel definitions: imported here to ensure metadata is populated for create_all.
from .base import CreatedAtMixin, TimestampMixin, UUIDMixin  # noqa: F401
from .user import User  # noqa: F401
from .organization import Organization  # noqa: F401
from .auth_session import AuthSession  # noqa: F401
from .membership import Membership  # noqa: F401
from .project import Project  # noqa: F401
from .task import Task  # noqa: F401
from .audit_log import AuditLogEntry  # noqa: F401
