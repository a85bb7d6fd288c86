"""Column types, id and clock helpers shared by the ledger tables."""

import uuid
from datetime import UTC, datetime
from enum import Enum
from typing import Any

from sqlalchemy import String, TypeDecorator
from sqlalchemy.engine import Dialect


class UUIDType(TypeDecorator[uuid.UUID]):
    """UUID stored as its 36-character text form on every backend.

    The migrations declare these columns as ``String(length=36)``, so SQLite
    and PostgreSQL databases hold the same representation.
    """

    impl = String(36)
    cache_ok = True

    def process_bind_param(self, value: Any, dialect: Dialect) -> str | None:
        if value is None:
            return None
        # Accept strings from request payloads; a malformed id fails here.
        return str(value if isinstance(value, uuid.UUID) else uuid.UUID(str(value)))

    def process_result_value(self, value: Any, dialect: Dialect) -> uuid.UUID | None:
        if value is None or isinstance(value, uuid.UUID):
            return value
        return uuid.UUID(value)


class LifecycleState(str, Enum):
    """Soft-delete state carried by every ledger entity.

    Read paths filter on it explicitly; there is no default scope.
    """

    ACTIVE = "active"
    DELETED = "deleted"


def generate_uuid() -> uuid.UUID:
    return uuid.uuid4()


def utc_now() -> datetime:
    """Timezone-aware now; also the insert time FIFO credit draws order by."""
    return datetime.now(UTC)
