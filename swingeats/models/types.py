"""
SwingEats — Shared column types
"""
from datetime import datetime

from sqlalchemy import DateTime
from sqlalchemy.types import TypeDecorator

from swingeats.core.timing import ensure_utc


class UTCDateTime(TypeDecorator):
    """
    Timezone-aware timestamp that always comes back as UTC.

    SQLite drops tzinfo on storage, so values read there are naive; Postgres
    returns them in the session zone. Both are normalized here, once.
    """

    impl = DateTime(timezone=True)
    cache_ok = True

    def process_bind_param(self, value: datetime | None, dialect):
        return ensure_utc(value)

    def process_result_value(self, value: datetime | None, dialect):
        return ensure_utc(value)
