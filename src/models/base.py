"""Base classes for SQLAlchemy models."""

import itertools
import os
import time
from datetime import UTC, datetime

from sqlalchemy import DateTime
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

# Counter part of the generated identifiers, random start like MongoDB ObjectId
_id_counter = itertools.count(int.from_bytes(os.urandom(3), "big"))
_process_random = os.urandom(5).hex()


def utc_now() -> datetime:
    """Return current UTC datetime (naive, for SQLite compatibility)."""
    return datetime.now(UTC).replace(tzinfo=None)


def to_naive_utc(value: datetime) -> datetime:
    """Convert an aware datetime to naive UTC; naive values are taken as UTC."""
    if value.tzinfo is not None:
        return value.astimezone(UTC).replace(tzinfo=None)
    return value


def generate_object_id() -> str:
    """
    Generate a 24-character hex identifier.

    Layout: 4 bytes of unix time, 5 random bytes per process, 3 bytes of
    counter. Sorting ids gives creation order within one process.
    """
    counter = next(_id_counter) % 0x1000000
    return f"{int(time.time()) & 0xFFFFFFFF:08x}{_process_random}{counter:06x}"


class Base(DeclarativeBase):
    """Base class for all models."""

    pass


class TimestampMixin:
    """Mixin for adding created_at and updated_at timestamps."""

    created_at: Mapped[datetime] = mapped_column(DateTime, default=utc_now, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=utc_now, nullable=False)
