"""
Declarative base, shared columns and time helpers for every table.

Timestamps are stored as naive UTC. ``utcnow`` produces them and
``as_naive_utc`` normalizes aware values (feed dates, API input) before they
reach a column or a comparison.
"""

import uuid
from datetime import UTC, datetime

from sqlalchemy import Column, DateTime, String, TypeDecorator
from sqlalchemy.dialects.postgresql import UUID as PostgreSQLUUID
from sqlalchemy.orm import declarative_base

Base = declarative_base()


def utcnow() -> datetime:
    return datetime.now(UTC).replace(tzinfo=None)


def as_naive_utc(value: datetime | None) -> datetime | None:
    """Convert an aware datetime to naive UTC; naive input is taken as UTC already."""
    if value is None or value.tzinfo is None:
        return value
    return value.astimezone(UTC).replace(tzinfo=None)


class GUID(TypeDecorator):
    """
    UUID column that works on both backends.

    PostgreSQL gets its native UUID type; SQLite (tests, local runs) stores
    the 36-character string form. Values always come back as ``uuid.UUID``.
    """

    impl = String
    cache_ok = True

    def load_dialect_impl(self, dialect):
        if dialect.name == "postgresql":
            return dialect.type_descriptor(PostgreSQLUUID())
        return dialect.type_descriptor(String(36))

    def process_bind_param(self, value, dialect):
        if value is None or dialect.name == "postgresql":
            return value
        return str(value)

    def process_result_value(self, value, dialect):
        if value is None or isinstance(value, uuid.UUID):
            return value
        return uuid.UUID(str(value))


class BaseModel(Base):
    """
    Abstract parent of every table.

    :ivar id: Random UUID primary key.
    :ivar created_at: Insert time, naive UTC.
    :ivar updated_at: Last update, naive UTC.
    """

    __abstract__ = True

    id = Column(GUID(), primary_key=True, default=uuid.uuid4)
    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)
