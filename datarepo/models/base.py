"""
Optional declarative base and mixins for entities.

Repositories accept any SQLAlchemy-mapped class; deriving from this Base
is a convenience, not a requirement. The mixins give entities a string
UUID identity, timestamps and a couple of serialization helpers.
"""

from datetime import datetime, timezone
from typing import Any
import uuid

from sqlalchemy import Column, String, text
from sqlalchemy.orm import declarative_base


# SQLAlchemy declarative base for datarepo entities
Base = declarative_base()


def utc_now_iso() -> str:
    """
    Get current UTC timestamp in ISO format.

    Returns:
        ISO format timestamp string (e.g., "2025-01-15T10:30:45.123456+00:00")
    """
    return datetime.now(timezone.utc).isoformat()


class UUIDMixin:
    """
    Mixin that adds a UUID primary key column.

    Uses TEXT type for SQLite compatibility (string format UUIDs).
    The value is assigned client-side on flush, so it is available
    right after a repository add() returns.

    Attributes:
        id: UUID primary key as TEXT
    """

    id = Column(
        String,
        primary_key=True,
        default=lambda: str(uuid.uuid4()),
        doc="UUID primary key"
    )


class TimestampMixin:
    """
    Mixin that adds created_at and updated_at timestamp columns.

    Timestamps are stored as UTC ISO strings.

    Attributes:
        created_at: Timestamp when record was created (immutable)
        updated_at: Timestamp when record was last updated (auto-updated)
    """

    created_at = Column(
        String,
        nullable=False,
        default=utc_now_iso,
        server_default=text("CURRENT_TIMESTAMP"),
        doc="UTC timestamp when record was created"
    )

    updated_at = Column(
        String,
        nullable=False,
        default=utc_now_iso,
        server_default=text("CURRENT_TIMESTAMP"),
        onupdate=utc_now_iso,
        doc="UTC timestamp when record was last updated"
    )


class ModelMixin:
    """
    Mixin providing common model utilities.

    Adds helpers for serialization and representation.
    """

    def to_dict(self) -> dict[str, Any]:
        """
        Convert model instance to dictionary.

        Returns:
            Dictionary with all column values

        Note:
            Only includes columns, not relationships.
        """
        return {
            column.name: getattr(self, column.name)
            for column in self.__table__.columns
        }

    def __repr__(self) -> str:
        attrs = ", ".join(
            f"{key}={value!r}"
            for key, value in self.to_dict().items()
            if key in ["id", "name", "title"]
        )
        return f"{self.__class__.__name__}({attrs})"
