"""
Declarative base and mixins for datarepo entities.
"""

from datarepo.models.base import Base, TimestampMixin, UUIDMixin, ModelMixin, utc_now_iso

__all__ = [
    "Base",
    "TimestampMixin",
    "UUIDMixin",
    "ModelMixin",
    "utc_now_iso",
]
