"""
Column mixins shared by every table.

SoftDeleteMixin is the "live / deleted" axis: rows are never physically removed,
and queries select live rows through `Model.live()` instead of repeating the filter.
"""

from sqlalchemy import Column, DateTime
from rentfleet.utils.clock import utcnow


class AuditMixin:
    created_at = Column(DateTime, nullable=False, default=utcnow)
    updated_at = Column(DateTime, nullable=False, default=utcnow, onupdate=utcnow)


class SoftDeleteMixin:
    deleted_at = Column(DateTime, nullable=True, index=True)

    @property
    def is_deleted(self) -> bool:
        return self.deleted_at is not None

    def mark_deleted(self, now=None):
        self.deleted_at = now or utcnow()

    @classmethod
    def live(cls):
        """SQL criterion selecting rows that are not soft-deleted."""
        return cls.deleted_at.is_(None)
