from datetime import datetime

from sqlalchemy import Column, DateTime


class TimestampMixin:
    """created_at / updated_at / deleted_at. A non-null deleted_at marks a soft-deleted row."""

    created_at = Column(DateTime, default=datetime.utcnow, nullable=True)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=True)
    deleted_at = Column(DateTime, nullable=True)
