from datetime import datetime, timezone
import uuid

from sqlalchemy import Column, DateTime


def generate_uuid():
    """Generate a UUID string for use as a primary key"""
    return str(uuid.uuid4())


def utcnow() -> datetime:
    """Naive UTC timestamp with microsecond precision"""
    return datetime.now(timezone.utc).replace(tzinfo=None)


class TimestampMixin:
    """Mixin to add a created_at column to models"""
    created_at = Column(DateTime, default=utcnow, nullable=False)
