"""Durable snapshot storage table."""

from datetime import datetime, timezone
from sqlalchemy import Column, String, Integer, DateTime, Date, JSON, UniqueConstraint, Index
from sqlalchemy.dialects.postgresql import UUID
import uuid

from numberland.core.database import Base


class SnapshotRecord(Base):
    """One progress snapshot, stored as a JSON document with a version counter."""
    __tablename__ = "progress_snapshots"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    user_id = Column(String, nullable=False, index=True)
    period_type = Column(String, nullable=False)
    period_start = Column(Date, nullable=False)
    version = Column(Integer, nullable=False, default=1)
    document = Column(JSON, nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False)
    last_updated = Column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc))

    __table_args__ = (
        UniqueConstraint("user_id", "period_type", "period_start", name="uq_snapshot_period"),
        Index("ix_snapshot_user_period", "user_id", "period_type", "period_start"),
    )
