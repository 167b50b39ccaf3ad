"""
Recurring job registered through the database scheduler gateway
"""
from datetime import datetime, timezone as dt_timezone
from sqlalchemy import Column, String, Date, DateTime, JSON, Index

from pillreminder.db.base import Base


class ScheduledJob(Base):
    """One cron-driven job bounded by a validity window; fire times are stored UTC-naive"""
    __tablename__ = "scheduled_jobs"

    job_id = Column(String(36), primary_key=True)
    subject = Column(String, nullable=False)
    parameters = Column(JSON, nullable=False, default=dict)
    cron_expression = Column(String, nullable=False)
    start_date = Column(Date, nullable=False)
    end_date = Column(Date, nullable=True)

    next_fire_time = Column(DateTime, nullable=True)
    last_fire_time = Column(DateTime, nullable=True)

    created_at = Column(DateTime(timezone=True), default=lambda: datetime.now(dt_timezone.utc), nullable=False)

    __table_args__ = (
        Index("ix_scheduled_jobs_next_fire_time", "next_fire_time"),
    )
