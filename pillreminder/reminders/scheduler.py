"""
Scheduler gateway: registers and removes recurring jobs described by a cron
expression and a validity window.
"""
from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import date
from typing import Optional
import logging

from sqlalchemy.orm import Session

from pillreminder.models.scheduled_job import ScheduledJob
from pillreminder.utils.timezone import to_utc_naive
from .events import EventKeys, ReminderEvent
from .metrics import dosage_jobs_scheduled_total, dosage_jobs_unscheduled_total
from .recurrence import next_occurrence

logger = logging.getLogger(__name__)


@dataclass
class CronSchedulableJob:
    event: ReminderEvent
    cron_expression: str
    start_time: date
    end_time: Optional[date] = None

    @property
    def job_id(self) -> str:
        return self.event.parameters[EventKeys.SCHEDULE_JOB_ID_KEY]


class SchedulerGateway(ABC):
    @abstractmethod
    def schedule_job(self, job: CronSchedulableJob) -> None:
        """Register (or replace) the recurring job keyed by its job id"""

    @abstractmethod
    def unschedule_job(self, job_id: str) -> None:
        """Remove the recurring job with this id"""


class DatabaseSchedulerGateway(SchedulerGateway):
    """Keeps jobs in the scheduled_jobs table; the fire_due_jobs beat task fires them."""

    def __init__(self, db: Session):
        self.db = db

    def schedule_job(self, job: CronSchedulableJob) -> None:
        first = next_occurrence(job.cron_expression, None, job.start_time, job.end_time)
        row = self.db.get(ScheduledJob, job.job_id)
        if row is None:
            row = ScheduledJob(job_id=job.job_id)
            self.db.add(row)
        row.subject = job.event.subject
        row.parameters = dict(job.event.parameters)
        row.cron_expression = job.cron_expression
        row.start_date = job.start_time
        row.end_date = job.end_time
        row.next_fire_time = to_utc_naive(first)
        row.last_fire_time = None
        self.db.commit()
        dosage_jobs_scheduled_total.inc()
        if first is None:
            logger.warning(f"Job {job.job_id} has no occurrence left before {job.end_time}")
        else:
            logger.info(f"Scheduled job {job.job_id} '{job.cron_expression}' first firing at {first.isoformat()}")

    def unschedule_job(self, job_id: str) -> None:
        row = self.db.get(ScheduledJob, job_id)
        if row is None:
            logger.warning(f"Asked to unschedule unknown job {job_id}")
            return
        self.db.delete(row)
        self.db.commit()
        dosage_jobs_unscheduled_total.inc()
        logger.info(f"Unscheduled job {job_id}")
