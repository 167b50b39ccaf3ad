"""
Celery tasks that fire due dosage jobs and turn them into pill reminders
"""
from datetime import datetime, timezone as dt_timezone
from typing import Any, Dict

from celery import shared_task
from celery.utils.log import get_task_logger
from sqlalchemy import select
from sqlalchemy.orm import Session

from pillreminder.core.config import settings
from pillreminder.core.exceptions import NotFoundError
from pillreminder.crud.pill_regimen import AllPillRegimens
from pillreminder.db.session import SessionLocal
from pillreminder.models.scheduled_job import ScheduledJob
from pillreminder.utils.timezone import to_local, to_utc_naive, today_local
from .celery_app import celery_app, output_queue
from .events import EventKeys, ReminderEvent
from .metrics import (
    reminders_published_total,
    reminders_skipped_total,
    scheduler_fired_total,
    scheduler_scans_total,
)
from .recurrence import next_occurrence

logger = get_task_logger(__name__)


def _enqueue_dosage_due(subject: str, payload: Dict[str, Any]) -> None:
    celery_app.send_task(
        subject,
        args=[payload],
        queue=settings.RABBITMQ_INPUT_QUEUE,
        routing_key=settings.RABBITMQ_INPUT_ROUTING_KEY,
    )


def _publish_reminder(reminder: ReminderEvent) -> None:
    celery_app.send_task(
        reminder.subject,
        args=[reminder.to_dict()],
        queue=output_queue,
        routing_key=settings.RABBITMQ_OUTPUT_ROUTING_KEY,
        declare=[output_queue],
    )


def fire_due_jobs(db: Session, now: datetime, limit: int = 1000) -> int:
    """Enqueue every job whose next fire time has passed and advance it. Returns number fired."""
    stmt = (
        select(ScheduledJob)
        .where(ScheduledJob.next_fire_time.isnot(None))
        .where(ScheduledJob.next_fire_time <= to_utc_naive(now))
        .order_by(ScheduledJob.next_fire_time.asc())
        .limit(limit)
    )
    due = list(db.execute(stmt).scalars())
    scheduler_scans_total.inc()
    fired = 0
    for job in due:
        try:
            _enqueue_dosage_due(job.subject, dict(job.parameters))
        except Exception:
            # Left due; picked up again on the next scan
            logger.exception(f"Failed to enqueue job {job.job_id}")
            continue
        fired += 1
        scheduler_fired_total.inc()
        job.last_fire_time = job.next_fire_time
        nxt = next_occurrence(
            job.cron_expression,
            max(to_local(job.last_fire_time), to_local(now)),
            job.start_date,
            job.end_date,
        )
        if nxt is None:
            logger.info(f"Job {job.job_id} reached the end of its window {job.end_date}, removing")
            db.delete(job)
        else:
            job.next_fire_time = to_utc_naive(nxt)
    db.commit()
    return fired


def handle_dosage_due(db: Session, parameters: Dict[str, Any], repeat_number: int = 0) -> bool:
    """
    Publish a pill reminder for a fired dosage job unless the dosage was
    already handled today. Schedules the next repeat while the regimen's
    repeat count allows. Returns True if a reminder was published.
    """
    regimen_id = parameters.get(EventKeys.PILLREMINDER_ID_KEY)
    dosage_id = parameters.get(EventKeys.DOSAGE_ID_KEY)
    try:
        regimen = AllPillRegimens(db).get(regimen_id)
        dosage = regimen.get_dosage(dosage_id)
    except NotFoundError as e:
        # Regimen renewed or removed after the job fired
        logger.info(f"Dropping dosage event for job {parameters.get(EventKeys.SCHEDULE_JOB_ID_KEY)}: {e}")
        return False

    if dosage.is_taken_on(today_local()):
        reminders_skipped_total.inc()
        logger.info(f"Dosage {dosage_id} already handled today, no reminder")
        return False

    reminder = ReminderEvent(
        subject=EventKeys.PILLREMINDER_REMINDER_SUBJECT,
        parameters={
            **parameters,
            EventKeys.MEDICINES_KEY: dosage.medicine_names(),
            EventKeys.REPEAT_NUMBER_KEY: repeat_number,
        },
    )
    _publish_reminder(reminder)
    reminders_published_total.inc()

    if repeat_number < regimen.reminder_repeat_count:
        dosage_due_task.apply_async(
            args=[parameters, repeat_number + 1],
            countdown=regimen.reminder_repeat_window_in_minutes * 60,
        )
    return True


@shared_task(name="pillreminder.fire_due_jobs")
def fire_due_jobs_task() -> int:
    """Fire due dosage jobs. Returns number fired."""
    db: Session = SessionLocal()
    try:
        return fire_due_jobs(db, datetime.now(dt_timezone.utc), limit=settings.SCHEDULER_BATCH_SIZE)
    finally:
        db.close()


@shared_task(name=EventKeys.PILLREMINDER_DOSAGE_DUE_SUBJECT)
def dosage_due_task(parameters: dict, repeat_number: int = 0) -> bool:
    db: Session = SessionLocal()
    try:
        return handle_dosage_due(db, parameters, repeat_number)
    finally:
        db.close()
