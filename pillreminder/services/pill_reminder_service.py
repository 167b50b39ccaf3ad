"""
Pill regimen lifecycle: create, renew, stop today's reminders and the
dosage lookups used by reminder handling.

Renewal is a two-phase replace and is not transactional: every job of the
old regimen is unscheduled and the old regimen removed before the new one
is stored and scheduled. A failure in between leaves the external id with
no active reminders until the renewal is retried; callers needing
exactly-once semantics must retry or compensate at their own layer.
"""
import logging
from datetime import datetime
from typing import List

from pillreminder.models.pill_regimen import Dosage, PillRegimen
from pillreminder.reminders.events import EventKeys, ReminderEvent
from pillreminder.reminders.metrics import pill_regimens_created_total, pill_regimens_renewed_total
from pillreminder.reminders.recurrence import daily_cron_expression
from pillreminder.reminders.scheduler import CronSchedulableJob, SchedulerGateway
from pillreminder.schemas.pill_regimen import DosageResponse, PillRegimenRequest, PillRegimenResponse
from pillreminder.utils.timezone import today_at

logger = logging.getLogger(__name__)


class PillReminderService:
    def __init__(self, all_pill_regimens, scheduler_service: SchedulerGateway):
        self.all_pill_regimens = all_pill_regimens
        self.scheduler_service = scheduler_service

    def create_new(self, request: PillRegimenRequest) -> PillRegimen:
        regimen = PillRegimen.from_request(request)
        self._store_and_schedule(regimen)
        pill_regimens_created_total.inc()
        return regimen

    def renew(self, request: PillRegimenRequest) -> PillRegimen:
        existing = self.all_pill_regimens.find_by_external_id(request.external_id)
        regimen = PillRegimen.from_request(request)

        for dosage in existing.dosages:
            self.scheduler_service.unschedule_job(dosage.job_id)
        self.all_pill_regimens.remove(existing)
        logger.info(f"Retired pill regimen {existing.id} for external id {request.external_id}")

        self._store_and_schedule(regimen)
        pill_regimens_renewed_total.inc()
        return regimen

    def stop_todays_reminders(self, pill_regimen_id: str, dosage_id: str) -> None:
        self.all_pill_regimens.stop_todays_reminders(pill_regimen_id, dosage_id)

    def medicines_for(self, pill_regimen_id: str, dosage_id: str) -> List[str]:
        return self.all_pill_regimens.medicines_for(pill_regimen_id, dosage_id)

    def get_pill_regimen(self, pill_regimen_id: str) -> PillRegimenResponse:
        regimen = self.all_pill_regimens.get(pill_regimen_id)
        return to_pill_regimen_response(regimen)

    def get_previous_dosage(self, pill_regimen_id: str, current_dosage_id: str) -> DosageResponse:
        regimen = self.all_pill_regimens.get(pill_regimen_id)
        current_dosage = regimen.get_dosage(current_dosage_id)
        return to_dosage_response(regimen.get_previous_dosage(current_dosage))

    def get_next_dosage_time(self, pill_regimen_id: str, current_dosage_id: str) -> datetime:
        """Today's date at the next dosage's time of day, wherever the regimen window ends."""
        regimen = self.all_pill_regimens.get(pill_regimen_id)
        current_dosage = regimen.get_dosage(current_dosage_id)
        next_dosage = regimen.get_next_dosage(current_dosage)
        return today_at(next_dosage.get_dosage_time())

    def _store_and_schedule(self, regimen: PillRegimen) -> None:
        regimen.assign_identifiers()
        self.all_pill_regimens.add(regimen)
        # Every dosage job spans the whole regimen, not just its own medicines
        start_date, end_date = regimen.start_date, regimen.end_date
        for dosage in regimen.dosages:
            self.scheduler_service.schedule_job(dosage_job(regimen, dosage, start_date, end_date))
        logger.info(
            f"Scheduled {len(regimen.dosages)} dosage jobs for pill regimen {regimen.id} "
            f"from {start_date} to {end_date}"
        )


def dosage_job(regimen: PillRegimen, dosage: Dosage, start_date, end_date) -> CronSchedulableJob:
    event = ReminderEvent(
        subject=EventKeys.PILLREMINDER_DOSAGE_DUE_SUBJECT,
        parameters={
            EventKeys.SCHEDULE_JOB_ID_KEY: dosage.job_id,
            EventKeys.PILLREMINDER_ID_KEY: regimen.id,
            EventKeys.DOSAGE_ID_KEY: dosage.id,
            EventKeys.EXTERNAL_ID_KEY: regimen.external_id,
        },
    )
    return CronSchedulableJob(
        event=event,
        cron_expression=daily_cron_expression(dosage.get_dosage_time()),
        start_time=start_date,
        end_time=end_date,
    )


def to_dosage_response(dosage: Dosage) -> DosageResponse:
    return DosageResponse(
        dosage_id=dosage.id,
        dosage_hour=dosage.dosage_hour,
        dosage_minute=dosage.dosage_minute,
        start_date=dosage.start_date,
        end_date=dosage.end_date,
        medicines=dosage.medicine_names(),
    )


def to_pill_regimen_response(regimen: PillRegimen) -> PillRegimenResponse:
    return PillRegimenResponse(
        pill_regimen_id=regimen.id,
        external_id=regimen.external_id,
        reminder_repeat_window_in_minutes=regimen.reminder_repeat_window_in_minutes,
        reminder_repeat_count=regimen.reminder_repeat_count,
        dosages=[to_dosage_response(d) for d in sorted(regimen.dosages, key=lambda d: d.time_key)],
    )
