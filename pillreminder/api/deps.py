from fastapi import Depends
from sqlalchemy.orm import Session

from pillreminder.crud.pill_regimen import AllPillRegimens
from pillreminder.db.session import get_db
from pillreminder.reminders.scheduler import DatabaseSchedulerGateway
from pillreminder.services.pill_reminder_service import PillReminderService


def get_pill_reminder_service(db: Session = Depends(get_db)) -> PillReminderService:
    return PillReminderService(AllPillRegimens(db), DatabaseSchedulerGateway(db))
