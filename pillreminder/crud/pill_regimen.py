import logging
from typing import List

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from pillreminder.core.exceptions import DuplicateExternalIdError, NotFoundError
from pillreminder.models.pill_regimen import PillRegimen
from pillreminder.utils.timezone import today_local

logger = logging.getLogger(__name__)


class AllPillRegimens:
    """Keyed store for pill regimen aggregates"""

    def __init__(self, db: Session):
        self.db = db

    def add(self, regimen: PillRegimen) -> PillRegimen:
        self.db.add(regimen)
        try:
            self.db.commit()
        except IntegrityError as e:
            self.db.rollback()
            logger.error(f"Integrity error storing pill regimen for external id {regimen.external_id}: {str(e)}")
            raise DuplicateExternalIdError(
                f"Pill regimen already exists for external id {regimen.external_id}"
            ) from e
        self.db.refresh(regimen)
        logger.info(f"Stored pill regimen {regimen.id} for external id {regimen.external_id}")
        return regimen

    def remove(self, regimen: PillRegimen) -> None:
        self.db.delete(regimen)
        self.db.commit()
        logger.info(f"Removed pill regimen {regimen.id} for external id {regimen.external_id}")

    def get(self, pill_regimen_id: str) -> PillRegimen:
        regimen = self.db.get(PillRegimen, pill_regimen_id)
        if regimen is None:
            raise NotFoundError(f"Pill regimen {pill_regimen_id} not found")
        return regimen

    def find_by_external_id(self, external_id: str) -> PillRegimen:
        regimen = self.db.execute(
            select(PillRegimen).where(PillRegimen.external_id == external_id)
        ).scalars().first()
        if regimen is None:
            raise NotFoundError(f"No pill regimen for external id {external_id}")
        return regimen

    def medicines_for(self, pill_regimen_id: str, dosage_id: str) -> List[str]:
        return self.get(pill_regimen_id).get_dosage(dosage_id).medicine_names()

    def stop_todays_reminders(self, pill_regimen_id: str, dosage_id: str) -> None:
        """Mark the dosage as handled for today; its recurring job is left untouched."""
        dosage = self.get(pill_regimen_id).get_dosage(dosage_id)
        today = today_local()
        dosage.mark_taken(today)
        self.db.commit()
        logger.info(f"Stopped reminders for dosage {dosage_id} of pill regimen {pill_regimen_id} on {today}")
