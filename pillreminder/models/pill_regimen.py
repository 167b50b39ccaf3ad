"""
Pill regimen aggregate: a regimen owns its dosages, a dosage owns its medicines.

Dosages repeat daily and are ordered by time of day only, with the order
wrapping around midnight. The regimen's overall date range is derived from
its medicines and never stored.
"""
import uuid
from datetime import date, datetime, time, timezone as dt_timezone
from typing import Iterable, List, Optional, Tuple

from sqlalchemy import Column, Date, DateTime, ForeignKey, Integer, String, UniqueConstraint
from sqlalchemy.orm import relationship

from pillreminder.core.exceptions import DataIntegrityError, NotFoundError, ValidationError
from pillreminder.db.base import Base


def _utcnow() -> datetime:
    return datetime.now(dt_timezone.utc)


def _new_id() -> str:
    return str(uuid.uuid4())


def _dosage_time(hour: int, minute: int) -> time:
    try:
        return time(hour, minute)
    except (TypeError, ValueError) as e:
        raise ValidationError(f"Invalid dosage time {hour}:{minute}") from e


class Medicine(Base):
    """One prescribed medicine with its own active window within a dosage"""
    __tablename__ = "medicines"

    id = Column(Integer, primary_key=True, autoincrement=True)
    dosage_id = Column(String(36), ForeignKey("dosages.id", ondelete="CASCADE"), nullable=False, index=True)
    name = Column(String, nullable=False)
    start_date = Column(Date, nullable=False)
    end_date = Column(Date, nullable=False)

    def __init__(self, name: str, start_date: date, end_date: date):
        self.name = name
        self.start_date = start_date
        self.end_date = end_date

    def validate(self) -> None:
        if not self.name or not self.name.strip():
            raise ValidationError("Medicine name must not be empty")
        if self.start_date > self.end_date:
            raise ValidationError(
                f"Medicine {self.name!r} starts on {self.start_date} after it ends on {self.end_date}"
            )

    def __repr__(self) -> str:
        return f"Medicine(name={self.name!r}, start_date={self.start_date}, end_date={self.end_date})"


class Dosage(Base):
    """A daily reminder slot (fixed time of day) covering one or more medicines"""
    __tablename__ = "dosages"

    id = Column(String(36), primary_key=True)
    pill_regimen_id = Column(String(36), ForeignKey("pill_regimens.id", ondelete="CASCADE"), nullable=False, index=True)
    dosage_hour = Column(Integer, nullable=False)
    dosage_minute = Column(Integer, nullable=False)
    job_id = Column(String(36), nullable=True, unique=True)  # Correlates the scheduled job back to this dosage
    current_dosage_date = Column(Date, nullable=True)  # Last day reminders were stopped for

    medicines = relationship(
        "Medicine",
        cascade="all, delete-orphan",
        order_by="Medicine.name",
        lazy="selectin",
    )

    def __init__(self, dosage_time: time, medicines: Optional[Iterable[Medicine]] = None, id: Optional[str] = None):
        self.id = id
        self.dosage_hour = dosage_time.hour
        self.dosage_minute = dosage_time.minute
        self.medicines = list(medicines or [])

    def get_dosage_time(self) -> time:
        return time(self.dosage_hour, self.dosage_minute)

    @property
    def time_key(self) -> Tuple[int, int]:
        return (self.dosage_hour, self.dosage_minute)

    @property
    def start_date(self) -> Optional[date]:
        if not self.medicines:
            return None
        return min(m.start_date for m in self.medicines)

    @property
    def end_date(self) -> Optional[date]:
        if not self.medicines:
            return None
        return max(m.end_date for m in self.medicines)

    def medicine_names(self) -> List[str]:
        return sorted(m.name for m in self.medicines)

    def is_taken_on(self, day: date) -> bool:
        return self.current_dosage_date is not None and self.current_dosage_date >= day

    def mark_taken(self, day: date) -> None:
        self.current_dosage_date = day

    def validate(self) -> None:
        if not self.medicines:
            raise ValidationError(
                f"Dosage at {self.dosage_hour:02d}:{self.dosage_minute:02d} has no medicines"
            )
        for medicine in self.medicines:
            medicine.validate()

    def __repr__(self) -> str:
        return f"Dosage(id={self.id!r}, time={self.dosage_hour:02d}:{self.dosage_minute:02d})"


class PillRegimen(Base):
    """Aggregate root: all daily dosages for one patient over a bounded date range"""
    __tablename__ = "pill_regimens"

    id = Column(String(36), primary_key=True)
    external_id = Column(String, nullable=False)
    reminder_repeat_window_in_minutes = Column(Integer, nullable=False, default=0)
    reminder_repeat_count = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime(timezone=True), default=_utcnow, nullable=False)

    dosages = relationship(
        "Dosage",
        cascade="all, delete-orphan",
        lazy="selectin",
    )

    __table_args__ = (
        UniqueConstraint("external_id", name="uq_pill_regimens_external_id"),
    )

    def __init__(
        self,
        external_id: str,
        reminder_repeat_window_in_minutes: int,
        reminder_repeat_count: int,
        dosages: Iterable[Dosage],
        id: Optional[str] = None,
    ):
        self.id = id
        self.external_id = external_id
        self.reminder_repeat_window_in_minutes = reminder_repeat_window_in_minutes
        self.reminder_repeat_count = reminder_repeat_count
        self.dosages = list(dosages)

    @classmethod
    def from_request(cls, request) -> "PillRegimen":
        """Build and validate a fresh regimen from a PillRegimenRequest"""
        dosages = [
            Dosage(
                _dosage_time(dosage_request.hour, dosage_request.minute),
                [
                    Medicine(m.name, m.start_date, m.end_date)
                    for m in dosage_request.medicine_requests
                ],
            )
            for dosage_request in request.dosage_requests
        ]
        regimen = cls(
            request.external_id,
            request.reminder_repeat_window_in_minutes,
            request.reminder_repeat_count,
            dosages,
        )
        regimen.validate()
        return regimen

    def validate(self) -> None:
        if not self.external_id:
            raise ValidationError("Pill regimen needs an external id")
        if self.reminder_repeat_window_in_minutes < 0 or self.reminder_repeat_count < 0:
            raise ValidationError("Reminder repeat window and count must not be negative")
        if not self.dosages:
            raise ValidationError("Pill regimen needs at least one dosage")
        seen = set()
        for dosage in self.dosages:
            dosage.validate()
            if dosage.time_key in seen:
                raise ValidationError(
                    f"More than one dosage at {dosage.dosage_hour:02d}:{dosage.dosage_minute:02d}"
                )
            seen.add(dosage.time_key)

    def assign_identifiers(self) -> None:
        """Give the regimen, its dosages and their jobs ids; existing ids are kept."""
        if not self.id:
            self.id = _new_id()
        for dosage in self.dosages:
            if not dosage.id:
                dosage.id = _new_id()
            if not dosage.job_id:
                dosage.job_id = _new_id()

    @property
    def start_date(self) -> Optional[date]:
        starts = [d.start_date for d in self.dosages if d.start_date is not None]
        return min(starts) if starts else None

    @property
    def end_date(self) -> Optional[date]:
        ends = [d.end_date for d in self.dosages if d.end_date is not None]
        return max(ends) if ends else None

    def get_dosage(self, dosage_id: str) -> Dosage:
        for dosage in self.dosages:
            if dosage.id == dosage_id:
                return dosage
        raise NotFoundError(f"Dosage {dosage_id} not found in pill regimen {self.id}")

    def get_next_dosage(self, current_dosage: Dosage) -> Dosage:
        return self._dosage_at_offset(current_dosage, 1)

    def get_previous_dosage(self, current_dosage: Dosage) -> Dosage:
        return self._dosage_at_offset(current_dosage, -1)

    def dosages_in_time_order(self) -> List[Dosage]:
        ordered = sorted(self.dosages, key=lambda d: d.time_key)
        for earlier, later in zip(ordered, ordered[1:]):
            if earlier.time_key == later.time_key:
                raise DataIntegrityError(
                    f"Pill regimen {self.id} has dosages {earlier.id} and {later.id} "
                    f"at the same time {later.dosage_hour:02d}:{later.dosage_minute:02d}"
                )
        return ordered

    def _dosage_at_offset(self, current_dosage: Dosage, offset: int) -> Dosage:
        ordered = self.dosages_in_time_order()
        keys = [d.time_key for d in ordered]
        try:
            index = keys.index(current_dosage.time_key)
        except ValueError:
            raise NotFoundError(
                f"Dosage {current_dosage.id} is not part of pill regimen {self.id}"
            ) from None
        return ordered[(index + offset) % len(ordered)]

    def __repr__(self) -> str:
        return f"PillRegimen(id={self.id!r}, external_id={self.external_id!r}, dosages={len(self.dosages)})"
