from .pill_regimen import Medicine, Dosage, PillRegimen
from .scheduled_job import ScheduledJob

__all__ = ["Medicine", "Dosage", "PillRegimen", "ScheduledJob"]
