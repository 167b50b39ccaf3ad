from dataclasses import dataclass, field
from typing import Any, Dict


class EventKeys:
    """Parameter keys and subjects carried by pill reminder events"""
    SCHEDULE_JOB_ID_KEY = "JobID"
    PILLREMINDER_ID_KEY = "PillRegimenID"
    DOSAGE_ID_KEY = "DosageID"
    EXTERNAL_ID_KEY = "ExternalID"
    MEDICINES_KEY = "Medicines"
    REPEAT_NUMBER_KEY = "RepeatNumber"

    PILLREMINDER_DOSAGE_DUE_SUBJECT = "pillreminder.dosage_due"
    PILLREMINDER_REMINDER_SUBJECT = "pillreminder.reminder"


@dataclass
class ReminderEvent:
    """Opaque payload published when a scheduled job fires"""
    subject: str
    parameters: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {"subject": self.subject, "parameters": dict(self.parameters)}
