"""
Domain errors raised by the pill regimen model, store and lifecycle service.
"""


class PillReminderError(Exception):
    """Base class for pill reminder errors"""


class ValidationError(PillReminderError):
    """Malformed regimen input, rejected before anything is persisted or scheduled"""


class NotFoundError(PillReminderError):
    """A regimen id, external id or dosage id did not resolve"""


class DataIntegrityError(PillReminderError):
    """Stored regimen violates an invariant, e.g. two dosages at the same time of day"""


class DuplicateExternalIdError(DataIntegrityError):
    """A regimen is already stored for this external id"""
