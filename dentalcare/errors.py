"""
This module defines the exceptions raised by the DentalCare core.

Every error derives from `DentalCareError` so the UI layer can catch the whole
family in one place while still reacting to specific failures (for example,
keeping a registration form open on a `ValidationError`, or redirecting to the
directory on a `NotFoundError`).
"""
# dentalcare/errors.py


class DentalCareError(Exception):
    """Base class for all DentalCare errors."""


class ValidationError(DentalCareError):
    """Raised when input is missing required fields or carries invalid values.

    Attributes:
        missing_fields (list): Names of required fields that were empty.
        invalid_fields (dict): Field name -> reason, for values that were present but rejected.
    """
    def __init__(self, missing_fields=None, invalid_fields=None):
        self.missing_fields = list(missing_fields or [])
        self.invalid_fields = dict(invalid_fields or {})
        parts = []
        if self.missing_fields:
            parts.append("missing required fields: " + ", ".join(self.missing_fields))
        if self.invalid_fields:
            parts.append("invalid fields: " + ", ".join(
                f"{name} ({reason})" for name, reason in self.invalid_fields.items()
            ))
        super().__init__("; ".join(parts) or "validation failed")


class NotFoundError(DentalCareError):
    """Raised when a patient id does not match any registered patient."""
    def __init__(self, patient_id):
        self.patient_id = patient_id
        super().__init__(f"Patient {patient_id} not found")


class CorruptCollectionError(DentalCareError):
    """Raised in strict mode when a persisted collection cannot be decoded."""
    def __init__(self, collection_name, reason=None):
        self.collection_name = collection_name
        self.reason = reason
        message = f"Collection '{collection_name}' is corrupt"
        if reason:
            message += f": {reason}"
        super().__init__(message)


class WorkflowError(DentalCareError):
    """Raised when the examination workflow is driven out of order."""
