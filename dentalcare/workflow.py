"""
This module implements the clinical intake workflow behind the examination wizard.

`ExaminationWorkflow` is a three-step linear state machine:

1. Chief complaint and vitals.
2. Medical history, with the diabetic sub-fields shown only while the patient is
   marked diabetic.
3. Examination findings, categorized image attachments and additional notes.

The workflow holds an `ExaminationDraft` in memory. Steps can be advanced
without filling in required fields; `missing_fields` reports what is still
empty without blocking. Finishing step three commits the draft exactly once,
appending an `ExaminationRecord` to the persisted ``examinations`` collection.
"""
# dentalcare/workflow.py

import logging
from datetime import datetime

import pandas as pd

from dentalcare.errors import ValidationError, WorkflowError
from dentalcare.models import (
    BOOLEAN_FIELDS, EXAMINATION_FIELDS, IMAGE_CATEGORIES, ExaminationDraft, ExaminationRecord, ImageAttachment,
)
from dentalcare.storage import EXAMINATIONS

logger = logging.getLogger(__name__)

FIRST_STEP = 1
LAST_STEP = 3

STEPS = {
    1: ("Chief Complaint & Vitals", "Record the patient's main concerns and vital signs"),
    2: ("Medical History", "Document medical history and current conditions"),
    3: ("Examination & Images", "Perform examination and upload supporting images"),
}

STEP_FIELDS = {
    1: ['chiefComplaint', 'painLevel', 'bloodPressure', 'temperature', 'pulse'],
    2: ['isDiabetic', 'hba1c', 'fastingGlucose', 'prandialGlucose', 'hasAsthma', 'hasCardiacIssues',
        'isPregnant', 'allergies', 'currentMedications'],
    3: ['oralExamination', 'images', 'additionalNotes'],
}

DIABETIC_FIELDS = ('hba1c', 'fastingGlucose', 'prandialGlucose')

REQUIRED_STEP_FIELDS = {
    1: ('chiefComplaint',),
    2: (),
    3: (),
}

PAIN_MIN = 0
PAIN_MAX = 10

_ATTR_TO_KEY = {attr: key for key, attr in EXAMINATION_FIELDS.items()}


def pain_label(level):
    """Describes a 0-10 pain score the way the step one picker labels it."""
    if level == 0:
        return 'No Pain'
    if level <= 3:
        return 'Mild'
    if level <= 6:
        return 'Moderate'
    return 'Severe'


def records_to_dataframe(records) -> pd.DataFrame:
    """Flattens examination records for display and CSV export.

    Images are summarized as per-category counts.
    """
    rows = []
    for record in records:
        row = record.to_dict()
        images = row.pop('images')
        for category in IMAGE_CATEGORIES:
            row[f'{category}Images'] = sum(1 for image in images if image['type'] == category)
        rows.append(row)
    return pd.DataFrame(rows)


class ExaminationWorkflow:
    """Drives one examination from an empty draft to a committed record.

    Args:
        patient_id (str): The patient being examined.
        store (CollectionStore): Where committed records are appended.
        patient_registry (PatientRegistry, optional): When given, `commit` refuses
            to write a record for a patient id the registry does not know.
        clock (callable, optional): Returns the current `datetime`. Defaults to `datetime.now`.
    """

    def __init__(self, patient_id, store, patient_registry=None, clock=None):
        self.patient_id = patient_id
        self._store = store
        self._registry = patient_registry
        self._clock = clock or datetime.now
        self.step = FIRST_STEP
        self.draft = ExaminationDraft(patient_id)
        self.record = None

    @property
    def committed(self):
        return self.record is not None

    @property
    def title(self):
        return STEPS[self.step][0]

    @property
    def description(self):
        return STEPS[self.step][1]

    @property
    def is_last_step(self):
        return self.step == LAST_STEP

    def _ensure_open(self):
        if self.committed:
            raise WorkflowError("This examination has already been committed.")

    def next(self):
        """Moves to the next step, or commits the draft from the last step.

        No fields are checked before advancing.

        Returns:
            ExaminationRecord or None: The committed record when called on the last step.
        """
        self._ensure_open()
        if self.step < LAST_STEP:
            self.step += 1
            return None
        return self.commit()

    def previous(self):
        """Moves back one step; does nothing on the first step."""
        if self.step > FIRST_STEP:
            self.step -= 1
        return self.step

    def _resolve(self, name):
        if name in EXAMINATION_FIELDS:
            return EXAMINATION_FIELDS[name]
        if name in _ATTR_TO_KEY:
            return name
        raise ValidationError(invalid_fields={name: "unknown examination field"})

    def set_field(self, name, value):
        """Assigns one draft field.

        Args:
            name (str): The field name, in stored (camelCase) or attribute (snake_case) form.
            value: The new value. Pain level is coerced to an integer in 0-10 and
                condition flags to booleans.

        Raises:
            ValidationError: For unknown fields or an out-of-range pain level.
            WorkflowError: If the draft has already been committed.
        """
        self._ensure_open()
        attr = self._resolve(name)
        if attr == 'is_diabetic':
            self.toggle_diabetic(value)
            return
        if attr == 'pain_level':
            try:
                if isinstance(value, float) and not value.is_integer():
                    raise ValueError(value)
                value = int(value)
            except (TypeError, ValueError):
                raise ValidationError(invalid_fields={'painLevel': "must be a whole number"})
            if not PAIN_MIN <= value <= PAIN_MAX:
                raise ValidationError(invalid_fields={'painLevel': f"must be between {PAIN_MIN} and {PAIN_MAX}"})
        elif attr in BOOLEAN_FIELDS:
            value = bool(value)
        elif value is None:
            value = ''
        setattr(self.draft, attr, value)

    def get_field(self, name):
        return getattr(self.draft, self._resolve(name))

    def toggle_diabetic(self, flag):
        """Marks the patient diabetic or not.

        Unchecking only hides the HbA1c and glucose fields; values already typed
        stay in the draft.
        """
        self._ensure_open()
        self.draft.is_diabetic = bool(flag)

    def visible_fields(self, step=None):
        """Lists the field names shown on a step (the current one by default)."""
        step = self.step if step is None else step
        fields = list(STEP_FIELDS[step])
        if not self.draft.is_diabetic:
            fields = [name for name in fields if name not in DIABETIC_FIELDS]
        return fields

    def visible_draft(self, step=None):
        """Returns the values of the fields shown on a step."""
        values = {}
        for name in self.visible_fields(step):
            if name == 'images':
                values[name] = [image.to_dict() for image in self.draft.images]
            else:
                values[name] = self.get_field(name)
        return values

    def missing_fields(self, step=None):
        """Lists required fields of a step that are still empty. Advisory only."""
        step = self.step if step is None else step
        return [name for name in REQUIRED_STEP_FIELDS[step] if not str(self.get_field(name) or '').strip()]

    def attach_image(self, file_ref, category):
        """Appends an image reference to the draft, keeping upload order.

        Raises:
            ValidationError: For an empty reference or an unknown category.
        """
        self._ensure_open()
        if category not in IMAGE_CATEGORIES:
            raise ValidationError(invalid_fields={'images': f"unknown image category '{category}'"})
        if not file_ref:
            raise ValidationError(missing_fields=['images'])
        attachment = ImageAttachment(file_ref, category)
        self.draft.images.append(attachment)
        return attachment

    def attach_images(self, file_refs, category):
        """Attaches several files picked together under one category."""
        return [self.attach_image(file_ref, category) for file_ref in file_refs]

    def images_by_category(self, category):
        return [image for image in self.draft.images if image.category == category]

    def image_counts(self):
        counts = {category: 0 for category in IMAGE_CATEGORIES}
        for image in self.draft.images:
            counts[image.category] += 1
        return counts

    def commit(self) -> ExaminationRecord:
        """Stamps the draft with the current time and appends it to the examinations collection.

        Returns:
            ExaminationRecord: The committed record.

        Raises:
            WorkflowError: If called before the last step or a second time.
            NotFoundError: If a registry was injected and the patient is unknown.
        """
        self._ensure_open()
        if self.step != LAST_STEP:
            raise WorkflowError(f"Examinations can only be completed from step {LAST_STEP}.")
        if self._registry is not None:
            self._registry.find_by_id(self.patient_id)

        record = ExaminationRecord.from_draft(self.draft, date=self._clock().isoformat())
        self._store.append(EXAMINATIONS, record.to_dict())
        self.record = record
        logger.info("Recorded examination for patient %s with %d image(s)", self.patient_id, len(record.images))
        return record
