"""
This module defines the primary data models for the DentalCare application.

These classes structure the data managed by the registry and the examination
workflow. They are persisted as plain JSON dictionaries using the camelCase key
names of the stored collections, so each model offers `to_dict` / `from_dict`
helpers for that round-trip.
"""
# dentalcare/models.py

import copy

STATUS_ACTIVE = 'Active'
STATUS_UNDER_TREATMENT = 'Under Treatment'
STATUS_COMPLETED = 'Completed'
PATIENT_STATUSES = (STATUS_ACTIVE, STATUS_UNDER_TREATMENT, STATUS_COMPLETED)

GENDERS = ('male', 'female', 'other')

IMAGE_INTRAORAL = 'intraoral'
IMAGE_XRAY = 'xray'
IMAGE_CATEGORIES = (IMAGE_INTRAORAL, IMAGE_XRAY)

# Stored key -> attribute name.
PATIENT_FIELDS = {
    'id': 'patient_id',
    'firstName': 'first_name',
    'lastName': 'last_name',
    'gender': 'gender',
    'dateOfBirth': 'date_of_birth',
    'age': 'age',
    'phone': 'phone',
    'email': 'email',
    'address': 'address',
    'emergencyContact': 'emergency_contact',
    'medicalHistory': 'medical_history',
    'registrationDate': 'registration_date',
    'status': 'status',
}

EXAMINATION_FIELDS = {
    # Step 1
    'chiefComplaint': 'chief_complaint',
    'painLevel': 'pain_level',
    'bloodPressure': 'blood_pressure',
    'temperature': 'temperature',
    'pulse': 'pulse',
    # Step 2
    'isDiabetic': 'is_diabetic',
    'hasAsthma': 'has_asthma',
    'hasCardiacIssues': 'has_cardiac_issues',
    'isPregnant': 'is_pregnant',
    'hba1c': 'hba1c',
    'fastingGlucose': 'fasting_glucose',
    'prandialGlucose': 'prandial_glucose',
    'allergies': 'allergies',
    'currentMedications': 'current_medications',
    # Step 3
    'oralExamination': 'oral_examination',
    'additionalNotes': 'additional_notes',
}

BOOLEAN_FIELDS = ('is_diabetic', 'has_asthma', 'has_cardiac_issues', 'is_pregnant')


class Patient:
    """Represents a registered patient.

    Attributes:
        patient_id (str): The registry id, e.g. ``PAT-123456``.
        first_name (str): The patient's first name.
        last_name (str): The patient's last name.
        phone (str): Contact phone number.
        gender (str): 'male', 'female', 'other' or '' when unset.
        date_of_birth (str): ISO date of birth, or None.
        age (int): Age in years computed at registration, or None without a birth date.
        email (str): Optional email address.
        address (str): Optional postal address.
        emergency_contact (str): Optional emergency contact name and phone.
        medical_history (str): Optional free-text history.
        registration_date (str): ISO timestamp of registration.
        status (str): One of `PATIENT_STATUSES`.
    """
    def __init__(self, patient_id, first_name, last_name, phone, gender='', date_of_birth=None, age=None,
                 email='', address='', emergency_contact='', medical_history='', registration_date=None,
                 status=STATUS_ACTIVE):
        self.patient_id = patient_id
        self.first_name = first_name
        self.last_name = last_name
        self.phone = phone
        self.gender = gender or ''
        self.date_of_birth = date_of_birth
        self.age = age
        self.email = email or ''
        self.address = address or ''
        self.emergency_contact = emergency_contact or ''
        self.medical_history = medical_history or ''
        self.registration_date = registration_date
        self.status = status or STATUS_ACTIVE

    @property
    def full_name(self):
        return f"{self.first_name} {self.last_name}".strip()

    def to_dict(self):
        return {key: getattr(self, attr) for key, attr in PATIENT_FIELDS.items()}

    @classmethod
    def from_dict(cls, data):
        kwargs = {attr: data.get(key) for key, attr in PATIENT_FIELDS.items() if key in data}
        kwargs.setdefault('patient_id', '')
        kwargs.setdefault('first_name', '')
        kwargs.setdefault('last_name', '')
        kwargs.setdefault('phone', '')
        return cls(**kwargs)

    def __eq__(self, other):
        return isinstance(other, Patient) and self.to_dict() == other.to_dict()

    def __repr__(self):
        return f"<Patient {self.patient_id} - {self.full_name}>"


class ImageAttachment:
    """A reference to an uploaded image, tagged with its category.

    The file itself is never read; `file_ref` is whatever the file picker handed
    over (normally the uploaded file name).
    """
    def __init__(self, file_ref, category):
        self.file_ref = file_ref
        self.category = category

    def to_dict(self):
        return {'file': self.file_ref, 'type': self.category}

    @classmethod
    def from_dict(cls, data):
        return cls(data.get('file'), data.get('type'))

    def __eq__(self, other):
        return isinstance(other, ImageAttachment) and self.to_dict() == other.to_dict()

    def __repr__(self):
        return f"<ImageAttachment {self.category}: {self.file_ref}>"


class ExaminationDraft:
    """The in-progress examination held by the intake workflow.

    Every field starts empty: free text as '', condition flags as False and the
    pain level as 0.
    """
    def __init__(self, patient_id, **fields):
        self.patient_id = patient_id
        self.chief_complaint = ''
        self.pain_level = 0
        self.blood_pressure = ''
        self.temperature = ''
        self.pulse = ''
        self.is_diabetic = False
        self.has_asthma = False
        self.has_cardiac_issues = False
        self.is_pregnant = False
        self.hba1c = ''
        self.fasting_glucose = ''
        self.prandial_glucose = ''
        self.allergies = ''
        self.current_medications = ''
        self.oral_examination = ''
        self.additional_notes = ''
        self.images = []
        for attr, value in fields.items():
            setattr(self, attr, value)

    def to_dict(self):
        data = {'patientId': self.patient_id}
        for key, attr in EXAMINATION_FIELDS.items():
            data[key] = getattr(self, attr)
        data['images'] = [image.to_dict() for image in self.images]
        return data

    @classmethod
    def _fields_from_dict(cls, data):
        fields = {attr: data[key] for key, attr in EXAMINATION_FIELDS.items() if key in data}
        fields['images'] = [ImageAttachment.from_dict(item) for item in data.get('images') or []]
        return fields

    @classmethod
    def from_dict(cls, data):
        return cls(data.get('patientId'), **cls._fields_from_dict(data))


class ExaminationRecord(ExaminationDraft):
    """A committed examination: a snapshot of the draft plus its commit timestamp."""
    def __init__(self, patient_id, date=None, **fields):
        super().__init__(patient_id, **fields)
        self.date = date

    @classmethod
    def from_draft(cls, draft, date):
        """Snapshots `draft` so later edits to it cannot leak into the record."""
        fields = {attr: copy.deepcopy(getattr(draft, attr)) for attr in EXAMINATION_FIELDS.values()}
        fields['images'] = [ImageAttachment(image.file_ref, image.category) for image in draft.images]
        return cls(draft.patient_id, date=date, **fields)

    def to_dict(self):
        data = {'patientId': self.patient_id, 'date': self.date}
        data.update({key: value for key, value in super().to_dict().items() if key != 'patientId'})
        return data

    @classmethod
    def from_dict(cls, data):
        return cls(data.get('patientId'), date=data.get('date'), **cls._fields_from_dict(data))
