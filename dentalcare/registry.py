"""
This module provides the patient registry for the DentalCare application.

It defines the `PatientRegistry` class, which is responsible for:
- Loading the persisted patient collection and seeding the demo patients on first use.
- Validating and registering new patients, including id generation and age calculation.
- Looking patients up by id.
- Searching, paginating and counting patients for the directory views.

It also defines `DirectoryView`, the small piece of state behind the patient
directory page: the current search term and page number. Changing the search
term always returns the directory to page one.
"""
# dentalcare/registry.py

import logging
import math
from datetime import datetime, timedelta

import pandas as pd

from dentalcare.errors import NotFoundError, ValidationError
from dentalcare.models import GENDERS, PATIENT_FIELDS, PATIENT_STATUSES, STATUS_ACTIVE, Patient
from dentalcare.storage import PATIENTS
from dentalcare.utils import compute_age, generate_id, parse_date, validate_birth_date

logger = logging.getLogger(__name__)

REQUIRED_PATIENT_FIELDS = ('firstName', 'lastName', 'phone')

DEFAULT_PAGE_SIZE = 10

DIRECTORY_COLUMNS = ['Patient ID', 'Name', 'Gender', 'Age', 'Contact', 'Email', 'Reg. Date', 'Status']


def demo_patient_records(now):
    """Builds the four demo patients written to an empty registry.

    Args:
        now (datetime): The reference time for the registration dates.

    Returns:
        list: Patient dictionaries in stored form.
    """
    def registered(days_ago):
        return (now - timedelta(days=days_ago)).isoformat()

    return [
        Patient('PAT-001', 'John', 'Doe', '+1-555-0123', gender='male', age=35,
                email='john.doe@email.com', registration_date=registered(30)).to_dict(),
        Patient('PAT-002', 'Sarah', 'Wilson', '+1-555-0456', gender='female', age=28,
                email='sarah.wilson@email.com', registration_date=registered(15)).to_dict(),
        Patient('PAT-003', 'Mike', 'Johnson', '+1-555-0789', gender='male', age=42,
                email='mike.johnson@email.com', registration_date=registered(7),
                status='Under Treatment').to_dict(),
        Patient('PAT-004', 'Emily', 'Davis', '+1-555-0321', gender='female', age=31,
                email='emily.davis@email.com', registration_date=registered(3),
                status='Completed').to_dict(),
    ]


def _normalise_input(form):
    """Maps registration form input onto stored key names (camelCase or snake_case accepted)."""
    attr_to_key = {attr: key for key, attr in PATIENT_FIELDS.items()}
    data = {}
    for name, value in (form or {}).items():
        key = name if name in PATIENT_FIELDS else attr_to_key.get(name)
        if key:
            data[key] = value
    return data


def _text(value):
    return '' if value is None else str(value).strip()


class PatientRegistry:
    """The session's view of the persisted patient collection.

    Args:
        store (CollectionStore): The persistence adapter.
        clock (callable, optional): Returns the current `datetime`. Defaults to `datetime.now`.
        seed_demo_data (bool): Seed the demo patients when the collection is empty.
    """

    def __init__(self, store, clock=None, seed_demo_data=True):
        self._store = store
        self._clock = clock or datetime.now
        self._seed_demo_data = seed_demo_data
        self.patients = []

    def initialize(self) -> list:
        """Loads every patient, seeding the demo patients into an empty registry.

        Returns:
            list: All `Patient` objects in registration order.
        """
        if self._seed_demo_data:
            records = self._store.seed_if_empty(PATIENTS, demo_patient_records(self._clock()))
        else:
            records = self._store.load(PATIENTS)
        self.patients = [Patient.from_dict(record) for record in records]
        return list(self.patients)

    def create(self, form) -> Patient:
        """Validates registration input and stores a new patient.

        Args:
            form (dict): Registration form values. `firstName`, `lastName` and
                `phone` are required; `gender`, `dateOfBirth`, `email`, `address`,
                `emergencyContact` and `medicalHistory` are optional.

        Returns:
            Patient: The stored patient, with id, age, registration date and status filled in.

        Raises:
            ValidationError: If required fields are empty or a value is out of range.
        """
        data = _normalise_input(form)
        missing = [name for name in REQUIRED_PATIENT_FIELDS if not _text(data.get(name))]
        invalid = {}

        gender = _text(data.get('gender')).lower()
        if gender and gender not in GENDERS:
            invalid['gender'] = f"must be one of {', '.join(GENDERS)}"

        now = self._clock()
        dob_reason = validate_birth_date(data.get('dateOfBirth'), today=now.date())
        if dob_reason:
            invalid['dateOfBirth'] = dob_reason

        if missing or invalid:
            raise ValidationError(missing, invalid)

        birth_date = parse_date(data.get('dateOfBirth'))
        patient = Patient(
            patient_id=generate_id(int(now.timestamp() * 1000)),
            first_name=_text(data['firstName']),
            last_name=_text(data['lastName']),
            phone=_text(data['phone']),
            gender=gender,
            date_of_birth=birth_date.isoformat() if birth_date else None,
            age=compute_age(birth_date, now.date()) if birth_date else None,
            email=_text(data.get('email')),
            address=_text(data.get('address')),
            emergency_contact=_text(data.get('emergencyContact')),
            medical_history=_text(data.get('medicalHistory')),
            registration_date=now.isoformat(),
            status=STATUS_ACTIVE,
        )
        self._store.append(PATIENTS, patient.to_dict())
        self.patients.append(patient)
        logger.info("Registered patient %s", patient.patient_id)
        return patient

    def find_by_id(self, patient_id) -> Patient:
        """Looks a patient up by id.

        Raises:
            NotFoundError: If no stored patient has this id.
        """
        for record in self._store.load(PATIENTS):
            if record.get('id') == patient_id:
                return Patient.from_dict(record)
        raise NotFoundError(patient_id)

    @staticmethod
    def search(patients, term) -> list:
        """Filters patients by a search term.

        Names and ids match case-insensitively; the phone number matches as a raw
        substring. A patient is kept when any field matches. An empty term keeps
        everyone, in the original order.
        """
        if not term:
            return list(patients)
        needle = term.lower()

        def patient_matches(patient):
            return (
                needle in (patient.first_name or '').lower()
                or needle in (patient.last_name or '').lower()
                or needle in (patient.patient_id or '').lower()
                or term in (patient.phone or '')
            )

        return [patient for patient in patients if patient_matches(patient)]

    @staticmethod
    def paginate(patients, page_number, page_size=DEFAULT_PAGE_SIZE) -> list:
        """Returns one 1-indexed page of patients; pages out of range are empty."""
        if page_size < 1:
            raise ValueError("page_size must be at least 1")
        if page_number < 1:
            return []
        start = (page_number - 1) * page_size
        return list(patients[start:start + page_size])

    @staticmethod
    def page_count(total, page_size=DEFAULT_PAGE_SIZE) -> int:
        if page_size < 1:
            raise ValueError("page_size must be at least 1")
        return math.ceil(total / page_size)

    @staticmethod
    def count_by_status(patients) -> dict:
        """Counts patients per status. Every known status is present, even at zero."""
        counts = {status: 0 for status in PATIENT_STATUSES}
        for patient in patients:
            counts[patient.status] = counts.get(patient.status, 0) + 1
        return counts

    @staticmethod
    def to_dataframe(patients) -> pd.DataFrame:
        """Tabulates patients with the directory's columns (used for display and CSV export)."""
        rows = [{
            'Patient ID': p.patient_id,
            'Name': p.full_name,
            'Gender': (p.gender or '').capitalize(),
            'Age': p.age if p.age is not None else 'N/A',
            'Contact': p.phone,
            'Email': p.email,
            'Reg. Date': p.registration_date,
            'Status': p.status,
        } for p in patients]
        return pd.DataFrame(rows, columns=DIRECTORY_COLUMNS)


class DirectoryView:
    """Search and paging state for the patient directory.

    Args:
        patients (list): The full patient list from `PatientRegistry.initialize`.
        page_size (int): Patients per page.
        search_term (str): Initial search term.
        current_page (int): Initial page, clamped into range.
    """

    def __init__(self, patients, page_size=DEFAULT_PAGE_SIZE, search_term='', current_page=1):
        self._patients = list(patients)
        self.page_size = page_size
        self.search_term = search_term or ''
        self.current_page = 1
        self.go_to_page(current_page)

    @property
    def patients(self):
        return list(self._patients)

    @property
    def filtered(self):
        return PatientRegistry.search(self._patients, self.search_term)

    @property
    def total_pages(self):
        return PatientRegistry.page_count(len(self.filtered), self.page_size)

    @property
    def page_items(self):
        return PatientRegistry.paginate(self.filtered, self.current_page, self.page_size)

    def set_search_term(self, term):
        """Updates the search term and returns to the first page."""
        self.search_term = term or ''
        self.current_page = 1

    def set_patients(self, patients):
        """Replaces the patient list (after a reload) and returns to the first page."""
        self._patients = list(patients)
        self.current_page = 1

    def go_to_page(self, page_number):
        self.current_page = max(1, min(int(page_number), max(self.total_pages, 1)))
        return self.current_page

    def next_page(self):
        return self.go_to_page(self.current_page + 1)

    def previous_page(self):
        return self.go_to_page(self.current_page - 1)

    def row_number(self, index):
        """Serial number shown in the directory table for the `index`-th row of the page."""
        return (self.current_page - 1) * self.page_size + index + 1

    def summary(self):
        return f"Showing {len(self.page_items)} of {len(self.filtered)} patients"
