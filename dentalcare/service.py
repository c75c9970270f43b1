"""
This module provides the service object the DentalCare UI talks to.

`DentalCareService` wires the configured store to the patient registry, the
doctor session and the examination workflow, and answers the read-only queries
of the detail, findings and dashboard pages. The Streamlit entry point creates
one instance per process.
"""
# dentalcare/service.py

import logging
from datetime import datetime

from dentalcare.auth import DoctorSession
from dentalcare.config import get_settings
from dentalcare.encryption import get_encryptor
from dentalcare.models import STATUS_COMPLETED, STATUS_UNDER_TREATMENT, ExaminationRecord
from dentalcare.registry import PatientRegistry
from dentalcare.storage import EXAMINATIONS, PATIENTS, CollectionStore, EncryptedFileStore
from dentalcare.utils import parse_date
from dentalcare.workflow import ExaminationWorkflow

logger = logging.getLogger(__name__)


class DentalCareService:
    """Owns the store, registry and session for one running application.

    Args:
        settings (Settings, optional): Defaults to `get_settings()`.
        backend (KeyValueStore, optional): Storage backend. Defaults to an
            `EncryptedFileStore` under `settings.data_dir`.
        clock (callable, optional): Returns the current `datetime`.
    """

    def __init__(self, settings=None, backend=None, clock=None):
        self.settings = settings or get_settings()
        self._clock = clock or datetime.now
        if backend is None:
            backend = EncryptedFileStore(self.settings.data_dir, get_encryptor(self.settings.key_file))
        self.store = CollectionStore(backend, strict=self.settings.strict_storage)
        self.registry = PatientRegistry(self.store, clock=self._clock, seed_demo_data=self.settings.seed_demo_data)
        self.session = DoctorSession(self.store)

    def start_examination(self, patient_id, require_registered_patient=True) -> ExaminationWorkflow:
        """Opens a new examination workflow for a patient.

        Args:
            patient_id (str): The patient to examine.
            require_registered_patient (bool): Refuse to commit for unknown patient ids.
        """
        registry = self.registry if require_registered_patient else None
        return ExaminationWorkflow(patient_id, self.store, patient_registry=registry, clock=self._clock)

    def examinations_for(self, patient_id) -> list:
        """Returns a patient's committed examinations, oldest first."""
        return [
            ExaminationRecord.from_dict(record)
            for record in self.store.load(EXAMINATIONS)
            if record.get('patientId') == patient_id
        ]

    def latest_examination(self, patient_id):
        records = self.examinations_for(patient_id)
        return records[-1] if records else None

    def dashboard_stats(self) -> dict:
        """Summary counters for the dashboard.

        Returns:
            dict: ``totalPatients``, ``activeCases`` (under treatment),
                ``completedTreatments`` and ``examinationsToday``.
        """
        patients = self.registry.initialize()
        counts = PatientRegistry.count_by_status(patients)
        today = self._clock().date()
        examinations_today = 0
        for record in self.store.load(EXAMINATIONS):
            try:
                if parse_date(record.get('date')) == today:
                    examinations_today += 1
            except ValueError:
                logger.warning("Skipping examination with unreadable date %r", record.get('date'))
        return {
            'totalPatients': len(patients),
            'activeCases': counts[STATUS_UNDER_TREATMENT],
            'completedTreatments': counts[STATUS_COMPLETED],
            'examinationsToday': examinations_today,
        }

    def collection_health(self) -> dict:
        """Reports 'missing', 'ok' or 'corrupt' for each stored collection."""
        return {name: self.store.status(name) for name in (PATIENTS, EXAMINATIONS)}
