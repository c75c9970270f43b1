"""
Pytest configuration file for the DentalCare test suite.

This file defines shared fixtures used across the test files. It includes
logic to:
- Build isolated stores, either in memory or as encrypted files under a
  temporary directory, so tests never touch the real practice data.
- Provide a fixed clock so ids, ages and timestamps are predictable.
- Create registries, workflows and full `DentalCareService` instances on top of
  those stores.
"""
from datetime import datetime

import pytest
from cryptography.fernet import Fernet

from dentalcare.config import Settings
from dentalcare.registry import PatientRegistry
from dentalcare.service import DentalCareService
from dentalcare.storage import PATIENTS, CollectionStore, EncryptedFileStore, MemoryStore

FIXED_NOW = datetime(2024, 6, 15, 10, 30, 0)


def fixed_clock():
    return FIXED_NOW


def build_patient_records(count, start=1):
    """
    Creates `count` stored patient dictionaries with distinct ids and names.

    Args:
        count (int): Number of patients to build.
        start (int, optional): Number of the first patient. Defaults to 1.

    Returns:
        list: Patient records in stored (camelCase) form.
    """
    records = []
    for number in range(start, start + count):
        records.append({
            'id': f"PAT-{100000 + number}",
            'firstName': f"First{number:02d}",
            'lastName': f"Last{number:02d}",
            'gender': 'other',
            'dateOfBirth': None,
            'age': None,
            'phone': f"+1-555-{number:04d}",
            'email': '',
            'address': '',
            'emergencyContact': '',
            'medicalHistory': '',
            'registrationDate': FIXED_NOW.isoformat(),
            'status': 'Active',
        })
    return records


@pytest.fixture
def clock():
    """Provides a clock frozen at `FIXED_NOW`."""
    return fixed_clock


@pytest.fixture
def memory_store():
    """Provides a non-strict `CollectionStore` backed by memory."""
    return CollectionStore(MemoryStore())


@pytest.fixture
def strict_store():
    """Provides a strict `CollectionStore` backed by memory."""
    return CollectionStore(MemoryStore(), strict=True)


@pytest.fixture
def fernet():
    return Fernet(Fernet.generate_key())


@pytest.fixture
def encrypted_backend(tmp_path, fernet):
    """Provides an `EncryptedFileStore` writing under a temporary directory."""
    return EncryptedFileStore(str(tmp_path / "data"), fernet)


@pytest.fixture
def registry(memory_store, clock):
    """Provides a registry over an empty in-memory store."""
    return PatientRegistry(memory_store, clock=clock)


@pytest.fixture
def populated_store(memory_store):
    """Provides a store holding 24 patients, two of them sharing the last name Kowalski."""
    records = build_patient_records(24)
    records[4]['lastName'] = 'Kowalski'
    records[17]['lastName'] = 'Kowalski'
    memory_store.save(PATIENTS, records)
    return memory_store


@pytest.fixture
def settings(tmp_path):
    """Provides settings pointing at a temporary data directory and key file."""
    return Settings(
        data_dir=str(tmp_path / "data"),
        key_file=str(tmp_path / "secret.key"),
        page_size=10,
        strict_storage=False,
        seed_demo_data=True,
        log_level="INFO",
    )


@pytest.fixture
def service(settings, clock):
    """Provides a `DentalCareService` using the encrypted file store under `tmp_path`."""
    return DentalCareService(settings=settings, clock=clock)


@pytest.fixture
def memory_service(settings, clock):
    """Provides a `DentalCareService` whose data lives only in memory."""
    return DentalCareService(settings=settings, backend=MemoryStore(), clock=clock)
