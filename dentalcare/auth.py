"""
This module provides the doctor session for the DentalCare front office.

Login is cosmetic: there are no accounts. Any email containing ``@`` with a
password of at least six characters is accepted, and the part of the email
before ``@`` is stored under the ``doctorName`` key for the shell to greet.
"""
# dentalcare/auth.py

import logging

from dentalcare.errors import ValidationError
from dentalcare.storage import DOCTOR_NAME

logger = logging.getLogger(__name__)

MIN_PASSWORD_LENGTH = 6
DEFAULT_DOCTOR_NAME = 'Doctor'


class DoctorSession:
    """Tracks the logged-in doctor's display name in the store."""

    def __init__(self, store):
        self._store = store

    def login(self, email, password):
        """Starts a session.

        Args:
            email (str): The doctor's email address.
            password (str): Any password of at least six characters.

        Returns:
            str or None: The doctor's display name, or None when the credentials are rejected.

        Raises:
            ValidationError: If the email or password is empty.
        """
        missing = [name for name, value in (('email', email), ('password', password)) if not value]
        if missing:
            raise ValidationError(missing)
        if '@' not in email or len(password) < MIN_PASSWORD_LENGTH:
            return None
        doctor_name = email.split('@')[0]
        self._store.set_value(DOCTOR_NAME, doctor_name)
        logger.info("Doctor %s logged in", doctor_name)
        return doctor_name

    def logout(self):
        """Ends the session by clearing the stored doctor name."""
        self._store.remove_value(DOCTOR_NAME)
        logger.info("Doctor logged out")

    @property
    def is_logged_in(self):
        return self._store.get_value(DOCTOR_NAME) is not None

    @property
    def doctor_name(self):
        return self._store.get_value(DOCTOR_NAME, DEFAULT_DOCTOR_NAME)
