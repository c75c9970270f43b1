"""
This module handles the encryption key used for the practice's data at rest.

It uses the `cryptography` library (Fernet symmetric encryption) so that the
collection files written by the encrypted store cannot be read without the key.
The module is responsible for:
- Generating a secret key if one does not already exist.
- Storing and loading the secret key from a key file (``secret.key`` by default).
- Building the `Fernet` encryptor handed to the store.

Security Note: the key file is critical. Keep it out of version control; losing
it makes every stored collection unreadable.
"""
# dentalcare/encryption.py

import logging
import os

from cryptography.fernet import Fernet

logger = logging.getLogger(__name__)


def write_key(path: str) -> bytes:
    """Generates a new Fernet key and saves it to `path`.

    Returns:
        bytes: The generated key.
    """
    key = Fernet.generate_key()
    directory = os.path.dirname(path)
    if directory:
        os.makedirs(directory, exist_ok=True)
    with open(path, "wb") as key_file:
        key_file.write(key)
    return key


def load_key(path: str) -> bytes:
    """Loads the Fernet key from `path`.

    Returns:
        bytes: The encryption key.
    """
    with open(path, "rb") as key_file:
        return key_file.read().strip()


def load_or_create_key(path: str) -> bytes:
    """Loads the key at `path`, generating it on first run."""
    try:
        return load_key(path)
    except FileNotFoundError:
        logger.info("Encryption key not found at %s; generating a new one.", path)
        return write_key(path)


def get_encryptor(path: str) -> Fernet:
    """Returns a Fernet instance for the key stored at `path`."""
    return Fernet(load_or_create_key(path))
