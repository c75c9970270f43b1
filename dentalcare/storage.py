"""
This module provides the persistence layer for DentalCare.

All state lives in a small durable key-value store holding one JSON document per
key. The module is responsible for:
- Defining the `KeyValueStore` interface and two backends: an encrypted
  file-per-key store for real use and an in-memory store for tests.
- Exposing `CollectionStore`, which loads, saves and seeds the named record
  collections (`patients`, `examinations`) and scalar values such as the
  logged-in doctor's name.
- Telling "no data yet" apart from "corrupt data" through `status()`. In strict
  mode corrupt collections raise `CorruptCollectionError`; otherwise they are
  logged and read as empty. Appending to a corrupt collection always raises, so
  the damaged data is never overwritten.

There is no locking: the application runs one session in a single thread.
"""
# dentalcare/storage.py

import json
import logging
import os
import tempfile

from cryptography.fernet import InvalidToken

from dentalcare.errors import CorruptCollectionError

logger = logging.getLogger(__name__)

PATIENTS = 'patients'
EXAMINATIONS = 'examinations'
DOCTOR_NAME = 'doctorName'

STATUS_MISSING = 'missing'
STATUS_OK = 'ok'
STATUS_CORRUPT = 'corrupt'


class KeyValueStore:
    """Interface for string key-value backends."""

    def get_item(self, key):
        """Returns the stored string for `key`, or None when absent."""
        raise NotImplementedError

    def set_item(self, key, value):
        raise NotImplementedError

    def remove_item(self, key):
        raise NotImplementedError


class MemoryStore(KeyValueStore):
    """Keeps values in a dictionary. Nothing survives the process."""

    def __init__(self, initial=None):
        self._items = dict(initial or {})

    def get_item(self, key):
        return self._items.get(key)

    def set_item(self, key, value):
        self._items[key] = value

    def remove_item(self, key):
        self._items.pop(key, None)


class EncryptedFileStore(KeyValueStore):
    """Stores each key as a Fernet-encrypted file under `data_dir`.

    Args:
        data_dir (str): Directory that holds the ``<key>.json`` files.
        encryptor: An object with `encrypt(bytes)` / `decrypt(bytes)`, normally a `Fernet`.
    """

    def __init__(self, data_dir, encryptor):
        self.data_dir = data_dir
        self._encryptor = encryptor
        os.makedirs(self.data_dir, exist_ok=True)

    def _path(self, key):
        return os.path.join(self.data_dir, f"{key}.json")

    def get_item(self, key):
        """Reads and decrypts a value.

        Raises:
            CorruptCollectionError: If the file exists but cannot be decrypted.
        """
        try:
            with open(self._path(key), 'r') as f:
                encrypted_data = f.read()
        except FileNotFoundError:
            return None
        if not encrypted_data:
            return None
        try:
            return self._encryptor.decrypt(encrypted_data.encode()).decode()
        except (InvalidToken, UnicodeDecodeError) as e:
            raise CorruptCollectionError(key, "could not be decrypted") from e

    def set_item(self, key, value):
        """Encrypts and writes a value, replacing the previous file in one step."""
        encrypted_data = self._encryptor.encrypt(value.encode()).decode()
        fd, tmp_path = tempfile.mkstemp(dir=self.data_dir, prefix=f".{key}.", suffix=".tmp")
        try:
            with os.fdopen(fd, 'w') as f:
                f.write(encrypted_data)
            os.replace(tmp_path, self._path(key))
        except BaseException:
            if os.path.exists(tmp_path):
                os.remove(tmp_path)
            raise

    def remove_item(self, key):
        try:
            os.remove(self._path(key))
        except FileNotFoundError:
            pass


class CollectionStore:
    """Loads and saves named record collections on top of a `KeyValueStore`.

    Args:
        backend (KeyValueStore): Where the JSON documents live.
        strict (bool): Raise `CorruptCollectionError` for undecodable collections
            instead of treating them as empty.
    """

    def __init__(self, backend, strict=False):
        self.backend = backend
        self.strict = strict

    def _read(self, name):
        """Returns a ``(status, records_or_reason)`` pair for a collection."""
        try:
            raw = self.backend.get_item(name)
        except CorruptCollectionError as e:
            return STATUS_CORRUPT, e.reason
        if raw is None or raw == '':
            return STATUS_MISSING, []
        try:
            data = json.loads(raw)
        except json.JSONDecodeError as e:
            return STATUS_CORRUPT, f"invalid JSON ({e.msg})"
        if not isinstance(data, list):
            return STATUS_CORRUPT, f"expected a list, found {type(data).__name__}"
        return STATUS_OK, data

    def _degrade(self, name, reason):
        if self.strict:
            raise CorruptCollectionError(name, reason)
        logger.warning("Could not load collection '%s' (%s). Treating it as empty.", name, reason)
        return []

    def status(self, name):
        """Reports whether a collection is 'missing', 'ok' or 'corrupt'."""
        return self._read(name)[0]

    def load(self, name):
        """Returns the decoded records of a collection.

        Args:
            name (str): The collection name.

        Returns:
            list: The stored records, or an empty list when the collection is
                absent (or corrupt, outside strict mode).

        Raises:
            CorruptCollectionError: In strict mode, when the stored data cannot be decoded.
        """
        state, payload = self._read(name)
        if state == STATUS_CORRUPT:
            return self._degrade(name, payload)
        return payload

    def save(self, name, records):
        """Overwrites a whole collection with `records`."""
        self.backend.set_item(name, json.dumps(list(records), indent=2))

    def append(self, name, record):
        """Appends one record to a collection and returns the new contents.

        Raises:
            CorruptCollectionError: If the stored collection cannot be decoded,
                in either mode. The corrupt data is left on disk untouched.
        """
        state, records = self._read(name)
        if state == STATUS_CORRUPT:
            raise CorruptCollectionError(name, records)
        records.append(record)
        self.save(name, records)
        return records

    def seed_if_empty(self, name, default_records):
        """Writes `default_records` when a collection has no data yet.

        A corrupt collection is left untouched so its contents can still be
        recovered by hand.

        Returns:
            list: The stored records after seeding.
        """
        state, payload = self._read(name)
        if state == STATUS_CORRUPT:
            return self._degrade(name, payload)
        if payload:
            return payload
        records = list(default_records)
        self.save(name, records)
        logger.info("Seeded collection '%s' with %d records.", name, len(records))
        return records

    def get_value(self, key, default=None):
        """Returns a scalar value, or `default` when it is absent.

        An undecryptable value counts as absent outside strict mode.
        """
        try:
            value = self.backend.get_item(key)
        except CorruptCollectionError:
            if self.strict:
                raise
            logger.warning("Could not read value '%s'. Using the default.", key)
            return default
        return default if value is None else value

    def set_value(self, key, value):
        self.backend.set_item(key, value)

    def remove_value(self, key):
        self.backend.remove_item(key)
