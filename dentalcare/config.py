"""
Runtime configuration for DentalCare.

Settings are read from environment variables once and cached, so the Streamlit
script, the service and the tests all agree on where data lives and how the
store behaves.
"""
# dentalcare/config.py

import os
from dataclasses import dataclass, field
from functools import lru_cache


def _env_flag(name: str, default: str) -> bool:
    return os.getenv(name, default).strip().lower() in ("1", "true", "yes", "on")


@dataclass
class Settings:
    """Application settings.

    Attributes:
        data_dir (str): Directory holding the encrypted collection files.
        key_file (str): Path of the Fernet key used for data at rest.
        page_size (int): Number of patients per directory page.
        strict_storage (bool): Raise on corrupt collections instead of treating them as empty.
        seed_demo_data (bool): Seed the demo patients when the registry is empty.
        log_level (str): Root logging level.
    """
    data_dir: str = field(default_factory=lambda: os.getenv("DENTALCARE_DATA_DIR", "data"))
    key_file: str = field(default_factory=lambda: os.getenv("DENTALCARE_KEY_FILE", "secret.key"))
    page_size: int = field(default_factory=lambda: int(os.getenv("DENTALCARE_PAGE_SIZE", "10")))
    strict_storage: bool = field(default_factory=lambda: _env_flag("DENTALCARE_STRICT_STORAGE", "false"))
    seed_demo_data: bool = field(default_factory=lambda: _env_flag("DENTALCARE_SEED_DEMO", "true"))
    log_level: str = field(default_factory=lambda: os.getenv("DENTALCARE_LOG_LEVEL", "INFO"))

    def __post_init__(self):
        if self.page_size < 1:
            raise ValueError("DENTALCARE_PAGE_SIZE must be a positive integer")


@lru_cache()
def get_settings() -> Settings:
    """Returns the process-wide settings, built on first use."""
    return Settings()
