"""Logging setup for the DentalCare application."""
# dentalcare/logging_config.py

import logging
import sys

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def configure_logging(level="INFO"):
    """Installs a single stream handler on the root logger.

    Safe to call on every Streamlit rerun: an existing handler is reused rather
    than stacked.

    Args:
        level (str or int): The log level name or number.
    """
    root = logging.getLogger()
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.INFO
    root.setLevel(level)

    for handler in root.handlers:
        if getattr(handler, "_dentalcare", False):
            return
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    handler._dentalcare = True
    root.addHandler(handler)
