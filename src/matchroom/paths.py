"""
Path utilities for matchroom.
"""

import os
from pathlib import Path

DATA_DIR_ENV = "MATCHROOM_HOME"
DEFAULT_DB_NAME = "matchroom.sqlite"


def get_data_dir() -> Path:
    """
    Get the data directory for storing the database.

    Returns:
        - $MATCHROOM_HOME when set
        - Otherwise .matchroom/ in the current working directory
    """
    override = os.environ.get(DATA_DIR_ENV)
    if override:
        data_dir = Path(override)
    else:
        data_dir = Path.cwd() / ".matchroom"
    data_dir.mkdir(parents=True, exist_ok=True)
    return data_dir


def get_default_db_path() -> Path:
    """Get the default SQLite database path."""
    return get_data_dir() / DEFAULT_DB_NAME
