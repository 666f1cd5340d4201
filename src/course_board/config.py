"""
Configuration for Course Board.

Settings come from CB_* environment variables:

- CB_DATA_DIR: directory holding the store file (default var/board)
- CB_STORE_FILE: store file name, or ":memory:" (default board.db)
- CB_LOG_LEVEL: log level name used by the CLI (default WARNING)
"""

import logging
import os
from pathlib import Path

from pydantic import BaseModel, Field

from course_board.core.exceptions import ConfigurationError
from course_board.storage.ordered_map import MEMORY

DEFAULT_DATA_DIR = Path("var/board")
DEFAULT_STORE_FILE = "board.db"
DEFAULT_LOG_LEVEL = "WARNING"

_LOG_LEVELS = ("CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG")


class BoardSettings(BaseModel):
    """Runtime settings."""

    data_dir: Path = Field(default=DEFAULT_DATA_DIR)
    store_file: str = Field(default=DEFAULT_STORE_FILE)
    log_level: str = Field(default=DEFAULT_LOG_LEVEL)

    @classmethod
    def from_env(cls) -> "BoardSettings":
        """
        Load settings from the environment.

        Raises:
            ConfigurationError: If CB_LOG_LEVEL or CB_STORE_FILE is invalid
        """
        log_level = os.getenv("CB_LOG_LEVEL", DEFAULT_LOG_LEVEL).strip().upper()
        if log_level not in _LOG_LEVELS:
            raise ConfigurationError(
                f"Invalid log level: {log_level}",
                env_var="CB_LOG_LEVEL",
                details={"allowed": list(_LOG_LEVELS)},
            )

        store_file = os.getenv("CB_STORE_FILE", DEFAULT_STORE_FILE).strip()
        if not store_file or Path(store_file).name != store_file:
            raise ConfigurationError(
                f"Invalid store file name: '{store_file}'",
                env_var="CB_STORE_FILE",
            )

        data_dir = os.getenv("CB_DATA_DIR", "").strip()
        return cls(
            data_dir=Path(data_dir) if data_dir else DEFAULT_DATA_DIR,
            store_file=store_file,
            log_level=log_level,
        )

    @property
    def in_memory(self) -> bool:
        return self.store_file == MEMORY

    @property
    def store_path(self) -> Path | str:
        """Full path of the store file, or ":memory:"."""
        if self.in_memory:
            return MEMORY
        return self.data_dir / self.store_file

    @property
    def log_level_value(self) -> int:
        return getattr(logging, self.log_level)
