"""
Runtime configuration for CourseTree.

Settings are read from environment variables, after loading an optional
.env file from the project root.
"""

import logging
import os
from pathlib import Path

from dotenv import load_dotenv
from pydantic import BaseModel, Field

PROJECT_ROOT = Path(__file__).parent.parent

DEFAULT_DATA_DIR = Path.home() / ".coursetree"
STORAGE_KEY = "learning-platform-data"


class Settings(BaseModel):
    data_dir: Path = DEFAULT_DATA_DIR
    storage: str = Field(default="sqlite", pattern=r"^(sqlite|file|memory)$")
    storage_key: str = STORAGE_KEY
    debounce_ms: int = Field(default=1000, ge=0)
    saved_display_ms: int = Field(default=2000, ge=0)
    error_display_ms: int = Field(default=3000, ge=0)
    log_level: str = "INFO"

    @property
    def debounce_seconds(self) -> float:
        return self.debounce_ms / 1000

    @property
    def saved_display_seconds(self) -> float:
        return self.saved_display_ms / 1000

    @property
    def error_display_seconds(self) -> float:
        return self.error_display_ms / 1000


def load_settings(env_file: Path | None = None) -> Settings:
    """Build Settings from the environment (and .env, if present)."""
    load_dotenv(env_file or PROJECT_ROOT / ".env")

    values = {}
    env_map = {
        "COURSETREE_DATA_DIR": "data_dir",
        "COURSETREE_STORAGE": "storage",
        "COURSETREE_STORAGE_KEY": "storage_key",
        "COURSETREE_DEBOUNCE_MS": "debounce_ms",
        "COURSETREE_SAVED_DISPLAY_MS": "saved_display_ms",
        "COURSETREE_ERROR_DISPLAY_MS": "error_display_ms",
        "COURSETREE_LOG_LEVEL": "log_level",
    }
    for env_name, field_name in env_map.items():
        value = os.getenv(env_name)
        if value:
            values[field_name] = value
    return Settings(**values)


def configure_logging(settings: Settings):
    logging.basicConfig(
        level=getattr(logging, settings.log_level.upper(), logging.INFO),
        format="%(asctime)s - %(levelname)s - %(message)s"
    )
