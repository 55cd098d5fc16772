"""
Settings for richdoc.

Values come from environment variables (RICHDOC_*), after loading a .env
file if one is present. Defaults live on the model.
"""

from __future__ import annotations
import os

import dotenv
from pydantic import BaseModel


class Settings(BaseModel):
    fetch_timeout: float = 30.0
    default_filename: str = "image"
    download_dir: str = "."
    markdown_preset: str = "commonmark"
    input_rule_max_match: int = 500


_ENV_PREFIX = "RICHDOC_"

_settings: Settings | None = None


def load_settings() -> Settings:
    dotenv.load_dotenv()
    values = {}
    for name in Settings.model_fields:
        value = os.getenv(_ENV_PREFIX + name.upper())
        if value is not None:
            values[name] = value
    return Settings(**values)


def get_settings() -> Settings:
    global _settings
    if _settings is None:
        _settings = load_settings()
    return _settings


def reset_settings() -> None:
    global _settings
    _settings = None
