"""Settings loader and logging setup.

Settings come from defaults, then the environment (ZTLN_BASE_DIR,
ZTLN_LOG_LEVEL, ZTLN_LOG_FILE), then explicit arguments.
"""

from __future__ import annotations

import logging
import os
import sys
from pathlib import Path
from typing import Any, Mapping

from pydantic import BaseModel, field_validator

from .constants import (
    BASE_DIR_ENV,
    DEFAULT_BASE_DIR_NAME,
    DEFAULT_LOG_LEVEL,
    LOG_FILE_ENV,
    LOG_LEVEL_ENV,
)

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(message)s"


class Settings(BaseModel):
    base_dir: Path
    log_level: str = DEFAULT_LOG_LEVEL
    log_file: Path | None = None

    @field_validator("log_level")
    @classmethod
    def _known_level(cls, value: str) -> str:
        value = value.upper()
        if not isinstance(logging.getLevelName(value), int):
            raise ValueError(f"unknown log level: {value}")
        return value


def default_base_dir() -> Path:
    return Path.home() / DEFAULT_BASE_DIR_NAME


def load_settings(
    base_dir: Path | str | None = None,
    log_level: str | None = None,
    env: Mapping[str, str] | None = None,
) -> Settings:
    """Build settings; explicit arguments override the environment.

    Args:
        base_dir: Repository location
        log_level: Logging level name
        env: Environment to read (default: os.environ)
    """
    env = os.environ if env is None else env

    values: dict[str, Any] = {"base_dir": default_base_dir()}
    if env.get(BASE_DIR_ENV):
        values["base_dir"] = Path(env[BASE_DIR_ENV])
    if env.get(LOG_LEVEL_ENV):
        values["log_level"] = env[LOG_LEVEL_ENV]
    if env.get(LOG_FILE_ENV):
        values["log_file"] = Path(env[LOG_FILE_ENV])

    if base_dir is not None:
        values["base_dir"] = Path(base_dir)
    if log_level is not None:
        values["log_level"] = log_level

    return Settings(**values)


def setup_logging(settings: Settings) -> None:
    """Send log records to stderr and, if configured, a log file."""
    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stderr)]
    if settings.log_file is not None:
        settings.log_file.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(settings.log_file))

    logging.basicConfig(
        level=settings.log_level,
        format=LOG_FORMAT,
        handlers=handlers,
        force=True,
    )
