"""
app/config.py

Application-level configuration helpers.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path


def load_env_files() -> None:
    """
    Load simple KEY=VALUE pairs from `.env` and `.env.local` (if present).
    Existing process environment variables are not overwritten.
    """

    project_root = Path(__file__).resolve().parents[1]
    for filename in (".env", ".env.local"):
        env_path = project_root / filename
        if not env_path.exists():
            continue

        for raw_line in env_path.read_text(encoding="utf-8").splitlines():
            line = raw_line.strip()
            if not line or line.startswith("#") or "=" not in line:
                continue

            key, value = line.split("=", 1)
            key = key.strip()
            value = value.strip().strip('"').strip("'")
            if key and key not in os.environ:
                os.environ[key] = value


@lru_cache(maxsize=1)
def _load_env_once() -> None:
    """
    Ensure project `.env` files are loaded once before reading app settings.
    """

    load_env_files()


def _get_bool_env(name: str, default: bool) -> bool:
    """
    Read a boolean from environment variables with safe fallback.
    """

    _load_env_once()
    raw_value = os.getenv(name)
    if raw_value is None:
        return default
    return raw_value.strip().lower() in {"1", "true", "yes", "on"}


def _get_int_env(name: str, default: int) -> int:
    """
    Read an integer from environment variables with safe fallback.
    """

    _load_env_once()
    raw_value = os.getenv(name)
    if raw_value is None:
        return default
    try:
        return int(raw_value)
    except ValueError:
        return default


def _get_str_env(name: str, default: str) -> str:
    """
    Read a string from environment variables with fallback.
    """

    _load_env_once()
    value = os.getenv(name)
    if value is None:
        return default
    stripped = value.strip()
    return stripped if stripped else default


@dataclass(frozen=True)
class MetricsIngestionSettings:
    """
    Runtime settings for revenue spreadsheet ingestion.
    """

    max_upload_bytes: int = 10 * 1024 * 1024
    min_date_headers: int = 2
    max_validation_errors: int = 500
    log_validation_errors: bool = True


@dataclass(frozen=True)
class ExportSettings:
    """
    Runtime settings for metrics workbook export.
    """

    workbook_filename: str = "MRR_Metrics.xlsx"
    include_efficiency_sheet: bool = True


@lru_cache(maxsize=1)
def get_ingestion_settings() -> MetricsIngestionSettings:
    """
    Return cached ingestion settings from environment variables.
    """

    return MetricsIngestionSettings(
        max_upload_bytes=max(1, _get_int_env("METRICS_MAX_UPLOAD_BYTES", 10 * 1024 * 1024)),
        min_date_headers=max(1, _get_int_env("METRICS_MIN_DATE_HEADERS", 2)),
        max_validation_errors=max(1, _get_int_env("METRICS_MAX_VALIDATION_ERRORS", 500)),
        log_validation_errors=_get_bool_env("METRICS_LOG_VALIDATION_ERRORS", True),
    )


@lru_cache(maxsize=1)
def get_export_settings() -> ExportSettings:
    """
    Return cached export settings from environment variables.
    """

    return ExportSettings(
        workbook_filename=_get_str_env("METRICS_EXPORT_FILENAME", "MRR_Metrics.xlsx"),
        include_efficiency_sheet=_get_bool_env("METRICS_EXPORT_INCLUDE_EFFICIENCY", True),
    )
