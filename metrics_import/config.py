"""
metrics_import/config.py

Application-level configuration helpers.

Settings are read from the environment once and handed to the import
service explicitly; nothing downstream reads os.environ directly.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache

from db.config import load_env_files

_ALLOWED_APP_MODES = {"cloud"}
_ALLOWED_LLM_ADAPTERS = {"openai", "mock"}
_ALLOWED_STORAGE_BACKENDS = {"local", "http"}
_DEFAULT_ALLOWED_EXTENSIONS = (".xlsx", ".xlsm", ".csv")


@lru_cache(maxsize=1)
def _load_env_once() -> None:
    """
    Ensure project `.env` files are loaded once before reading settings.
    """

    load_env_files()


def _get_bool_env(name: str, default: bool) -> bool:
    _load_env_once()
    raw_value = os.getenv(name)
    if raw_value is None:
        return default
    return raw_value.strip().lower() in {"1", "true", "yes", "on"}


def _get_int_env(name: str, default: int) -> int:
    _load_env_once()
    raw_value = os.getenv(name)
    if raw_value is None:
        return default
    try:
        return int(raw_value)
    except ValueError:
        return default


def _get_float_env(name: str, default: float) -> float:
    _load_env_once()
    raw_value = os.getenv(name)
    if raw_value is None:
        return default
    try:
        return float(raw_value)
    except ValueError:
        return default


def _get_str_env(name: str, default: str) -> str:
    _load_env_once()
    value = os.getenv(name)
    if value is None:
        return default
    stripped = value.strip()
    return stripped if stripped else default


def _get_optional_str_env(name: str) -> str | None:
    _load_env_once()
    value = os.getenv(name)
    if value is None:
        return None
    stripped = value.strip()
    return stripped if stripped else None


def _parse_extensions(raw: str) -> tuple[str, ...]:
    extensions: list[str] = []
    for part in raw.split(","):
        extension = part.strip().lower()
        if not extension:
            continue
        if not extension.startswith("."):
            extension = f".{extension}"
        if extension not in extensions:
            extensions.append(extension)
    return tuple(extensions) or _DEFAULT_ALLOWED_EXTENSIONS


@dataclass(frozen=True)
class LLMSettings:
    """
    Completion endpoint settings.
    """

    adapter: str = "openai"
    model: str = "gpt-4.1-mini"
    max_tokens: int = 16384
    api_key: str | None = None
    base_url: str | None = None


@dataclass(frozen=True)
class StorageSettings:
    """
    Import bucket settings.
    """

    backend: str = "local"
    bucket: str = "metrics-import"
    root_dir: str = "data/storage"
    base_url: str | None = None
    api_key: str | None = None
    timeout_seconds: float = 30.0


@dataclass(frozen=True)
class SpreadsheetImportSettings:
    """
    Runtime settings for the spreadsheet import pipeline.
    """

    allowed_extensions: tuple[str, ...] = _DEFAULT_ALLOWED_EXTENSIONS
    write_processed_artifact: bool = False
    processed_prefix: str = "processed"
    data_point_batch_size: int = 1000


@lru_cache(maxsize=1)
def get_llm_settings() -> LLMSettings:
    """
    Return cached completion settings from environment variables.
    """

    adapter = _get_str_env("LLM_ADAPTER", "openai").lower()
    if adapter not in _ALLOWED_LLM_ADAPTERS:
        raise RuntimeError(
            f"LLM_ADAPTER '{adapter}' is not valid. Allowed values: {sorted(_ALLOWED_LLM_ADAPTERS)}."
        )
    return LLMSettings(
        adapter=adapter,
        model=_get_str_env("LLM_MODEL", "gpt-4.1-mini"),
        max_tokens=max(256, _get_int_env("LLM_MAX_TOKENS", 16384)),
        api_key=_get_optional_str_env("LLM_API_KEY") or _get_optional_str_env("OPENAI_API_KEY"),
        base_url=_get_optional_str_env("LLM_BASE_URL"),
    )


@lru_cache(maxsize=1)
def get_storage_settings() -> StorageSettings:
    """
    Return cached import bucket settings from environment variables.
    """

    backend = _get_str_env("STORAGE_BACKEND", "local").lower()
    if backend not in _ALLOWED_STORAGE_BACKENDS:
        raise RuntimeError(
            f"STORAGE_BACKEND '{backend}' is not valid. "
            f"Allowed values: {sorted(_ALLOWED_STORAGE_BACKENDS)}."
        )
    return StorageSettings(
        backend=backend,
        bucket=_get_str_env("STORAGE_BUCKET", "metrics-import"),
        root_dir=_get_str_env("STORAGE_ROOT_DIR", "data/storage"),
        base_url=_get_optional_str_env("STORAGE_BASE_URL"),
        api_key=_get_optional_str_env("STORAGE_API_KEY"),
        timeout_seconds=max(1.0, _get_float_env("STORAGE_TIMEOUT_SECONDS", 30.0)),
    )


@lru_cache(maxsize=1)
def get_spreadsheet_import_settings() -> SpreadsheetImportSettings:
    """
    Return cached import pipeline settings from environment variables.
    """

    return SpreadsheetImportSettings(
        allowed_extensions=_parse_extensions(
            _get_str_env("IMPORT_ALLOWED_EXTENSIONS", ",".join(_DEFAULT_ALLOWED_EXTENSIONS))
        ),
        write_processed_artifact=_get_bool_env("IMPORT_WRITE_PROCESSED_ARTIFACT", False),
        processed_prefix=_get_str_env("IMPORT_PROCESSED_PREFIX", "processed").strip("/"),
        data_point_batch_size=max(1, _get_int_env("IMPORT_DATA_POINT_BATCH_SIZE", 1000)),
    )


def validate_environment() -> list[str]:
    """
    Collect every missing or invalid startup variable.

    Returns an empty list when the environment is usable.
    """

    _load_env_once()
    errors: list[str] = []

    app_mode = os.getenv("APP_MODE", "").strip().lower()
    if not app_mode:
        errors.append("APP_MODE is not set. It must be explicitly set to 'cloud'.")
    elif app_mode not in _ALLOWED_APP_MODES:
        errors.append(
            f"APP_MODE='{app_mode}' is not valid. Allowed values: {sorted(_ALLOWED_APP_MODES)}."
        )

    if not any(
        os.getenv(name, "").strip()
        for name in ("DATABASE_URL", "CLOUD_DATABASE_URL", "LOCAL_DATABASE_URL")
    ):
        errors.append(
            "No database URL configured. Set DATABASE_URL, CLOUD_DATABASE_URL "
            "or LOCAL_DATABASE_URL."
        )

    adapter = os.getenv("LLM_ADAPTER", "openai").strip().lower()
    if adapter not in _ALLOWED_LLM_ADAPTERS:
        errors.append(
            f"LLM_ADAPTER='{adapter}' is not valid. Allowed values: {sorted(_ALLOWED_LLM_ADAPTERS)}."
        )
    elif adapter != "mock" and not (
        os.getenv("LLM_API_KEY", "").strip() or os.getenv("OPENAI_API_KEY", "").strip()
    ):
        errors.append(
            "LLM API key is not set. Provide LLM_API_KEY or OPENAI_API_KEY, "
            "or set LLM_ADAPTER=mock."
        )

    backend = os.getenv("STORAGE_BACKEND", "local").strip().lower()
    if backend not in _ALLOWED_STORAGE_BACKENDS:
        errors.append(
            f"STORAGE_BACKEND='{backend}' is not valid. "
            f"Allowed values: {sorted(_ALLOWED_STORAGE_BACKENDS)}."
        )
    elif backend == "http":
        for name in ("STORAGE_BASE_URL", "STORAGE_API_KEY"):
            if not os.getenv(name, "").strip():
                errors.append(f"{name} is required when STORAGE_BACKEND=http.")

    return errors
