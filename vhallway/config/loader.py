from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Dict

import yaml

_CONFIG_PATH = Path(__file__).resolve().parent / "config.yaml"

_DEFAULT_DATABASE_URL = "sqlite:///./vhallway.db"
_DEFAULT_COHORT_SETTINGS = {
    "cohort_size": 4,
    "winner_count": 2,
}
_DEFAULT_PEER_RETRY = {
    "max_attempts": 10,
    "base_delay_ms": 100,
    "jitter_ms": 20,
}
_DEFAULT_ELECTION = {
    "poll_interval_seconds": 5,
    "meeting_link_base": "https://meet.jit.si/vhallway-",
}
_DEFAULT_LOGGING = {
    "directory": "logs",
    "level": "INFO",
    "max_bytes": 5 * 1024 * 1024,
    "backup_count": 3,
}
_LOG_LEVELS = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}


def load_config() -> Dict[str, Any]:
    """Load the application config from YAML, returning an empty mapping on error."""
    try:
        with _CONFIG_PATH.open("r", encoding="utf-8") as handle:
            data = yaml.safe_load(handle) or {}
            if isinstance(data, dict):
                return data
            logging.warning(
                "Config file %s is not a mapping; using defaults.", _CONFIG_PATH
            )
            return {}
    except FileNotFoundError:
        logging.warning(
            "Configuration file %s not found; using defaults.", _CONFIG_PATH
        )
        return {}
    except Exception as exc:  # noqa: BLE001
        logging.error("Failed to load configuration from %s: %s", _CONFIG_PATH, exc)
        return {}


def _coerce_positive_int(value: Any, fallback: int) -> int:
    try:
        candidate = int(value)
        return candidate if candidate > 0 else fallback
    except Exception:  # noqa: BLE001
        return fallback


def _coerce_non_negative_int(value: Any, fallback: int) -> int:
    try:
        candidate = int(value)
        return candidate if candidate >= 0 else fallback
    except Exception:  # noqa: BLE001
        return fallback


def get_database_url() -> str:
    config = load_config()
    url = config.get("database_url")
    return str(url) if url else _DEFAULT_DATABASE_URL


def get_cohort_settings() -> Dict[str, int]:
    """Return cohort sizing and winner count sourced from config with safe defaults."""
    config = load_config()
    section = config.get("cohorts") or {}
    defaults = dict(_DEFAULT_COHORT_SETTINGS)
    return {
        "cohort_size": _coerce_positive_int(
            section.get("cohort_size"), defaults["cohort_size"]
        ),
        "winner_count": _coerce_positive_int(
            section.get("winner_count"), defaults["winner_count"]
        ),
    }


def get_peer_retry_settings() -> Dict[str, int]:
    """Return the bounded retry policy used while a fresh cohort becomes visible."""
    config = load_config()
    section = config.get("peer_retry") or {}
    defaults = dict(_DEFAULT_PEER_RETRY)
    return {
        "max_attempts": _coerce_positive_int(
            section.get("max_attempts"), defaults["max_attempts"]
        ),
        "base_delay_ms": _coerce_non_negative_int(
            section.get("base_delay_ms"), defaults["base_delay_ms"]
        ),
        "jitter_ms": _coerce_non_negative_int(
            section.get("jitter_ms"), defaults["jitter_ms"]
        ),
    }


def get_election_settings() -> Dict[str, Any]:
    config = load_config()
    section = config.get("election") or {}
    defaults = dict(_DEFAULT_ELECTION)
    link_base = section.get("meeting_link_base")
    if not isinstance(link_base, str) or not link_base.strip():
        link_base = defaults["meeting_link_base"]
    return {
        "poll_interval_seconds": _coerce_positive_int(
            section.get("poll_interval_seconds"), defaults["poll_interval_seconds"]
        ),
        "meeting_link_base": link_base.strip(),
    }


def get_logging_settings() -> Dict[str, Any]:
    """Return log destination, level and rotation limits."""
    config = load_config()
    section = config.get("logging") or {}
    defaults = dict(_DEFAULT_LOGGING)
    level = str(section.get("level") or defaults["level"]).upper()
    if level not in _LOG_LEVELS:
        level = defaults["level"]
    return {
        "directory": str(section.get("directory") or defaults["directory"]),
        "level": level,
        "max_bytes": _coerce_positive_int(section.get("max_bytes"), defaults["max_bytes"]),
        "backup_count": _coerce_non_negative_int(
            section.get("backup_count"), defaults["backup_count"]
        ),
    }
