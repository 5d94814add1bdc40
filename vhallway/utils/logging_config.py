import logging
import logging.config
import os
from pathlib import Path
from typing import Any, Dict, List

from vhallway.config.loader import get_logging_settings

APP_LOGGERS = (
    "vhallway",
    "vhallway.election",
    "vhallway.peers",
    "vhallway.retry",
    "vhallway.meetings",
)
# Console and app log only.
QUIET_LOGGERS = ("database", "auth_module")


def _rotating(path: Path, level: str, max_bytes: int, backup_count: int) -> Dict[str, Any]:
    return {
        "class": "logging.handlers.RotatingFileHandler",
        "formatter": "default",
        "filename": str(path),
        "maxBytes": max_bytes,
        "backupCount": backup_count,
        "level": level,
        "encoding": "utf8",
    }


def _logger(handlers: List[str], level: str) -> Dict[str, Any]:
    return {"handlers": handlers, "level": level, "propagate": False}


def build_logging_config(settings: Dict[str, Any]) -> Dict[str, Any]:
    """Translate logging settings into a ``dictConfig`` mapping."""
    log_dir = Path(os.getenv("LOG_DIR", settings["directory"]))
    level = settings["level"]
    max_bytes = settings["max_bytes"]
    backup_count = settings["backup_count"]

    loggers: Dict[str, Any] = {
        "": _logger(["console", "file_app", "file_error"], level),
    }
    for name in APP_LOGGERS:
        loggers[name] = _logger(["console", "file_app", "file_error"], level)
    for name in QUIET_LOGGERS:
        loggers[name] = _logger(["console", "file_app"], level)

    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "default": {
                "format": "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
            },
        },
        "handlers": {
            "console": {
                "class": "logging.StreamHandler",
                "formatter": "default",
                "level": level,
            },
            "file_app": _rotating(log_dir / "vhallway.log", level, max_bytes, backup_count),
            "file_error": _rotating(log_dir / "error.log", "ERROR", max_bytes, backup_count),
        },
        "loggers": loggers,
    }


def setup_logging():
    """
    Configures logging for the application.
    Logs are written to 'vhallway.log' and 'error.log' under the configured directory.
    """
    config = build_logging_config(get_logging_settings())
    Path(config["handlers"]["file_app"]["filename"]).parent.mkdir(parents=True, exist_ok=True)
    logging.config.dictConfig(config)
    logging.getLogger("vhallway").info("Logging configured successfully.")
