"""Logging configuration for neo-authz and the services embedding it.

Decision paths log at debug level on every check, so the engine's hot
modules are held at WARNING unless debug logging is requested. Audit
records (``neo_authz.audit``) always pass at INFO.
"""

import logging
import logging.config
import os
from enum import Enum
from typing import Any, Dict, Optional


class LogVerbosity(str, Enum):
    """Verbosity presets, used when ``LOG_LEVEL`` is not set."""
    QUIET = "QUIET"      # errors only
    NORMAL = "NORMAL"    # warnings and above
    VERBOSE = "VERBOSE"  # info
    DEBUG = "DEBUG"


class LogFormat(str, Enum):
    """Console record layouts."""
    SIMPLE = "simple"
    DETAILED = "detailed"


_VERBOSITY_LEVELS = {
    LogVerbosity.QUIET: "ERROR",
    LogVerbosity.NORMAL: "WARNING",
    LogVerbosity.VERBOSE: "INFO",
    LogVerbosity.DEBUG: "DEBUG",
}

_FORMATS = {
    LogFormat.SIMPLE: "%(asctime)s - %(levelname)s - %(message)s",
    LogFormat.DETAILED: "%(asctime)s - %(name)s - %(levelname)s - [%(filename)s:%(lineno)d] - %(message)s",
}


def get_log_level_from_verbosity(verbosity: str) -> str:
    """Map a verbosity preset to a level name; unknown presets mean NORMAL."""
    try:
        return _VERBOSITY_LEVELS[LogVerbosity(verbosity.upper())]
    except ValueError:
        return _VERBOSITY_LEVELS[LogVerbosity.NORMAL]


def _format_string(log_format: str) -> str:
    try:
        return _FORMATS[LogFormat(log_format.lower())]
    except ValueError:
        return _FORMATS[LogFormat.SIMPLE]


def _module_logger(level: str) -> Dict[str, Any]:
    return {"level": level, "handlers": ["console"], "propagate": False}


class LoggingConfig:
    """Builds and applies the ``dictConfig`` for neo-authz."""

    # Per-decision debug logging lives here
    DEFAULT_QUIET_MODULES = [
        "neo_authz.features.cache.adapters",
        "neo_authz.features.permissions.repositories",
    ]

    # Third-party drivers, errors only
    ERROR_ONLY_MODULES = [
        "asyncio",
        "asyncpg",
    ]

    AUDIT_MODULE = "neo_authz.audit"

    @classmethod
    def resolve_level(cls, level: Optional[str] = None, verbosity: Optional[str] = None) -> str:
        """Explicit level, then ``LOG_LEVEL``, then the verbosity preset."""
        level = level or os.getenv("LOG_LEVEL")
        if level:
            return level.upper()
        return get_log_level_from_verbosity(verbosity or os.getenv("LOG_VERBOSITY", LogVerbosity.NORMAL.value))

    @classmethod
    def build_config(
        cls,
        level: Optional[str] = None,
        verbosity: Optional[str] = None,
        log_format: Optional[str] = None
    ) -> Dict[str, Any]:
        """Build a ``dictConfig`` mapping; arguments override the environment."""
        root_level = cls.resolve_level(level, verbosity)
        quiet_level = "DEBUG" if root_level == "DEBUG" else "WARNING"

        loggers = {module: _module_logger(quiet_level) for module in cls.DEFAULT_QUIET_MODULES}
        loggers.update({module: _module_logger("ERROR") for module in cls.ERROR_ONLY_MODULES})
        loggers[cls.AUDIT_MODULE] = _module_logger("INFO")

        return {
            "version": 1,
            "disable_existing_loggers": False,
            "formatters": {
                "default": {
                    "format": _format_string(log_format or os.getenv("LOG_FORMAT", LogFormat.SIMPLE.value)),
                    "datefmt": "%Y-%m-%d %H:%M:%S",
                },
            },
            "handlers": {
                "console": {
                    "class": "logging.StreamHandler",
                    # The audit logger bypasses the root level, so the handler stays open
                    "level": "DEBUG",
                    "formatter": "default",
                    "stream": "ext://sys.stdout",
                },
            },
            "root": {"level": root_level, "handlers": ["console"]},
            "loggers": loggers,
        }

    @classmethod
    def configure(cls, **overrides: Optional[str]) -> None:
        config = cls.build_config(**overrides)
        logging.config.dictConfig(config)
        logging.getLogger(__name__).debug(f"Logging configured: level={config['root']['level']}")

    @classmethod
    def set_module_level(cls, module_name: str, level: str) -> None:
        logging.getLogger(module_name).setLevel(getattr(logging, level.upper()))


def setup_logging(**overrides: Optional[str]) -> None:
    """Configure logging once at application startup.

    Reads ``LOG_LEVEL``, ``LOG_VERBOSITY`` and ``LOG_FORMAT``; keyword
    arguments ``level``, ``verbosity`` and ``log_format`` take precedence.
    """
    LoggingConfig.configure(**overrides)
