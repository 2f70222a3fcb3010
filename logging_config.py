from __future__ import annotations

import logging
import time
from enum import Enum
from logging.config import dictConfig
from typing import Any, Iterable, Mapping, Sequence

from settings import get_settings

_DEFAULT_EXTRA_KEYS = (
    "device_id",
    "daytime_source",
    "baseline_source",
    "mq_health",
    "streak",
    "state_path",
    "config_path",
    "reason",
    "raw_value",
)

# Single-node deployment; services pass their own device_id when they know it.
_DEFAULT_CONTEXT = {"device_id": "default"}

_configured = False


def _render_value(value: Any) -> str:
    if isinstance(value, Enum):
        return str(value.value)
    if isinstance(value, float):
        return f"{value:.2f}"
    return str(value)


class ContextualFormatter(logging.Formatter):
    """Appends sensor context (device, baseline, verdicts) as ``key=value`` pairs."""

    converter = time.gmtime

    def __init__(
        self,
        fmt: str | None = None,
        datefmt: str | None = None,
        style: str = "%",
        extra_keys: Iterable[str] | None = None,
        defaults: Mapping[str, Any] | None = None,
    ) -> None:
        super().__init__(fmt=fmt, datefmt=datefmt, style=style)
        self._extra_keys: Sequence[str] = tuple(extra_keys or _DEFAULT_EXTRA_KEYS)
        self._context_defaults = dict(_DEFAULT_CONTEXT if defaults is None else defaults)

    def format(self, record: logging.LogRecord) -> str:
        message = super().format(record)
        context_parts: list[str] = []
        for key in self._extra_keys:
            value = getattr(record, key, None)
            if value is None:
                value = self._context_defaults.get(key)
            if value is None:
                continue
            context_parts.append(f"{key}={_render_value(value)}")
        if context_parts:
            return f"{message} | {' '.join(context_parts)}"
        return message


def configure_logging(level: str | int | None = None) -> None:
    """Route all loggers through one stream handler with sensor context appended."""
    global _configured
    if _configured:
        return

    settings = get_settings()
    log_level = level if level is not None else settings.log_level

    dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "formatters": {
                "contextual": {
                    "()": "logging_config.ContextualFormatter",
                    "fmt": "%(asctime)sZ | %(levelname)s | %(name)s | %(message)s",
                    "datefmt": "%Y-%m-%dT%H:%M:%S",
                    "style": "%",
                    "extra_keys": list(_DEFAULT_EXTRA_KEYS),
                    "defaults": dict(_DEFAULT_CONTEXT),
                }
            },
            "handlers": {
                "default": {
                    "class": "logging.StreamHandler",
                    "level": log_level,
                    "formatter": "contextual",
                }
            },
            "root": {"handlers": ["default"], "level": log_level},
        }
    )

    _configured = True
