from __future__ import annotations

import json
import logging
from functools import lru_cache
from pathlib import Path
from threading import Lock
from typing import Any, Mapping, Optional

from pydantic import ValidationError

from app.schemas import DeviceConfig
from services.normalizer import as_finite
from settings import get_settings

logger = logging.getLogger(__name__)


class ConfigStore:
    """Device configuration with optional JSON-file persistence."""

    def __init__(self, defaults: DeviceConfig, path: Optional[Path] = None) -> None:
        self.path = path
        self._config = defaults.model_copy()
        self._lock = Lock()
        if path:
            path.parent.mkdir(parents=True, exist_ok=True)
            self._load_from_disk()

    def get(self) -> DeviceConfig:
        with self._lock:
            return self._config.model_copy()

    def update(self, changes: Mapping[str, Any]) -> DeviceConfig:
        """Apply recognised keys from ``changes`` and persist the result.

        ``altitude_m`` must be a finite number and ``environment`` a non-empty
        string; anything else is ignored.
        """
        updates: dict[str, Any] = {}
        altitude = changes.get("altitude_m")
        if isinstance(altitude, (int, float)):
            finite_altitude = as_finite(altitude)
            if finite_altitude is not None:
                updates["altitude_m"] = finite_altitude
        environment = changes.get("environment")
        if isinstance(environment, str) and environment.strip():
            updates["environment_profile"] = environment.strip()

        with self._lock:
            candidate = self._config.model_dump()
            candidate.update(updates)
            self._config = DeviceConfig.model_validate(candidate)
            self._persist()
            return self._config.model_copy()

    def _persist(self) -> None:
        if not self.path:
            return
        payload = self._config.model_dump(mode="json", by_alias=True)
        try:
            self.path.write_text(json.dumps(payload, indent=2), encoding="utf-8")
        except OSError as exc:
            logger.warning(
                "Failed to write config file",
                extra={"config_path": str(self.path), "reason": str(exc)},
            )
            return
        logger.info("Config updated", extra={"config_path": str(self.path)})

    def _load_from_disk(self) -> None:
        if not self.path or not self.path.exists():
            return

        try:
            raw = self.path.read_text(encoding="utf-8") or "{}"
            data = json.loads(raw)
            merged = self._config.model_dump(by_alias=True)
            if isinstance(data, dict):
                merged.update(data)
            self._config = DeviceConfig.model_validate(merged)
        except (OSError, json.JSONDecodeError, ValidationError) as exc:
            logger.warning(
                "Failed to load config file; using defaults",
                extra={"config_path": str(self.path), "reason": exc.__class__.__name__},
            )


@lru_cache
def build_default_config_store(path: Optional[str] = None) -> ConfigStore:
    settings = get_settings()
    config_path = settings.config_path if path is None else path
    defaults = DeviceConfig(
        altitude_m=settings.default_altitude_m,
        environment_profile=settings.environment_profile,
    )
    return ConfigStore(defaults=defaults, path=Path(config_path) if config_path else None)
