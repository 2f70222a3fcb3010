from __future__ import annotations

from datetime import timedelta
from typing import Iterable

from datastore.config_store import build_default_config_store
from datastore.state_store import build_default_state_store
from services.monitor import build_default_monitor
from settings import get_settings


def _clear_caches(caches: Iterable) -> None:
    for cache in caches:
        cache.cache_clear()


def test_environment_overrides_apply(monkeypatch, tmp_path) -> None:
    state_path = tmp_path / "state.json"
    config_path = tmp_path / "config.json"

    monkeypatch.setenv("MONITOR_STATE_PATH", str(state_path))
    monkeypatch.setenv("MONITOR_CONFIG_PATH", str(config_path))
    monkeypatch.setenv("DEVICE_ONLINE_THRESHOLD_SECONDS", "25")
    monkeypatch.setenv("CHECKPOINT_INTERVAL_SECONDS", "60")
    monkeypatch.setenv("HISTORY_CAPACITY", "50")
    monkeypatch.setenv("MONITOR_DEFAULT_ALTITUDE_M", "0")
    monkeypatch.setenv("MONITOR_ENVIRONMENT_PROFILE", "greenhouse")

    caches = (
        get_settings,
        build_default_state_store,
        build_default_config_store,
        build_default_monitor,
    )
    _clear_caches(caches)

    monitor = build_default_monitor()

    try:
        assert monitor.state_store.path == state_path
        assert monitor.config_store.path == config_path
        assert monitor.online_threshold == timedelta(seconds=25)
        assert monitor.checkpoint_interval == timedelta(seconds=60)
        assert monitor.state.history.capacity == 50
        assert monitor.get_config().altitude_m == 0.0
        assert monitor.get_config().environment_profile == "greenhouse"
    finally:
        monitor.shutdown()
        _clear_caches(caches)


def test_invalid_values_fall_back_to_defaults(monkeypatch) -> None:
    monkeypatch.setenv("HISTORY_CAPACITY", "-3")
    monkeypatch.setenv("DEVICE_ONLINE_THRESHOLD_SECONDS", "soon")
    monkeypatch.setenv("MONITOR_TZ_OFFSET_MINUTES", "")
    monkeypatch.setenv("LOG_LEVEL", " debug ")
    get_settings.cache_clear()

    try:
        settings = get_settings()
        assert settings.history_capacity == 500
        assert settings.online_threshold_seconds == 90.0
        assert settings.timezone_offset_minutes == 345
        assert settings.log_level == "DEBUG"
    finally:
        get_settings.cache_clear()


def test_blank_state_path_disables_persistence(monkeypatch) -> None:
    monkeypatch.setenv("MONITOR_STATE_PATH", "  ")
    get_settings.cache_clear()
    build_default_state_store.cache_clear()

    try:
        assert build_default_state_store().path is None
    finally:
        build_default_state_store.cache_clear()
        get_settings.cache_clear()
