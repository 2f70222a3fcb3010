"""Service-level orchestration: ordered ingestion, status, config and checkpoints."""

from __future__ import annotations

import logging
from concurrent.futures import Future, ThreadPoolExecutor
from datetime import datetime, timedelta, timezone
from functools import lru_cache
from threading import Lock
from typing import Any, Callable, Mapping, Optional

from app.schemas import DeviceConfig, DeviceStatus, EnrichedReading, StateSnapshot
from datastore.config_store import ConfigStore, build_default_config_store
from datastore.state_store import (
    AdaptiveStateStore,
    build_default_state_store,
    snapshot_from_state,
    state_from_snapshot,
)
from services.classifier import DeviceState, ReadingClassifier, build_default_classifier
from services.export import DEFAULT_EXPORT_COUNT, readings_to_csv
from settings import get_settings
from storage.history import RecentHistory

logger = logging.getLogger(__name__)

DEFAULT_CHECKPOINT_INTERVAL = timedelta(minutes=5)
DEFAULT_ONLINE_THRESHOLD = timedelta(seconds=90)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class MonitorService:
    """Owns one device's classification path and its background checkpoints."""

    def __init__(
        self,
        classifier: ReadingClassifier,
        state_store: AdaptiveStateStore,
        config_store: ConfigStore,
        state: Optional[DeviceState] = None,
        checkpoint_interval: timedelta = DEFAULT_CHECKPOINT_INTERVAL,
        online_threshold: timedelta = DEFAULT_ONLINE_THRESHOLD,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self.classifier = classifier
        self.state_store = state_store
        self.config_store = config_store
        self.state = state or DeviceState(baseline=state_from_snapshot(state_store.load()))
        self.checkpoint_interval = checkpoint_interval
        self.online_threshold = online_threshold
        self._clock = clock
        self._state_lock = Lock()
        self._last_checkpoint_attempt = self.state.baseline.last_persisted_at or clock()
        self.executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="checkpoint")

    def ingest(self, payload: Mapping[str, Any]) -> EnrichedReading:
        """Classify one reading in arrival order and schedule a checkpoint if due."""
        if not isinstance(payload, Mapping):
            raise ValueError("Reading payload must be a JSON object.")

        config = self.config_store.get()
        with self._state_lock:
            received_at = self._clock()
            enriched = self.classifier.classify(payload, config, self.state, received_at)
            snapshot = self._snapshot_if_due(received_at)

        if snapshot is not None:
            self._submit_checkpoint(snapshot)
        return enriched

    def recent(self, limit: Optional[int] = None) -> list[EnrichedReading]:
        return self.state.history.snapshot(limit)

    def device_status(self, now: Optional[datetime] = None) -> DeviceStatus:
        latest = self.state.history.latest()
        if latest is None:
            return DeviceStatus(last_seen=None, online=False)
        now = now or self._clock()
        online = (now - latest.received_at) < self.online_threshold
        return DeviceStatus(last_seen=latest.received_at, online=online)

    def get_config(self) -> DeviceConfig:
        return self.config_store.get()

    def update_config(self, changes: Mapping[str, Any]) -> DeviceConfig:
        return self.config_store.update(changes)

    def export_csv(self, count: int = DEFAULT_EXPORT_COUNT) -> str:
        readings = self.state.history.snapshot(max(count, 0))
        return readings_to_csv(readings, self.classifier.resolver.tz)

    def checkpoint(self) -> Future[None]:
        """Snapshot state now, regardless of the interval, and write it out of band."""
        with self._state_lock:
            snapshot = self._take_snapshot(self._clock())
        return self._submit_checkpoint(snapshot)

    def shutdown(self) -> None:
        """Flush a final checkpoint and stop the writer."""
        try:
            self.checkpoint().result()
        finally:
            self.executor.shutdown(wait=True)

    def _snapshot_if_due(self, now: datetime) -> Optional[StateSnapshot]:
        if now - self._last_checkpoint_attempt < self.checkpoint_interval:
            return None
        return self._take_snapshot(now)

    def _take_snapshot(self, now: datetime) -> StateSnapshot:
        self._last_checkpoint_attempt = now
        return snapshot_from_state(self.state.baseline, saved_at=now)

    def _submit_checkpoint(self, snapshot: StateSnapshot) -> Future[None]:
        future = self.executor.submit(self._write_checkpoint, snapshot)
        future.add_done_callback(self._report_checkpoint_error)
        return future

    def _report_checkpoint_error(self, future: Future[None]) -> None:
        if future.cancelled():
            return
        exc = future.exception()
        if exc is None:
            return
        logger.error(
            "Checkpoint writer crashed",
            exc_info=exc,
            extra={"device_id": self.state.device_id, "state_path": str(self.state_store.path)},
        )

    def _write_checkpoint(self, snapshot: StateSnapshot) -> None:
        try:
            self.state_store.save(snapshot)
        except OSError as exc:
            logger.warning(
                "Checkpoint write failed; keeping in-memory state",
                extra={
                    "device_id": self.state.device_id,
                    "state_path": str(self.state_store.path),
                    "reason": str(exc),
                },
            )
            return

        with self._state_lock:
            self.state.baseline.last_persisted_at = snapshot.saved_at
        logger.info(
            "Checkpoint written",
            extra={"device_id": self.state.device_id, "state_path": str(self.state_store.path)},
        )


@lru_cache
def build_default_monitor() -> MonitorService:
    """Factory that wires the monitor from process settings."""
    settings = get_settings()
    state_store = build_default_state_store()
    state = DeviceState(
        baseline=state_from_snapshot(state_store.load()),
        history=RecentHistory(settings.history_capacity),
    )
    return MonitorService(
        classifier=build_default_classifier(),
        state_store=state_store,
        config_store=build_default_config_store(),
        state=state,
        checkpoint_interval=timedelta(seconds=settings.checkpoint_interval_seconds),
        online_threshold=timedelta(seconds=settings.online_threshold_seconds),
    )
