from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from functools import lru_cache
from pathlib import Path
from threading import Lock
from typing import Optional

from pydantic import ValidationError

from app.schemas import StateSnapshot
from models.state import BaselineState
from settings import get_settings

logger = logging.getLogger(__name__)


def snapshot_from_state(state: BaselineState, saved_at: Optional[datetime] = None) -> StateSnapshot:
    return StateSnapshot(
        day_baseline=state.day_baseline,
        night_baseline=state.night_baseline,
        aq_high_streak=state.high_deviation_streak,
        saved_at=saved_at or datetime.now(timezone.utc),
    )


def state_from_snapshot(snapshot: Optional[StateSnapshot]) -> BaselineState:
    if snapshot is None:
        return BaselineState()
    return BaselineState(
        day_baseline=snapshot.day_baseline,
        night_baseline=snapshot.night_baseline,
        high_deviation_streak=snapshot.aq_high_streak,
        last_persisted_at=snapshot.saved_at,
    )


class AdaptiveStateStore:
    """JSON snapshot file holding baselines and the escalation streak."""

    def __init__(self, path: Optional[Path] = None) -> None:
        self.path = path
        self._lock = Lock()
        if path:
            path.parent.mkdir(parents=True, exist_ok=True)

    def load(self) -> Optional[StateSnapshot]:
        """Read the last checkpoint; ``None`` means cold start."""
        if not self.path:
            return None
        if not self.path.exists():
            logger.info(
                "No adaptive state found; starting cold",
                extra={"state_path": str(self.path)},
            )
            return None

        try:
            raw = self.path.read_text(encoding="utf-8")
            snapshot = StateSnapshot.model_validate(json.loads(raw))
        except (OSError, json.JSONDecodeError, ValidationError) as exc:
            logger.warning(
                "Failed to load adaptive state; starting cold",
                extra={"state_path": str(self.path), "reason": exc.__class__.__name__},
            )
            return None

        logger.info(
            "Loaded adaptive state",
            extra={"state_path": str(self.path), "streak": snapshot.aq_high_streak},
        )
        return snapshot

    def save(self, snapshot: StateSnapshot) -> None:
        """Write ``snapshot`` atomically; raises ``OSError`` on failure."""
        if not self.path:
            return
        payload = json.dumps(snapshot.model_dump(mode="json", by_alias=True), indent=2)
        with self._lock:
            tmp_path = self.path.with_suffix(self.path.suffix + ".tmp")
            tmp_path.write_text(payload, encoding="utf-8")
            tmp_path.replace(self.path)


@lru_cache
def build_default_state_store(path: Optional[str] = None) -> AdaptiveStateStore:
    settings = get_settings()
    state_path = settings.state_path if path is None else path
    return AdaptiveStateStore(path=Path(state_path) if state_path else None)
