"""Daily score snapshots for recruitment managers."""

from __future__ import annotations

from datetime import date
from typing import Any, Callable

import pendulum
import structlog

from .core.scoring import ScoreResult
from .schemas import ComponentTotals, RmEbesHistory
from .store import Store


class ScoreHistoryRecorder:
    """Upserts at most one snapshot per manager per day."""

    def __init__(
        self,
        store: Store,
        *,
        today_provider: Callable[[], Any] | None = None,
        now_provider: Callable[[], Any] | None = None,
    ) -> None:
        self._store = store
        self._today = today_provider or (lambda: pendulum.today("UTC").date())
        self._now = now_provider or (lambda: pendulum.now("UTC"))
        self._logger = structlog.get_logger(__name__)

    def record(
        self,
        rm_id: int,
        result: ScoreResult,
        totals: ComponentTotals | dict[str, int] | None = None,
        *,
        on: date | None = None,
    ) -> RmEbesHistory:
        record = RmEbesHistory(
            rm_user_id=rm_id,
            recorded_at=on or self._today(),
            score=result.score,
            label=result.label,
            component_totals=ComponentTotals.model_validate(totals or {}),
            updated_at=self._now(),
        )
        stored = self._store.upsert_history(record)
        self._logger.info(
            "history.recorded",
            rm_id=rm_id,
            recorded_at=str(stored.recorded_at),
            score=stored.score,
        )
        return stored

    def history(self, rm_id: int, *, days: int = 30) -> list[RmEbesHistory]:
        """Most recent ``days`` snapshots, oldest first."""
        records = self._store.list_history(rm_id)
        return records[-days:] if days > 0 else []


__all__ = ["ScoreHistoryRecorder"]
