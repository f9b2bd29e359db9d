"""Batch scoring pipeline over JSONL aggregate records."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Literal

import pendulum
import structlog
from pydantic import BaseModel, ConfigDict, ValidationError

from . import __version__
from .core.engine import ScoringEngine
from .core.scoring import cv_quality_label
from .schemas import (
    AccountManagerAggregates,
    RecruiterAggregates,
    RecruitmentManagerAggregates,
)

AGGREGATE_MODELS: dict[str, type[BaseModel]] = {
    "recruiter": RecruiterAggregates,
    "account_manager": AccountManagerAggregates,
    "recruitment_manager": RecruitmentManagerAggregates,
}


class ScoreRequest(BaseModel):
    """One line of batch input."""

    person_id: str | int
    role_type: Literal["recruiter", "account_manager", "recruitment_manager"]
    aggregates: dict[str, Any]

    model_config = ConfigDict(extra="forbid")


class ScoreInputError(ValueError):
    """Raised when batch input contains invalid records."""

    def __init__(self, errors: list[str], partial: list[tuple[ScoreRequest, BaseModel]]):
        super().__init__("Score input loading failed")
        self.errors = errors
        self.partial = partial

    def __str__(self) -> str:  # pragma: no cover - trivial
        return f"Score input loading failed: {self.errors}"


class ScoreInputLoader:
    """Load and validate score requests from a JSONL file."""

    def load(self, path: Path) -> list[tuple[ScoreRequest, BaseModel]]:
        requests: list[tuple[ScoreRequest, BaseModel]] = []
        errors: list[str] = []
        with path.open("r", encoding="utf-8") as handle:
            for idx, line in enumerate(handle, start=1):
                raw = line.strip()
                if not raw:
                    continue
                try:
                    record = json.loads(raw)
                except json.JSONDecodeError as exc:
                    errors.append(f"line {idx}: invalid JSON ({exc})")
                    continue
                try:
                    request = ScoreRequest.model_validate(record)
                    model = AGGREGATE_MODELS[request.role_type]
                    aggregates = model.model_validate(request.aggregates)
                except ValidationError as exc:
                    errors.append(f"line {idx}: {exc.errors(include_url=False)}")
                    continue
                requests.append((request, aggregates))
        if errors:
            raise ScoreInputError(errors, requests)
        return requests


class OutputWriter:
    """Persist scoring results."""

    def write(self, path: Path, payload: dict | list[dict]) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(
            json.dumps(payload, ensure_ascii=False, indent=2),
            encoding="utf-8",
        )


class AuditLogger:
    """Append-only audit logger writing JSON lines."""

    def __init__(self, path: Path):
        self._path = path
        self._path.parent.mkdir(parents=True, exist_ok=True)

    def append(self, record: dict) -> None:
        with self._path.open("a", encoding="utf-8") as handle:
            handle.write(json.dumps(record, ensure_ascii=False))
            handle.write("\n")


class ScoringPipeline:
    """Load aggregate records, score each one and write the results."""

    def __init__(
        self,
        *,
        engine: ScoringEngine,
        loader: ScoreInputLoader | None = None,
        writer: OutputWriter | None = None,
    ) -> None:
        self._engine = engine
        self._loader = loader or ScoreInputLoader()
        self._writer = writer or OutputWriter()
        self._logger = structlog.get_logger(__name__)

    def run(
        self,
        *,
        input_path: Path,
        output_path: Path,
        audit_logger: AuditLogger | None = None,
    ) -> list[dict]:
        load_errors: list[str] = []
        try:
            requests = self._loader.load(input_path)
        except ScoreInputError as exc:
            requests = exc.partial
            load_errors.extend(exc.errors)
            self._logger.warning("pipeline.partial_load", errors=exc.errors)

        results: list[dict] = []
        for request, aggregates in requests:
            outcome = self._engine.score(request.role_type, aggregates, person_id=request.person_id)
            entry: dict[str, Any] = {
                "person_id": request.person_id,
                "role_type": request.role_type,
                **outcome.to_dict(),
            }
            avg_cv_quality = getattr(aggregates, "avg_cv_quality", None)
            if avg_cv_quality is not None:
                entry["cv_quality_label"] = cv_quality_label(avg_cv_quality)
            results.append(entry)

            if audit_logger:
                audit_logger.append(
                    {
                        **entry,
                        "aggregates": aggregates.model_dump(mode="json"),
                    }
                )

            self._logger.info(
                "pipeline.result",
                person_id=request.person_id,
                role_type=request.role_type,
                score=outcome.score,
                label=outcome.label,
            )

        metadata = {
            "record_count": len(requests),
            "errors": load_errors,
            "timestamp": pendulum.now("UTC").to_iso8601_string(),
            "app_version": __version__,
        }
        self._writer.write(output_path, {"metadata": metadata, "results": results})
        return results


__all__ = [
    "AuditLogger",
    "OutputWriter",
    "ScoreInputError",
    "ScoreInputLoader",
    "ScoreRequest",
    "ScoringPipeline",
]
