"""Pydantic configuration schema for YAML settings."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field, ValidationError


class ScoringConfig(BaseModel):
    recruiter: dict[str, float] | None = None
    account_manager: dict[str, float] | None = None
    recruitment_manager: dict[str, Any] | None = None


class WorkflowConfig(BaseModel):
    max_active_roles: int | None = Field(default=None, ge=1)
    min_cv_match_percent: float | None = Field(default=None, ge=0, le=100)


class NotificationConfig(BaseModel):
    webhook_url: str | None = None
    api_key: str | None = None
    retries: int | None = Field(default=None, ge=1)


class AppConfig(BaseModel):
    scoring: ScoringConfig = Field(default_factory=ScoringConfig)
    workflow: WorkflowConfig = Field(default_factory=WorkflowConfig)
    notifications: NotificationConfig = Field(default_factory=NotificationConfig)

    def to_settings(self) -> dict[str, Any]:
        settings: dict[str, Any] = {}
        scoring = self.scoring.model_dump(exclude_none=True)
        if scoring:
            settings["scoring"] = scoring
        workflow = self.workflow.model_dump(exclude_none=True)
        if workflow:
            settings["workflow"] = workflow
        notifications = self.notifications.model_dump(exclude_none=True)
        if notifications:
            settings["notifications"] = notifications
        return settings


def load_config(raw: Any) -> AppConfig:
    if not isinstance(raw, dict):
        raise ValidationError.from_exception_data(
            "AppConfig",
            [{"type": "dict_type", "loc": ("config",), "input": raw}],
        )
    return AppConfig.model_validate(raw)
