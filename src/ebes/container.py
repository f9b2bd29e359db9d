"""Dependency injection container for the scoring and workflow services."""

from __future__ import annotations

from dependency_injector import containers, providers

from .activity import ActivityRecorder
from .core import (
    AccountManagerScorer,
    ActivityAggregator,
    RecruiterScorer,
    RecruitmentManagerScorer,
    ScoringEngine,
)
from .core.scorers.account_manager import AccountManagerScoringConfig
from .core.scorers.recruiter import RecruiterScoringConfig
from .core.scorers.recruitment_manager import RecruitmentManagerScoringConfig
from .history import ScoreHistoryRecorder
from .ledger import AssociationLedger
from .notifications import (
    InMemoryNotificationSink,
    NotificationDispatcher,
    WebhookNotificationSink,
)
from .pipeline import ScoringPipeline
from .roles import RoleService
from .service import ScoreService
from .store import InMemoryStore
from .workflow import DropoutWorkflow

DEFAULT_SETTINGS: dict = {
    "workflow": {"max_active_roles": 30, "min_cv_match_percent": 85.0},
    "notifications": {"retries": 3},
}


class EbesContainer(containers.DeclarativeContainer):
    """Dependency-injector container definition."""

    config = providers.Configuration(default=DEFAULT_SETTINGS)

    store = providers.Singleton(InMemoryStore)

    notification_sink = providers.Singleton(InMemoryNotificationSink)
    notifier = providers.Singleton(
        NotificationDispatcher,
        sink=notification_sink,
        retries=config.notifications.retries.as_int(),
    )

    recruiter_scorer = providers.Singleton(RecruiterScorer)
    account_manager_scorer = providers.Singleton(AccountManagerScorer)
    recruitment_manager_scorer = providers.Singleton(RecruitmentManagerScorer)

    scorers = providers.List(
        recruiter_scorer,
        account_manager_scorer,
        recruitment_manager_scorer,
    )

    scoring_engine = providers.Singleton(ScoringEngine, scorers=scorers)

    ledger = providers.Singleton(AssociationLedger, store=store)

    roles = providers.Singleton(
        RoleService,
        store=store,
        ledger=ledger,
        notifier=notifier,
        max_active_roles=config.workflow.max_active_roles.as_int(),
    )

    activity = providers.Singleton(
        ActivityRecorder,
        store=store,
        ledger=ledger,
        roles=roles,
        notifier=notifier,
        min_cv_match_percent=config.workflow.min_cv_match_percent.as_float(),
    )

    workflow = providers.Singleton(
        DropoutWorkflow,
        store=store,
        roles=roles,
        activity=activity,
        notifier=notifier,
    )

    aggregator = providers.Singleton(ActivityAggregator, store=store)
    history = providers.Singleton(ScoreHistoryRecorder, store=store)

    score_service = providers.Singleton(
        ScoreService,
        aggregator=aggregator,
        engine=scoring_engine,
        history=history,
    )

    pipeline = providers.Factory(ScoringPipeline, engine=scoring_engine)


def _merge_settings(base: dict, overrides: dict) -> dict:
    merged = dict(base)
    for key, value in overrides.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _merge_settings(merged[key], value)
        else:
            merged[key] = value
    return merged


def create_container(*, settings: dict | None = None) -> EbesContainer:
    """Instantiate container with optional overrides."""

    container = EbesContainer()
    settings = settings if isinstance(settings, dict) else {}
    container.config.from_dict(_merge_settings(DEFAULT_SETTINGS, settings))

    if not settings:
        return container

    scoring_settings = settings.get("scoring", {})

    if "recruiter" in scoring_settings:
        recruiter_config = RecruiterScoringConfig(**scoring_settings["recruiter"])
        container.recruiter_scorer.override(
            providers.Singleton(RecruiterScorer, config=recruiter_config)
        )

    if "account_manager" in scoring_settings:
        am_config = AccountManagerScoringConfig(**scoring_settings["account_manager"])
        container.account_manager_scorer.override(
            providers.Singleton(AccountManagerScorer, config=am_config)
        )

    if "recruitment_manager" in scoring_settings:
        rm_config = RecruitmentManagerScoringConfig(**scoring_settings["recruitment_manager"])
        container.recruitment_manager_scorer.override(
            providers.Singleton(RecruitmentManagerScorer, config=rm_config)
        )

    notification_settings = settings.get("notifications", {})
    if notification_settings.get("webhook_url"):
        container.notification_sink.override(
            providers.Singleton(
                WebhookNotificationSink,
                notification_settings["webhook_url"],
                notification_settings.get("api_key"),
            )
        )

    return container
