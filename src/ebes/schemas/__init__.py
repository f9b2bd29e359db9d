"""Pydantic schema definitions for entities, aggregates and configuration."""

from __future__ import annotations

from .aggregates import (
    AccountManagerAggregates,
    RecruiterAggregates,
    RecruitmentManagerAggregates,
)
from .entities import (
    AcknowledgedState,
    ActivityEntry,
    Candidate,
    CandidateRoleAssociation,
    CompletedState,
    ComponentTotals,
    DropoutRequest,
    Notification,
    PendingState,
    RmEbesHistory,
    Role,
    RoleAssignment,
    User,
)

__all__ = [
    "AccountManagerAggregates",
    "RecruiterAggregates",
    "RecruitmentManagerAggregates",
    "AcknowledgedState",
    "ActivityEntry",
    "Candidate",
    "CandidateRoleAssociation",
    "CompletedState",
    "ComponentTotals",
    "DropoutRequest",
    "Notification",
    "PendingState",
    "RmEbesHistory",
    "Role",
    "RoleAssignment",
    "User",
]
