"""Typed records for roles, candidates, the association ledger and dropout requests."""

from __future__ import annotations

from datetime import date, datetime
from typing import Annotated, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, model_validator

from ..errors import InvalidStateTransitionError

RoleStatus = Literal["active", "deal", "lost", "on_hold", "cancelled", "no_answer", "dropout"]
UserRole = Literal["recruiter", "account_manager", "recruitment_manager", "admin"]
EntryType = Literal["submission", "interview", "deal", "dropout"]
SubmissionTiming = Literal["6h", "24h", "after_24h"]
DropoutDecision = Literal["accept", "ignore"]
NotificationType = Literal["dropout", "deal", "system", "role"]

ROLE_STATUSES: tuple[str, ...] = (
    "active",
    "deal",
    "lost",
    "on_hold",
    "cancelled",
    "no_answer",
    "dropout",
)
DROPOUT_DECISIONS: tuple[str, ...] = ("accept", "ignore")


class User(BaseModel):
    """Platform user with a single role type."""

    id: int
    name: str = ""
    role: UserRole
    team_ids: tuple[int, ...] = ()
    is_active: bool = True

    model_config = ConfigDict(frozen=True, extra="forbid")


class Role(BaseModel):
    """Recruiting requisition owned by an account manager."""

    id: int
    status: RoleStatus = "active"
    account_manager_id: int
    team_id: int | None = None
    client_id: int | None = None
    title: str = ""
    created_at: datetime | None = None
    updated_at: datetime | None = None

    model_config = ConfigDict(frozen=True, extra="forbid")

    @property
    def is_active(self) -> bool:
        return self.status == "active"


class Candidate(BaseModel):
    """Candidate profile; ``is_active`` is the global discard flag."""

    id: int
    name: str = ""
    created_by_user_id: int | None = None
    is_active: bool = True

    model_config = ConfigDict(frozen=True, extra="forbid")


class RoleAssignment(BaseModel):
    """Formal assignment of a recruiter to a role."""

    role_id: int
    recruiter_user_id: int

    model_config = ConfigDict(frozen=True, extra="forbid")


class CandidateRoleAssociation(BaseModel):
    """A candidate's engagement with one role, tracked by the ledger."""

    candidate_id: int
    role_id: int
    recruiter_user_id: int
    is_discarded: bool = False
    is_lost_role: bool = False
    is_role_closed: bool = False
    discarded_reason: str | None = None
    discarded_at: datetime | None = None
    submitted_on: date | None = None
    updated_at: datetime | None = None

    model_config = ConfigDict(frozen=True, extra="forbid")

    @model_validator(mode="after")
    def _discard_flags_consistent(self) -> "CandidateRoleAssociation":
        if self.is_lost_role and not self.is_discarded:
            raise ValueError("a lost-role association must also be discarded")
        if self.is_role_closed and (self.is_lost_role or not self.is_discarded):
            raise ValueError("a role-closed association is discarded and not lost")
        return self

    @property
    def key(self) -> tuple[int, int]:
        return (self.candidate_id, self.role_id)

    def discard(
        self,
        *,
        reason: str | None,
        at: datetime,
        lost_role: bool = False,
        role_closed: bool = False,
    ) -> "CandidateRoleAssociation":
        """Mark discarded; role-closed discards carry no recruiter penalty."""
        return self.model_copy(
            update={
                "is_discarded": True,
                "is_lost_role": lost_role,
                "is_role_closed": role_closed,
                "discarded_reason": reason,
                "discarded_at": at,
                "updated_at": at,
            }
        )

    def restore(self, *, at: datetime) -> "CandidateRoleAssociation":
        return self.model_copy(
            update={
                "is_discarded": False,
                "is_lost_role": False,
                "is_role_closed": False,
                "discarded_reason": None,
                "discarded_at": None,
                "updated_at": at,
            }
        )


class ActivityEntry(BaseModel):
    """One logged recruiter activity row."""

    id: int
    recruiter_user_id: int
    role_id: int | None = None
    client_id: int | None = None
    team_id: int | None = None
    entry_type: EntryType
    submission_timing: SubmissionTiming | None = None
    interview_level: int | None = Field(default=None, ge=1, le=3)
    candidate_id: int | None = None
    cv_match_percent: float | None = Field(default=None, ge=0, le=100)
    occurred_on: date

    model_config = ConfigDict(frozen=True, extra="forbid")

    @model_validator(mode="after")
    def _fields_match_entry_type(self) -> "ActivityEntry":
        if self.entry_type == "submission":
            if self.submission_timing is None:
                raise ValueError("submission entries require submission_timing")
            if self.cv_match_percent is None:
                raise ValueError("submission entries require cv_match_percent")
        elif self.submission_timing is not None or self.cv_match_percent is not None:
            raise ValueError("only submission entries carry timing and CV match")
        if self.entry_type == "interview" and self.interview_level is None:
            raise ValueError("interview entries require interview_level")
        if self.entry_type != "interview" and self.interview_level is not None:
            raise ValueError("only interview entries carry interview_level")
        return self


class PendingState(BaseModel):
    """Waiting for the recruitment manager's acknowledgment."""

    kind: Literal["pending"] = "pending"

    model_config = ConfigDict(frozen=True, extra="forbid")


class AcknowledgedState(BaseModel):
    """Acknowledged by the recruitment manager, waiting for the account manager."""

    kind: Literal["acknowledged"] = "acknowledged"
    acknowledged_at: datetime
    rm_notes: str = ""

    model_config = ConfigDict(frozen=True, extra="forbid")


class CompletedState(BaseModel):
    """Decided by the account manager. Terminal."""

    kind: Literal["completed"] = "completed"
    acknowledged_at: datetime
    rm_notes: str = ""
    decision: DropoutDecision
    requested_role_status: RoleStatus | None = None
    resolved_role_status: RoleStatus
    decided_at: datetime

    model_config = ConfigDict(frozen=True, extra="forbid")

    @model_validator(mode="after")
    def _resolved_status_is_actionable(self) -> "CompletedState":
        if self.resolved_role_status == "dropout":
            raise ValueError("a dropout decision cannot leave the role in 'dropout'")
        return self


DropoutState = Annotated[
    Union[PendingState, AcknowledgedState, CompletedState],
    Field(discriminator="kind"),
]
DropoutStateKind = Literal["pending", "acknowledged", "completed"]


class DropoutRequest(BaseModel):
    """Dropout approval request; ``state`` is the single source of truth."""

    id: int
    role_id: int
    recruiter_user_id: int
    rm_user_id: int
    am_user_id: int
    dropout_reason: str = "Not specified"
    created_at: datetime
    state: DropoutState = Field(default_factory=PendingState)

    model_config = ConfigDict(frozen=True, extra="forbid")

    @property
    def kind(self) -> DropoutStateKind:
        return self.state.kind

    @property
    def rm_status(self) -> Literal["pending", "acknowledged"]:
        return "pending" if isinstance(self.state, PendingState) else "acknowledged"

    @property
    def final_status(self) -> Literal["pending", "completed"]:
        return "completed" if isinstance(self.state, CompletedState) else "pending"

    @property
    def am_decision(self) -> DropoutDecision | None:
        return self.state.decision if isinstance(self.state, CompletedState) else None

    @property
    def am_new_role_status(self) -> RoleStatus | None:
        if isinstance(self.state, CompletedState):
            return self.state.requested_role_status
        return None

    @property
    def rm_acknowledged_at(self) -> datetime | None:
        return getattr(self.state, "acknowledged_at", None)

    @property
    def am_decided_at(self) -> datetime | None:
        return getattr(self.state, "decided_at", None)

    @property
    def is_completed(self) -> bool:
        return isinstance(self.state, CompletedState)

    def acknowledge(self, *, at: datetime, notes: str | None = None) -> "DropoutRequest":
        if not isinstance(self.state, PendingState):
            raise InvalidStateTransitionError(
                f"Dropout request {self.id} is {self.kind}, not pending",
                request_id=self.id,
                state=self.kind,
            )
        state = AcknowledgedState(acknowledged_at=at, rm_notes=notes or "")
        return self.model_copy(update={"state": state})

    def complete(
        self,
        *,
        decision: DropoutDecision,
        requested_role_status: RoleStatus | None,
        resolved_role_status: RoleStatus,
        at: datetime,
    ) -> "DropoutRequest":
        if not isinstance(self.state, AcknowledgedState):
            raise InvalidStateTransitionError(
                f"Dropout request {self.id} is {self.kind}, not acknowledged",
                request_id=self.id,
                state=self.kind,
            )
        state = CompletedState(
            acknowledged_at=self.state.acknowledged_at,
            rm_notes=self.state.rm_notes,
            decision=decision,
            requested_role_status=requested_role_status,
            resolved_role_status=resolved_role_status,
            decided_at=at,
        )
        return self.model_copy(update={"state": state})

    def to_record(self) -> dict:
        """Flat row view with the legacy column names."""
        return {
            "id": self.id,
            "role_id": self.role_id,
            "recruiter_user_id": self.recruiter_user_id,
            "rm_user_id": self.rm_user_id,
            "am_user_id": self.am_user_id,
            "dropout_reason": self.dropout_reason,
            "rm_status": self.rm_status,
            "rm_notes": getattr(self.state, "rm_notes", None),
            "rm_acknowledged_at": self.rm_acknowledged_at,
            "am_decision": self.am_decision,
            "am_new_role_status": self.am_new_role_status,
            "am_decided_at": self.am_decided_at,
            "final_status": self.final_status,
            "created_at": self.created_at,
        }


class ComponentTotals(BaseModel):
    """Team totals stored next to a recruitment manager's daily score."""

    total_roles: int = Field(default=0, ge=0)
    total_deals: int = Field(default=0, ge=0)
    total_interviews: int = Field(default=0, ge=0)
    total_dropouts: int = Field(default=0, ge=0)

    model_config = ConfigDict(frozen=True, extra="forbid")


class RmEbesHistory(BaseModel):
    """Daily score snapshot, unique per ``(rm_user_id, recorded_at)``."""

    rm_user_id: int
    recorded_at: date
    score: float
    label: str
    component_totals: ComponentTotals = Field(default_factory=ComponentTotals)
    updated_at: datetime | None = None

    model_config = ConfigDict(frozen=True, extra="forbid")

    @property
    def key(self) -> tuple[int, date]:
        return (self.rm_user_id, self.recorded_at)


class Notification(BaseModel):
    """Payload handed to the notification sink."""

    user_id: int
    type: NotificationType
    title: str
    message: str
    related_entity_type: str | None = "role"
    related_entity_id: int | None = None

    model_config = ConfigDict(frozen=True, extra="forbid")
