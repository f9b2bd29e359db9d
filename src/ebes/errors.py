"""Error taxonomy for workflow and ledger operations.

Every error is a logical failure: callers map them to user-facing messages and
do not retry. Scoring functions never raise these for well-typed input.
"""

from __future__ import annotations

from typing import Any


class EbesError(Exception):
    """Base class carrying a stable error code and structured context."""

    code = "error"

    def __init__(self, message: str, **context: Any) -> None:
        super().__init__(message)
        self.message = message
        self.context = context

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {"error": self.message, "code": self.code}
        if self.context:
            payload["context"] = self.context
        return payload


class NotFoundError(EbesError):
    """A referenced role, request, candidate or user does not exist."""

    code = "not_found"

    @classmethod
    def for_entity(cls, entity: str, entity_id: Any) -> "NotFoundError":
        return cls(f"{entity} {entity_id!r} not found", entity=entity, entity_id=entity_id)


class ForbiddenError(EbesError):
    """The caller is not the actor named on the entity for this operation."""

    code = "forbidden"


class InvalidStateTransitionError(EbesError):
    """The entity is not in the state the requested transition starts from."""

    code = "invalid_state_transition"


class InputValidationError(EbesError):
    """Malformed input rejected before persistence is touched."""

    code = "validation_error"


class ActiveRoleLimitError(InputValidationError):
    """An account manager already owns the maximum number of active roles."""

    code = "active_role_limit"


__all__ = [
    "EbesError",
    "NotFoundError",
    "ForbiddenError",
    "InvalidStateTransitionError",
    "InputValidationError",
    "ActiveRoleLimitError",
]
