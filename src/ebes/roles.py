"""Role lifecycle: creation with admission control, status changes, assignments."""

from __future__ import annotations

from typing import Any, Callable

import pendulum
import structlog

from .errors import (
    ActiveRoleLimitError,
    ForbiddenError,
    InputValidationError,
    NotFoundError,
)
from .ledger import AssociationLedger
from .notifications import NotificationDispatcher
from .schemas import Notification, Role, RoleAssignment, User
from .schemas.entities import ROLE_STATUSES
from .store import Store

DEFAULT_MAX_ACTIVE_ROLES = 30


def validate_role_status(status: str | None, *, field: str = "status") -> str | None:
    if status is None:
        return None
    if status not in ROLE_STATUSES:
        raise InputValidationError(
            f"Unknown role status {status!r}",
            field=field,
            allowed=list(ROLE_STATUSES),
        )
    return status


def require_user(store: Store, user_id: int, role: str) -> User:
    """Return an active user of the given role type or raise."""
    user = store.get_user(user_id)
    if user is None or not user.is_active:
        raise NotFoundError.for_entity("user", user_id)
    if user.role != role:
        raise ForbiddenError(
            f"User {user_id} is not a {role.replace('_', ' ')}",
            user_id=user_id,
            required_role=role,
        )
    return user


class RoleService:
    """Creates roles and moves them between statuses."""

    def __init__(
        self,
        store: Store,
        ledger: AssociationLedger,
        notifier: NotificationDispatcher,
        *,
        max_active_roles: int = DEFAULT_MAX_ACTIVE_ROLES,
        now_provider: Callable[[], Any] | None = None,
    ) -> None:
        self._store = store
        self._ledger = ledger
        self._notifier = notifier
        self._max_active_roles = max_active_roles
        self._now = now_provider or (lambda: pendulum.now("UTC"))
        self._logger = structlog.get_logger(__name__)

    def create_role(
        self,
        am_id: int,
        *,
        team_id: int | None = None,
        client_id: int | None = None,
        title: str = "",
    ) -> Role:
        self._require_user(am_id, "account_manager")
        now = self._now()
        role = Role(
            id=self._store.next_role_id(),
            status="active",
            account_manager_id=am_id,
            team_id=team_id,
            client_id=client_id,
            title=title,
            created_at=now,
            updated_at=now,
        )
        if not self._store.insert_role_if_under_limit(role, self._max_active_roles):
            raise ActiveRoleLimitError(
                f"You have reached the maximum of {self._max_active_roles} active roles. "
                "Please update role statuses to continue.",
                account_manager_id=am_id,
                limit=self._max_active_roles,
            )

        self._logger.info("role.created", role_id=role.id, account_manager_id=am_id, team_id=team_id)
        return role

    def get_role(self, role_id: int) -> Role:
        role = self._store.get_role(role_id)
        if role is None:
            raise NotFoundError.for_entity("role", role_id)
        return role

    def change_status(
        self,
        role_id: int,
        status: str,
        *,
        actor_id: int | None = None,
        notify: bool = True,
    ) -> Role:
        """Set a role's status and apply the ledger consequences.

        ``actor_id`` scopes the change to the role's account manager; internal
        callers that already verified identity pass ``None``.
        """
        validate_role_status(status)
        with self._store.transaction():
            role = self.get_role(role_id)
            if actor_id is not None and role.account_manager_id != actor_id:
                raise ForbiddenError(
                    f"User {actor_id} does not manage role {role_id}",
                    role_id=role_id,
                    actor_id=actor_id,
                )
            previous = role.status
            updated = self._store.save_role(
                role.model_copy(update={"status": status, "updated_at": self._now()})
            )
            discarded = self._ledger.apply_role_status(role_id, status)

        self._logger.info(
            "role.status_changed",
            role_id=role_id,
            previous=previous,
            status=status,
            discarded_associations=discarded,
        )
        if notify and previous != status:
            for manager in self.team_recruitment_managers(updated.team_id):
                self._notifier.notify(
                    Notification(
                        user_id=manager.id,
                        type="role",
                        title="Role Status Updated",
                        message=f"Role {updated.title or updated.id} changed from {previous} to {status}.",
                        related_entity_id=role_id,
                    )
                )
        return updated

    def assign_recruiter(self, role_id: int, recruiter_id: int) -> RoleAssignment:
        self.get_role(role_id)
        self._require_user(recruiter_id, "recruiter")
        return self._store.add_assignment(
            RoleAssignment(role_id=role_id, recruiter_user_id=recruiter_id)
        )

    def team_recruitment_managers(self, team_id: int | None) -> list[User]:
        if team_id is None:
            return []
        managers = self._store.list_users(role="recruitment_manager", team_ids=[team_id])
        return sorted((user for user in managers if user.is_active), key=lambda user: user.id)

    def _require_user(self, user_id: int, role: str) -> User:
        return require_user(self._store, user_id, role)


__all__ = ["RoleService", "require_user", "validate_role_status", "DEFAULT_MAX_ACTIVE_ROLES"]
