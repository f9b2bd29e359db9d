"""Persistence contract for the core services and an in-memory implementation.

The in-memory store guards every read-modify-write with a re-entrant lock, so
``transaction()`` blocks compose and the conditional writes
(``insert_role_if_under_limit``, ``replace_dropout_if``) are atomic.
"""

from __future__ import annotations

import itertools
import threading
from contextlib import contextmanager
from datetime import date
from typing import Iterable, Iterator, Protocol, runtime_checkable

from .schemas import (
    ActivityEntry,
    Candidate,
    CandidateRoleAssociation,
    DropoutRequest,
    RmEbesHistory,
    Role,
    RoleAssignment,
    User,
)
from .schemas.entities import DropoutStateKind


@runtime_checkable
class Store(Protocol):
    """Persistence operations the core relies on."""

    def transaction(self) -> Iterator[None]:
        """Context manager grouping writes into one logical transaction.

        Database-backed stores roll back on error. The in-memory store only
        serialises the block and keeps writes made before an exception, so
        callers validate everything that can fail before their first write.
        """

    # users
    def add_user(self, user: User) -> User: ...
    def get_user(self, user_id: int) -> User | None: ...
    def list_users(self, *, role: str | None = None, team_ids: Iterable[int] | None = None) -> list[User]: ...

    # roles
    def next_role_id(self) -> int: ...
    def add_role(self, role: Role) -> Role: ...
    def insert_role_if_under_limit(self, role: Role, limit: int) -> bool: ...
    def get_role(self, role_id: int) -> Role | None: ...
    def save_role(self, role: Role) -> Role: ...
    def list_roles(self, *, account_manager_id: int | None = None, team_ids: Iterable[int] | None = None) -> list[Role]: ...

    # assignments
    def add_assignment(self, assignment: RoleAssignment) -> RoleAssignment: ...
    def assigned_role_ids(self, recruiter_id: int) -> set[int]: ...

    # candidates and the association ledger
    def add_candidate(self, candidate: Candidate) -> Candidate: ...
    def get_candidate(self, candidate_id: int) -> Candidate | None: ...
    def save_candidate(self, candidate: Candidate) -> Candidate: ...
    def get_association(self, candidate_id: int, role_id: int) -> CandidateRoleAssociation | None: ...
    def save_association(self, association: CandidateRoleAssociation) -> CandidateRoleAssociation: ...
    def list_associations(
        self,
        *,
        candidate_id: int | None = None,
        role_id: int | None = None,
        recruiter_id: int | None = None,
    ) -> list[CandidateRoleAssociation]: ...

    # activity
    def next_entry_id(self) -> int: ...
    def add_entry(self, entry: ActivityEntry) -> ActivityEntry: ...
    def list_entries(
        self,
        *,
        recruiter_ids: Iterable[int] | None = None,
        role_ids: Iterable[int] | None = None,
        start: date | None = None,
        end: date | None = None,
        client_id: int | None = None,
    ) -> list[ActivityEntry]: ...

    # dropout requests
    def next_dropout_id(self) -> int: ...
    def insert_dropout(self, request: DropoutRequest) -> DropoutRequest: ...
    def get_dropout(self, request_id: int) -> DropoutRequest | None: ...
    def replace_dropout_if(self, request: DropoutRequest, expected_kind: DropoutStateKind) -> bool: ...
    def list_dropouts(
        self,
        *,
        role_id: int | None = None,
        recruiter_id: int | None = None,
        rm_id: int | None = None,
        am_id: int | None = None,
        kind: DropoutStateKind | None = None,
    ) -> list[DropoutRequest]: ...

    # score history
    def upsert_history(self, record: RmEbesHistory) -> RmEbesHistory: ...
    def list_history(self, rm_id: int) -> list[RmEbesHistory]: ...


def _in_range(value: date | None, start: date | None, end: date | None) -> bool:
    if start is None and end is None:
        return True
    if value is None:
        return False
    if start is not None and value < start:
        return False
    if end is not None and value > end:
        return False
    return True


class InMemoryStore:
    """Dictionary-backed store suitable for tests and single-process use."""

    def __init__(self) -> None:
        self._lock = threading.RLock()
        self._users: dict[int, User] = {}
        self._roles: dict[int, Role] = {}
        self._assignments: set[tuple[int, int]] = set()
        self._candidates: dict[int, Candidate] = {}
        self._associations: dict[tuple[int, int], CandidateRoleAssociation] = {}
        self._entries: dict[int, ActivityEntry] = {}
        self._dropouts: dict[int, DropoutRequest] = {}
        self._history: dict[tuple[int, date], RmEbesHistory] = {}
        self._role_ids = itertools.count(1)
        self._entry_ids = itertools.count(1)
        self._dropout_ids = itertools.count(1)

    @contextmanager
    def transaction(self) -> Iterator[None]:
        with self._lock:
            yield

    # users -------------------------------------------------------------

    def add_user(self, user: User) -> User:
        with self._lock:
            self._users[user.id] = user
        return user

    def get_user(self, user_id: int) -> User | None:
        return self._users.get(user_id)

    def list_users(self, *, role: str | None = None, team_ids: Iterable[int] | None = None) -> list[User]:
        wanted = set(team_ids) if team_ids is not None else None
        with self._lock:
            users = list(self._users.values())
        return [
            user
            for user in users
            if (role is None or user.role == role)
            and (wanted is None or wanted.intersection(user.team_ids))
        ]

    # roles -------------------------------------------------------------

    def next_role_id(self) -> int:
        with self._lock:
            role_id = next(self._role_ids)
            while role_id in self._roles:
                role_id = next(self._role_ids)
            return role_id

    def add_role(self, role: Role) -> Role:
        with self._lock:
            self._roles[role.id] = role
        return role

    def insert_role_if_under_limit(self, role: Role, limit: int) -> bool:
        with self._lock:
            active = sum(
                1
                for existing in self._roles.values()
                if existing.account_manager_id == role.account_manager_id and existing.is_active
            )
            if active >= limit:
                return False
            self._roles[role.id] = role
            return True

    def get_role(self, role_id: int) -> Role | None:
        return self._roles.get(role_id)

    def save_role(self, role: Role) -> Role:
        with self._lock:
            self._roles[role.id] = role
        return role

    def list_roles(
        self,
        *,
        account_manager_id: int | None = None,
        team_ids: Iterable[int] | None = None,
    ) -> list[Role]:
        wanted = set(team_ids) if team_ids is not None else None
        with self._lock:
            roles = list(self._roles.values())
        return [
            role
            for role in roles
            if (account_manager_id is None or role.account_manager_id == account_manager_id)
            and (wanted is None or role.team_id in wanted)
        ]

    # assignments -------------------------------------------------------

    def add_assignment(self, assignment: RoleAssignment) -> RoleAssignment:
        with self._lock:
            self._assignments.add((assignment.role_id, assignment.recruiter_user_id))
        return assignment

    def assigned_role_ids(self, recruiter_id: int) -> set[int]:
        with self._lock:
            return {role_id for role_id, user_id in self._assignments if user_id == recruiter_id}

    # candidates and associations ---------------------------------------

    def add_candidate(self, candidate: Candidate) -> Candidate:
        with self._lock:
            self._candidates[candidate.id] = candidate
        return candidate

    def get_candidate(self, candidate_id: int) -> Candidate | None:
        return self._candidates.get(candidate_id)

    def save_candidate(self, candidate: Candidate) -> Candidate:
        with self._lock:
            self._candidates[candidate.id] = candidate
        return candidate

    def get_association(self, candidate_id: int, role_id: int) -> CandidateRoleAssociation | None:
        return self._associations.get((candidate_id, role_id))

    def save_association(self, association: CandidateRoleAssociation) -> CandidateRoleAssociation:
        with self._lock:
            self._associations[association.key] = association
        return association

    def list_associations(
        self,
        *,
        candidate_id: int | None = None,
        role_id: int | None = None,
        recruiter_id: int | None = None,
    ) -> list[CandidateRoleAssociation]:
        with self._lock:
            associations = list(self._associations.values())
        return [
            item
            for item in associations
            if (candidate_id is None or item.candidate_id == candidate_id)
            and (role_id is None or item.role_id == role_id)
            and (recruiter_id is None or item.recruiter_user_id == recruiter_id)
        ]

    # activity ----------------------------------------------------------

    def next_entry_id(self) -> int:
        with self._lock:
            return next(self._entry_ids)

    def add_entry(self, entry: ActivityEntry) -> ActivityEntry:
        with self._lock:
            self._entries[entry.id] = entry
        return entry

    def list_entries(
        self,
        *,
        recruiter_ids: Iterable[int] | None = None,
        role_ids: Iterable[int] | None = None,
        start: date | None = None,
        end: date | None = None,
        client_id: int | None = None,
    ) -> list[ActivityEntry]:
        recruiters = set(recruiter_ids) if recruiter_ids is not None else None
        roles = set(role_ids) if role_ids is not None else None
        with self._lock:
            entries = sorted(self._entries.values(), key=lambda item: item.id)
        return [
            entry
            for entry in entries
            if (recruiters is None or entry.recruiter_user_id in recruiters)
            and (roles is None or entry.role_id in roles)
            and (client_id is None or entry.client_id == client_id)
            and _in_range(entry.occurred_on, start, end)
        ]

    # dropout requests --------------------------------------------------

    def next_dropout_id(self) -> int:
        with self._lock:
            return next(self._dropout_ids)

    def insert_dropout(self, request: DropoutRequest) -> DropoutRequest:
        with self._lock:
            if request.id in self._dropouts:
                raise KeyError(f"Dropout request {request.id} already exists")
            self._dropouts[request.id] = request
        return request

    def get_dropout(self, request_id: int) -> DropoutRequest | None:
        return self._dropouts.get(request_id)

    def replace_dropout_if(self, request: DropoutRequest, expected_kind: DropoutStateKind) -> bool:
        with self._lock:
            current = self._dropouts.get(request.id)
            if current is None or current.kind != expected_kind:
                return False
            self._dropouts[request.id] = request
            return True

    def list_dropouts(
        self,
        *,
        role_id: int | None = None,
        recruiter_id: int | None = None,
        rm_id: int | None = None,
        am_id: int | None = None,
        kind: DropoutStateKind | None = None,
    ) -> list[DropoutRequest]:
        with self._lock:
            requests = sorted(self._dropouts.values(), key=lambda item: item.id)
        return [
            item
            for item in requests
            if (role_id is None or item.role_id == role_id)
            and (recruiter_id is None or item.recruiter_user_id == recruiter_id)
            and (rm_id is None or item.rm_user_id == rm_id)
            and (am_id is None or item.am_user_id == am_id)
            and (kind is None or item.kind == kind)
        ]

    # score history -----------------------------------------------------

    def upsert_history(self, record: RmEbesHistory) -> RmEbesHistory:
        with self._lock:
            self._history[record.key] = record
        return record

    def list_history(self, rm_id: int) -> list[RmEbesHistory]:
        with self._lock:
            records = [item for item in self._history.values() if item.rm_user_id == rm_id]
        return sorted(records, key=lambda item: item.recorded_at)


__all__ = ["Store", "InMemoryStore"]
