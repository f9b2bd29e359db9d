from __future__ import annotations

import pytest

from conftest import AM_ID, OTHER_AM_ID, RECRUITER_ID, RM_ID, TEAM_ID, build_services
from ebes.errors import (
    ActiveRoleLimitError,
    ForbiddenError,
    InputValidationError,
    NotFoundError,
)


def test_active_role_limit_blocks_creation():
    services = build_services(max_active_roles=2)
    first = services.roles.create_role(AM_ID, team_id=TEAM_ID)
    services.roles.create_role(AM_ID, team_id=TEAM_ID)

    with pytest.raises(ActiveRoleLimitError) as excinfo:
        services.roles.create_role(AM_ID, team_id=TEAM_ID)

    assert isinstance(excinfo.value, InputValidationError)
    assert excinfo.value.context["limit"] == 2
    assert len(services.store.list_roles(account_manager_id=AM_ID)) == 2

    services.roles.create_role(OTHER_AM_ID, team_id=TEAM_ID)
    services.roles.change_status(first.id, "deal")
    services.roles.create_role(AM_ID, team_id=TEAM_ID)
    assert len(services.store.list_roles(account_manager_id=AM_ID)) == 3


def test_only_account_managers_create_roles(services):
    with pytest.raises(ForbiddenError):
        services.roles.create_role(RECRUITER_ID)
    with pytest.raises(NotFoundError):
        services.roles.create_role(9999)


def test_change_status_scoped_to_owner(services):
    role = services.roles.create_role(AM_ID, team_id=TEAM_ID)

    with pytest.raises(ForbiddenError):
        services.roles.change_status(role.id, "lost", actor_id=OTHER_AM_ID)
    with pytest.raises(InputValidationError):
        services.roles.change_status(role.id, "archived")
    with pytest.raises(NotFoundError):
        services.roles.change_status(999, "lost")

    assert services.roles.get_role(role.id).status == "active"


def test_status_change_notifies_team_managers_once(services):
    role = services.roles.create_role(AM_ID, team_id=TEAM_ID, title="QA")

    services.roles.change_status(role.id, "on_hold", actor_id=AM_ID)
    services.roles.change_status(role.id, "on_hold", actor_id=AM_ID)

    [note] = services.sink.for_user(RM_ID)
    assert note.title == "Role Status Updated"
    assert note.related_entity_id == role.id


def test_assign_recruiter(services):
    role = services.roles.create_role(AM_ID, team_id=TEAM_ID)

    services.roles.assign_recruiter(role.id, RECRUITER_ID)

    assert services.store.assigned_role_ids(RECRUITER_ID) == {role.id}
    with pytest.raises(ForbiddenError):
        services.roles.assign_recruiter(role.id, AM_ID)


def test_submission_below_cv_floor_is_blocked(services):
    role = services.roles.create_role(AM_ID, team_id=TEAM_ID)

    with pytest.raises(InputValidationError, match="at least 85%"):
        services.activity.record_submission(
            RECRUITER_ID, role.id, 100, timing="6h", cv_match_percent=84.9
        )

    assert services.store.list_entries() == []
    assert services.store.get_candidate(100) is None


def test_submission_and_interview_validation(services):
    role = services.roles.create_role(AM_ID, team_id=TEAM_ID)

    with pytest.raises(InputValidationError):
        services.activity.record_submission(
            RECRUITER_ID, role.id, 100, timing="48h", cv_match_percent=90
        )
    with pytest.raises(InputValidationError):
        services.activity.record_submission(
            RECRUITER_ID, role.id, 100, timing="24h", cv_match_percent=None
        )
    with pytest.raises(InputValidationError):
        services.activity.record_interview(RECRUITER_ID, role.id, 4)

    entry = services.activity.record_interview(RECRUITER_ID, role.id, 3, candidate_id=100)
    assert entry.interview_level == 3
    assert entry.team_id == TEAM_ID


def test_deal_closes_role_and_notifies_account_manager(services):
    role = services.roles.create_role(AM_ID, team_id=TEAM_ID, title="SRE")
    services.activity.record_submission(RECRUITER_ID, role.id, 100, timing="24h", cv_match_percent=95)

    services.activity.record_deal(RECRUITER_ID, role.id, candidate_id=100)

    assert services.roles.get_role(role.id).status == "deal"
    [note] = services.sink.for_user(AM_ID)
    assert (note.title, note.type) == ("New Deal!", "deal")
    assert services.sink.for_user(RM_ID) == []
    assert services.store.get_association(100, role.id).is_discarded is True
