from __future__ import annotations

import threading
import time
from datetime import datetime, timezone

import pytest

from conftest import (
    AM_ID,
    OTHER_AM_ID,
    OTHER_RECRUITER_ID,
    OTHER_RM_ID,
    RECRUITER_ID,
    RM_ID,
    TEAM_ID,
    build_services,
)
from ebes.errors import (
    ForbiddenError,
    InputValidationError,
    InvalidStateTransitionError,
    NotFoundError,
)
from ebes.notifications import NotificationDeliveryError
from ebes.schemas import DropoutRequest
from ebes.workflow import resolve_role_status


def open_role(services, *, team_id=TEAM_ID):
    return services.roles.create_role(AM_ID, team_id=team_id, client_id=500, title="Data Engineer")


def titles_for(sink, user_id):
    return [item.title for item in sink.for_user(user_id)]


def test_dropout_lifecycle_forces_active_status_and_is_terminal(services):
    role = open_role(services)

    request_id = services.workflow.record_dropout(role.id, RECRUITER_ID, "Candidate took another offer")
    assert services.workflow.get(request_id).kind == "pending"

    services.workflow.acknowledge_dropout(request_id, RM_ID, "Confirmed with candidate")
    acknowledged = services.workflow.get(request_id)
    assert acknowledged.kind == "acknowledged"
    assert acknowledged.rm_status == "acknowledged"
    assert acknowledged.final_status == "pending"

    resolved = services.workflow.decide_dropout(request_id, AM_ID, "ignore", "dropout")

    completed = services.workflow.get(request_id)
    assert resolved == "active"
    assert completed.final_status == "completed"
    assert completed.am_decision == "ignore"
    assert completed.am_new_role_status == "dropout"
    assert completed.state.resolved_role_status == "active"
    assert completed.state.rm_notes == "Confirmed with candidate"
    assert services.roles.get_role(role.id).status == "active"

    with pytest.raises(InvalidStateTransitionError):
        services.workflow.decide_dropout(request_id, AM_ID, "accept")


def test_record_dropout_defaults_reason_and_logs_entry(services):
    role = open_role(services)

    request_id = services.workflow.record_dropout(role.id, RECRUITER_ID, "   ")

    request = services.workflow.get(request_id)
    assert request.dropout_reason == "Not specified"
    assert request.rm_user_id == RM_ID
    assert request.am_user_id == AM_ID
    entries = services.store.list_entries(recruiter_ids=[RECRUITER_ID])
    assert [entry.entry_type for entry in entries] == ["dropout"]
    assert titles_for(services.sink, RM_ID) == ["Dropout Requires Acknowledgment"]


def test_notifications_follow_each_transition(services):
    role = open_role(services)
    request_id = services.workflow.record_dropout(role.id, RECRUITER_ID)

    services.workflow.acknowledge_dropout(request_id, RM_ID)
    assert titles_for(services.sink, AM_ID) == ["Dropout Requires Decision"]

    services.workflow.decide_dropout(request_id, AM_ID, "accept", "lost")

    recruiter_notes = services.sink.for_user(RECRUITER_ID)
    assert [(item.title, item.type) for item in recruiter_notes] == [("Dropout Accepted", "dropout")]
    assert titles_for(services.sink, RM_ID)[-1] == "Dropout Decision Made"
    assert services.roles.get_role(role.id).status == "lost"


def test_ignored_dropout_notifies_recruiter_as_system(services):
    role = open_role(services)
    request_id = services.workflow.record_dropout(role.id, RECRUITER_ID)
    services.workflow.acknowledge_dropout(request_id, RM_ID)

    services.workflow.decide_dropout(request_id, AM_ID, "ignore")

    [note] = services.sink.for_user(RECRUITER_ID)
    assert note.title == "Dropout Ignored"
    assert note.type == "system"


def test_only_addressed_rm_can_acknowledge(services):
    role = open_role(services)
    request_id = services.workflow.record_dropout(role.id, RECRUITER_ID)

    with pytest.raises(ForbiddenError):
        services.workflow.acknowledge_dropout(request_id, OTHER_RM_ID)

    assert services.workflow.get(request_id).kind == "pending"


def test_only_owning_am_can_decide(services):
    role = open_role(services)
    request_id = services.workflow.record_dropout(role.id, RECRUITER_ID)
    services.workflow.acknowledge_dropout(request_id, RM_ID)

    with pytest.raises(ForbiddenError):
        services.workflow.decide_dropout(request_id, OTHER_AM_ID, "accept")

    assert services.workflow.get(request_id).kind == "acknowledged"


def test_decide_before_acknowledge_fails(services):
    role = open_role(services)
    request_id = services.workflow.record_dropout(role.id, RECRUITER_ID)

    with pytest.raises(InvalidStateTransitionError):
        services.workflow.decide_dropout(request_id, AM_ID, "accept")

    assert services.workflow.get(request_id).kind == "pending"
    assert services.roles.get_role(role.id).status == "active"


def test_double_acknowledge_fails(services):
    role = open_role(services)
    request_id = services.workflow.record_dropout(role.id, RECRUITER_ID)
    services.workflow.acknowledge_dropout(request_id, RM_ID, "first")

    with pytest.raises(InvalidStateTransitionError):
        services.workflow.acknowledge_dropout(request_id, RM_ID, "second")

    assert services.workflow.get(request_id).state.rm_notes == "first"


def test_invalid_decision_is_rejected_before_any_write(services):
    role = open_role(services)
    request_id = services.workflow.record_dropout(role.id, RECRUITER_ID)
    services.workflow.acknowledge_dropout(request_id, RM_ID)

    with pytest.raises(InputValidationError):
        services.workflow.decide_dropout(request_id, AM_ID, "maybe")
    with pytest.raises(InputValidationError):
        services.workflow.decide_dropout(request_id, AM_ID, "accept", "archived")

    assert services.workflow.get(request_id).kind == "acknowledged"


def test_missing_request_and_wrong_actor_type(services):
    role = open_role(services)

    with pytest.raises(NotFoundError):
        services.workflow.acknowledge_dropout(999, RM_ID)
    with pytest.raises(ForbiddenError):
        services.workflow.record_dropout(role.id, AM_ID)


def test_dropout_requires_open_role(services):
    role = open_role(services)
    services.roles.change_status(role.id, "cancelled")

    with pytest.raises(InvalidStateTransitionError):
        services.workflow.record_dropout(role.id, RECRUITER_ID)


def test_dropout_requires_team_recruitment_manager(services):
    role = open_role(services, team_id=99)

    with pytest.raises(NotFoundError):
        services.workflow.record_dropout(role.id, RECRUITER_ID)

    assert services.store.list_dropouts(role_id=role.id) == []


def test_failing_sink_does_not_roll_back_transitions():
    class BrokenSink:
        def __init__(self):
            self.attempts = 0

        def send(self, notification):
            self.attempts += 1
            raise NotificationDeliveryError("smtp down")

    sink = BrokenSink()
    services = build_services(sink=sink, retries=2)
    role = open_role(services)

    request_id = services.workflow.record_dropout(role.id, RECRUITER_ID)
    services.workflow.acknowledge_dropout(request_id, RM_ID)
    resolved = services.workflow.decide_dropout(request_id, AM_ID, "accept", "on_hold")

    assert resolved == "on_hold"
    assert services.workflow.get(request_id).is_completed
    assert services.roles.get_role(role.id).status == "on_hold"
    # four notifications in total, each attempted twice
    assert sink.attempts == (1 + 1 + 2) * 2


def test_pending_queues_and_current_request(services):
    role = open_role(services)
    other_role = open_role(services)
    first = services.workflow.record_dropout(role.id, RECRUITER_ID)
    second = services.workflow.record_dropout(other_role.id, OTHER_RECRUITER_ID)

    assert [item.id for item in services.workflow.pending_for_rm(RM_ID)] == [second, first]
    assert services.workflow.pending_for_rm(OTHER_RM_ID) == []
    assert services.workflow.current_request_for_role(role.id).id == first

    services.workflow.acknowledge_dropout(first, RM_ID)
    services.workflow.acknowledge_dropout(second, RM_ID)

    assert services.workflow.pending_for_rm(RM_ID) == []
    assert [item.id for item in services.workflow.pending_for_am(AM_ID)] == [second, first]

    services.workflow.decide_dropout(first, AM_ID, "accept")

    assert services.workflow.current_request_for_role(role.id) is None
    assert services.workflow.latest_decision_for(role.id, RECRUITER_ID) == "accept"
    assert services.workflow.latest_decision_for(other_role.id, OTHER_RECRUITER_ID) is None


def test_resolve_role_status():
    assert resolve_role_status(None) == "active"
    assert resolve_role_status("dropout") == "active"
    assert resolve_role_status("lost") == "lost"


def test_stale_copy_cannot_overwrite_newer_state(services):
    role = open_role(services)
    request_id = services.workflow.record_dropout(role.id, RECRUITER_ID)
    stale = services.workflow.get(request_id)

    services.workflow.acknowledge_dropout(request_id, RM_ID, "winner")
    replaced = services.store.replace_dropout_if(
        stale.acknowledge(at=stale.created_at, notes="loser"), "pending"
    )

    assert replaced is False
    assert services.workflow.get(request_id).state.rm_notes == "winner"


def test_decision_on_unknown_role_leaves_request_acknowledged(services):
    orphan = DropoutRequest(
        id=services.store.next_dropout_id(),
        role_id=4242,
        recruiter_user_id=RECRUITER_ID,
        rm_user_id=RM_ID,
        am_user_id=AM_ID,
        created_at=datetime(2024, 5, 15, 9, 0, tzinfo=timezone.utc),
    )
    services.store.insert_dropout(orphan)
    services.workflow.acknowledge_dropout(orphan.id, RM_ID)

    with pytest.raises(NotFoundError):
        services.workflow.decide_dropout(orphan.id, AM_ID, "accept")

    assert services.workflow.get(orphan.id).kind == "acknowledged"


def test_record_dropout_sees_status_change_made_while_waiting(services):
    role = open_role(services)
    outcome: dict[str, object] = {}

    def flag_dropout():
        try:
            outcome["request_id"] = services.workflow.record_dropout(role.id, RECRUITER_ID)
        except InvalidStateTransitionError as exc:
            outcome["error"] = exc

    with services.store.transaction():
        worker = threading.Thread(target=flag_dropout)
        worker.start()
        time.sleep(0.05)
        services.roles.change_status(role.id, "lost", notify=False)
    worker.join(timeout=5)

    assert isinstance(outcome.get("error"), InvalidStateTransitionError)
    assert services.store.list_dropouts(role_id=role.id) == []
