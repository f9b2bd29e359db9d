from __future__ import annotations

from dataclasses import dataclass
from datetime import date

import pendulum
import pytest

from ebes.activity import ActivityRecorder
from ebes.core import ActivityAggregator
from ebes.ledger import AssociationLedger
from ebes.notifications import InMemoryNotificationSink, NotificationDispatcher
from ebes.roles import RoleService
from ebes.schemas import User
from ebes.store import InMemoryStore
from ebes.workflow import DropoutWorkflow

RECRUITER_ID = 10
OTHER_RECRUITER_ID = 11
AM_ID = 20
OTHER_AM_ID = 21
RM_ID = 30
OTHER_RM_ID = 31
TEAM_ID = 1
CLIENT_ID = 500
TODAY = date(2024, 5, 15)


class FixedClock:
    """Monotonic clock that advances one second per call."""

    def __init__(self) -> None:
        self._current = pendulum.datetime(2024, 5, 15, 9, 0, 0, tz="UTC")

    def __call__(self):
        value = self._current
        self._current = self._current.add(seconds=1)
        return value


@dataclass
class Services:
    store: InMemoryStore
    sink: object
    notifier: NotificationDispatcher
    ledger: AssociationLedger
    roles: RoleService
    activity: ActivityRecorder
    workflow: DropoutWorkflow
    aggregator: ActivityAggregator


def build_services(*, sink=None, max_active_roles: int = 30, retries: int = 2) -> Services:
    store = InMemoryStore()
    for user in (
        User(id=RECRUITER_ID, name="Rita", role="recruiter", team_ids=(TEAM_ID,)),
        User(id=OTHER_RECRUITER_ID, name="Remo", role="recruiter", team_ids=(TEAM_ID,)),
        User(id=AM_ID, name="Amal", role="account_manager", team_ids=(TEAM_ID,)),
        User(id=OTHER_AM_ID, name="Ari", role="account_manager", team_ids=(TEAM_ID,)),
        User(id=RM_ID, name="Mika", role="recruitment_manager", team_ids=(TEAM_ID,)),
        User(id=OTHER_RM_ID, name="Noor", role="recruitment_manager", team_ids=(2,)),
    ):
        store.add_user(user)

    clock = FixedClock()
    sink = sink if sink is not None else InMemoryNotificationSink()
    notifier = NotificationDispatcher(sink, retries=retries, wait_seconds=0)
    ledger = AssociationLedger(store, now_provider=clock)
    roles = RoleService(
        store, ledger, notifier, max_active_roles=max_active_roles, now_provider=clock
    )
    activity = ActivityRecorder(store, ledger, roles, notifier, today_provider=lambda: TODAY)
    workflow = DropoutWorkflow(store, roles, activity, notifier, now_provider=clock)
    return Services(
        store=store,
        sink=sink,
        notifier=notifier,
        ledger=ledger,
        roles=roles,
        activity=activity,
        workflow=workflow,
        aggregator=ActivityAggregator(store),
    )


@pytest.fixture
def services() -> Services:
    return build_services()
