"""Notification sinks and the fire-and-forget dispatcher used by the workflow."""

from __future__ import annotations

import json
from typing import Protocol, runtime_checkable
from urllib import error, request

import structlog
from tenacity import RetryError, retry, stop_after_attempt, wait_fixed

from .schemas import Notification


@runtime_checkable
class NotificationSink(Protocol):
    """Delivery channel contract. Implementations may raise on failure."""

    def send(self, notification: Notification) -> None:
        """Deliver a single notification."""


class InMemoryNotificationSink:
    """Collects notifications in memory."""

    def __init__(self) -> None:
        self.sent: list[Notification] = []

    def send(self, notification: Notification) -> None:
        self.sent.append(notification)

    def for_user(self, user_id: int) -> list[Notification]:
        return [item for item in self.sent if item.user_id == user_id]


class NotificationDeliveryError(RuntimeError):
    """Raised by sinks when a notification could not be delivered."""


class WebhookNotificationSink:
    """POST notifications as JSON to an HTTP endpoint."""

    def __init__(self, endpoint: str, api_key: str | None = None, *, timeout: float = 10.0):
        self._endpoint = endpoint
        self._api_key = api_key
        self._timeout = timeout

    def send(self, notification: Notification) -> None:
        data = json.dumps(notification.model_dump(mode="json"), ensure_ascii=False).encode("utf-8")
        headers = {"Content-Type": "application/json"}
        if self._api_key:
            headers["Authorization"] = f"Bearer {self._api_key}"

        req = request.Request(self._endpoint, data=data, headers=headers, method="POST")
        try:
            with request.urlopen(req, timeout=self._timeout) as resp:
                resp.read()
        except error.URLError as exc:
            raise NotificationDeliveryError(str(exc)) from exc


class NotificationDispatcher:
    """Send through a sink with retries; failures are logged, never raised.

    The triggering state transition is already committed when the dispatcher
    runs, so delivery problems must not surface as failures of the caller.
    """

    def __init__(
        self,
        sink: NotificationSink,
        *,
        retries: int = 3,
        wait_seconds: float = 0.5,
    ) -> None:
        self._sink = sink
        self._retries = retries
        self._wait_seconds = wait_seconds
        self._logger = structlog.get_logger(__name__)

    @property
    def sink(self) -> NotificationSink:
        return self._sink

    def notify(self, notification: Notification) -> bool:
        @retry(
            stop=stop_after_attempt(self._retries),
            wait=wait_fixed(self._wait_seconds),
        )
        def _deliver() -> None:
            self._sink.send(notification)

        try:
            _deliver()
        except RetryError as exc:
            last = exc.last_attempt.exception()
            self._logger.warning(
                "notification.delivery_failed",
                user_id=notification.user_id,
                title=notification.title,
                attempts=self._retries,
                error=str(last),
            )
            return False
        return True

    def notify_all(self, notifications: list[Notification]) -> int:
        return sum(1 for item in notifications if self.notify(item))


__all__ = [
    "NotificationSink",
    "InMemoryNotificationSink",
    "NotificationDeliveryError",
    "WebhookNotificationSink",
    "NotificationDispatcher",
]
