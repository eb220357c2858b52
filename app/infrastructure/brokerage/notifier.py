"""
Adapters: user notification channels.

Notifications are best-effort. A failed delivery is logged and never
propagates into the ledger operation that triggered it.

Channels:
    LoggingNotifier     writes every notification to the application log
    WebhookNotifier     POSTs a JSON event to a configured URL (httpx)
    InboxNotifier       stores the notification in the user's in-app inbox
    NotificationFanout  delivers to several channels, isolating failures
"""

import logging
from typing import Optional, Sequence
from urllib.parse import urlparse

import httpx

from app.domain.brokerage.entities import NotificationType
from app.domain.brokerage.ports import NotificationPort, UnitOfWorkFactory
from app.shared.clock import utcnow

logger = logging.getLogger(__name__)

# In-app pages a notification links to.
ACTION_URLS = {
    NotificationType.TRADE: "/trades",
    NotificationType.COPY_TRADING: "/copy-trading",
    NotificationType.TRANSACTION: "/transactions",
    NotificationType.INVESTMENT: "/investments",
    NotificationType.KYC: "/kyc",
}


class LoggingNotifier(NotificationPort):
    """Notification channel that only logs."""

    def notify(
        self,
        user_id: int,
        subject: str,
        message: str,
        notification_type: NotificationType = NotificationType.GENERAL,
    ) -> None:
        logger.info(
            "Notify user_id=%d [%s]: %s | %s",
            user_id,
            notification_type.value,
            subject,
            message,
        )


class WebhookNotifier(NotificationPort):
    """POST notifications to an HTTP endpoint.

    Args:
        url: Absolute http(s) URL receiving the events.
        timeout: HTTP timeout in seconds.
        transport: Optional httpx transport, e.g. a MockTransport in tests.
    """

    def __init__(
        self,
        url: str,
        timeout: float = 5.0,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        parsed = urlparse(url)
        if parsed.scheme not in ("http", "https"):
            msg = f"Invalid webhook URL scheme: {parsed.scheme}"
            raise ValueError(msg)
        self._url = url
        self._timeout = timeout
        self._transport = transport

    def notify(
        self,
        user_id: int,
        subject: str,
        message: str,
        notification_type: NotificationType = NotificationType.GENERAL,
    ) -> None:
        payload = {
            "event": "user_notification",
            "timestamp": utcnow().isoformat(),
            "user_id": user_id,
            "type": notification_type.value,
            "subject": subject,
            "message": message,
        }
        try:
            with httpx.Client(timeout=self._timeout, transport=self._transport) as client:
                resp = client.post(
                    self._url,
                    json=payload,
                    headers={"X-Brokerage-Event": "user_notification"},
                )
                resp.raise_for_status()
        except httpx.HTTPError as exc:
            logger.error("Webhook POST to %s failed: %s", self._url, exc)
            return

        logger.debug("Webhook delivered user_id=%d subject=%r", user_id, subject)


class InboxNotifier(NotificationPort):
    """Store notifications so the user can list them and mark them read.

    Each notification is written in its own unit of work, after the
    ledger change that caused it has been committed.
    """

    def __init__(self, uow_factory: UnitOfWorkFactory) -> None:
        self._uow_factory = uow_factory

    def notify(
        self,
        user_id: int,
        subject: str,
        message: str,
        notification_type: NotificationType = NotificationType.GENERAL,
    ) -> None:
        with self._uow_factory() as uow:
            stored = uow.notifications.add(
                user_id,
                subject,
                message,
                notification_type,
                action_url=ACTION_URLS.get(notification_type),
            )
            uow.commit()
        logger.debug("Stored notification %d for user_id=%d", stored.id, user_id)


class NotificationFanout(NotificationPort):
    """Deliver every notification to each channel in turn.

    A failing channel is logged and does not stop the others.
    """

    def __init__(self, channels: Sequence[NotificationPort]) -> None:
        self._channels = list(channels)

    def notify(
        self,
        user_id: int,
        subject: str,
        message: str,
        notification_type: NotificationType = NotificationType.GENERAL,
    ) -> None:
        for channel in self._channels:
            try:
                channel.notify(user_id, subject, message, notification_type)
            except Exception:
                logger.warning(
                    "%s failed to deliver %r to user_id=%d",
                    type(channel).__name__,
                    subject,
                    user_id,
                    exc_info=True,
                )


def build_notifier(
    webhook_url: str | None = None,
    timeout: float = 5.0,
    uow_factory: Optional[UnitOfWorkFactory] = None,
) -> NotificationPort:
    """Assemble the notification channels from configuration.

    The webhook channel replaces plain logging when a URL is configured.
    With a unit-of-work factory, notifications are also kept in the
    in-app inbox.
    """
    relay: NotificationPort = (
        WebhookNotifier(webhook_url, timeout=timeout) if webhook_url else LoggingNotifier()
    )
    if uow_factory is None:
        return relay
    return NotificationFanout([InboxNotifier(uow_factory), relay])
