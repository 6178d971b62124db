from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import List, Optional

from loguru import logger
from sqlalchemy.orm import Session

from boss_alert.config import get_settings
from boss_alert.notifications.subscriptions import (
    SubscriptionFetchError,
    fetch_subscriptions,
)
from boss_alert.notifications.webpush import WebPushSender


@dataclass
class DispatchResult:
    attempted: int = 0
    sent: int = 0
    failed: List[str] = field(default_factory=list)
    aborted: bool = False


class NotificationDispatcher:
    """Fans one event alert out to every stored push subscription."""

    def __init__(self, session: Session, sender: Optional[WebPushSender] = None):
        self.session = session
        self.settings = get_settings()
        self.sender = sender or WebPushSender()

    def build_payload(self) -> str:
        return json.dumps(
            {
                "title": self.settings.notification_title,
                "body": self.settings.notification_body,
            }
        )

    def dispatch(self) -> DispatchResult:
        """Send the alert to all subscriptions, one at a time.

        A failed send is logged and skipped. A malformed subscription row
        aborts the cycle before anything is sent.

        Returns:
            Summary of attempts, successes and failed endpoints.
        """
        result = DispatchResult()

        if not self.settings.notification_enabled:
            logger.info("Notifications are disabled, skipping dispatch")
            return result

        if not WebPushSender.is_configured():
            logger.warning("VAPID credentials are not set, skipping dispatch")
            return result

        try:
            subscriptions = fetch_subscriptions(self.session)
        except SubscriptionFetchError as e:
            logger.error(f"Error getting subscriptions: {e}")
            result.aborted = True
            return result

        if not subscriptions:
            logger.info("No subscriptions to notify")
            return result

        payload = self.build_payload()
        for subscription in subscriptions:
            result.attempted += 1
            if self.sender.send(subscription, payload):
                result.sent += 1
            else:
                result.failed.append(subscription.endpoint)

        logger.info(
            f"Push: sent {result.sent}/{result.attempted} notifications"
            f" ({len(result.failed)} failed)"
        )
        return result
