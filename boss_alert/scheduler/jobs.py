from __future__ import annotations

from datetime import datetime, timedelta

from loguru import logger
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session

from boss_alert.config import get_settings
from boss_alert.notifications.dispatcher import DispatchResult, NotificationDispatcher
from boss_alert.scheduler.heartbeat import ping
from boss_alert.scheduler.timing import to_display_zone


def run_notification_cycle(engine: Engine) -> DispatchResult:
    """Fetch subscriptions and send one round of event alerts."""
    with Session(engine) as session:
        dispatcher = NotificationDispatcher(session)
        return dispatcher.dispatch()


class EventNotifier:
    """Scheduler job that alerts subscribers ahead of each event occurrence.

    Tracks the upcoming event so every tick can log which occurrence it
    announced and when the next one is due.
    """

    def __init__(self, engine: Engine, next_event: datetime, interval: timedelta):
        self.engine = engine
        self.next_event = next_event
        self.interval = interval
        self.settings = get_settings()

    def _display(self, moment: datetime) -> str:
        return to_display_zone(moment, self.settings.display_utc_offset_hours).isoformat()

    def run(self) -> DispatchResult:
        logger.info(f"Sending notifications for event at {self._display(self.next_event)}")
        result = run_notification_cycle(self.engine)
        self.next_event += self.interval
        logger.info(f"Next event at: {self._display(self.next_event)}")
        return result


def run_heartbeat():
    """Ping the configured heartbeat URL once."""
    settings = get_settings()
    ping(settings.heartbeat_url, timeout=settings.heartbeat_timeout)
