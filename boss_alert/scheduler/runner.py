from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Optional

from apscheduler.schedulers.blocking import BlockingScheduler
from apscheduler.triggers.date import DateTrigger
from apscheduler.triggers.interval import IntervalTrigger
from loguru import logger
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError

from boss_alert.config import get_settings
from boss_alert.db.database import check_connection, create_db_engine, init_db
from boss_alert.scheduler.jobs import EventNotifier, run_heartbeat
from boss_alert.scheduler.timing import (
    ConfigurationError,
    delay_until_next_boundary,
    format_duration,
    next_event_time,
    notification_time,
    parse_event_epoch,
    to_display_zone,
)

# Ticks delayed longer than this (e.g. host suspended) are dropped, not replayed
MISFIRE_GRACE_SECONDS = 30

JOB_OPTIONS = {
    "coalesce": True,
    "max_instances": 1,
    "misfire_grace_time": MISFIRE_GRACE_SECONDS,
}


def _new_scheduler() -> BlockingScheduler:
    return BlockingScheduler(timezone=timezone.utc)


def create_notifier_scheduler(
    engine: Engine, epoch: datetime, now: Optional[datetime] = None
) -> BlockingScheduler:
    settings = get_settings()
    if now is None:
        now = datetime.now(timezone.utc)

    interval = timedelta(minutes=settings.event_interval_minutes)
    lead = timedelta(minutes=settings.notification_lead_minutes)
    event_at = next_event_time(epoch, interval, now)
    notify_at = notification_time(event_at, lead)

    offset = settings.display_utc_offset_hours
    logger.info(f"Next event at: {to_display_zone(event_at, offset).isoformat()}")
    logger.info(
        f"Will send notification at: {to_display_zone(notify_at, offset).isoformat()}"
        f" (in {format_duration(notify_at - now)})"
    )

    notifier = EventNotifier(engine, event_at, interval)
    scheduler = _new_scheduler()
    if notify_at <= now:
        # Inside the lead window already: alert right away, then stay on the grid
        scheduler.add_job(
            notifier.run,
            DateTrigger(run_date=now),
            next_run_time=now,
            id="event_notification_now",
            name="World Boss Notification (immediate)",
            **JOB_OPTIONS,
        )
        notify_at += interval

    scheduler.add_job(
        notifier.run,
        IntervalTrigger(seconds=interval.total_seconds(), start_date=notify_at),
        next_run_time=notify_at,
        id="event_notification",
        name="World Boss Notification",
        **JOB_OPTIONS,
    )
    logger.info("Notifier scheduler configured")
    return scheduler


def create_heartbeat_scheduler(now: Optional[datetime] = None) -> BlockingScheduler:
    settings = get_settings()
    if now is None:
        now = datetime.now(timezone.utc)

    delay = delay_until_next_boundary(now, settings.heartbeat_interval_minutes)
    first_run = now + delay
    logger.info(f"Waiting {format_duration(delay)} until first request")

    scheduler = _new_scheduler()
    scheduler.add_job(
        run_heartbeat,
        IntervalTrigger(minutes=settings.heartbeat_interval_minutes, start_date=first_run),
        next_run_time=first_run,
        id="heartbeat",
        name="Heartbeat Ping",
        **JOB_OPTIONS,
    )
    logger.info("Heartbeat scheduler configured")
    return scheduler


def prepare_database() -> Optional[Engine]:
    """Connect and create the schema, or log why not and return None."""
    settings = get_settings()
    if not settings.database_url:
        logger.error("DATABASE_URL environment variable is not set")
        return None

    try:
        engine = create_db_engine(settings.database_url)
        check_connection(engine)
    except SQLAlchemyError as e:
        logger.error(f"Error connecting to database: {e}")
        return None
    logger.info("Successfully connected to database")

    try:
        init_db(engine)
    except SQLAlchemyError as e:
        logger.error(f"Error setting up database schema: {e}")
        engine.dispose()
        return None
    return engine


def _run_forever(scheduler: BlockingScheduler) -> None:
    logger.info("Scheduler started")
    try:
        scheduler.start()
    except (KeyboardInterrupt, SystemExit):
        logger.info("Scheduler stopped")


def start_notifier() -> None:
    """Run the event notifier until the process is terminated."""
    engine = prepare_database()
    if engine is None:
        return

    try:
        epoch = parse_event_epoch(get_settings().first_event_time)
    except ConfigurationError as e:
        logger.error(f"Error parsing initial event time: {e}")
        engine.dispose()
        return

    try:
        _run_forever(create_notifier_scheduler(engine, epoch))
    finally:
        engine.dispose()


def start_heartbeat() -> None:
    """Run the heartbeat pinger until the process is terminated."""
    _run_forever(create_heartbeat_scheduler())
