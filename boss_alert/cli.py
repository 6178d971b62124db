import argparse
from datetime import datetime, timedelta, timezone

from loguru import logger

from boss_alert.config import get_settings
from boss_alert.scheduler.jobs import run_notification_cycle
from boss_alert.scheduler.runner import prepare_database, start_heartbeat, start_notifier
from boss_alert.scheduler.timing import (
    ConfigurationError,
    format_duration,
    next_event_time,
    notification_time,
    parse_event_epoch,
    to_display_zone,
)


def init_database():
    """建立 subscriptions 資料表"""
    engine = prepare_database()
    if engine is not None:
        engine.dispose()


def send_now():
    """立即發送一輪通知"""
    engine = prepare_database()
    if engine is None:
        return
    try:
        result = run_notification_cycle(engine)
        logger.info(f"Result: {result}")
    finally:
        engine.dispose()


def show_next_event():
    settings = get_settings()
    try:
        epoch = parse_event_epoch(settings.first_event_time)
    except ConfigurationError as e:
        logger.error(f"Error parsing initial event time: {e}")
        return

    now = datetime.now(timezone.utc)
    event_at = next_event_time(
        epoch, timedelta(minutes=settings.event_interval_minutes), now
    )
    notify_at = notification_time(
        event_at, timedelta(minutes=settings.notification_lead_minutes)
    )
    offset = settings.display_utc_offset_hours
    logger.info(f"Next event at: {to_display_zone(event_at, offset).isoformat()}")
    logger.info(
        f"Notification at: {to_display_zone(notify_at, offset).isoformat()}"
        f" (in {format_duration(notify_at - now)})"
    )


def main():
    parser = argparse.ArgumentParser(description="World Boss alert scheduler CLI")
    subparsers = parser.add_subparsers(dest="command", help="Commands")

    # init command
    subparsers.add_parser("init", help="Initialize database")

    # long-running processes
    subparsers.add_parser("notify", help="Run the event notifier")
    subparsers.add_parser("heartbeat", help="Run the heartbeat pinger")

    # one-off commands
    subparsers.add_parser("send-now", help="Send one round of notifications now")
    subparsers.add_parser("next-event", help="Show the next event time")

    args = parser.parse_args()

    if args.command == "init":
        init_database()
    elif args.command == "notify":
        start_notifier()
    elif args.command == "heartbeat":
        start_heartbeat()
    elif args.command == "send-now":
        send_now()
    elif args.command == "next-event":
        show_next_event()
    else:
        parser.print_help()


if __name__ == "__main__":
    main()
