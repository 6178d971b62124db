"""Scheduling for the two long-running processes.

Schedule overview:
  - Event notifier  - every 3.5 h, 5 minutes before each World Boss event,
                      anchored on FIRST_EVENT_TIME
  - Heartbeat       - every 5 minutes on the wall-clock grid (:00, :05, ...)
"""
