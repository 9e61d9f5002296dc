"""
Monitoring for the admin dashboard: system event log and action tracking.
"""

from sentimentiq.monitoring.event_log import (
    EventLog,
    EventSink,
    SystemLogEntry,
    TrackedAction,
    create_event_log,
)

__all__ = [
    "EventLog",
    "EventSink",
    "SystemLogEntry",
    "TrackedAction",
    "create_event_log",
]
