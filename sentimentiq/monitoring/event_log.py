"""
System event log and action tracking for the admin dashboard.

EventLog is an injected collaborator: the process entry point creates
one and hands it to the orchestrator and the web app. It keeps the most
recent entries in memory, mirrors every entry to the standard logging
system, and optionally forwards entries to a persistent sink.

Recording never raises. Monitoring must not be able to fail a request.
"""

import logging
import threading
import traceback
import uuid
from collections import Counter, deque
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Deque, Dict, List, Optional, Protocol, runtime_checkable

from sentimentiq.utils.time_utils import isoformat, utcnow

LEVELS = ("debug", "info", "warn", "error")
CATEGORIES = ("auth", "analysis", "database", "api", "system")
ACTION_TYPES = ("page_view", "analysis", "login", "register", "error", "api_call")

_PY_LEVELS = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warn": logging.WARNING,
    "error": logging.ERROR,
}


@dataclass(frozen=True)
class SystemLogEntry:
    level: str
    message: str
    category: str
    details: Dict[str, Any] = field(default_factory=dict)
    user_id: Optional[str] = None
    stack: Optional[str] = None
    id: str = field(default_factory=lambda: str(uuid.uuid4()))
    timestamp: datetime = field(default_factory=utcnow)

    def to_dict(self) -> Dict[str, Any]:
        data = {
            "id": self.id,
            "level": self.level,
            "message": self.message,
            "category": self.category,
            "details": self.details,
            "timestamp": isoformat(self.timestamp),
        }
        if self.user_id:
            data["userId"] = self.user_id
        if self.stack:
            data["stack"] = self.stack
        return data


@dataclass(frozen=True)
class TrackedAction:
    type: str
    details: Dict[str, Any] = field(default_factory=dict)
    user_id: Optional[str] = None
    id: str = field(default_factory=lambda: str(uuid.uuid4()))
    timestamp: datetime = field(default_factory=utcnow)

    def to_dict(self) -> Dict[str, Any]:
        data = {
            "id": self.id,
            "type": self.type,
            "details": self.details,
            "timestamp": isoformat(self.timestamp),
        }
        if self.user_id:
            data["userId"] = self.user_id
        return data


@runtime_checkable
class EventSink(Protocol):
    """Persistent destination for log entries and actions (e.g. hosted tables)."""

    def write_log(self, entry: SystemLogEntry) -> None:
        ...

    def write_action(self, action: TrackedAction) -> None:
        ...


class EventLog:
    """
    Bounded in-memory event log.

    Usage:
        events = EventLog(capacity=1000)
        events.log_event("info", "Comprehensive analysis started", "analysis",
                         {"textLength": 120})
        events.track_action("analysis", {"type": "comprehensive"})
        events.recent(level="error")
    """

    def __init__(self, capacity: int = 1000, sink: Optional[EventSink] = None):
        self.capacity = capacity
        self._logs: Deque[SystemLogEntry] = deque(maxlen=capacity)
        self._actions: Deque[TrackedAction] = deque(maxlen=capacity)
        self._sink = sink
        self._lock = threading.Lock()
        self.logger = logging.getLogger("monitoring.events")

    def log_event(
        self,
        level: str,
        message: str,
        category: str = "system",
        details: Optional[Dict[str, Any]] = None,
        error: Optional[BaseException] = None,
        user_id: Optional[str] = None,
    ) -> Optional[SystemLogEntry]:
        """Record a system log entry. Returns None if recording failed."""
        try:
            level = level if level in LEVELS else "info"
            stack = None
            if error is not None:
                stack = "".join(
                    traceback.format_exception(type(error), error, error.__traceback__)
                )
            entry = SystemLogEntry(
                level=level,
                message=message,
                category=category,
                details=dict(details or {}),
                user_id=user_id,
                stack=stack,
            )
            with self._lock:
                self._logs.appendleft(entry)

            self.logger.log(
                _PY_LEVELS[level],
                f"[{category}] {message}",
                extra={"context": entry.details},
            )
        except Exception as e:
            self.logger.warning(f"Failed to record event '{message}': {e}")
            return None

        self._forward("write_log", entry)
        return entry

    def track_action(
        self,
        action_type: str,
        details: Optional[Dict[str, Any]] = None,
        user_id: Optional[str] = None,
    ) -> Optional[TrackedAction]:
        """Record a user action (analysis, login, ...). Returns None on failure."""
        try:
            action = TrackedAction(type=action_type, details=dict(details or {}), user_id=user_id)
            with self._lock:
                self._actions.appendleft(action)
        except Exception as e:
            self.logger.warning(f"Failed to track action '{action_type}': {e}")
            return None

        self._forward("write_action", action)
        return action

    def _forward(self, method: str, item: Any) -> None:
        if self._sink is None:
            return
        try:
            getattr(self._sink, method)(item)
        except Exception as e:
            # Logged locally only; the sink is best-effort
            self.logger.warning(f"Event sink {method} failed: {e}")

    def recent(
        self,
        limit: int = 100,
        level: Optional[str] = None,
        category: Optional[str] = None,
    ) -> List[SystemLogEntry]:
        """Newest first, optionally filtered."""
        with self._lock:
            entries = list(self._logs)
        if level:
            entries = [e for e in entries if e.level == level]
        if category:
            entries = [e for e in entries if e.category == category]
        return entries[:max(limit, 0)]

    def actions(self, limit: int = 100, action_type: Optional[str] = None) -> List[TrackedAction]:
        with self._lock:
            actions = list(self._actions)
        if action_type:
            actions = [a for a in actions if a.type == action_type]
        return actions[:max(limit, 0)]

    def analytics(self, now: Optional[datetime] = None) -> Dict[str, Any]:
        """
        Dashboard summary over what is currently retained.

        errorRate is error-level entries per analysis, as a percentage.
        """
        now = now or utcnow()
        with self._lock:
            logs = list(self._logs)
            actions = list(self._actions)

        analyses = [a for a in actions if a.type == "analysis"]
        today = [a for a in analyses if a.timestamp.date() == now.date()]
        errors = [e for e in logs if e.level == "error"]

        feature_counts: Counter = Counter()
        for action in analyses:
            features = action.details.get("features") or [action.details.get("type")]
            feature_counts.update(f for f in features if f)

        return {
            "totalAnalyses": len(analyses),
            "analysesToday": len(today),
            "activeUsers": len({a.user_id for a in actions if a.user_id}),
            "errorCount": len(errors),
            "errorRate": round(len(errors) / max(len(analyses), 1) * 100, 2),
            "topFeatures": [
                {"feature": name, "count": count}
                for name, count in feature_counts.most_common(5)
            ],
            "retained": {"logs": len(logs), "actions": len(actions), "capacity": self.capacity},
        }

    def clear(self) -> None:
        with self._lock:
            self._logs.clear()
            self._actions.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._logs)


def create_event_log(config: Optional[Dict[str, Any]] = None, sink: Optional[EventSink] = None) -> EventLog:
    """Factory from the 'monitoring' config section."""
    config = config or {}
    return EventLog(capacity=config.get("capacity", 1000), sink=sink)
