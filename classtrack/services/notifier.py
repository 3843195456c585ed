"""Real-time notification collaborator.

The transport (websocket, push) lives outside this package; this module
defines the interface the services call and a default that logs and keeps
recent messages in memory.
"""
from __future__ import annotations

import logging
import threading
from abc import ABC, abstractmethod
from collections import deque

logger = logging.getLogger(__name__)


class Notifier(ABC):
    @abstractmethod
    def notify_teacher(self, teacher_id: int, payload: dict) -> None:
        ...

    @abstractmethod
    def notify_student(self, session_id: int, payload: dict) -> None:
        ...


class LogNotifier(Notifier):
    """Logs each notification and buffers the most recent ones."""

    def __init__(self, maxlen: int = 200):
        self.sent = deque(maxlen=maxlen)
        self._lock = threading.Lock()

    def _record(self, channel, target, payload):
        with self._lock:
            self.sent.append((channel, target, payload))
        logger.info(f"Notify {channel} {target}: {payload.get('type')}")

    def notify_teacher(self, teacher_id, payload):
        self._record('teacher', teacher_id, payload)

    def notify_student(self, session_id, payload):
        self._record('student', session_id, payload)


_default_notifier = LogNotifier()


def get_notifier() -> Notifier:
    return _default_notifier
