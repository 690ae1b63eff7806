"""Message sources the order event consumer reads from.

A source models one partition of the order events topic: an ordered,
offset-addressed stream with at-least-once semantics. Offsets are committed
only after a message has been handled, so a restart (``rewind``) replays
everything after the last commit.
"""

import threading
from abc import ABC, abstractmethod
from collections import deque
from dataclasses import dataclass, field


@dataclass(frozen=True)
class ConsumedMessage:
    topic: str
    partition: int
    offset: int
    payload: bytes | str
    key: str | None = None
    headers: dict = field(default_factory=dict)


class MessageSourceError(Exception):
    """The source could not deliver or acknowledge a message."""


class MessageSource(ABC):
    """One partition of an order event topic."""

    topic: str
    partition: int

    @abstractmethod
    def poll(self, timeout: float) -> ConsumedMessage | None:
        """Return the next message, or None if none arrived within ``timeout``."""

    @abstractmethod
    def commit(self, message: ConsumedMessage) -> None:
        """Record ``message`` as handled."""

    def close(self) -> None:
        pass


class InMemoryMessageSource(MessageSource):
    """Thread-safe in-process partition, used by the replay CLI and tests."""

    def __init__(self, topic: str, partition: int = 0) -> None:
        self.topic = topic
        self.partition = partition
        self._log: list[tuple[bytes | str, str | None]] = []
        self._pending: deque[int] = deque()
        self._committed = -1
        self._cond = threading.Condition()
        self._closed = False

    def publish(self, payload: bytes | str, key: str | None = None) -> int:
        """Append ``payload`` to the partition and return its offset."""
        with self._cond:
            offset = len(self._log)
            self._log.append((payload, key))
            self._pending.append(offset)
            self._cond.notify()
            return offset

    def poll(self, timeout: float) -> ConsumedMessage | None:
        with self._cond:
            if not self._pending and not self._closed:
                self._cond.wait(timeout)
            if not self._pending:
                return None
            offset = self._pending.popleft()
            payload, key = self._log[offset]
            return ConsumedMessage(
                topic=self.topic,
                partition=self.partition,
                offset=offset,
                payload=payload,
                key=key,
            )

    def commit(self, message: ConsumedMessage) -> None:
        with self._cond:
            self._committed = max(self._committed, message.offset)

    @property
    def committed_offset(self) -> int:
        """Highest committed offset, -1 when nothing was committed."""
        with self._cond:
            return self._committed

    @property
    def lag(self) -> int:
        with self._cond:
            return len(self._pending)

    def rewind(self, offset: int | None = None) -> None:
        """Redeliver from ``offset``, or from just after the last commit."""
        with self._cond:
            start = self._committed + 1 if offset is None else offset
            self._pending = deque(range(start, len(self._log)))
            self._cond.notify_all()

    def close(self) -> None:
        with self._cond:
            self._closed = True
            self._cond.notify_all()
