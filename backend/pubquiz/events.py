from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional, Protocol

from pydantic import BaseModel

from .db import settings
from .utils import now_ts

logger = logging.getLogger(__name__)


class Message(BaseModel):
    event: str
    data: Any = None
    unicast: bool = False


class Subscriber(Protocol):
    async def send_json(self, data: Any) -> None: ...


class Hub:
    """Fan messages out to websocket subscribers and keep a log for polling clients."""

    def __init__(self, max_events: Optional[int] = None):
        self.max_events = max_events or settings.MAX_EVENTS
        self.subscribers: Dict[str, Subscriber] = {}
        self._events: List[Dict[str, Any]] = []
        self._seq = 0

    def subscribe(self, connection_id: str, subscriber: Subscriber) -> None:
        self.subscribers[connection_id] = subscriber

    def unsubscribe(self, connection_id: str) -> None:
        self.subscribers.pop(connection_id, None)

    async def publish(self, messages: List[Message], origin: Optional[str] = None) -> None:
        for message in messages:
            frame = {"event": message.event, "data": message.data}
            if message.unicast:
                if origin is not None and origin in self.subscribers:
                    await self._send(origin, frame)
                continue

            self._append(frame)
            for connection_id in list(self.subscribers):
                await self._send(connection_id, frame)

    async def _send(self, connection_id: str, frame: Dict[str, Any]) -> None:
        subscriber = self.subscribers.get(connection_id)
        if subscriber is None:
            return
        try:
            await subscriber.send_json(frame)
        except Exception as exc:
            logger.warning("Dropping subscriber %s: %s", connection_id, exc)
            self.unsubscribe(connection_id)

    def _append(self, frame: Dict[str, Any]) -> int:
        self._seq += 1
        self._events.append({"seq": self._seq, "timestamp": now_ts(), "payload": frame})
        if len(self._events) > self.max_events:
            self._events = self._events[-self.max_events:]
        return self._seq

    def list(self, after: Optional[int] = None, limit: int = 200) -> List[Dict[str, Any]]:
        """Return logged broadcasts that occur after the given sequence."""
        events = [e for e in self._events if after is None or e["seq"] > after]
        return events[:limit]

    def reset(self) -> None:
        """Drop the log and emit a marker so polling clients discard derived state."""
        self._events = []
        self._append({"event": "sessionReset", "data": None})
