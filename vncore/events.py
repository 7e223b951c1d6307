"""
Event types and a small publish/subscribe bus.

The dialogue core never renders: everything the host needs to draw, play or
log arrives as one of these events.

    bus = EventBus()
    bus.subscribe(DialogueEvent.NODE_ENTERED, lambda ev: print(ev["node"].line.text))
"""

from __future__ import annotations

import logging
import threading
from collections import deque
from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Any, Callable, Deque, Dict, List, Tuple

logger = logging.getLogger(__name__)


class DialogueEvent(Enum):
    NODE_ENTERED = auto()       # node
    REVEAL_PROGRESS = auto()    # node, count
    CHOICES_AVAILABLE = auto()  # node, choices
    DIALOGUE_ENDED = auto()     # node (last node shown, may be None)
    SCENE_TRANSITION = auto()   # node, tag


@dataclass
class Event:
    type: Enum
    data: Dict[str, Any] = field(default_factory=dict)
    source: Any = None          # Emitting cursor, if any

    def get(self, key: str, default: Any = None) -> Any:
        return self.data.get(key, default)

    def __getitem__(self, key: str) -> Any:
        return self.data[key]


EventHandler = Callable[[Event], None]


class EventBus:
    """
    Handlers run in subscription order. Events published from inside a
    handler are queued and delivered after the current one finishes, so
    every subscriber sees events in the order they happened.

    Safe to share between threads: one thread drains the queue at a time and
    anything published meanwhile is delivered by that thread before it stops.
    Handlers are called without the bus lock held.
    """
    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._handlers: Dict[Enum, List[Tuple[EventHandler, bool]]] = {}
        self._queue: Deque[Event] = deque()
        self._dispatching = False

    def subscribe(self, event_type: Enum, handler: EventHandler, one_shot: bool = False) -> None:
        with self._lock:
            self._handlers.setdefault(event_type, []).append((handler, one_shot))

    def unsubscribe(self, event_type: Enum, handler: EventHandler) -> None:
        with self._lock:
            handlers = self._handlers.get(event_type)
            if not handlers:
                return
            self._handlers[event_type] = [(h, o) for h, o in handlers if h != handler]

    def clear(self, event_type: Enum | None = None) -> None:
        with self._lock:
            if event_type is None:
                self._handlers.clear()
            else:
                self._handlers.pop(event_type, None)

    def publish(self, event_type: Enum, source: Any = None, **data: Any) -> Event:
        event = Event(type=event_type, data=data, source=source)
        with self._lock:
            self._queue.append(event)
            if self._dispatching:
                return event
            self._dispatching = True
        self._drain()
        return event

    # ---------- internals ----------
    def _drain(self) -> None:
        finished = False
        try:
            while True:
                with self._lock:
                    if not self._queue:
                        self._dispatching = False
                        finished = True
                        return
                    event = self._queue.popleft()
                self._dispatch(event)
        finally:
            if not finished:
                with self._lock:
                    self._dispatching = False

    def _dispatch(self, event: Event) -> None:
        with self._lock:
            handlers = list(self._handlers.get(event.type, ()))
        for handler, one_shot in handlers:
            if one_shot:
                self.unsubscribe(event.type, handler)
            try:
                handler(event)
            except Exception:
                logger.exception("Error in handler for %s", event.type.name)
