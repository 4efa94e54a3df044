from __future__ import annotations

import asyncio
import inspect
import logging
import threading
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Iterable, Optional, Union

from pydantic import BaseModel

from netsim.utils.metrics import EVENT_DELIVERY_FAILURES_TOTAL, EVENTS_PUBLISHED_TOTAL


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Event:
    kind: str
    payload: BaseModel
    room: Optional[str] = None

    def to_message(self) -> dict[str, Any]:
        message: dict[str, Any] = {"event": self.kind, "payload": self.payload.model_dump(mode="json")}
        if self.room is not None:
            message["room"] = self.room
        return message


Listener = Callable[[Event], Union[None, Awaitable[None]]]


@dataclass(eq=False)
class _Subscription:
    events: set[str]
    loop: asyncio.AbstractEventLoop
    room: Optional[str] = None
    queue: Optional["asyncio.Queue[dict[str, Any]]"] = None
    listener: Optional[Listener] = None
    name: str = ""
    _tasks: set[asyncio.Task] = field(default_factory=set)

    def accepts(self, kind: str, room: Optional[str]) -> bool:
        if kind not in self.events:
            return False
        if room is None or self.room is None:
            return True
        return room == self.room


class InMemoryEventBus:
    """Best-effort in-process event bus.

    Publishing never runs subscriber code inline: delivery is scheduled on the
    subscriber's own event loop. Queue subscribers get at-most-once delivery
    (a full queue drops the message); listener failures are logged and never
    reach the publisher.
    """

    def __init__(self, *, queue_max: int = 100) -> None:
        self._lock = threading.Lock()
        self._subs: list[_Subscription] = []
        self._queue_max = max(1, int(queue_max))

    async def subscribe(
        self,
        *,
        events: Iterable[str],
        room: Optional[str] = None,
        queue_max: Optional[int] = None,
    ) -> _Subscription:
        loop = asyncio.get_running_loop()
        maxsize = self._queue_max if queue_max is None else max(1, int(queue_max))
        queue: asyncio.Queue[dict[str, Any]] = asyncio.Queue(maxsize=maxsize)
        sub = _Subscription(events=set(events), loop=loop, room=room, queue=queue, name="queue")
        with self._lock:
            self._subs.append(sub)
        return sub

    async def add_listener(
        self,
        events: Iterable[str],
        listener: Listener,
        *,
        room: Optional[str] = None,
    ) -> _Subscription:
        loop = asyncio.get_running_loop()
        sub = _Subscription(
            events=set(events),
            loop=loop,
            room=room,
            listener=listener,
            name=getattr(listener, "__qualname__", repr(listener)),
        )
        with self._lock:
            self._subs.append(sub)
        return sub

    async def unsubscribe(self, sub: _Subscription) -> None:
        with self._lock:
            try:
                self._subs.remove(sub)
            except ValueError:
                return
        for task in list(sub._tasks):
            task.cancel()

    def subscriber_count(self, kind: Optional[str] = None) -> int:
        with self._lock:
            if kind is None:
                return len(self._subs)
            return sum(1 for s in self._subs if kind in s.events)

    def publish(self, kind: str, payload: BaseModel, *, room: Optional[str] = None) -> None:
        event = Event(kind=kind, payload=payload, room=room)
        with self._lock:
            subs = [s for s in self._subs if s.accepts(kind, room)]

        EVENTS_PUBLISHED_TOTAL.labels(event=kind).inc()
        if not subs:
            return

        message: Optional[dict[str, Any]] = None
        for sub in subs:
            try:
                if sub.queue is not None:
                    if message is None:
                        message = event.to_message()
                    sub.loop.call_soon_threadsafe(self._offer, sub, message)
                else:
                    sub.loop.call_soon_threadsafe(self._invoke, sub, event)
            except RuntimeError:
                # Subscriber loop is closed; the subscription is dead.
                logger.warning("event_bus.loop_closed event=%s subscriber=%s", kind, sub.name)
                EVENT_DELIVERY_FAILURES_TOTAL.labels(event=kind, reason="loop_closed").inc()
                with self._lock:
                    if sub in self._subs:
                        self._subs.remove(sub)

    def _offer(self, sub: _Subscription, message: dict[str, Any]) -> None:
        assert sub.queue is not None
        try:
            sub.queue.put_nowait(message)
        except asyncio.QueueFull:
            logger.warning(
                "event_bus.queue_full_drop event=%s qsize=%d", message.get("event"), sub.queue.qsize()
            )
            EVENT_DELIVERY_FAILURES_TOTAL.labels(event=str(message.get("event")), reason="queue_full").inc()

    def _invoke(self, sub: _Subscription, event: Event) -> None:
        assert sub.listener is not None
        try:
            result = sub.listener(event)
        except Exception:
            logger.exception("event_bus.listener_failed event=%s listener=%s", event.kind, sub.name)
            EVENT_DELIVERY_FAILURES_TOTAL.labels(event=event.kind, reason="listener_error").inc()
            return

        if inspect.isawaitable(result):
            task = asyncio.ensure_future(result, loop=sub.loop)
            sub._tasks.add(task)
            task.add_done_callback(lambda t: self._on_listener_done(sub, event, t))

    def _on_listener_done(self, sub: _Subscription, event: Event, task: asyncio.Task) -> None:
        sub._tasks.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.error(
                "event_bus.listener_failed event=%s listener=%s",
                event.kind,
                sub.name,
                exc_info=(type(exc), exc, exc.__traceback__),
            )
            EVENT_DELIVERY_FAILURES_TOTAL.labels(event=event.kind, reason="listener_error").inc()
