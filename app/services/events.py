"""
In-process domain event bus for the leave workflow.

Services collect events while their transaction is open and publish them
only after commit. Subscribers (notification dispatch) run best-effort:
a failing handler is logged and never reaches the caller. HTTP endpoints
publish through BackgroundPublisher so that subscribers run after the
response has been sent.
"""
import logging
from collections import defaultdict
from dataclasses import dataclass
from typing import Callable, DefaultDict, Iterable, List, Optional, Type, Union
from fastapi import BackgroundTasks

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LeaveRequested:
    """A phase became active; its approver must act."""
    leave_request_id: int
    requester_id: int
    approval_id: int
    approver_id: int


@dataclass(frozen=True)
class LeaveApproved:
    """The last phase approved; the request is APPROVED."""
    leave_request_id: int
    requester_id: int
    approver_id: int


@dataclass(frozen=True)
class LeaveRejected:
    leave_request_id: int
    requester_id: int
    approver_id: int
    reason: Optional[str]


Handler = Callable[[object], None]


class EventBus:
    def __init__(self) -> None:
        self._handlers: DefaultDict[type, List[Handler]] = defaultdict(list)

    def subscribe(self, event_type: Type, handler: Handler) -> None:
        if handler not in self._handlers[event_type]:
            self._handlers[event_type].append(handler)

    def unsubscribe(self, event_type: Type, handler: Handler) -> None:
        if handler in self._handlers[event_type]:
            self._handlers[event_type].remove(handler)

    def clear(self) -> None:
        self._handlers.clear()

    def publish(self, event: object) -> None:
        handlers = list(self._handlers.get(type(event), []))
        if not handlers:
            logger.debug("No subscribers for %s", type(event).__name__)
            return
        for handler in handlers:
            try:
                handler(event)
            except Exception:
                logger.exception(
                    "Event handler %s failed for %s",
                    getattr(handler, "__name__", handler), event,
                )

    def publish_all(self, events: Iterable[object]) -> None:
        for event in events:
            self.publish(event)


event_bus = EventBus()


class BackgroundPublisher:
    """
    Publishes through an EventBus from FastAPI background tasks

    Events handed over during a request are delivered after the response
    has been sent, on the threadpool, so slow subscribers never hold up
    the caller.
    """

    def __init__(self, bus: EventBus, background_tasks: BackgroundTasks) -> None:
        self._bus = bus
        self._background_tasks = background_tasks

    def publish(self, event: object) -> None:
        self._background_tasks.add_task(self._bus.publish, event)

    def publish_all(self, events: Iterable[object]) -> None:
        events = list(events)
        if events:
            self._background_tasks.add_task(self._bus.publish_all, events)


Publisher = Union[EventBus, BackgroundPublisher]
