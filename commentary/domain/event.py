"""Domain events and their synchronous dispatcher.

Services publish an event once the write it describes has committed.
Observers (notification senders, audit logs, cache invalidation) subscribe
per event type:

    bus = EventBus()
    bus.subscribe(CommentLiked, lambda event: notify(event.like))
"""

import inspect
from collections import defaultdict
from typing import Any, Awaitable, Callable, Type, TypeVar, Union

import logfire
from pydantic import Field

from commentary.domain.model import Comment, Like
from commentary.domain.model.common import DomainModel
from commentary.domain.value import CommentId


class DomainEvent(DomainModel):
    """Base class for all domain events."""

    pass


class CommentCreated(DomainEvent):
    """A comment or reply was created."""

    comment: Comment


class CommentDeleted(DomainEvent):
    """A comment was deleted together with its replies."""

    comment: Comment
    removed_reply_ids: list[CommentId] = Field(default_factory=list)


class CommentLiked(DomainEvent):
    """A user liked a comment."""

    like: Like


class CommentUnliked(DomainEvent):
    """A user removed their like from a comment."""

    like: Like


E = TypeVar("E", bound=DomainEvent)
Handler = Callable[[Any], Union[None, Awaitable[None]]]


class EventBus:
    """In-process synchronous event dispatcher.

    Handlers may be plain functions or coroutine functions. A failing handler
    is logged and does not stop delivery to the remaining handlers, since the
    write it observes has already committed.
    """

    def __init__(self) -> None:
        self._handlers: dict[Type[DomainEvent], list[Handler]] = defaultdict(list)

    def subscribe(self, event_type: Type[E], handler: Callable[[E], Any]) -> None:
        """Register a handler for an event type (and its subclasses)."""
        self._handlers[event_type].append(handler)

    def unsubscribe(self, event_type: Type[E], handler: Callable[[E], Any]) -> None:
        """Remove a previously registered handler."""
        handlers = self._handlers.get(event_type, [])
        if handler in handlers:
            handlers.remove(handler)

    async def publish(self, event: DomainEvent) -> None:
        """Deliver an event to every matching handler, in subscription order."""
        event_name = type(event).__name__
        for event_type, handlers in list(self._handlers.items()):
            if not isinstance(event, event_type):
                continue
            for handler in list(handlers):
                try:
                    result = handler(event)
                    if inspect.isawaitable(result):
                        await result
                except Exception:
                    logfire.exception(
                        "Event handler failed",
                        event=event_name,
                        handler=getattr(handler, "__qualname__", repr(handler)),
                    )
