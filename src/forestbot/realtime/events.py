"""
Realtime Event Subscription

A small observer registry shared by the realtime client and the API facade.
Event names are the inbound action tags plus the connection lifecycle events.
"""

import asyncio
from collections import defaultdict
from enum import Enum
from typing import Any, Awaitable, Callable

import structlog

from .protocol import ActionTag

logger = structlog.get_logger()

EventHandler = Callable[[Any], Awaitable[None] | None]


class Event(str, Enum):
    """Events emitted on the realtime channel."""

    # Connection lifecycle
    OPEN = "websocket_open"
    CLOSE = "websocket_close"
    ERROR = "websocket_error"
    UNKNOWN_MESSAGE = "unknown_message"

    # Relayed hub events, named after their action tag
    INBOUND_MINECRAFT_CHAT = ActionTag.INBOUND_MINECRAFT_CHAT.value
    INBOUND_DISCORD_CHAT = ActionTag.INBOUND_DISCORD_CHAT.value
    SEND_UPDATE_PLAYER_LIST = ActionTag.SEND_UPDATE_PLAYER_LIST.value
    MINECRAFT_ADVANCEMENT = ActionTag.MINECRAFT_ADVANCEMENT.value
    MINECRAFT_PLAYER_JOIN = ActionTag.MINECRAFT_PLAYER_JOIN.value
    MINECRAFT_PLAYER_LEAVE = ActionTag.MINECRAFT_PLAYER_LEAVE.value
    MINECRAFT_PLAYER_KILL = ActionTag.MINECRAFT_PLAYER_KILL.value
    MINECRAFT_PLAYER_DEATH = ActionTag.MINECRAFT_PLAYER_DEATH.value
    NEW_NAME = ActionTag.NEW_NAME.value
    NEW_USER = ActionTag.NEW_USER.value
    KEY_ACCEPTED = ActionTag.KEY_ACCEPTED.value

    @classmethod
    def for_action(cls, tag: ActionTag) -> "Event":
        """Event emitted for an inbound action. ``error`` maps to the connection error event."""
        if tag is ActionTag.ERROR:
            return cls.ERROR
        return cls(tag.value)


class _Registration:
    __slots__ = ("handler", "once")

    def __init__(self, handler: EventHandler, once: bool) -> None:
        self.handler = handler
        self.once = once


class EventEmitter:
    """
    Registry of event handlers.

    Handlers run one after another in registration order. Coroutine handlers
    are awaited before ``emit`` returns, so a slow handler delays the next
    frame rather than being reordered with it.

    Usage:
        events = EventEmitter()
        events.on(Event.MINECRAFT_PLAYER_JOIN, handle_join)
        await events.emit(Event.MINECRAFT_PLAYER_JOIN, payload)
    """

    def __init__(self) -> None:
        self._handlers: dict[str, list[_Registration]] = defaultdict(list)

    @staticmethod
    def _key(event: Event | str) -> str:
        return event.value if isinstance(event, Event) else event

    def on(self, event: Event | str, handler: EventHandler) -> EventHandler:
        """Register a handler and return it."""
        self._handlers[self._key(event)].append(_Registration(handler, once=False))
        return handler

    def once(self, event: Event | str, handler: EventHandler) -> EventHandler:
        """Register a handler that is removed after its first call."""
        self._handlers[self._key(event)].append(_Registration(handler, once=True))
        return handler

    def off(self, event: Event | str, handler: EventHandler) -> None:
        """Remove the earliest registration of a handler. Unknown handlers are a no-op."""
        registrations = self._handlers.get(self._key(event), [])
        for registration in registrations:
            if registration.handler == handler:
                registrations.remove(registration)
                return

    def listeners(self, event: Event | str) -> list[EventHandler]:
        return [r.handler for r in self._handlers.get(self._key(event), [])]

    async def emit(self, event: Event | str, payload: Any = None) -> int:
        """
        Call every handler registered for ``event``.

        Returns:
            Number of handlers called
        """
        key = self._key(event)
        registrations = self._handlers.get(key, [])
        called = 0

        for registration in list(registrations):
            if registration.once:
                if registration not in registrations:
                    continue
                registrations.remove(registration)
            handler = registration.handler
            try:
                result = handler(payload)
                if asyncio.iscoroutine(result):
                    await result
            except Exception as e:
                logger.error(
                    "Realtime event handler failed",
                    realtime_event=key,
                    handler=getattr(handler, "__qualname__", repr(handler)),
                    error=str(e),
                )
            called += 1

        return called
