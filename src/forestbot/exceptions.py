"""Errors surfaced through the realtime channel's ``websocket_error`` event."""

from typing import Any


class ForestBotError(Exception):
    """Base class for client errors."""


class ProtocolError(ForestBotError):
    """An inbound frame could not be turned into an envelope."""

    def __init__(self, message: str, raw: Any = None) -> None:
        super().__init__(message)
        self.raw = raw


class TransportError(ForestBotError):
    """The websocket could not be opened or written to."""

    def __init__(self, message: str, cause: BaseException | None = None) -> None:
        super().__init__(message)
        self.cause = cause
