"""ForestBot hub client: HTTP stats API and realtime event relay."""

__version__ = "0.1.0"

from .api import ForestBotAPI
from .config import Settings, get_settings
from .exceptions import ForestBotError, ProtocolError, TransportError
from .realtime import Event, EventEmitter, RealtimeClient

__all__ = [
    "ForestBotAPI",
    "RealtimeClient",
    "Event",
    "EventEmitter",
    "Settings",
    "get_settings",
    "ForestBotError",
    "ProtocolError",
    "TransportError",
]
