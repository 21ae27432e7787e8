"""
ForestBot Realtime Module

WebSocket relay of chat, join/leave, kill/death and advancement events
between Minecraft servers, Discord and the hub.
"""

from .client import CloseInfo, ConnectionState, RealtimeClient
from .events import Event, EventEmitter
from .protocol import (
    ActionTag,
    ClientType,
    DiscordChatMessage,
    Envelope,
    MinecraftAdvancementMessage,
    MinecraftChatMessage,
    MinecraftPlayerDeathMessage,
    MinecraftPlayerJoinMessage,
    MinecraftPlayerKillMessage,
    MinecraftPlayerLeaveMessage,
    NewUserData,
    NewUserNameData,
    Player,
    PlayerListUpdate,
)

__all__ = [
    # Connection
    "RealtimeClient",
    "ConnectionState",
    "CloseInfo",
    # Events
    "Event",
    "EventEmitter",
    # Protocol
    "ActionTag",
    "ClientType",
    "Envelope",
    "MinecraftChatMessage",
    "DiscordChatMessage",
    "MinecraftAdvancementMessage",
    "MinecraftPlayerJoinMessage",
    "MinecraftPlayerLeaveMessage",
    "MinecraftPlayerKillMessage",
    "MinecraftPlayerDeathMessage",
    "Player",
    "PlayerListUpdate",
    "NewUserData",
    "NewUserNameData",
]
