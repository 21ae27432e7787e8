"""
Realtime WebSocket Protocol

Defines the envelope, action tags and payload models exchanged with the hub.
Every frame in either direction is a UTF-8 JSON object of the form
``{"action": <ActionTag>, "data": <payload>}``; the payload shape is
determined by the action.
"""

import json
from enum import Enum
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from forestbot.exceptions import ProtocolError


class ActionTag(str, Enum):
    """Envelope actions understood by the hub."""

    INBOUND_MINECRAFT_CHAT = "inbound_minecraft_chat"
    INBOUND_DISCORD_CHAT = "inbound_discord_chat"
    SEND_UPDATE_PLAYER_LIST = "send_update_player_list"
    MINECRAFT_ADVANCEMENT = "minecraft_advancement"
    MINECRAFT_PLAYER_JOIN = "minecraft_player_join"
    MINECRAFT_PLAYER_LEAVE = "minecraft_player_leave"
    MINECRAFT_PLAYER_KILL = "minecraft_player_kill"
    MINECRAFT_PLAYER_DEATH = "minecraft_player_death"
    NEW_NAME = "new_name"
    NEW_USER = "new_user"
    ERROR = "error"
    KEY_ACCEPTED = "key-accepted"

    @classmethod
    def lookup(cls, value: str) -> "ActionTag | None":
        try:
            return cls(value)
        except ValueError:
            return None


class ClientType(str, Enum):
    """Value of the ``client-type`` connect header."""

    MINECRAFT = "minecraft"
    DISCORD = "discord"


class Payload(BaseModel):
    """Base for payloads. Unknown fields are kept so payloads relay unmodified."""

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    def to_wire(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True, exclude_unset=True)


# ══════════════════════════════════════════════════════════════
# Payloads
# ══════════════════════════════════════════════════════════════


class MinecraftChatMessage(Payload):
    """A chat line spoken on a Minecraft server."""

    name: str
    message: str
    date: str
    mc_server: str
    uuid: str


class DiscordChatMessage(Payload):
    """A chat line relayed from a Discord channel."""

    message: str
    username: str
    timestamp: str
    mc_server: str
    channel_id: str
    guild_id: str
    guild_name: str


class MinecraftAdvancementMessage(Payload):
    """A player earned an advancement."""

    username: str
    advancement: str
    time: int | float
    mc_server: str
    uuid: str
    id: int | None = None


class _PlayerEvent(Payload):
    username: str
    uuid: str
    timestamp: str
    server: str


class MinecraftPlayerJoinMessage(_PlayerEvent):
    """A player joined a server."""


class MinecraftPlayerLeaveMessage(_PlayerEvent):
    """A player left a server."""


class MinecraftPlayerKillMessage(_PlayerEvent):
    """A player killed another player."""


class MinecraftPlayerDeathMessage(Payload):
    """A player died.

    ``murderer`` is only present on pvp deaths. When sending, it is the
    killer's username; the hub may relay it back as ``{"String", "Valid"}``.
    """

    victim: str
    death_message: str
    murderer: str | dict[str, Any] | None = None
    time: int | float
    type: Literal["pve", "pvp"]
    mc_server: str
    id: int | None = None
    victim_uuid: str = Field(alias="victimUUID")
    murderer_uuid: str | None = Field(default=None, alias="murdererUUID")


class Player(Payload):
    """One entry of the online player list."""

    username: str
    uuid: str
    latency: int | float
    server: str


class PlayerListUpdate(Payload):
    """The full online player list of a server."""

    players: list[Player] = Field(default_factory=list)


class NewUserData(Payload):
    """A player was seen for the first time."""

    user: str | dict[str, Any]
    server: str


class NewUserNameData(Payload):
    """A known player changed their username."""

    old_name: str
    new_name: str
    server: str


# Action -> payload model. None means the data is passed through verbatim.
PAYLOAD_MODELS: dict[ActionTag, type[Payload] | None] = {
    ActionTag.INBOUND_MINECRAFT_CHAT: MinecraftChatMessage,
    ActionTag.INBOUND_DISCORD_CHAT: DiscordChatMessage,
    ActionTag.SEND_UPDATE_PLAYER_LIST: PlayerListUpdate,
    ActionTag.MINECRAFT_ADVANCEMENT: MinecraftAdvancementMessage,
    ActionTag.MINECRAFT_PLAYER_JOIN: MinecraftPlayerJoinMessage,
    ActionTag.MINECRAFT_PLAYER_LEAVE: MinecraftPlayerLeaveMessage,
    ActionTag.MINECRAFT_PLAYER_KILL: MinecraftPlayerKillMessage,
    ActionTag.MINECRAFT_PLAYER_DEATH: MinecraftPlayerDeathMessage,
    ActionTag.NEW_NAME: NewUserNameData,
    ActionTag.NEW_USER: NewUserData,
    ActionTag.ERROR: None,
    ActionTag.KEY_ACCEPTED: None,
}


# ══════════════════════════════════════════════════════════════
# Envelope
# ══════════════════════════════════════════════════════════════


class Envelope(BaseModel):
    """A single realtime frame."""

    model_config = ConfigDict(extra="allow")

    action: str = Field(min_length=1)
    data: Any = None

    @property
    def tag(self) -> ActionTag | None:
        """The action as an ActionTag, or None for actions outside the closed set."""
        return ActionTag.lookup(self.action)

    def to_json(self) -> str:
        data = self.data.to_wire() if isinstance(self.data, Payload) else self.data
        return json.dumps({"action": self.action, "data": data})


def build_envelope(action: ActionTag, data: Payload | dict[str, Any]) -> Envelope:
    """Build an outbound envelope, validating dict data against the action's model."""
    model = PAYLOAD_MODELS[action]
    if model is not None and not isinstance(data, Payload):
        data = model.model_validate(data)
    return Envelope(action=action.value, data=data)


def parse_frame(raw: str | bytes) -> Envelope:
    """Parse a text frame into an envelope.

    Raises:
        ProtocolError: the frame is not UTF-8 JSON, not an object, or has no action
    """
    if isinstance(raw, bytes):
        try:
            raw = raw.decode("utf-8")
        except UnicodeDecodeError as e:
            raise ProtocolError("Frame is not valid UTF-8", raw=raw) from e

    try:
        decoded = json.loads(raw)
    except json.JSONDecodeError as e:
        raise ProtocolError(f"Frame is not valid JSON: {e.msg}", raw=raw) from e

    if not isinstance(decoded, dict):
        raise ProtocolError("Frame is not a JSON object", raw=raw)

    try:
        return Envelope.model_validate(decoded)
    except ValidationError as e:
        raise ProtocolError("Frame has no usable action", raw=raw) from e


def decode_payload(tag: ActionTag, data: Any) -> Any:
    """Resolve an envelope's data into the payload model for its action.

    Raises:
        ProtocolError: the data does not match the action's payload shape
    """
    model = PAYLOAD_MODELS[tag]
    if model is None:
        return data
    try:
        return model.model_validate(data)
    except ValidationError as e:
        raise ProtocolError(
            f"Invalid payload for action {tag.value!r}: {e.error_count()} error(s)",
            raw=data,
        ) from e
