"""
Realtime Hub Client

Owns the websocket connection to the ForestBot hub. The client authenticates
with connect-time headers, relays every inbound envelope to the shared event
emitter and keeps the connection alive with a periodic ping.

There is no reconnect: once the connection closes the client stays closed
and a new client has to be created.
"""

import asyncio
from dataclasses import dataclass
from enum import Enum
from typing import Any, Awaitable, Callable

import structlog
from websockets.asyncio.client import ClientConnection
from websockets.asyncio.client import connect as websocket_connect
from websockets.exceptions import ConcurrencyError, ConnectionClosed, WebSocketException

from forestbot.exceptions import ProtocolError, TransportError
from .events import Event, EventEmitter
from .protocol import (
    ActionTag,
    ClientType,
    DiscordChatMessage,
    MinecraftAdvancementMessage,
    MinecraftChatMessage,
    MinecraftPlayerDeathMessage,
    MinecraftPlayerJoinMessage,
    MinecraftPlayerLeaveMessage,
    Payload,
    Player,
    PlayerListUpdate,
    build_envelope,
    decode_payload,
    parse_frame,
)

logger = structlog.get_logger()

CONNECT_PATH = "/websocket/connect"
PING_PAYLOAD = "pingdata"
DEFAULT_PING_INTERVAL = 5.0

Connector = Callable[..., Awaitable[ClientConnection]]


class ConnectionState(str, Enum):
    """Lifecycle of a realtime client. Transitions only move forward."""

    IDLE = "idle"
    CONNECTING = "connecting"
    OPEN = "open"
    CLOSED = "closed"


@dataclass(frozen=True)
class CloseInfo:
    """Payload of the ``websocket_close`` event."""

    code: int | None
    reason: str


class RealtimeClient:
    """
    Realtime connection to the hub for one Minecraft server or Discord bridge.

    The connection starts as soon as the client is created inside a running
    event loop. Created outside one, call ``start()`` once a loop is running.

    Usage:
        client = RealtimeClient(
            websocket_url="wss://hub.example.com/api/v1",
            api_key=key,
            mc_server="survival",
        )
        client.events.on(Event.MINECRAFT_PLAYER_JOIN, on_join)
        await client.send_player_join(join)
    """

    def __init__(
        self,
        websocket_url: str,
        api_key: str,
        mc_server: str,
        is_bot_client: bool = True,
        *,
        events: EventEmitter | None = None,
        ping_interval: float = DEFAULT_PING_INTERVAL,
        connector: Connector = websocket_connect,
        autostart: bool = True,
    ) -> None:
        self.websocket_url = websocket_url.rstrip("/")
        self.mc_server = mc_server
        self.client_type = ClientType.MINECRAFT if is_bot_client else ClientType.DISCORD
        self.ping_interval = ping_interval
        self.events = events or EventEmitter()

        self._api_key = api_key
        self._connector = connector
        self._socket: ClientConnection | None = None
        self._state = ConnectionState.IDLE
        self._task: asyncio.Task[None] | None = None
        self._keepalive_task: asyncio.Task[None] | None = None

        self.close_code: int | None = None
        self.close_reason: str | None = None

        if autostart:
            try:
                asyncio.get_running_loop()
            except RuntimeError:
                logger.debug(
                    "No running event loop, realtime connection waits for start()",
                    mc_server=mc_server,
                )
            else:
                self.start()

    # ──────────────────────────────────────────────────────────
    # State
    # ──────────────────────────────────────────────────────────

    @property
    def state(self) -> ConnectionState:
        return self._state

    @property
    def is_connected(self) -> bool:
        return self._state is ConnectionState.OPEN

    @property
    def url(self) -> str:
        return f"{self.websocket_url}{CONNECT_PATH}"

    @property
    def headers(self) -> dict[str, str]:
        """Identity asserted to the hub when the connection is opened."""
        return {
            "x-api-key": self._api_key,
            "client-type": self.client_type.value,
            "mc_server": self.mc_server,
        }

    # ──────────────────────────────────────────────────────────
    # Lifecycle
    # ──────────────────────────────────────────────────────────

    def start(self) -> asyncio.Task[None]:
        """
        Begin connecting. Calling it again returns the running task.

        Raises:
            RuntimeError: there is no running event loop, or the client already closed
        """
        if self._task is not None:
            return self._task
        if self._state is ConnectionState.CLOSED:
            raise RuntimeError("Realtime client is closed; create a new client to reconnect")

        loop = asyncio.get_running_loop()
        self._state = ConnectionState.CONNECTING
        self._task = loop.create_task(self._run(), name=f"forestbot-realtime-{self.mc_server}")
        return self._task

    async def wait_closed(self) -> None:
        """Wait until the connection has closed."""
        if self._task is not None:
            await self._task

    async def _run(self) -> None:
        try:
            self._socket = await self._connector(
                self.url,
                additional_headers=self.headers,
                ping_interval=None,
                open_timeout=None,
            )
        except (OSError, WebSocketException) as e:
            self._state = ConnectionState.CLOSED
            logger.error("Realtime connection failed", url=self.url, error=str(e))
            await self.events.emit(
                Event.ERROR, TransportError(f"Failed to connect to {self.url}", cause=e)
            )
            return

        await self._handle_open()

        try:
            async for raw in self._socket:
                await self._handle_frame(raw)
        except ConnectionClosed:
            pass
        except asyncio.CancelledError:
            await self._stop_keepalive()
            self._state = ConnectionState.CLOSED
            raise

        await self._handle_close()

    async def _handle_open(self) -> None:
        self._state = ConnectionState.OPEN
        self._keepalive_task = asyncio.create_task(
            self._keepalive_loop(), name=f"forestbot-keepalive-{self.mc_server}"
        )
        logger.info(
            "Realtime connection opened",
            url=self.url,
            mc_server=self.mc_server,
            client_type=self.client_type.value,
        )
        await self.events.emit(Event.OPEN)

    async def _handle_close(self) -> None:
        self._state = ConnectionState.CLOSED
        await self._stop_keepalive()

        assert self._socket is not None
        self.close_code = self._socket.close_code
        self.close_reason = self._socket.close_reason or ""

        logger.info(
            "Realtime connection closed",
            mc_server=self.mc_server,
            code=self.close_code,
            reason=self.close_reason,
        )
        await self.events.emit(Event.CLOSE, CloseInfo(self.close_code, self.close_reason))

    async def _keepalive_loop(self) -> None:
        while True:
            await asyncio.sleep(self.ping_interval)
            if self._socket is None or self._state is not ConnectionState.OPEN:
                return
            try:
                # The pong waiter is not awaited; a silent hub is only noticed
                # when the transport itself closes.
                await self._socket.ping(PING_PAYLOAD)
            except ConcurrencyError:
                # Previous ping still unanswered; it stays pending.
                logger.debug("Realtime ping skipped, pong outstanding", mc_server=self.mc_server)
            except ConnectionClosed:
                return

    async def _stop_keepalive(self) -> None:
        task, self._keepalive_task = self._keepalive_task, None
        if task is None:
            return
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass
        except Exception as e:
            logger.error("Realtime keepalive failed", mc_server=self.mc_server, error=repr(e))

    # ──────────────────────────────────────────────────────────
    # Inbound
    # ──────────────────────────────────────────────────────────

    async def _handle_frame(self, raw: str | bytes) -> None:
        """Turn one frame into exactly one event."""
        try:
            envelope = parse_frame(raw)
        except ProtocolError as e:
            logger.warning("Malformed realtime frame", error=str(e))
            await self.events.emit(Event.ERROR, e)
            return

        tag = envelope.tag
        if tag is None:
            logger.debug("Unknown realtime action", action=envelope.action)
            await self.events.emit(Event.UNKNOWN_MESSAGE, envelope)
            return

        try:
            payload = decode_payload(tag, envelope.data)
        except ProtocolError as e:
            # Relayed as received; the hub's shape wins over the local model.
            logger.debug("Realtime payload relayed undecoded", action=tag.value, error=str(e))
            payload = envelope.data

        await self.events.emit(Event.for_action(tag), payload)

    # ──────────────────────────────────────────────────────────
    # Outbound
    # ──────────────────────────────────────────────────────────

    async def send_message(self, action: ActionTag, data: Payload | dict[str, Any]) -> bool:
        """
        Write one envelope to the hub.

        Nothing is queued: without an open connection the message is dropped.

        Returns:
            True once the frame was written, False if it was not
        """
        envelope = build_envelope(action, data)

        if self._socket is None or self._state is not ConnectionState.OPEN:
            logger.warning(
                "Realtime message dropped, connection not open",
                action=action.value,
                state=self._state.value,
            )
            return False

        try:
            await self._socket.send(envelope.to_json())
        except ConnectionClosed as e:
            await self.events.emit(
                Event.ERROR, TransportError(f"Failed to send {action.value!r}", cause=e)
            )
            return False
        return True

    async def send_minecraft_chat_message(self, message: MinecraftChatMessage | dict[str, Any]) -> bool:
        """Relay a Minecraft chat line to the hub."""
        return await self.send_message(ActionTag.INBOUND_MINECRAFT_CHAT, message)

    async def send_discord_chat_message(self, message: DiscordChatMessage | dict[str, Any]) -> bool:
        """Relay a Discord chat line to the hub."""
        return await self.send_message(ActionTag.INBOUND_DISCORD_CHAT, message)

    async def send_player_list_update(self, players: list[Player] | list[dict[str, Any]]) -> bool:
        """
        Send the current online player list.

        Meant to run periodically (about once a minute); the hub derives
        playtime from these updates.
        """
        update = PlayerListUpdate(players=[
            p if isinstance(p, Player) else Player.model_validate(p) for p in players
        ])
        return await self.send_message(ActionTag.SEND_UPDATE_PLAYER_LIST, update)

    async def send_player_advancement(
        self, message: MinecraftAdvancementMessage | dict[str, Any]
    ) -> bool:
        return await self.send_message(ActionTag.MINECRAFT_ADVANCEMENT, message)

    async def send_player_join(self, message: MinecraftPlayerJoinMessage | dict[str, Any]) -> bool:
        return await self.send_message(ActionTag.MINECRAFT_PLAYER_JOIN, message)

    async def send_player_leave(self, message: MinecraftPlayerLeaveMessage | dict[str, Any]) -> bool:
        return await self.send_message(ActionTag.MINECRAFT_PLAYER_LEAVE, message)

    async def send_player_death(
        self, message: MinecraftPlayerDeathMessage | dict[str, Any]
    ) -> bool:
        """Send a death. For pvp deaths ``murderer`` is the killer's username."""
        return await self.send_message(ActionTag.MINECRAFT_PLAYER_DEATH, message)
