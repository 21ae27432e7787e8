"""
Pytest Configuration and Fixtures

Shared fixtures for unit tests.
"""

import asyncio
import copy
from typing import Any

import httpx
import pytest
from websockets.exceptions import ConcurrencyError, ConnectionClosed

from forestbot.config import Settings


# ══════════════════════════════════════════════════════════════
# Settings Fixtures
# ══════════════════════════════════════════════════════════════


@pytest.fixture
def test_settings() -> Settings:
    """Settings pointing at a local hub."""
    return Settings(
        api_url="http://hub.test/api/v1",
        websocket_url="ws://hub.test/api/v1",
        api_key="k1",
        mc_server="survival",
        is_bot_client=True,
        use_websocket=False,
        _env_file=None,
    )


# ══════════════════════════════════════════════════════════════
# Fake WebSocket
# ══════════════════════════════════════════════════════════════


class _HubClose:
    def __init__(self, code: int, reason: str) -> None:
        self.code = code
        self.reason = reason


class FakeWebSocket:
    """Stands in for a websockets ClientConnection.

    Frames pushed with ``feed`` are yielded by async iteration;
    ``close_from_hub`` ends iteration the way a received close frame does.
    With ``answers_pings`` off the hub never pongs, and a second ping with
    the same data is refused while the first is outstanding.
    """

    def __init__(self) -> None:
        self.sent: list[str] = []
        self.pings: list[Any] = []
        self.close_code: int | None = None
        self.close_reason: str | None = None
        self.answers_pings = True
        self.ping_error: Exception | None = None
        self._pending_pings: dict[Any, asyncio.Future[float]] = {}
        self._frames: asyncio.Queue[Any] = asyncio.Queue()

    def feed(self, frame: str | bytes) -> None:
        self._frames.put_nowait(frame)

    def close_from_hub(self, code: int = 1000, reason: str = "") -> None:
        self._frames.put_nowait(_HubClose(code, reason))

    async def send(self, message: str) -> None:
        if self.close_code is not None:
            raise ConnectionClosed(None, None)
        self.sent.append(message)

    async def ping(self, data: Any = None) -> "asyncio.Future[float]":
        if self.close_code is not None:
            raise ConnectionClosed(None, None)
        if self.ping_error is not None:
            raise self.ping_error
        if data in self._pending_pings:
            raise ConcurrencyError("already waiting for a pong with the same data")
        self.pings.append(data)
        waiter = asyncio.get_running_loop().create_future()
        if self.answers_pings:
            waiter.set_result(0.0)
        else:
            self._pending_pings[data] = waiter
        return waiter

    def __aiter__(self) -> "FakeWebSocket":
        return self

    async def __anext__(self) -> str | bytes:
        item = await self._frames.get()
        if isinstance(item, _HubClose):
            self.close_code = item.code
            self.close_reason = item.reason
            raise StopAsyncIteration
        return item


class FakeConnector:
    """Records connect calls and hands out a FakeWebSocket."""

    def __init__(self, ws: FakeWebSocket, error: BaseException | None = None) -> None:
        self.ws = ws
        self.error = error
        self.calls: list[tuple[str, dict[str, Any]]] = []

    async def __call__(self, url: str, **kwargs: Any) -> FakeWebSocket:
        self.calls.append((url, kwargs))
        if self.error is not None:
            raise self.error
        return self.ws


@pytest.fixture
def fake_ws() -> FakeWebSocket:
    return FakeWebSocket()


@pytest.fixture
def connector(fake_ws: FakeWebSocket) -> FakeConnector:
    return FakeConnector(fake_ws)


@pytest.fixture
def refused_connector(fake_ws: FakeWebSocket) -> FakeConnector:
    """A connector whose connection attempt is refused."""
    return FakeConnector(fake_ws, error=ConnectionRefusedError("connection refused"))


# ══════════════════════════════════════════════════════════════
# HTTP Fixtures
# ══════════════════════════════════════════════════════════════


@pytest.fixture
def http_client_factory():
    """Build an AsyncClient whose requests are answered by a handler."""

    def factory(handler) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            base_url="http://hub.test/api/v1",
            transport=httpx.MockTransport(handler),
        )

    return factory


# ══════════════════════════════════════════════════════════════
# Payload Fixtures
# ══════════════════════════════════════════════════════════════


_SAMPLE_PAYLOADS: dict[str, Any] = {
    "inbound_minecraft_chat": {
        "name": "Steve",
        "message": "hello",
        "date": "1700000000000",
        "mc_server": "survival",
        "uuid": "u-1",
    },
    "inbound_discord_chat": {
        "message": "hi from discord",
        "username": "alex#0001",
        "timestamp": "1700000000000",
        "mc_server": "survival",
        "channel_id": "c-1",
        "guild_id": "g-1",
        "guild_name": "ForestBot",
    },
    "send_update_player_list": {
        "players": [
            {"username": "Steve", "uuid": "u-1", "latency": 42, "server": "survival"},
            {"username": "Alex", "uuid": "u-2", "latency": 87, "server": "survival"},
        ]
    },
    "minecraft_advancement": {
        "username": "Steve",
        "advancement": "Stone Age",
        "time": 1700000000000,
        "mc_server": "survival",
        "uuid": "u-1",
    },
    "minecraft_player_join": {
        "username": "Steve",
        "uuid": "u-1",
        "timestamp": "t",
        "server": "survival",
    },
    "minecraft_player_leave": {
        "username": "Steve",
        "uuid": "u-1",
        "timestamp": "t",
        "server": "survival",
    },
    "minecraft_player_kill": {
        "username": "Steve",
        "uuid": "u-1",
        "timestamp": "t",
        "server": "survival",
    },
    "minecraft_player_death": {
        "victim": "Steve",
        "death_message": "Steve was slain by Alex",
        "murderer": "Alex",
        "time": 1700000000000,
        "type": "pvp",
        "mc_server": "survival",
        "victimUUID": "u-1",
        "murdererUUID": "u-2",
    },
    "new_name": {"old_name": "Steve", "new_name": "Steve2", "server": "survival"},
    "new_user": {"user": "Alex", "server": "survival"},
    "error": {"message": "invalid payload"},
    "key-accepted": {"accepted": True},
}


@pytest.fixture
def sample_payloads() -> dict[str, Any]:
    """One well-formed payload per action tag."""
    return copy.deepcopy(_SAMPLE_PAYLOADS)
