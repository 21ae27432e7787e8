"""
ForestBot API Facade

HTTP helpers around the ForestBot hub API, plus the optional realtime
channel. Every HTTP helper returns ``None`` on failure instead of raising:
callers cannot tell "not found" from "network failure" from "bad response".
"""

from typing import Any, TypeVar
from urllib.parse import quote

import httpx
import structlog
from pydantic import BaseModel, TypeAdapter

from forestbot.config import Settings, get_settings
from forestbot.models import (
    Advancement,
    AllPlayerStats,
    ConvertToUUID,
    Death,
    FaqData,
    JoinCount,
    Joindate,
    Kd,
    Kill,
    LastSeen,
    Message,
    MessageCount,
    NameFind,
    OnlineCheck,
    Order,
    PlayerActivityByHourResponse,
    PlayerActivityByWeekDayResponse,
    Playtime,
    Quote,
    WhoIsData,
    WordOccurence,
)
from forestbot.realtime.client import DEFAULT_PING_INTERVAL, RealtimeClient
from forestbot.realtime.events import Event, EventEmitter, EventHandler

logger = structlog.get_logger()

ModelT = TypeVar("ModelT", bound=BaseModel)


def _path(*segments: Any) -> str:
    return "/" + "/".join(quote(str(s), safe="") for s in segments)


class ForestBotAPI:
    """
    Client for the ForestBot hub.

    Usage:
        api = ForestBotAPI(api_url=url, api_key=key, mc_server="survival")
        playtime = await api.get_playtime(uuid, "survival")

        # With the realtime channel
        api = ForestBotAPI(..., websocket_url=ws_url, use_websocket=True)
        api.on(Event.INBOUND_DISCORD_CHAT, relay_to_minecraft)
    """

    def __init__(
        self,
        api_url: str,
        api_key: str,
        mc_server: str = "",
        *,
        websocket_url: str | None = None,
        is_bot_client: bool = True,
        log_errors: bool = True,
        use_websocket: bool = False,
        timeout: float = 10.0,
        ping_interval: float = DEFAULT_PING_INTERVAL,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        self.api_url = api_url.rstrip("/")
        self.mc_server = mc_server
        self.log_errors = log_errors
        self.timeout = timeout
        self.events = EventEmitter()

        self._api_key = api_key
        self._client = http_client

        self.websocket: RealtimeClient | None = None
        if use_websocket:
            self.websocket = RealtimeClient(
                websocket_url=websocket_url or "",
                api_key=api_key,
                mc_server=mc_server,
                is_bot_client=is_bot_client,
                events=self.events,
                ping_interval=ping_interval,
            )

    @classmethod
    def from_settings(cls, settings: Settings | None = None, **overrides: Any) -> "ForestBotAPI":
        """Build a client from environment configuration."""
        settings = settings or get_settings()
        options: dict[str, Any] = {
            "api_url": settings.api_url,
            "api_key": settings.api_key,
            "mc_server": settings.mc_server,
            "websocket_url": settings.websocket_url,
            "is_bot_client": settings.is_bot_client,
            "log_errors": settings.log_errors,
            "use_websocket": settings.use_websocket,
            "timeout": settings.http_timeout,
            "ping_interval": settings.ping_interval,
        }
        options.update(overrides)
        return cls(**options)

    # ──────────────────────────────────────────────────────────
    # Events
    # ──────────────────────────────────────────────────────────

    def on(self, event: Event | str, handler: EventHandler) -> EventHandler:
        return self.events.on(event, handler)

    def once(self, event: Event | str, handler: EventHandler) -> EventHandler:
        return self.events.once(event, handler)

    def off(self, event: Event | str, handler: EventHandler) -> None:
        self.events.off(event, handler)

    # ──────────────────────────────────────────────────────────
    # HTTP plumbing
    # ──────────────────────────────────────────────────────────

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client."""
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=self.api_url,
                timeout=self.timeout,
                headers={"Content-Type": "application/json"},
            )
        return self._client

    async def close(self) -> None:
        """Close HTTP client. The realtime channel is not affected."""
        if self._client:
            await self._client.aclose()
            self._client = None

    async def _request(
        self,
        method: str,
        path: str,
        adapter: type[ModelT] | TypeAdapter[Any],
        *,
        key: str | None = None,
        json: dict[str, Any] | None = None,
    ) -> Any:
        """
        Send a request and decode the body.

        Args:
            adapter: Model or TypeAdapter for the decoded body
            key: Decode ``body[key]`` instead of the whole body
            json: Request body; mutating requests carry the API key

        Returns:
            The decoded result, or None on any failure
        """
        headers = {}
        if method in ("POST", "PUT", "PATCH", "DELETE"):
            headers["x-api-key"] = self._api_key

        try:
            client = await self._get_client()
            response = await client.request(method, path, json=json, headers=headers)
            response.raise_for_status()
            body = response.json()
            if key is not None:
                body = body[key]
            if isinstance(adapter, TypeAdapter):
                return adapter.validate_python(body)
            return adapter.model_validate(body)
        except (httpx.HTTPError, httpx.InvalidURL, ValueError, KeyError, TypeError) as e:
            if self.log_errors:
                logger.error(
                    "ForestBot API request failed",
                    method=method,
                    path=path,
                    error=str(e) or type(e).__name__,
                )
            return None

    # ──────────────────────────────────────────────────────────
    # Player Stats
    # ──────────────────────────────────────────────────────────

    async def get_playtime(self, uuid: str, server: str) -> Playtime | None:
        """Get a player's playtime on a server."""
        return await self._request("GET", _path("playtime", uuid, server), Playtime)

    async def get_joindate(self, uuid: str, server: str) -> Joindate | None:
        """Get the date a player first joined a server."""
        return await self._request("GET", _path("joindate", uuid, server), Joindate)

    async def get_join_count(self, uuid: str, server: str) -> JoinCount | None:
        """Get how many times a player joined a server."""
        return await self._request("GET", _path("joincount", uuid, server), JoinCount)

    async def get_last_seen(self, uuid: str, server: str) -> LastSeen | None:
        """Get when a player was last seen on a server."""
        return await self._request("GET", _path("lastseen", uuid, server), LastSeen)

    async def get_kd(self, uuid: str, server: str) -> Kd | None:
        """Get a player's kill and death counts on a server."""
        return await self._request("GET", _path("kd", uuid, server), Kd)

    async def get_stats_by_uuid(self, uuid: str, server: str) -> AllPlayerStats | None:
        """Get every tracked stat for a player on a server."""
        return await self._request("GET", _path("allstats", uuid, server), AllPlayerStats)

    async def get_online_check(self, username: str, server: str) -> OnlineCheck | None:
        return await self._request("GET", _path("online", username, server), OnlineCheck)

    # ──────────────────────────────────────────────────────────
    # History
    # ──────────────────────────────────────────────────────────

    async def get_deaths(
        self, uuid: str, server: str, limit: int, order: Order = "DESC"
    ) -> list[Death] | None:
        """Get up to ``limit`` deaths for a player on a server."""
        return await self._request(
            "GET",
            _path("deaths", uuid, server, limit, order),
            TypeAdapter(list[Death]),
            key="deaths",
        )

    async def get_kills(
        self, uuid: str, server: str, limit: int, order: Order = "DESC"
    ) -> list[Kill] | None:
        """Get up to ``limit`` kills for a player on a server."""
        return await self._request(
            "GET",
            _path("kills", uuid, server, limit, order),
            TypeAdapter(list[Kill]),
            key="kills",
        )

    async def get_messages(
        self, username: str, server: str, limit: int, order: Order = "DESC"
    ) -> list[Message] | None:
        """Get up to ``limit`` chat messages sent by a player on a server."""
        return await self._request(
            "GET",
            _path("messages", username, server, limit, order),
            TypeAdapter(list[Message]),
            key="messages",
        )

    async def get_advancements(
        self, uuid: str, server: str, limit: int, order: Order = "DESC"
    ) -> list[Advancement] | None:
        return await self._request(
            "GET",
            _path("advancements", uuid, server, limit, order),
            TypeAdapter(list[Advancement]),
            key="advancements",
        )

    async def get_message_count(self, username: str, server: str) -> MessageCount | None:
        return await self._request(
            "GET", _path("messagecount", username, server), MessageCount
        )

    async def get_word_occurence(
        self, username: str, server: str, word: str
    ) -> WordOccurence | None:
        """Count how often a player said ``word`` on a server."""
        return await self._request(
            "GET", _path("wordoccurence", username, server, word), WordOccurence
        )

    async def get_quote(self, username: str, server: str) -> Quote | None:
        """Get a random chat message from a player."""
        return await self._request("GET", _path("quote", username, server), Quote)

    # ──────────────────────────────────────────────────────────
    # Identity
    # ──────────────────────────────────────────────────────────

    async def get_name_finder(self, username: str) -> NameFind | None:
        """Find usernames matching ``username``."""
        return await self._request("GET", _path("namefinder", username), NameFind)

    async def convert_username_to_uuid(self, username: str) -> ConvertToUUID | None:
        return await self._request(
            "GET", _path("convert-username-to-uuid", username), ConvertToUUID
        )

    async def get_whois(self, username: str) -> WhoIsData | None:
        return await self._request("GET", _path("whois", username), WhoIsData)

    async def update_whois(self, username: str, description: str) -> WhoIsData | None:
        """Set the whois description for a player."""
        return await self._request(
            "PUT",
            _path("whois"),
            WhoIsData,
            json={"username": username, "description": description},
        )

    # ──────────────────────────────────────────────────────────
    # Activity
    # ──────────────────────────────────────────────────────────

    async def get_player_activity_by_hour(
        self, uuid: str, server: str
    ) -> PlayerActivityByHourResponse | None:
        return await self._request(
            "GET",
            _path("player-activity-by-hour", uuid, server),
            PlayerActivityByHourResponse,
        )

    async def get_player_activity_by_week_day(
        self, uuid: str, server: str
    ) -> PlayerActivityByWeekDayResponse | None:
        return await self._request(
            "GET",
            _path("player-activity-by-week-day", uuid, server),
            PlayerActivityByWeekDayResponse,
        )

    # ──────────────────────────────────────────────────────────
    # FAQ
    # ──────────────────────────────────────────────────────────

    async def get_faq(self, faq_id: int, server: str) -> FaqData | None:
        return await self._request("GET", _path("faq", faq_id, server), FaqData)

    async def post_faq(
        self, username: str, uuid: str, server: str, faq: str
    ) -> FaqData | None:
        """Store a new FAQ entry."""
        return await self._request(
            "POST",
            _path("faq"),
            FaqData,
            json={"username": username, "uuid": uuid, "server": server, "faq": faq},
        )
