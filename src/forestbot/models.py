"""
ForestBot HTTP API Models

Pydantic models for the hub's HTTP responses. Field names follow the hub's
JSON, including its mixed casing.
"""

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field

Order = Literal["DESC", "ASC"]

# Nullable strings sometimes arrive as {"String": ..., "Valid": ...}
NullableString = str | dict[str, Any] | None


class ApiModel(BaseModel):
    """Base for response models."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True)


# ══════════════════════════════════════════════════════════════
# Player Stats
# ══════════════════════════════════════════════════════════════


class Playtime(ApiModel):
    playtime: int | float


class Joindate(ApiModel):
    joindate: int | str


class JoinCount(ApiModel):
    joincount: int


class LastSeen(ApiModel):
    lastseen: int | str


class Kd(ApiModel):
    kills: int
    deaths: int


class Death(ApiModel):
    death_message: str
    timestamp: int | float


class Kill(ApiModel):
    kill_message: str
    timestamp: int | float


class Message(ApiModel):
    username: str
    message: str
    timestamp: str


class Advancement(ApiModel):
    advancement: str
    timestamp: int | float


class MessageCount(ApiModel):
    name: str
    count: int


class WordOccurence(ApiModel):
    name: str
    count: int
    word: str


class NameFind(ApiModel):
    """Usernames a player has been seen with."""

    usernames: list[str] = Field(default_factory=list)


class AllPlayerStats(ApiModel):
    """Every tracked stat for one player on one server."""

    username: str | None = None
    kills: int = 0
    deaths: int = 0
    joindate: str | None = None
    lastseen: NullableString = None
    uuid: str = Field(alias="UUID")
    playtime: int | float = 0
    joins: int = 0
    leaves: int = 0
    last_death_time: int | float | None = Field(default=None, alias="lastdeathTime")
    last_death_string: str | None = Field(default=None, alias="lastdeathString")
    mc_server: str


class OnlineCheck(ApiModel):
    online: bool
    server: str | None = None


class WhoIsData(ApiModel):
    description: list[str] = Field(default_factory=list)


class ConvertToUUID(ApiModel):
    uuid: str


class Quote(ApiModel):
    name: str
    message: str
    date: NullableString = None
    mc_server: str
    uuid: str


# ══════════════════════════════════════════════════════════════
# Activity
# ══════════════════════════════════════════════════════════════


class HourlyActivity(ApiModel):
    hour: int
    logins: int


class PlayerActivityHourlyResults(ApiModel):
    weekday: int
    activity: list[HourlyActivity] = Field(default_factory=list)


class PlayerActivityByHourResponse(ApiModel):
    player_activity_by_hour: list[PlayerActivityHourlyResults] = Field(default_factory=list)


class PlayerActivityByWeekDay(ApiModel):
    monday: int = Field(default=0, alias="Monday")
    tuesday: int = Field(default=0, alias="Tuesday")
    wednesday: int = Field(default=0, alias="Wednesday")
    thursday: int = Field(default=0, alias="Thursday")
    friday: int = Field(default=0, alias="Friday")
    saturday: int = Field(default=0, alias="Saturday")
    sunday: int = Field(default=0, alias="Sunday")


class PlayerActivityByWeekDayResponse(ApiModel):
    player_activity_by_week_day: PlayerActivityByWeekDay


# ══════════════════════════════════════════════════════════════
# FAQ
# ══════════════════════════════════════════════════════════════


class FaqData(ApiModel):
    username: str
    uuid: str
    server: str
    id: int
    faq: str
    timestamp: str
    total: int = 0
