"""
ForestBot CLI

Command-line interface for poking at the ForestBot hub.
"""

import asyncio
import json
from typing import Any

import click
import structlog
from pydantic import BaseModel

from forestbot import __version__
from forestbot.api import ForestBotAPI
from forestbot.config import get_settings
from forestbot.realtime import CloseInfo, Event

logger = structlog.get_logger()


def _jsonable(payload: Any) -> Any:
    if isinstance(payload, BaseModel):
        return payload.model_dump(mode="json", by_alias=True, exclude_unset=True)
    if isinstance(payload, CloseInfo):
        return {"code": payload.code, "reason": payload.reason}
    if isinstance(payload, Exception):
        return {"error": type(payload).__name__, "message": str(payload)}
    return payload


# ══════════════════════════════════════════════════════════════
# CLI Group
# ══════════════════════════════════════════════════════════════


@click.group()
@click.version_option(version=__version__, prog_name="forestbot")
@click.option("--debug/--no-debug", default=False, help="Enable debug logging")
def cli(debug: bool) -> None:
    """ForestBot - Minecraft server stats and cross-server chat relay client."""
    if debug:
        import logging
        logging.basicConfig(level=logging.DEBUG)
        structlog.configure(
            wrapper_class=structlog.make_filtering_bound_logger(logging.DEBUG),
        )


# ══════════════════════════════════════════════════════════════
# Realtime Commands
# ══════════════════════════════════════════════════════════════


@cli.command()
@click.option("--mc-server", "-s", default=None, help="Server to relay for (overrides settings)")
@click.option("--discord", is_flag=True, default=False, help="Connect as a Discord bridge")
def listen(mc_server: str | None, discord: bool) -> None:
    """Connect to the hub and print every realtime event as a JSON line.

    Runs until the hub closes the connection.
    """
    settings = get_settings()

    async def run() -> None:
        overrides: dict[str, Any] = {"use_websocket": True}
        if mc_server:
            overrides["mc_server"] = mc_server
        if discord:
            overrides["is_bot_client"] = False
        api = ForestBotAPI.from_settings(settings, **overrides)

        def printer(name: str):
            def echo(payload: Any) -> None:
                click.echo(json.dumps({"event": name, "data": _jsonable(payload)}, default=str))
            return echo

        for event in Event:
            api.on(event, printer(event.value))

        if api.websocket is None:
            raise click.ClickException("Realtime connection is not enabled")
        try:
            await api.websocket.wait_closed()
        finally:
            await api.close()

    click.echo(f"Connecting to {settings.websocket_url} as {mc_server or settings.mc_server}", err=True)
    try:
        asyncio.run(run())
    except KeyboardInterrupt:
        click.echo("Interrupted", err=True)


# ══════════════════════════════════════════════════════════════
# Stats Commands
# ══════════════════════════════════════════════════════════════


@cli.command()
@click.argument("uuid")
@click.argument("server")
def stats(uuid: str, server: str) -> None:
    """Show playtime, kills/deaths, joins and last seen for a player.

    UUID: The player's Minecraft UUID
    SERVER: The server name
    """

    async def run() -> list[tuple[str, Any]]:
        api = ForestBotAPI.from_settings(use_websocket=False)
        try:
            playtime = await api.get_playtime(uuid, server)
            kd = await api.get_kd(uuid, server)
            joins = await api.get_join_count(uuid, server)
            last_seen = await api.get_last_seen(uuid, server)
        finally:
            await api.close()

        return [
            ("Playtime", playtime.playtime if playtime else None),
            ("Kills", kd.kills if kd else None),
            ("Deaths", kd.deaths if kd else None),
            ("Joins", joins.joincount if joins else None),
            ("Last seen", last_seen.lastseen if last_seen else None),
        ]

    rows = asyncio.run(run())
    click.echo(f"Stats for {uuid} on {server}:")
    for label, value in rows:
        click.echo(f"  {label:12} {value if value is not None else 'unavailable'}")


@cli.command()
def config() -> None:
    """Show current configuration."""
    settings = get_settings()

    click.echo("ForestBot Configuration")
    click.echo("=" * 40)

    config_items = [
        ("API URL", settings.api_url),
        ("WebSocket URL", settings.websocket_url),
        ("API Key", settings.api_key),
        ("MC Server", settings.mc_server or "Not set"),
        ("Client Type", settings.client_type),
        ("Use WebSocket", str(settings.use_websocket)),
        ("Ping Interval", f"{settings.ping_interval}s"),
        ("HTTP Timeout", f"{settings.http_timeout}s"),
        ("Log Errors", str(settings.log_errors)),
    ]

    for key, value in config_items:
        # Mask sensitive values
        if "key" in key.lower():
            value = "***" if value else "Not set"
        click.echo(f"  {key:20} {value}")


# ══════════════════════════════════════════════════════════════
# Entry Point
# ══════════════════════════════════════════════════════════════


def main() -> None:
    """Main entry point for the CLI."""
    cli()


if __name__ == "__main__":
    main()
