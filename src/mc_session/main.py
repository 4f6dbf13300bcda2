"""CLI entrypoint for inspecting session configuration and server-line decoding."""

from __future__ import annotations

import json
from dataclasses import asdict

import typer
from rich import print

from mc_session.chat import build_registry, decode
from mc_session.config import load_settings
from mc_session.destinations import DestinationStore
from mc_session.errors import UnknownDestinationError
from mc_session.pacer import Cooldowns
from mc_session.telemetry import coded_to_rich, configure_logging

app = typer.Typer(help="MC session tooling")


@app.callback()
def main(log_level: str = typer.Option(None, help="Override MC_SESSION_LOG_LEVEL")) -> None:
    settings = load_settings()
    configure_logging(log_level or settings.log_level)


@app.command("show-config")
def show_config() -> None:
    """Show the effective settings and cooldowns."""
    settings = load_settings()
    cooldowns = Cooldowns.from_settings(settings)
    print(
        {
            "app_name": settings.app_name,
            "server": f"{settings.server_host}:{settings.server_port}",
            "protocol_version": settings.protocol_version,
            "command_prefix": settings.command_prefix,
            "cooldowns": asdict(cooldowns),
            "destinations_folder": str(settings.destinations_folder),
            "rules": build_registry(settings.patterns).names,
        }
    )


@app.command("decode")
def decode_payload(payload: str = typer.Argument(..., help="Chat component JSON or raw text")) -> None:
    """Decode a chat payload into coded and plain text."""
    decoded = decode(payload)
    print({"coded": decoded.coded, "plain": decoded.plain})
    print(coded_to_rich(decoded.coded))


@app.command()
def match(payload: str = typer.Argument(..., help="Chat component JSON or raw text")) -> None:
    """List the server-line rules a payload matches."""
    settings = load_settings()
    decoded = decode(payload)
    matches = build_registry(settings.patterns).match_all(decoded)
    if not matches:
        print({"plain": decoded.plain, "matches": []})
        raise typer.Exit(code=1)
    print({"plain": decoded.plain, "matches": [{"rule": item.name, "groups": list(item.groups)} for item in matches]})


@app.command()
def destination(name: str = typer.Argument(None, help="Destination to show; omit to list all")) -> None:
    """Show connector options for a destination."""
    settings = load_settings()
    store = DestinationStore(settings.destinations_folder)
    if name is None:
        print({"destinations": store.list_names()})
        return
    try:
        options = store.load(name)
    except UnknownDestinationError as exc:
        print({"error": str(exc)})
        raise typer.Exit(code=1)
    print(json.loads(options.model_dump_json()))


if __name__ == "__main__":
    app()
