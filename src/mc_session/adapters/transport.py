"""Boundary for the external game-protocol client."""

from __future__ import annotations

from enum import Enum
from typing import Any, Callable, Protocol


class TransportSignal(str, Enum):
    """Inbound signals a game client emits."""

    CONNECT = "connect"
    LOGIN = "login"
    SPAWN = "spawn"
    DEATH = "death"
    END = "end"
    KICKED = "kicked"
    ERROR = "error"
    TEXT_MESSAGE = "text_message"
    GENERIC_PACKET = "generic_packet"
    WINDOW_OPENED = "window_opened"
    PLAYER_COLLECT = "player_collect"


class GameTransport(Protocol):
    """The capabilities the session needs from a connected game client."""

    username: str | None

    def send_raw_line(self, text: str) -> None:
        """Send one chat line or command; fire and forget."""

    def quit(self, reason: str | None = None) -> None:
        """Close the connection."""

    def on(self, signal: str, callback: Callable[..., Any]) -> None:
        """Subscribe ``callback`` to an inbound signal."""

    def off(self, signal: str, callback: Callable[..., Any]) -> None:
        """Remove a subscription made with :meth:`on`."""


TransportFactory = Callable[..., GameTransport]
