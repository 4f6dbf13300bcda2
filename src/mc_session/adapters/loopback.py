"""In-process transport that records outbound lines and lets callers inject signals."""

from __future__ import annotations

from typing import Any, Callable


class LoopbackTransport:
    """Stand-in game client for local demos and tests."""

    def __init__(self, username: str | None = "LoopbackBot") -> None:
        self.username = username
        self.sent: list[str] = []
        self.quit_reasons: list[str | None] = []
        self._listeners: dict[str, list[Callable[..., Any]]] = {}

    def send_raw_line(self, text: str) -> None:
        self.sent.append(text)

    def quit(self, reason: str | None = None) -> None:
        self.quit_reasons.append(reason)

    def on(self, signal: str, callback: Callable[..., Any]) -> None:
        self._listeners.setdefault(str(getattr(signal, "value", signal)), []).append(callback)

    def off(self, signal: str, callback: Callable[..., Any]) -> None:
        listeners = self._listeners.get(str(getattr(signal, "value", signal)), [])
        if callback in listeners:
            listeners.remove(callback)

    def listener_count(self, signal: str | None = None) -> int:
        if signal is None:
            return sum(len(items) for items in self._listeners.values())
        return len(self._listeners.get(str(getattr(signal, "value", signal)), []))

    def emit(self, signal: str, *args: Any) -> None:
        """Deliver an inbound signal to every listener, as the real client would."""
        for callback in list(self._listeners.get(str(getattr(signal, "value", signal)), [])):
            callback(*args)
