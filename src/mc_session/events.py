"""Publish/subscribe fan-out for domain events."""

from __future__ import annotations

import logging
from enum import Enum
from typing import Any, Callable

Subscriber = Callable[..., Any]


class EventName(str, Enum):
    """Domain events published by a session."""

    CONNECTION_STATUS = "connection_status"
    READY = "ready"
    LOGIN = "login"
    END = "end"
    KICKED = "kicked"
    ERROR = "error"
    SPAWN = "spawn"
    DEATH = "death"
    MESSAGE = "message"
    WINDOW_OPENED = "window_opened"
    PRIVATE_MESSAGE = "private_message"
    AREA_CHAT = "area_chat"
    TELEPORT_REQUEST = "teleport_request"
    TELEPORT_REQUEST_HERE = "teleport_request_here"
    PAYMENT_RECEIVED = "payment_received"
    BALANCE_UPDATE = "balance_update"
    SERVER_NAME_UPDATE = "server_name_update"
    THROTTLE_MODE_CHANGED = "throttle_mode_changed"
    THROTTLE_VIOLATION = "throttle_violation"
    ITEM_CLEAR_NOTICE = "item_clear_notice"
    MOB_CLEAR_NOTICE = "mob_clear_notice"
    REDSTONE_STATE_NOTICE = "redstone_state_notice"
    PATTERN_MATCHED = "pattern_matched"
    AFK_CHALLENGE_SOLVED = "afk_challenge_solved"
    PLAYER_COLLECTED = "player_collected"
    BOT_COLLECTED = "bot_collected"


class EventBus:
    """Named event kinds, each with subscribers called in registration order."""

    def __init__(self, logger: logging.Logger | None = None) -> None:
        self._subscribers: dict[str, list[Subscriber]] = {}
        self._logger = logger or logging.getLogger("mc_session.events")

    def subscribe(self, event: str, callback: Subscriber) -> Callable[[], bool]:
        """Register ``callback`` and return a function that unsubscribes it."""
        self._subscribers.setdefault(_key(event), []).append(callback)
        return lambda: self.unsubscribe(event, callback)

    def unsubscribe(self, event: str, callback: Subscriber) -> bool:
        """Remove ``callback``; returns False when it was not subscribed."""
        callbacks = self._subscribers.get(_key(event))
        if not callbacks or callback not in callbacks:
            return False
        callbacks.remove(callback)
        return True

    def subscriber_count(self, event: str) -> int:
        return len(self._subscribers.get(_key(event), ()))

    def publish(self, event: str, *args: Any) -> int:
        """Call every subscriber of ``event`` with ``args``; returns how many were called.

        A failing subscriber is logged and does not prevent the others from running.
        """
        callbacks = list(self._subscribers.get(_key(event), ()))
        for callback in callbacks:
            try:
                callback(*args)
            except Exception:  # noqa: BLE001
                self._logger.exception("event_subscriber_failed", extra={"event": _key(event)})
        return len(callbacks)


def _key(event: str) -> str:
    return event.value if isinstance(event, Enum) else event
