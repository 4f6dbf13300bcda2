"""Translation of raw game-client signals into typed domain events."""

from __future__ import annotations

import logging
import math
from enum import Enum
from typing import Any, Callable

from mc_session.chat import PatternMatch, PatternRegistry, RuleName, decode, is_legit_payment, strip_codes
from mc_session.config import Settings
from mc_session.events import EventBus, EventName
from mc_session.models import (
    AreaChat,
    BalanceUpdate,
    ChatThrottleMode,
    ConnectionState,
    DecodedText,
    ItemClearNotice,
    MobClearNotice,
    PatternMatched,
    PaymentReceived,
    PrivateMessage,
    RedstoneState,
    RedstoneStateNotice,
    ServerNameUpdate,
    TeleportRequest,
    ThrottleModeChange,
    ThrottleState,
    ThrottleViolation,
    ThrottleViolationKind,
)
from mc_session.telemetry import ChatEcho

ACTION_BAR_CHANNEL = 2
_KNOWN_RULES = {rule.value for rule in RuleName}


class ErrorClass(str, Enum):
    """How a transport error affects the session."""

    NOISE = "noise"
    AUTHENTICATION = "authentication"
    OTHER = "other"


def parse_number(raw: str | None) -> float:
    """Parse a server-formatted number such as ``1,250.5``; malformed text gives NaN."""
    if raw is None:
        return math.nan
    try:
        return float(raw.replace(",", "").strip())
    except ValueError:
        return math.nan


def _field(obj: Any, name: str, default: Any = None) -> Any:
    if isinstance(obj, dict):
        return obj.get(name, default)
    return getattr(obj, name, default)


class EventRouter:
    """Decodes inbound signals, keeps throttle state current and republishes typed events."""

    def __init__(
        self,
        *,
        bus: EventBus,
        registry: PatternRegistry,
        throttle: ThrottleState,
        settings: Settings,
        transition: Callable[[ConnectionState], None],
        username: Callable[[], str | None] = lambda: None,
        echo: ChatEcho | None = None,
        logger: logging.Logger | None = None,
    ) -> None:
        self._bus = bus
        self._registry = registry
        self._throttle = throttle
        self._settings = settings
        self._transition = transition
        self._username = username
        self._echo = echo or ChatEcho(settings.log_messages)
        self._logger = logger or logging.getLogger("mc_session.router")
        self._awaiting_spawn = False

        self._normal_phrases = {phrase.lower() for phrase in settings.normal_mode_phrases}
        self._slow_phrases = {phrase.lower() for phrase in settings.slow_mode_phrases}
        self._match_handlers: dict[str, Callable[[PatternMatch], None]] = {
            RuleName.PRIVATE_MESSAGE.value: self._on_private_message,
            RuleName.AREA_CHAT.value: self._on_area_chat,
            RuleName.TELEPORT_REQUEST.value: self._on_teleport_request,
            RuleName.TELEPORT_REQUEST_HERE.value: self._on_teleport_request_here,
            RuleName.THROTTLE_MODE_CHANGE.value: self._on_throttle_mode_change,
            RuleName.CHAT_TOO_FAST.value: self._on_chat_too_fast,
            RuleName.COMMANDS_TOO_FAST.value: self._on_commands_too_fast,
            RuleName.ITEM_CLEAR.value: self._on_item_clear,
            RuleName.MOB_CLEAR.value: self._on_mob_clear,
            RuleName.REDSTONE_STATE.value: self._on_redstone_state,
        }

    # Lifecycle

    def handle_connect(self) -> None:
        self._awaiting_spawn = True

    def handle_spawn(self) -> None:
        self._bus.publish(EventName.SPAWN)
        # Ready once connected and spawned for the first time.
        if self._awaiting_spawn:
            self._awaiting_spawn = False
            self._bus.publish(EventName.READY)

    def handle_death(self) -> None:
        self._bus.publish(EventName.DEATH)

    def handle_login(self) -> None:
        self._transition(ConnectionState.LOGGED_IN)
        self._bus.publish(EventName.LOGIN)

    def handle_end(self) -> None:
        self._transition(ConnectionState.DISCONNECTED)
        self._bus.publish(EventName.END)

    def handle_kicked(self, reason: Any = None, logged_in: bool = False) -> None:
        self._transition(ConnectionState.DISCONNECTED)
        self._logger.warning("session_kicked", extra={"reason": str(reason), "logged_in": logged_in})
        self._bus.publish(EventName.KICKED, reason, logged_in)

    def classify_error(self, error: Any) -> ErrorClass:
        text = str(_field(error, "message", None) or error or "").lower()
        if any(marker.lower() in text for marker in self._settings.noise_error_markers):
            return ErrorClass.NOISE
        # Raised for wrong credentials and also when the auth service rate-limits us.
        if any(marker.lower() in text for marker in self._settings.auth_error_markers):
            return ErrorClass.AUTHENTICATION
        return ErrorClass.OTHER

    def handle_error(self, error: Any) -> ErrorClass:
        kind = self.classify_error(error)
        if kind == ErrorClass.NOISE:
            self._logger.debug("transport_noise_absorbed", extra={"error": str(error)})
            return kind

        if kind == ErrorClass.AUTHENTICATION:
            self._transition(ConnectionState.DISCONNECTED)
        self._logger.error("transport_error", extra={"error": str(error), "error_class": kind.value})
        self._bus.publish(EventName.ERROR, error)
        return kind

    # Chat

    def handle_text(self, payload: Any, channel: int = 0) -> DecodedText:
        decoded = decode(payload)
        if channel != ACTION_BAR_CHANNEL:
            self._echo.echo(decoded)
        self._bus.publish(EventName.MESSAGE, decoded, channel)

        matches = self._registry.match_all(decoded)
        by_name = {match.name: match for match in matches}
        for match in matches:
            if match.name == RuleName.PAYMENT_MARKER.value:
                continue
            if match.name == RuleName.PAYMENT.value:
                self._on_payment(match, by_name)
                continue

            handler = self._match_handlers.get(match.name)
            if handler is not None:
                handler(match)
            elif match.name not in _KNOWN_RULES:
                self._bus.publish(EventName.PATTERN_MATCHED, PatternMatched(match.name, match.groups, decoded))
        return decoded

    def _on_private_message(self, match: PatternMatch) -> None:
        rank, user, text = _groups(match, 3)
        self._bus.publish(EventName.PRIVATE_MESSAGE, PrivateMessage(rank, user, text, match.decoded))

    def _on_area_chat(self, match: PatternMatch) -> None:
        area_id, rank, user, text = _groups(match, 4)
        self._bus.publish(EventName.AREA_CHAT, AreaChat(area_id, rank, user, text, match.decoded))

    def _on_teleport_request(self, match: PatternMatch) -> None:
        rank, user = _groups(match, 2)
        self._bus.publish(EventName.TELEPORT_REQUEST, TeleportRequest(rank, user, match.decoded))

    def _on_teleport_request_here(self, match: PatternMatch) -> None:
        rank, user = _groups(match, 2)
        self._bus.publish(EventName.TELEPORT_REQUEST_HERE, TeleportRequest(rank, user, match.decoded, here=True))

    def _on_payment(self, match: PatternMatch, by_name: dict[str, PatternMatch]) -> None:
        decoded = match.decoded
        if not is_legit_payment(by_name, decoded, self._settings.payment_exclusion_phrase):
            self._logger.warning("payment_rejected_as_forged", extra={"text": decoded.plain})
            return

        rank, user, raw_amount = _groups(match, 3)
        event = PaymentReceived(
            rank=rank,
            user=user,
            amount=parse_number(raw_amount),
            raw_amount=raw_amount,
            plain_text=decoded.plain,
            coded_text=decoded.coded,
        )
        self._logger.info("payment_received", extra={"user": user, "amount": event.amount})
        self._bus.publish(EventName.PAYMENT_RECEIVED, event)

    def _on_throttle_mode_change(self, match: PatternMatch) -> None:
        rank, user, change = _groups(match, 3)
        normalized = change.strip().lower()
        mode: ChatThrottleMode | None = None
        if normalized in self._normal_phrases:
            mode = ChatThrottleMode.NORMAL
        elif normalized in self._slow_phrases:
            mode = ChatThrottleMode.SLOW

        if mode is not None:
            self._throttle.mode = mode
            self._logger.info("throttle_mode_changed", extra={"mode": mode.value, "by": user})
        self._bus.publish(EventName.THROTTLE_MODE_CHANGED, ThrottleModeChange(rank, user, change, mode, match.decoded))

    def _on_chat_too_fast(self, match: PatternMatch) -> None:
        self._force_slow(ThrottleViolationKind.CHAT, match.decoded)

    def _on_commands_too_fast(self, match: PatternMatch) -> None:
        self._force_slow(ThrottleViolationKind.COMMAND, match.decoded)

    def _force_slow(self, kind: ThrottleViolationKind, decoded: DecodedText) -> None:
        # Usually happens only shortly after connecting.
        self._throttle.mode = ChatThrottleMode.SLOW
        self._logger.warning("throttle_violation", extra={"kind": kind.value})
        self._bus.publish(EventName.THROTTLE_VIOLATION, ThrottleViolation(kind, decoded))

    def _on_item_clear(self, match: PatternMatch) -> None:
        (raw,) = _groups(match, 1)
        self._bus.publish(EventName.ITEM_CLEAR_NOTICE, ItemClearNotice(parse_number(raw), raw, match.decoded))

    def _on_mob_clear(self, match: PatternMatch) -> None:
        (raw,) = _groups(match, 1)
        self._bus.publish(EventName.MOB_CLEAR_NOTICE, MobClearNotice(parse_number(raw), raw, match.decoded))

    def _on_redstone_state(self, match: PatternMatch) -> None:
        (raw,) = _groups(match, 1)
        lowered = raw.lower()
        if "deaktiviert" in lowered:
            state = RedstoneState.OFF
        elif "aktiviert" in lowered:
            state = RedstoneState.ON
        else:
            state = RedstoneState.UNKNOWN
        self._bus.publish(EventName.REDSTONE_STATE_NOTICE, RedstoneStateNotice(state, raw, match.decoded))

    # Packets, windows, entities

    def handle_packet(self, data: Any, metadata: Any) -> None:
        if _field(metadata, "name") != "scoreboard_team":
            return

        team = _field(data, "name")
        prefix = _field(data, "prefix")
        if team not in ("money_value", "server_value") or not isinstance(prefix, str):
            return

        value = prefix if team == "money_value" else strip_codes(prefix)
        if not value.strip() or self._settings.scoreboard_loading_marker in value:
            return

        if team == "money_value":
            self._bus.publish(EventName.BALANCE_UPDATE, BalanceUpdate(value))
        else:
            self._bus.publish(EventName.SERVER_NAME_UPDATE, ServerNameUpdate(value))

    def handle_window_opened(self, window: Any) -> bool:
        """Republish the window; returns True when it is the AFK verification challenge."""
        self._bus.publish(EventName.WINDOW_OPENED, window)
        if _field(window, "type") != self._settings.afk_window_type:
            return False
        title = decode(_field(window, "title"))
        return self._settings.afk_title_marker in title.coded

    def handle_player_collect(self, collector: Any, collected: Any) -> None:
        own_name = self._username()
        if own_name is not None and _field(collector, "username") == own_name:
            self._bus.publish(EventName.BOT_COLLECTED, collected)
        else:
            self._bus.publish(EventName.PLAYER_COLLECTED, collector, collected)


def _groups(match: PatternMatch, count: int) -> tuple[str, ...]:
    values = [group or "" for group in match.groups[:count]]
    values.extend([""] * (count - len(values)))
    return tuple(values)
