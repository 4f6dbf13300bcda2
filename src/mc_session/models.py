from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class ConnectionState(str, Enum):
    """Lifecycle states of one session."""

    NOT_STARTED = "not_started"
    LOGGING_IN = "logging_in"
    LOGGED_IN = "logged_in"
    DISCONNECTED = "disconnected"


class ChatThrottleMode(str, Enum):
    """Messaging-speed regime announced by the server."""

    NORMAL = "normal"
    SLOW = "slow"


class RedstoneState(str, Enum):
    ON = "on"
    OFF = "off"
    UNKNOWN = "unknown"


class ThrottleViolationKind(str, Enum):
    CHAT = "chat"
    COMMAND = "command"


@dataclass(slots=True)
class ThrottleState:
    """Shared throttle mode, written by the router and read by the pacer."""

    mode: ChatThrottleMode = ChatThrottleMode.NORMAL


@dataclass(frozen=True, slots=True)
class DecodedText:
    """One chat payload as formatting-coded and plain text."""

    coded: str
    plain: str


@dataclass(slots=True)
class PrivateMessage:
    rank: str
    user: str
    text: str
    decoded: DecodedText


@dataclass(slots=True)
class AreaChat:
    area_id: str
    rank: str
    user: str
    text: str
    decoded: DecodedText


@dataclass(slots=True)
class TeleportRequest:
    rank: str
    user: str
    decoded: DecodedText
    here: bool = False


@dataclass(slots=True)
class PaymentReceived:
    rank: str
    user: str
    amount: float
    raw_amount: str
    plain_text: str
    coded_text: str


@dataclass(slots=True)
class BalanceUpdate:
    raw_balance: str


@dataclass(slots=True)
class ServerNameUpdate:
    name: str


@dataclass(slots=True)
class ThrottleModeChange:
    rank: str
    user: str
    change: str
    mode: ChatThrottleMode | None
    decoded: DecodedText


@dataclass(slots=True)
class ThrottleViolation:
    kind: ThrottleViolationKind
    decoded: DecodedText


@dataclass(slots=True)
class ItemClearNotice:
    seconds: float
    raw_seconds: str
    decoded: DecodedText


@dataclass(slots=True)
class MobClearNotice:
    minutes: float
    raw_minutes: str
    decoded: DecodedText


@dataclass(slots=True)
class RedstoneStateNotice:
    state: RedstoneState
    raw_state: str
    decoded: DecodedText


@dataclass(slots=True)
class PatternMatched:
    """Match of a rule that has no dedicated event type."""

    name: str
    groups: tuple[str | None, ...]
    decoded: DecodedText

