from __future__ import annotations

import math
from typing import Any

import pytest

from mc_session.chat import build_registry
from mc_session.config import Settings
from mc_session.events import EventBus, EventName
from mc_session.models import (
    ChatThrottleMode,
    ConnectionState,
    RedstoneState,
    ThrottleState,
    ThrottleViolationKind,
)
from mc_session.router import ErrorClass, EventRouter, parse_number


class Harness:
    def __init__(self, patterns: dict[str, str] | None = None, username: str | None = "PacerBot") -> None:
        self.bus = EventBus()
        self.throttle = ThrottleState()
        self.transitions: list[ConnectionState] = []
        self.events: list[tuple[str, tuple[Any, ...]]] = []
        for name in EventName:
            self.bus.subscribe(name, lambda *args, _name=name.value: self.events.append((_name, args)))
        self.router = EventRouter(
            bus=self.bus,
            registry=build_registry(patterns),
            throttle=self.throttle,
            settings=Settings(),
            transition=self.transitions.append,
            username=lambda: username,
        )

    def of(self, name: EventName) -> list[tuple[Any, ...]]:
        return [args for event, args in self.events if event == name.value]


@pytest.fixture()
def harness() -> Harness:
    return Harness()


def _legit_payment(amount: str) -> dict:
    return {
        "text": "",
        "extra": [
            {"text": "[VIP] ┃ Bob ", "color": "white"},
            {"text": f"hat dir ${amount} gegeben.", "color": "green"},
        ],
    }


def test_teleport_request_is_published_once(harness: Harness) -> None:
    harness.router.handle_text("[VIP] ┃ Bob möchte sich zu dir teleportieren.")

    requests = harness.of(EventName.TELEPORT_REQUEST)
    assert len(requests) == 1
    (request,) = requests[0]
    assert (request.rank, request.user, request.here) == ("[VIP]", "Bob", False)
    assert request.decoded.plain == "[VIP] ┃ Bob möchte sich zu dir teleportieren."
    assert harness.of(EventName.TELEPORT_REQUEST_HERE) == []


def test_teleport_here_request(harness: Harness) -> None:
    harness.router.handle_text("[VIP] ┃ Bob möchte, dass du dich zu der Person teleportierst.")

    (request,) = harness.of(EventName.TELEPORT_REQUEST_HERE)[0]
    assert request.here is True
    assert request.user == "Bob"


def test_every_text_is_republished_with_channel(harness: Harness) -> None:
    harness.router.handle_text({"text": "Willkommen", "color": "gold"}, 1)

    (decoded, channel) = harness.of(EventName.MESSAGE)[0]
    assert decoded.coded == "§6Willkommen"
    assert channel == 1


def test_private_message_and_area_chat(harness: Harness) -> None:
    harness.router.handle_text("[[Admin] ┃ Alice -> mir] kannst du kurz kommen?")
    harness.router.handle_text("[Plot-Chat][-12;4] [VIP] ┃ Bob : hallo zusammen")

    (private,) = harness.of(EventName.PRIVATE_MESSAGE)[0]
    assert (private.rank, private.user, private.text) == ("[Admin]", "Alice", "kannst du kurz kommen?")
    (area,) = harness.of(EventName.AREA_CHAT)[0]
    assert (area.area_id, area.rank, area.user, area.text) == ("-12;4", "[VIP]", "Bob", "hallo zusammen")


def test_legit_payment_is_published_with_parsed_amount(harness: Harness) -> None:
    harness.router.handle_text(_legit_payment("1,250.5"))

    (payment,) = harness.of(EventName.PAYMENT_RECEIVED)[0]
    assert (payment.rank, payment.user) == ("[VIP]", "Bob")
    assert payment.amount == 1250.5
    assert payment.raw_amount == "1,250.5"
    assert payment.plain_text == "[VIP] ┃ Bob hat dir $1,250.5 gegeben."
    assert "§ahat dir $1,250.5" in payment.coded_text


def test_forged_payment_without_marker_is_ignored(harness: Harness) -> None:
    harness.router.handle_text({"text": "[VIP] ┃ Bob hat dir $1,000,000 gegeben.", "color": "white"})

    assert harness.of(EventName.PAYMENT_RECEIVED) == []
    assert len(harness.of(EventName.MESSAGE)) == 1


def test_malformed_amount_still_emits_with_nan(harness: Harness) -> None:
    harness.router.handle_text(_legit_payment("12x,5"))

    (payment,) = harness.of(EventName.PAYMENT_RECEIVED)[0]
    assert math.isnan(payment.amount)
    assert payment.raw_amount == "12x,5"


def test_throttle_mode_follows_change_notices(harness: Harness) -> None:
    harness.router.handle_text("[Chat] Der Chat wurde von [Mod] ┃ Alice verlangsamt.")
    assert harness.throttle.mode == ChatThrottleMode.SLOW

    harness.router.handle_text("[Chat] Der Chat wurde von [Mod] ┃ Alice geleert.")
    assert harness.throttle.mode == ChatThrottleMode.SLOW

    harness.router.handle_text("[Chat] Der Chat wurde von [Mod] ┃ Alice auf normal gestellt.")
    assert harness.throttle.mode == ChatThrottleMode.NORMAL

    changes = [args[0] for args in harness.of(EventName.THROTTLE_MODE_CHANGED)]
    assert [(change.change, change.mode) for change in changes] == [
        ("verlangsamt", ChatThrottleMode.SLOW),
        ("geleert", None),
        ("auf normal gestellt", ChatThrottleMode.NORMAL),
    ]


@pytest.mark.parametrize(
    ("line", "kind"),
    [
        ("[Chat] Bitte warte 3 Sekunden, bevor du die nächste Nachricht sendest.", ThrottleViolationKind.CHAT),
        ("Bitte unterlasse das Spammen von Commands!", ThrottleViolationKind.COMMAND),
    ],
)
def test_violation_forces_slow_mode(harness: Harness, line: str, kind: ThrottleViolationKind) -> None:
    harness.router.handle_text(line)

    assert harness.throttle.mode == ChatThrottleMode.SLOW
    (violation,) = harness.of(EventName.THROTTLE_VIOLATION)[0]
    assert violation.kind == kind


def test_clear_and_redstone_notices(harness: Harness) -> None:
    harness.router.handle_text("[Server] Warnung! Die auf dem Boden liegenden Items werden in 30 Sekunden entfernt!")
    harness.router.handle_text("[MobRemover] Achtung! In 5 Minuten werden alle Tiere gelöscht.")
    harness.router.handle_text("[Server] Redstone ist jetzt deaktiviert.")
    harness.router.handle_text("[Server] Redstone ist jetzt aktiviert.")

    assert harness.of(EventName.ITEM_CLEAR_NOTICE)[0][0].seconds == 30.0
    assert harness.of(EventName.MOB_CLEAR_NOTICE)[0][0].minutes == 5.0
    states = [args[0].state for args in harness.of(EventName.REDSTONE_STATE_NOTICE)]
    assert states == [RedstoneState.OFF, RedstoneState.ON]


def test_custom_rule_publishes_generic_match() -> None:
    harness = Harness(patterns={"vote": r"^(\w+) hat für den Server gevotet!$"})

    harness.router.handle_text("Bob hat für den Server gevotet!")

    (matched,) = harness.of(EventName.PATTERN_MATCHED)[0]
    assert (matched.name, matched.groups) == ("vote", ("Bob",))


def test_scoreboard_packets(harness: Harness) -> None:
    harness.router.handle_packet({"name": "money_value", "prefix": "12.500$"}, {"name": "scoreboard_team"})
    harness.router.handle_packet({"name": "money_value", "prefix": "Laden..."}, {"name": "scoreboard_team"})
    harness.router.handle_packet({"name": "server_value", "prefix": "§aCB§l12"}, {"name": "scoreboard_team"})
    harness.router.handle_packet({"name": "server_value", "prefix": "  "}, {"name": "scoreboard_team"})
    harness.router.handle_packet({"name": "money_value", "prefix": "1$"}, {"name": "chat"})

    assert [args[0].raw_balance for args in harness.of(EventName.BALANCE_UPDATE)] == ["12.500$"]
    assert [args[0].name for args in harness.of(EventName.SERVER_NAME_UPDATE)] == ["CB12"]


def test_lifecycle_signals_drive_transitions(harness: Harness) -> None:
    harness.router.handle_login()
    harness.router.handle_kicked("Du wurdest gekickt", True)
    harness.router.handle_end()

    assert harness.transitions == [
        ConnectionState.LOGGED_IN,
        ConnectionState.DISCONNECTED,
        ConnectionState.DISCONNECTED,
    ]
    assert harness.of(EventName.LOGIN) == [()]
    assert harness.of(EventName.KICKED) == [("Du wurdest gekickt", True)]
    assert harness.of(EventName.END) == [()]


def test_error_classification(harness: Harness) -> None:
    noise = RuntimeError("Deserialization error for play.toClient")
    auth = RuntimeError("Invalid username or password.")
    other = RuntimeError("ECONNRESET")

    assert harness.router.handle_error(noise) == ErrorClass.NOISE
    assert harness.transitions == []
    assert harness.of(EventName.ERROR) == []

    assert harness.router.handle_error(auth) == ErrorClass.AUTHENTICATION
    assert harness.transitions == [ConnectionState.DISCONNECTED]

    assert harness.router.handle_error(other) == ErrorClass.OTHER
    assert harness.transitions == [ConnectionState.DISCONNECTED]
    assert harness.of(EventName.ERROR) == [(auth,), (other,)]


def test_ready_fires_on_first_spawn_after_connect(harness: Harness) -> None:
    harness.router.handle_spawn()
    harness.router.handle_connect()
    harness.router.handle_spawn()
    harness.router.handle_spawn()

    assert len(harness.of(EventName.SPAWN)) == 3
    assert harness.of(EventName.READY) == [()]


def test_collect_events_distinguish_own_bot(harness: Harness) -> None:
    harness.router.handle_player_collect({"username": "PacerBot"}, "diamond")
    harness.router.handle_player_collect({"username": "Bob"}, "stone")

    assert harness.of(EventName.BOT_COLLECTED) == [("diamond",)]
    assert harness.of(EventName.PLAYER_COLLECTED) == [({"username": "Bob"}, "stone")]


def test_afk_window_detection(harness: Harness) -> None:
    assert harness.router.handle_window_opened({"type": "minecraft:container", "title": '"§cAFK?"'}) is True
    assert harness.router.handle_window_opened({"type": "minecraft:container", "title": '"Shop"'}) is False
    assert harness.router.handle_window_opened({"type": "minecraft:chest", "title": '"§cAFK?"'}) is False
    assert len(harness.of(EventName.WINDOW_OPENED)) == 3


def test_parse_number() -> None:
    assert parse_number("1,000") == 1000.0
    assert math.isnan(parse_number("abc"))
    assert math.isnan(parse_number(None))
