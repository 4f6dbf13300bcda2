"""Named extraction rules for recognizing server broadcast lines."""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum
from typing import Mapping

from mc_session.models import DecodedText


class TextFlavor(str, Enum):
    """Which rendering of a decoded line a rule is matched against."""

    PLAIN = "plain"
    CODED = "coded"


class RuleName(str, Enum):
    PRIVATE_MESSAGE = "private_message"
    AREA_CHAT = "area_chat"
    TELEPORT_REQUEST = "teleport_request"
    TELEPORT_REQUEST_HERE = "teleport_request_here"
    PAYMENT = "payment"
    PAYMENT_MARKER = "payment_marker"
    THROTTLE_MODE_CHANGE = "throttle_mode_change"
    CHAT_TOO_FAST = "chat_too_fast"
    COMMANDS_TOO_FAST = "commands_too_fast"
    ITEM_CLEAR = "item_clear"
    MOB_CLEAR = "mob_clear"
    REDSTONE_STATE = "redstone_state"


@dataclass(frozen=True, slots=True)
class PatternRule:
    name: str
    pattern: re.Pattern[str]
    flavor: TextFlavor = TextFlavor.PLAIN

    def match(self, decoded: DecodedText) -> re.Match[str] | None:
        text = decoded.coded if self.flavor == TextFlavor.CODED else decoded.plain
        return self.pattern.search(text)


@dataclass(frozen=True, slots=True)
class PatternMatch:
    name: str
    groups: tuple[str | None, ...]
    decoded: DecodedText


# "<rank> ┃ <user>" prefix used by the server in front of player names.
_RANK_USER = r"(\S+) ┃ (~?\w{1,16})"

DEFAULT_RULES: dict[str, tuple[str, TextFlavor]] = {
    RuleName.PRIVATE_MESSAGE.value: (rf"^\[{_RANK_USER} -> mir\] (.*)$", TextFlavor.PLAIN),
    RuleName.AREA_CHAT.value: (rf"^\[Plot-Chat\]\[([^\]]+)\] {_RANK_USER} : (.*)$", TextFlavor.PLAIN),
    RuleName.TELEPORT_REQUEST.value: (
        rf"^{_RANK_USER} möchte sich zu dir teleportieren\.$",
        TextFlavor.PLAIN,
    ),
    RuleName.TELEPORT_REQUEST_HERE.value: (
        rf"^{_RANK_USER} möchte, dass du dich zu der Person teleportierst\.$",
        TextFlavor.PLAIN,
    ),
    RuleName.PAYMENT.value: (rf"^{_RANK_USER} hat dir \$(\S+) gegeben\.$", TextFlavor.PLAIN),
    RuleName.PAYMENT_MARKER.value: (r"§ahat dir \$\S+ gegeben\.$", TextFlavor.CODED),
    RuleName.THROTTLE_MODE_CHANGE.value: (
        rf"^\[Chat\] Der Chat wurde von {_RANK_USER} (auf normal gestellt|verlangsamt|geleert)\.$",
        TextFlavor.PLAIN,
    ),
    RuleName.CHAT_TOO_FAST.value: (
        r"^\[Chat\] Bitte warte \d+ Sekunden?, bevor du die nächste Nachricht sendest\.$",
        TextFlavor.PLAIN,
    ),
    RuleName.COMMANDS_TOO_FAST.value: (r"^Bitte unterlasse das Spammen von Commands!$", TextFlavor.PLAIN),
    RuleName.ITEM_CLEAR.value: (
        r"^\[Server\] Warnung! Die auf dem Boden liegenden Items werden in (\S+) Sekunden entfernt!$",
        TextFlavor.PLAIN,
    ),
    RuleName.MOB_CLEAR.value: (
        r"^\[MobRemover\] Achtung! In (\S+) Minuten? werden alle Tiere gelöscht\.$",
        TextFlavor.PLAIN,
    ),
    RuleName.REDSTONE_STATE.value: (r"^\[Server\] Redstone ist (?:jetzt )?(\S+)\.$", TextFlavor.PLAIN),
}


class PatternRegistry:
    """Ordered set of named rules, each evaluated independently of the others."""

    def __init__(self) -> None:
        self._rules: dict[str, PatternRule] = {}

    def register(self, name: str, pattern: str | re.Pattern[str], flavor: TextFlavor = TextFlavor.PLAIN) -> PatternRule:
        """Add a rule, replacing any rule already registered under ``name``."""
        compiled = pattern if isinstance(pattern, re.Pattern) else re.compile(pattern)
        rule = PatternRule(name=name, pattern=compiled, flavor=flavor)
        self._rules[name] = rule
        return rule

    def unregister(self, name: str) -> bool:
        return self._rules.pop(name, None) is not None

    def get(self, name: str) -> PatternRule | None:
        return self._rules.get(name)

    @property
    def names(self) -> list[str]:
        return list(self._rules)

    def __contains__(self, name: object) -> bool:
        return name in self._rules

    def __len__(self) -> int:
        return len(self._rules)

    def match_all(self, decoded: DecodedText) -> list[PatternMatch]:
        """Return one match per rule that recognizes ``decoded``, in registration order."""
        matches: list[PatternMatch] = []
        for rule in self._rules.values():
            found = rule.match(decoded)
            if found is not None:
                matches.append(PatternMatch(name=rule.name, groups=found.groups(), decoded=decoded))
        return matches


def default_rules() -> dict[str, tuple[str, TextFlavor]]:
    return dict(DEFAULT_RULES)


def build_registry(overrides: Mapping[str, str] | None = None) -> PatternRegistry:
    """Create a registry from the built-in rules, with configured expressions taking precedence.

    An override for a built-in rule keeps that rule's flavor; unknown names are
    added as plain-text rules.
    """
    rules = default_rules()
    for name, expression in (overrides or {}).items():
        flavor = rules[name][1] if name in rules else TextFlavor.PLAIN
        rules[name] = (expression, flavor)

    registry = PatternRegistry()
    for name, (expression, flavor) in rules.items():
        registry.register(name, expression, flavor)
    return registry


def is_legit_payment(matches: Mapping[str, PatternMatch], decoded: DecodedText, exclusion_phrase: str) -> bool:
    """A payment counts only with the coded marker present and no exclusion phrase.

    Players can type text that looks like a payment notice in plain chat, but
    they cannot reproduce the server's formatting.
    """
    if RuleName.PAYMENT.value not in matches or RuleName.PAYMENT_MARKER.value not in matches:
        return False
    return not (exclusion_phrase and exclusion_phrase in decoded.coded)
