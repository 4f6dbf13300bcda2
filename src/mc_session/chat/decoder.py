"""Conversion of rich-text chat components into legacy formatting-coded strings.

Minecraft chat arrives as a JSON component tree: every node may carry literal
``text``, styling (``color`` plus boolean format flags) and child nodes under
``extra``. Children inherit the style of their parent unless they override it.

The coded string produced here uses the legacy ``§`` markers. A marker
sequence is written only when the effective style of a text-bearing node
differs from the one previously written, so plain runs stay readable.
"""

from __future__ import annotations

import json
import re
from dataclasses import dataclass
from typing import Any

from mc_session.models import DecodedText

SECTION = "§"
CODE_PATTERN = re.compile(r"§[0-9a-fk-or]", re.IGNORECASE)

COLOR_CODES = {
    "black": "0",
    "dark_blue": "1",
    "dark_green": "2",
    "dark_aqua": "3",
    "dark_red": "4",
    "dark_purple": "5",
    "gold": "6",
    "gray": "7",
    "dark_gray": "8",
    "blue": "9",
    "green": "a",
    "aqua": "b",
    "red": "c",
    "light_purple": "d",
    "yellow": "e",
    "white": "f",
}

# Ordered by legacy code so marker sequences are deterministic.
FORMAT_CODES = (
    ("obfuscated", "k"),
    ("bold", "l"),
    ("strikethrough", "m"),
    ("underlined", "n"),
    ("italic", "o"),
)

TRANSLATIONS = {
    "chat.type.text": "<%s> %s",
    "chat.type.announcement": "[%s] %s",
    "chat.type.emote": "* %s %s",
    "multiplayer.player.joined": "%s joined the game",
    "multiplayer.player.left": "%s left the game",
}

_PLACEHOLDER = re.compile(r"%(?:(\d+)\$)?s")


@dataclass(frozen=True, slots=True)
class _Style:
    color: str | None = None
    formats: frozenset[str] = frozenset()

    def inherit(self, component: dict[str, Any]) -> _Style:
        color = self.color
        raw_color = component.get("color")
        if isinstance(raw_color, str):
            if raw_color == "reset":
                color = None
            elif raw_color in COLOR_CODES:
                color = COLOR_CODES[raw_color]

        formats = set(self.formats)
        for flag, code in FORMAT_CODES:
            value = component.get(flag)
            if value is True:
                formats.add(code)
            elif value is False:
                formats.discard(code)
        return _Style(color=color, formats=frozenset(formats))

    def markers(self) -> str:
        head = f"{SECTION}{self.color}" if self.color else f"{SECTION}r"
        return head + "".join(f"{SECTION}{code}" for _, code in FORMAT_CODES if code in self.formats)


_RESET = _Style()


def strip_codes(text: str) -> str:
    """Remove every legacy formatting marker from ``text``."""
    return CODE_PATTERN.sub("", text)


def json_to_coded_text(payload: Any) -> str:
    """Flatten a component tree into a ``§``-coded string. Never raises."""
    parts: list[str] = []
    last_written = _RESET
    stack: list[tuple[Any, _Style]] = [(payload, _RESET)]

    while stack:
        node, parent_style = stack.pop()
        if node is None:
            continue

        if isinstance(node, list):
            stack.extend((child, parent_style) for child in reversed(node))
            continue

        if not isinstance(node, dict):
            text, style, children = _scalar_text(node), parent_style, []
        else:
            style = parent_style.inherit(node)
            text = _scalar_text(node.get("text"))
            children = _children_of(node)

        if text:
            if style != last_written:
                parts.append(style.markers())
                last_written = style
            parts.append(text)

        stack.extend((child, style) for child in reversed(children))

    return "".join(parts)


def decode(payload: Any) -> DecodedText:
    """Decode a chat payload (component, list or raw/JSON string) into coded and plain text."""
    if isinstance(payload, (bytes, bytearray)):
        payload = payload.decode("utf-8", errors="replace")
    if isinstance(payload, str):
        payload = _maybe_json(payload)

    coded = json_to_coded_text(payload).strip()
    return DecodedText(coded=coded, plain=strip_codes(coded))


def _maybe_json(raw: str) -> Any:
    stripped = raw.strip()
    if not stripped or stripped[0] not in '{["':
        return raw
    try:
        return json.loads(stripped)
    except ValueError:
        return raw


def _scalar_text(value: Any) -> str:
    if isinstance(value, str):
        return value
    if isinstance(value, bool) or value is None:
        return ""
    if isinstance(value, (int, float)):
        return str(value)
    return ""


def _children_of(component: dict[str, Any]) -> list[Any]:
    children: list[Any] = []
    key = component.get("translate")
    if isinstance(key, str):
        children.extend(_expand_translation(key, component.get("with")))

    for field in ("extra", "children"):
        value = component.get(field)
        if isinstance(value, list):
            children.extend(value)
        elif isinstance(value, (dict, str)):
            children.append(value)
    return children


def _expand_translation(key: str, args: Any) -> list[Any]:
    if not isinstance(args, list):
        args = [] if args is None else [args]

    template = TRANSLATIONS.get(key)
    if template is None:
        # Unknown key: show the key, followed by its arguments.
        template = key + " %s" * len(args)

    pieces: list[Any] = []
    cursor = 0
    next_arg = 0
    for match in _PLACEHOLDER.finditer(template):
        if match.start() > cursor:
            pieces.append(template[cursor : match.start()])
        index = int(match.group(1)) - 1 if match.group(1) else next_arg
        next_arg += 1
        if 0 <= index < len(args):
            pieces.append(args[index])
        cursor = match.end()
    if cursor < len(template):
        pieces.append(template[cursor:])
    return pieces
