"""Logging setup and console echo of received chat."""

from __future__ import annotations

import logging

from rich.console import Console
from rich.logging import RichHandler
from rich.text import Text

from mc_session.chat.decoder import SECTION
from mc_session.config import ChatLogMode
from mc_session.models import DecodedText

_RICH_COLORS = {
    "0": "black",
    "1": "blue",
    "2": "green",
    "3": "cyan",
    "4": "red",
    "5": "magenta",
    "6": "yellow",
    "7": "white",
    "8": "bright_black",
    "9": "bright_blue",
    "a": "bright_green",
    "b": "bright_cyan",
    "c": "bright_red",
    "d": "bright_magenta",
    "e": "bright_yellow",
    "f": "bright_white",
}
_RICH_FORMATS = {"l": "bold", "m": "strike", "n": "underline", "o": "italic", "k": "blink"}


def configure_logging(level: str = "INFO", console: Console | None = None) -> None:
    """Route ``mc_session`` loggers through a rich console handler."""
    handler = RichHandler(console=console, show_path=False, rich_tracebacks=True)
    logger = logging.getLogger("mc_session")
    logger.handlers[:] = [handler]
    logger.setLevel(level.upper())
    logger.propagate = False


def coded_to_rich(coded: str) -> Text:
    """Render a ``§``-coded line as styled rich text."""
    text = Text()
    color: str | None = None
    formats: list[str] = []
    index = 0
    while index < len(coded):
        char = coded[index]
        if char == SECTION and index + 1 < len(coded):
            code = coded[index + 1].lower()
            if code in _RICH_COLORS:
                color, formats = _RICH_COLORS[code], []
                index += 2
                continue
            if code in _RICH_FORMATS:
                formats.append(_RICH_FORMATS[code])
                index += 2
                continue
            if code == "r":
                color, formats = None, []
                index += 2
                continue
        style = " ".join(([color] if color else []) + formats)
        text.append(char, style=style or None)
        index += 1
    return text


class ChatEcho:
    """Prints received chat lines in the configured rendering."""

    def __init__(self, mode: ChatLogMode = ChatLogMode.OFF, console: Console | None = None) -> None:
        self.mode = mode
        self._console = console or Console()

    def echo(self, decoded: DecodedText) -> None:
        if self.mode == ChatLogMode.OFF:
            return
        if self.mode == ChatLogMode.PLAIN:
            self._console.print(decoded.plain, markup=False, highlight=False)
        elif self.mode == ChatLogMode.CODED:
            self._console.print(decoded.coded, markup=False, highlight=False)
        else:
            self._console.print(coded_to_rich(decoded.coded))
