"""Lookup of named destinations (sub-servers reachable from the hub)."""

from __future__ import annotations

import json
import logging
from pathlib import Path

from pydantic import BaseModel, ConfigDict, ValidationError

from mc_session.errors import UnknownDestinationError


class DestinationOptions(BaseModel):
    """Parameters the connector needs to reach one destination."""

    model_config = ConfigDict(extra="allow")

    name: str | None = None
    server_command: str | None = None
    portal: tuple[float, float, float] | None = None
    timeout_seconds: float = 30.0


class DestinationStore:
    """Reads ``<folder>/<name>.json`` files; names are trimmed and lower-cased."""

    def __init__(self, folder: str | Path, logger: logging.Logger | None = None) -> None:
        self._folder = Path(folder)
        self._logger = logger or logging.getLogger("mc_session.destinations")

    def path_for(self, name: str) -> Path:
        return self._folder / f"{name.strip().lower()}.json"

    def load(self, name: str) -> DestinationOptions:
        path = self.path_for(name)
        try:
            payload = json.loads(path.read_text(encoding="utf-8"))
            options = DestinationOptions.model_validate(payload)
        except (OSError, ValueError, ValidationError) as exc:
            self._logger.warning("destination_unavailable", extra={"destination": name, "path": str(path)})
            raise UnknownDestinationError(name) from exc

        if options.name is None:
            options.name = name.strip().lower()
        return options

    def list_names(self) -> list[str]:
        if not self._folder.is_dir():
            return []
        return sorted(path.stem for path in self._folder.glob("*.json"))
