"""Runtime configuration for the session layer."""

from __future__ import annotations

from enum import Enum
from pathlib import Path

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class ChatLogMode(str, Enum):
    """How received chat lines are echoed to the console."""

    OFF = "off"
    PLAIN = "plain"
    CODED = "coded"
    STYLED = "styled"


class Settings(BaseSettings):
    """Environment-driven session settings.

    Values passed to the constructor win over ``MC_SESSION_*`` environment
    variables, which win over the defaults below.
    """

    model_config = SettingsConfigDict(env_prefix="MC_SESSION_", env_file=".env", extra="ignore")

    app_name: str = "mc-session"
    log_level: str = "INFO"
    log_messages: ChatLogMode = ChatLogMode.OFF

    server_host: str = "127.0.0.1"
    server_port: int = 25565
    protocol_version: str = "1.8"
    username: str | None = None
    auth: str = "microsoft"

    command_prefix: str = "/"
    normal_cooldown: float = Field(default=1.0, description="Seconds between commands in normal chat mode.")
    slow_cooldown: float = Field(default=3.0, description="Seconds between commands in slow chat mode.")
    chat_extra_delay: float = Field(
        default=1.0,
        description="Extra seconds plain chat waits on top of the command cooldown.",
    )
    additional_chat_delay: float = Field(
        default=0.0,
        description="Flat delay added to every cooldown, for servers that kick for spam anyway.",
    )
    corrective_line: str = "&f"

    solve_afk_challenge: bool = True
    afk_window_type: str = "minecraft:container"
    afk_title_marker: str = "§cAFK?"

    destinations_folder: Path = Path("destinations")

    noise_error_markers: list[str] = Field(default_factory=lambda: ["deserialization", "buffer"])
    auth_error_markers: list[str] = Field(default_factory=lambda: ["invalid username or password"])

    normal_mode_phrases: list[str] = Field(default_factory=lambda: ["auf normal gestellt"])
    slow_mode_phrases: list[str] = Field(default_factory=lambda: ["verlangsamt"])
    patterns: dict[str, str] = Field(
        default_factory=dict,
        description="Rule name to regular expression; replaces or extends the built-in rules.",
    )
    payment_exclusion_phrase: str = "§f §ahat dir $"
    scoreboard_loading_marker: str = "Laden"

    @field_validator("normal_cooldown", "slow_cooldown", "chat_extra_delay", "additional_chat_delay")
    @classmethod
    def _non_negative(cls, value: float) -> float:
        if value < 0:
            raise ValueError("cooldowns must not be negative")
        return value

    @model_validator(mode="after")
    def _ordered_cooldowns(self) -> Settings:
        if self.chat_extra_delay <= 0:
            raise ValueError("chat_extra_delay must be positive")
        if self.normal_cooldown + self.chat_extra_delay >= self.slow_cooldown:
            raise ValueError("normal chat cooldown must stay below the slow command cooldown")
        return self


def load_settings(**overrides: object) -> Settings:
    """Build settings, letting explicit keyword overrides win over the environment."""
    return Settings(**overrides)
