"""Session management on top of a Minecraft protocol client."""

from .config import ChatLogMode, Settings, load_settings
from .errors import CollaboratorMissingError, NotOnlineError, SessionClosedError, SessionError, UnknownDestinationError
from .events import EventBus, EventName
from .models import ChatThrottleMode, ConnectionState, DecodedText
from .pacer import ChatPacer, Cooldowns
from .router import EventRouter
from .session import SessionController

__all__ = [
    "ChatLogMode",
    "ChatPacer",
    "ChatThrottleMode",
    "CollaboratorMissingError",
    "ConnectionState",
    "Cooldowns",
    "DecodedText",
    "EventBus",
    "EventName",
    "EventRouter",
    "NotOnlineError",
    "SessionClosedError",
    "SessionController",
    "SessionError",
    "Settings",
    "UnknownDestinationError",
    "load_settings",
]
