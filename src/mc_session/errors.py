"""Error types raised by the session layer."""


class SessionError(RuntimeError):
    """Base class for session-level failures."""


class NotOnlineError(SessionError):
    """Raised when a line is sent while the session is not logged in."""

    def __init__(self, message: str = "Bot is not currently online.") -> None:
        super().__init__(message)


class SessionClosedError(SessionError):
    """Set on queued sends that were rejected because the session was torn down."""


class UnknownDestinationError(SessionError):
    """Raised when no destination file exists for the requested name."""

    def __init__(self, name: str) -> None:
        super().__init__(f"There is no destination named '{name}'.")
        self.name = name


class CollaboratorMissingError(SessionError):
    """Raised when an operation needs an external collaborator that was not provided."""
