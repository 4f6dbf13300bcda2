"""Connection lifecycle and public API of one game session."""

from __future__ import annotations

import asyncio
import logging
import time
from typing import Any, Awaitable, Callable

from mc_session.adapters.transport import GameTransport, TransportFactory, TransportSignal
from mc_session.chat import PatternRegistry, build_registry
from mc_session.config import Settings
from mc_session.destinations import DestinationOptions, DestinationStore
from mc_session.errors import CollaboratorMissingError, NotOnlineError
from mc_session.events import EventBus, EventName, Subscriber
from mc_session.models import ChatThrottleMode, ConnectionState, ThrottleState, ThrottleViolation, ThrottleViolationKind
from mc_session.pacer import ChatPacer, Cooldowns, Scheduler
from mc_session.router import EventRouter
from mc_session.telemetry import ChatEcho

Connector = Callable[["SessionController", DestinationOptions], Awaitable[Any]]
AfkChallengeSolver = Callable[["SessionController", Any], Awaitable[Any]]
Navigator = Callable[[Any], Awaitable[Any]]


class SessionController:
    """Owns the transport binding and the connection state machine.

    States move NotStarted -> LoggingIn -> LoggedIn -> Disconnected. Calling
    :meth:`init` again from any state tears the old binding down and starts
    over from LoggingIn.
    """

    def __init__(
        self,
        transport_factory: TransportFactory,
        *,
        settings: Settings | None = None,
        bus: EventBus | None = None,
        registry: PatternRegistry | None = None,
        destinations: DestinationStore | None = None,
        connector: Connector | None = None,
        afk_solver: AfkChallengeSolver | None = None,
        navigator: Navigator | None = None,
        scheduler: Scheduler | None = None,
        clock: Callable[[], float] = time.monotonic,
        echo: ChatEcho | None = None,
        logger: logging.Logger | None = None,
    ) -> None:
        self._transport_factory = transport_factory
        self._settings = settings or Settings()
        self._bus = bus or EventBus()
        self._destinations = destinations or DestinationStore(self._settings.destinations_folder)
        self._connector = connector
        self._afk_solver = afk_solver
        self._navigator = navigator
        self._scheduler = scheduler
        self._clock = clock
        self._logger = logger or logging.getLogger("mc_session.session")

        self._status = ConnectionState.NOT_STARTED
        self._transport: GameTransport | None = None
        self._bindings: list[tuple[str, Callable[..., Any]]] = []
        self._pacer: ChatPacer | None = None
        self._throttle = ThrottleState()
        self._afk_tasks: set[asyncio.Task[None]] = set()

        self._router = EventRouter(
            bus=self._bus,
            registry=registry or build_registry(self._settings.patterns),
            throttle=self._throttle,
            settings=self._settings,
            transition=self._set_status,
            username=self._own_username,
            echo=echo,
        )
        self._bus.subscribe(EventName.THROTTLE_VIOLATION, self._on_throttle_violation)

    @property
    def settings(self) -> Settings:
        return self._settings

    @property
    def bus(self) -> EventBus:
        return self._bus

    @property
    def router(self) -> EventRouter:
        return self._router

    @property
    def pacer(self) -> ChatPacer | None:
        return self._pacer

    @property
    def transport(self) -> GameTransport | None:
        return self._transport

    @property
    def status(self) -> ConnectionState:
        return self._status

    @property
    def throttle_mode(self) -> ChatThrottleMode:
        return self._throttle.mode

    def get_status(self) -> ConnectionState:
        return self._status

    def is_online(self) -> bool:
        return self._transport is not None and self._status == ConnectionState.LOGGED_IN

    def subscribe(self, event: str, callback: Subscriber) -> Callable[[], bool]:
        return self._bus.subscribe(event, callback)

    def unsubscribe(self, event: str, callback: Subscriber) -> bool:
        return self._bus.unsubscribe(event, callback)

    def init(self) -> None:
        """Start (or restart) the session with a fresh transport."""
        self._set_status(ConnectionState.LOGGING_IN)
        self._clean()

        transport = self._transport_factory(self._settings)
        self._transport = transport
        self._pacer = ChatPacer(
            self._transmit,
            is_online=self.is_online,
            throttle=self._throttle,
            cooldowns=Cooldowns.from_settings(self._settings),
            command_prefix=self._settings.command_prefix,
            scheduler=self._scheduler,
            clock=self._clock,
        )
        self._register_events(transport)
        self._logger.info(
            "session_init",
            extra={"host": self._settings.server_host, "port": self._settings.server_port},
        )

    def end(self, reason: str | None = None) -> None:
        """Ask the transport to quit; the session becomes Disconnected."""
        if self._transport is None:
            return
        self._transport.quit(reason)
        self._set_status(ConnectionState.DISCONNECTED)

    def send(self, text: str, *, expedite: bool = False) -> asyncio.Future[str]:
        if not self.is_online() or self._pacer is None:
            raise NotOnlineError()
        return self._pacer.send(text, expedite=expedite)

    def send_chat(self, text: str, expedite: bool = False) -> asyncio.Future[str]:
        return self.send(text, expedite=expedite)

    def send_command(self, command: str, expedite: bool = False) -> asyncio.Future[str]:
        return self.send(f"{self._settings.command_prefix}{command}", expedite=expedite)

    def send_msg(self, recipient: str, text: str, expedite: bool = False) -> asyncio.Future[str]:
        return self.send_command(f"msg {recipient} {text}", expedite=expedite)

    def pay(self, recipient: str, amount: float, expedite: bool = False) -> asyncio.Future[str]:
        return self.send_command(f"pay {recipient} {_format_amount(amount)}", expedite=expedite)

    async def connect_destination(self, name: str) -> None:
        """Move to the named destination using the configured connector."""
        options = self._destinations.load(name)
        if self._connector is None:
            raise CollaboratorMissingError("No connector configured for destination travel.")
        self._logger.info("destination_connect", extra={"destination": options.name})
        await self._connector(self, options)

    async def navigate_to(self, position: Any) -> None:
        if self._navigator is None:
            raise CollaboratorMissingError("No navigator configured.")
        await self._navigator(position)

    def _set_status(self, status: ConnectionState) -> None:
        old = self._status
        if status == old:
            return
        self._status = status
        self._logger.info("connection_status", extra={"status": status.value, "previous": old.value})
        self._bus.publish(EventName.CONNECTION_STATUS, status, old)

    def _transmit(self, text: str) -> None:
        if self._transport is None:
            raise NotOnlineError()
        self._transport.send_raw_line(text)

    def _own_username(self) -> str | None:
        return getattr(self._transport, "username", None) if self._transport is not None else None

    def _register_events(self, transport: GameTransport) -> None:
        handlers: dict[TransportSignal, Callable[..., Any]] = {
            TransportSignal.CONNECT: self._router.handle_connect,
            TransportSignal.LOGIN: self._router.handle_login,
            TransportSignal.SPAWN: self._router.handle_spawn,
            TransportSignal.DEATH: self._router.handle_death,
            TransportSignal.END: self._router.handle_end,
            TransportSignal.KICKED: self._router.handle_kicked,
            TransportSignal.ERROR: self._router.handle_error,
            TransportSignal.TEXT_MESSAGE: self._router.handle_text,
            TransportSignal.GENERIC_PACKET: self._router.handle_packet,
            TransportSignal.WINDOW_OPENED: self._on_window_opened,
            TransportSignal.PLAYER_COLLECT: self._router.handle_player_collect,
        }
        for signal, handler in handlers.items():
            bound = self._bound_to(transport, handler)
            transport.on(signal.value, bound)
            self._bindings.append((signal.value, bound))

    def _bound_to(self, transport: GameTransport, handler: Callable[..., Any]) -> Callable[..., Any]:
        def _forward(*args: Any) -> None:
            # Late signals from a replaced transport are ignored.
            if self._transport is transport:
                handler(*args)

        return _forward

    def _clean(self, reason: str | None = None) -> None:
        transport = self._transport
        if transport is None:
            return

        if self._pacer is not None:
            self._pacer.close()
        for signal, callback in self._bindings:
            try:
                transport.off(signal, callback)
            except Exception:  # noqa: BLE001
                self._logger.debug("transport_unbind_failed", extra={"signal": signal})
        self._bindings.clear()
        self._transport = None
        self._pacer = None
        transport.quit(reason)

    def _on_window_opened(self, window: Any) -> None:
        if not self._router.handle_window_opened(window):
            return
        if not self._settings.solve_afk_challenge or self._afk_solver is None:
            return

        task = asyncio.get_running_loop().create_task(self._solve_afk_challenge(window))
        self._afk_tasks.add(task)
        task.add_done_callback(self._afk_tasks.discard)

    async def _solve_afk_challenge(self, window: Any) -> None:
        if self._afk_solver is None:
            return
        try:
            await self._afk_solver(self, window)
        except Exception:  # noqa: BLE001
            self._logger.exception("afk_challenge_failed")
            return
        self._bus.publish(EventName.AFK_CHALLENGE_SOLVED)

    def _on_throttle_violation(self, violation: ThrottleViolation) -> None:
        if violation.kind != ThrottleViolationKind.CHAT or not self.is_online():
            return
        # An empty-looking line keeps the server from holding back our chat.
        self.send_chat(self._settings.corrective_line, expedite=True)


def _format_amount(amount: float) -> str:
    if float(amount).is_integer():
        return str(int(amount))
    return str(amount)
