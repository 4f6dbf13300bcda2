"""Rate-limited, ordered delivery of outbound chat lines and commands.

The server kicks clients that chat faster than its limiter allows. Every line
therefore goes through :class:`ChatPacer`, which transmits immediately when
the cooldown has passed and otherwise queues the line and drains the queue
with one timer at a time. Everything runs on the event loop thread, so the
queue needs no locking.
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections import deque
from dataclasses import dataclass
from typing import Any, Callable, Protocol

from mc_session.config import Settings
from mc_session.errors import NotOnlineError, SessionClosedError
from mc_session.models import ChatThrottleMode, ThrottleState


class TimerHandle(Protocol):
    def cancel(self) -> None: ...


class Scheduler(Protocol):
    """Anything that can run a callback once after a delay (an asyncio loop qualifies)."""

    def call_later(self, delay: float, callback: Callable[..., Any], *args: Any) -> TimerHandle: ...


@dataclass(frozen=True, slots=True)
class Cooldowns:
    """Base cooldowns in seconds."""

    normal: float = 1.0
    slow: float = 3.0
    chat_extra: float = 1.0
    additional: float = 0.0

    @classmethod
    def from_settings(cls, settings: Settings) -> Cooldowns:
        return cls(
            normal=settings.normal_cooldown,
            slow=settings.slow_cooldown,
            chat_extra=settings.chat_extra_delay,
            additional=settings.additional_chat_delay,
        )


@dataclass(slots=True)
class QueuedMessage:
    text: str
    future: asyncio.Future[str]


class ChatPacer:
    """FIFO outbound queue with a cooldown that depends on throttle mode and line kind."""

    def __init__(
        self,
        transmit: Callable[[str], None],
        *,
        is_online: Callable[[], bool],
        throttle: ThrottleState | None = None,
        cooldowns: Cooldowns | None = None,
        command_prefix: str = "/",
        scheduler: Scheduler | None = None,
        clock: Callable[[], float] = time.monotonic,
        logger: logging.Logger | None = None,
    ) -> None:
        self._transmit = transmit
        self._is_online = is_online
        self._throttle = throttle or ThrottleState()
        self._cooldowns = cooldowns or Cooldowns()
        self._command_prefix = command_prefix
        self._scheduler = scheduler
        self._clock = clock
        self._logger = logger or logging.getLogger("mc_session.pacer")

        self._queue: deque[QueuedMessage] = deque()
        self._last_sent_at: float | None = None
        self._timer: TimerHandle | None = None
        self._closed = False

    @property
    def mode(self) -> ChatThrottleMode:
        return self._throttle.mode

    @property
    def pending(self) -> list[str]:
        """Texts waiting in the queue, front first."""
        return [item.text for item in self._queue]

    def cooldown_for(self, text: str) -> float:
        """Minimum gap in seconds required before ``text`` may be transmitted."""
        delay = self._cooldowns.slow if self._throttle.mode == ChatThrottleMode.SLOW else self._cooldowns.normal
        if not self._is_command(text):
            # Plain chat is limited harder than commands.
            delay += self._cooldowns.chat_extra
        return delay + self._cooldowns.additional

    def send(self, text: str, *, expedite: bool = False) -> asyncio.Future[str]:
        """Transmit ``text`` as soon as the cooldown allows.

        Returns a future resolving to ``text`` once it has been written to the
        transport. Raises :class:`NotOnlineError` without queuing when offline.
        """
        if not self._is_online():
            raise NotOnlineError()
        if self._closed:
            raise SessionClosedError("Pacer was closed together with its transport binding.")

        future: asyncio.Future[str] = self._loop().create_future()
        message = QueuedMessage(text=text, future=future)

        if self._queue:
            if expedite:
                self._queue.appendleft(message)
            else:
                self._queue.append(message)
            self._logger.debug(
                "chat_queued",
                extra={"text": text, "expedite": expedite, "queue_size": len(self._queue)},
            )
            if self._timer is None:
                # Draining stopped while offline; resume it now that we are back.
                self._schedule_drain(self._remaining_wait(self._queue[0].text))
            return future

        wait = self._remaining_wait(text)
        if wait <= 0:
            self._dispatch(message)
            return future

        self._queue.append(message)
        self._schedule_drain(wait)
        return future

    def close(self, *, reject_pending: bool = False) -> None:
        """Stop draining. Queued futures stay pending unless ``reject_pending`` is set."""
        self._closed = True
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

        if reject_pending:
            while self._queue:
                item = self._queue.popleft()
                if not item.future.done():
                    item.future.set_exception(SessionClosedError("Session closed before the line was sent."))
        elif self._queue:
            self._logger.warning("chat_queue_abandoned", extra={"queue_size": len(self._queue)})

    def _drain(self) -> None:
        self._timer = None
        if self._closed or not self._queue:
            return
        # The binding may have been torn down while the timer was pending.
        if not self._is_online():
            self._logger.warning("chat_drain_offline", extra={"queue_size": len(self._queue)})
            return

        # Mode or queue front may have changed since the timer was armed.
        wait = self._remaining_wait(self._queue[0].text)
        if wait > 0:
            self._schedule_drain(wait)
            return

        message = self._queue.popleft()
        try:
            self._dispatch(message)
        except Exception as exc:  # noqa: BLE001
            self._logger.exception("chat_transmit_failed", extra={"text": message.text})
            if not message.future.done():
                message.future.set_exception(exc)
        finally:
            if self._queue and not self._closed:
                self._schedule_drain(self.cooldown_for(self._queue[0].text))

    def _dispatch(self, message: QueuedMessage) -> None:
        self._transmit(message.text)
        self._last_sent_at = self._clock()
        if not message.future.done():
            message.future.set_result(message.text)
        self._logger.debug("chat_sent", extra={"text": message.text, "mode": self._throttle.mode.value})

    def _schedule_drain(self, delay: float) -> None:
        if self._timer is not None:
            self._timer.cancel()
        scheduler = self._scheduler or self._loop()
        self._timer = scheduler.call_later(max(0.0, delay), self._drain)

    def _remaining_wait(self, text: str) -> float:
        if self._last_sent_at is None:
            return 0.0
        return self.cooldown_for(text) - (self._clock() - self._last_sent_at)

    def _is_command(self, text: str) -> bool:
        return bool(self._command_prefix) and text.startswith(self._command_prefix)

    @staticmethod
    def _loop() -> asyncio.AbstractEventLoop:
        return asyncio.get_running_loop()
