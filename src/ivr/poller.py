"""Status polling for a single call handle.

A poll session asks the status source for the call's state until the API
reports a terminal state or the attempt budget runs out. Failed checks are
reported as ``TransientFault`` events and retried after a short delay; they
never end the session on their own.
"""

from __future__ import annotations

import asyncio
import inspect
import logging
import time
from collections.abc import AsyncIterator, Awaitable, Callable
from dataclasses import dataclass
from enum import Enum
from typing import Protocol

from ivr.errors import IvrError
from ivr.schemas import CallHandle, CallStatus

LOGGER = logging.getLogger(__name__)

DEFAULT_INTERVAL = 5.0
DEFAULT_MAX_ATTEMPTS = 12
DEFAULT_ERROR_DELAY = 1.0


class StatusSource(Protocol):
    async def get_status(self, handle: CallHandle) -> CallStatus:
        ...


class PollOutcome(str, Enum):
    TERMINAL = "terminal"
    EXHAUSTED = "exhausted"
    CANCELLED = "cancelled"
    DEADLINE = "deadline"


@dataclass(frozen=True, slots=True)
class StatusUpdate:
    """A status reported by the API. Authoritative, even when ``state == "error"``."""

    attempt: int
    status: CallStatus

    @property
    def state(self) -> str:
        return self.status.status

    @property
    def message(self) -> str | None:
        return self.status.message

    @property
    def terminal(self) -> bool:
        return self.status.is_terminal

    @property
    def transient(self) -> bool:
        return False


@dataclass(frozen=True, slots=True)
class TransientFault:
    """A status check that failed; the session retries it."""

    attempt: int
    error: IvrError

    @property
    def state(self) -> str:
        return "error"

    @property
    def message(self) -> str:
        return str(self.error)

    @property
    def terminal(self) -> bool:
        return False

    @property
    def transient(self) -> bool:
        return True

    def as_status(self) -> CallStatus:
        return CallStatus(status=self.state, message=self.message)


PollEvent = StatusUpdate | TransientFault


class PollObserver(Protocol):
    def __call__(self, event: PollEvent) -> Awaitable[None] | None:
        ...


@dataclass(frozen=True, slots=True)
class PollResult:
    outcome: PollOutcome
    status: CallStatus | None
    attempts: int

    @property
    def exhausted(self) -> bool:
        return self.outcome is PollOutcome.EXHAUSTED


class PollSession:
    """Async iterator over the events of one poll session.

    ``result`` is set once iteration ends; it stays ``None`` if the consumer
    stops iterating early.
    """

    def __init__(self, poller: CallPoller, handle: CallHandle) -> None:
        self.handle = handle
        self.attempts = 0
        self.result: PollResult | None = None
        self._poller = poller

    def __aiter__(self) -> AsyncIterator[PollEvent]:
        return self._events()

    def _finish(self, outcome: PollOutcome, status: CallStatus | None = None) -> None:
        self.result = PollResult(outcome=outcome, status=status, attempts=self.attempts)
        LOGGER.info(
            "Polling request_id=%s finished: %s after %d attempt(s)",
            self.handle,
            outcome.value,
            self.attempts,
        )

    async def _events(self) -> AsyncIterator[PollEvent]:
        poller = self._poller
        started = poller.clock()

        while self.attempts < poller.max_attempts:
            stop = poller.stop_reason(started)
            if stop is not None:
                self._finish(stop)
                return

            event: PollEvent
            try:
                status = await poller.source.get_status(self.handle)
            except IvrError as exc:
                event = TransientFault(attempt=self.attempts + 1, error=exc)
                delay = poller.error_delay
                LOGGER.warning(
                    "Status check %d/%d for request_id=%s failed: %s",
                    event.attempt,
                    poller.max_attempts,
                    self.handle,
                    exc,
                )
            else:
                event = StatusUpdate(attempt=self.attempts + 1, status=status)
                delay = poller.interval
                LOGGER.info(
                    "Status check %d/%d for request_id=%s: %s",
                    event.attempt,
                    poller.max_attempts,
                    self.handle,
                    status.status,
                )

            self.attempts += 1
            yield event

            if isinstance(event, StatusUpdate) and event.terminal:
                self._finish(PollOutcome.TERMINAL, event.status)
                return

            if self.attempts >= poller.max_attempts:
                break

            stop = poller.stop_reason(started)
            if stop is not None:
                self._finish(stop)
                return
            await poller.pause(delay, started)

        self._finish(PollOutcome.EXHAUSTED)


class CallPoller:
    """Drives status checks for a call until it ends or the budget runs out."""

    def __init__(
        self,
        source: StatusSource,
        *,
        interval: float = DEFAULT_INTERVAL,
        max_attempts: int = DEFAULT_MAX_ATTEMPTS,
        error_delay: float = DEFAULT_ERROR_DELAY,
        cancel_event: asyncio.Event | None = None,
        deadline: float | None = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if interval < 0 or error_delay < 0:
            raise ValueError("Poll delays must be non-negative.")
        if max_attempts < 0:
            raise ValueError("max_attempts must be non-negative.")
        if deadline is not None and deadline < 0:
            raise ValueError("deadline must be non-negative.")

        self.source = source
        self.interval = interval
        self.max_attempts = max_attempts
        self.error_delay = error_delay
        self.cancel_event = cancel_event
        self.deadline = deadline
        self.clock = clock
        self._sleep = sleep

    def session(self, handle: CallHandle) -> PollSession:
        return PollSession(self, handle)

    async def run(self, handle: CallHandle, observer: PollObserver | None = None) -> PollResult:
        """Poll ``handle`` to completion, passing every event to ``observer``.

        Errors raised by the observer propagate and end the session.
        """

        session = self.session(handle)
        async for event in session:
            if observer is None:
                continue
            notified = observer(event)
            if inspect.isawaitable(notified):
                await notified

        if session.result is None:
            raise RuntimeError(f"Poll session for request_id={handle} ended without a result.")
        return session.result

    def stop_reason(self, started: float) -> PollOutcome | None:
        if self.cancel_event is not None and self.cancel_event.is_set():
            return PollOutcome.CANCELLED
        if self.deadline is not None and self.clock() - started >= self.deadline:
            return PollOutcome.DEADLINE
        return None

    async def pause(self, delay: float, started: float) -> None:
        if self.deadline is not None:
            delay = max(0.0, min(delay, self.deadline - (self.clock() - started)))

        if self.cancel_event is None:
            await self._sleep(delay)
            return

        # Wake early when the caller cancels.
        sleeper = asyncio.ensure_future(self._sleep(delay))
        waiter = asyncio.ensure_future(self.cancel_event.wait())
        try:
            await asyncio.wait({sleeper, waiter}, return_when=asyncio.FIRST_COMPLETED)
        finally:
            for task in (sleeper, waiter):
                task.cancel()
            await asyncio.gather(sleeper, waiter, return_exceptions=True)
