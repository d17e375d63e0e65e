"""
Time sources that drive backdrop scrolling and generation.

Two kinds of scheduler are used:

- A frame scheduler fires once per display refresh and hands the callback a
  millisecond timestamp. The scroll coordinator awaits it between frames.
- An idle scheduler fires when the host has spare time and hands the
  callback an ``IdleDeadline`` describing how much of that spare time is
  left. Catch-up work runs on it, a few segments at a time.

Each kind has an asyncio implementation for real-time playback and a manual
implementation that only advances when told to, for headless rendering and
tests.
"""

import asyncio
import itertools
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional, Protocol, Tuple

import structlog

logger = structlog.get_logger()

FrameCallback = Callable[[float], None]


class IdleDeadline(Protocol):
    """Budget handed to an idle callback."""

    did_timeout: bool

    def time_remaining(self) -> float:
        """Milliseconds left in the current idle slot."""
        ...


IdleCallback = Callable[[IdleDeadline], None]


class FrameScheduler(Protocol):
    def request_frame(self, callback: FrameCallback) -> int:
        ...

    def cancel(self, handle: int) -> None:
        ...


class IdleScheduler(Protocol):
    def request_idle_callback(
        self, callback: IdleCallback, timeout: Optional[float] = None
    ) -> int:
        ...

    def cancel(self, handle: int) -> None:
        ...


async def next_frame(scheduler: FrameScheduler) -> float:
    """
    Wait for the next frame and return its timestamp in milliseconds.

    Example:
        while True:
            frame_time = await next_frame(frames)
            # per-frame work using frame_time
    """
    future = asyncio.get_running_loop().create_future()

    def resolve(timestamp: float) -> None:
        if not future.done():
            future.set_result(timestamp)

    handle = scheduler.request_frame(resolve)
    try:
        return await future
    except asyncio.CancelledError:
        scheduler.cancel(handle)
        raise


async def next_idle_slot(
    scheduler: IdleScheduler, timeout: Optional[float] = None
) -> IdleDeadline:
    """
    Wait for the next idle slot and return its deadline.

    Args:
        scheduler: Idle scheduler to wait on
        timeout: Upper bound in milliseconds on how long to wait; when it
            expires the slot is granted anyway with ``did_timeout`` set
    """
    future = asyncio.get_running_loop().create_future()

    def resolve(deadline: IdleDeadline) -> None:
        if not future.done():
            future.set_result(deadline)

    handle = scheduler.request_idle_callback(resolve, timeout=timeout)
    try:
        return await future
    except asyncio.CancelledError:
        scheduler.cancel(handle)
        raise


# ---------------------------------------------------------------------------
# asyncio implementations
# ---------------------------------------------------------------------------


class AsyncioFrameScheduler:
    """Fires frame callbacks on a fixed interval of the running event loop."""

    def __init__(self, interval_ms: float = 1000 / 60, loop: Optional[asyncio.AbstractEventLoop] = None):
        self.interval_ms = interval_ms
        self._loop = loop
        self._ids = itertools.count(1)
        self._handles: Dict[int, asyncio.TimerHandle] = {}

    @property
    def loop(self) -> asyncio.AbstractEventLoop:
        if self._loop is None:
            self._loop = asyncio.get_running_loop()
        return self._loop

    def now(self) -> float:
        return self.loop.time() * 1000

    def request_frame(self, callback: FrameCallback) -> int:
        handle_id = next(self._ids)
        # align to the next interval boundary so every waiter sees the same timestamp
        now = self.now()
        frame_time = (now // self.interval_ms + 1) * self.interval_ms

        def fire() -> None:
            self._handles.pop(handle_id, None)
            callback(frame_time)

        self._handles[handle_id] = self.loop.call_later((frame_time - now) / 1000, fire)
        return handle_id

    def cancel(self, handle: int) -> None:
        timer = self._handles.pop(handle, None)
        if timer is not None:
            timer.cancel()


class LoopIdleDeadline:
    """Deadline measured against the event loop clock."""

    def __init__(self, loop: asyncio.AbstractEventLoop, budget_ms: float, did_timeout: bool):
        self._loop = loop
        self._end = loop.time() * 1000 + budget_ms
        self.did_timeout = did_timeout

    def time_remaining(self) -> float:
        return max(0.0, self._end - self._loop.time() * 1000)


class AsyncioIdleScheduler:
    """
    Approximates browser idle callbacks on an asyncio loop.

    A request is granted after ``delay_ms`` with a budget of ``budget_ms``.
    When the request carries a timeout shorter than the delay, the slot is
    granted at the timeout instead and flagged ``did_timeout``.
    """

    def __init__(
        self,
        budget_ms: float = 10.0,
        delay_ms: float = 4.0,
        loop: Optional[asyncio.AbstractEventLoop] = None,
    ):
        self.budget_ms = budget_ms
        self.delay_ms = delay_ms
        self._loop = loop
        self._ids = itertools.count(1)
        self._handles: Dict[int, asyncio.TimerHandle] = {}

    @property
    def loop(self) -> asyncio.AbstractEventLoop:
        if self._loop is None:
            self._loop = asyncio.get_running_loop()
        return self._loop

    def request_idle_callback(
        self, callback: IdleCallback, timeout: Optional[float] = None
    ) -> int:
        handle_id = next(self._ids)
        timed_out = timeout is not None and timeout < self.delay_ms
        wait_ms = timeout if timed_out else self.delay_ms

        def fire() -> None:
            self._handles.pop(handle_id, None)
            if timed_out:
                logger.debug("Idle slot forced by timeout", timeout_ms=timeout)
            callback(LoopIdleDeadline(self.loop, self.budget_ms, timed_out))

        self._handles[handle_id] = self.loop.call_later(max(wait_ms, 0) / 1000, fire)
        return handle_id

    def cancel(self, handle: int) -> None:
        timer = self._handles.pop(handle, None)
        if timer is not None:
            timer.cancel()


# ---------------------------------------------------------------------------
# Manual implementations
# ---------------------------------------------------------------------------


class ManualFrameScheduler:
    """Frame scheduler that only fires when ``tick`` is called."""

    def __init__(self):
        self._ids = itertools.count(1)
        self._pending: Dict[int, FrameCallback] = {}
        self.last_timestamp: Optional[float] = None

    @property
    def pending_count(self) -> int:
        return len(self._pending)

    def request_frame(self, callback: FrameCallback) -> int:
        handle_id = next(self._ids)
        self._pending[handle_id] = callback
        return handle_id

    def cancel(self, handle: int) -> None:
        self._pending.pop(handle, None)

    def tick(self, timestamp: float) -> int:
        """
        Fire every callback requested before this call.

        Callbacks requested while firing wait for the next tick.

        Returns:
            Number of callbacks fired
        """
        if self.last_timestamp is not None and timestamp < self.last_timestamp:
            raise ValueError(f"Frame timestamps must not go backwards ({timestamp} < {self.last_timestamp})")
        self.last_timestamp = timestamp
        callbacks = list(self._pending.values())
        self._pending.clear()
        for callback in callbacks:
            callback(timestamp)
        return len(callbacks)


@dataclass
class ManualIdleDeadline:
    """
    Deadline whose budget is counted in queries instead of milliseconds.

    Every call to ``time_remaining`` spends one unit, so a budget of ``n``
    lets a caller that checks once per unit of work do ``n`` units.
    """

    budget: float
    did_timeout: bool = False
    _spent: int = field(default=0, repr=False)

    def time_remaining(self) -> float:
        self._spent += 1
        return max(0.0, self.budget - self._spent)


class ManualIdleScheduler:
    """Idle scheduler that only grants slots when ``run_pending`` is called."""

    def __init__(self):
        self._ids = itertools.count(1)
        self._pending: Dict[int, Tuple[IdleCallback, Optional[float]]] = {}

    @property
    def pending_count(self) -> int:
        return len(self._pending)

    def pending_timeouts(self) -> List[Optional[float]]:
        return [timeout for _, timeout in self._pending.values()]

    def request_idle_callback(
        self, callback: IdleCallback, timeout: Optional[float] = None
    ) -> int:
        handle_id = next(self._ids)
        self._pending[handle_id] = (callback, timeout)
        return handle_id

    def cancel(self, handle: int) -> None:
        self._pending.pop(handle, None)

    def run_pending(self, budget: float = float("inf"), did_timeout: bool = False) -> int:
        """
        Grant one idle slot to each callback requested before this call.

        Args:
            budget: Units of work each slot allows (see ``ManualIdleDeadline``)
            did_timeout: Report the slots as forced by a timeout

        Returns:
            Number of callbacks run
        """
        pending = list(self._pending.values())
        self._pending.clear()
        for callback, _ in pending:
            callback(ManualIdleDeadline(budget, did_timeout))
        return len(pending)

    def run_until_idle(self, budget: float = float("inf"), max_rounds: int = 10000) -> int:
        """Keep granting slots until nobody is waiting. Returns the number of rounds."""
        rounds = 0
        while self._pending:
            if rounds >= max_rounds:
                raise RuntimeError(f"Idle callbacks still pending after {max_rounds} rounds")
            self.run_pending(budget)
            rounds += 1
        return rounds
