"""
Inventory Service — Circuit breaker for outbound calls

State machine:
  CLOSED    → calls flow; outcomes go into a count-based sliding window.
              Once the window holds at least `minimum_calls` outcomes and the
              failure rate or slow-call rate reaches its threshold → OPEN.
  OPEN      → calls are rejected immediately with CircuitOpenError until
              `open_seconds` have elapsed → HALF_OPEN.
  HALF_OPEN → up to `half_open_calls` trial calls are let through. When all
              of them have completed the rates are evaluated again:
              below thresholds → CLOSED (fresh window), otherwise → OPEN.
              A trial call that is cancelled hands its permit back.
"""
import asyncio
import logging
import time
from collections import deque
from enum import Enum
from typing import Awaitable, Callable, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


class BreakerState(str, Enum):
    CLOSED = "closed"
    OPEN = "open"
    HALF_OPEN = "half_open"


class CircuitOpenError(Exception):
    """Raised instead of making a call while the breaker is open."""


class CircuitBreaker:
    def __init__(
        self,
        name: str,
        window_size: int = 10,
        minimum_calls: int = 5,
        failure_rate_threshold: float = 50.0,
        slow_call_rate_threshold: float = 50.0,
        slow_call_seconds: float = 3.0,
        open_seconds: float = 30.0,
        half_open_calls: int = 3,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.name = name
        self.minimum_calls = minimum_calls
        self.failure_rate_threshold = failure_rate_threshold
        self.slow_call_rate_threshold = slow_call_rate_threshold
        self.slow_call_seconds = slow_call_seconds
        self.open_seconds = open_seconds
        self.half_open_calls = half_open_calls
        self._clock = clock

        self._state = BreakerState.CLOSED
        self._window: deque[tuple[bool, bool]] = deque(maxlen=window_size)
        self._opened_at = 0.0
        self._trial_permits = 0
        self._trial_outcomes: list[tuple[bool, bool]] = []
        # bumped on every transition so stale permits cannot be released into a new round
        self._generation = 0

    @property
    def state(self) -> BreakerState:
        if self._state is BreakerState.OPEN and self._clock() - self._opened_at >= self.open_seconds:
            self._transition(BreakerState.HALF_OPEN)
        return self._state

    def acquire(self) -> int:
        """Reserve permission for one call or raise CircuitOpenError.

        Returns the generation the permit belongs to, for `release`.
        """
        state = self.state
        if state is BreakerState.OPEN:
            raise CircuitOpenError(f"circuit '{self.name}' is open")
        if state is BreakerState.HALF_OPEN:
            if self._trial_permits >= self.half_open_calls:
                raise CircuitOpenError(f"circuit '{self.name}' is half-open and out of trial calls")
            self._trial_permits += 1
        return self._generation

    def release(self, generation: int) -> None:
        """Give back a permit whose call ended without an outcome."""
        if (self._state is BreakerState.HALF_OPEN and generation == self._generation
                and self._trial_permits > 0):
            self._trial_permits -= 1
            logger.debug("Circuit '%s': trial permit released", self.name)

    def record(self, duration: float, failed: bool) -> None:
        outcome = (failed, duration >= self.slow_call_seconds)

        if self._state is BreakerState.HALF_OPEN:
            self._trial_outcomes.append(outcome)
            if len(self._trial_outcomes) >= self.half_open_calls:
                if self._over_threshold(self._trial_outcomes):
                    self._trip()
                else:
                    self._transition(BreakerState.CLOSED)
            return

        if self._state is BreakerState.OPEN:
            # late result of a call admitted before the breaker tripped
            return

        self._window.append(outcome)
        if len(self._window) >= self.minimum_calls and self._over_threshold(self._window):
            self._trip()

    async def call(self, func: Callable[..., Awaitable[T]], *args, **kwargs) -> T:
        generation = self.acquire()
        started = self._clock()
        try:
            result = await func(*args, **kwargs)
        except asyncio.CancelledError:
            self.release(generation)
            raise
        except Exception:
            self.record(self._clock() - started, failed=True)
            raise
        self.record(self._clock() - started, failed=False)
        return result

    def _over_threshold(self, outcomes) -> bool:
        total = len(outcomes)
        failures = sum(1 for failed, _ in outcomes if failed)
        slow = sum(1 for _, is_slow in outcomes if is_slow)
        return (
            100.0 * failures / total >= self.failure_rate_threshold
            or 100.0 * slow / total >= self.slow_call_rate_threshold
        )

    def _trip(self) -> None:
        self._opened_at = self._clock()
        self._transition(BreakerState.OPEN)

    def _transition(self, new_state: BreakerState) -> None:
        old_state = self._state
        self._state = new_state
        self._generation += 1
        self._trial_permits = 0
        self._trial_outcomes = []
        if new_state is BreakerState.CLOSED:
            self._window.clear()
        log = logger.warning if new_state is BreakerState.OPEN else logger.info
        log("Circuit '%s' %s → %s", self.name, old_state.value, new_state.value)
