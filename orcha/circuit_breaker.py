"""Circuit breakers that stop calling a failing command until it has had time to recover."""

from __future__ import annotations

import enum
import threading
import time
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, TypeVar

T = TypeVar("T")


class CircuitState(enum.Enum):
    CLOSED = "closed"
    OPEN = "open"
    HALF_OPEN = "half_open"


@dataclass(frozen=True)
class CircuitBreakerConfig:
    """Thresholds for a breaker; ``reset_timeout`` is in seconds."""

    failure_threshold: int = 5
    success_threshold: int = 2
    reset_timeout: float = 30.0

    @classmethod
    def strict(cls) -> CircuitBreakerConfig:
        return cls(3, 1, 60.0)

    @classmethod
    def lenient(cls) -> CircuitBreakerConfig:
        return cls(10, 3, 15.0)


@dataclass(frozen=True)
class CircuitStats:
    """A snapshot of a breaker's counters."""

    name: str
    state: CircuitState = CircuitState.CLOSED
    total_calls: int = 0
    successful_calls: int = 0
    failed_calls: int = 0
    consecutive_failures: int = 0
    rejected_calls: int = 0
    last_failure: datetime | None = None
    last_state_change: datetime | None = None


class CircuitOpenError(RuntimeError):
    """Raised when a call is refused because the circuit is open."""

    def __init__(self, name: str) -> None:
        super().__init__(f"Circuit breaker '{name}' is open")
        self.name = name


StateCallback = Callable[[str, CircuitState], None]


class CircuitBreaker:
    """Tracks failures of one service and rejects calls while it is considered down."""

    def __init__(
        self,
        name: str,
        config: CircuitBreakerConfig | None = None,
        *,
        clock: Callable[[], float] = time.monotonic,
        on_state_change: StateCallback | None = None,
    ) -> None:
        self.name = name
        self.config = config or CircuitBreakerConfig()
        self._clock = clock
        self._on_state_change = on_state_change
        self._lock = threading.Lock()

        self._state = CircuitState.CLOSED
        self._failure_count = 0
        self._success_count = 0
        self._total_count = 0
        self._total_failures = 0
        self._rejected_count = 0
        self._half_open_successes = 0
        self._last_failure_time: float | None = None
        self._state_changed_time = clock()

    def allow_request(self) -> bool:
        """True if a call may go ahead; an open circuit turns half-open after the timeout."""
        with self._lock:
            if self._state is CircuitState.OPEN:
                elapsed = self._clock() - self._state_changed_time
                if elapsed >= self.config.reset_timeout:
                    self._transition_to(CircuitState.HALF_OPEN)
                    return True
                self._rejected_count += 1
                return False
            return True

    def record_success(self) -> None:
        with self._lock:
            self._total_count += 1
            self._success_count += 1
            if self._state is CircuitState.CLOSED:
                self._failure_count = 0
            elif self._state is CircuitState.HALF_OPEN:
                self._half_open_successes += 1
                if self._half_open_successes >= self.config.success_threshold:
                    self._transition_to(CircuitState.CLOSED)

    def record_failure(self) -> None:
        with self._lock:
            self._total_count += 1
            self._failure_count += 1
            self._total_failures += 1
            self._last_failure_time = self._clock()
            if self._state is CircuitState.CLOSED:
                if self._failure_count >= self.config.failure_threshold:
                    self._transition_to(CircuitState.OPEN)
            elif self._state is CircuitState.HALF_OPEN:
                self._transition_to(CircuitState.OPEN)

    def execute(
        self, func: Callable[[], T], fallback: Callable[[], Any] | None = None
    ) -> Any:
        """Call ``func`` under protection; when open, use ``fallback`` or raise CircuitOpenError."""
        if not self.allow_request():
            if fallback is None:
                raise CircuitOpenError(self.name)
            return fallback()
        try:
            result = func()
        except Exception:
            self.record_failure()
            raise
        self.record_success()
        return result

    def state(self) -> CircuitState:
        with self._lock:
            return self._state

    def stats(self) -> CircuitStats:
        with self._lock:
            now_wall = datetime.now(timezone.utc)
            now = self._clock()
            last_failure = None
            if self._last_failure_time is not None:
                last_failure = now_wall - timedelta(seconds=now - self._last_failure_time)
            last_change = now_wall - timedelta(seconds=now - self._state_changed_time)
            return CircuitStats(
                name=self.name,
                state=self._state,
                total_calls=self._total_count,
                successful_calls=self._success_count,
                failed_calls=self._total_failures,
                consecutive_failures=self._failure_count,
                rejected_calls=self._rejected_count,
                last_failure=last_failure,
                last_state_change=last_change,
            )

    def reset(self) -> None:
        """Close the circuit and clear the failure counters."""
        with self._lock:
            self._transition_to(CircuitState.CLOSED)
            self._failure_count = 0
            self._total_failures = 0
            self._half_open_successes = 0

    def _transition_to(self, new_state: CircuitState) -> None:
        if self._state is new_state:
            return
        self._state = new_state
        self._state_changed_time = self._clock()
        self._half_open_successes = 0
        if self._on_state_change is not None:
            self._on_state_change(self.name, new_state)


class CircuitBreakerRegistry:
    """Breakers by name, created on first use."""

    def __init__(self) -> None:
        self._lock = threading.RLock()
        self._breakers: dict[str, CircuitBreaker] = {}

    def get_or_create(
        self, name: str, config: CircuitBreakerConfig | None = None
    ) -> CircuitBreaker:
        """The breaker for ``name``; ``config`` applies only when it is created."""
        with self._lock:
            breaker = self._breakers.get(name)
            if breaker is None:
                breaker = CircuitBreaker(name, config)
                self._breakers[name] = breaker
            return breaker

    def __contains__(self, name: object) -> bool:
        with self._lock:
            return name in self._breakers

    def all_stats(self) -> list[CircuitStats]:
        with self._lock:
            return [breaker.stats() for breaker in self._breakers.values()]

    def reset_all(self) -> None:
        with self._lock:
            for breaker in self._breakers.values():
                breaker.reset()

    def open_circuit_count(self) -> int:
        with self._lock:
            return sum(
                1 for breaker in self._breakers.values()
                if breaker.state() is CircuitState.OPEN
            )