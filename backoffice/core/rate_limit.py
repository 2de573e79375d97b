import time
from dataclasses import dataclass, field
from threading import Lock


@dataclass
class _FailureState:
    failures: list[float] = field(default_factory=list)
    locked_until: float = 0.0


class LoginRateLimiter:
    """
    Counts failed sign-ins per key (identifier + client IP). Once
    ``max_attempts`` failures land inside ``window_seconds`` the key is locked
    for ``lock_seconds``; a successful sign-in forgets the key.
    """

    def __init__(self, *, max_attempts: int, window_seconds: int, lock_seconds: int):
        self.max_attempts = max_attempts
        self.window_seconds = window_seconds
        self.lock_seconds = lock_seconds
        self._states: dict[str, _FailureState] = {}
        self._lock = Lock()

    def retry_after(self, key: str) -> int:
        """Seconds the caller must wait, or 0 when the key is not locked."""
        now = time.monotonic()
        with self._lock:
            state = self._states.get(key)
            if state is None:
                return 0
            self._forget_old_failures(state, now)
            if state.locked_until > now:
                return int(state.locked_until - now) + 1
            if not state.failures:
                self._states.pop(key, None)
            return 0

    def record_failure(self, key: str) -> None:
        now = time.monotonic()
        with self._lock:
            state = self._states.setdefault(key, _FailureState())
            self._forget_old_failures(state, now)
            state.failures.append(now)
            if len(state.failures) >= self.max_attempts:
                state.locked_until = now + self.lock_seconds

    def record_success(self, key: str) -> None:
        with self._lock:
            self._states.pop(key, None)

    def clear(self) -> None:
        with self._lock:
            self._states.clear()

    def _forget_old_failures(self, state: _FailureState, now: float) -> None:
        cutoff = now - self.window_seconds
        state.failures = [ts for ts in state.failures if ts >= cutoff]
