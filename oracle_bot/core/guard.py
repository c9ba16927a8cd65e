# /oracle_bot/core/guard.py
# Circuit breaker over consecutive cycle failures. Once tripped it stays
# tripped until the operator restarts the process.
from oracle_bot.core.logger import get_logger, GUARD_TRIPPED

log = get_logger(__name__)

class GuardTrippedError(Exception):
    pass

class ErrorGuard:
    def __init__(self, max_consecutive_errors: int):
        if max_consecutive_errors < 1:
            raise ValueError("max_consecutive_errors must be >= 1")
        self.max_consecutive_errors = max_consecutive_errors
        self.count = 0
        self._tripped = False
        self.trip_reason: str | None = None

    def is_tripped(self) -> bool:
        return self._tripped

    def check(self):
        if self._tripped:
            raise GuardTrippedError(f"Error guard tripped: {self.trip_reason}")

    def on_success(self):
        if self.count:
            log.info("ERROR_GUARD_RESET", previous_count=self.count)
        self.count = 0

    def on_failure(self, reason: str = "") -> bool:
        """Counts one failure. Returns True when this failure trips the guard."""
        self.count += 1
        log.error("ERROR_GUARD_FAILURE_COUNTED", count=self.count, limit=self.max_consecutive_errors, reason=reason)
        if self.count >= self.max_consecutive_errors and not self._tripped:
            self._tripped = True
            self.trip_reason = reason or "consecutive failures"
            GUARD_TRIPPED.inc()
            log.critical("ERROR_GUARD_TRIPPED", count=self.count, reason=self.trip_reason)
            return True
        return False
