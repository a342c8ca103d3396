"""
Reliability Utilities.

Circuit Breaker guarding calls to remote record stores.
"""

import time
import logging
from typing import Callable, Any

logger = logging.getLogger("treasury.reliability")


class CircuitOpenError(Exception):
    pass


class CircuitBreaker:
    """
    Simple Circuit Breaker implementation.
    If 'failure_threshold' consecutive failures occur, the circuit opens and
    rejects calls for 'reset_timeout' seconds, then lets one trial call through.
    """
    def __init__(self, failure_threshold: int = 5, reset_timeout: int = 60, name: str = "store"):
        self.failure_threshold = failure_threshold
        self.reset_timeout = reset_timeout
        self.name = name
        self.failures = 0
        self.last_failure_time = 0
        self.state = "CLOSED" # CLOSED, OPEN, HALF_OPEN

    async def call(self, func: Callable, *args, **kwargs) -> Any:
        if self.state == "OPEN":
            if time.time() - self.last_failure_time > self.reset_timeout:
                self.state = "HALF_OPEN"
            else:
                raise CircuitOpenError(f"Circuit '{self.name}' is OPEN")

        try:
            result = await func(*args, **kwargs)
        except Exception:
            self.record_failure()
            raise

        if self.state == "HALF_OPEN" or self.failures:
            self.reset_state()
        return result

    def record_failure(self):
        self.failures += 1
        self.last_failure_time = time.time()
        if self.failures >= self.failure_threshold and self.state != "OPEN":
            logger.warning("Circuit '%s' opened after %d failures", self.name, self.failures)
            self.state = "OPEN"

    def reset_state(self):
        self.failures = 0
        self.state = "CLOSED"
