"""
Retry policies for calls against the node RPC and the explorer APIs.

Every retry loop in the pipeline is driven by a RetryPolicy so that no call can
block forever: the policy bounds the number of attempts and describes how the
wait grows between them (fixed, doubling, or geometric).
"""

import logging
import time
from dataclasses import dataclass
from typing import Any, Callable, Optional

from tenacity import (
    RetryCallState,
    RetryError,
    Retrying,
    before_sleep_log,
    retry_base,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
    wait_none,
)

from .exceptions import RetryExhaustedError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RetryPolicy:
    """Bounded retry policy.

    Attributes:
        max_attempts: Total number of attempts, including the first one.
        initial_delay: Seconds to wait before the second attempt. Zero means
            retries happen immediately.
        backoff_factor: Multiplier applied to the delay after every attempt
            (1.0 keeps it fixed, 2.0 doubles it).
        max_delay: Optional upper bound on a single wait.
    """

    max_attempts: int
    initial_delay: float = 0.0
    backoff_factor: float = 1.0
    max_delay: Optional[float] = None

    def _wait(self):
        if self.initial_delay <= 0:
            return wait_none()
        kwargs = {"multiplier": self.initial_delay,
                  "exp_base": self.backoff_factor}
        if self.max_delay is not None:
            kwargs["max"] = self.max_delay
        return wait_exponential(**kwargs)

    def log_retries_left(self, description: str,
                         log: Optional[logging.Logger] = None) -> Callable[[RetryCallState], None]:
        """before_sleep hook that reports what is being retried and how many tries remain."""
        log = log or logger

        def _before_sleep(retry_state: RetryCallState) -> None:
            outcome = retry_state.outcome
            error = outcome.exception() if outcome is not None else None
            log.warning(
                f"Retrying {description}, retries left: "
                f"{self.max_attempts - retry_state.attempt_number}. Error: {error}")

        return _before_sleep

    def retrying(self, retry: Optional[retry_base] = None,
                 sleep: Callable[[float], None] = time.sleep,
                 log: Optional[logging.Logger] = None,
                 before_sleep: Optional[Callable[[RetryCallState], None]] = None) -> Retrying:
        """Build a tenacity Retrying controller for this policy."""
        return Retrying(
            stop=stop_after_attempt(max(1, self.max_attempts)),
            wait=self._wait(),
            retry=retry if retry is not None else retry_if_exception_type(),
            sleep=sleep,
            before_sleep=before_sleep or before_sleep_log(log or logger, logging.WARNING),
        )

    def call(self, fn: Callable[..., Any], *args: Any,
             retry: Optional[retry_base] = None,
             sleep: Callable[[float], None] = time.sleep,
             log: Optional[logging.Logger] = None,
             description: str = "call",
             before_sleep: Optional[Callable[[RetryCallState], None]] = None,
             **kwargs: Any) -> Any:
        """Run fn under this policy.

        Raises:
            RetryExhaustedError: when every attempt failed or produced a
                result the retry condition rejected.
        """
        controller = self.retrying(retry=retry, sleep=sleep, log=log,
                                   before_sleep=before_sleep)
        try:
            return controller(fn, *args, **kwargs)
        except RetryError as e:
            cause = e.last_attempt.exception()
            raise RetryExhaustedError(
                f"{description} gave up after {e.last_attempt.attempt_number} attempts",
                e.last_attempt.attempt_number,
            ) from cause
