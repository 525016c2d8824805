"""Bounded retries around a single logical send."""

import logging
import time
from collections.abc import Callable
from typing import TypeVar

from tenacity import (
    RetryCallState,
    RetryError,
    Retrying,
    before_sleep_log,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential,
)
from tenacity.stop import stop_base

from ..config import Settings
from ..exceptions import DispatchTimeoutError, NotifyHubError, SendFailedError, TransientSendError

logger = logging.getLogger(__name__)

T = TypeVar("T")


def is_retryable(exc: BaseException) -> bool:
    """Transient provider errors and I/O errors are retried; everything else is terminal."""
    return isinstance(exc, (TransientSendError, OSError))


class stop_before_deadline(stop_base):
    """Stop when the next backoff wait would end past ``deadline``."""

    def __init__(self, deadline: float | None, clock: Callable[[], float], wait: Callable[[RetryCallState], float]) -> None:
        self.deadline = deadline
        self.clock = clock
        self.wait = wait

    def __call__(self, retry_state: RetryCallState) -> bool:
        if self.deadline is None:
            return False
        return self.clock() + self.wait(retry_state) > self.deadline


class RetryPolicy:
    """Run an operation up to ``max_attempts`` times with capped exponential backoff.

    Waits are deterministic: ``initial_delay * multiplier ** (attempt - 1)``,
    capped at ``max_delay``. Terminal failures stop at once; a deadline that
    would be crossed by the next wait aborts with ``DispatchTimeoutError``.
    """

    def __init__(
        self,
        max_attempts: int = 3,
        initial_delay: float = 0.5,
        max_delay: float = 5.0,
        multiplier: float = 2.0,
        classifier: Callable[[BaseException], bool] = is_retryable,
        sleep: Callable[[float], None] = time.sleep,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        self.max_attempts = max_attempts
        self._wait = wait_exponential(multiplier=initial_delay, max=max_delay, exp_base=multiplier)
        self._classifier = classifier
        self._sleep = sleep
        self._clock = clock

    @classmethod
    def from_settings(cls, cfg: Settings, **kwargs) -> "RetryPolicy":
        return cls(
            max_attempts=cfg.retry_max_attempts,
            initial_delay=cfg.retry_initial_delay,
            max_delay=cfg.retry_max_delay,
            multiplier=cfg.retry_backoff_multiplier,
            **kwargs,
        )

    def execute(self, operation: Callable[[], T], deadline: float | None = None) -> T:
        """Run ``operation`` and return its result.

        Raises ``SendFailedError`` on a terminal failure or after the last attempt,
        and ``DispatchTimeoutError`` when ``deadline`` (a ``clock()`` value) cuts
        the retries short.
        """
        if deadline is not None and self._clock() >= deadline:
            raise DispatchTimeoutError("Deadline exceeded before the first send attempt")

        retrying = Retrying(
            stop=stop_after_attempt(self.max_attempts) | stop_before_deadline(deadline, self._clock, self._wait),
            wait=self._wait,
            retry=retry_if_exception(self._classifier),
            sleep=self._sleep,
            before_sleep=before_sleep_log(logger, logging.WARNING),
        )
        try:
            return retrying(operation)
        except RetryError as exc:
            last = exc.last_attempt
            error = last.exception()
            if last.attempt_number < self.max_attempts:
                raise DispatchTimeoutError(
                    f"Deadline exceeded after {last.attempt_number} attempt(s): {error}"
                ) from error
            raise SendFailedError(f"Giving up after {last.attempt_number} attempt(s): {error}") from error
        except NotifyHubError:
            raise
        except Exception as exc:
            raise SendFailedError(str(exc) or type(exc).__name__) from exc
