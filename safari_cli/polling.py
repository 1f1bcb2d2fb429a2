"""Bounded retry loop shared by driver readiness checks and element waits."""

import logging
import time
from typing import Callable, Optional, Tuple, Type, TypeVar

from .exceptions import WaitTimeoutError

logger = logging.getLogger(__name__)

T = TypeVar("T")


def poll_until(
    attempt: Callable[[], T],
    *,
    timeout: float,
    interval: float,
    retry_on: Tuple[Type[BaseException], ...] = (Exception,),
    retry_if: Optional[Callable[[BaseException], bool]] = None,
    description: Optional[str] = None,
) -> T:
    """Call ``attempt`` until it returns without raising, or the deadline passes.

    At least one attempt is always made. Exceptions outside
    ``retry_on``, or rejected by ``retry_if``, propagate immediately.

    Args:
        attempt: Zero-argument callable; its return value is passed through
        timeout: Overall deadline in seconds
        interval: Sleep between attempts in seconds
        retry_on: Exception types that count as "not ready yet"
        retry_if: Optional finer filter applied to caught exceptions
        description: What is being waited for, used in the timeout message

    Returns:
        The first successful result

    Raises:
        WaitTimeoutError: Deadline elapsed; ``last_error`` holds the last failure
    """
    deadline = time.monotonic() + timeout
    attempts = 0
    last_error: Optional[BaseException] = None

    while True:
        attempts += 1
        try:
            return attempt()
        except retry_on as e:
            if retry_if is not None and not retry_if(e):
                raise
            last_error = e
            logger.debug(f"Attempt {attempts} failed: {e}")

        remaining = deadline - time.monotonic()
        if remaining <= 0:
            break
        time.sleep(min(interval, remaining))

    what = description or "condition"
    raise WaitTimeoutError(
        f"Timed out after {timeout}s waiting for {what}",
        timeout=timeout,
        last_error=last_error,
        details={"attempts": attempts},
    )
