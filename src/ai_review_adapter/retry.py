"""
Retry Policy

Exponential back-off expressed as a value and applied by a generic helper,
so callers only decide which failures are retryable.
"""

import logging
import time
from dataclasses import dataclass, field
from typing import Callable, Tuple, Type, TypeVar


logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class RetryPolicy:
    """How often and how patiently to retry a call."""
    max_attempts: int = 3
    base_delay: float = 1.0
    retryable: Tuple[Type[BaseException], ...] = (Exception,)
    sleep: Callable[[float], None] = field(default=time.sleep, compare=False, repr=False)

    def __post_init__(self):
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        if self.base_delay < 0:
            raise ValueError("base_delay must be non-negative")

    def delay_for(self, attempt: int) -> float:
        """Delay after the given zero-based failed attempt."""
        return self.base_delay * (2 ** attempt)

    def is_retryable(self, exc: BaseException) -> bool:
        return isinstance(exc, self.retryable)


def retry_call(policy: RetryPolicy, func: Callable[..., T], *args, **kwargs) -> T:
    """
    Call ``func`` until it succeeds or the policy gives up.

    Non-retryable exceptions propagate immediately; the last retryable one
    propagates once ``max_attempts`` is exhausted.
    """
    name = getattr(func, '__name__', repr(func))
    for attempt in range(policy.max_attempts):
        try:
            return func(*args, **kwargs)
        except Exception as exc:
            if not policy.is_retryable(exc) or attempt == policy.max_attempts - 1:
                raise
            delay = policy.delay_for(attempt)
            logger.warning(
                "Attempt %d/%d for %s failed: %s. Retrying in %.1fs",
                attempt + 1,
                policy.max_attempts,
                name,
                exc,
                delay,
            )
            policy.sleep(delay)
    raise AssertionError("unreachable")  # pragma: no cover
