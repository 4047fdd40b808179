import logging
import time
from dataclasses import dataclass, field
from typing import Callable, Optional, Type, TypeVar

from .errors import (
    MaxRetriesExceededError,
    RateLimitError,
    ServiceUnavailableError,
    TransientAIError,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")

RATE_LIMIT_SIGNALS = ("429", "rate limit", "rate_limit", "ratelimit", "too many requests")
UNAVAILABLE_SIGNALS = ("503", "502", "service unavailable", "unavailable", "overloaded", "bad gateway")


def classify_transient(exc: BaseException) -> Optional[Type[TransientAIError]]:
    """Map a backend error onto a transient error class by inspecting its message."""
    if isinstance(exc, TransientAIError):
        return type(exc)
    message = str(exc).lower()
    status = getattr(exc, "status_code", None)
    if status == 429 or any(signal in message for signal in RATE_LIMIT_SIGNALS):
        return RateLimitError
    if status in (502, 503) or any(signal in message for signal in UNAVAILABLE_SIGNALS):
        return ServiceUnavailableError
    return None


@dataclass(frozen=True)
class RetryPolicy:
    max_attempts: int = 3
    base_delay: float = 1.0
    multiplier: float = 2.0
    classify: Callable[[BaseException], Optional[Type[TransientAIError]]] = classify_transient
    sleep: Callable[[float], None] = field(default=time.sleep, compare=False)

    def delay_for(self, attempt: int) -> float:
        """Delay after the given (1-based) failed attempt."""
        return self.base_delay * (self.multiplier ** (attempt - 1))

    def call(self, func: Callable[[], T], label: str = "AI call") -> T:
        last_error: Optional[TransientAIError] = None
        for attempt in range(1, self.max_attempts + 1):
            try:
                return func()
            except Exception as exc:
                error_class = self.classify(exc)
                if error_class is None:
                    raise
                last_error = exc if isinstance(exc, TransientAIError) else error_class(str(exc), exc)
                if attempt == self.max_attempts:
                    break
                delay = self.delay_for(attempt)
                logger.warning(
                    "%s hit %s (attempt %s/%s); retrying in %.1fs",
                    label,
                    error_class.__name__,
                    attempt,
                    self.max_attempts,
                    delay,
                )
                self.sleep(delay)
        raise MaxRetriesExceededError(self.max_attempts, last_error) from last_error


def call_with_retries(func: Callable[[], T], policy: Optional[RetryPolicy] = None, label: str = "AI call") -> T:
    return (policy or RetryPolicy()).call(func, label=label)
