"""Bounded retry with exponential backoff for object store calls.

Only single, idempotent-by-construction calls are wrapped: existence and
metadata probes, single-shot puts, multipart creation, part uploads and
multipart completion. Listing pages and streamed byte fetches fail fast.
"""

from __future__ import annotations

import functools
import logging
import random
import time
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Callable, TypeVar

from s3pathio import metrics
from s3pathio.errors import (
    InvalidPart,
    NoSuchUpload,
    NotFound,
    PreconditionViolation,
    TransientIOError,
    ValidationError,
    client_error_code,
)

if TYPE_CHECKING:
    from s3pathio.config import RetrySettings

logger = logging.getLogger(__name__)

T = TypeVar("T")

# Failures that a second attempt cannot fix.
_FATAL_ERRORS = (NotFound, ValidationError, PreconditionViolation, NoSuchUpload, InvalidPart)

# Service error codes worth retrying even though some arrive as 4xx.
_RETRYABLE_CODES = frozenset(
    {
        "RequestTimeout",
        "RequestTimeoutException",
        "Throttling",
        "ThrottlingException",
        "ThrottledException",
        "RequestLimitExceeded",
        "TooManyRequestsException",
        "SlowDown",
        "InternalError",
        "ServiceUnavailable",
    }
)

# Malformed or unauthorised requests: the same request fails the same way.
_FATAL_CODES = frozenset(
    {
        "AccessDenied",
        "InvalidAccessKeyId",
        "SignatureDoesNotMatch",
        "NoSuchBucket",
        "NoSuchKey",
        "NoSuchUpload",
        "InvalidArgument",
        "InvalidBucketName",
        "InvalidRequest",
        "InvalidPart",
        "InvalidPartOrder",
        "InvalidRange",
        "MalformedXML",
        "EntityTooSmall",
        "EntityTooLarge",
    }
)


def is_retryable(exc: BaseException) -> bool:
    """Decide whether a failed call should be attempted again.

    Local validation and state errors, missing objects and client-side
    (4xx) service errors are fatal. Throttling, timeouts, 5xx responses,
    connection failures and anything unrecognised are retried.
    """
    if isinstance(exc, _FATAL_ERRORS):
        return False

    code = client_error_code(exc)
    if not code:
        return True
    if code in _RETRYABLE_CODES:
        return True
    if code in _FATAL_CODES:
        return False

    status = exc.response.get("ResponseMetadata", {}).get("HTTPStatusCode", 0)  # type: ignore[attr-defined]
    if code.isdigit():
        status = status or int(code)
    return not (400 <= int(status) < 500)


@dataclass
class RetryPolicy:
    """Retry budget and backoff schedule.

    Attributes:
        max_attempts: Total attempts, including the first one.
        base_delay_ms: Delay before the second attempt.
        max_delay_ms: Upper bound for any single delay.
        multiplier: Growth factor between consecutive delays.
        jitter: Draw each delay uniformly from [0, computed delay].
        retryable: Predicate selecting failures worth another attempt.
        sleep: Blocking sleep function, in seconds.
    """

    max_attempts: int = 4
    base_delay_ms: int = 100
    max_delay_ms: int = 10000
    multiplier: float = 2.0
    jitter: bool = True
    retryable: Callable[[BaseException], bool] = field(default=is_retryable, repr=False)
    sleep: Callable[[float], None] = field(default=time.sleep, repr=False)

    @classmethod
    def from_settings(cls, settings: "RetrySettings") -> RetryPolicy:
        return cls(
            max_attempts=settings.max_attempts,
            base_delay_ms=settings.base_delay_ms,
            max_delay_ms=settings.max_delay_ms,
            multiplier=settings.multiplier,
            jitter=settings.jitter,
        )

    def delay_for(self, attempt: int) -> float:
        """Return the delay in milliseconds after failed attempt ``attempt`` (1-based)."""
        delay = min(self.base_delay_ms * self.multiplier ** (attempt - 1), self.max_delay_ms)
        if self.jitter:
            delay = random.uniform(0, delay)
        return delay

    def call(self, operation: str, fn: Callable[..., T], *args: Any, **kwargs: Any) -> T:
        """Run ``fn(*args, **kwargs)`` under this policy.

        Args:
            operation: Name used in logs, metrics and the exhaustion error.
            fn: The object store call.

        Returns:
            Whatever ``fn`` returns on its first successful attempt.

        Raises:
            TransientIOError: If every attempt failed with a retryable error.
                The final failure is chained as ``__cause__`` and stored in
                ``last_error``.
            Exception: Any failure rejected by ``retryable``, unwrapped.
        """
        last_error: BaseException | None = None

        for attempt in range(1, self.max_attempts + 1):
            try:
                result = fn(*args, **kwargs)
            except Exception as exc:
                if not self.retryable(exc):
                    metrics.record_operation(operation, "error")
                    raise
                last_error = exc
                if attempt == self.max_attempts:
                    break
                delay_ms = self.delay_for(attempt)
                logger.warning(
                    "%s failed (attempt %d/%d), retrying in %.0f ms: %s",
                    operation,
                    attempt,
                    self.max_attempts,
                    delay_ms,
                    exc,
                    extra={"operation": operation, "attempt": attempt},
                )
                metrics.record_retry(operation)
                self.sleep(delay_ms / 1000.0)
                continue

            metrics.record_operation(operation, "ok")
            return result

        assert last_error is not None
        metrics.record_operation(operation, "error")
        logger.error(
            "%s gave up after %d attempts: %s",
            operation,
            self.max_attempts,
            last_error,
            extra={"operation": operation, "attempt": self.max_attempts},
        )
        raise TransientIOError(operation, self.max_attempts, last_error) from last_error


def retrying(operation: str) -> Callable[[Callable[..., T]], Callable[..., T]]:
    """Decorate a function taking an ``S3Path`` first so it runs under the
    retry policy of that path's config.
    """

    def decorator(fn: Callable[..., T]) -> Callable[..., T]:
        @functools.wraps(fn)
        def wrapper(path: Any, *args: Any, **kwargs: Any) -> T:
            return path.config.retry_policy.call(operation, fn, path, *args, **kwargs)

        return wrapper

    return decorator
