# ==============================================================================
# Retry Configuration
# ==============================================================================
"""
Shared retry configuration for document store reads.

Only read paths retry. Session, heartbeat and event writes are attempted
once, so a retried write can never duplicate an event.

Light retry: 3 attempts over ~3 seconds
"""

import logging
from typing import Tuple, Type

from redis.exceptions import ConnectionError as RedisConnectionError
from redis.exceptions import TimeoutError as RedisTimeoutError
from tenacity import (
    RetryCallState,
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

# ==============================================================================
# Retry Constants
# ==============================================================================

# Exponential backoff: 1s, 2s = ~3s total across 3 attempts
RETRY_ATTEMPTS_LIGHT = 3
RETRY_WAIT_MIN = 1  # seconds
RETRY_WAIT_MAX = 4  # seconds

REDIS_RETRY_EXCEPTIONS = (
    RedisConnectionError,
    RedisTimeoutError,
)


# ==============================================================================
# Logging Callbacks
# ==============================================================================


def log_retry_attempt_light(logger: logging.Logger):
    """
    Create a callback that logs retry attempts for light retry.

    Args:
        logger: Logger instance to use for logging

    Returns:
        Callback function for tenacity's before_sleep parameter
    """

    def _log_retry(retry_state: RetryCallState) -> None:
        exception = retry_state.outcome.exception() if retry_state.outcome else None
        logger.warning(
            "Retry attempt %d/%d after error: %s",
            retry_state.attempt_number,
            RETRY_ATTEMPTS_LIGHT,
            exception,
        )

    return _log_retry


# ==============================================================================
# Retry Decorators
# ==============================================================================


def retry_light(exception_types: Tuple[Type[Exception], ...], logger: logging.Logger):
    """
    Create a light retry decorator (3 attempts).

    Use this for idempotent reads only.

    Args:
        exception_types: Tuple of exception types to retry on
        logger: Logger instance for retry logging

    Returns:
        Tenacity retry decorator

    Example:
        @retry_light(REDIS_RETRY_EXCEPTIONS, logger)
        def _read(self, key):
            ...
    """
    return retry(
        stop=stop_after_attempt(RETRY_ATTEMPTS_LIGHT),
        wait=wait_exponential(multiplier=1, min=RETRY_WAIT_MIN, max=RETRY_WAIT_MAX),
        retry=retry_if_exception_type(exception_types),
        before_sleep=log_retry_attempt_light(logger),
        reraise=True,
    )
