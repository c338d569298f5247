"""
Retry with exponential backoff for NPS HTTP calls.

NPS calls are retried when the failure is transient: a 429 or 5xx status, a
timeout or a connection error. Any other response, including 4xx business
rejections, is returned to the caller on the first attempt. When retries are
exhausted on a transient status, the last response is returned so its status
can still be passed through to the client.
"""

import time
from dataclasses import dataclass
from typing import Callable

import requests
from aws_lambda_powertools import Logger

logger = Logger()


@dataclass
class RetryConfig:
    """Configuration for retry behavior."""

    max_retries: int = 3  # Retries after the first attempt
    initial_backoff_seconds: float = 1.0
    backoff_multiplier: float = 2.0
    max_backoff_seconds: float = 8.0

    def __post_init__(self) -> None:
        if self.max_retries < 0:
            raise ValueError("max_retries cannot be negative")
        if self.initial_backoff_seconds < 0:
            raise ValueError("initial_backoff_seconds cannot be negative")


@dataclass
class RetryOutcome:
    """Result of a retried HTTP call.

    response is None when no attempt produced a response; error_message then
    describes the last exception.
    """

    response: requests.Response | None = None
    error_message: str | None = None
    attempt_count: int = 0


# Statuses worth another attempt
RETRYABLE_STATUS_CODES: frozenset[int] = frozenset({429, 500, 502, 503, 504})

# Exceptions worth another attempt
RETRYABLE_EXCEPTIONS: tuple[type[Exception], ...] = (
    requests.Timeout,
    requests.ConnectionError,
)


def is_retryable_status(status_code: int) -> bool:
    return status_code in RETRYABLE_STATUS_CODES


def calculate_backoff(attempt: int, config: RetryConfig) -> float:
    """
    Delay before the retry following attempt (0-indexed).

    delay = initial * multiplier ** attempt, capped at max_backoff_seconds.
    """
    delay = config.initial_backoff_seconds * (config.backoff_multiplier**attempt)
    return min(delay, config.max_backoff_seconds)


def send_with_retry(
    send: Callable[[], requests.Response],
    config: RetryConfig | None = None,
    operation_name: str = "nps_call",
    sleep: Callable[[float], None] = time.sleep,
) -> RetryOutcome:
    """
    Call send until it returns a non-transient response or retries run out.

    Args:
        send: Performs one HTTP request and returns its response
        config: Retry configuration; defaults used if not provided
        operation_name: Name of the call for logging
        sleep: Called with the backoff delay between attempts

    Returns:
        RetryOutcome with the last response received, or the last error when
        no response was ever received. Exceptions other than timeouts and
        connection errors are not retried and end up in error_message.
    """
    if config is None:
        config = RetryConfig()

    outcome = RetryOutcome()

    for attempt in range(config.max_retries + 1):
        outcome.attempt_count = attempt + 1
        retrying = attempt < config.max_retries

        try:
            response = send()
        except RETRYABLE_EXCEPTIONS as e:
            outcome.response = None
            outcome.error_message = f"{type(e).__name__}: {e}"
            logger.warning(
                f"{operation_name} raised a transient error",
                extra={
                    "operation": operation_name,
                    "attempt": outcome.attempt_count,
                    "error_type": type(e).__name__,
                    "will_retry": retrying,
                },
            )
        except requests.RequestException as e:
            logger.error(
                f"{operation_name} failed",
                extra={
                    "operation": operation_name,
                    "attempt": outcome.attempt_count,
                    "error_type": type(e).__name__,
                },
            )
            outcome.response = None
            outcome.error_message = f"{type(e).__name__}: {e}"
            return outcome
        else:
            outcome.response = response
            outcome.error_message = None
            if not is_retryable_status(response.status_code):
                logger.info(
                    f"{operation_name} completed",
                    extra={
                        "operation": operation_name,
                        "attempt": outcome.attempt_count,
                        "status_code": response.status_code,
                    },
                )
                return outcome
            logger.warning(
                f"{operation_name} returned a transient status",
                extra={
                    "operation": operation_name,
                    "attempt": outcome.attempt_count,
                    "status_code": response.status_code,
                    "will_retry": retrying,
                },
            )

        if retrying:
            sleep(calculate_backoff(attempt, config))

    logger.error(
        f"{operation_name} failed after all retry attempts",
        extra={"operation": operation_name, "total_attempts": outcome.attempt_count},
    )
    return outcome
