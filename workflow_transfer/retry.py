"""Retry with exponential backoff for endpoint calls."""

import logging
import time
from enum import Enum
from typing import Callable, List, Optional, TypeVar

import requests

from .errors import AuthenticationError, EndpointError, RetryExhaustedError

logger = logging.getLogger(__name__)

T = TypeVar("T")


class FailureClass(str, Enum):
    RETRYABLE = "retryable"
    FATAL = "fatal"
    PERMANENT = "permanent"


class RetryPolicy:
    """
    Immediate first attempt, then up to ``max_retries`` retries.

    Delays double from ``base_delay``: 1s, 2s, 4s with the defaults.
    Authentication failures and other 4xx responses are never retried.
    """

    def __init__(
        self,
        max_retries: int = 3,
        base_delay: float = 1.0,
        sleep: Optional[Callable[[float], None]] = None
    ):
        self.max_retries = max_retries
        self.base_delay = base_delay
        self._sleep = sleep or time.sleep

    @property
    def delays(self) -> List[float]:
        return [self.base_delay * (2 ** i) for i in range(self.max_retries)]

    @staticmethod
    def classify(error: Exception) -> FailureClass:
        if isinstance(error, AuthenticationError):
            return FailureClass.FATAL
        if isinstance(error, EndpointError):
            return FailureClass.RETRYABLE if error.retryable else FailureClass.PERMANENT
        if isinstance(error, (requests.ConnectionError, requests.Timeout)):
            return FailureClass.RETRYABLE
        return FailureClass.PERMANENT

    def call(self, func: Callable[[], T], description: str = "call") -> T:
        """
        Run ``func`` under the policy.

        Raises:
            AuthenticationError: immediately, without retrying
            RetryExhaustedError: when every retryable attempt failed
            Exception: any non-retryable error, unchanged
        """
        attempt = 0
        while True:
            attempt += 1
            try:
                return func()
            except Exception as e:
                failure = self.classify(e)
                if failure != FailureClass.RETRYABLE:
                    raise

                if attempt > self.max_retries:
                    logger.error(f"{description} failed after {attempt} attempts: {e}")
                    raise RetryExhaustedError(e, attempt) from e

                delay = self.delays[attempt - 1]
                logger.warning(
                    f"{description} failed (attempt {attempt}/{self.max_retries + 1}): {e}. "
                    f"Retrying in {delay:g}s"
                )
                self._sleep(delay)
