# src/dotfetch/utils.py
import importlib.metadata
import time
from typing import Callable, Optional, Tuple, Type, TypeVar

import requests

from dotfetch.constants import APP_NAME, DEFAULT_MAX_ATTEMPTS, DEFAULT_RETRY_DELAY
from dotfetch.log_utils import logger

T = TypeVar("T")

DEFAULT_RETRYABLE_EXCEPTIONS: Tuple[Type[BaseException], ...] = (
    requests.RequestException,
    OSError,
)

# Cache for the User-Agent string to avoid repeated metadata lookups
_USER_AGENT_CACHE: Optional[str] = None


def get_user_agent() -> str:
    """
    Get the User-Agent string used for HTTP requests.

    Returns:
        The string `dotfetch/{version}`, where `{version}` is the installed package version or `unknown` if the version cannot be determined.
    """
    global _USER_AGENT_CACHE

    if _USER_AGENT_CACHE is None:
        try:
            app_version = importlib.metadata.version(APP_NAME)
        except importlib.metadata.PackageNotFoundError:
            app_version = "unknown"

        _USER_AGENT_CACHE = f"{APP_NAME}/{app_version}"

    return _USER_AGENT_CACHE


def retry_call(
    operation: Callable[[], T],
    max_attempts: int = DEFAULT_MAX_ATTEMPTS,
    delay: float = DEFAULT_RETRY_DELAY,
    retry_on: Tuple[Type[BaseException], ...] = DEFAULT_RETRYABLE_EXCEPTIONS,
) -> T:
    """
    Invoke `operation` until it succeeds or `max_attempts` is exhausted.

    Waits a fixed `delay` between attempts (no backoff growth, no jitter), so the
    failing path costs (attempts - 1) * delay seconds of sleep. Exceptions not
    listed in `retry_on` propagate immediately.

    Parameters:
        operation (Callable[[], T]): Zero-argument callable to run.
        max_attempts (int): Total number of attempts, at least 1.
        delay (float): Seconds to sleep between attempts.
        retry_on (Tuple[Type[BaseException], ...]): Exception types that trigger a retry.

    Returns:
        T: The value returned by the first successful attempt.

    Raises:
        ValueError: If `max_attempts` is less than 1.
        Exception: The last failure, unchanged, once every attempt has failed.
    """
    if max_attempts < 1:
        raise ValueError(f"max_attempts must be at least 1, got {max_attempts}")

    attempt = 1
    while True:
        try:
            return operation()
        except retry_on as e:
            if attempt >= max_attempts:
                logger.debug(f"Giving up after {attempt} attempt(s): {e}")
                raise
            logger.debug(
                f"Attempt {attempt}/{max_attempts} failed: {e}. Retrying in {delay:.1f}s"
            )
            time.sleep(delay)
            attempt += 1
