"""
Retry policy for file downloads.

Only the downloader is decorated. A failed Name Resolver call is reported
straight away, since the user decides whether to run it again.
"""

import logging

import httpx
from tenacity import (
    retry,
    stop_after_attempt,
    wait_exponential,
    retry_if_exception_type,
)

from ..application.exceptions import StorageServerError

logger = logging.getLogger(__name__)

DOWNLOAD_ATTEMPTS = 3

# The link is fine, the exchange was not.
TRANSIENT_DOWNLOAD_ERRORS = (
    httpx.ConnectError,
    httpx.TimeoutException,
    httpx.RemoteProtocolError,
    StorageServerError,
)


def _warn_before_retry(retry_state):
    error = retry_state.outcome.exception()
    logger.warning(
        f"{retry_state.fn.__name__} failed with {error!r}; attempt "
        f"{retry_state.attempt_number + 1}/{DOWNLOAD_ATTEMPTS} in "
        f"{retry_state.next_action.sleep:.1f}s"
    )


retry_on_transient_error = retry(
    retry=retry_if_exception_type(TRANSIENT_DOWNLOAD_ERRORS),
    stop=stop_after_attempt(DOWNLOAD_ATTEMPTS),
    wait=wait_exponential(multiplier=1, min=1, max=10),
    before_sleep=_warn_before_retry,
    reraise=True,
)
