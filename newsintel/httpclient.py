"""
Outbound HTTP with retry and exponential backoff.

All fetchers and the LLM client go through request_with_retry so that
transient failures (connection resets, timeouts, 429 and 5xx responses)
are retried uniformly. Other 4xx responses are raised immediately.
"""

import logging
import time
from typing import Optional

import requests

from newsintel.config import FETCH_MAX_RETRIES, FETCH_RETRY_BASE_DELAY, REQUEST_TIMEOUT

logger = logging.getLogger(__name__)

USER_AGENT = "NewsIntelligence/1.0"

RETRY_STATUS_CODES = frozenset({429, 500, 502, 503, 504})


def request_with_retry(
    method: str,
    url: str,
    *,
    max_retries: Optional[int] = None,
    base_delay: Optional[float] = None,
    timeout: Optional[float] = None,
    **kwargs,
) -> requests.Response:
    """
    Perform an HTTP request, retrying transient failures.

    The delay before retry n (0-based) is base_delay * 2**n.

    Args:
        method: HTTP method ("GET", "POST", ...).
        url: Target URL.
        max_retries: Retries after the first attempt. Defaults to FETCH_MAX_RETRIES.
        base_delay: First backoff delay in seconds. Defaults to FETCH_RETRY_BASE_DELAY.
        timeout: Per-attempt timeout. Defaults to REQUEST_TIMEOUT.
        **kwargs: Passed through to requests.request (headers, params, json, ...).

    Returns:
        A successful (2xx/3xx) response.

    Raises:
        requests.HTTPError: Non-retryable status, or retryable status after the last attempt.
        requests.RequestException: Connection error or timeout after the last attempt.
    """
    if max_retries is None:
        max_retries = FETCH_MAX_RETRIES
    if base_delay is None:
        base_delay = FETCH_RETRY_BASE_DELAY
    if timeout is None:
        timeout = REQUEST_TIMEOUT

    headers = kwargs.pop("headers", None) or {}
    headers.setdefault("User-Agent", USER_AGENT)

    attempt = 0
    while True:
        try:
            response = requests.request(method, url, headers=headers, timeout=timeout, **kwargs)
        except (requests.ConnectionError, requests.Timeout) as e:
            if attempt >= max_retries:
                raise
            delay = base_delay * (2 ** attempt)
            logger.warning(
                "%s %s failed (%s), retrying in %.1fs (%d/%d)",
                method, url, e, delay, attempt + 1, max_retries,
            )
            time.sleep(delay)
            attempt += 1
            continue

        if response.status_code in RETRY_STATUS_CODES and attempt < max_retries:
            delay = base_delay * (2 ** attempt)
            logger.warning(
                "%s %s returned %d, retrying in %.1fs (%d/%d)",
                method, url, response.status_code, delay, attempt + 1, max_retries,
            )
            time.sleep(delay)
            attempt += 1
            continue

        response.raise_for_status()
        return response


def get(url: str, **kwargs) -> requests.Response:
    return request_with_retry("GET", url, **kwargs)


def post(url: str, **kwargs) -> requests.Response:
    return request_with_retry("POST", url, **kwargs)
