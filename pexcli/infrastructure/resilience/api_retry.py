"""Service for executing HTTP calls with automatic retries.

Implements exponential backoff for handling transient errors like
rate limits (429), temporary server issues (5xx) and connection-level
failures. The only bound is the attempt count: with a large `max_retries`
the total latency is the sum of ceiling-bounded sleeps.
"""

import asyncio
import json
import logging
import math
import time
from typing import Any, Awaitable, Callable, Iterable, Optional

import httpx

from pexcli.domain.errors import HttpError, TransportError
from pexcli.domain.events.api_events import (
    ApiCallFailed, ApiCallInitiated, ApiCallSucceeded, RetryScheduled
)
from pexcli.infrastructure.resilience.backoff import backoff_delay

logger = logging.getLogger(__name__)

REDACTION_MASK = "********"
REQUEST_ID_HEADER = "x-request-id"
RETRY_AFTER_HEADER = "retry-after"


def redact(text: str, secrets: Iterable[Optional[str]]) -> str:
    """Replaces every occurrence of each secret with a fixed-length mask."""
    for secret in secrets:
        if secret:
            text = text.replace(secret, REDACTION_MASK)
    return text


def is_retryable_status(status_code: int) -> bool:
    """429 and every 5xx are retried; everything else is terminal."""
    return status_code == 429 or 500 <= status_code <= 599


def parse_retry_after(value: Optional[str]) -> Optional[float]:
    """Parses a Retry-After header given in seconds. HTTP-dates are ignored."""
    if value is None:
        return None
    try:
        seconds = float(value.strip())
    except ValueError:
        return None
    if seconds < 0 or not math.isfinite(seconds):
        return None
    return seconds


def build_http_error(response: httpx.Response) -> HttpError:
    """Builds a terminal HttpError from a response, best effort on the body."""
    status = response.status_code
    reason = httpx.codes.get_reason_phrase(status) or "error"
    request_id = response.headers.get(REQUEST_ID_HEADER)
    try:
        text = response.text
    except (httpx.ResponseNotRead, UnicodeDecodeError):
        text = ""
    error_type = None
    hint = None
    if text:
        try:
            parsed = json.loads(text)
        except ValueError:
            parsed = None
        if isinstance(parsed, dict):
            error_type = parsed.get("type")
            hint = parsed.get("hint")
    return HttpError(
        status_code=status,
        reason=reason,
        request_id=request_id,
        error_type=error_type,
        hint=hint,
        body=text or None,
    )


# --- Retry Service ---

class ApiRetryService:
    """Handles HTTP call execution with retries and backoff."""

    def __init__(
        self,
        max_retries: int = 3,
        retry_after: Optional[float] = None,
        secrets: Iterable[Optional[str]] = (),
        sleep: Optional[Callable[[float], Awaitable[Any]]] = None,
        backoff: Callable[[int], float] = backoff_delay,
    ):
        """Initializes the ApiRetryService.

        Args:
            max_retries: Maximum number of retry attempts after the first one.
            retry_after: Optional fixed delay (seconds) overriding server hints
                and computed backoff for 429/5xx responses.
            secrets: Values (e.g. the API token) to mask in error text.
            sleep: Coroutine function used to wait between attempts.
            backoff: Function mapping an attempt number to a delay in seconds.
        """
        if max_retries < 0:
            raise ValueError("max_retries must be non-negative")
        self.max_retries = max_retries
        self.retry_after = retry_after
        self.secrets = tuple(s for s in secrets if s)
        self._sleep = sleep or asyncio.sleep
        self._backoff = backoff

        logger.debug(
            f"ApiRetryService initialized: max_retries={max_retries}, "
            f"retry_after_override={retry_after}"
        )

    def _delay_for_response(self, response: httpx.Response, attempt: int) -> float:
        """Override, then server hint, then computed backoff."""
        if self.retry_after is not None:
            return float(self.retry_after)
        hinted = parse_retry_after(response.headers.get(RETRY_AFTER_HEADER))
        if hinted is not None:
            return hinted
        return self._backoff(attempt)

    async def execute_with_retry(
        self,
        func: Callable[..., Awaitable[httpx.Response]],
        *args: Any,
        endpoint_name: Optional[str] = None,
        **kwargs: Any
    ) -> httpx.Response:
        """Executes an async request function with retries.

        Args:
            func: Coroutine function sending one request and returning the response.
            *args: Positional arguments for the function.
            endpoint_name: Name used in logs and events (defaults to func name).
            **kwargs: Keyword arguments for the function.

        Returns:
            The first 2xx response.

        Raises:
            TransportError: Connection-level failure after the retry budget.
            HttpError: Non-retryable status, or retryable status after the budget.
        """
        effective_endpoint = endpoint_name or getattr(func, "__name__", "request")
        attempt = 0

        def dispatch_event(event: Any) -> None:
            logger.debug(f"EVENT: {event}")

        while True:
            dispatch_event(ApiCallInitiated(endpoint=effective_endpoint, attempt_number=attempt + 1))
            start_time = time.perf_counter()
            try:
                response = await func(*args, **kwargs)
            except httpx.TransportError as e:
                message = redact(f"{type(e).__name__}: {e}", self.secrets)
                if attempt < self.max_retries:
                    delay = self._backoff(attempt)
                    logger.warning(
                        f"Transport error calling {effective_endpoint} on attempt "
                        f"{attempt + 1}/{self.max_retries + 1}: {message}. Waiting {delay:.2f}s..."
                    )
                    dispatch_event(RetryScheduled(
                        endpoint=effective_endpoint, attempt_number=attempt + 1,
                        delay_seconds=delay, reason="transport",
                    ))
                    await self._sleep(delay)
                    attempt += 1
                    continue
                logger.error(f"Max retries ({self.max_retries}) reached for {effective_endpoint}: {message}")
                dispatch_event(ApiCallFailed(
                    endpoint=effective_endpoint, error_type=type(e).__name__, error_message=message,
                ))
                raise TransportError(message, attempts=attempt + 1) from None

            status = response.status_code
            if 200 <= status <= 299:
                latency_ms = (time.perf_counter() - start_time) * 1000
                dispatch_event(ApiCallSucceeded(
                    endpoint=effective_endpoint, status_code=status, latency_ms=latency_ms,
                    request_id=response.headers.get(REQUEST_ID_HEADER),
                ))
                return response

            if is_retryable_status(status) and attempt < self.max_retries:
                delay = self._delay_for_response(response, attempt)
                logger.warning(
                    f"HTTP {status} from {effective_endpoint} on attempt "
                    f"{attempt + 1}/{self.max_retries + 1}. Waiting {delay:.2f}s..."
                )
                dispatch_event(RetryScheduled(
                    endpoint=effective_endpoint, attempt_number=attempt + 1,
                    delay_seconds=delay, reason=f"http {status}",
                ))
                await self._sleep(delay)
                attempt += 1
                continue

            error = build_http_error(response)
            if is_retryable_status(status):
                logger.error(f"Max retries ({self.max_retries}) reached for {effective_endpoint}: HTTP {status}")
            else:
                logger.info(f"Non-retryable HTTP {status} from {effective_endpoint}")
            dispatch_event(ApiCallFailed(
                endpoint=effective_endpoint, error_type="HttpError", error_message=str(error),
                request_id=error.request_id,
            ))
            raise error
