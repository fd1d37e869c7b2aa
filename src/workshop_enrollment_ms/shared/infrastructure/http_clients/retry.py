"""
Retry/backoff for outbound calls to external services.

Every call to the payment processor (and to the notification subsystem)
goes through a RetryPolicy:
- at most ``max_attempts`` attempts in total
- retried: transport timeouts, refused connections, HTTP 429 and 5xx
- not retried: any other 4xx
- delay before attempt n+1: ``base * 2^(n-1) + uniform(0, max_jitter)``

When the attempts run out, the last error is surfaced wrapped in
UpstreamUnavailableError.
"""

import asyncio
import inspect
import logging
import random
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, TypeVar

import httpx
import stripe

from workshop_enrollment_ms.shared.core.settings import Settings
from workshop_enrollment_ms.shared.domain.exceptions import UpstreamUnavailableError

logger = logging.getLogger(__name__)

T = TypeVar("T")


def is_retryable_status(status_code: int | None) -> bool:
    """429 and every 5xx are transient; other statuses are not."""
    if status_code is None:
        return False
    return status_code == 429 or 500 <= status_code < 600


def is_retryable_error(error: Exception) -> bool:
    """
    Determine if an error is worth another attempt.

    Retryable errors:
    - httpx timeouts and network errors (connection refused, reset)
    - HTTP 429 / 5xx responses
    - Stripe connection and rate-limit errors, Stripe 5xx
    """
    if isinstance(error, httpx.HTTPStatusError):
        return is_retryable_status(error.response.status_code)

    if isinstance(error, (httpx.TimeoutException, httpx.NetworkError)):
        return True

    if isinstance(error, (stripe.APIConnectionError, stripe.RateLimitError)):
        return True

    if isinstance(error, stripe.StripeError):
        return is_retryable_status(error.http_status)

    if isinstance(error, (ConnectionError, TimeoutError)):
        return True

    return False


@dataclass
class RetryPolicy:
    """Bounded exponential backoff with jitter."""

    max_attempts: int = 3
    base_delay: float = 0.5
    max_jitter: float = 0.25
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep
    jitter: Callable[[float, float], float] = random.uniform

    @classmethod
    def from_settings(cls, settings: Settings) -> "RetryPolicy":
        return cls(
            max_attempts=settings.retry_max_attempts,
            base_delay=settings.retry_base_delay_ms / 1000,
            max_jitter=settings.retry_max_jitter_ms / 1000,
        )

    def base_delay_for(self, attempt: int) -> float:
        """Delay before the retry that follows ``attempt`` (1-based), without jitter."""
        return self.base_delay * (2 ** (attempt - 1))

    def backoff_delay(self, attempt: int) -> float:
        return self.base_delay_for(attempt) + self.jitter(0, self.max_jitter)

    async def call(
        self,
        func: Callable[..., Any],
        *args: Any,
        service: str = "upstream",
        **kwargs: Any,
    ) -> Any:
        """
        Call ``func`` with retries.

        Sync callables (the Stripe SDK) run in a worker thread so the event
        loop is not blocked while they wait on the network.
        """
        last_error: Exception | None = None

        for attempt in range(1, self.max_attempts + 1):
            try:
                if inspect.iscoroutinefunction(func):
                    result = await func(*args, **kwargs)
                else:
                    result = await asyncio.to_thread(func, *args, **kwargs)

                if attempt > 1:
                    logger.info(f"{service} call succeeded on attempt {attempt}")
                return result

            except Exception as e:
                last_error = e

                if not is_retryable_error(e):
                    logger.warning(f"Non-retryable error from {service}: {e}")
                    raise

                if attempt == self.max_attempts:
                    break

                delay = self.backoff_delay(attempt)
                logger.warning(
                    f"{service} call failed (attempt {attempt}/{self.max_attempts}), "
                    f"retrying in {delay:.2f}s: {e}"
                )
                await self.sleep(delay)

        logger.error(f"{service} call failed after {self.max_attempts} attempts: {last_error}")
        raise UpstreamUnavailableError(service, self.max_attempts, last_error)


class RetryingHttpClient:
    """
    httpx client whose requests go through a RetryPolicy.

    Non-2xx responses are raised as ``httpx.HTTPStatusError`` so that the
    policy can classify them.
    """

    def __init__(
        self,
        service: str,
        policy: RetryPolicy,
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._service = service
        self._policy = policy
        self._timeout = timeout
        self._transport = transport

    async def request(self, method: str, url: str, **kwargs: Any) -> httpx.Response:
        async def attempt() -> httpx.Response:
            async with httpx.AsyncClient(
                timeout=self._timeout, transport=self._transport
            ) as client:
                response = await client.request(method, url, **kwargs)
                response.raise_for_status()
                return response

        return await self._policy.call(attempt, service=self._service)

    async def post(self, url: str, **kwargs: Any) -> httpx.Response:
        return await self.request("POST", url, **kwargs)
