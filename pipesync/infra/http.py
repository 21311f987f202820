"""
HTTP infrastructure shared by the GitHub and Buildkite clients.

Provides:
- RetryPolicy: exponential backoff with jitter
- HttpFetcher: authenticated requests with per-request retry
- Link-header pagination that concatenates every page in order

A 404 is never retried and never raised here; callers treat it as
"resource absent".
"""

import logging
import random
import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional

import requests

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RetryPolicy:
    """Retry schedule for a single request."""
    max_attempts: int = 3
    initial_delay: float = 1.0   # seconds
    multiplier: float = 2.0
    jitter: float = 0.2          # +/- fraction of the delay
    max_delay: float = 60.0

    def delay(self, attempt: int, rand: float = 0.5) -> float:
        """
        Delay to wait after failed attempt number ``attempt`` (1-based).

        Args:
            attempt: Attempt that just failed
            rand: Uniform sample in [0, 1); 0.5 means no jitter

        Returns:
            Delay in seconds
        """
        base = self.initial_delay * (self.multiplier ** (attempt - 1))
        factor = 1.0 + self.jitter * (2.0 * rand - 1.0)
        return min(base * factor, self.max_delay)


@dataclass
class RateLimitStatus:
    """API rate limit status from the last response."""
    remaining: int
    limit: int
    reset_time: int  # Unix timestamp

    @property
    def is_low(self) -> bool:
        """Check if rate limit is getting low (< 100 remaining)."""
        return self.remaining < 100


class FetchError(Exception):
    """A request kept failing after every retry attempt."""

    def __init__(self, url: str, message: str, status_code: Optional[int] = None):
        super().__init__(f"{message} ({url})")
        self.url = url
        self.status_code = status_code


def is_success(response: requests.Response) -> bool:
    return 200 <= response.status_code < 300


def is_rate_limited(response: requests.Response) -> bool:
    """429, or GitHub's 403 with an exhausted quota."""
    if response.status_code == 429:
        return True
    return (
        response.status_code == 403
        and str(response.headers.get('X-RateLimit-Remaining', '')) == '0'
    )


def rate_limit_wait(response: requests.Response, now: Optional[float] = None) -> Optional[float]:
    """
    Seconds the server asked us to wait, if it said so.

    Understands Retry-After and RateLimit-Reset (seconds) and GitHub's
    X-RateLimit-Reset (epoch seconds).
    """
    headers = response.headers
    for name in ('Retry-After', 'RateLimit-Reset'):
        value = headers.get(name)
        if value is not None:
            try:
                return max(0.0, float(value))
            except (ValueError, TypeError):
                pass

    reset = headers.get('X-RateLimit-Reset')
    if reset is not None:
        try:
            now = time.time() if now is None else now
            return max(0.0, float(reset) - now)
        except (ValueError, TypeError):
            pass
    return None


class HttpFetcher:
    """
    Authenticated HTTP access with retry and Link-header pagination.

    Example:
        fetcher = HttpFetcher(token, auth_scheme='Bearer')
        pipelines = fetcher.fetch_all(url, params={'per_page': 100})
    """

    def __init__(
        self,
        token: str,
        auth_scheme: str = 'Bearer',
        policy: Optional[RetryPolicy] = None,
        session: Optional[requests.Session] = None,
        headers: Optional[Dict[str, str]] = None,
        timeout: float = 30,
        sleep: Callable[[float], None] = time.sleep,
        rand: Callable[[], float] = random.random,
    ):
        """
        Initialize HttpFetcher.

        Args:
            token: Bearer credential supplied by the caller
            auth_scheme: Authorization scheme ("Bearer" or GitHub's "token")
            policy: Retry policy (defaults to 3 attempts, 1s, x2, +/-20%)
            session: requests session to use (created if None)
            headers: Extra headers sent with every request
            timeout: Per-request timeout in seconds
            sleep: Sleep function, replaceable in tests
            rand: Uniform random source for jitter
        """
        self.policy = policy or RetryPolicy()
        self.timeout = timeout
        self.session = session or requests.Session()
        self.session.headers.update({
            'Authorization': f'{auth_scheme} {token}',
            'User-Agent': 'pipesync',
        })
        if headers:
            self.session.headers.update(headers)
        self._sleep = sleep
        self._rand = rand
        self.rate_limit: Optional[RateLimitStatus] = None

    def _track_rate_limit(self, response: requests.Response) -> None:
        """Update rate limit status from response headers."""
        try:
            remaining = int(response.headers.get('X-RateLimit-Remaining', -1))
            limit = int(response.headers.get('X-RateLimit-Limit', -1))
            reset_time = int(response.headers.get('X-RateLimit-Reset', 0))
        except (ValueError, TypeError):
            return

        if remaining >= 0 and limit >= 0:
            self.rate_limit = RateLimitStatus(remaining, limit, reset_time)
            if self.rate_limit.is_low:
                logger.warning(f"API rate limit low: {remaining}/{limit} remaining")

    def request(self, method: str, url: str, retry_client_errors: bool = True,
                **kwargs: Any) -> requests.Response:
        """
        Send one request, retrying transient failures.

        Rate limits, transport errors and non-2xx statuses other than 404
        are retried per the policy. The 404 response is returned as is.
        With ``retry_client_errors=False`` any 4xx that is not a rate limit
        is returned at once.

        Raises:
            FetchError: when every attempt failed
        """
        attempts = self.policy.max_attempts
        last_error: Optional[FetchError] = None

        for attempt in range(1, attempts + 1):
            hint = None
            try:
                response = self.session.request(method, url, timeout=self.timeout, **kwargs)
            except requests.RequestException as e:
                last_error = FetchError(url, f"Request failed: {e}")
                last_error.__cause__ = e
            else:
                self._track_rate_limit(response)
                if is_success(response) or response.status_code == 404:
                    return response

                if is_rate_limited(response):
                    hint = rate_limit_wait(response)
                    message = "Rate limited"
                elif not retry_client_errors and 400 <= response.status_code < 500:
                    return response
                else:
                    message = f"HTTP {response.status_code}: {response.reason}"
                last_error = FetchError(url, message, response.status_code)

            if attempt == attempts:
                break

            delay = self.policy.delay(attempt, self._rand())
            if hint is not None:
                delay = min(max(delay, hint), self.policy.max_delay)
            logger.info(f"{last_error}; retrying in {delay:.1f}s (attempt {attempt + 1}/{attempts})")
            self._sleep(delay)

        raise last_error

    def fetch_all(self, url: str, params: Optional[Dict[str, Any]] = None) -> List[Any]:
        """
        GET every page of a list endpoint by following ``rel="next"`` links.

        Pages are fetched sequentially and concatenated in order. A 404
        ends the walk and returns what was collected (``[]`` if the first
        page is missing).
        """
        items: List[Any] = []
        next_url: Optional[str] = url

        while next_url:
            response = self.request('GET', next_url, params=params)
            if response.status_code == 404:
                logger.debug(f"Not found: {next_url}")
                break

            try:
                page = response.json()
            except ValueError as e:
                raise FetchError(next_url, f"Invalid JSON: {e}") from e
            if not isinstance(page, list):
                raise FetchError(next_url, "Expected a JSON list")
            items.extend(page)

            # The next link already carries the query string
            params = None
            next_url = (response.links or {}).get('next', {}).get('url')

        return items

    def send_json(self, method: str, url: str, payload: Dict[str, Any]) -> Dict[str, Any]:
        """
        Send a JSON body and return the decoded JSON response.

        Unlike list reads, a 404 here is an error. Only rate limits, 5xx
        and transport errors are retried.
        """
        response = self.request(method, url, retry_client_errors=False, json=payload)
        if not is_success(response):
            raise FetchError(url, f"HTTP {response.status_code}: {response.reason}", response.status_code)
        try:
            return response.json()
        except ValueError as e:
            raise FetchError(url, f"Invalid JSON: {e}") from e
