"""
Low-level HTTP client for the SARAS API.
Attaches the run's bearer token and retries rate-limited requests.
"""

import asyncio
from collections.abc import Awaitable, Callable
from datetime import UTC, datetime
from email.utils import parsedate_to_datetime

import httpx

from booking_sync.infrastructure.observability.logging import get_logger

logger = get_logger(__name__)

RATE_LIMITED_STATUS = 429
DEFAULT_RETRY_AFTER_SECONDS = 10.0

Sleep = Callable[[float], Awaitable[None]]


def parse_retry_after(header: str | None, now: datetime | None = None) -> float:
    """
    Work out how long to wait from a Retry-After header.

    The header is either a number of seconds or an HTTP date. Anything
    missing or unparseable falls back to the default.
    """
    if not header:
        return DEFAULT_RETRY_AFTER_SECONDS

    value = header.strip()
    try:
        return float(value)
    except ValueError:
        pass

    try:
        retry_at = parsedate_to_datetime(value)
    except (TypeError, ValueError, IndexError):
        return DEFAULT_RETRY_AFTER_SECONDS
    if retry_at is None:
        return DEFAULT_RETRY_AFTER_SECONDS

    if retry_at.tzinfo is None:
        retry_at = retry_at.replace(tzinfo=UTC)
    now = now or datetime.now(UTC)
    return max(0.0, float(int((retry_at - now).total_seconds())))


class SarasHttpClient:
    """
    httpx wrapper used by SarasClient.

    Every request carries ``Authorization: Bearer <token>``. The token is
    acquired once at the start of the run and never refreshed.
    """

    def __init__(
        self,
        token: str,
        max_retries: int,
        client: httpx.AsyncClient | None = None,
        timeout: float = 30.0,
        sleep: Sleep = asyncio.sleep,
    ):
        self.token = token
        self.max_retries = max_retries
        self._client = client or httpx.AsyncClient(timeout=httpx.Timeout(timeout))
        self._sleep = sleep

    async def close(self) -> None:
        await self._client.aclose()

    def _headers(self, with_body: bool) -> dict:
        headers = {"Authorization": f"Bearer {self.token}", "Accept": "application/json"}
        if with_body:
            headers["Content-Type"] = "application/json"
        return headers

    async def request(self, method: str, url: str, json: dict | None = None) -> httpx.Response:
        """
        Send a request, waiting and retrying on 429 up to max_retries times.

        Raises:
            httpx.HTTPStatusError: For any non-2xx final response
            httpx.RequestError: For transport failures
        """
        retry_count = 0
        while True:
            response = await self._client.request(
                method, url, json=json, headers=self._headers(json is not None)
            )

            if response.status_code != RATE_LIMITED_STATUS:
                break

            logger.critical("429 error calling SARAS", method=method, url=url)
            if retry_count >= self.max_retries:
                logger.warning(
                    "Reached max retries of failed SARAS request",
                    max_retries=self.max_retries,
                    url=url,
                )
                break

            retry_after = parse_retry_after(response.headers.get("retry-after"))
            logger.warning(
                "Retrying failed SARAS request",
                retry_after_seconds=retry_after,
                attempt=retry_count + 1,
                url=url,
            )
            await self._sleep(retry_after)
            retry_count += 1

        response.raise_for_status()
        return response

    async def post(self, url: str, payload: dict) -> httpx.Response:
        return await self.request("POST", url, json=payload)

    async def put(self, url: str, payload: dict) -> httpx.Response:
        return await self.request("PUT", url, json=payload)

    async def delete(self, url: str) -> httpx.Response:
        return await self.request("DELETE", url)
