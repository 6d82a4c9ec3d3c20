"""
Egress filtering for outbound HTTP calls.

Every httpx client used by the job gets ``EgressFilter.check`` installed as a
request event hook, so a call to anything outside the configured services is
rejected before it leaves the process.
"""

from urllib.parse import urlparse

import httpx

from booking_sync.errors import AccessDeniedError
from booking_sync.infrastructure.observability.logging import get_logger

logger = get_logger(__name__)

DEFAULT_PORTS = {"http": 80, "https": 443}


def parse_address(url: str) -> tuple[str, int] | None:
    """Return (host, port) for a url, or None when it has no host."""
    parsed = urlparse(url)
    if not parsed.hostname:
        return None
    port = parsed.port or DEFAULT_PORTS.get(parsed.scheme, 443)
    return parsed.hostname.lower(), port


class EgressFilter:
    """Allow-list of (host, port) pairs outbound requests may target."""

    def __init__(self, allowed_urls: list[str] | None = None):
        self._allowed: set[tuple[str, int]] = set()
        for url in allowed_urls or []:
            self.allow(url)

    def allow(self, url: str) -> None:
        address = parse_address(url)
        if address is None:
            logger.warning("Ignoring egress allow-list entry without a host", url=url)
            return
        self._allowed.add(address)

    def is_allowed(self, host: str, port: int) -> bool:
        return (host.lower(), port) in self._allowed

    async def check(self, request: httpx.Request) -> None:
        """httpx request hook; raises AccessDeniedError for blocked hosts."""
        host = request.url.host
        port = request.url.port or DEFAULT_PORTS.get(request.url.scheme, 443)
        if not self.is_allowed(host, port):
            logger.critical("Blocked outbound request to non-allowed host", host=host, port=port)
            raise AccessDeniedError(host, port)

    def event_hooks(self) -> dict:
        return {"request": [self.check]}
