"""
Redirect-following HTTPS fetch with host allow-listing.

httpx's own redirect handling is disabled (follow_redirects=False) so every
hop can be checked before it is issued:

- Absolute Location headers must name a host in the allow-list, matched
  exactly (no subdomain or suffix matching)
- Relative Location headers stay on the current host and are always followed
- The hop count is bounded, so redirect loops terminate
"""

import asyncio
import logging
import re
from dataclasses import dataclass, field, replace
from typing import AbstractSet, Mapping, Optional
from urllib.parse import SplitResult, urlsplit

import httpx

from processlink.errors import (
    RedirectBlockedError,
    RequestTimeoutError,
    TooManyRedirectsError,
    TransportError,
)

logger = logging.getLogger(__name__)

DEFAULT_MAX_REDIRECTS = 5
DEFAULT_TIMEOUT = 10.0

SCHEME_PATTERN = re.compile(r"^[a-zA-Z][a-zA-Z0-9+.\-]*:")
ALLOWED_SCHEMES = ("http", "https")


def is_allowed_host(hostname: Optional[str], allowed_hosts: AbstractSet[str]) -> bool:
    """Exact, case-sensitive membership test."""
    if not isinstance(hostname, str) or not hostname:
        return False
    return hostname in allowed_hosts


def _split_location(location: str) -> Optional[SplitResult]:
    try:
        parts = urlsplit(location)
        # .hostname and .port raise ValueError on malformed netlocs
        parts.hostname
        parts.port
    except ValueError:
        return None
    return parts


def is_absolute_location(location: str) -> bool:
    """True for Location values with a scheme or a scheme-relative '//host' prefix."""
    return bool(SCHEME_PATTERN.match(location)) or location.startswith("//")


def is_allowed_redirect(url: str, allowed_hosts: AbstractSet[str]) -> bool:
    """
    Check whether an absolute redirect URL may be followed.

    Never raises: empty, scheme-less, non-http(s) and unparseable input all
    return False.
    """
    if not isinstance(url, str) or not SCHEME_PATTERN.match(url):
        return False
    parts = _split_location(url)
    if parts is None or parts.scheme.lower() not in ALLOWED_SCHEMES:
        return False
    return is_allowed_host(parts.hostname, allowed_hosts)


@dataclass(frozen=True)
class RequestDescriptor:
    """One outbound request. Redirect handling builds new descriptors."""
    host: str
    path: str
    method: str = "GET"
    headers: Mapping[str, str] = field(default_factory=dict)
    scheme: str = "https"

    @property
    def url(self) -> str:
        # A path without a leading slash would otherwise extend the hostname
        path = self.path if self.path.startswith("/") else f"/{self.path}"
        return f"{self.scheme}://{self.host}{path}"

    def follow(self, location: str, allowed_hosts: AbstractSet[str]) -> "RequestDescriptor":
        """
        Build the descriptor for the next hop of a redirect.

        Raises:
            RedirectBlockedError: If an absolute location names a host that
                is not allow-listed, or uses a scheme other than http(s)
        """
        if not is_absolute_location(location):
            return replace(self, path=location, method="GET")

        target = location if not location.startswith("//") else f"{self.scheme}:{location}"
        parts = _split_location(target)
        hostname = parts.hostname if parts is not None else None
        if not is_allowed_redirect(target, allowed_hosts):
            raise RedirectBlockedError(hostname)

        path = parts.path or "/"
        if parts.query:
            path = f"{path}?{parts.query}"
        # Scheme, port and credentials of the redirect target are not carried over
        return replace(self, host=hostname, path=path, method="GET")


class RedirectFetcher:
    """
    Issues requests and follows redirects within an allow-list.

    Usage:
        async with httpx.AsyncClient(follow_redirects=False) as client:
            fetcher = RedirectFetcher(client, frozenset({"files.processlink.com.au"}))
            response = await fetcher.fetch(
                RequestDescriptor(host="files.processlink.com.au", path="/api/sites/1/areas")
            )
    """

    def __init__(
        self,
        client: httpx.AsyncClient,
        allowed_hosts: AbstractSet[str],
        max_redirects: int = DEFAULT_MAX_REDIRECTS,
        timeout: Optional[float] = DEFAULT_TIMEOUT,
    ):
        self.client = client
        self.allowed_hosts = frozenset(allowed_hosts)
        self.max_redirects = max_redirects
        self.timeout = timeout

    async def fetch(self, descriptor: RequestDescriptor) -> httpx.Response:
        """
        Perform the request, following redirects.

        Returns:
            The first non-redirect response

        Raises:
            RedirectBlockedError: Redirect to a host outside the allow-list
            TooManyRedirectsError: More than max_redirects hops
            RequestTimeoutError: The per-request deadline elapsed
            TransportError: Connection or DNS failure
        """
        current = descriptor
        hops = 0

        while True:
            response = await self._send(current)
            location = response.headers.get("location")
            if not (300 <= response.status_code < 400 and location):
                return response

            if hops >= self.max_redirects:
                raise TooManyRedirectsError(self.max_redirects)

            current = current.follow(location, self.allowed_hosts)
            hops += 1
            logger.info(f"Following redirect to: {current.host}{current.path}")

    async def _send(self, descriptor: RequestDescriptor) -> httpx.Response:
        request = self.client.build_request(
            descriptor.method, descriptor.url, headers=dict(descriptor.headers)
        )
        try:
            if self.timeout is None:
                return await self.client.send(request)
            return await asyncio.wait_for(self.client.send(request), self.timeout)
        except (asyncio.TimeoutError, httpx.TimeoutException) as e:
            raise RequestTimeoutError() from e
        except httpx.HTTPError as e:
            raise TransportError(f"Request to {descriptor.host} failed: {e}") from e
