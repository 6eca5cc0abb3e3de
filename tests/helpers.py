"""Shared fakes for the HTTP layer."""
import asyncio
from typing import Awaitable, Callable, Dict, Union

import httpx

from processlink.client.redirects import RedirectFetcher

ALLOWED_HOSTS = frozenset(
    {
        "files.processlink.com.au",
        "processlink.com.au",
        "processmail.processlink.com.au",
        "portal.processlink.com.au",
    }
)

Handler = Callable[[httpx.Request], Union[httpx.Response, Awaitable[httpx.Response]]]


def make_fetcher(handler: Handler, timeout: float = 1.0, max_redirects: int = 5) -> RedirectFetcher:
    """RedirectFetcher over an httpx.MockTransport."""
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler), follow_redirects=False)
    return RedirectFetcher(client, ALLOWED_HOSTS, max_redirects=max_redirects, timeout=timeout)


def route_by_path(routes: Dict[str, Handler]) -> Handler:
    """Dispatch on the last path segment (e.g. 'areas', 'folders')."""
    async def handler(request: httpx.Request) -> httpx.Response:
        branch = request.url.path.rstrip("/").rsplit("/", 1)[-1]
        result = routes[branch](request)
        if asyncio.iscoroutine(result):
            result = await result
        return result
    return handler


def delayed(response: httpx.Response, delay: float) -> Handler:
    async def handler(request: httpx.Request) -> httpx.Response:
        await asyncio.sleep(delay)
        return response
    return handler


