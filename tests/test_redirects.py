"""
Tests for the redirect-following fetch and its host allow-list.
"""

import asyncio
import logging

import httpx
import pytest

from helpers import ALLOWED_HOSTS
from processlink.client.redirects import (
    RequestDescriptor,
    is_absolute_location,
    is_allowed_host,
    is_allowed_redirect,
)
from processlink.errors import (
    RedirectBlockedError,
    RequestTimeoutError,
    TooManyRedirectsError,
    TransportError,
)

START = RequestDescriptor(
    host="files.processlink.com.au",
    path="/api/sites/42/areas",
    headers={"Authorization": "Bearer pl_test_key"},
)


class TestAllowList:

    @pytest.mark.parametrize("host", sorted(ALLOWED_HOSTS))
    def test_listed_hosts_are_allowed(self, host):
        assert is_allowed_host(host, ALLOWED_HOSTS) is True
        assert is_allowed_redirect(f"https://{host}/x", ALLOWED_HOSTS) is True

    @pytest.mark.parametrize("host", sorted(ALLOWED_HOSTS))
    def test_prefix_and_suffix_variants_are_rejected(self, host):
        assert is_allowed_host(host + ".evil.com", ALLOWED_HOSTS) is False
        assert is_allowed_host("evil-" + host, ALLOWED_HOSTS) is False
        assert is_allowed_host("sub." + host, ALLOWED_HOSTS) is False
        assert is_allowed_redirect(f"https://{host}.evil.com/x", ALLOWED_HOSTS) is False

    def test_host_match_is_case_sensitive(self):
        assert is_allowed_host("FILES.processlink.com.au", ALLOWED_HOSTS) is False

    def test_unlisted_subdomain_is_rejected(self):
        assert is_allowed_host("api.processlink.com.au", ALLOWED_HOSTS) is False

    def test_userinfo_cannot_smuggle_a_host(self):
        assert is_allowed_redirect("https://processlink.com.au@evil.com/x", ALLOWED_HOSTS) is False

    @pytest.mark.parametrize(
        "url",
        [
            "",
            "processlink.com.au/x",
            "/relative/path",
            "not a url at all",
            "https://",
            "https://[::1/x",
            "ftp://processlink.com.au/x",
            "javascript:alert(1)",
            None,
            42,
        ],
    )
    def test_malformed_urls_are_rejected_without_raising(self, url):
        assert is_allowed_redirect(url, ALLOWED_HOSTS) is False

    def test_alternate_allow_list(self):
        assert is_allowed_redirect("https://example.org/", frozenset({"example.org"})) is True
        assert is_allowed_redirect("https://processlink.com.au/", frozenset({"example.org"})) is False


class TestRequestDescriptor:

    def test_relative_location_keeps_host_and_headers(self):
        nxt = START.follow("/api/v2/areas?page=2", ALLOWED_HOSTS)
        assert nxt.host == START.host
        assert nxt.path == "/api/v2/areas?page=2"
        assert nxt.headers == START.headers
        assert START.path == "/api/sites/42/areas"

    def test_absolute_location_takes_host_path_and_query(self):
        nxt = START.follow("https://portal.processlink.com.au:8443/a/b?c=1", ALLOWED_HOSTS)
        assert nxt.host == "portal.processlink.com.au"
        assert nxt.path == "/a/b?c=1"
        assert nxt.scheme == "https"
        assert nxt.method == "GET"

    def test_scheme_relative_location_is_validated(self):
        assert is_absolute_location("//evil.com/x")
        with pytest.raises(RedirectBlockedError):
            START.follow("//evil.com/x", ALLOWED_HOSTS)

    def test_path_without_slash_cannot_extend_the_host(self):
        nxt = START.follow(".evil.com/x", ALLOWED_HOSTS)
        assert httpx.URL(nxt.url).host == "files.processlink.com.au"


@pytest.mark.asyncio
async def test_non_redirect_response_is_returned_without_logging(caplog, fetcher_factory):
    """A plain response behaves like a single request"""
    calls = []

    def handler(request):
        calls.append(request)
        return httpx.Response(200, json=[{"id": 1}])

    fetcher = fetcher_factory(handler)
    with caplog.at_level(logging.INFO, logger="processlink"):
        response = await fetcher.fetch(START)

    assert response.status_code == 200
    assert response.json() == [{"id": 1}]
    assert len(calls) == 1
    assert calls[0].headers["authorization"] == "Bearer pl_test_key"
    assert "Following redirect" not in caplog.text


@pytest.mark.asyncio
async def test_allowed_absolute_redirect_is_followed_once(caplog, fetcher_factory):
    calls = []

    def handler(request):
        calls.append(request)
        if request.url.host == "files.processlink.com.au":
            return httpx.Response(302, headers={"Location": "https://processlink.com.au/x"})
        return httpx.Response(200, text="final")

    fetcher = fetcher_factory(handler)
    with caplog.at_level(logging.INFO, logger="processlink"):
        response = await fetcher.fetch(START)

    assert response.text == "final"
    assert [str(c.url) for c in calls] == [
        "https://files.processlink.com.au/api/sites/42/areas",
        "https://processlink.com.au/x",
    ]
    assert calls[1].method == "GET"
    assert calls[1].headers["authorization"] == "Bearer pl_test_key"
    assert "Following redirect to: processlink.com.au/x" in caplog.text


@pytest.mark.asyncio
async def test_untrusted_redirect_is_blocked_before_any_second_request(fetcher_factory):
    calls = []

    def handler(request):
        calls.append(request)
        return httpx.Response(302, headers={"Location": "https://evil.com/x"})

    fetcher = fetcher_factory(handler)
    with pytest.raises(RedirectBlockedError, match="Redirect to untrusted domain blocked: evil.com"):
        await fetcher.fetch(START)

    assert len(calls) == 1


@pytest.mark.asyncio
async def test_relative_redirect_stays_on_original_host(fetcher_factory):
    calls = []

    def handler(request):
        calls.append(request)
        if request.url.path == "/api/sites/42/areas":
            return httpx.Response(301, headers={"Location": "/api/sites/42/areas/"})
        return httpx.Response(200, json=[])

    response = await fetcher_factory(handler).fetch(START)

    assert response.status_code == 200
    assert calls[1].url.host == "files.processlink.com.au"
    assert calls[1].url.path == "/api/sites/42/areas/"


@pytest.mark.asyncio
async def test_redirect_without_location_is_returned_as_is(fetcher_factory):
    response = await fetcher_factory(lambda request: httpx.Response(304)).fetch(START)
    assert response.status_code == 304


@pytest.mark.asyncio
async def test_redirect_loop_is_bounded(fetcher_factory):
    calls = []

    def handler(request):
        calls.append(request)
        return httpx.Response(307, headers={"Location": request.url.path})

    with pytest.raises(TooManyRedirectsError) as exc_info:
        await fetcher_factory(handler, max_redirects=3).fetch(START)

    assert exc_info.value.is_retryable
    # Initial request plus three followed hops
    assert len(calls) == 4


@pytest.mark.asyncio
async def test_connection_error_becomes_transport_error(fetcher_factory):
    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    with pytest.raises(TransportError, match="files.processlink.com.au"):
        await fetcher_factory(handler).fetch(START)


@pytest.mark.asyncio
async def test_slow_response_hits_request_timeout(fetcher_factory):
    async def handler(request):
        await asyncio.sleep(1.0)
        return httpx.Response(200)

    with pytest.raises(RequestTimeoutError, match="Request timeout"):
        await fetcher_factory(handler, timeout=0.05).fetch(START)
