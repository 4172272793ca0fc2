"""Tests for the HTTP prober.

``respx`` patches ``httpx`` at the transport layer, so redirects are still
driven by the real client while no network traffic happens.
"""

from __future__ import annotations

import asyncio

import httpx
import pytest
import respx

from domain_checker.commons import Classification, USER_AGENT
from domain_checker.prober import HTTPProber, ProbeFailure


def _probe(url: str, **kwargs):
    async def go():
        async with HTTPProber(**kwargs) as prober:
            return await prober.probe(url)

    return asyncio.run(go())


class TestProbe:
    def test_success_returns_status_and_final_url(self) -> None:
        with respx.mock:
            respx.get("http://example.com/").mock(return_value=httpx.Response(200))
            result = _probe("http://example.com")

        assert result.url == "http://example.com"
        assert result.status_code == 200
        assert result.final_url == "http://example.com/"
        assert result.final_hostname == "example.com"

    def test_bad_status_is_returned_not_retried(self) -> None:
        with respx.mock:
            route = respx.get("http://example.com/").mock(return_value=httpx.Response(503))
            result = _probe("http://example.com", retry_count=3)

        assert result.status_code == 503
        assert route.call_count == 1

    def test_user_agent_header_is_set(self) -> None:
        with respx.mock:
            route = respx.get("http://example.com/").mock(return_value=httpx.Response(200))
            _probe("http://example.com")

        assert route.calls.last.request.headers["User-Agent"] == USER_AGENT

    def test_redirect_is_followed(self) -> None:
        with respx.mock:
            respx.get("http://example.com/").mock(
                return_value=httpx.Response(301, headers={"Location": "https://www.example.org/home"})
            )
            respx.get("https://www.example.org/home").mock(return_value=httpx.Response(200))
            result = _probe("http://example.com")

        assert result.status_code == 200
        assert result.final_url == "https://www.example.org/home"
        assert result.final_hostname == "www.example.org"

    def test_redirect_chain_is_capped(self) -> None:
        with respx.mock(assert_all_called=False) as respx_mock:
            for i in range(15):
                respx_mock.get(f"http://example.com/{i}").mock(
                    return_value=httpx.Response(302, headers={"Location": f"/{i + 1}"})
                )
            result = _probe("http://example.com/0", max_redirects=10)

        assert result.status_code == 302
        assert result.final_url == "http://example.com/10"

    def test_user_agent_survives_redirects(self) -> None:
        with respx.mock:
            respx.get("http://example.com/").mock(
                return_value=httpx.Response(301, headers={"Location": "http://example.com/next"})
            )
            route = respx.get("http://example.com/next").mock(return_value=httpx.Response(200))
            _probe("http://example.com", user_agent="TestAgent/1.0")

        assert route.calls.last.request.headers["User-Agent"] == "TestAgent/1.0"


class TestRetries:
    def test_transport_error_is_retried(self) -> None:
        with respx.mock:
            route = respx.get("http://example.com/").mock(
                side_effect=[httpx.ConnectError("refused"), httpx.Response(200)]
            )
            result = _probe("http://example.com", retry_count=2)

        assert result.status_code == 200
        assert route.call_count == 2

    def test_attempts_are_bounded_by_retry_count(self) -> None:
        """Two failures then a success, with two attempts allowed, is a failure."""
        with respx.mock:
            route = respx.get("http://example.com/").mock(
                side_effect=[
                    httpx.ConnectError("refused"),
                    httpx.ConnectTimeout("timed out"),
                    httpx.Response(200),
                ]
            )
            with pytest.raises(ProbeFailure) as exc_info:
                _probe("http://example.com", retry_count=2)

        assert route.call_count == 2
        assert exc_info.value.attempts == 2
        assert isinstance(exc_info.value.last_error, httpx.ConnectTimeout)

    def test_single_attempt(self) -> None:
        with respx.mock:
            route = respx.get("https://example.com/").mock(side_effect=httpx.ConnectError("refused"))
            with pytest.raises(ProbeFailure):
                _probe("https://example.com", retry_count=1)

        assert route.call_count == 1


class TestClose:
    def test_close_is_idempotent(self) -> None:
        async def go():
            prober = HTTPProber()
            await prober.close()
            await prober.close()
            return prober.client.is_closed

        assert asyncio.run(go()) is True


class TestHostnameCase:
    def test_mixed_case_domain_is_not_a_redirect(self) -> None:
        with respx.mock:
            respx.get("http://example.com/").mock(return_value=httpx.Response(200))
            result = _probe("http://Example.COM")

        assert result.hostname == "example.com"
        assert result.final_hostname == "example.com"
        assert Classification.active("Example.COM", result).redirected_to is None

    def test_mixed_case_domain_redirected_elsewhere(self) -> None:
        with respx.mock:
            respx.get("http://example.com/").mock(
                return_value=httpx.Response(301, headers={"Location": "https://www.example.com/"})
            )
            respx.get("https://www.example.com/").mock(return_value=httpx.Response(200))
            result = _probe("http://Example.COM")

        assert Classification.active("Example.COM", result).redirected_to == "www.example.com"
