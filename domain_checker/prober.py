"""HTTP stage: retried GET probes with a bounded redirect chain."""
import asyncio
import logging
from typing import Optional

import httpx

from .commons import ProbeResult, USER_AGENT

logger = logging.getLogger(__name__)


class ProbeFailure(Exception):
    """Every attempt for a URL ended in a transport error."""

    def __init__(self, url: str, attempts: int, last_error: Optional[BaseException] = None) -> None:
        super().__init__(f"{url}: request failed after {attempts} attempt(s)")
        self.url: str = url
        self.attempts: int = attempts
        self.last_error: Optional[BaseException] = last_error


class HTTPProber:
    """GET prober sharing one async client across every evaluation.

    TLS certificates are not validated unless ``verify_tls`` is set; the
    checker measures liveness, not trust.
    """

    def __init__(
        self,
        timeout_s: float = 10.0,
        retry_count: int = 2,
        max_redirects: int = 10,
        user_agent: str = USER_AGENT,
        verify_tls: bool = False,
        max_connections: int = 100,
        client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        self.timeout_s: float = timeout_s
        self.retry_count: int = retry_count
        self.max_redirects: int = max_redirects
        self.user_agent: str = user_agent
        self.client: httpx.AsyncClient = client or httpx.AsyncClient(
            verify=verify_tls,
            timeout=httpx.Timeout(timeout_s),
            limits=httpx.Limits(max_connections=max_connections, max_keepalive_connections=20),
            follow_redirects=False,
        )

    async def close(self) -> None:
        """Close the shared async HTTP client, if open."""
        if not self.client.is_closed:
            await self.client.aclose()

    async def __aenter__(self) -> "HTTPProber":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()

    async def probe(self, url: str) -> ProbeResult:
        """GET ``url`` with up to ``retry_count`` attempts in total.

        Only transport errors (connect, timeout, TLS, protocol) consume an
        attempt. Any received response is returned as is, whatever its status.

        Raises:
            ProbeFailure: If every attempt failed at the transport level.
        """
        last_error: Optional[BaseException] = None
        for attempt in range(1, self.retry_count + 1):
            try:
                async with asyncio.timeout(self.timeout_s):
                    return await self._attempt(url)
            except (httpx.TransportError, httpx.InvalidURL, TimeoutError) as e:
                last_error = e
                logger.debug("GET %s attempt %d/%d failed: %r", url, attempt, self.retry_count, e)
        raise ProbeFailure(url, self.retry_count, last_error)

    async def _attempt(self, url: str) -> ProbeResult:
        headers: dict[str, str] = {"User-Agent": self.user_agent}
        request: httpx.Request = self.client.build_request("GET", url, headers=headers)
        response: httpx.Response = await self.client.send(request, stream=True)
        hops: int = 0
        try:
            # Past the cap, the redirect response itself is final.
            while response.next_request is not None and hops < self.max_redirects:
                next_request: httpx.Request = response.next_request
                await response.aclose()
                response = await self.client.send(next_request, stream=True)
                hops += 1
            final_url: httpx.URL = response.request.url
            return ProbeResult(
                url=url,
                status_code=response.status_code,
                final_url=str(final_url),
                final_hostname=final_url.host,
                hostname=request.url.host,
            )
        finally:
            await response.aclose()
