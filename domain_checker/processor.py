"""Processor: per-domain evaluation of DNS, HTTP and render checks.

A domain moves strictly forward through the stages and lands in exactly one
terminal channel:

1) Resolve. Unresolvable names are inactive with no further network activity.
2) Probe ``http://`` then ``https://``. The first attempt with an accepted
   status wins and the other scheme is never tried.
3) Render the final URL reached after redirects. A page that answers HTTP
   but does not render is inactive.

Every failure along the way folds into ``Channel.INACTIVE``.
"""
from .commons import Classification, ProbeResult
from .prober import HTTPProber, ProbeFailure
from .resolver import Resolver
from .browser import RenderVerifier

from typing import FrozenSet, Optional, Tuple

import logging

logger = logging.getLogger(__name__)


class Processor:
    """Classifies one domain at a time; safe to share across concurrent tasks."""

    SCHEMES: Tuple[str, ...] = ("http://", "https://")

    def __init__(
        self,
        resolver: Resolver,
        prober: HTTPProber,
        verifier: RenderVerifier,
        accepted_status_codes: FrozenSet[int] = frozenset({200}),
        timeout_s: float = 10.0,
    ) -> None:
        self.resolver: Resolver = resolver
        self.prober: HTTPProber = prober
        self.verifier: RenderVerifier = verifier
        self.accepted_status_codes: FrozenSet[int] = frozenset(accepted_status_codes)
        self.timeout_s: float = timeout_s

    def is_accepted(self, status_code: int) -> bool:
        return status_code in self.accepted_status_codes

    async def first_accepted(self, domain: str) -> Optional[ProbeResult]:
        """Probe each scheme in order and return the first accepted result.

        Args:
            domain: Bare hostname.

        Returns:
            Optional[ProbeResult]: The winning probe, or None if no scheme was accepted.
        """
        for scheme in Processor.SCHEMES:
            url: str = scheme + domain
            try:
                result: ProbeResult = await self.prober.probe(url)
            except ProbeFailure as e:
                logger.debug("%s", e)
                continue
            if self.is_accepted(result.status_code):
                return result
            logger.debug("%s answered %d, not accepted", url, result.status_code)
        return None

    async def evaluate(self, domain: str) -> Classification:
        """Run the full check for ``domain`` and return its classification."""
        # 1) DNS
        if not await self.resolver.resolve(domain):
            logger.debug("%s does not resolve", domain)
            return Classification.inactive(domain)

        # 2) HTTP, http before https
        probe: Optional[ProbeResult] = await self.first_accepted(domain)
        if probe is None:
            return Classification.inactive(domain)

        # 3) Render the page that was actually reached
        rendered: bool = await self.verifier.verify(probe.final_url, self.timeout_s)
        if not rendered:
            logger.debug("%s answered %d but did not render", probe.final_url, probe.status_code)
            return Classification.inactive(domain)

        return Classification.active(domain, probe)
