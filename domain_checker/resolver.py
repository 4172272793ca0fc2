"""DNS stage: decides whether a hostname resolves at all."""
import logging

import dns.asyncresolver
import dns.exception
import dns.resolver

logger = logging.getLogger(__name__)


class Resolver:
    """Async hostname lookup over A and AAAA records."""

    def __init__(self, timeout_s: float = 10.0, resolver: dns.asyncresolver.Resolver | None = None) -> None:
        self.resolver: dns.asyncresolver.Resolver = resolver or dns.asyncresolver.Resolver()
        self.resolver.timeout = timeout_s
        self.resolver.lifetime = timeout_s

    async def resolve(self, domain: str) -> bool:
        """Return True iff at least one address comes back without error.

        NXDOMAIN, empty answers, timeouts and malformed names all count as
        unresolvable. No retries happen here.
        """
        try:
            answers: dns.resolver.HostAnswers = await self.resolver.resolve_name(domain)
        except (dns.exception.DNSException, ValueError) as e:
            logger.debug("DNS lookup failed for %s: %s", domain, e.__class__.__name__)
            return False
        return any(True for _ in answers.addresses())
