"""Shared pipeline primitives: outcome channels, probe results and classifications."""

from dataclasses import dataclass
from enum import Enum
from typing import Optional

USER_AGENT: str = "Mozilla/5.0 (compatible; DomainChecker/1.0)"


class Channel(Enum):
    """Terminal outcomes. The value is also the stem of the sink file name."""
    ACTIVE = "active"
    INACTIVE = "inactive"


@dataclass(frozen=True)
class ProbeResult:
    """Outcome of one successful HTTP attempt, after redirects."""
    url: str
    status_code: int
    final_url: str
    final_hostname: str
    # Host of the first request, normalized the same way as final_hostname.
    hostname: str = ""


@dataclass(frozen=True)
class Classification:
    """Write-once verdict for a domain."""
    domain: str
    channel: Channel
    url: Optional[str] = None
    final_url: Optional[str] = None
    status_code: Optional[int] = None
    redirected_to: Optional[str] = None

    @staticmethod
    def active(domain: str, probe: ProbeResult) -> "Classification":
        """Build an Active verdict carrying redirect metadata.

        Redirect metadata is present only when the final hostname differs
        from the host that was requested. Hostnames are case-insensitive.
        """
        original: str = probe.hostname or domain.lower()
        redirected_to: Optional[str] = (
            probe.final_hostname if probe.final_hostname != original else None
        )
        return Classification(
            domain=domain,
            channel=Channel.ACTIVE,
            url=probe.url,
            final_url=probe.final_url,
            status_code=probe.status_code,
            redirected_to=redirected_to,
        )

    @staticmethod
    def inactive(domain: str) -> "Classification":
        return Classification(domain=domain, channel=Channel.INACTIVE)

    @property
    def is_active(self) -> bool:
        return self.channel is Channel.ACTIVE

    @property
    def redirect_info(self) -> str:
        """Suffix shared by the console line and the active file."""
        if not self.redirected_to:
            return ""
        return f" (Redirected to: {self.redirected_to})"
