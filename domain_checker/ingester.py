"""Ingester: loads the newline-delimited domain list."""
import logging
from typing import Iterable, List, Set

logger = logging.getLogger(__name__)


class DomainListError(Exception):
    """The domain list could not be opened, read or decoded."""


class Ingester:

    @staticmethod
    def parse(lines: Iterable[str]) -> List[str]:
        """Strip whitespace, skip blank lines, drop repeats in first-seen order."""
        domains: List[str] = []
        seen: Set[str] = set()
        for line in lines:
            domain: str = line.strip()
            if not domain:
                continue
            if domain in seen:
                logger.debug("Skipping duplicate domain %s", domain)
                continue
            seen.add(domain)
            domains.append(domain)
        return domains

    @staticmethod
    def read(path: str) -> List[str]:
        """Read domains from ``path``.

        Raises:
            DomainListError: If the file is missing, unreadable or not UTF-8.
        """
        try:
            with open(path, "r", encoding="utf-8") as f:
                domains: List[str] = Ingester.parse(f)
        except (OSError, UnicodeDecodeError) as e:
            raise DomainListError(f"Failed to read domain list {path}: {e}") from e
        logger.info("Loaded %d domains from %s", len(domains), path)
        return domains
