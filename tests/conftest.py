"""Shared test doubles for the DNS, HTTP and render stages."""

from __future__ import annotations

from typing import Dict, Iterable, List, Optional, Union

import pytest

from domain_checker.commons import ProbeResult
from domain_checker.output import ResultSink
from domain_checker.prober import ProbeFailure


class FakeResolver:
    def __init__(self, unresolvable: Iterable[str] = ()) -> None:
        self.unresolvable = set(unresolvable)
        self.calls: List[str] = []

    async def resolve(self, domain: str) -> bool:
        self.calls.append(domain)
        return domain not in self.unresolvable


class FakeProber:
    """Maps a URL to a status code, a ``(status, final_url)`` pair, or None for a transport failure."""

    def __init__(self, responses: Optional[Dict[str, Union[int, tuple, None]]] = None, default: Optional[int] = 200) -> None:
        self.responses = responses or {}
        self.default = default
        self.calls: List[str] = []

    async def probe(self, url: str) -> ProbeResult:
        self.calls.append(url)
        outcome = self.responses.get(url, self.default)
        if outcome is None:
            raise ProbeFailure(url, 2)
        if isinstance(outcome, tuple):
            status, final_url = outcome
        else:
            status, final_url = outcome, url + "/"
        final_host = final_url.split("://", 1)[1].split("/", 1)[0].lower()
        host = url.split("://", 1)[1].split("/", 1)[0].lower()
        return ProbeResult(url=url, status_code=status, final_url=final_url, final_hostname=final_host, hostname=host)


class FakeVerifier:
    def __init__(self, failing: Iterable[str] = ()) -> None:
        self.failing = set(failing)
        self.calls: List[tuple] = []

    async def verify(self, url: str, timeout_s: float) -> bool:
        self.calls.append((url, timeout_s))
        return url not in self.failing


@pytest.fixture
def sink(tmp_path) -> ResultSink:
    return ResultSink(
        active_path=str(tmp_path / "active_domains.txt"),
        inactive_path=str(tmp_path / "inactive_domains.txt"),
        echo=False,
    )


def read_lines(path) -> List[str]:
    try:
        with open(path, encoding="utf-8") as f:
            return f.read().splitlines()
    except FileNotFoundError:
        return []
