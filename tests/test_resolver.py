"""Tests for the DNS stage. The dnspython resolver is replaced by an ``AsyncMock``."""

from __future__ import annotations

import asyncio
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import dns.exception
import dns.resolver
import pytest

from domain_checker.resolver import Resolver


def _resolver(**kwargs) -> Resolver:
    inner = MagicMock()
    inner.resolve_name = AsyncMock(**kwargs)
    return Resolver(timeout_s=3.0, resolver=inner)


class TestResolve:
    def test_address_found(self) -> None:
        answers = SimpleNamespace(addresses=lambda: iter(["93.184.216.34"]))
        resolver = _resolver(return_value=answers)
        assert asyncio.run(resolver.resolve("example.com")) is True
        resolver.resolver.resolve_name.assert_awaited_once_with("example.com")

    def test_no_addresses(self) -> None:
        answers = SimpleNamespace(addresses=lambda: iter([]))
        resolver = _resolver(return_value=answers)
        assert asyncio.run(resolver.resolve("example.com")) is False

    @pytest.mark.parametrize(
        "error",
        [
            dns.resolver.NXDOMAIN(),
            dns.resolver.NoAnswer(),
            dns.resolver.NoNameservers(),
            dns.exception.Timeout(),
            ValueError("bad name"),
        ],
    )
    def test_every_lookup_error_is_unresolvable(self, error: Exception) -> None:
        resolver = _resolver(side_effect=error)
        assert asyncio.run(resolver.resolve("nope.invalid")) is False

    def test_timeout_is_applied(self) -> None:
        resolver = _resolver()
        assert resolver.resolver.timeout == 3.0
        assert resolver.resolver.lifetime == 3.0
