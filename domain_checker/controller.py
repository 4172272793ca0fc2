"""Controller: runs the processor over every domain under a fixed concurrency cap."""
from .commons import Channel, Classification
from .config import Config
from .counter import Counter
from .output import ResultSink
from .processor import Processor
from .prober import HTTPProber
from .resolver import Resolver
from .browser import PlaywrightRenderVerifier

from contextlib import AsyncExitStack, asynccontextmanager
from dataclasses import dataclass
from typing import AsyncIterator, Dict, Optional, Sequence

import asyncio
import logging

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RunSummary:
    total: int
    counts: Dict[Channel, int]
    peak_in_flight: int

    @property
    def active(self) -> int:
        return self.counts.get(Channel.ACTIVE, 0)

    @property
    def inactive(self) -> int:
        return self.counts.get(Channel.INACTIVE, 0)


class Controller:
    """One task per domain; a semaphore admits at most ``max_concurrent_checks`` at once."""

    def __init__(
        self,
        processor: Processor,
        sink: ResultSink,
        max_concurrent_checks: int = 100,
        report_interval_s: Optional[float] = None,
    ) -> None:
        if max_concurrent_checks < 1:
            raise ValueError("max_concurrent_checks must be at least 1")
        self.processor: Processor = processor
        self.sink: ResultSink = sink
        self.max_concurrent_checks: int = max_concurrent_checks
        self.report_interval_s: Optional[float] = report_interval_s
        self.in_flight: int = 0
        self.peak_in_flight: int = 0

    @staticmethod
    @asynccontextmanager
    async def open(config: Config) -> AsyncIterator["Controller"]:
        """Build the production stages from ``config`` and close them on exit."""
        c = config.checker
        async with AsyncExitStack() as stack:
            prober: HTTPProber = await stack.enter_async_context(
                HTTPProber(
                    timeout_s=c.timeout_s,
                    retry_count=c.retry_count,
                    max_redirects=c.max_redirects,
                    user_agent=c.user_agent,
                    verify_tls=c.verify_tls,
                    max_connections=c.max_concurrent_checks,
                )
            )
            verifier: PlaywrightRenderVerifier = await stack.enter_async_context(
                PlaywrightRenderVerifier(user_agent=c.user_agent, ignore_https_errors=not c.verify_tls)
            )
            processor = Processor(
                resolver=Resolver(timeout_s=c.timeout_s),
                prober=prober,
                verifier=verifier,
                accepted_status_codes=c.accepted_status_codes,
                timeout_s=c.timeout_s,
            )
            sink = ResultSink(config.active_path, config.inactive_path)
            sink.ensure_directory()
            yield Controller(
                processor=processor,
                sink=sink,
                max_concurrent_checks=c.max_concurrent_checks,
                report_interval_s=config.counter.interval_s if config.counter.enable else None,
            )

    async def check(self, domain: str, semaphore: asyncio.Semaphore, counter: Counter) -> Classification:
        """Classify and record one domain. Never raises except on cancellation."""
        async with semaphore:
            self.in_flight += 1
            self.peak_in_flight = max(self.peak_in_flight, self.in_flight)
            try:
                try:
                    result: Classification = await self.processor.evaluate(domain)
                except Exception:
                    logger.exception("Unexpected error while checking %s", domain)
                    result = Classification.inactive(domain)
                await self.sink.record(result)
                counter.add(result.channel)
                return result
            finally:
                self.in_flight -= 1

    async def run_all(self, domains: Sequence[str]) -> RunSummary:
        """Check every domain and return once all of them are recorded."""
        semaphore: asyncio.Semaphore = asyncio.Semaphore(self.max_concurrent_checks)
        counter: Counter = Counter(total=len(domains), interval_s=self.report_interval_s or 60)
        reporter: Optional[asyncio.Task[None]] = None
        if self.report_interval_s:
            reporter = asyncio.create_task(counter.report(), name="counter_report")

        logger.info("Checking %d domains (max %d concurrent)", len(domains), self.max_concurrent_checks)
        try:
            async with asyncio.TaskGroup() as tg:
                for domain in domains:
                    tg.create_task(self.check(domain, semaphore, counter), name=f"check:{domain}")
        finally:
            if reporter is not None:
                reporter.cancel()
                await asyncio.gather(reporter, return_exceptions=True)

        logger.info(counter.message())
        return RunSummary(total=len(domains), counts=dict(counter.counts), peak_in_flight=self.peak_in_flight)
