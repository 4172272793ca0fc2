"""Counter module to track outcomes per channel and report progress periodically."""
from .commons import Channel
from typing import Dict

import asyncio
import logging

logger = logging.getLogger(__name__)


class Counter:
    """Maintains running counts per outcome channel; reports every interval."""

    def __init__(self, total: int, interval_s: float = 60) -> None:
        self.total: int = total
        self.interval_s: float = interval_s
        self.counts: Dict[Channel, int] = {channel: 0 for channel in Channel}

    def add(self, channel: Channel) -> None:
        self.counts[channel] += 1

    @property
    def done(self) -> int:
        return sum(self.counts.values())

    def message(self) -> str:
        message: str = "[Counter] update: "
        for channel, count in self.counts.items():
            message += f"{channel.value}: {count} "
        message += f"done: {self.done}/{self.total}"
        return message

    async def report(self) -> None:
        """Log counts every interval until cancelled."""
        while True:
            await asyncio.sleep(self.interval_s)
            logger.info(self.message())
