"""Output module that persists classified domains to append-only files."""
import asyncio
import logging
import os
from typing import Dict

from .commons import Channel, Classification

logger = logging.getLogger(__name__)


class ResultSink:
    """Appends one line per classification to the file of its channel."""

    def __init__(self, active_path: str, inactive_path: str, echo: bool = True) -> None:
        self.paths: Dict[Channel, str] = {
            Channel.ACTIVE: active_path,
            Channel.INACTIVE: inactive_path,
        }
        self.echo: bool = echo
        # One writer at a time per file so lines never interleave.
        self.locks: Dict[Channel, asyncio.Lock] = {channel: asyncio.Lock() for channel in self.paths}

    @staticmethod
    def format_line(result: Classification) -> str:
        """Render the file line for a classification."""
        if result.is_active:
            return f"{result.url}{result.redirect_info}\n"
        return f"{result.domain}\n"

    @staticmethod
    def format_console(result: Classification) -> str:
        return f"Active: {result.url} (Status Code: {result.status_code}){result.redirect_info}"

    async def record(self, result: Classification) -> bool:
        """Append ``result`` to its sink.

        Returns:
            bool: False if the write failed; the failure is logged, never raised.
        """
        if result.is_active and self.echo:
            try:
                print(self.format_console(result), flush=True)
            except (OSError, UnicodeError) as e:
                logger.error("Failed to echo %s to console: %s", result.domain, e)

        path: str = self.paths[result.channel]
        line: str = self.format_line(result)
        async with self.locks[result.channel]:
            try:
                with open(path, "a", encoding="utf-8") as f:
                    f.write(line)
            except OSError as e:
                logger.error("Failed to record %s in %s: %s", result.domain, path, e)
                return False
        return True

    def ensure_directory(self) -> None:
        """Create the parent directories of both sink files."""
        for path in self.paths.values():
            parent: str = os.path.dirname(path)
            if parent:
                os.makedirs(parent, exist_ok=True)
