"""Async entrypoint: load the domain list, run every check, write the results."""

import argparse
import asyncio
import logging
import sys
from typing import List, Optional

import yaml

from domain_checker.config import Config, parse_status_codes
from domain_checker.controller import Controller, RunSummary
from domain_checker.ingester import DomainListError, Ingester

logger = logging.getLogger("domain_checker")

EXIT_OK = 0
EXIT_INPUT = 1
EXIT_USAGE = 2
EXIT_INTERRUPTED = 130


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="domain_checker",
        description="Classify domains as active or inactive using DNS, HTTP(S) and a headless browser.",
    )
    parser.add_argument("domain_file", help="newline-delimited list of domain names")
    parser.add_argument(
        "status_codes",
        nargs="?",
        help="comma-separated HTTP status codes counted as success (default: 200)",
    )
    parser.add_argument("--config", help=f"YAML config file (default: {Config.DEFAULT_PATH} if present)")
    parser.add_argument("--output-dir", help="directory for active/inactive result files")
    parser.add_argument("--concurrency", type=int, help="maximum simultaneous domain checks")
    parser.add_argument("--timeout", type=float, help="per-request and render timeout in seconds")
    parser.add_argument("--retries", type=int, help="HTTP attempts per URL")
    verbosity = parser.add_mutually_exclusive_group()
    verbosity.add_argument("-v", "--verbose", action="store_true", help="log every stage transition")
    verbosity.add_argument("-q", "--quiet", action="store_true", help="only log warnings and errors")
    return parser


def configure_logging(verbose: bool = False, quiet: bool = False) -> None:
    level: int = logging.DEBUG if verbose else logging.WARNING if quiet else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(message)s",
        datefmt="%H:%M:%S",
    )
    # Keep per-request chatter out of verbose runs.
    for noisy in ("httpx", "httpcore", "asyncio"):
        logging.getLogger(noisy).setLevel(logging.WARNING)


def load_config(args: argparse.Namespace) -> Config:
    config: Config = Config.load(args.config)
    return config.with_overrides(
        accepted_status_codes=parse_status_codes(args.status_codes) if args.status_codes is not None else None,
        timeout_s=args.timeout,
        retry_count=args.retries,
        max_concurrent_checks=args.concurrency,
        output_directory=args.output_dir,
    )


async def run(config: Config, domains: List[str]) -> RunSummary:
    """Run every check and wait for all of them to be recorded."""
    async with Controller.open(config) as controller:
        return await controller.run_all(domains)


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    configure_logging(verbose=args.verbose, quiet=args.quiet)

    try:
        config: Config = load_config(args)
    except (ValueError, FileNotFoundError, yaml.YAMLError) as e:
        print(f"Invalid configuration: {e}", file=sys.stderr)
        return EXIT_USAGE

    # Fatal before any work starts.
    try:
        domains: List[str] = Ingester.read(args.domain_file)
    except DomainListError as e:
        print(e, file=sys.stderr)
        return EXIT_INPUT

    try:
        summary: RunSummary = asyncio.run(run(config, domains))
    except KeyboardInterrupt:
        print("Shutdown requested (Ctrl-C). Outstanding checks were cancelled.", file=sys.stderr)
        return EXIT_INTERRUPTED

    logger.info("Done: %d active, %d inactive of %d domains", summary.active, summary.inactive, summary.total)
    return EXIT_OK


if __name__ == "__main__":
    sys.exit(main())
