"""Command-line interface for the netlink scraper."""

import asyncio
import json
import sys
from typing import List, Optional

from netlink_scraper.classifier import classify, resolve_link_type
from netlink_scraper.config import Config
from netlink_scraper.dashboard import (
    DashboardClient,
    DashboardResultSink,
    DashboardTargetSource,
    target_from_record,
)
from netlink_scraper.exceptions import ConfigError, NetlinkScraperError
from netlink_scraper.infrastructure import BrowserSession
from netlink_scraper.logging_config import ProgressLogger, get_logger, setup_logging
from netlink_scraper.models import ScrapeResult, ScrapeTarget
from netlink_scraper.orchestrator import ScrapeOrchestrator
from netlink_scraper.scraper import PageScraper

logger = get_logger(__name__)


def _config_from_args(args) -> Config:
    """Environment config with command-line overrides applied."""
    config = Config.from_env()
    if getattr(args, "headed", False):
        config.headless = False
    for name in ("timeout_ms", "concurrency", "retries", "delay_ms", "batch_size"):
        value = getattr(args, name, None)
        if value is not None:
            setattr(config, name, value)
    if getattr(args, "no_skip_errors", False):
        config.skip_errors = False
    config.__post_init__()
    return config


def _report(result: ScrapeResult) -> dict:
    """Result dictionary with its derived status fields."""
    data = result.to_dict()
    data["online_status"] = int(classify(result))
    data["link_type"] = resolve_link_type(result).value
    return data


def print_result(result: ScrapeResult):
    """Print one scrape result in a formatted way."""
    status = classify(result)
    print(f"\n{'=' * 60}")
    print(f"Placement: {result.url}")
    print(f"{'=' * 60}")
    print(f"  Scrape: {'success' if result.success else 'failed'} "
          f"(attempts: {result.attempts})")
    if result.status_code is not None:
        print(f"  Status code: {result.status_code}")
    if not result.success:
        print(f"  Error: {result.error}")
    else:
        print(f"  Links on page: {result.all_links_count}")
    if result.landing_page:
        print(f"  Landing page: {result.landing_page}")
        if result.link_matched:
            print(f"  Found link: {result.found_link.href} "
                  f"({result.found_link.match_type.value} match)")
        elif result.domain_found:
            print(f"  Domain only: {result.domain_found_link.href}")
    print(f"  Online status: {int(status)} ({status.name})")
    print(f"  Link type: {resolve_link_type(result).value}")
    print(f"{'=' * 60}\n")


async def _check(config: Config, url: str, landing_page: Optional[str]) -> ScrapeResult:
    async with BrowserSession(config.browser_config()) as session:
        scraper = PageScraper(session, timeout_ms=config.timeout_ms, retries=config.retries)
        return await scraper.scrape_one(url, landing_page)


def check_command(args):
    """Scrape a single placement page."""
    config = _config_from_args(args)

    try:
        result = asyncio.run(_check(config, args.url, args.landing_page))
    except NetlinkScraperError as e:
        print(f"Error: {e}")
        sys.exit(1)

    if args.output == "json":
        print(json.dumps(_report(result), indent=2))
    else:
        print_result(result)

    if not result.success:
        sys.exit(1)


async def _scrape_targets(config: Config, targets: List[ScrapeTarget]) -> List[ScrapeResult]:
    async with BrowserSession(config.browser_config()) as session:
        scraper = PageScraper(session, timeout_ms=config.timeout_ms, retries=config.retries)
        orchestrator = ScrapeOrchestrator(scraper)

        return await orchestrator.scrape_many(
            targets, config.to_scrape_options(on_progress=ProgressLogger(logger))
        )


def load_targets(path: str) -> List[ScrapeTarget]:
    """Load targets from a JSON file holding a list of records."""
    with open(path, "r") as f:
        records = json.load(f)

    if not isinstance(records, list):
        raise NetlinkScraperError(f"{path} must contain a JSON list of targets")

    targets = []
    for record in records:
        target = target_from_record(record)
        if target is None:
            logger.warning(f"Skipping record without URL: {record}")
            continue
        targets.append(target)
    return targets


def scrape_file_command(args):
    """Scrape the targets listed in a JSON file."""
    config = _config_from_args(args)

    try:
        targets = load_targets(args.path)
        results = asyncio.run(_scrape_targets(config, targets))
    except NetlinkScraperError as e:
        print(f"Error: {e}")
        sys.exit(1)

    output = json.dumps([_report(r) for r in results], indent=2)
    if args.output_file:
        with open(args.output_file, "w") as f:
            f.write(output)
        print(f"\nResults written to {args.output_file}")
    else:
        print(output)


async def _run(config: Config, dry_run: bool):
    async with DashboardClient(config.dashboard_base_url, config.dashboard_token) as client:
        source = DashboardTargetSource(client)
        sink = DashboardResultSink(client)

        async with BrowserSession(config.browser_config()) as session:
            scraper = PageScraper(session, timeout_ms=config.timeout_ms, retries=config.retries)
            orchestrator = ScrapeOrchestrator(scraper)

            async def on_batch_complete(results, batch_number):
                if dry_run:
                    logger.info(f"Dry run: not posting batch {batch_number}")
                    return
                await sink.post_batch(results)

            return await orchestrator.scrape_in_batches(
                source,
                on_batch_complete,
                config.to_scrape_options(on_progress=ProgressLogger(logger, every=10)),
                pages_per_batch=config.batch_size,
            )


def run_command(args):
    """Scrape every netlink from the dashboard and upsert the outcomes."""
    config = _config_from_args(args)

    try:
        stats = asyncio.run(_run(config, args.dry_run))
    except NetlinkScraperError as e:
        print(f"Error: {e}")
        sys.exit(1)

    print(json.dumps(stats.to_dict(), indent=2))


def _add_scrape_arguments(parser):
    parser.add_argument(
        "--timeout",
        dest="timeout_ms",
        type=int,
        help="Navigation timeout in milliseconds",
    )
    parser.add_argument(
        "--retries",
        type=int,
        help="Attempts per placement page",
    )


def main(argv: Optional[List[str]] = None):
    """Main CLI entry point."""
    import argparse

    parser = argparse.ArgumentParser(
        description="Netlink scraper - verify backlink placements with a headless browser"
    )

    # Global flags (before subcommands)
    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        default=None,
        help="Set logging verbosity (default: LOG_LEVEL or INFO)",
    )
    parser.add_argument(
        "--log-file",
        help="Write logs to file in addition to console",
    )
    parser.add_argument(
        "--headed",
        action="store_true",
        help="Show the browser window",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    check_parser = subparsers.add_parser(
        "check", help="Check a single placement page."
    )
    check_parser.add_argument("url", help="Placement page URL")
    check_parser.add_argument(
        "--landing-page",
        "-l",
        help="URL the placement is expected to link to",
    )
    check_parser.add_argument(
        "--output",
        "-o",
        choices=["text", "json"],
        default="text",
        help="Output format (default: text)",
    )
    _add_scrape_arguments(check_parser)
    check_parser.set_defaults(func=check_command)

    file_parser = subparsers.add_parser(
        "scrape-file", help="Scrape targets listed in a JSON file."
    )
    file_parser.add_argument(
        "path", help="JSON list of {url, landing_page, id} records"
    )
    file_parser.add_argument(
        "--output-file",
        "-f",
        help="Write JSON results to file",
    )
    file_parser.add_argument("--concurrency", "-c", type=int, help="Concurrent workers")
    file_parser.add_argument("--delay", dest="delay_ms", type=int, help="Delay between requests (ms)")
    _add_scrape_arguments(file_parser)
    file_parser.set_defaults(func=scrape_file_command)

    run_parser = subparsers.add_parser(
        "run", help="Scrape all dashboard netlinks and upsert the outcomes."
    )
    run_parser.add_argument("--concurrency", "-c", type=int, help="Concurrent workers")
    run_parser.add_argument("--delay", dest="delay_ms", type=int, help="Delay between requests (ms)")
    run_parser.add_argument(
        "--batch-size",
        type=int,
        help="Listing pages per scrape batch",
    )
    run_parser.add_argument(
        "--no-skip-errors",
        action="store_true",
        help="Stop the batch on the first failed placement",
    )
    run_parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Scrape without posting results to the dashboard",
    )
    _add_scrape_arguments(run_parser)
    run_parser.set_defaults(func=run_command)

    args = parser.parse_args(argv)

    try:
        setup_logging(
            level=args.log_level or Config.from_env().log_level,
            log_file=getattr(args, 'log_file', None),
        )

        if hasattr(args, "func"):
            args.func(args)
        else:
            parser.print_help()
    except ConfigError as e:
        print(f"Configuration error: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
