"""Command line entry point for harvesting catalog links."""

import argparse
import logging
import sys
from typing import Optional

from pydantic import ValidationError

from .config import DEFAULT_PAGE_COUNT, DEFAULT_RETRY_BUDGET, HarvestConfig, default_workers
from .fetcher import DEFAULT_TIMEOUT, PageFetcher
from .pipeline import HarvestPipeline
from .report import display_summary
from .request_builder import DEFAULT_BASE_URL
from .storage import save_failure_summary, save_links

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Fetch catalog search pages and collect the book links they list"
    )
    parser.add_argument(
        "--pages",
        type=int,
        default=DEFAULT_PAGE_COUNT,
        help=f"Number of search result pages to fetch (default: {DEFAULT_PAGE_COUNT})"
    )
    parser.add_argument(
        "--workers",
        type=int,
        default=default_workers(),
        help="Number of concurrent fetch workers (default: CPU count)"
    )
    parser.add_argument(
        "--retries",
        type=int,
        default=DEFAULT_RETRY_BUDGET,
        help=f"Failed attempts allowed per page (default: {DEFAULT_RETRY_BUDGET})"
    )
    parser.add_argument(
        "--timeout",
        type=float,
        default=DEFAULT_TIMEOUT,
        help=f"Per-request timeout in seconds (default: {DEFAULT_TIMEOUT:g})"
    )
    parser.add_argument(
        "--base-url",
        default=DEFAULT_BASE_URL,
        help="Search endpoint URL"
    )
    parser.add_argument(
        "--category",
        default="title",
        help="Search category to page through"
    )
    parser.add_argument(
        "--output",
        default="output.txt",
        help="File to write collected links to"
    )
    parser.add_argument(
        "--errors",
        default="errors.json",
        help="File to write the failure summary to"
    )
    parser.add_argument(
        "--sort",
        action="store_true",
        help="Sort links before writing them"
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Enable debug logging"
    )
    return parser


def parse_config(argv: Optional[list[str]] = None) -> tuple[HarvestConfig, argparse.Namespace]:
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        config = HarvestConfig(
            page_count=args.pages,
            workers=args.workers,
            retry_budget=args.retries,
            timeout=args.timeout,
            base_url=args.base_url,
            search_category=args.category,
            output_path=args.output,
            errors_path=args.errors,
            sort_links=args.sort,
        )
    except ValidationError as e:
        parser.error(str(e))

    return config, args


def main(argv: Optional[list[str]] = None) -> int:
    """Main entry point for the harvester."""
    config, args = parse_config(argv)

    if args.verbose:
        logging.getLogger().setLevel(logging.DEBUG)

    logger.info(
        f"Harvesting {config.page_count} pages from {config.base_url} "
        f"with {config.workers} workers"
    )

    with PageFetcher(timeout=config.timeout) as fetcher:
        pipeline = HarvestPipeline.from_config(config, fetcher)
        result = pipeline.run()

    logger.info("Writing to disk")
    try:
        save_links(result.links, config.output_path, sort=config.sort_links)
        if result.failure_summary:
            save_failure_summary(result.failure_summary, config.errors_path)
    except OSError as e:
        logger.error(f"Failed to write results: {e}")
        return 1

    display_summary(result)
    logger.info("Done")
    return 0


if __name__ == "__main__":
    sys.exit(main())
