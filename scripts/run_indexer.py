"""One-shot crawl cycle runner.

Crawls every registered retailer (or a subset), stores the results,
records price history and refreshes the live view.

Usage:
    python scripts/run_indexer.py
    python scripts/run_indexer.py --retailers calgary_shooting_centre prophet_river
    python scripts/run_indexer.py --exclude prophet_river
    python scripts/run_indexer.py --dry-run
"""

import argparse
import asyncio
import logging
import os
import sys

# Add backend to path so we can import app modules
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "backend"))

from app.config import settings
from app.core.enums import RetailerName
from app.db.session import build_engine, build_session_factory
from app.db.utils import create_tables
from app.scrapers.crawl_service import CrawlService, CycleReport
from app.scrapers.factory import AdapterFactory
from app.scrapers.register_adapters import register_all_adapters
from app.scrapers.transport import HttpTransport


async def run_indexer(
    retailers: list[RetailerName],
    excluded: list[RetailerName],
    dry_run: bool = False,
) -> CycleReport:
    """Run one crawl cycle and print a summary.

    Args:
        retailers: Only crawl these retailers (all when empty)
        excluded: Never crawl these retailers
        dry_run: Crawl without touching the database
    """
    engine = build_engine(settings.DATABASE_URL, echo=settings.DEBUG)
    session_factory = build_session_factory(engine)

    if not dry_run:
        await create_tables(engine)

    async with HttpTransport() as transport:
        factory = AdapterFactory(transport=transport)
        register_all_adapters(factory)

        service = CrawlService(session_factory, factory, dry_run=dry_run)
        report = await service.run_cycle(included=retailers, excluded=excluded)

    await engine.dispose()

    print(f"\n{'='*70}")
    print(f"  Crawl cycle {'(dry run) ' if dry_run else ''}complete")
    print(f"{'='*70}")
    for source in report.sources:
        status = "ok" if source.succeeded else f"FAILED: {source.error}"
        print(
            f"  {source.retailer.value:<32} {source.results:>6} results"
            f"  {source.duration_seconds:>8.1f}s  {status}"
        )
    print(f"{'-'*70}")
    print(f"  Total results:  {report.total_results}")
    if not dry_run:
        print(f"  Live view:      +{report.merged} merged, -{report.pruned} pruned")
    print(f"{'='*70}\n")

    return report


def _retailer(value: str) -> RetailerName:
    try:
        return RetailerName(value)
    except ValueError:
        choices = ", ".join(r.value for r in RetailerName)
        raise argparse.ArgumentTypeError(f"unknown retailer '{value}' (choose from {choices})")


def main():
    """Parse arguments and run one crawl cycle."""
    parser = argparse.ArgumentParser(
        description="Crawl retailers into the catalog",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python scripts/run_indexer.py
  python scripts/run_indexer.py --retailers prophet_river
  python scripts/run_indexer.py --exclude calgary_shooting_centre --dry-run
        """,
    )

    parser.add_argument(
        "--retailers",
        nargs="+",
        type=_retailer,
        default=[],
        help="Only crawl these retailers",
    )

    parser.add_argument(
        "--exclude",
        nargs="+",
        type=_retailer,
        default=[],
        help="Skip these retailers",
    )

    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Crawl and report without writing to the database",
    )

    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if settings.DEBUG else logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    report = asyncio.run(run_indexer(args.retailers, args.exclude, args.dry_run))
    sys.exit(1 if report.failed and len(report.failed) == len(report.sources) else 0)


if __name__ == "__main__":
    main()
