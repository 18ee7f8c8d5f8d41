"""Command-line interface for the catalog sync."""

import argparse
import json
import logging
import sys
from typing import List, Optional

from dotenv import load_dotenv

from woosync.client import CatalogClient
from woosync.config import Settings, load_settings
from woosync.db import CatalogStore
from woosync.errors import NotFoundError, SyncError
from woosync.logging_config import setup_logging
from woosync.service import CatalogService
from woosync.sync import SyncOrchestrator

__all__ = ["main", "parse_args", "run_sync", "show_stats"]


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Mirror the rental category of a WooCommerce catalog into SQLite",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Pull the rental catalog (credentials from .env)
  python -m woosync.cli --sync

  # Show store statistics and the last sync run
  python -m woosync.cli --stats

  # List canonical products of the "bicicletas" sub-category
  python -m woosync.cli --list --slug bicicletas

  # Show one product by WooCommerce id
  python -m woosync.cli --show 1234
        """,
    )

    action = parser.add_mutually_exclusive_group(required=True)
    action.add_argument("--sync", action="store_true", help="Run a full sync from the remote catalog")
    action.add_argument("--stats", action="store_true", help="Show database statistics and exit")
    action.add_argument("--list", action="store_true", help="Print canonical products as JSON")
    action.add_argument("--show", metavar="ID", help="Print one canonical product as JSON")
    action.add_argument("--init-db", action="store_true", help="Create the database schema and exit")

    parser.add_argument("--slug", help="Sub-category slug filter for --list")
    parser.add_argument("--status", help="Status filter for --list (e.g. publish)")
    parser.add_argument("--db", help="SQLite database path (default: CATALOG_DB_PATH or data/catalog.db)")
    parser.add_argument("--verbose", "-v", action="store_true", help="Debug logging")
    parser.add_argument("--no-log-file", action="store_true", help="Don't write the JSONL log file")

    return parser.parse_args(argv)


def run_sync(settings: Settings, store: CatalogStore) -> int:
    """Run one sync and print its summary. Returns the process exit code."""
    if not settings.has_credentials:
        print("Warning: WOOCOMMERCE_CONSUMER_KEY / WOOCOMMERCE_CONSUMER_SECRET not set", file=sys.stderr)

    client = CatalogClient.from_settings(settings)
    orchestrator = SyncOrchestrator.from_settings(settings, client, store)
    summary = orchestrator.run_sync()

    print(
        f"\nSync {summary.status}: {summary.synced} products synced, {summary.errors} errors, "
        f"{summary.fetched} products fetched ({summary.skipped} outside the rental category)"
    )
    if summary.failed:
        print(f"Error: {summary.error}", file=sys.stderr)
        return 1
    return 0


def show_stats(settings: Settings, store: CatalogStore) -> None:
    """Display database statistics."""
    store.ensure_schema()

    print(f"\n{'='*50}")
    print(f"Database: {store.db_path}")
    print(f"{'='*50}")

    print(f"\nTotal products: {store.count_products()}")
    print(f"Rental category ({settings.rental_category_id}): "
          f"{store.count_products(settings.rental_category_id)}")

    print("\nLast sync:")
    last = store.get_last_sync_run()
    if last:
        print(f"  {last['status']} at {last['finished_at'] or last['started_at']}: "
              f"{last['synced']} synced, {last['errors']} errors, {last['fetched']} fetched")
        if last.get("error"):
            print(f"  error: {last['error']}")
    else:
        print("  No sync history yet")
    print()


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for CLI."""
    load_dotenv()
    args = parse_args(argv)
    setup_logging(
        level=logging.DEBUG if args.verbose else logging.INFO,
        log_to_file=not args.no_log_file,
    )

    settings = load_settings()
    store = CatalogStore(args.db or settings.db_path)
    service = CatalogService.from_settings(settings, store)

    try:
        if args.init_db:
            store.ensure_schema()
            print(f"Initialized {store.db_path}")
            return 0

        if args.stats:
            show_stats(settings, store)
            return 0

        if args.list:
            store.ensure_schema()
            products = service.list_by_category(slug=args.slug, status=args.status)
            print(json.dumps(products, ensure_ascii=False, indent=2))
            return 0

        if args.show:
            store.ensure_schema()
            print(json.dumps(service.get_by_id_or_external_id(args.show), ensure_ascii=False, indent=2))
            return 0

        return run_sync(settings, store)

    except NotFoundError as e:
        print(str(e), file=sys.stderr)
        return 2
    except (SyncError, ValueError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
