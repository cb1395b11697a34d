#!/usr/bin/env python3
"""
Product Sync - Main Entry Point

Synchronizes local product representations with a remote product API by
computing and applying minimal update actions.

Usage:
    python -m productsync.main --input products.json                # Full sync
    python -m productsync.main --input products.json --dry-run      # Preview changes
    python -m productsync.main --input target.json --current current.json
                                                                    # Offline diff

Environment Variables Required (online mode):
    PRODUCTSYNC_PROJECT_KEY     - Project the products belong to
    PRODUCTSYNC_CLIENT_ID       - OAuth client id
    PRODUCTSYNC_CLIENT_SECRET   - OAuth client secret
    PRODUCTSYNC_API_URL         - Product API URL (HTTPS)
    PRODUCTSYNC_AUTH_URL        - OAuth server URL (HTTPS)
"""

import argparse
import json
import logging
import sys
from pathlib import Path

from config.settings import ConfigurationError, load_settings
from productsync.client import ProductAPIError, ProductClient
from productsync.sync.products import ProductSync, actions_by_group
from productsync.sync.engine import SyncEngine


def setup_logging(verbose: bool = False) -> None:
    """
    Configure logging for the application.

    Logs go to stderr so that action output on stdout stays parseable.

    Args:
        verbose: If True, enable DEBUG level logging
    """
    level = logging.DEBUG if verbose else logging.INFO

    logging.basicConfig(
        level=level,
        format="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        handlers=[
            logging.StreamHandler(sys.stderr),
        ],
    )

    # Reduce noise from external libraries
    logging.getLogger("urllib3").setLevel(logging.WARNING)
    logging.getLogger("requests").setLevel(logging.WARNING)


def parse_args(argv=None) -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        description="Sync local product data to a remote product API",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
    python -m productsync.main --input products.json              # Full sync
    python -m productsync.main --input products.json --dry-run    # Preview changes
    python -m productsync.main --input a.json --current b.json    # Offline diff
    python -m productsync.main --input products.json --env .env.local
        """,
    )

    parser.add_argument(
        "--input",
        type=Path,
        required=True,
        help="JSON file with one target product or a list of them",
    )

    parser.add_argument(
        "--current",
        type=Path,
        help="JSON file with the current product; diff offline and print actions",
    )

    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Preview changes without making any modifications",
    )

    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Enable verbose/debug logging",
    )

    parser.add_argument(
        "--env",
        type=Path,
        help="Path to .env file (default: .env in current directory)",
    )

    return parser.parse_args(argv)


def load_products(path: Path) -> list[dict]:
    """
    Load product representations from a JSON file.

    Args:
        path: File holding a single product object or a list of them

    Returns:
        List of product representations

    Raises:
        ValueError: If the file does not hold objects or holds none
    """
    with open(path, encoding="utf-8") as f:
        data = json.load(f)

    if isinstance(data, dict):
        return [data]
    if isinstance(data, list) and all(isinstance(item, dict) for item in data):
        if not data:
            raise ValueError(f"{path} contains no products")
        return data
    raise ValueError(f"{path} must contain a product object or a list of objects")


def run_offline_diff(product_sync: ProductSync, target_path: Path, current_path: Path) -> int:
    """
    Diff two product files and print the resulting actions as JSON.

    Returns:
        Exit code
    """
    logger = logging.getLogger(__name__)

    target = load_products(target_path)[0]
    current = load_products(current_path)[0]

    actions = product_sync.build_actions(target, current)

    for group, group_actions in actions_by_group(actions).items():
        logger.info(f"{group.value}: {len(group_actions)} action(s)")

    print(json.dumps([action.to_dict() for action in actions], indent=2, ensure_ascii=False))
    return 0


def main(argv=None) -> int:
    """
    Main entry point.

    Returns:
        Exit code (0 for success, 1 for error)
    """
    args = parse_args(argv)
    setup_logging(verbose=args.verbose)

    logger = logging.getLogger(__name__)

    offline = args.current is not None

    try:
        settings = load_settings(env_file=args.env, offline=offline)
    except ConfigurationError as e:
        logger.error(f"Configuration error: {e}")
        logger.error("Please check your .env file or environment variables")
        return 1

    if not args.verbose:
        logging.getLogger().setLevel(settings.log_level)

    product_sync = ProductSync(ignored_groups=settings.sync.ignored_groups)

    if offline:
        try:
            return run_offline_diff(product_sync, args.input, args.current)
        except (OSError, ValueError) as e:
            logger.error(f"Could not diff products: {e}")
            return 1

    try:
        targets = load_products(args.input)
    except (OSError, ValueError) as e:
        logger.error(f"Could not read products: {e}")
        return 1

    logger.info("Product Sync")
    logger.info("=" * 50)

    client = None

    try:
        logger.info("Initializing product client...")
        client = ProductClient(
            api_url=settings.api.api_url,
            auth_url=settings.api.auth_url,
            project_key=settings.api.project_key,
            client_id=settings.api.client_id,
            client_secret=settings.api.client_secret,
            scope=settings.api.scope,
            max_retries=settings.sync.max_retries,
        )
        client.authenticate()

        engine = SyncEngine(
            client=client,
            product_sync=product_sync,
            dry_run=args.dry_run or settings.sync.dry_run,
            max_retries=settings.sync.max_retries,
            retry_delay=settings.sync.retry_delay_seconds,
            max_workers=settings.sync.max_workers,
        )

        stats = engine.sync(targets)

        logger.info("=" * 50)
        logger.info("Sync Summary")
        logger.info("=" * 50)
        logger.info(f"Products processed:    {stats.total_products}")
        logger.info(f"Updated:               {stats.updated}")
        logger.info(f"Actions applied:       {stats.actions}")
        logger.info(f"Unchanged:             {stats.unchanged}")
        logger.info(f"Gone (deleted):        {stats.gone}")
        logger.info(f"Dry run:               {stats.dry_run}")
        logger.info(f"Conflicts retried:     {stats.conflicts}")
        logger.info(f"Errors:                {stats.errors}")
        logger.info("=" * 50)

        if stats.errors > 0:
            logger.warning("Some errors occurred during sync. Check logs above.")
            return 1

        logger.info("Sync completed successfully!")
        return 0

    except ProductAPIError as e:
        logger.error(f"Product API error: {e}")
        return 1
    except KeyboardInterrupt:
        logger.info("Sync interrupted by user")
        return 130
    except Exception as e:
        logger.error(f"Unexpected error: {e}", exc_info=True)
        return 1
    finally:
        if client:
            client.close()


if __name__ == "__main__":
    sys.exit(main())
