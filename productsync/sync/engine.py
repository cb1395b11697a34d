"""
Product sync runner.

Fetches the current state of each target product, computes the update
actions and posts them. One product's failure never blocks the others.
"""

import logging
import time
from collections.abc import Iterable, Mapping
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Any, Optional

from ..client.client import ProductAPIError, ProductClient
from .actions import Action
from .products import ProductSync

logger = logging.getLogger(__name__)


class SyncStatus(Enum):
    """Outcome of synchronizing one product."""

    # Actions were applied
    UPDATED = auto()

    # Target and current agree
    UNCHANGED = auto()

    # Product no longer exists remotely - nothing to sync
    GONE = auto()

    # Dry run - actions computed but not applied
    WOULD_UPDATE = auto()


@dataclass
class SyncOutcome:
    """Result of synchronizing one product."""
    product_id: str
    status: SyncStatus
    actions: list[Action] = field(default_factory=list)
    conflicts: int = 0


@dataclass
class SyncStats:
    """Statistics from a sync run."""
    total_products: int = 0
    updated: int = 0
    unchanged: int = 0
    gone: int = 0
    dry_run: int = 0
    actions: int = 0
    conflicts: int = 0
    errors: int = 0

    def __str__(self) -> str:
        return (
            f"Sync complete: {self.total_products} products, "
            f"{self.updated} updated ({self.actions} actions), "
            f"{self.unchanged} unchanged, {self.gone} gone, "
            f"{self.dry_run} dry-run, {self.conflicts} conflicts retried, "
            f"{self.errors} errors"
        )


@dataclass
class SyncError:
    """Represents an error during sync."""
    product_id: Optional[str]
    error_type: str
    message: str
    status_code: Optional[int] = None


class SyncEngine:
    """
    Synchronizes target product representations with the remote API.

    Policy per product:
    - 404 (product deleted remotely) -> nothing to sync, no retry
    - 409 (version conflict) -> refetch, recompute actions, retry
    - anything else -> recorded as an error, other products continue

    Usage:
        engine = SyncEngine(client=client, max_workers=4)
        stats = engine.sync(targets)
        print(stats)
    """

    def __init__(
        self,
        client: ProductClient,
        product_sync: Optional[ProductSync] = None,
        dry_run: bool = False,
        max_retries: int = 3,
        retry_delay: float = 1.0,
        max_workers: int = 1,
    ):
        """
        Initialize sync engine.

        Args:
            client: Authenticated product API client
            product_sync: Action builder (defaults to all groups enabled)
            dry_run: If True, compute actions but don't apply them
            max_retries: Maximum refetch-and-retry rounds on version conflicts
            retry_delay: Base delay between conflict retries in seconds
            max_workers: Number of products processed concurrently
        """
        self.client = client
        self.product_sync = product_sync or ProductSync()
        self.dry_run = dry_run
        self.max_retries = max_retries
        self.retry_delay = retry_delay
        self.max_workers = max(1, max_workers)

        self._errors: list[SyncError] = []
        self._outcomes: list[SyncOutcome] = []

    def sync(self, targets: Iterable[Mapping[str, Any]]) -> SyncStats:
        """
        Synchronize every target product.

        Args:
            targets: Target representations, each carrying the product ``id``

        Returns:
            SyncStats with counts of all outcomes
        """
        targets = list(targets)
        stats = SyncStats(total_products=len(targets))
        self._errors = []
        self._outcomes = []

        if self.dry_run:
            logger.info("DRY RUN MODE - No changes will be made")

        logger.info(f"Starting sync of {len(targets)} products...")

        if self.max_workers == 1:
            results = [self._safe_process(target) for target in targets]
        else:
            with ThreadPoolExecutor(max_workers=self.max_workers) as pool:
                results = list(pool.map(self._safe_process, targets))

        for result in results:
            if isinstance(result, SyncError):
                stats.errors += 1
                self._errors.append(result)
            else:
                self._outcomes.append(result)
                self._update_stats(stats, result)

        logger.info(str(stats))

        if self._errors:
            logger.warning(f"Sync completed with {len(self._errors)} errors")
            for error in self._errors:
                logger.warning(f"  - {error.product_id}: {error.message}")

        return stats

    def _safe_process(self, target: Mapping[str, Any]) -> "SyncOutcome | SyncError":
        """Process one product, turning any failure into a SyncError."""
        product_id = target.get("id")
        try:
            return self.process_product(target)
        except ProductAPIError as e:
            logger.error(f"API error syncing product {product_id}: {e}")
            return SyncError(
                product_id=product_id,
                error_type=type(e).__name__,
                message=str(e),
                status_code=e.status_code,
            )
        except Exception as e:
            logger.error(f"Error syncing product {product_id}: {e}", exc_info=True)
            return SyncError(
                product_id=product_id,
                error_type=type(e).__name__,
                message=str(e),
            )

    def process_product(self, target: Mapping[str, Any]) -> SyncOutcome:
        """
        Synchronize a single product.

        Args:
            target: Target representation carrying the product ``id``

        Returns:
            SyncOutcome describing what was done

        Raises:
            ValueError: If the target has no id
            ProductAPIError: On any API failure other than 404, or when
                version conflicts persist after ``max_retries`` retries
        """
        product_id = target.get("id")
        if not product_id:
            raise ValueError("Target product has no 'id'")

        conflicts = 0

        while True:
            try:
                current = self.client.fetch_by_id(product_id)
            except ProductAPIError as e:
                if e.is_not_found:
                    logger.info(f"Product {product_id} no longer exists, skipping")
                    return SyncOutcome(product_id, SyncStatus.GONE, conflicts=conflicts)
                raise

            actions = self.product_sync.build_actions(target, current)

            if not actions:
                logger.debug(f"No changes for product {product_id}")
                return SyncOutcome(product_id, SyncStatus.UNCHANGED, conflicts=conflicts)

            logger.info(
                f"Changes detected for product {product_id}: "
                f"{[a.name for a in actions]}"
            )

            if self.dry_run:
                logger.info(f"DRY RUN: Would apply {len(actions)} action(s)")
                return SyncOutcome(
                    product_id, SyncStatus.WOULD_UPDATE, actions, conflicts=conflicts
                )

            try:
                self.client.update(product_id, actions, version=current.get("version"))
                return SyncOutcome(product_id, SyncStatus.UPDATED, actions, conflicts=conflicts)
            except ProductAPIError as e:
                if e.is_not_found:
                    logger.info(f"Product {product_id} was deleted during sync, skipping")
                    return SyncOutcome(product_id, SyncStatus.GONE, conflicts=conflicts)
                if not e.is_conflict or conflicts >= self.max_retries:
                    raise

                conflicts += 1
                delay = self.retry_delay * (2 ** (conflicts - 1))  # Exponential backoff
                logger.warning(
                    f"Version conflict on product {product_id} "
                    f"(retry {conflicts}/{self.max_retries}). "
                    f"Refetching in {delay}s..."
                )
                time.sleep(delay)

    def _update_stats(self, stats: SyncStats, outcome: SyncOutcome) -> None:
        """Update stats based on a product outcome."""
        stats.conflicts += outcome.conflicts
        if outcome.status == SyncStatus.UPDATED:
            stats.updated += 1
            stats.actions += len(outcome.actions)
        elif outcome.status == SyncStatus.UNCHANGED:
            stats.unchanged += 1
        elif outcome.status == SyncStatus.GONE:
            stats.gone += 1
        elif outcome.status == SyncStatus.WOULD_UPDATE:
            stats.dry_run += 1

    @property
    def errors(self) -> list[SyncError]:
        """Get list of errors from last sync."""
        return self._errors.copy()

    @property
    def outcomes(self) -> list[SyncOutcome]:
        """Get per-product outcomes from last sync, in target order."""
        return self._outcomes.copy()
