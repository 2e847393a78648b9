"""
Orphaned-asset reconciliation.

Finds Cloudinary assets under the upload folder that no image row
references and deletes them. Creating an image stores the asset before the
row, so a crash or failed save between the two leaves such an orphan.
Assets younger than RECONCILE_MIN_AGE_SECONDS are left alone: their upload
may not have committed its row yet.
"""
from datetime import datetime, timedelta, timezone
from typing import Optional
import logging

from app.config import settings
from app.repositories.catalog import CatalogRepository
from app.schemas import ReconciliationReport
from app.services import cloudinary_service

logger = logging.getLogger(__name__)


def _parse_created_at(value) -> Optional[datetime]:
    if isinstance(value, datetime):
        created = value
    elif value:
        try:
            created = datetime.fromisoformat(str(value).replace("Z", "+00:00"))
        except ValueError:
            return None
    else:
        return None
    if created.tzinfo is None:
        created = created.replace(tzinfo=timezone.utc)
    return created


def is_recent(created_at, now: datetime, min_age_seconds: float) -> bool:
    """
    True when an asset may still belong to an upload in flight.
    A missing or unparseable timestamp counts as recent.
    """
    created = _parse_created_at(created_at)
    if created is None:
        return True
    return now - created < timedelta(seconds=min_age_seconds)


async def reconcile_orphaned_assets(
    catalog: CatalogRepository,
    dry_run: bool = True,
    min_age_seconds: Optional[float] = None,
) -> ReconciliationReport:
    """
    Sweep the asset store for unreferenced images.

    Args:
        catalog: Catalog repository used to read referenced storage ids
        dry_run: When True, report orphans without deleting them
        min_age_seconds: Grace window for fresh assets (default: RECONCILE_MIN_AGE_SECONDS)

    Returns:
        ReconciliationReport: scanned count, orphans found, deleted, failed and skipped ids
    """
    if min_age_seconds is None:
        min_age_seconds = settings.RECONCILE_MIN_AGE_SECONDS

    stored = await cloudinary_service.list_assets()
    referenced_ids = await catalog.list_cloudinary_ids()
    now = datetime.now(timezone.utc)

    orphans, skipped_recent = [], []
    for asset in stored:
        public_id = asset["public_id"]
        if public_id in referenced_ids:
            continue
        if is_recent(asset.get("created_at"), now, min_age_seconds):
            skipped_recent.append(public_id)
        else:
            orphans.append(public_id)

    logger.info(
        f"Reconciliation scanned {len(stored)} assets, {len(orphans)} orphaned, "
        f"{len(skipped_recent)} too recent to judge (dry_run={dry_run})"
    )

    deleted, failed = [], []
    if not dry_run:
        for public_id in orphans:
            try:
                await cloudinary_service.delete_image(public_id)
                deleted.append(public_id)
            except Exception as e:
                logger.error(f"Failed to delete orphaned asset {public_id}: {str(e)}", exc_info=True)
                failed.append(public_id)

    return ReconciliationReport(
        dry_run=dry_run,
        scanned=len(stored),
        orphans=orphans,
        deleted=deleted,
        failed=failed,
        skipped_recent=skipped_recent,
    )
