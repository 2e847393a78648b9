"""
CMS API routes for the admin back-office.
Albums (gallery manager), site settings, testimonials and asset maintenance.
All endpoints require an admin session.
"""
from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession
from typing import Dict, List
import logging

from app.database import get_db
from app.models import Testimonial
from app.repositories.catalog import CatalogRepository
from app.repositories.content import SettingRepository, TestimonialRepository
from app.schemas import (
    AlbumCreate,
    AlbumResponse,
    AlbumUpdate,
    ReconciliationReport,
    SettingResponse,
    TestimonialCreate,
    TestimonialResponse,
    TestimonialUpdate,
)
from app.services.reconciliation_service import reconcile_orphaned_assets
from app.utils.jwt_auth import require_admin

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/cms", tags=["CMS"], dependencies=[Depends(require_admin)])


def _not_found(kind: str, key: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_404_NOT_FOUND,
        detail={"error": f"{kind} not found", "detail": f"{kind} {key} does not exist"}
    )


# Albums

@router.get("/albums", response_model=List[AlbumResponse])
async def list_albums(db: AsyncSession = Depends(get_db)):
    """All albums, inactive included, with image counts."""
    catalog = CatalogRepository(db)
    counts = await catalog.album_image_counts()
    return [
        AlbumResponse.model_validate(album).model_copy(update={"image_count": counts.get(album.id, 0)})
        for album in await catalog.list_albums()
    ]


@router.post("/albums", response_model=AlbumResponse, status_code=status.HTTP_201_CREATED)
async def create_album(
    album_in: AlbumCreate,
    session: dict = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    album = await CatalogRepository(db).create_album(author_id=session.get("sub"), **album_in.model_dump())
    logger.info(f"Created album {album.id} ({album.title})")
    return AlbumResponse.model_validate(album)


@router.patch("/albums/{album_id}", response_model=AlbumResponse)
async def update_album(album_id: str, album_update: AlbumUpdate, db: AsyncSession = Depends(get_db)):
    catalog = CatalogRepository(db)
    album = await catalog.get_album(album_id)
    if album is None:
        raise _not_found("Album", album_id)

    album = await catalog.update_album(album, album_update.model_dump(exclude_unset=True))
    counts = await catalog.album_image_counts()
    return AlbumResponse.model_validate(album).model_copy(update={"image_count": counts.get(album_id, 0)})


@router.delete("/albums/{album_id}")
async def delete_album(album_id: str, db: AsyncSession = Depends(get_db)):
    """Delete an album. Its images stay in the catalog without an album."""
    catalog = CatalogRepository(db)
    album = await catalog.get_album(album_id)
    if album is None:
        raise _not_found("Album", album_id)

    detached = await catalog.delete_album(album)
    logger.info(f"Deleted album {album_id}, detached {detached} image(s)")
    return {"message": "Album deleted successfully", "albumId": album_id, "detachedImages": detached}


# Site settings

@router.get("/settings", response_model=List[SettingResponse])
async def list_settings(db: AsyncSession = Depends(get_db)):
    return [SettingResponse.model_validate(s) for s in await SettingRepository(db).list_settings()]


@router.put("/settings", response_model=List[SettingResponse])
async def upsert_settings(values: Dict[str, str], db: AsyncSession = Depends(get_db)):
    """Create or replace the given key/value pairs; other settings are untouched."""
    if not values:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail={"error": "No settings provided", "detail": "At least one key is required"}
        )
    settings_list = await SettingRepository(db).upsert_many(values)
    logger.info(f"Updated settings: {sorted(values)}")
    return [SettingResponse.model_validate(s) for s in settings_list]


@router.delete("/settings/{key}")
async def delete_setting(key: str, db: AsyncSession = Depends(get_db)):
    repo = SettingRepository(db)
    setting = await repo.get_by_id(key)
    if setting is None:
        raise _not_found("Setting", key)
    await repo.delete(setting)
    return {"message": "Setting deleted successfully", "key": key}


# Testimonials

@router.get("/testimonials", response_model=List[TestimonialResponse])
async def list_testimonials(db: AsyncSession = Depends(get_db)):
    return [TestimonialResponse.model_validate(t) for t in await TestimonialRepository(db).list_testimonials()]


@router.post("/testimonials", response_model=TestimonialResponse, status_code=status.HTTP_201_CREATED)
async def create_testimonial(testimonial_in: TestimonialCreate, db: AsyncSession = Depends(get_db)):
    testimonial = await TestimonialRepository(db).create(Testimonial(**testimonial_in.model_dump()))
    return TestimonialResponse.model_validate(testimonial)


@router.patch("/testimonials/{testimonial_id}", response_model=TestimonialResponse)
async def update_testimonial(
    testimonial_id: str,
    testimonial_update: TestimonialUpdate,
    db: AsyncSession = Depends(get_db),
):
    repo = TestimonialRepository(db)
    testimonial = await repo.get_by_id(testimonial_id)
    if testimonial is None:
        raise _not_found("Testimonial", testimonial_id)
    testimonial = await repo.update(testimonial, testimonial_update.model_dump(exclude_unset=True))
    return TestimonialResponse.model_validate(testimonial)


@router.delete("/testimonials/{testimonial_id}")
async def delete_testimonial(testimonial_id: str, db: AsyncSession = Depends(get_db)):
    repo = TestimonialRepository(db)
    testimonial = await repo.get_by_id(testimonial_id)
    if testimonial is None:
        raise _not_found("Testimonial", testimonial_id)
    await repo.delete(testimonial)
    return {"message": "Testimonial deleted successfully", "testimonialId": testimonial_id}


# Maintenance

@router.post("/maintenance/reconcile-assets", response_model=ReconciliationReport)
async def reconcile_assets(dry_run: bool = Query(True, alias="dryRun"), db: AsyncSession = Depends(get_db)):
    """
    Find Cloudinary assets no image references and delete them.
    Reports only, without deleting, unless `dryRun=false`.

    Raises:
        HTTPException: 502 if the asset store cannot be listed
    """
    try:
        return await reconcile_orphaned_assets(CatalogRepository(db), dry_run=dry_run)
    except Exception as e:
        logger.error(f"Asset reconciliation failed: {str(e)}", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail={"error": "Asset reconciliation failed", "detail": str(e)}
        )
