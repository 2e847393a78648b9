"""
Public homepage route.
Aggregates hero images, featured galleries, recent posts, testimonials and site settings.
"""
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession
from typing import List
import logging

from app.database import get_db
from app.repositories.content import TestimonialRepository
from app.schemas import HomepageResponse, TestimonialResponse
from app.services.homepage_service import build_homepage

logger = logging.getLogger(__name__)

router = APIRouter(tags=["homepage"])


@router.get("/homepage", response_model=HomepageResponse)
async def get_homepage(db: AsyncSession = Depends(get_db)):
    """Homepage document; missing stats settings fall back to default values."""
    try:
        return await build_homepage(db)
    except Exception as e:
        logger.error(f"Homepage API error: {str(e)}", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail={"error": "Failed to fetch homepage data", "detail": str(e)}
        )


@router.get("/testimonials", response_model=List[TestimonialResponse])
async def list_public_testimonials(db: AsyncSession = Depends(get_db)):
    """Active testimonials, newest first."""
    return [
        TestimonialResponse.model_validate(t)
        for t in await TestimonialRepository(db).list_testimonials(active_only=True)
    ]
