"""
Admin dashboard and analytics routes.
"""
from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_db
from app.models import BlogPost, Image, Testimonial
from app.repositories.catalog import CatalogRepository
from app.repositories.content import BlogRepository, TestimonialRepository
from app.schemas import AnalyticsResponse, DashboardResponse, DashboardStats, ImageResponse
from app.services.analytics_service import AnalyticsProvider, build_analytics_report, get_analytics_provider
from app.utils.jwt_auth import require_admin

router = APIRouter(prefix="/cms", tags=["CMS"], dependencies=[Depends(require_admin)])

RECENT_IMAGE_LIMIT = 5


@router.get("/dashboard", response_model=DashboardResponse)
async def get_dashboard(db: AsyncSession = Depends(get_db)):
    """Catalog and content counts plus the most recent uploads."""
    catalog = CatalogRepository(db)
    blog = BlogRepository(db)

    stats = DashboardStats(
        total_photos=await catalog.count(),
        active_photos=await catalog.count(Image.is_active.is_(True)),
        featured_photos=await catalog.count(Image.is_featured.is_(True)),
        total_albums=await catalog.count_albums(),
        blog_posts=await blog.count(),
        published_posts=await blog.count(BlogPost.is_published.is_(True)),
        testimonials=await TestimonialRepository(db).count(Testimonial.is_active.is_(True)),
    )
    recent = await catalog.recent_images(RECENT_IMAGE_LIMIT)
    return DashboardResponse(stats=stats, recent_images=[ImageResponse.model_validate(img) for img in recent])


@router.get("/analytics", response_model=AnalyticsResponse)
async def get_analytics(provider: AnalyticsProvider = Depends(get_analytics_provider)):
    return await build_analytics_report(provider)
