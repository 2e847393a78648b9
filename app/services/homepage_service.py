"""
Homepage aggregation: assembles the public landing-page document from the
catalog, blog, testimonials and site settings.
"""
from sqlalchemy.ext.asyncio import AsyncSession

from app.repositories.catalog import CatalogRepository
from app.repositories.content import BlogRepository, SettingRepository, TestimonialRepository
from app.schemas import (
    FeaturedAlbumResponse,
    GalleryImagePublicResponse,
    HomepageResponse,
    HomepageStats,
    RecentPostResponse,
    TestimonialResponse,
)

HOMEPAGE_SETTING_KEYS = (
    "site_title",
    "site_description",
    "hero_title",
    "hero_subtitle",
    "contact_email",
    "contact_phone",
    "social_instagram",
    "social_facebook",
    "stats_photos_taken",
    "stats_happy_clients",
    "stats_years_experience",
    "stats_awards_won",
)

STATS_DEFAULTS = {
    "stats_photos_taken": "10K+",
    "stats_happy_clients": "500+",
    "stats_years_experience": "5+",
    "stats_awards_won": "25+",
}

HERO_IMAGE_LIMIT = 5
FEATURED_ALBUM_LIMIT = 6
RECENT_POST_LIMIT = 3
TESTIMONIAL_LIMIT = 6


def build_stats(site_settings: dict[str, str]) -> HomepageStats:
    """Stats block; each value falls back to its default when the setting is absent or empty."""
    def value(key: str) -> str:
        return site_settings.get(key) or STATS_DEFAULTS[key]

    return HomepageStats(
        photos_taken=value("stats_photos_taken"),
        happy_clients=value("stats_happy_clients"),
        years_experience=value("stats_years_experience"),
        awards_won=value("stats_awards_won"),
    )


async def build_homepage(db: AsyncSession) -> HomepageResponse:
    catalog = CatalogRepository(db)

    featured_galleries = []
    for album in await catalog.featured_albums(FEATURED_ALBUM_LIMIT):
        cover = await catalog.first_active_image(album.id)
        featured_galleries.append(
            FeaturedAlbumResponse(
                id=album.id,
                title=album.title,
                description=album.description,
                category=album.category,
                order=album.order,
                images=[GalleryImagePublicResponse.model_validate(cover)] if cover else [],
            )
        )

    hero_images = [
        GalleryImagePublicResponse.model_validate(image)
        for image in await catalog.featured_images(HERO_IMAGE_LIMIT)
    ]
    recent_posts = [
        RecentPostResponse.model_validate(post)
        for post in await BlogRepository(db).list_published(RECENT_POST_LIMIT)
    ]
    testimonials = [
        TestimonialResponse.model_validate(testimonial)
        for testimonial in await TestimonialRepository(db).featured(TESTIMONIAL_LIMIT)
    ]
    site_settings = await SettingRepository(db).get_values(HOMEPAGE_SETTING_KEYS)

    return HomepageResponse(
        hero_images=hero_images,
        featured_galleries=featured_galleries,
        recent_posts=recent_posts,
        testimonials=testimonials,
        settings=site_settings,
        stats=build_stats(site_settings),
    )
