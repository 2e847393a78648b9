"""
Pydantic schemas for request and response data validation.
Defines data structures for API endpoints with automatic validation and serialization.
JSON keys are camelCase on the wire; snake_case names are accepted on input too.
"""
from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel
from datetime import datetime
from typing import Dict, List, Literal, Optional, Union


class CamelModel(BaseModel):
    model_config = ConfigDict(
        from_attributes=True,  # Enable conversion from SQLAlchemy models
        alias_generator=to_camel,
        populate_by_name=True,
    )


# --- Images -----------------------------------------------------------------

class AlbumSummary(CamelModel):
    id: str
    title: str
    category: str


class ImageResponse(CamelModel):
    """
    Full image row as returned to the admin gallery manager.
    Used by GET /api/images and PATCH /api/images/{id}.
    """
    id: str
    title: Optional[str] = None
    description: Optional[str] = None
    url: str
    cloudinary_id: Optional[str] = None
    width: int
    height: int
    size: int
    format: Optional[str] = None
    is_active: bool
    is_featured: bool
    order: int
    tags: List[str] = []
    album_id: Optional[str] = None
    album: Optional[AlbumSummary] = None
    created_at: datetime
    updated_at: datetime


class ImageListResponse(CamelModel):
    images: List[ImageResponse]


class ImageEnvelope(CamelModel):
    image: ImageResponse


class ImageUpdate(CamelModel):
    """
    Partial update for an image. Only the fields present in the body change.
    Used by PATCH /api/images/{id}.
    """
    model_config = ConfigDict(extra="forbid")

    title: Optional[str] = None
    description: Optional[str] = None
    url: Optional[str] = None
    cloudinary_id: Optional[str] = None
    width: Optional[int] = None
    height: Optional[int] = None
    size: Optional[int] = None
    format: Optional[str] = None
    is_active: Optional[bool] = None
    is_featured: Optional[bool] = None
    order: Optional[int] = None
    tags: Optional[List[str]] = None
    album_id: Optional[str] = None

    @field_validator("url", "width", "height", "size", "is_active", "is_featured", "order", "tags")
    @classmethod
    def reject_null(cls, v):
        if v is None:
            raise ValueError("must not be null")
        return v


class ImageSummary(CamelModel):
    """Created-image summary embedded in an upload result entry."""
    id: str
    title: Optional[str] = None
    url: str
    width: int
    height: int
    is_featured: bool


class UploadSuccess(CamelModel):
    success: Literal[True] = True
    image: ImageSummary


class UploadFailure(CamelModel):
    success: Literal[False] = False
    filename: str
    error: str


UploadResult = Union[UploadSuccess, UploadFailure]


class UploadBatchResponse(CamelModel):
    """
    Response for POST /api/images/upload.
    Always returned with HTTP 200; callers inspect `results` per file.
    """
    message: str
    results: List[UploadResult]


# --- Public gallery ---------------------------------------------------------

class GalleryImagePublicResponse(CamelModel):
    """
    Optimized response schema for public gallery API.
    Excludes admin-only fields not needed by the frontend.
    """
    id: str
    url: str
    title: Optional[str] = None
    description: Optional[str] = None
    width: int
    height: int
    order: int


class PaginationMetadata(CamelModel):
    """
    Pagination metadata for cursor-based pagination.
    """
    next_cursor: Optional[int] = None
    has_more: bool
    total_count: int


class GalleryImagesPageResponse(CamelModel):
    """
    Paginated response for gallery images.
    """
    images: List[GalleryImagePublicResponse]
    pagination: PaginationMetadata


# --- Albums -----------------------------------------------------------------

class AlbumCreate(CamelModel):
    title: str = Field(min_length=1)
    description: Optional[str] = None
    category: str = "OTHER"
    is_active: bool = True
    is_featured: bool = False
    order: int = 0


class AlbumUpdate(CamelModel):
    model_config = ConfigDict(extra="forbid")

    title: Optional[str] = None
    description: Optional[str] = None
    category: Optional[str] = None
    is_active: Optional[bool] = None
    is_featured: Optional[bool] = None
    order: Optional[int] = None


class AlbumResponse(CamelModel):
    id: str
    title: str
    description: Optional[str] = None
    category: str
    is_active: bool
    is_featured: bool
    order: int
    author_id: Optional[str] = None
    image_count: int = 0
    created_at: datetime
    updated_at: datetime


class AlbumDetailResponse(AlbumResponse):
    images: List[GalleryImagePublicResponse] = []


# --- Blog -------------------------------------------------------------------

class AuthorSummary(CamelModel):
    name: Optional[str] = None


class BlogCategoryCreate(CamelModel):
    name: str = Field(min_length=1)
    slug: str = Field(min_length=1)
    color: Optional[str] = None


class BlogCategoryResponse(CamelModel):
    id: str
    name: str
    slug: str
    color: Optional[str] = None


BlogStatus = Literal["DRAFT", "PUBLISHED", "ARCHIVED"]


class BlogPostCreate(CamelModel):
    title: str = Field(min_length=1)
    slug: str = Field(min_length=1)
    excerpt: Optional[str] = None
    content: str = ""
    cover_image_url: Optional[str] = None
    status: BlogStatus = "DRAFT"
    category_id: Optional[str] = None


class BlogPostUpdate(CamelModel):
    model_config = ConfigDict(extra="forbid")

    title: Optional[str] = None
    slug: Optional[str] = None
    excerpt: Optional[str] = None
    content: Optional[str] = None
    cover_image_url: Optional[str] = None
    status: Optional[BlogStatus] = None
    category_id: Optional[str] = None


class BlogPostResponse(CamelModel):
    id: str
    title: str
    slug: str
    excerpt: Optional[str] = None
    content: str
    cover_image_url: Optional[str] = None
    status: str
    is_published: bool
    published_at: Optional[datetime] = None
    author: Optional[AuthorSummary] = None
    category: Optional[BlogCategoryResponse] = None
    created_at: datetime
    updated_at: datetime


class RecentPostResponse(CamelModel):
    id: str
    title: str
    slug: str
    excerpt: Optional[str] = None
    cover_image_url: Optional[str] = None
    published_at: Optional[datetime] = None
    author: Optional[AuthorSummary] = None
    category: Optional[BlogCategoryResponse] = None


# --- Testimonials -----------------------------------------------------------

class TestimonialCreate(CamelModel):
    client_name: str = Field(min_length=1)
    content: str = Field(min_length=1)
    rating: Optional[int] = Field(default=None, ge=1, le=5)
    avatar_url: Optional[str] = None
    is_active: bool = True
    is_featured: bool = False


class TestimonialUpdate(CamelModel):
    model_config = ConfigDict(extra="forbid")

    client_name: Optional[str] = None
    content: Optional[str] = None
    rating: Optional[int] = Field(default=None, ge=1, le=5)
    avatar_url: Optional[str] = None
    is_active: Optional[bool] = None
    is_featured: Optional[bool] = None


class TestimonialResponse(CamelModel):
    id: str
    client_name: str
    content: str
    rating: Optional[int] = None
    avatar_url: Optional[str] = None
    is_active: bool
    is_featured: bool
    created_at: datetime


# --- Settings ---------------------------------------------------------------

class SettingResponse(CamelModel):
    key: str
    value: str
    updated_at: datetime


# --- Homepage ---------------------------------------------------------------

class FeaturedAlbumResponse(CamelModel):
    id: str
    title: str
    description: Optional[str] = None
    category: str
    order: int
    images: List[GalleryImagePublicResponse] = []


class HomepageStats(CamelModel):
    photos_taken: str
    happy_clients: str
    years_experience: str
    awards_won: str


class HomepageResponse(CamelModel):
    hero_images: List[GalleryImagePublicResponse]
    featured_galleries: List[FeaturedAlbumResponse]
    recent_posts: List[RecentPostResponse]
    testimonials: List[TestimonialResponse]
    settings: Dict[str, str]
    stats: HomepageStats


# --- Users & auth -----------------------------------------------------------

UserRole = Literal["ADMIN", "EDITOR"]


def _normalize_email(value: Optional[str]) -> Optional[str]:
    if value is None:
        return value
    value = value.strip().lower()
    if "@" not in value:
        raise ValueError("Invalid email address")
    return value


class LoginRequest(CamelModel):
    email: str
    password: str

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v):
        return _normalize_email(v)


class UserResponse(CamelModel):
    id: str
    email: str
    name: Optional[str] = None
    role: str
    created_at: datetime


class LoginResponse(CamelModel):
    access_token: str
    token_type: str = "bearer"
    expires_in: int
    user: UserResponse


class UserCreate(CamelModel):
    email: str
    password: str = Field(min_length=8)
    name: Optional[str] = None
    role: UserRole = "EDITOR"

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v):
        return _normalize_email(v)


class UserUpdate(CamelModel):
    model_config = ConfigDict(extra="forbid")

    email: Optional[str] = None
    password: Optional[str] = Field(default=None, min_length=8)
    name: Optional[str] = None
    role: Optional[UserRole] = None

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v):
        return _normalize_email(v)


# --- Dashboard & analytics --------------------------------------------------

class DashboardStats(CamelModel):
    total_photos: int
    active_photos: int
    featured_photos: int
    total_albums: int
    blog_posts: int
    published_posts: int
    testimonials: int


class DashboardResponse(CamelModel):
    stats: DashboardStats
    recent_images: List[ImageResponse]


class OverviewStat(CamelModel):
    title: str
    value: str
    change: str
    trend: Literal["up", "down"]


class TopPage(CamelModel):
    page: str
    views: int
    percentage: int


class DeviceShare(CamelModel):
    device: str
    percentage: int


class CountryShare(CamelModel):
    country: str
    visitors: int
    percentage: int


class AnalyticsResponse(CamelModel):
    overview: List[OverviewStat]
    top_pages: List[TopPage]
    devices: List[DeviceShare]
    countries: List[CountryShare]


# --- Maintenance ------------------------------------------------------------

class ReconciliationReport(CamelModel):
    """Result of one orphaned-asset sweep."""
    dry_run: bool
    scanned: int
    orphans: List[str]
    deleted: List[str]
    failed: List[str]
    skipped_recent: List[str] = []
