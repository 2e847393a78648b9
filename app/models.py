"""
SQLAlchemy models for the application.
All database models inherit from Base (declarative base).
"""
import uuid

from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Integer, JSON, String, Text
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from app.database import Base


def _new_id() -> str:
    return str(uuid.uuid4())


class User(Base):
    """
    Back-office account.
    Email is the natural key and is stored lower-cased.
    """
    __tablename__ = "users"

    id = Column(String(36), primary_key=True, default=_new_id)
    email = Column(String(255), nullable=False, unique=True, index=True)
    name = Column(String(255), nullable=True)
    password_hash = Column(String(255), nullable=False)
    role = Column(String(20), nullable=False, default="EDITOR")
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)


class Album(Base):
    """
    Named, ordered collection of images (shown as a "Gallery" on the site).
    """
    __tablename__ = "albums"

    id = Column(String(36), primary_key=True, default=_new_id)
    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    category = Column(String(50), nullable=False, default="OTHER")
    is_active = Column(Boolean, nullable=False, default=True)
    is_featured = Column(Boolean, nullable=False, default=False)
    order = Column(Integer, nullable=False, default=0, index=True)
    author_id = Column(String(36), ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    author = relationship("User")
    images = relationship("Image", back_populates="album", passive_deletes=True)


class Image(Base):
    """
    Image model.
    Stores image metadata including the Cloudinary URL and public id.
    An image belongs to at most one album.
    """
    __tablename__ = "images"

    id = Column(String(36), primary_key=True, default=_new_id)
    title = Column(String(255), nullable=True)
    description = Column(Text, nullable=True)
    url = Column(String, nullable=False)
    cloudinary_id = Column(String(255), nullable=True, index=True)
    width = Column(Integer, nullable=False, default=0)
    height = Column(Integer, nullable=False, default=0)
    size = Column(Integer, nullable=False, default=0)
    format = Column(String(20), nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)
    is_featured = Column(Boolean, nullable=False, default=False, index=True)
    order = Column(Integer, nullable=False, default=0, index=True)
    tags = Column(JSON, nullable=False, default=list)
    album_id = Column(String(36), ForeignKey("albums.id", ondelete="SET NULL"), nullable=True, index=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    album = relationship("Album", back_populates="images")


class Sequence(Base):
    """Named counters allocated with a single atomic UPDATE ... RETURNING."""
    __tablename__ = "sequences"

    name = Column(String(50), primary_key=True)
    value = Column(Integer, nullable=False, default=0)


class BlogCategory(Base):
    __tablename__ = "blog_categories"

    id = Column(String(36), primary_key=True, default=_new_id)
    name = Column(String(100), nullable=False)
    slug = Column(String(120), nullable=False, unique=True, index=True)
    color = Column(String(20), nullable=True)


class BlogPost(Base):
    """
    Blog post.
    `is_published` mirrors `status == "PUBLISHED"`; `published_at` is stamped
    the first time a post is published.
    """
    __tablename__ = "blog_posts"

    id = Column(String(36), primary_key=True, default=_new_id)
    title = Column(String(255), nullable=False)
    slug = Column(String(255), nullable=False, unique=True, index=True)
    excerpt = Column(Text, nullable=True)
    content = Column(Text, nullable=False, default="")
    cover_image_url = Column(String, nullable=True)
    status = Column(String(20), nullable=False, default="DRAFT")
    is_published = Column(Boolean, nullable=False, default=False)
    published_at = Column(DateTime(timezone=True), nullable=True, index=True)
    author_id = Column(String(36), ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    category_id = Column(String(36), ForeignKey("blog_categories.id", ondelete="SET NULL"), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    author = relationship("User")
    category = relationship("BlogCategory")


class Testimonial(Base):
    __tablename__ = "testimonials"

    id = Column(String(36), primary_key=True, default=_new_id)
    client_name = Column(String(255), nullable=False)
    content = Column(Text, nullable=False)
    rating = Column(Integer, nullable=True)
    avatar_url = Column(String, nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)
    is_featured = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)


class Setting(Base):
    """Site text and configuration stored as key/value pairs."""
    __tablename__ = "settings"

    key = Column(String(100), primary_key=True)
    value = Column(Text, nullable=False, default="")
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)
