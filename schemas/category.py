from pydantic import BaseModel, Field, validator
from typing import Optional, List
from datetime import datetime
from urllib.parse import urlparse
import re
from models.category import Category

SLUG_PATTERN = re.compile(r'^[a-z0-9]+(?:-[a-z0-9]+)*$')


def normalize_slug(value: str) -> str:
    return value.strip().lower()


def _check_name(v):
    if v is None:
        raise ValueError('Name cannot be null')
    v = v.strip()
    if len(v) < 2:
        raise ValueError('Name must be at least 2 characters')
    if len(v) > 100:
        raise ValueError('Name must be less than 100 characters')
    return v


def _check_slug(v):
    if v is None:
        raise ValueError('Slug cannot be null')
    v = normalize_slug(v)
    if len(v) < 2:
        raise ValueError('Slug must be at least 2 characters')
    if len(v) > 100:
        raise ValueError('Slug must be less than 100 characters')
    if not SLUG_PATTERN.match(v):
        raise ValueError('Slug must be URL-friendly (lowercase, numbers, hyphens)')
    return v


def _check_description(v):
    if v is None:
        return v
    v = v.strip()
    if len(v) > 500:
        raise ValueError('Description must be less than 500 characters')
    return v


def _check_image_url(v):
    # An empty string clears the image
    if v is None or not v.strip():
        return None
    v = v.strip()
    parsed = urlparse(v)
    if parsed.scheme not in ('http', 'https') or not parsed.netloc:
        raise ValueError('Invalid URL format')
    return v


def _check_parent_id(v):
    if v is None:
        return v
    v = v.strip()
    return v or None


class CategoryCreate(BaseModel):
    name: str = Field(..., description="Display name, 2-100 characters")
    slug: str = Field(..., description="URL-safe unique identifier")
    description: Optional[str] = Field(None, description="Optional description, up to 500 characters")
    parent_id: Optional[str] = Field(None, description="Parent category id, null for a root category")
    image_url: Optional[str] = Field(None, description="Optional image URL")
    is_active: bool = Field(default=True, description="Whether the category is active")

    check_name = validator('name', allow_reuse=True)(_check_name)
    check_slug = validator('slug', allow_reuse=True)(_check_slug)
    check_description = validator('description', allow_reuse=True)(_check_description)
    check_image_url = validator('image_url', allow_reuse=True)(_check_image_url)
    check_parent_id = validator('parent_id', allow_reuse=True)(_check_parent_id)


class CategoryUpdate(BaseModel):
    """Partial update; only fields present in the request body are applied."""
    name: Optional[str] = None
    slug: Optional[str] = None
    description: Optional[str] = None
    parent_id: Optional[str] = None
    image_url: Optional[str] = None
    is_active: Optional[bool] = None

    check_name = validator('name', allow_reuse=True)(_check_name)
    check_slug = validator('slug', allow_reuse=True)(_check_slug)
    check_description = validator('description', allow_reuse=True)(_check_description)
    check_image_url = validator('image_url', allow_reuse=True)(_check_image_url)
    check_parent_id = validator('parent_id', allow_reuse=True)(_check_parent_id)

    @validator('is_active')
    def validate_is_active(cls, v):
        if v is None:
            raise ValueError('is_active cannot be null')
        return v


class CategoryResponse(BaseModel):
    id: str
    name: str
    slug: str
    description: Optional[str] = None
    parent_id: Optional[str] = None
    image_url: Optional[str] = None
    is_active: bool
    created_at: datetime
    updated_at: Optional[datetime] = None


class CategoryTreeNode(CategoryResponse):
    children: List["CategoryTreeNode"] = Field(default_factory=list)


CategoryTreeNode.update_forward_refs()


def to_category_response(category: Category) -> CategoryResponse:
    """Project a stored category onto its public response shape."""
    return CategoryResponse(
        id=category.id,
        name=category.name,
        slug=category.slug,
        description=category.description,
        parent_id=category.parent_id,
        image_url=category.image_url,
        is_active=category.is_active,
        created_at=category.created_at,
        updated_at=category.updated_at,
    )
