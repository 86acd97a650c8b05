"""
Request Bodies

Pydantic models for the CMS endpoints. Update bodies are partial: only
fields the client actually sent (model_dump(exclude_unset=True)) are
written.
"""

from datetime import datetime
from typing import Any, List, Literal, Optional

from pydantic import BaseModel, EmailStr, Field

PostStatus = Literal["draft", "published", "archived"]
Role = Literal["admin", "editor", "author"]
SettingType = Literal["string", "number", "boolean", "json"]


class PostCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=255)
    content: str = Field(..., min_length=1)
    slug: Optional[str] = Field(None, max_length=255)
    excerpt: Optional[str] = None
    status: PostStatus = "draft"
    featured_image: Optional[str] = Field(None, max_length=500)
    category_id: Optional[int] = None
    published_at: Optional[datetime] = None
    seo_title: Optional[str] = Field(None, max_length=255)
    seo_description: Optional[str] = None
    tag_ids: List[int] = Field(default_factory=list)


class PostUpdate(BaseModel):
    title: Optional[str] = Field(None, min_length=1, max_length=255)
    content: Optional[str] = Field(None, min_length=1)
    slug: Optional[str] = Field(None, max_length=255)
    excerpt: Optional[str] = None
    status: Optional[PostStatus] = None
    featured_image: Optional[str] = Field(None, max_length=500)
    category_id: Optional[int] = None
    published_at: Optional[datetime] = None
    seo_title: Optional[str] = Field(None, max_length=255)
    seo_description: Optional[str] = None
    tag_ids: Optional[List[int]] = None


class CategoryCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    slug: Optional[str] = Field(None, max_length=100)
    description: Optional[str] = None
    color: Optional[str] = Field(None, pattern=r"^#[0-9a-fA-F]{6}$")
    parent_id: Optional[int] = None
    sort_order: int = 0


class CategoryUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    slug: Optional[str] = Field(None, max_length=100)
    description: Optional[str] = None
    color: Optional[str] = Field(None, pattern=r"^#[0-9a-fA-F]{6}$")
    parent_id: Optional[int] = None
    sort_order: Optional[int] = None


class CategoryOrder(BaseModel):
    id: int
    sort_order: int


class CategoryReorder(BaseModel):
    orders: List[CategoryOrder]


class TagCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=50)
    slug: Optional[str] = Field(None, max_length=50)


class TagUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=50)
    slug: Optional[str] = Field(None, max_length=50)


class UserCreate(BaseModel):
    email: EmailStr
    name: str = Field(..., min_length=1, max_length=255)
    password: str = Field(..., min_length=8)
    role: Role = "author"
    avatar_url: Optional[str] = Field(None, max_length=500)


class UserUpdate(BaseModel):
    email: Optional[EmailStr] = None
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    password: Optional[str] = Field(None, min_length=8)
    role: Optional[Role] = None
    avatar_url: Optional[str] = Field(None, max_length=500)
    is_active: Optional[bool] = None


class SettingWrite(BaseModel):
    value: Any = None
    type: SettingType = "string"
    description: Optional[str] = None


class SettingBackupEntry(BaseModel):
    key: str = Field(..., min_length=1, max_length=100)
    value: Optional[str] = None
    type: SettingType = "string"
    description: Optional[str] = None


class SetupRequest(BaseModel):
    action: Literal["setup", "reset"] = "setup"
