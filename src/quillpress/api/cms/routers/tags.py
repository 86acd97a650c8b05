"""
Tag Endpoints
"""

from fastapi import APIRouter, Depends, Query

from ....core.auth.permissions import Permission
from ....core.auth.session import AuthUser
from ....core.models import TagModel, slugify
from ...shared.dependencies import get_tag_model
from ...shared.exceptions import NotFoundError, ValidationError
from ...shared.middleware.auth import require_permission
from ...shared.responses import SuccessResponse, paginated
from ..schemas import TagCreate, TagUpdate

router = APIRouter(prefix="/api/tags", tags=["tags"])


@router.get("")
async def list_tags(
    page: int = Query(1, ge=1),
    limit: int = Query(100, ge=1, le=500),
    tags: TagModel = Depends(get_tag_model),
):
    items, total = await tags.get_all(page, limit)
    return paginated(items, total, page, limit)


@router.get("/popular")
async def popular_tags(
    limit: int = Query(20, ge=1, le=100),
    tags: TagModel = Depends(get_tag_model),
):
    return SuccessResponse.create([tag.to_dict() for tag in await tags.get_popular(limit)])


@router.get("/search")
async def search_tags(
    q: str = Query(..., min_length=1, max_length=50),
    limit: int = Query(10, ge=1, le=50),
    tags: TagModel = Depends(get_tag_model),
):
    return SuccessResponse.create([tag.to_dict() for tag in await tags.search(q, limit)])


@router.get("/unused")
async def unused_tags(
    user: AuthUser = Depends(require_permission(Permission.TAGS_WRITE)),
    tags: TagModel = Depends(get_tag_model),
):
    return SuccessResponse.create([tag.to_dict() for tag in await tags.get_unused()])


@router.delete("/unused")
async def delete_unused_tags(
    user: AuthUser = Depends(require_permission(Permission.TAGS_WRITE)),
    tags: TagModel = Depends(get_tag_model),
):
    deleted = await tags.delete_unused()
    return SuccessResponse.create({"deleted": deleted}, message=f"Deleted {deleted} unused tag(s)")


@router.get("/slug/{slug}")
async def get_tag_by_slug(slug: str, tags: TagModel = Depends(get_tag_model)):
    tag = await tags.get_by_slug(slug)
    if tag is None:
        raise NotFoundError("Tag", slug)
    return SuccessResponse.create(tag.to_dict())


@router.get("/{tag_id}")
async def get_tag(tag_id: int, tags: TagModel = Depends(get_tag_model)):
    tag = await tags.get_by_id(tag_id)
    if tag is None:
        raise NotFoundError("Tag", str(tag_id))
    return SuccessResponse.create(tag.to_dict())


@router.post("", status_code=201)
async def create_tag(
    body: TagCreate,
    user: AuthUser = Depends(require_permission(Permission.TAGS_WRITE)),
    tags: TagModel = Depends(get_tag_model),
):
    """Create a tag, or return the existing one with the same slug."""
    if body.slug:
        tag = await tags.create(body.name, slugify(body.slug) or None)
    else:
        tag = await tags.find_or_create(body.name)
    return SuccessResponse.create(tag.to_dict(), message="Tag saved successfully")


@router.put("/{tag_id}")
async def update_tag(
    tag_id: int,
    body: TagUpdate,
    user: AuthUser = Depends(require_permission(Permission.TAGS_WRITE)),
    tags: TagModel = Depends(get_tag_model),
):
    tag = await tags.get_by_id(tag_id)
    if tag is None:
        raise NotFoundError("Tag", str(tag_id))

    name = body.name or tag.name
    slug = tag.slug
    if body.slug is not None:
        base = slugify(body.slug)
        if not base:
            raise ValidationError("Slug must contain letters or digits")
        slug = await tags.ensure_unique_slug(base, exclude_id=tag_id)

    updated = await tags.update(tag_id, name, slug)
    return SuccessResponse.create(updated.to_dict(), message="Tag updated successfully")


@router.delete("/{tag_id}")
async def delete_tag(
    tag_id: int,
    user: AuthUser = Depends(require_permission(Permission.TAGS_WRITE)),
    tags: TagModel = Depends(get_tag_model),
):
    if not await tags.delete(tag_id):
        raise NotFoundError("Tag", str(tag_id))
    return SuccessResponse.create({"id": tag_id}, message="Tag deleted successfully")
