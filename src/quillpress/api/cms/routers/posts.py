"""
Post Endpoints

Anonymous readers only ever see published posts. Authors create posts
and edit their own; editors and admins edit any post.
"""

import logging
from typing import List, Literal, Optional

from fastapi import APIRouter, Depends, Query, Request

from ....core.auth.permissions import Permission, can_delete_post, can_edit_post
from ....core.auth.session import AuthUser
from ....core.models import CategoryModel, Post, PostModel, PostQuery
from ...shared.dependencies import get_category_model, get_post_model
from ...shared.exceptions import ForbiddenError, NotFoundError, ValidationError
from ...shared.middleware.auth import get_current_user, require_auth, require_permission
from ...shared.responses import SuccessResponse, paginated
from ..schemas import PostCreate, PostStatus, PostUpdate

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/posts", tags=["posts"])

SortKey = Literal["created_at", "updated_at", "published_at", "title", "view_count"]


def _visible(post: Optional[Post], user: Optional[AuthUser]) -> bool:
    return post is not None and (post.status == "published" or user is not None)


async def _check_category(categories: CategoryModel, category_id: Optional[int]) -> None:
    if category_id is not None and await categories.get_by_id(category_id) is None:
        raise ValidationError(f"Category {category_id} does not exist")


async def _check_tags(posts: PostModel, tag_ids: Optional[List[int]]) -> None:
    missing = await posts.tags.missing_ids(tag_ids or [])
    if missing:
        raise ValidationError(f"Tags do not exist: {', '.join(str(tag_id) for tag_id in missing)}")


@router.get("")
async def list_posts(
    request: Request,
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    status: Optional[PostStatus] = None,
    category_id: Optional[int] = None,
    author_id: Optional[int] = None,
    tag_id: Optional[int] = None,
    search: Optional[str] = Query(None, max_length=200),
    sort: SortKey = "created_at",
    order: Literal["asc", "desc"] = "desc",
    posts: PostModel = Depends(get_post_model),
):
    """List posts with filtering, sorting and pagination."""
    if get_current_user(request) is None:
        status = "published"

    items, total = await posts.get_all(PostQuery(
        page=page,
        limit=limit,
        status=status,
        category_id=category_id,
        author_id=author_id,
        tag_id=tag_id,
        search=search,
        sort=sort,
        order=order,
    ))
    return paginated(items, total, page, limit)


@router.get("/stats")
async def post_stats(
    user: AuthUser = Depends(require_auth),
    posts: PostModel = Depends(get_post_model),
):
    return SuccessResponse.create(await posts.get_stats())


@router.get("/archive")
async def post_archive(posts: PostModel = Depends(get_post_model)):
    """Published post counts by year and month."""
    return SuccessResponse.create(await posts.get_archive())


@router.get("/featured")
async def featured_posts(
    limit: int = Query(5, ge=1, le=50),
    posts: PostModel = Depends(get_post_model),
):
    return SuccessResponse.create([post.to_dict() for post in await posts.get_featured(limit)])


@router.get("/search")
async def search_posts(
    q: str = Query(..., min_length=1, max_length=200),
    limit: int = Query(10, ge=1, le=50),
    posts: PostModel = Depends(get_post_model),
):
    return SuccessResponse.create([post.to_dict() for post in await posts.search(q, limit)])


@router.get("/slug/{slug}")
async def get_post_by_slug(
    request: Request,
    slug: str,
    posts: PostModel = Depends(get_post_model),
):
    """Get a post by slug; counts a view when the post is published."""
    post = await posts.get_by_slug(slug)
    if not _visible(post, get_current_user(request)):
        raise NotFoundError("Post", slug)

    if post.status == "published":
        await posts.increment_view_count(post.id)
        post.view_count += 1
    return SuccessResponse.create(post.to_dict())


@router.get("/{post_id}")
async def get_post(
    request: Request,
    post_id: int,
    posts: PostModel = Depends(get_post_model),
):
    post = await posts.get_by_id(post_id)
    if not _visible(post, get_current_user(request)):
        raise NotFoundError("Post", str(post_id))
    return SuccessResponse.create(post.to_dict())


@router.get("/{post_id}/related")
async def related_posts(
    post_id: int,
    limit: int = Query(3, ge=1, le=20),
    posts: PostModel = Depends(get_post_model),
):
    return SuccessResponse.create([post.to_dict() for post in await posts.get_related(post_id, limit)])


@router.post("", status_code=201)
async def create_post(
    body: PostCreate,
    user: AuthUser = Depends(require_permission(Permission.POSTS_WRITE)),
    posts: PostModel = Depends(get_post_model),
    categories: CategoryModel = Depends(get_category_model),
):
    """Create a post authored by the current user."""
    await _check_category(categories, body.category_id)
    await _check_tags(posts, body.tag_ids)

    post = await posts.create(author_id=user.id, **body.model_dump())
    return SuccessResponse.create(post.to_dict(), message="Post created successfully")


@router.put("/{post_id}")
async def update_post(
    post_id: int,
    body: PostUpdate,
    user: AuthUser = Depends(require_permission(Permission.POSTS_WRITE)),
    posts: PostModel = Depends(get_post_model),
    categories: CategoryModel = Depends(get_category_model),
):
    post = await posts.get_by_id(post_id)
    if post is None:
        raise NotFoundError("Post", str(post_id))
    if not can_edit_post(user, post):
        raise ForbiddenError("You can only edit your own posts")

    changes = body.model_dump(exclude_unset=True)
    await _check_category(categories, changes.get("category_id"))
    await _check_tags(posts, changes.get("tag_ids"))

    updated = await posts.update(post_id, changes)
    return SuccessResponse.create(updated.to_dict(), message="Post updated successfully")


@router.delete("/{post_id}")
async def delete_post(
    post_id: int,
    user: AuthUser = Depends(require_permission(Permission.POSTS_WRITE)),
    posts: PostModel = Depends(get_post_model),
):
    post = await posts.get_by_id(post_id)
    if post is None:
        raise NotFoundError("Post", str(post_id))
    if not can_delete_post(user, post):
        raise ForbiddenError("You can only delete your own posts")

    await posts.delete(post_id)
    return SuccessResponse.create({"id": post_id}, message="Post deleted successfully")


@router.delete("/{post_id}/tags/{tag_id}")
async def remove_post_tag(
    post_id: int,
    tag_id: int,
    user: AuthUser = Depends(require_permission(Permission.POSTS_WRITE)),
    posts: PostModel = Depends(get_post_model),
):
    """Detach one tag from a post, leaving the rest of its tags alone."""
    post = await posts.get_by_id(post_id)
    if post is None:
        raise NotFoundError("Post", str(post_id))
    if not can_edit_post(user, post):
        raise ForbiddenError("You can only edit your own posts")

    if not await posts.tags.remove_from_post(post_id, tag_id):
        raise NotFoundError("Tag", str(tag_id))
    logger.info(f"Removed tag {tag_id} from post {post_id}")
    return SuccessResponse.create({"post_id": post_id, "tag_id": tag_id}, message="Tag removed from post")
