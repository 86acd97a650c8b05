"""
Category Endpoints
"""

from typing import Literal, Optional

from fastapi import APIRouter, Depends, Query

from ....core.auth.permissions import Permission
from ....core.auth.session import AuthUser
from ....core.models import CategoryModel, CategoryQuery
from ...shared.dependencies import get_category_model
from ...shared.exceptions import NotFoundError, ValidationError
from ...shared.middleware.auth import require_permission
from ...shared.responses import SuccessResponse, paginated
from ..schemas import CategoryCreate, CategoryReorder, CategoryUpdate

router = APIRouter(prefix="/api/categories", tags=["categories"])

writer = require_permission(Permission.CATEGORIES_WRITE)


@router.get("")
async def list_categories(
    page: int = Query(1, ge=1),
    limit: int = Query(100, ge=1, le=500),
    parent_id: Optional[int] = None,
    root_only: bool = False,
    sort: Literal["sort_order", "name", "created_at", "post_count"] = "sort_order",
    order: Literal["asc", "desc"] = "asc",
    categories: CategoryModel = Depends(get_category_model),
):
    items, total = await categories.get_all(CategoryQuery(
        page=page,
        limit=limit,
        parent_id=parent_id,
        root_only=root_only,
        sort=sort,
        order=order,
    ))
    return paginated(items, total, page, limit)


@router.get("/tree")
async def category_tree(categories: CategoryModel = Depends(get_category_model)):
    return SuccessResponse.create([category.to_dict() for category in await categories.get_tree()])


@router.get("/with-counts")
async def categories_with_counts(categories: CategoryModel = Depends(get_category_model)):
    return SuccessResponse.create([c.to_dict() for c in await categories.get_with_post_count()])


@router.get("/slug/{slug}")
async def get_category_by_slug(slug: str, categories: CategoryModel = Depends(get_category_model)):
    category = await categories.get_by_slug(slug)
    if category is None:
        raise NotFoundError("Category", slug)
    return SuccessResponse.create(category.to_dict())


@router.get("/{category_id}")
async def get_category(category_id: int, categories: CategoryModel = Depends(get_category_model)):
    category = await categories.get_by_id(category_id)
    if category is None:
        raise NotFoundError("Category", str(category_id))
    return SuccessResponse.create(category.to_dict())


@router.get("/{category_id}/children")
async def category_children(category_id: int, categories: CategoryModel = Depends(get_category_model)):
    return SuccessResponse.create([c.to_dict() for c in await categories.get_children(category_id)])


@router.post("", status_code=201)
async def create_category(
    body: CategoryCreate,
    user: AuthUser = Depends(writer),
    categories: CategoryModel = Depends(get_category_model),
):
    if body.parent_id is not None and await categories.get_by_id(body.parent_id) is None:
        raise ValidationError(f"Parent category {body.parent_id} does not exist")

    category = await categories.create(**body.model_dump())
    return SuccessResponse.create(category.to_dict(), message="Category created successfully")


@router.post("/reorder")
async def reorder_categories(
    body: CategoryReorder,
    user: AuthUser = Depends(writer),
    categories: CategoryModel = Depends(get_category_model),
):
    await categories.reorder([(entry.id, entry.sort_order) for entry in body.orders])
    return SuccessResponse.create(None, message="Categories reordered")


@router.put("/{category_id}")
async def update_category(
    category_id: int,
    body: CategoryUpdate,
    user: AuthUser = Depends(writer),
    categories: CategoryModel = Depends(get_category_model),
):
    if await categories.get_by_id(category_id) is None:
        raise NotFoundError("Category", str(category_id))

    changes = body.model_dump(exclude_unset=True)
    if changes.get("parent_id") == category_id:
        raise ValidationError("A category cannot be its own parent")

    category = await categories.update(category_id, changes)
    return SuccessResponse.create(category.to_dict(), message="Category updated successfully")


@router.delete("/{category_id}")
async def delete_category(
    category_id: int,
    user: AuthUser = Depends(writer),
    categories: CategoryModel = Depends(get_category_model),
):
    """Delete a category; its posts become uncategorised and its children top-level."""
    if not await categories.delete(category_id):
        raise NotFoundError("Category", str(category_id))
    return SuccessResponse.create({"id": category_id}, message="Category deleted successfully")
