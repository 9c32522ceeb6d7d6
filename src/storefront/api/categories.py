"""FastAPI endpoints for categories: public browsing and admin management."""

import json

from fastapi import APIRouter, Depends
from protean.exceptions import ObjectNotFoundError
from protean.utils.globals import current_domain

from storefront.api.schemas import CreateCategoryRequest, UpdateCategoryRequest
from storefront.catalogue.category.category import Category
from storefront.catalogue.category.management import (
    CreateCategory,
    DeleteCategory,
    RecordCategoryView,
    UpdateCategory,
)
from storefront.catalogue.category.queries import (
    DEFAULT_PAGE_SIZE,
    FEATURED_LIMIT,
    featured_categories,
    homepage_categories,
    list_categories,
)
from storefront.identity.principal import MANAGE_PRODUCTS, Admin, require_permission

category_router = APIRouter(prefix="/categories", tags=["categories"])
admin_category_router = APIRouter(prefix="/admin/categories", tags=["admin-categories"])

_manage_products = require_permission(MANAGE_PRODUCTS)


# --- Public ---


@category_router.get("")
async def browse_categories(
    featured: bool | None = None,
    parent_id: str | None = None,
    search: str | None = None,
    sort: str = "sort_order",
    page: int = 1,
    limit: int = DEFAULT_PAGE_SIZE,
):
    data = list_categories(
        status="active",
        featured=featured,
        parent_id=parent_id,
        search=search,
        sort=sort,
        page=page,
        limit=limit,
    )
    return {"success": True, "data": data}


@category_router.get("/featured")
async def featured(limit: int = FEATURED_LIMIT):
    return {"success": True, "data": featured_categories(limit=limit)}


@category_router.get("/homepage")
async def homepage():
    return {"success": True, "data": homepage_categories()}


@category_router.get("/{category_id}")
async def get_category(category_id: str):
    category = current_domain.repository_for(Category).get(category_id)
    if not category.is_active:
        raise ObjectNotFoundError({"category": ["Category not found"]})
    current_domain.process(RecordCategoryView(category_id=category_id), asynchronous=False)
    return {"success": True, "data": category.to_view()}


# --- Admin ---


@admin_category_router.get("")
async def admin_list_categories(
    status: str | None = None,
    featured: bool | None = None,
    search: str | None = None,
    sort: str = "-created_at",
    page: int = 1,
    limit: int = DEFAULT_PAGE_SIZE,
    admin: Admin = Depends(_manage_products),
):
    data = list_categories(status=status, featured=featured, search=search, sort=sort, page=page, limit=limit)
    return {"success": True, "data": data}


@admin_category_router.get("/{category_id}")
async def admin_get_category(category_id: str, admin: Admin = Depends(_manage_products)):
    return {"success": True, "data": current_domain.repository_for(Category).get(category_id).to_view()}


@admin_category_router.post("", status_code=201)
async def create_category(body: CreateCategoryRequest, admin: Admin = Depends(_manage_products)):
    image = body.image
    category_id = current_domain.process(
        CreateCategory(
            name=body.name,
            description=body.description,
            parent_id=body.parent_id,
            sort_order=body.sort_order,
            status=body.status,
            is_featured=body.is_featured,
            show_on_homepage=body.show_on_homepage,
            image_filename=image.filename if image else None,
            image_content=image.content if image else None,
            image_alt=image.alt_text if image else None,
            admin_id=admin.admin_id,
        ),
        asynchronous=False,
    )
    category = current_domain.repository_for(Category).get(category_id)
    return {"success": True, "message": "Category created successfully", "data": category.to_view()}


@admin_category_router.patch("/{category_id}")
async def update_category(category_id: str, body: UpdateCategoryRequest, admin: Admin = Depends(_manage_products)):
    image = body.image
    changes = body.model_dump(exclude_none=True, exclude={"image", "delete_image"})
    current_domain.process(
        UpdateCategory(
            category_id=category_id,
            changes=json.dumps(changes),
            image_filename=image.filename if image else None,
            image_content=image.content if image else None,
            image_alt=image.alt_text if image else None,
            delete_image=body.delete_image,
            admin_id=admin.admin_id,
        ),
        asynchronous=False,
    )
    category = current_domain.repository_for(Category).get(category_id)
    return {"success": True, "message": "Category updated successfully", "data": category.to_view()}


@admin_category_router.delete("/{category_id}")
async def delete_category(category_id: str, permanent: bool = False, admin: Admin = Depends(_manage_products)):
    current_domain.process(
        DeleteCategory(category_id=category_id, permanent=permanent, admin_id=admin.admin_id),
        asynchronous=False,
    )
    message = "Category permanently deleted" if permanent else "Category deactivated"
    return {"success": True, "message": message}
