"""
# Blog Taxonomy Routes

Categories and tags. Reads are public; authors and admins may create; only admins may rename or
delete. Deleting a category or tag leaves the posts that reference it untouched.

## API Endpoints

### Categories
- `GET /api/categories` / `POST /api/categories`
- `GET /api/categories/slug/{slug}`
- `GET|PUT|DELETE /api/categories/{category_id}`
- `GET /api/categories/{category_id}/posts` - Published posts in the category

### Tags
- `GET /api/tags` / `POST /api/tags`
- `GET /api/tags/slug/{slug}`
- `GET|PUT|DELETE /api/tags/{tag_id}`

Attributes:
    router (APIRouter): FastAPI router with `/api` prefix
"""

from fastapi import APIRouter, Depends, status

from luxeblog.exceptions import BlogError, ServerError
from luxeblog.managers.logging_manager import get_logger
from luxeblog.models.blog_models import (
    ApiResponse,
    CreateCategoryRequest,
    CreateTagRequest,
    Principal,
    UpdateCategoryRequest,
    UpdateTagRequest,
)
from luxeblog.routes.blog_dependencies import require_access_admin, require_access_author
from luxeblog.services.taxonomy_service import taxonomy_service

logger = get_logger(prefix="[Blog Taxonomy Routes]")

router = APIRouter(prefix="/api", tags=["taxonomy"])


# Category Routes

@router.get("/categories", response_model=ApiResponse, response_model_exclude_none=True)
async def list_categories():
    try:
        categories = await taxonomy_service.list_categories()
        return ApiResponse(count=len(categories), data=categories)

    except BlogError:
        raise
    except Exception as e:
        logger.error("Failed to list categories: %s", e, exc_info=True)
        raise ServerError("Failed to get categories")


@router.get("/categories/slug/{slug}", response_model=ApiResponse, response_model_exclude_none=True)
async def get_category_by_slug(slug: str):
    try:
        return ApiResponse(data=await taxonomy_service.get_category_by_slug(slug))

    except BlogError:
        raise
    except Exception as e:
        logger.error("Failed to get category by slug %s: %s", slug, e, exc_info=True)
        raise ServerError("Failed to get category")


@router.get("/categories/{category_id}", response_model=ApiResponse, response_model_exclude_none=True)
async def get_category(category_id: str):
    try:
        return ApiResponse(data=await taxonomy_service.get_category(category_id))

    except BlogError:
        raise
    except Exception as e:
        logger.error("Failed to get category %s: %s", category_id, e, exc_info=True)
        raise ServerError("Failed to get category")


@router.get("/categories/{category_id}/posts", response_model=ApiResponse, response_model_exclude_none=True)
async def get_category_posts(category_id: str):
    """Published posts filed under a category, newest first."""
    try:
        posts = await taxonomy_service.posts_in_category(category_id)
        return ApiResponse(count=len(posts), data=posts)

    except BlogError:
        raise
    except Exception as e:
        logger.error("Failed to get posts for category %s: %s", category_id, e, exc_info=True)
        raise ServerError("Failed to get posts")


@router.post(
    "/categories",
    response_model=ApiResponse,
    response_model_exclude_none=True,
    status_code=status.HTTP_201_CREATED,
)
async def create_category(request: CreateCategoryRequest, principal: Principal = Depends(require_access_author)):
    """
    Create a category explicitly.

    Raises:
        ConflictError(400): A category with the same name (ignoring case) exists.
    """
    try:
        category = await taxonomy_service.create_category(request, principal)
        logger.info("Created category %s by %s", category.category_id, principal.id)
        return ApiResponse(data=category)

    except BlogError:
        raise
    except Exception as e:
        logger.error("Failed to create category: %s", e, exc_info=True)
        raise ServerError("Failed to create category")


@router.put("/categories/{category_id}", response_model=ApiResponse, response_model_exclude_none=True)
async def update_category(
    category_id: str,
    request: UpdateCategoryRequest,
    principal: Principal = Depends(require_access_admin),
):
    try:
        return ApiResponse(data=await taxonomy_service.update_category(category_id, request, principal))

    except BlogError:
        raise
    except Exception as e:
        logger.error("Failed to update category %s: %s", category_id, e, exc_info=True)
        raise ServerError("Failed to update category")


@router.delete("/categories/{category_id}", response_model=ApiResponse, response_model_exclude_none=True)
async def delete_category(category_id: str, principal: Principal = Depends(require_access_admin)):
    try:
        await taxonomy_service.delete_category(category_id, principal)
        return ApiResponse(data={})

    except BlogError:
        raise
    except Exception as e:
        logger.error("Failed to delete category %s: %s", category_id, e, exc_info=True)
        raise ServerError("Failed to delete category")


# Tag Routes

@router.get("/tags", response_model=ApiResponse, response_model_exclude_none=True)
async def list_tags():
    try:
        tags = await taxonomy_service.list_tags()
        return ApiResponse(count=len(tags), data=tags)

    except BlogError:
        raise
    except Exception as e:
        logger.error("Failed to list tags: %s", e, exc_info=True)
        raise ServerError("Failed to get tags")


@router.get("/tags/slug/{slug}", response_model=ApiResponse, response_model_exclude_none=True)
async def get_tag_by_slug(slug: str):
    try:
        return ApiResponse(data=await taxonomy_service.get_tag_by_slug(slug))

    except BlogError:
        raise
    except Exception as e:
        logger.error("Failed to get tag by slug %s: %s", slug, e, exc_info=True)
        raise ServerError("Failed to get tag")


@router.get("/tags/{tag_id}", response_model=ApiResponse, response_model_exclude_none=True)
async def get_tag(tag_id: str):
    try:
        return ApiResponse(data=await taxonomy_service.get_tag(tag_id))

    except BlogError:
        raise
    except Exception as e:
        logger.error("Failed to get tag %s: %s", tag_id, e, exc_info=True)
        raise ServerError("Failed to get tag")


@router.post(
    "/tags",
    response_model=ApiResponse,
    response_model_exclude_none=True,
    status_code=status.HTTP_201_CREATED,
)
async def create_tag(request: CreateTagRequest, principal: Principal = Depends(require_access_author)):
    try:
        tag = await taxonomy_service.create_tag(request, principal)
        logger.info("Created tag %s by %s", tag.tag_id, principal.id)
        return ApiResponse(data=tag)

    except BlogError:
        raise
    except Exception as e:
        logger.error("Failed to create tag: %s", e, exc_info=True)
        raise ServerError("Failed to create tag")


@router.put("/tags/{tag_id}", response_model=ApiResponse, response_model_exclude_none=True)
async def update_tag(tag_id: str, request: UpdateTagRequest, principal: Principal = Depends(require_access_admin)):
    try:
        return ApiResponse(data=await taxonomy_service.update_tag(tag_id, request, principal))

    except BlogError:
        raise
    except Exception as e:
        logger.error("Failed to update tag %s: %s", tag_id, e, exc_info=True)
        raise ServerError("Failed to update tag")


@router.delete("/tags/{tag_id}", response_model=ApiResponse, response_model_exclude_none=True)
async def delete_tag(tag_id: str, principal: Principal = Depends(require_access_admin)):
    try:
        await taxonomy_service.delete_tag(tag_id, principal)
        return ApiResponse(data={})

    except BlogError:
        raise
    except Exception as e:
        logger.error("Failed to delete tag %s: %s", tag_id, e, exc_info=True)
        raise ServerError("Failed to delete tag")
