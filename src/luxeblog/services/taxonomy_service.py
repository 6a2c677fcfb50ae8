"""
# Taxonomy Service

This module resolves free-text **category and tag labels** to stored entities and provides the
explicit category/tag management operations.

## Find-or-Create

A post may name its category (and tags) either by id or by label. `resolve_category(label)`:

1.  Trims the label; an empty label, or one longer than the name limit (50 characters for
    categories, 30 for tags), is a validation error.
2.  Looks up an entity whose `name_key` equals the lower-cased label **or** whose slug equals
    `slugify(label)`.
3.  On a miss, inserts `{name: <label with first letter capitalized>,
    description: "Articles about <label>"}`.
4.  If the insert loses a race (`DuplicateKeyError` on the unique `name_key`/`slug` index), the
    surviving entity is fetched and returned instead.

Any number of concurrent resolutions of labels differing only in case therefore end with exactly
one stored entity and all callers receive its id.

## Explicit Management

| Operation | Roles |
|-----------|-------|
| list / get / get by slug | public |
| create | author, admin |
| update / delete | admin |

Duplicate names are reported as `ConflictError` ("Duplicate field value"). Deleting a category or
tag does not touch the posts that reference it.

Attributes:
    taxonomy_service (TaxonomyService): Shared instance.
"""

from typing import Any, Dict, List, Optional

from pymongo.errors import DuplicateKeyError

from luxeblog.config import settings
from luxeblog.exceptions import ConflictError, NotFoundError, ValidationError
from luxeblog.managers.blog_auth_manager import blog_auth_manager
from luxeblog.managers.blog_manager import TAXONOMY_KINDS, BlogContentService
from luxeblog.managers.logging_manager import get_logger
from luxeblog.models.blog_models import (
    MAX_CATEGORY_NAME_LENGTH,
    MAX_TAG_NAME_LENGTH,
    CategoryResponse,
    CreateCategoryRequest,
    CreateTagRequest,
    PostResponse,
    Principal,
    TagResponse,
    UpdateCategoryRequest,
    UpdateTagRequest,
    UserRole,
)
from luxeblog.utils.slug_utils import slugify

logger = get_logger(prefix="[Blog Taxonomy]")

_LABELS = {"category": "Category", "tag": "Tag"}
_MAX_NAME_LENGTHS = {"category": MAX_CATEGORY_NAME_LENGTH, "tag": MAX_TAG_NAME_LENGTH}


def capitalize_label(label: str) -> str:
    """Upper-case the first character only; the rest of the label is kept as typed."""
    return label[:1].upper() + label[1:]


class TaxonomyService:
    """Category and tag resolution and management."""

    def __init__(self, content_service: Optional[BlogContentService] = None):
        self.content = content_service or BlogContentService()

    # ------------------------------------------------------------------
    # Find-or-create
    # ------------------------------------------------------------------
    async def _find_by_label(self, kind: str, label: str) -> Optional[Dict[str, Any]]:
        query: Dict[str, Any] = {"name_key": label.lower()}
        slug = slugify(label)
        if slug:
            query = {"$or": [query, {"slug": slug}]}
        return await self.content.find_taxonomy(kind, query)

    async def find_or_create(self, kind: str, label: Optional[str], defaults: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        """
        Return the category/tag matching `label`, creating it when none exists.

        Args:
            kind (str): `"category"` or `"tag"`.
            label (str): Free-text label as typed by the user.
            defaults (dict, optional): Fields for a newly created entity. Defaults to the
                capitalized label and an "Articles about ..." description.

        Returns:
            Dict[str, Any]: The stored document (pre-existing or new).

        Raises:
            ValidationError: The label is empty after trimming or exceeds the name limit.
        """
        label = (label or "").strip()
        if not label:
            raise ValidationError(f"{_LABELS[kind]} is required")
        max_length = _MAX_NAME_LENGTHS[kind]
        if len(label) > max_length:
            raise ValidationError(
                f"{_LABELS[kind]} cannot be more than {max_length} characters",
                details={"max_length": max_length, "length": len(label)},
            )

        fields = defaults or {"name": capitalize_label(label), "description": f"Articles about {label}"}

        for attempt in range(settings.TAXONOMY_RESOLVE_ATTEMPTS):
            existing = await self._find_by_label(kind, label)
            if existing:
                return existing
            try:
                created = await self.content.insert_taxonomy(kind, fields, suffix_slug=False)
                logger.info("Auto-created %s '%s' from label '%s'", kind, created["name"], label)
                return created
            except DuplicateKeyError:
                logger.info("Concurrent %s creation for '%s' (attempt %d), re-fetching", kind, label, attempt + 1)

        existing = await self._find_by_label(kind, label)
        if existing:
            return existing
        logger.error("Could not resolve %s label '%s' after %d attempts", kind, label, settings.TAXONOMY_RESOLVE_ATTEMPTS)
        raise ConflictError(details={"field": "name", "value": label})

    async def resolve_category(self, label: Optional[str]) -> str:
        """Resolve a category label to a category id, creating the category on first use."""
        category = await self.find_or_create("category", label)
        return category["category_id"]

    async def resolve_tag(self, label: Optional[str]) -> str:
        """Resolve a tag label to a tag id, creating the tag on first use."""
        tag = await self.find_or_create("tag", label)
        return tag["tag_id"]

    async def resolve_category_reference(self, value: Optional[str]) -> str:
        """An existing category id is used as-is; any other value is treated as a label."""
        if value and await self.content.get_taxonomy("category", value.strip()):
            return value.strip()
        return await self.resolve_category(value)

    async def resolve_tag_references(self, values: Optional[List[str]]) -> List[str]:
        """Resolve tag ids or labels, keeping input order and dropping duplicates and blanks."""
        tag_ids: List[str] = []
        for value in values or []:
            if not value or not value.strip():
                continue
            value = value.strip()
            if await self.content.get_taxonomy("tag", value):
                tag_id = value
            else:
                tag_id = await self.resolve_tag(value)
            if tag_id not in tag_ids:
                tag_ids.append(tag_id)
        return tag_ids

    # ------------------------------------------------------------------
    # Explicit management
    # ------------------------------------------------------------------
    async def list_entities(self, kind: str) -> List[Dict[str, Any]]:
        return await self.content.list_taxonomy(kind)

    async def get_entity(self, kind: str, entity_id: str) -> Dict[str, Any]:
        doc = await self.content.get_taxonomy(kind, entity_id)
        if not doc:
            raise NotFoundError(_LABELS[kind], entity_id)
        return doc

    async def get_entity_by_slug(self, kind: str, slug: str) -> Dict[str, Any]:
        doc = await self.content.find_taxonomy(kind, {"slug": slug})
        if not doc:
            raise NotFoundError(_LABELS[kind], slug)
        return doc

    async def create_entity(self, kind: str, fields: Dict[str, Any], principal: Optional[Principal]) -> Dict[str, Any]:
        """
        Explicitly create a category or tag.

        Raises:
            UnauthenticatedError: No principal.
            ForbiddenError: Principal is neither author nor admin.
            ConflictError: The name already exists (case-insensitive).
        """
        blog_auth_manager.ensure_role(principal, UserRole.AUTHOR, UserRole.ADMIN)
        name = (fields.get("name") or "").strip()
        if not name:
            raise ValidationError(f"{_LABELS[kind]} name is required")

        if await self.content.find_taxonomy(kind, {"name_key": name.lower()}):
            raise ConflictError(details={"field": "name", "value": name})
        try:
            return await self.content.insert_taxonomy(kind, {**fields, "name": name})
        except DuplicateKeyError:
            raise ConflictError(details={"field": "name", "value": name})

    async def update_entity(self, kind: str, entity_id: str, changes: Dict[str, Any], principal: Optional[Principal]) -> Dict[str, Any]:
        blog_auth_manager.ensure_admin(principal)
        existing = await self.get_entity(kind, entity_id)
        _, id_field = TAXONOMY_KINDS[kind]

        if "name" in changes:
            name = (changes["name"] or "").strip()
            if not name:
                raise ValidationError(f"{_LABELS[kind]} name is required")
            changes = {**changes, "name": name}
            clash = await self.content.find_taxonomy(kind, {"name_key": name.lower(), id_field: {"$ne": entity_id}})
            if clash:
                raise ConflictError(details={"field": "name", "value": name})

        try:
            return await self.content.update_taxonomy(kind, existing, changes)
        except DuplicateKeyError:
            raise ConflictError(details={"field": "name", "value": changes.get("name")})

    async def delete_entity(self, kind: str, entity_id: str, principal: Optional[Principal]) -> None:
        blog_auth_manager.ensure_admin(principal)
        if not await self.content.delete_taxonomy(kind, entity_id):
            raise NotFoundError(_LABELS[kind], entity_id)
        logger.info("Deleted %s %s by %s", kind, entity_id, principal.id)

    # Typed wrappers used by the routes
    async def list_categories(self) -> List[CategoryResponse]:
        return [CategoryResponse(**doc) for doc in await self.list_entities("category")]

    async def get_category(self, category_id: str) -> CategoryResponse:
        return CategoryResponse(**await self.get_entity("category", category_id))

    async def get_category_by_slug(self, slug: str) -> CategoryResponse:
        return CategoryResponse(**await self.get_entity_by_slug("category", slug))

    async def create_category(self, request: CreateCategoryRequest, principal: Optional[Principal]) -> CategoryResponse:
        doc = await self.create_entity("category", request.model_dump(), principal)
        return CategoryResponse(**doc)

    async def update_category(self, category_id: str, request: UpdateCategoryRequest, principal: Optional[Principal]) -> CategoryResponse:
        doc = await self.update_entity("category", category_id, request.model_dump(exclude_unset=True), principal)
        return CategoryResponse(**doc)

    async def delete_category(self, category_id: str, principal: Optional[Principal]) -> None:
        await self.delete_entity("category", category_id, principal)

    async def posts_in_category(self, category_id: str) -> List[PostResponse]:
        """Published posts of an existing category, newest first."""
        await self.get_entity("category", category_id)
        docs = await self.content.posts_in_category(category_id)
        return await self.content.populate_posts(docs)

    async def list_tags(self) -> List[TagResponse]:
        return [TagResponse(**doc) for doc in await self.list_entities("tag")]

    async def get_tag(self, tag_id: str) -> TagResponse:
        return TagResponse(**await self.get_entity("tag", tag_id))

    async def get_tag_by_slug(self, slug: str) -> TagResponse:
        return TagResponse(**await self.get_entity_by_slug("tag", slug))

    async def create_tag(self, request: CreateTagRequest, principal: Optional[Principal]) -> TagResponse:
        return TagResponse(**await self.create_entity("tag", request.model_dump(), principal))

    async def update_tag(self, tag_id: str, request: UpdateTagRequest, principal: Optional[Principal]) -> TagResponse:
        doc = await self.update_entity("tag", tag_id, request.model_dump(exclude_unset=True), principal)
        return TagResponse(**doc)

    async def delete_tag(self, tag_id: str, principal: Optional[Principal]) -> None:
        await self.delete_entity("tag", tag_id, principal)


taxonomy_service = TaxonomyService()
