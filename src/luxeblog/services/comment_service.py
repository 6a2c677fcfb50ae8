"""
# Comment Thread Engine

Threaded, moderated comments with **guest/authenticated duality**.

## Authorship

A comment is written either by an authenticated principal or by a guest who supplies a name and
an email address. The stored `author` is a tagged union (`UserAuthor` | `GuestAuthor`), so a
comment can never carry both identities.

## Moderation

| Author | Initial status |
|--------|----------------|
| Guest | `pending` |
| Principal with role `user` | `pending` |
| Principal with role `author` or `admin` | `approved` |

Admins move comments through `pending → approved`, `pending → rejected` and
`rejected → approved`. Approving an approved comment (or rejecting a rejected one) is a no-op.
An approved comment is never rejected.

## Threading

Replies reference a parent comment on the same post. Public listings show approved root comments
(oldest first), each with its approved direct replies (oldest first). Deeper replies are stored
but not expanded.

Attributes:
    comment_service (CommentService): Shared instance.
"""

from typing import Any, Dict, List, Optional, Tuple

from pydantic import ValidationError as PydanticValidationError

from luxeblog.exceptions import ConflictError, NotFoundError, ValidationError
from luxeblog.managers.blog_auth_manager import blog_auth_manager
from luxeblog.managers.blog_manager import BlogContentService, new_id, utc_now
from luxeblog.managers.blog_security import blog_xss_protection
from luxeblog.managers.logging_manager import get_logger
from luxeblog.models.blog_models import (
    CommentResponse,
    CommentStatus,
    GuestAuthor,
    Principal,
    UserAuthor,
    UserRole,
    comment_author_adapter,
)

logger = get_logger(prefix="[Blog Comments]")

MAX_COMMENT_LENGTH = 1000

PENDING_MESSAGE = "Your comment has been submitted and is pending approval"
ADDED_MESSAGE = "Comment added successfully"


class CommentService:
    """Comment creation, threading and moderation."""

    def __init__(self, content_service: Optional[BlogContentService] = None):
        self.content = content_service or BlogContentService()

    def clean_content(self, content: Optional[str]) -> str:
        """
        Trim and sanitize comment content.

        Raises:
            ValidationError: Nothing is left after sanitizing, or the text exceeds 1000 characters.
        """
        cleaned = blog_xss_protection.sanitize_comment_content(content or "")
        if not cleaned:
            raise ValidationError("Please add some content")
        if len(cleaned) > MAX_COMMENT_LENGTH:
            raise ValidationError(
                f"Comment cannot be more than {MAX_COMMENT_LENGTH} characters",
                details={"max_length": MAX_COMMENT_LENGTH, "length": len(cleaned)},
            )
        return cleaned

    def _build_author(self, principal: Optional[Principal], guest: Optional[Dict[str, Any]]):
        if principal is not None:
            return UserAuthor(user_id=principal.id, name=principal.name, avatar=principal.avatar)

        guest = guest or {}
        name = (guest.get("name") or "").strip()
        email = (guest.get("email") or "").strip()
        if not name or not email:
            raise ValidationError("Guest comments require a name and email")
        try:
            return GuestAuthor(name=name, email=email)
        except PydanticValidationError as e:
            fields = [".".join(str(part) for part in err["loc"]) for err in e.errors()]
            raise ValidationError("Please add a valid guest name and email", details={"fields": fields})

    def _initial_status(self, principal: Optional[Principal]) -> CommentStatus:
        if principal is not None and principal.role in (UserRole.AUTHOR, UserRole.ADMIN):
            return CommentStatus.APPROVED
        return CommentStatus.PENDING

    def _owner_id(self, doc: Dict[str, Any]) -> Optional[str]:
        """Owning user id, or None for guest comments (which only admins may touch)."""
        author = comment_author_adapter.validate_python(doc["author"])
        return author.user_id if isinstance(author, UserAuthor) else None

    async def _get_existing(self, comment_id: str) -> Dict[str, Any]:
        doc = await self.content.get_comment(comment_id)
        if not doc:
            raise NotFoundError("Comment", comment_id)
        return doc

    async def add_comment(
        self,
        post_id: str,
        content: Optional[str],
        principal: Optional[Principal] = None,
        guest: Optional[Dict[str, Any]] = None,
        parent_id: Optional[str] = None,
    ) -> Tuple[CommentResponse, str]:
        """
        Store a new comment on `post_id`.

        Args:
            post_id (str): Post being commented on.
            content (str): Raw comment text.
            principal (Principal, optional): Authenticated author; when present `guest` is ignored.
            guest (dict, optional): `{"name": ..., "email": ...}` for guest comments.
            parent_id (str, optional): Comment being replied to; must belong to the same post.

        Returns:
            Tuple[CommentResponse, str]: The stored comment and the user-facing status message.

        Raises:
            NotFoundError: Post or parent comment does not exist.
            ValidationError: Empty/overlong content or incomplete guest identity.
        """
        if not await self.content.get_post(post_id):
            raise NotFoundError("Post", post_id)

        cleaned = self.clean_content(content)
        author = self._build_author(principal, guest)

        if parent_id:
            parent = await self.content.get_comment(parent_id)
            if not parent or parent["post_id"] != post_id:
                raise NotFoundError("Parent comment", parent_id)

        status = self._initial_status(principal)
        now = utc_now()
        document = {
            "comment_id": new_id("comment"),
            "post_id": post_id,
            "parent_id": parent_id or None,
            "content": cleaned,
            "author": author.model_dump(),
            "status": status.value,
            "moderated_by": None,
            "moderated_at": None,
            "created_at": now,
            "updated_at": now,
        }
        stored = await self.content.insert_comment(document)

        logger.info(
            "Comment %s added to post %s by %s (%s)",
            stored["comment_id"], post_id, principal.id if principal else "guest", status.value,
        )
        message = PENDING_MESSAGE if status == CommentStatus.PENDING else ADDED_MESSAGE
        return CommentResponse.from_document(stored), message

    async def list_approved_root_comments(self, post_id: str) -> List[CommentResponse]:
        """Approved root comments of `post_id` with their approved direct replies, all oldest first."""
        roots = await self.content.find_comments(
            {"post_id": post_id, "parent_id": None, "status": CommentStatus.APPROVED.value}
        )
        replies = await self.content.replies_of_many(
            [root["comment_id"] for root in roots], status=CommentStatus.APPROVED.value
        )
        return [
            CommentResponse.from_document(
                root, replies=[CommentResponse.from_document(reply) for reply in replies[root["comment_id"]]]
            )
            for root in roots
        ]

    async def update_comment(self, comment_id: str, content: Optional[str], principal: Optional[Principal]) -> CommentResponse:
        existing = await self._get_existing(comment_id)
        principal = blog_auth_manager.ensure_can_mutate(self._owner_id(existing), principal, resource="comment")
        cleaned = self.clean_content(content)
        updated = await self.content.update_comment(comment_id, {"content": cleaned})
        if not updated:
            raise NotFoundError("Comment", comment_id)
        return CommentResponse.from_document(updated)

    async def delete_comment(self, comment_id: str, principal: Optional[Principal]) -> None:
        existing = await self._get_existing(comment_id)
        principal = blog_auth_manager.ensure_can_mutate(self._owner_id(existing), principal, resource="comment")
        if not await self.content.delete_comment(comment_id):
            raise NotFoundError("Comment", comment_id)
        logger.info("Comment %s deleted by %s", comment_id, principal.id)

    async def _moderate(self, comment_id: str, principal: Principal, status: CommentStatus) -> Dict[str, Any]:
        updated = await self.content.update_comment(
            comment_id,
            {"status": status.value, "moderated_by": principal.id, "moderated_at": utc_now()},
        )
        if not updated:
            raise NotFoundError("Comment", comment_id)
        logger.info("Comment %s %s by %s", comment_id, status.value, principal.id)
        return updated

    async def approve_comment(self, comment_id: str, principal: Optional[Principal]) -> CommentResponse:
        """Admin only. `pending|rejected → approved`; approving an approved comment changes nothing."""
        principal = blog_auth_manager.ensure_admin(principal)
        existing = await self._get_existing(comment_id)
        if existing["status"] == CommentStatus.APPROVED.value:
            return CommentResponse.from_document(existing)
        return CommentResponse.from_document(await self._moderate(comment_id, principal, CommentStatus.APPROVED))

    async def reject_comment(self, comment_id: str, principal: Optional[Principal]) -> CommentResponse:
        """
        Admin only. `pending → rejected`; rejecting a rejected comment changes nothing.

        Raises:
            ConflictError: The comment is already approved.
        """
        principal = blog_auth_manager.ensure_admin(principal)
        existing = await self._get_existing(comment_id)
        if existing["status"] == CommentStatus.REJECTED.value:
            return CommentResponse.from_document(existing)
        if existing["status"] == CommentStatus.APPROVED.value:
            raise ConflictError("Approved comments cannot be rejected", details={"id": comment_id})
        return CommentResponse.from_document(await self._moderate(comment_id, principal, CommentStatus.REJECTED))

    async def list_pending_comments(self, principal: Optional[Principal]) -> List[CommentResponse]:
        """Admin moderation queue, oldest first."""
        blog_auth_manager.ensure_admin(principal)
        docs = await self.content.find_comments({"status": CommentStatus.PENDING.value})
        return [CommentResponse.from_document(doc) for doc in docs]


comment_service = CommentService()
