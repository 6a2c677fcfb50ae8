"""
# Blog Authorization Manager

Role and ownership rules for every mutating or restricted blog operation.

## Rules

| Operation | Allowed when |
|-----------|--------------|
| Update/delete a post or comment | `principal.role == admin` **or** `principal.id == owner_id` |
| Update/delete a guest comment | admin only (guests have no identity to match) |
| List a user's posts (all statuses) | `principal.id == target_user_id` **or** admin |
| Approve/reject comments, edit/delete taxonomy | admin |
| Create categories/tags | author or admin |

Missing identity is reported as `UnauthenticatedError` (401). An identity without enough rights
is reported as `ForbiddenError` (403).

Attributes:
    blog_auth_manager (BlogAuthManager): Shared instance.
"""

from typing import Optional

from luxeblog.exceptions import ForbiddenError, UnauthenticatedError
from luxeblog.managers.logging_manager import get_logger
from luxeblog.models.blog_models import Principal, UserRole

logger = get_logger(prefix="[Blog Auth]")


class BlogAuthManager:
    """Authorization checks shared by the post, comment and taxonomy paths."""

    def can_mutate(self, owner_id: Optional[str], principal: Optional[Principal]) -> bool:
        """Ownership predicate: admins may mutate anything, everyone else only what they own."""
        if principal is None:
            return False
        if principal.is_admin:
            return True
        return owner_id is not None and owner_id == principal.id

    def ensure_authenticated(self, principal: Optional[Principal]) -> Principal:
        if principal is None:
            raise UnauthenticatedError()
        return principal

    def ensure_can_mutate(self, owner_id: Optional[str], principal: Optional[Principal], resource: str = "resource") -> Principal:
        """
        Raise unless `principal` may mutate a resource owned by `owner_id`.

        Raises:
            UnauthenticatedError: No principal.
            ForbiddenError: Principal is neither the owner nor an admin.
        """
        principal = self.ensure_authenticated(principal)
        if not self.can_mutate(owner_id, principal):
            logger.warning("Denied %s mutation for user %s (owner %s)", resource, principal.id, owner_id)
            raise ForbiddenError(f"Not authorized to modify this {resource}")
        return principal

    def ensure_role(self, principal: Optional[Principal], *roles: UserRole) -> Principal:
        principal = self.ensure_authenticated(principal)
        if principal.role not in roles:
            logger.warning("Denied user %s with role %s (requires %s)", principal.id, principal.role.value, [r.value for r in roles])
            raise ForbiddenError(f"User role {principal.role.value} is not authorized to access this route")
        return principal

    def ensure_admin(self, principal: Optional[Principal]) -> Principal:
        return self.ensure_role(principal, UserRole.ADMIN)

    def can_list_user_posts(self, target_user_id: str, principal: Optional[Principal]) -> bool:
        return self.can_mutate(target_user_id, principal)

    def ensure_can_list_user_posts(self, target_user_id: str, principal: Optional[Principal]) -> Principal:
        principal = self.ensure_authenticated(principal)
        if not self.can_list_user_posts(target_user_id, principal):
            raise ForbiddenError("Not authorized to access these posts")
        return principal


blog_auth_manager = BlogAuthManager()
