import pytest

from luxeblog.exceptions import ForbiddenError, UnauthenticatedError
from luxeblog.managers.blog_auth_manager import blog_auth_manager
from luxeblog.models.blog_models import UserRole


def test_owner_and_admin_can_mutate(author, admin, reader):
    assert blog_auth_manager.can_mutate(author.id, author) is True
    assert blog_auth_manager.can_mutate(author.id, admin) is True
    assert blog_auth_manager.can_mutate(author.id, reader) is False


def test_nobody_owns_guest_content(author, admin):
    assert blog_auth_manager.can_mutate(None, author) is False
    assert blog_auth_manager.can_mutate(None, admin) is True


def test_missing_principal_is_unauthenticated():
    assert blog_auth_manager.can_mutate("user_author", None) is False
    with pytest.raises(UnauthenticatedError):
        blog_auth_manager.ensure_can_mutate("user_author", None)


def test_non_owner_is_forbidden(author, other_author):
    with pytest.raises(ForbiddenError) as exc_info:
        blog_auth_manager.ensure_can_mutate(author.id, other_author, resource="post")
    assert exc_info.value.status_code == 403
    assert "post" in exc_info.value.message


def test_ensure_role(author, reader, admin):
    assert blog_auth_manager.ensure_role(author, UserRole.AUTHOR, UserRole.ADMIN) is author
    assert blog_auth_manager.ensure_admin(admin) is admin
    with pytest.raises(ForbiddenError) as exc_info:
        blog_auth_manager.ensure_role(reader, UserRole.AUTHOR, UserRole.ADMIN)
    assert exc_info.value.message == "User role user is not authorized to access this route"
    with pytest.raises(ForbiddenError):
        blog_auth_manager.ensure_admin(author)


def test_list_user_posts_self_or_admin(reader, admin, author):
    assert blog_auth_manager.ensure_can_list_user_posts(reader.id, reader) is reader
    assert blog_auth_manager.ensure_can_list_user_posts(reader.id, admin) is admin
    with pytest.raises(ForbiddenError):
        blog_auth_manager.ensure_can_list_user_posts(reader.id, author)
    with pytest.raises(UnauthenticatedError):
        blog_auth_manager.ensure_can_list_user_posts(reader.id, None)
