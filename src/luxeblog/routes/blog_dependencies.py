"""
# Blog Access Control Dependencies

Role gates for blog routes, layered on the identity dependencies.

The role hierarchy is `user` < `author` < `admin`:

- `require_access_author`: authors and admins (create categories and tags).
- `require_access_admin`: admins only (moderation queue, taxonomy edits).

Ownership checks (post/comment owner or admin) depend on the stored resource and therefore run
inside the service operations, not here.

```python
@router.get("/comments/pending")
async def pending(principal: Principal = Depends(require_access_admin)):
    ...
```
"""

from fastapi import Depends

from luxeblog.managers.blog_auth_manager import blog_auth_manager
from luxeblog.models.blog_models import Principal, UserRole
from luxeblog.routes.auth.dependencies import require_principal


async def require_access_author(principal: Principal = Depends(require_principal)) -> Principal:
    return blog_auth_manager.ensure_role(principal, UserRole.AUTHOR, UserRole.ADMIN)


async def require_access_admin(principal: Principal = Depends(require_principal)) -> Principal:
    return blog_auth_manager.ensure_admin(principal)
