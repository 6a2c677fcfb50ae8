"""
# Identity Dependencies

FastAPI dependencies that turn a bearer token into a `Principal`.

Credential issuance (password hashing, token minting, user accounts) lives outside this service.
The only contract is the JWT: signed with `SECRET_KEY`/`ALGORITHM` and carrying

| Claim | Principal field |
|-------|-----------------|
| `sub` (or `id`) | `id` |
| `role` | `role` (`user`, `author`, `admin`; defaults to `user`) |
| `name` | `name` |
| `avatar` | `avatar` |

## Dependencies

- `get_optional_principal`: `None` when no token is sent (guest comments, public reads).
  A token that is present but invalid is still rejected with 401.
- `require_principal`: 401 unless a valid token is sent.

```python
@router.post("/posts")
async def create_post(request: CreatePostRequest, principal: Principal = Depends(require_principal)):
    ...
```

## Module Attributes

Attributes:
    oauth2_scheme (OAuth2PasswordBearer): Token extractor that tolerates missing tokens.
"""

from typing import Optional

from fastapi import Depends
from fastapi.security import OAuth2PasswordBearer
from jose import JWTError, jwt
from pydantic import ValidationError as PydanticValidationError

from luxeblog.config import settings
from luxeblog.exceptions import UnauthenticatedError
from luxeblog.managers.logging_manager import get_logger
from luxeblog.models.blog_models import Principal

logger = get_logger(prefix="[Security Dependencies]")

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/auth/login", auto_error=False)


def decode_access_token(token: str) -> Principal:
    """
    Validate `token` and build the principal it identifies.

    Raises:
        UnauthenticatedError: Bad signature, expired token or unusable claims.
    """
    try:
        payload = jwt.decode(token, settings.SECRET_KEY.get_secret_value(), algorithms=[settings.ALGORITHM])
    except JWTError as e:
        logger.warning("Rejected bearer token: %s", e)
        raise UnauthenticatedError()

    subject = payload.get("sub") or payload.get("id")
    if not subject:
        logger.warning("Rejected bearer token without subject claim")
        raise UnauthenticatedError()

    try:
        return Principal(
            id=str(subject),
            role=payload.get("role") or "user",
            name=payload.get("name"),
            avatar=payload.get("avatar"),
        )
    except PydanticValidationError:
        logger.warning("Rejected bearer token with unknown role %r for %s", payload.get("role"), subject)
        raise UnauthenticatedError()


async def get_optional_principal(token: Optional[str] = Depends(oauth2_scheme)) -> Optional[Principal]:
    if not token:
        return None
    return decode_access_token(token)


async def require_principal(principal: Optional[Principal] = Depends(get_optional_principal)) -> Principal:
    if principal is None:
        raise UnauthenticatedError()
    return principal
