"""
Domain exceptions for the LuxeBlog API.

Every core operation signals failure with one of these types. The transport layer
(`luxeblog.main`) maps them to HTTP status codes and to the error envelope.
"""

from typing import Any, Dict, Optional


class BlogError(Exception):
    """Base exception class for LuxeBlog errors"""

    status_code: int = 500
    error_type: str = "ServerError"

    def __init__(self, message: str, code: str = "UNKNOWN_ERROR", details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.code = code
        self.details = details or {}

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to standard error format"""
        return {
            "type": self.error_type,
            "code": self.code,
            "message": self.message,
            "details": self.details,
        }


class ValidationError(BlogError):
    """Raised when a required field is missing or malformed"""

    status_code = 400
    error_type = "ValidationError"

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message, code="VALIDATION_ERROR", details=details)


class NotFoundError(BlogError):
    """Raised when a post, category, tag or comment does not exist"""

    status_code = 404
    error_type = "NotFound"

    def __init__(self, resource_type: str, resource_id: Optional[str] = None, details: Optional[Dict[str, Any]] = None):
        details = dict(details or {})
        if resource_id is not None:
            details.setdefault("id", resource_id)
        super().__init__(f"{resource_type} not found", code="RESOURCE_NOT_FOUND", details=details)
        self.resource_type = resource_type


class UnauthenticatedError(BlogError):
    """Raised when an operation requires a principal and none was supplied"""

    status_code = 401
    error_type = "Unauthenticated"

    def __init__(self, message: str = "Not authorized to access this route", details: Optional[Dict[str, Any]] = None):
        super().__init__(message, code="UNAUTHENTICATED", details=details)


class ForbiddenError(BlogError):
    """Raised when the principal lacks the rights for an operation"""

    status_code = 403
    error_type = "Forbidden"

    def __init__(self, message: str = "Not authorized to perform this action", details: Optional[Dict[str, Any]] = None):
        super().__init__(message, code="FORBIDDEN", details=details)


class ConflictError(BlogError):
    """Raised on a unique-constraint violation (duplicate name or slug)"""

    status_code = 400
    error_type = "Conflict"

    def __init__(self, message: str = "Duplicate field value", details: Optional[Dict[str, Any]] = None):
        super().__init__(message, code="DUPLICATE_FIELD", details=details)


class ServerError(BlogError):
    """Raised for unexpected store or internal failures"""

    status_code = 500
    error_type = "ServerError"

    def __init__(self, message: str = "Server error", details: Optional[Dict[str, Any]] = None):
        super().__init__(message, code="SERVER_ERROR", details=details)
