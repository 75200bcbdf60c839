"""
Custom exception classes for robust error handling
"""
from typing import Any, Dict, Optional
from fastapi import status


class BaseCustomException(Exception):
    """Base custom exception class"""

    def __init__(
        self,
        message: str,
        status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR,
        details: Optional[Dict[str, Any]] = None
    ):
        self.message = message
        self.status_code = status_code
        self.details = details or {}
        super().__init__(self.message)


class BusinessLogicError(BaseCustomException):
    """Raised when business logic validation fails"""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(
            message=message,
            status_code=status.HTTP_400_BAD_REQUEST,
            details=details
        )


class ResourceNotFoundError(BaseCustomException):
    """Raised when a requested resource is not found"""

    def __init__(self, resource: str, identifier: str, details: Optional[Dict[str, Any]] = None):
        message = f"{resource} with identifier '{identifier}' not found"
        super().__init__(
            message=message,
            status_code=status.HTTP_404_NOT_FOUND,
            details=details
        )


class AuthenticationError(BaseCustomException):
    """Raised when authentication fails"""

    def __init__(self, message: str = "Authentication failed", details: Optional[Dict[str, Any]] = None):
        super().__init__(
            message=message,
            status_code=status.HTTP_401_UNAUTHORIZED,
            details=details
        )


class ExternalServiceError(BaseCustomException):
    """Raised when external service calls fail"""

    def __init__(self, service: str, message: str, details: Optional[Dict[str, Any]] = None):
        full_message = f"External service '{service}' error: {message}"
        super().__init__(
            message=full_message,
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            details=details
        )


# Category tree errors

class CategoryNotFoundError(ResourceNotFoundError):
    """Raised when the target category does not exist"""

    def __init__(self, category_id: str):
        super().__init__("Category", category_id, details={"category_id": category_id})


class ParentNotFoundError(ResourceNotFoundError):
    """Raised when a referenced parent category does not exist"""

    def __init__(self, parent_id: str):
        super().__init__("Parent category", parent_id, details={"parent_id": parent_id})


class DuplicateSlugError(BusinessLogicError):
    """Raised when a slug is already used by a different category"""

    def __init__(self, slug: str):
        super().__init__(
            message=f"A category with slug '{slug}' already exists",
            details={"slug": slug}
        )


class SelfParentError(BusinessLogicError):
    """Raised when a category is made its own parent"""

    def __init__(self, category_id: str):
        super().__init__(
            message="A category cannot be its own parent",
            details={"category_id": category_id}
        )


class CircularReferenceError(BusinessLogicError):
    """Raised when a new parent would make a category its own ancestor"""

    def __init__(self, category_id: str, parent_id: str):
        super().__init__(
            message="Moving this category under the requested parent would create a circular category reference",
            details={"category_id": category_id, "parent_id": parent_id}
        )


class CategoryHasChildrenError(BaseCustomException):
    """Raised when deleting a category that still has children"""

    def __init__(self, category_id: str, children: int):
        super().__init__(
            message="Category still has child categories and cannot be deleted",
            status_code=status.HTTP_409_CONFLICT,
            details={"category_id": category_id, "children": children}
        )


class StoreFailureError(ExternalServiceError):
    """Raised when the category record store fails.

    The underlying exception is kept on ``cause`` for diagnostics; it never
    becomes part of the public message.
    """

    def __init__(self, operation: str, cause: Optional[BaseException] = None):
        super().__init__(
            service="record_store",
            message=f"{operation} failed",
            details={"operation": operation}
        )
        self.operation = operation
        self.cause = cause
