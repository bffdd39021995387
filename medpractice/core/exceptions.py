from fastapi import HTTPException, status
from typing import Dict, Optional


class ServiceError(HTTPException):
    """Base class for every error a service operation may surface.

    The router renders these as ``{"error": ..., "message": ...}`` using the
    status code carried here; it never looks at database error codes.
    """

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message = "An unexpected error occurred"

    def __init__(self, message: Optional[str] = None, headers: Optional[Dict[str, str]] = None):
        super().__init__(
            status_code=self.status_code,
            detail=message or self.default_message,
            headers=headers,
        )

    @property
    def message(self) -> str:
        return self.detail


class ValidationError(ServiceError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Invalid request"


class Unauthorized(ServiceError):
    status_code = status.HTTP_401_UNAUTHORIZED
    default_message = "Could not validate credentials"

    def __init__(self, message: Optional[str] = None):
        super().__init__(message, headers={"WWW-Authenticate": "Bearer"})


class Forbidden(ServiceError):
    status_code = status.HTTP_403_FORBIDDEN
    default_message = "Not enough permissions"


class NotFound(ServiceError):
    status_code = status.HTTP_404_NOT_FOUND
    default_message = "The requested resource was not found"


# Duplicate unique fields are reported as a plain bad request.
class Conflict(ServiceError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Resource already exists"


class InternalError(ServiceError):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message = "An unexpected error occurred"
