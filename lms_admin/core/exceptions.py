from fastapi import status


class ServiceError(Exception):
    """Base exception for service layer errors."""

    def __init__(self, message: str, status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code


class NotFoundError(ServiceError):
    def __init__(self, message: str = "Not found") -> None:
        super().__init__(message, status.HTTP_404_NOT_FOUND)


class ValidationError(ServiceError):
    """Form-level validation failure (missing field, duplicate unique key)."""

    def __init__(self, message: str) -> None:
        super().__init__(message, status.HTTP_400_BAD_REQUEST)


class LoginRequired(Exception):
    """Raised by page dependencies when no user is stored in the session."""


class AccessDenied(Exception):
    """Raised when the session user's role is outside the route whitelist."""

    def __init__(self, message: str = "You do not have permission to access this page") -> None:
        super().__init__(message)
        self.message = message
