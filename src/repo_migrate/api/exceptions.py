"""Hosting and CI API exceptions."""

from typing import Optional


class APIError(Exception):
    """Base exception for errors returned by a remote API."""

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        response_data: Optional[dict] = None,
    ):
        """Initialize API error.

        Args:
            message: Error message
            status_code: HTTP status code
            response_data: Response data from API
        """
        super().__init__(message)
        self.status_code = status_code
        self.response_data = response_data


class AuthenticationError(APIError):
    """Credentials were rejected by the API."""

    pass


class PermissionDeniedError(APIError):
    """Credentials are valid but lack access to the resource."""

    pass


class RateLimitError(APIError):
    """Rate limit exceeded error."""

    def __init__(self, message: str, retry_after: int = 60, **kwargs):
        """Initialize rate limit error.

        Args:
            message: Error message
            retry_after: Seconds to wait before retry
            **kwargs: Additional arguments for base class
        """
        super().__init__(message, **kwargs)
        self.retry_after = retry_after


class NotFoundError(APIError):
    """Resource not found error."""

    pass


class UnprocessableEntityError(APIError):
    """Request was understood but rejected, e.g. the resource already exists."""

    pass
