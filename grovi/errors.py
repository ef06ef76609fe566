"""
Error taxonomy for backend calls
Every failed operation surfaces as a GroviError subclass with a displayable message
"""

import logging
from typing import Any, Optional

import requests

from .data.messages import get_message

logger = logging.getLogger(__name__)


class GroviError(Exception):
    """Base class for all client errors"""

    def __init__(self, message: str, status_code: Optional[int] = None, detail: Any = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.detail = detail

    def __str__(self):
        return self.message


class NotAuthenticatedError(GroviError):
    """Raised locally when an operation needs a session and none is active"""


class NetworkError(GroviError):
    """Transport failure or timeout; no response was received"""


class ApiError(GroviError):
    """The backend answered with an error status"""


class AuthenticationError(ApiError):
    """401 - invalid credentials or expired session"""


class PermissionDeniedError(ApiError):
    """403 - the record exists but the user may not touch it"""


class NotFoundError(ApiError):
    """404 - the record does not exist"""


class ValidationError(ApiError):
    """400/422 - the submission was rejected as malformed"""


class ServerError(ApiError):
    """Any other error status"""


_STATUS_ERRORS = {
    400: ValidationError,
    401: AuthenticationError,
    403: PermissionDeniedError,
    404: NotFoundError,
    422: ValidationError,
}

# Status-specific fallbacks used before the operation default
_STATUS_MESSAGES = {
    403: "forbidden",
    404: "not_found",
    422: "validation_failed",
}


def extract_detail(response: requests.Response) -> Any:
    """Return the `detail` member of a JSON error body, or None"""
    try:
        body = response.json()
    except ValueError:
        return None
    if isinstance(body, dict):
        return body.get("detail")
    return None


def error_from_response(response: requests.Response, default_message: Optional[str] = None) -> ApiError:
    """
    Build the typed error for a failed response.

    Message resolution order: a string `detail` from the backend, then the
    status-specific message (403/404/422), then the operation default.
    A list-shaped `detail` (field-level validation errors) is never shown as-is.
    """
    status = response.status_code
    detail = extract_detail(response)
    error_cls = _STATUS_ERRORS.get(status, ServerError)

    if isinstance(detail, str) and detail.strip():
        message = detail
    elif status in _STATUS_MESSAGES:
        message = get_message(_STATUS_MESSAGES[status])
    else:
        message = default_message or get_message("unknown_error")

    return error_cls(message, status_code=status, detail=detail)


def error_from_exception(exc: requests.RequestException) -> NetworkError:
    """Wrap a transport-level failure"""
    logger.debug(f"Transport failure: {exc!r}")
    return NetworkError(get_message("network_error"), detail=str(exc))
