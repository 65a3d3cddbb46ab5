# videotube/core/errors.py
"""
Error taxonomy shared by every layer of the API.

Each error carries the HTTP status it maps to, a human-readable message and
optional structured details. Exception handlers in `videotube.main` render
them as the error envelope:

    {"statusCode": 404, "success": false, "message": "Video not found", "errors": null}
"""
from typing import Any, Optional


class ApiError(Exception):
    """Base class for errors that cross the API boundary."""

    status_code: int = 500
    default_message: str = "Something went wrong"
    retryable: bool = False

    def __init__(self, message: Optional[str] = None, errors: Any = None):
        self.message = message or self.default_message
        self.errors = errors
        super().__init__(self.message)

    def to_dict(self) -> dict:
        body = {"statusCode": self.status_code, "success": False, "message": self.message}
        if self.errors is not None:
            body["errors"] = self.errors
        return body


class InvalidInput(ApiError):
    status_code = 400
    default_message = "Invalid input"


class Unauthorized(ApiError):
    status_code = 401
    default_message = "Unauthorized request"


class Forbidden(ApiError):
    status_code = 403
    default_message = "You do not have permission to perform this action"


class NotFound(ApiError):
    status_code = 404
    default_message = "Resource not found"


class Conflict(ApiError):
    status_code = 409
    default_message = "Resource already exists"


class Internal(ApiError):
    status_code = 500


class UploadFailed(ApiError):
    status_code = 502
    default_message = "Failed to upload file to storage"


class StoreUnavailable(ApiError):
    status_code = 503
    default_message = "Data store unavailable"
    retryable = True


class Timeout(ApiError):
    status_code = 504
    default_message = "Upstream call timed out"
    retryable = True
