"""Custom exceptions for the reader service."""


class ReaderException(Exception):
    """Base class for service exceptions with HTTP status code.

    All custom exceptions inherit from this class and define their
    status_code and error code for consistent HTTP response handling.
    """
    status_code: int = 500
    error: str = "internal_error"

    def __init__(self, message: str = "Internal server error"):
        self.message = message
        super().__init__(message)

    def to_response(self) -> dict:
        """Convert to API response body."""
        return {"error": self.error, "message": self.message}


class ValidationError(ReaderException):
    """Raised when a required field is missing or empty.

    Maps to HTTP 400 Bad Request.
    """
    status_code = 400
    error = "validation_error"

    def __init__(self, message: str = "Invalid request", field: str | None = None):
        self.field = field
        super().__init__(message)

    def to_response(self) -> dict:
        body = super().to_response()
        if self.field:
            body["field"] = self.field
        return body


class ConflictError(ReaderException):
    """Raised when a saved filter name is already taken.

    Maps to HTTP 409 Conflict.
    """
    status_code = 409
    error = "conflict"

    def __init__(self, name: str | None = None, message: str | None = None):
        self.name = name
        super().__init__(
            message
            or "A filter with this name already exists. "
            "Please choose a different name or edit the existing filter."
        )


class NotFoundError(ReaderException):
    """Raised when an operation references an unknown id.

    Maps to HTTP 404 Not Found.
    """
    status_code = 404
    error = "not_found"

    def __init__(self, resource: str = "Resource", resource_id: int | None = None):
        self.resource = resource
        self.resource_id = resource_id
        if resource_id is None:
            message = f"{resource} not found"
        else:
            message = f"{resource} {resource_id} not found"
        super().__init__(message)


class MalformedConditionsError(ReaderException):
    """Raised when a serialized condition sequence cannot be decoded.

    Maps to HTTP 422 Unprocessable Entity when a stored saved filter is
    replayed; on writes the API reports it as a ValidationError instead.
    """
    status_code = 422
    error = "malformed_conditions"

    def __init__(self, detail: str, filter_id: int | None = None):
        self.detail = detail
        self.filter_id = filter_id
        if filter_id is None:
            message = f"Malformed conditions: {detail}"
        else:
            message = f"Saved filter {filter_id} has malformed conditions: {detail}"
        super().__init__(message)


class ArticleSourceError(ReaderException):
    """Raised when the article corpus cannot be read.

    Fatal for a whole rule application. Maps to HTTP 500.
    """
    status_code = 500
    error = "internal_error"

    def __init__(self, message: str = "Article source unavailable"):
        super().__init__(message)
