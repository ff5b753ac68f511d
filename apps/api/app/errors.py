"""Application exception types."""

from app.schemas.error import ErrorResponse


class ApiError(Exception):
    """Structured API error that maps directly to contract error payloads."""

    def __init__(self, status_code: int, code: str, message: str, details: dict | None = None) -> None:
        self.status_code = status_code
        self.payload = ErrorResponse(code=code, message=message, details=details)
        super().__init__(message)


def invalid_input(message: str) -> ApiError:
    return ApiError(status_code=400, code="INVALID_INPUT", message=message)


def unauthenticated(message: str) -> ApiError:
    return ApiError(status_code=401, code="UNAUTHENTICATED", message=message)


def forbidden(message: str = "Not allowed to act on another member's resources") -> ApiError:
    return ApiError(status_code=403, code="FORBIDDEN", message=message)


def not_found(message: str = "Resource not found") -> ApiError:
    return ApiError(status_code=404, code="RESOURCE_NOT_FOUND", message=message)


def conflict(message: str) -> ApiError:
    return ApiError(status_code=409, code="CONFLICT", message=message)


def backend_unavailable(message: str) -> ApiError:
    """External store or provider failure; the collaborator message is passed through."""
    return ApiError(status_code=500, code="BACKEND_UNAVAILABLE", message=message or "Backend request failed")


__all__ = [
    "ApiError",
    "backend_unavailable",
    "conflict",
    "forbidden",
    "invalid_input",
    "not_found",
    "unauthenticated",
]
