from __future__ import annotations

from fastapi import status


class AppError(Exception):
    """Base domain error. The HTTP layer maps ``status_code`` onto the response."""

    kind = "internal"
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str, *, op: str | None = None) -> None:
        self.message = message
        self.op = op
        super().__init__(f"{op}: {message}" if op else message)


class ValidationError(AppError):
    """Client supplied input that violates a business or policy rule."""

    kind = "validation"
    status_code = status.HTTP_400_BAD_REQUEST


class InvalidSortField(ValidationError):
    def __init__(self, field: str) -> None:
        self.field = field
        super().__init__("invalid sort field")


class InvalidSortOrder(ValidationError):
    def __init__(self, order: str) -> None:
        self.order = order
        super().__init__("invalid sort order")


class ContentTypeRejected(ValidationError):
    def __init__(self, content_type: str) -> None:
        self.content_type = content_type
        super().__init__(f"content type {content_type!r} is not allowed")


class FileSizeRejected(ValidationError):
    pass


class NotFoundError(AppError):
    kind = "not_found"
    status_code = status.HTTP_404_NOT_FOUND


class ConflictError(AppError):
    kind = "conflict"
    status_code = status.HTTP_409_CONFLICT


class InfrastructureError(AppError):
    """Store, network or object-storage failure. Never shown verbatim to clients."""

    kind = "internal"
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str, *, op: str | None = None, cause: BaseException | None = None) -> None:
        super().__init__(message, op=op)
        self.cause = cause


class StorageError(InfrastructureError):
    pass
