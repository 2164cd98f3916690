from app.platform.errors import (
    AppError,
    ConflictError,
    InfrastructureError,
    NotFoundError,
    StorageError,
    ValidationError,
)

__all__ = [
    "AppError",
    "ConflictError",
    "InfrastructureError",
    "NotFoundError",
    "StorageError",
    "ValidationError",
]
