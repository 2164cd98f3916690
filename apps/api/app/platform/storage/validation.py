from __future__ import annotations

from app.platform.errors import ContentTypeRejected, FileSizeRejected


IMAGE_CONTENT_TYPES = frozenset(
    {
        "image/jpeg",
        "image/png",
        "image/gif",
        "image/webp",
        "image/svg+xml",
    }
)

DOCUMENT_CONTENT_TYPES = frozenset(
    {
        "application/pdf",
        "application/msword",
        "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
        "application/vnd.ms-excel",
        "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
        "application/vnd.ms-powerpoint",
        "application/vnd.openxmlformats-officedocument.presentationml.presentation",
        "text/plain",
        "text/csv",
    }
)

VIDEO_CONTENT_TYPES = frozenset(
    {
        "video/mp4",
        "video/webm",
        "video/quicktime",
        "video/x-msvideo",
        "video/mpeg",
    }
)

AUDIO_CONTENT_TYPES = frozenset(
    {
        "audio/mpeg",
        "audio/wav",
        "audio/ogg",
        "audio/webm",
        "audio/x-wav",
    }
)

ALLOWED_CONTENT_TYPES = IMAGE_CONTENT_TYPES | DOCUMENT_CONTENT_TYPES | VIDEO_CONTENT_TYPES | AUDIO_CONTENT_TYPES


def normalize_content_type(content_type: str) -> str:
    return content_type.split(";", 1)[0].strip().lower()


def validate_content_type(content_type: str) -> str:
    """Return the normalized MIME type or raise ``ContentTypeRejected``."""

    normalized = normalize_content_type(content_type or "")
    if normalized not in ALLOWED_CONTENT_TYPES:
        raise ContentTypeRejected(content_type)
    return normalized


def validate_file_size(size_bytes: int, max_file_size: int) -> None:
    if size_bytes <= 0:
        raise FileSizeRejected("file size must be greater than 0")
    if size_bytes > max_file_size:
        raise FileSizeRejected(
            f"file size {size_bytes} bytes exceeds maximum allowed size of {max_file_size} bytes"
        )


def allowed_content_types() -> list[str]:
    return sorted(ALLOWED_CONTENT_TYPES)


def is_image_content_type(content_type: str) -> bool:
    return content_type.lower().startswith("image/")


def is_video_content_type(content_type: str) -> bool:
    return content_type.lower().startswith("video/")


def is_document_content_type(content_type: str) -> bool:
    lowered = content_type.lower()
    return (
        lowered.startswith("application/pdf")
        or lowered.startswith("application/msword")
        or "officedocument" in lowered
        or lowered.startswith("text/")
    )
