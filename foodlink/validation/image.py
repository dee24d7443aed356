from foodlink.core.errors import FormValidationError

MAX_IMAGE_BYTES = 5 * 1024 * 1024
ALLOWED_TYPES = {
    "image/jpeg": "jpg",
    "image/png": "png",
    "image/gif": "gif",
    "image/webp": "webp",
}


def validate_image(content_type: str, size: int, field: str = "photo") -> str:
    """Check type and size of an upload; returns the file extension to store under."""
    ext = ALLOWED_TYPES.get((content_type or "").lower())
    if ext is None:
        raise FormValidationError({field: "Only JPEG, PNG, GIF, and WebP images are allowed"})
    if size > MAX_IMAGE_BYTES:
        raise FormValidationError({field: "Image must be less than 5MB"})
    return ext
