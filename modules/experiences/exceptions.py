"""
Experiences module exceptions.
"""

from shared.exceptions import AuthorizationError, NotFoundError, ValidationError


class ExperienceNotFoundError(NotFoundError):
    """Raised when an experience is not found."""

    def __init__(self, experience_id: str):
        super().__init__(
            f"Experience not found: {experience_id}",
            code="EXPERIENCE_NOT_FOUND",
            details={"experience_id": experience_id},
        )


class NotHostError(AuthorizationError):
    """Raised when a non-host profile tries to manage listings."""

    def __init__(self, profile_id: str):
        super().__init__(
            "Only hosts can create experiences",
            code="NOT_HOST",
            details={"profile_id": profile_id},
        )


class ExperienceAccessDeniedError(AuthorizationError):
    """Raised when a host touches a listing they do not own."""

    def __init__(self, experience_id: str, profile_id: str):
        super().__init__(
            f"Access denied to experience: {experience_id}",
            code="EXPERIENCE_ACCESS_DENIED",
            details={"experience_id": experience_id, "profile_id": profile_id},
        )


class InvalidImageError(ValidationError):
    """Raised when an upload is not an image."""

    def __init__(self, content_type: str):
        super().__init__(
            "Please select an image file",
            code="INVALID_IMAGE",
            details={"content_type": content_type},
        )


class ImageTooLargeError(ValidationError):
    """Raised when an upload exceeds the size limit."""

    def __init__(self, size: int, limit: int):
        super().__init__(
            f"Image size must be less than {limit // (1024 * 1024)}MB",
            code="IMAGE_TOO_LARGE",
            details={"size": size, "limit": limit},
        )
