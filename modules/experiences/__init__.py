"""
Experiences module - published catalog, host listings and listing images.

Public interface:
- ICatalogService: Cached read path over published experiences
- IExperienceRepository: Experience persistence
- Experience, ExperienceCreate, ExperienceUpdate: Listing models
"""

from .interfaces import ICatalogService, IExperienceRepository
from .models import (
    CatalogState,
    ContactMethod,
    Experience,
    ExperienceCreate,
    ExperienceImage,
    ExperienceUpdate,
    HostExperiencesState,
    HostSummary,
)
from .exceptions import (
    ExperienceAccessDeniedError,
    ExperienceNotFoundError,
    ImageTooLargeError,
    InvalidImageError,
    NotHostError,
)

__all__ = [
    # Interfaces
    "ICatalogService",
    "IExperienceRepository",
    # Models
    "CatalogState",
    "ContactMethod",
    "Experience",
    "ExperienceCreate",
    "ExperienceImage",
    "ExperienceUpdate",
    "HostExperiencesState",
    "HostSummary",
    # Exceptions
    "ExperienceAccessDeniedError",
    "ExperienceNotFoundError",
    "ImageTooLargeError",
    "InvalidImageError",
    "NotHostError",
]
