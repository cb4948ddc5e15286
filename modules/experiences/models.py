"""
Experiences module data models.

These models define bookable listings and the state exposed by the
catalog and host services.
"""

from datetime import datetime
from enum import Enum
from typing import Any, Optional
from pydantic import BaseModel, Field


class ContactMethod(str, Enum):
    """How a guest reaches the host."""

    WHATSAPP = "whatsapp"
    EMAIL = "email"


class HostSummary(BaseModel):
    """The host profile embedded in an experience row."""

    id: Optional[str] = None
    full_name: str = ""
    verified: bool = False
    city: Optional[str] = None
    bio: Optional[str] = None

    model_config = {"extra": "ignore"}


class Experience(BaseModel):
    """
    A bookable listing.

    Price is kept as the host typed it; it is never parsed as currency.
    """

    id: str = Field(..., description="Experience ID (UUID)")
    host_id: str = Field(..., description="Owning host profile ID")
    title: str
    description: str = ""
    city: str
    price: str = ""
    contact_method: ContactMethod = ContactMethod.EMAIL
    published: bool = False
    image_url: Optional[str] = None
    image_alt_text: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    host: Optional[HostSummary] = Field(None, alias="profiles")

    model_config = {"extra": "ignore", "populate_by_name": True}


class ExperienceCreate(BaseModel):
    """Fields a host supplies for a new listing."""

    title: str = Field(..., min_length=1, max_length=200)
    description: str = Field(..., min_length=1, max_length=5000)
    city: str = Field(..., min_length=1, max_length=200)
    price: str = Field(..., min_length=1, max_length=100)
    contact_method: ContactMethod = ContactMethod.EMAIL
    published: bool = False
    image_url: Optional[str] = None
    image_alt_text: Optional[str] = None

    model_config = {"extra": "forbid"}


class ExperienceUpdate(BaseModel):
    """Partial listing update. Only fields explicitly set are sent."""

    title: Optional[str] = Field(None, min_length=1, max_length=200)
    description: Optional[str] = Field(None, min_length=1, max_length=5000)
    city: Optional[str] = Field(None, min_length=1, max_length=200)
    price: Optional[str] = Field(None, min_length=1, max_length=100)
    contact_method: Optional[ContactMethod] = None
    published: Optional[bool] = None
    image_url: Optional[str] = None
    image_alt_text: Optional[str] = None

    model_config = {"extra": "forbid"}

    def changes(self) -> dict[str, Any]:
        return self.model_dump(mode="json", exclude_unset=True)


class ExperienceImage(BaseModel):
    """A stored listing image."""

    url: str
    path: str
    alt_text: str


class CatalogState(BaseModel):
    """Observable state of the published catalog."""

    experiences: list[Experience] = Field(default_factory=list)
    # False until a list has been read from the cache or the Gateway
    loaded: bool = False
    loading: bool = False
    error: Optional[str] = None

    model_config = {"frozen": True}


class HostExperiencesState(BaseModel):
    """Observable state of a host's own listings."""

    experiences: list[Experience] = Field(default_factory=list)
    loading: bool = False
    error: Optional[str] = None

    model_config = {"frozen": True}
