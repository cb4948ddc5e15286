"""
Authentication module data models.

These models define the data structures used by the session manager
and exposed to other modules through the interface.
"""

from datetime import datetime
from enum import Enum
from typing import Any, Optional
from pydantic import BaseModel, EmailStr, Field

from shared.models import Principal


DEFAULT_CITY = "Unknown"


class ProfileRole(str, Enum):
    """Mutually exclusive, user-switchable profile role."""

    GUEST = "guest"
    HOST = "host"


class AuthEvent(str, Enum):
    """Session change events emitted by the Gateway."""

    INITIAL_SESSION = "INITIAL_SESSION"
    SIGNED_IN = "SIGNED_IN"
    SIGNED_OUT = "SIGNED_OUT"
    TOKEN_REFRESHED = "TOKEN_REFRESHED"
    USER_UPDATED = "USER_UPDATED"
    PASSWORD_RECOVERY = "PASSWORD_RECOVERY"
    MFA_CHALLENGE_VERIFIED = "MFA_CHALLENGE_VERIFIED"


class AuthStatus(str, Enum):
    """Lifecycle of the session manager."""

    UNINITIALIZED = "uninitialized"
    LOADING = "loading"
    AUTHENTICATED = "authenticated"
    ANONYMOUS = "anonymous"
    ERROR = "error"


class AuthSession(BaseModel):
    """An active Gateway session."""

    principal: Principal
    access_token: str = Field(default="", repr=False)
    expires_at: Optional[int] = Field(None, description="Expiry as a UNIX timestamp")


class Profile(BaseModel):
    """
    Application-level user record.

    Exactly one profile exists per principal, linked through auth_uid.
    """

    id: str = Field(..., description="Profile ID (UUID)")
    auth_uid: str = Field(..., description="Owning principal ID")
    full_name: str = Field(..., description="Display name")
    email: Optional[str] = Field(None, description="Contact email")
    role: ProfileRole = Field(default=ProfileRole.GUEST)
    city: str = Field(default=DEFAULT_CITY)
    bio: Optional[str] = None
    verified: bool = False
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = {"extra": "ignore"}

    @property
    def is_host(self) -> bool:
        return self.role == ProfileRole.HOST


class ProfileUpdate(BaseModel):
    """Partial profile update. Only fields explicitly set are sent."""

    full_name: Optional[str] = Field(None, min_length=1, max_length=200)
    role: Optional[ProfileRole] = None
    city: Optional[str] = Field(None, min_length=1, max_length=200)
    bio: Optional[str] = Field(None, max_length=2000)

    model_config = {"extra": "forbid"}

    def changes(self) -> dict[str, Any]:
        return self.model_dump(mode="json", exclude_unset=True)


class SignUpRequest(BaseModel):
    """Credentials and profile data for email/password registration."""

    email: EmailStr
    password: str = Field(..., min_length=6)
    full_name: str = Field(..., min_length=1, max_length=200)
    role: ProfileRole = ProfileRole.GUEST
    city: str = Field(default=DEFAULT_CITY, min_length=1)


class SessionState(BaseModel):
    """Observable state of the session manager."""

    status: AuthStatus = AuthStatus.UNINITIALIZED
    principal: Optional[Principal] = None
    profile: Optional[Profile] = None
    error: Optional[str] = None

    model_config = {"frozen": True}

    @property
    def loading(self) -> bool:
        return self.status in (AuthStatus.UNINITIALIZED, AuthStatus.LOADING)

    @property
    def is_authenticated(self) -> bool:
        return self.status == AuthStatus.AUTHENTICATED and self.principal is not None
