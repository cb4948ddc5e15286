"""
Shared data models used across modules.

These models are shared infrastructure, not business logic.
Module-specific models stay in their respective module directories.
"""

from typing import Any, Generic, Optional, TypeVar
from pydantic import BaseModel, Field

from .exceptions import GuideError


T = TypeVar("T")


class Principal(BaseModel):
    """
    An authenticated identity as issued by the Gateway's auth service.

    The data layer only holds a transient reference to it; the profile
    table is where application data about the user lives.
    """

    id: str = Field(..., description="Principal ID (UUID from Supabase Auth)")
    email: Optional[str] = Field(None, description="Email address, if any")
    user_metadata: dict[str, Any] = Field(default_factory=dict)

    model_config = {
        "frozen": True,  # Make immutable for safety
        "extra": "ignore",
    }

    @property
    def display_name(self) -> str:
        """Best available display name from federated data or the email."""
        for key in ("full_name", "name"):
            value = self.user_metadata.get(key)
            if value:
                return str(value)
        if self.email:
            local_part = self.email.split("@")[0]
            if local_part:
                return local_part
        return "User"


class MutationResult(BaseModel, Generic[T]):
    """
    Outcome of a mutating operation.

    Mutations never raise for Gateway or validation failures; the caller
    checks `success` and shows `error` to the user.
    """

    success: bool = Field(..., description="Whether the mutation went through")
    data: Optional[T] = Field(None, description="Server-confirmed result")
    error: Optional[str] = Field(None, description="User-facing error message")
    code: Optional[str] = Field(None, description="Machine-readable error code")

    @classmethod
    def ok(cls, data: Optional[T] = None) -> "MutationResult[T]":
        return cls(success=True, data=data)

    @classmethod
    def fail(cls, error: GuideError) -> "MutationResult[T]":
        return cls(success=False, error=error.message, code=error.code)
