"""
Base repository class for database access.

Provides a common abstraction layer for all repositories, encapsulating
Supabase client access and translating Gateway failures into GuideError
subclasses so that services never see PostgREST or transport exceptions.
"""

from typing import Any, Generic, TypeVar

import httpx
from supabase import AsyncClient, PostgrestAPIError

from .exceptions import ConflictError, ExternalServiceError


T = TypeVar("T")

# SQLSTATE raised by Postgres for unique constraint violations
UNIQUE_VIOLATION = "23505"


class BaseRepository(Generic[T]):
    """
    Base class for all repositories.

    Provides common functionality for database operations:
    - Supabase client access via self._db
    - _execute() which awaits a query builder and maps errors
    - Generic type parameter for model type hints

    Subclasses should implement domain-specific data access methods
    and handle dict-to-Pydantic model mapping internally.

    Example:
        class ExperienceRepository(BaseRepository[Experience]):
            async def get_by_id(self, experience_id: str) -> Optional[Experience]:
                rows = await self._execute(
                    self._db.table("experiences").select("*").eq("id", experience_id),
                    "load experience",
                )
                return Experience.model_validate(rows[0]) if rows else None
    """

    def __init__(self, db: AsyncClient) -> None:
        """
        Initialize the repository with a Supabase client.

        Args:
            db: Async Supabase client instance for database operations.
        """
        self._db = db

    async def _execute(self, query: Any, operation: str) -> list[dict[str, Any]]:
        """
        Run a query builder and return its rows.

        Args:
            query: A PostgREST request builder, ready to execute.
            operation: Short description used in error messages.

        Returns:
            List of row dictionaries (empty when nothing matched).

        Raises:
            ConflictError: If a unique constraint rejected the write.
            ExternalServiceError: For any other Gateway failure.
        """
        try:
            response = await query.execute()
        except PostgrestAPIError as e:
            if e.code == UNIQUE_VIOLATION:
                raise ConflictError(
                    f"Failed to {operation}: record already exists",
                    code="CONFLICT",
                    details={"hint": e.hint, "detail": e.details},
                )
            raise ExternalServiceError(
                f"Failed to {operation}: {e.message}",
                service="supabase",
                code="GATEWAY_ERROR",
                details={"postgrest_code": e.code},
            )
        except httpx.HTTPError as e:
            raise ExternalServiceError(
                f"Failed to {operation}: {e}",
                service="supabase",
                code="GATEWAY_UNAVAILABLE",
            )

        data = response.data if response is not None else None
        if data is None:
            return []
        if isinstance(data, dict):
            return [data]
        return list(data)
