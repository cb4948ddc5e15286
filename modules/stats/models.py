"""
Stats module data models.
"""

from typing import Optional
from pydantic import BaseModel, Field


class HostStats(BaseModel):
    """Host-facing counters."""

    total_experiences: int = 0
    published_experiences: int = 0
    total_bookings: int = 0
    pending_bookings: int = 0

    model_config = {"frozen": True}


class StatsState(BaseModel):
    """Observable state of the stats accessor."""

    stats: HostStats = Field(default_factory=HostStats)
    loading: bool = False
    error: Optional[str] = None

    model_config = {"frozen": True}
