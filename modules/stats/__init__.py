"""
Stats module - host dashboard counters.
"""

from .interfaces import IStatsRepository
from .models import HostStats, StatsState

__all__ = ["IStatsRepository", "HostStats", "StatsState"]
