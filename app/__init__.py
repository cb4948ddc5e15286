"""
Application wiring for the Guide data layer.
"""

from .container import ServiceContainer, get_container, reset_container

__all__ = ["ServiceContainer", "get_container", "reset_container"]
